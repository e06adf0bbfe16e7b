from binday.parsers.schedule import (  # noqa: F401
    parse_collection_date,
    parse_container_kind,
    parse_property_id,
    parse_schedule,
)
