"""Parser for Cheshire East "My Collection Day" responses.

The bin job list is an HTML fragment where each collection is rendered as
three consecutive ``<label for="...">`` elements: day name, date
(DD/MM/YYYY) and a bin description such as "Empty Standard Garden Waste".
The page always finishes with a block of three labels that are not
collections at all, so those are thrown away before grouping.
"""

from __future__ import annotations

import html
import logging
import re
from datetime import date, datetime

from bs4 import BeautifulSoup

from binday.errors import ParseError
from binday.schemas import CollectionEntry, ContainerKind

logger = logging.getLogger(__name__)

# One label per fragment: day name, date, bin description, repeating
FRAGMENT_RE = re.compile(r'label for="\w*">(.+?)<')

# Labels appended after the real collections by the web service
TRAILING_NOISE_FRAGMENTS = 3

FRAGMENTS_PER_ENTRY = 3

DATE_FORMAT = "%d/%m/%Y"

BIN_DESCRIPTION_PREFIX = "Empty Standard "

_CONTAINER_MAP = {
    "Garden Waste": ContainerKind.GREEN,
    "Mixed Recycling": ContainerKind.SILVER,
}


def extract_fragments(raw_markup: str) -> list[str]:
    """Return every label text in document order."""
    return [html.unescape(m.group(1)).strip() for m in FRAGMENT_RE.finditer(raw_markup)]


def parse_container_kind(description: str) -> ContainerKind:
    """Map a bin description to a container.

    Anything that isn't garden waste or mixed recycling is general waste.
    """
    if description.startswith(BIN_DESCRIPTION_PREFIX):
        description = description[len(BIN_DESCRIPTION_PREFIX):]
    return _CONTAINER_MAP.get(description, ContainerKind.BLACK)


def parse_collection_date(date_string: str) -> date:
    """Parse a DD/MM/YYYY date. Raises ValueError on anything else."""
    return datetime.strptime(date_string.strip(), DATE_FORMAT).date()


def parse_schedule(raw_markup: str) -> list[CollectionEntry]:
    """Turn a bin job list response into collection entries, in page order.

    Entries whose date can't be read are skipped with a warning; the rest
    of the schedule is still returned.
    """
    fragments = extract_fragments(raw_markup or "")
    if len(fragments) < TRAILING_NOISE_FRAGMENTS:
        logger.error(
            "Unable to parse bin collection response: %d label fragments found",
            len(fragments),
        )
        raise ParseError(f"Expected at least {TRAILING_NOISE_FRAGMENTS} fragments, found {len(fragments)}")

    fragments = fragments[:-TRAILING_NOISE_FRAGMENTS]
    usable = len(fragments) - len(fragments) % FRAGMENTS_PER_ENTRY
    if usable != len(fragments):
        logger.warning("Discarding %d trailing fragments", len(fragments) - usable)

    entries: list[CollectionEntry] = []
    for i in range(0, usable, FRAGMENTS_PER_ENTRY):
        date_label, date_string, description = fragments[i:i + FRAGMENTS_PER_ENTRY]
        try:
            collection_date = parse_collection_date(date_string)
        except ValueError:
            logger.warning("Invalid collection date '%s', skipping", date_string)
            continue
        entries.append(
            CollectionEntry(
                date_label=date_label,
                collection_date=collection_date,
                container=parse_container_kind(description),
            )
        )

    logger.info("Parsed %d collection entries", len(entries))
    return entries


def parse_property_id(raw_markup: str) -> str:
    """Return the property reference (UPRN) from an address search response."""
    soup = BeautifulSoup(raw_markup or "", "html.parser")
    el = soup.find(attrs={"data-uprn": re.compile(r"^\d+$")})
    if not el:
        logger.error("Unable to find a property reference in address search response")
        raise ParseError("No data-uprn attribute in address search response")
    return el["data-uprn"]
