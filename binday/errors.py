"""Typed failures raised while looking up a property's next collection.

Every failure carries the same user-facing message; callers that only need
something to say back to the household can use ``exc.user_message``
without caring which stage failed.
"""

from __future__ import annotations

USER_MESSAGE = (
    "Sorry, we were unable to find your bin collection details. "
    "Please check the address is a valid Cheshire East address."
)


class BinDayError(Exception):
    """Base class for all lookup failures."""

    user_message = USER_MESSAGE


class ParseError(BinDayError):
    """Upstream markup did not have the expected structure."""


class UpstreamError(BinDayError):
    """The upstream web service could not be reached or returned an error status."""


class AddressIncomplete(BinDayError):
    """The caller's address is missing the first line or the postcode."""


class BinCollectionUnavailable(BinDayError):
    """The schedule holds no collection dated today or later."""
