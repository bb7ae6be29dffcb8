# function_app/shared/validate.py
from __future__ import annotations

from typing import Optional

from .errors import InvalidSourceURL, MissingParameter

ALLOWED_PREFIXES = ("http://www.mediafire.com/", "https://www.mediafire.com/")


def validate_source_link(value: Optional[str]) -> str:
    """
    Check the `require` query value. Returns it unchanged.
    The prefix check is case-sensitive; no scheme or host normalisation.
    """
    if value is None or not value.strip():
        raise MissingParameter(
            "Missing 'require' parameter. Please provide a MediaFire link."
        )
    if not value.startswith(ALLOWED_PREFIXES):
        raise InvalidSourceURL(
            "Invalid MediaFire link. It must start with http(s)://www.mediafire.com/",
            link=value,
        )
    return value
