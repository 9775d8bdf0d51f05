"""Identifier normalization shared by every extraction and validation path.

UN numbers arrive in many shapes: "1263" from a form, "un1263" from an OCR
pass, "UN 1263" from a model response. Every producer of a UN number field
funnels through ``normalize_un_number`` so the canonical form is decided in
one place.
"""

import re
from typing import Optional

UN_PREFIX = "UN"

_BARE_NUMBER = re.compile(r"^\d{4}$")
_PREFIXED_NUMBER = re.compile(r"^un[\s\-]*(\d{4})$", re.IGNORECASE)
CANONICAL_UN_NUMBER = re.compile(r"^UN\d{4}$")


def normalize_un_number(value: Optional[str]) -> str:
    """Canonicalize a UN number.

    A bare 4-digit code gets the ``UN`` prefix; an existing prefix is
    upper-cased, case-insensitively and tolerating a space or hyphen.
    Anything else is returned stripped but otherwise untouched, so a
    downstream validator can still reject it.

    Args:
        value: Raw identifier (may be None or empty)

    Returns:
        Canonical identifier, or "" for missing input

    Example:
        >>> normalize_un_number("1263")
        'UN1263'
        >>> normalize_un_number("un 1263")
        'UN1263'
        >>> normalize_un_number("UN1263")
        'UN1263'
    """
    if value is None:
        return ""

    text = str(value).strip()
    if not text:
        return ""

    if _BARE_NUMBER.match(text):
        return f"{UN_PREFIX}{text}"

    match = _PREFIXED_NUMBER.match(text)
    if match:
        return f"{UN_PREFIX}{match.group(1)}"

    return text


def is_canonical_un_number(value: str) -> bool:
    """Check whether a value is already in ``UNxxxx`` form."""
    return bool(CANONICAL_UN_NUMBER.match(value))
