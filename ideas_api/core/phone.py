"""Phone canonicalization: every stored phone is the 10-digit national form."""

import re

from ideas_api.core.errors import InvalidPhoneError

CANONICAL_LENGTH = 10

_SEPARATORS = re.compile(r"[\s\-().]")
_CANONICAL = re.compile(r"^[0-9]{10}$")


def normalize_phone(raw: str | None) -> str:
    """Return the canonical 10-digit form of +7XXXXXXXXXX, 8XXXXXXXXXX or XXXXXXXXXX.

    Spaces, dashes, dots and parentheses are ignored. Only ASCII digits count;
    numerals from other scripts are rejected. The trunk prefix is only stripped
    from 11-digit numbers, so a canonical number that happens to start with 8
    or 7 is returned unchanged.
    """
    phone = _SEPARATORS.sub("", raw or "")
    if phone.startswith("+7"):
        phone = phone[2:]
    elif len(phone) == CANONICAL_LENGTH + 1 and phone[0] in "78":
        phone = phone[1:]
    if not _CANONICAL.match(phone):
        raise InvalidPhoneError(f"phone {mask_phone(raw)} is not a valid national number")
    return phone


def to_e164(canonical: str) -> str:
    return f"+7{canonical}"


def mask_phone(phone: str | None) -> str:
    """Keep the last four characters for log lines."""
    phone = phone or ""
    if len(phone) <= 4:
        return "*" * len(phone)
    return "*" * (len(phone) - 4) + phone[-4:]
