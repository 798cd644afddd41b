"""Phone number normalization."""

import re

_FORMATTING_CHARS = re.compile(r"[\s\-\.\(\)]")


def normalize_phone_number(raw: str, default_country_code: str = "1") -> str:
    """Normalize a destination to a dialable international form.

    Numbers already in international form ("+...") are returned unchanged.
    Otherwise formatting characters are stripped; a number that already
    starts with the country code and has 10 national digits gets a "+",
    anything else gets "+<country code>".

    >>> normalize_phone_number("5551234567")
    '+15551234567'
    >>> normalize_phone_number("15551234567")
    '+15551234567'
    >>> normalize_phone_number("+447700900123")
    '+447700900123'
    """
    if raw.startswith("+"):
        return raw

    digits = _FORMATTING_CHARS.sub("", raw)
    country_code = default_country_code.lstrip("+")

    if len(digits) == len(country_code) + 10 and digits.startswith(country_code):
        return f"+{digits}"
    return f"+{country_code}{digits}"


def mask_phone_number(number: str) -> str:
    """Mask all but the last four digits, for logs."""
    if len(number) <= 4:
        return "*" * len(number)
    return "*" * (len(number) - 4) + number[-4:]
