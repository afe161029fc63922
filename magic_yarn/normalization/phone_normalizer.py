"""Phone number normalizer.

Converts contact phone numbers to E.164 (e.g. ``+12125551234``) when they
parse as valid numbers.  Country-code inference uses *default_region* when
no international prefix is present.  Numbers that do not parse are kept as
typed (stripped) so volunteers never lose what they entered, e.g. an
extension written in free text.

Safety rule: raw values are never logged.
"""
from __future__ import annotations

import logging

import phonenumbers

logger = logging.getLogger(__name__)

_DEFAULT_REGION = "US"


def to_e164(raw: str, *, default_region: str = _DEFAULT_REGION) -> str | None:
    """Return *raw* in E.164 format, or ``None`` if it is not a valid number."""
    if not raw or not raw.strip():
        return None

    try:
        parsed = phonenumbers.parse(raw, default_region)
    except phonenumbers.NumberParseException:
        logger.debug("phone: could not parse input (length=%d)", len(raw))
        return None

    if not phonenumbers.is_valid_number(parsed):
        logger.debug("phone: parsed but invalid number")
        return None

    return phonenumbers.format_number(parsed, phonenumbers.PhoneNumberFormat.E164)


def normalize_phone(raw: str | None, *, default_region: str = _DEFAULT_REGION) -> str | None:
    """Return the E.164 form of *raw*, the stripped input when unparseable, or ``None`` when blank."""
    if raw is None or not raw.strip():
        return None
    return to_e164(raw, default_region=default_region) or raw.strip()
