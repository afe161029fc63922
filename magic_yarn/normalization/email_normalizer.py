"""Email normalizer.

Lowercases and strips contact e-mail addresses so lookups and duplicate
checks are case-insensitive.  Unlike sign-in addresses, contact addresses
are stored as typed otherwise: no dot or sub-address folding.

Safety rule: raw values are never logged.
"""
from __future__ import annotations

import logging

logger = logging.getLogger(__name__)


def normalize_email(raw: str | None) -> str | None:
    """Return *raw* lowercased and stripped, or ``None`` when blank."""
    if raw is None:
        return None
    stripped = raw.strip().lower()
    if not stripped:
        return None
    if "@" not in stripped:
        logger.debug("normalize_email: no '@' found (length=%d)", len(stripped))
    return stripped
