"""Mailing address formatting.

Recipients store their address split across street, city, state and zip.
Deliveries store a single resolved line so that later edits to the
recipient do not rewrite shipping history.
"""
from __future__ import annotations

ADDRESS_LINE_SEPARATOR = " | "


def _clean(value: str | None) -> str:
    return (value or "").strip()


def format_address(
    address: str | None,
    city: str | None = None,
    state: str | None = None,
    zip_code: str | None = None,
) -> str:
    """Return ``"street | city, state, zip"``, skipping blank parts.

    Returns ``""`` when every part is blank.
    """
    line1 = _clean(address)
    line2 = ", ".join(part for part in (_clean(city), _clean(state), _clean(zip_code)) if part)
    return ADDRESS_LINE_SEPARATOR.join(line for line in (line1, line2) if line)
