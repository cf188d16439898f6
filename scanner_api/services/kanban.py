"""
Internal kanban label parsing.

An internal kanban label starts with the 12 character part number followed by
the kanban code and a serial, either separated by a space
("PART12CHARSX KB01 00042") or packed ("PART12CHARSXKB0100042").
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

PART_NUMBER_LENGTH = 12
KANBAN_CODE_LENGTH = 4
MIN_INTERNAL_KANBAN_LENGTH = 17


@dataclass(frozen=True)
class InternalKanban:
    """Decoded internal kanban label."""
    part_number: str
    kanban_code: str
    serial: str


class InternalKanbanError(ValueError):
    """Raised when an internal kanban label cannot be decoded."""


# PUBLIC_INTERFACE
def normalize_part_number(part_number: Optional[str]) -> str:
    """Remove dashes and surrounding whitespace from a part number."""
    return (part_number or "").replace("-", "").strip()


# PUBLIC_INTERFACE
def parse_internal_kanban(value: Optional[str]) -> InternalKanban:
    """
    Split an internal kanban label into part number, kanban code and serial.

    Raises:
        InternalKanbanError: when the label is too short or a part is missing.
    """
    text = (value or "").strip()
    if len(text) < MIN_INTERNAL_KANBAN_LENGTH:
        raise InternalKanbanError(
            f"Internal Kanban too short (min {MIN_INTERNAL_KANBAN_LENGTH} chars)"
        )

    part_number = text[:PART_NUMBER_LENGTH].strip()
    remainder = text[PART_NUMBER_LENGTH:].strip()

    if " " in remainder:
        kanban_code, _, serial = remainder.partition(" ")
        kanban_code, serial = kanban_code.strip(), serial.strip()
    else:
        if len(remainder) < KANBAN_CODE_LENGTH + 1:
            raise InternalKanbanError("Internal Kanban is missing the kanban code or serial")
        kanban_code = remainder[:KANBAN_CODE_LENGTH]
        serial = remainder[KANBAN_CODE_LENGTH:]

    if not part_number or not kanban_code or not serial:
        raise InternalKanbanError("Internal Kanban must contain part number, kanban code and serial")

    return InternalKanban(part_number=part_number, kanban_code=kanban_code, serial=serial)
