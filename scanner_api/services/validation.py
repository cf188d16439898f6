"""
Toyota barcode and field validation rules.

Every check returns a ValidationResult instead of raising so callers can
collect several failures and pick their own error titles.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, FrozenSet, Optional

SUPPLIER_CODE_RE = re.compile(r"^[a-zA-Z0-9]{5}$")
PLANT_CODE_RE = re.compile(r"^[0-9]{2}[A-Z]{3}$")
DOCK_CODE_RE = re.compile(r"^[a-zA-Z0-9]{1,3}$")
SKID_ID_RE = re.compile(r"^\d{3}$")
PART_NUMBER_RE = re.compile(r"^[A-Z0-9]{10,12}$")
KANBAN_NUMBER_RE = re.compile(r"^[a-zA-Z0-9]{4}$")
ORDER_SUFFIX_RE = re.compile(r"^[A-Z]{2}$")
NO_SPECIAL_CHARS_RE = re.compile(r"^[a-zA-Z0-9-]+$")

# Plant whose order numbers do not follow the dated format
UNFORMATTED_ORDER_PLANT = "21TMC"

SKID_BUILD_ORDER = "skid_build_order"
SHIPMENT_LOAD_TRAILER = "shipment_load_trailer"
SHIPMENT_LOAD_SKID = "shipment_load_skid"

EXCEPTION_CODES: Dict[str, FrozenSet[str]] = {
    SKID_BUILD_ORDER: frozenset({"10", "11", "12", "20"}),
    SHIPMENT_LOAD_TRAILER: frozenset({"13", "17", "24", "99"}),
    SHIPMENT_LOAD_SKID: frozenset({"14", "15", "18", "19", "21", "22"}),
}

MIN_BOX_NUMBER = 1
MAX_BOX_NUMBER = 999


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of a single validation rule."""
    is_valid: bool
    error_message: Optional[str] = None

    def __bool__(self) -> bool:
        return self.is_valid


_OK = ValidationResult(True)


def _fail(message: str) -> ValidationResult:
    return ValidationResult(False, message)


def _blank(value: Optional[str]) -> bool:
    return value is None or not str(value).strip()


# PUBLIC_INTERFACE
def validate_order_number(order_number: Optional[str], plant_code: Optional[str] = None) -> ValidationResult:
    """
    Validate a Toyota order number.

    Format is YYYYMMDD + 2 digit sequence, optionally followed by a 2 letter
    suffix (10 or 12 characters). Orders for plant 21TMC are free-form.
    """
    if _blank(order_number):
        return _fail("Order number is required")
    if not NO_SPECIAL_CHARS_RE.match(order_number):
        return _fail("Order number contains invalid characters")
    if plant_code and plant_code.strip().upper() == UNFORMATTED_ORDER_PLANT:
        return _OK

    if len(order_number) not in (10, 12):
        return _fail(f"Order number must be 10 or 12 characters (received {len(order_number)})")
    try:
        datetime.strptime(order_number[:8], "%Y%m%d")
    except ValueError:
        return _fail("Order number must start with a valid date (YYYYMMDD)")
    if not order_number[8:10].isdigit():
        return _fail("Order number characters 9-10 must be numeric")
    if len(order_number) == 12 and not ORDER_SUFFIX_RE.match(order_number[10:12]):
        return _fail("Order number characters 11-12 must be uppercase letters")
    return _OK


def _pattern(value: Optional[str], pattern: "re.Pattern[str]", label: str, rule: str) -> ValidationResult:
    if _blank(value):
        return _fail(f"{label} is required")
    if not pattern.match(value):
        return _fail(f"{label} '{value}' is invalid: {rule}")
    return _OK


# PUBLIC_INTERFACE
def validate_supplier_code(value: Optional[str]) -> ValidationResult:
    """Supplier codes are exactly 5 alphanumeric characters."""
    return _pattern(value, SUPPLIER_CODE_RE, "Supplier code", "must be 5 alphanumeric characters")


# PUBLIC_INTERFACE
def validate_plant_code(value: Optional[str]) -> ValidationResult:
    """Plant codes are 2 digits followed by 3 uppercase letters (e.g. 02TMI)."""
    return _pattern(value, PLANT_CODE_RE, "Plant code", "must be 2 digits followed by 3 uppercase letters")


# PUBLIC_INTERFACE
def validate_dock_code(value: Optional[str]) -> ValidationResult:
    """Dock codes are 1 to 3 alphanumeric characters."""
    return _pattern(value, DOCK_CODE_RE, "Dock code", "must be 1-3 alphanumeric characters")


# PUBLIC_INTERFACE
def validate_skid_id(value: Optional[str]) -> ValidationResult:
    """Skid ids are exactly 3 digits."""
    return _pattern(value, SKID_ID_RE, "Skid ID", "must be exactly 3 digits")


# PUBLIC_INTERFACE
def validate_part_number(value: Optional[str]) -> ValidationResult:
    """Part numbers are 10 to 12 uppercase alphanumeric characters."""
    return _pattern(value, PART_NUMBER_RE, "Part number", "must be 10-12 uppercase alphanumeric characters")


# PUBLIC_INTERFACE
def validate_kanban_number(value: Optional[str]) -> ValidationResult:
    """Kanban numbers are exactly 4 alphanumeric characters."""
    return _pattern(value, KANBAN_NUMBER_RE, "Kanban number", "must be 4 alphanumeric characters")


# PUBLIC_INTERFACE
def validate_qpc(qpc: Optional[int]) -> ValidationResult:
    """Quantity per container must be positive."""
    if qpc is None or qpc <= 0:
        return _fail("QPC must be greater than 0")
    return _OK


# PUBLIC_INTERFACE
def validate_box_number(box_number: Optional[int]) -> ValidationResult:
    """Box numbers run from 1 to 999."""
    if box_number is None or not MIN_BOX_NUMBER <= box_number <= MAX_BOX_NUMBER:
        return _fail(f"Box number must be between {MIN_BOX_NUMBER} and {MAX_BOX_NUMBER}")
    return _OK


# PUBLIC_INTERFACE
def validate_exception_code(code: Optional[str], level: str) -> ValidationResult:
    """
    Validate an exception code against the codes allowed at a workflow level.

    Raises:
        ValueError: when `level` is not a known workflow level.
    """
    try:
        allowed = EXCEPTION_CODES[level]
    except KeyError:
        raise ValueError(f"Unknown exception level: {level}") from None
    if _blank(code):
        return _fail("Exception code is required")
    if code.strip() not in allowed:
        return _fail(
            f"Exception code '{code}' is not valid for {level}. "
            f"Allowed codes: {', '.join(sorted(allowed, key=int))}"
        )
    return _OK


# PUBLIC_INTERFACE
def validate_palletization_match(scanned: Optional[str], planned: Optional[str]) -> ValidationResult:
    """Scanned and planned palletization codes must agree when both are known."""
    if _blank(scanned) or _blank(planned):
        return _OK
    if scanned.strip().upper() != planned.strip().upper():
        return _fail(f"Palletization code '{scanned}' does not match expected '{planned}'")
    return _OK


# PUBLIC_INTERFACE
def validate_no_special_characters(value: Optional[str], label: str = "Value") -> ValidationResult:
    """Only letters, digits and hyphens are accepted."""
    if _blank(value):
        return _OK
    if not NO_SPECIAL_CHARS_RE.match(value):
        return _fail(f"{label} contains invalid characters")
    return _OK


# PUBLIC_INTERFACE
def validate_uppercase(value: Optional[str], label: str = "Value") -> ValidationResult:
    """Letters, when present, must already be uppercase."""
    if _blank(value):
        return _OK
    if value != value.upper():
        return _fail(f"{label} must be uppercase")
    return _OK
