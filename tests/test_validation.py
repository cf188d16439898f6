import pytest

from scanner_api.services import validation
from scanner_api.services.validation import (
    SHIPMENT_LOAD_SKID,
    SHIPMENT_LOAD_TRAILER,
    SKID_BUILD_ORDER,
    validate_box_number,
    validate_dock_code,
    validate_exception_code,
    validate_kanban_number,
    validate_order_number,
    validate_palletization_match,
    validate_part_number,
    validate_plant_code,
    validate_qpc,
    validate_skid_id,
    validate_supplier_code,
)


@pytest.mark.parametrize("order_number", ["2024010101", "2024010101AB"])
def test_order_number_accepts_dated_format(order_number):
    assert validate_order_number(order_number).is_valid


@pytest.mark.parametrize(
    "order_number, fragment",
    [
        ("", "required"),
        ("20240101 01", "invalid characters"),
        ("20240101", "10 or 12 characters"),
        ("2024130101", "valid date"),
        ("20240101AB", "must be numeric"),
        ("2024010101ab", "uppercase letters"),
    ],
)
def test_order_number_rejections(order_number, fragment):
    result = validate_order_number(order_number)
    assert not result.is_valid
    assert fragment in result.error_message


def test_order_number_format_skipped_for_21tmc():
    assert validate_order_number("ABC123", plant_code="21TMC").is_valid
    # special characters are still rejected for that plant
    assert not validate_order_number("ABC/123", plant_code="21TMC").is_valid


def test_code_patterns():
    assert validate_supplier_code("22806")
    assert not validate_supplier_code("2280")
    assert validate_plant_code("02TMI")
    assert not validate_plant_code("02tmi")
    assert validate_dock_code("FL")
    assert not validate_dock_code("FLXX")
    assert validate_skid_id("001")
    assert not validate_skid_id("01")
    assert validate_part_number("681010E25000")
    assert not validate_part_number("68101-0E250")
    assert validate_kanban_number("KB01")
    assert not validate_kanban_number("KB0")


def test_numeric_rules():
    assert validate_qpc(1)
    assert not validate_qpc(0)
    assert not validate_qpc(None)
    assert validate_box_number(1)
    assert validate_box_number(999)
    assert not validate_box_number(0)
    assert not validate_box_number(1000)


def test_exception_codes_by_level():
    assert validate_exception_code("12", SKID_BUILD_ORDER)
    assert not validate_exception_code("13", SKID_BUILD_ORDER)
    assert validate_exception_code("99", SHIPMENT_LOAD_TRAILER)
    assert validate_exception_code("22", SHIPMENT_LOAD_SKID)

    result = validate_exception_code("14", SHIPMENT_LOAD_TRAILER)
    assert "Allowed codes: 13, 17, 24, 99" in result.error_message


def test_unknown_exception_level_raises():
    with pytest.raises(ValueError):
        validate_exception_code("10", "bogus_level")


def test_palletization_match_skipped_when_either_side_empty():
    assert validate_palletization_match("", "A1")
    assert validate_palletization_match("A1", None)
    assert validate_palletization_match("a1", "A1")
    assert not validate_palletization_match("B2", "A1")


def test_text_rules():
    assert validation.validate_no_special_characters("ABC-123")
    assert not validation.validate_no_special_characters("ABC_123")
    assert validation.validate_uppercase("ABC1")
    assert not validation.validate_uppercase("Abc1")
