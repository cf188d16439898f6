import pytest

from scanner_api.services.kanban import InternalKanbanError, normalize_part_number, parse_internal_kanban


def test_parse_space_separated_label():
    parsed = parse_internal_kanban("  681010E25000 KB01 00042 ")
    assert parsed.part_number == "681010E25000"
    assert parsed.kanban_code == "KB01"
    assert parsed.serial == "00042"


def test_parse_packed_label():
    parsed = parse_internal_kanban("681010E25000KB0100042")
    assert (parsed.part_number, parsed.kanban_code, parsed.serial) == ("681010E25000", "KB01", "00042")


def test_label_too_short():
    with pytest.raises(InternalKanbanError, match="Internal Kanban too short"):
        parse_internal_kanban("681010E25000KB01")


def test_packed_label_needs_serial():
    with pytest.raises(InternalKanbanError):
        parse_internal_kanban("681010E25000  KB0")


def test_normalize_part_number_removes_dashes():
    assert normalize_part_number(" 68101-0E250-00 ") == "681010E25000"
    assert normalize_part_number(None) == ""
