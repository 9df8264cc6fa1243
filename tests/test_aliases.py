"""Tests for brightsites_export.aliases."""

from brightsites_export.aliases import (
    CITY_KEYS,
    ZIP_KEYS,
    as_text,
    has_any,
    resolve,
    resolve_first,
    resolve_object,
    resolve_value,
)


def test_resolve_first_matching_alias_wins():
    assert resolve({"city": "A", "town": "B"}, CITY_KEYS) == "A"
    assert resolve({"town": "B"}, CITY_KEYS) == "B"


def test_resolve_skips_blank_and_missing_values():
    source = {"zip": "  ", "postcode": None, "postal_code": "10001"}
    assert resolve(source, ZIP_KEYS) == "10001"


def test_resolve_keeps_falsy_scalars():
    assert resolve({"quantity": 0}, ("quantity",)) == 0
    assert resolve({"flag": False}, ("flag",)) is False


def test_resolve_ignores_containers():
    assert resolve({"city": {"name": "A"}, "town": "B"}, CITY_KEYS) == "B"
    assert resolve({"city": ["A"]}, CITY_KEYS) is None


def test_resolve_non_mapping_source():
    assert resolve(None, CITY_KEYS) is None
    assert resolve("Springfield", CITY_KEYS) is None


def test_resolve_value_accepts_lists():
    assert resolve_value({"options": [{"a": 1}]}, ("options",)) == [{"a": 1}]
    assert resolve_value({"options": []}, ("options",)) is None


def test_resolve_object_returns_first_mapping():
    source = {"billing_address": "n/a", "shipping_address": {}}
    assert resolve_object(source, ("billing_address", "shipping_address")) == {}
    assert resolve_object(source, ("missing",)) is None


def test_resolve_first_checks_sources_in_order():
    assert resolve_first(({}, {"city": "X"}, {"city": "Y"}), CITY_KEYS) == "X"
    assert resolve_first((None, {}), CITY_KEYS) is None


def test_has_any():
    assert has_any({"email": "a@b.c"}, ("first_name", "email")) is True
    assert has_any({"email": ""}, ("email",)) is False


def test_as_text():
    assert as_text(None) is None
    assert as_text("x") == "x"
    assert as_text(3) == "3"
    assert as_text(3.0) == "3"
    assert as_text(3.5) == "3.5"
    assert as_text(True) == "true"
    assert as_text({"a": 1}) == '{"a":1}'


def test_as_text_keeps_non_ascii_json():
    assert as_text({"city": "Zürich"}) == '{"city":"Zürich"}'
