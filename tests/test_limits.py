"""Tests for the limits catalog and operation checks."""

import pytest

from crm.services.limits import (
    LIMIT_CATALOG,
    LimitsValidationError,
    catalog_as_dict,
    default_limits,
    evaluate_limit,
    validate_limits,
)


def test_catalog_has_every_key():
    assert len(LIMIT_CATALOG) == 18
    keys = {entry["key"] for entry in catalog_as_dict()}
    assert {"max_records", "module_level", "enable_ai_features"} <= keys


def test_valid_limits_pass_through():
    limits = {"max_records": 500, "export_enabled": False, "module_level": "premium"}
    assert validate_limits(limits, "crm") == limits


def test_invalid_limits_are_all_reported():
    with pytest.raises(LimitsValidationError) as exc_info:
        validate_limits({
            "max_records": -1,
            "export_enabled": "yes",
            "module_level": "gold",
            "max_unicorns": 3,
            "concurrent_sessions": True,
        })
    errors = exc_info.value.errors
    assert len(errors) == 5
    assert any(e.startswith("max_unicorns") for e in errors)
    assert any(e.startswith("concurrent_sessions") for e in errors)


def test_module_specific_limit():
    assert validate_limits({"max_active_appointments": 10}, "appointment")
    with pytest.raises(LimitsValidationError):
        validate_limits({"max_active_appointments": 10}, "crm")


def test_default_limits_are_valid_and_copied():
    for code in ("appointment", "crm", "sales", "anything-else"):
        validate_limits(default_limits(code), code)

    first = default_limits("crm")
    first["max_records"] = 1
    assert default_limits("crm")["max_records"] == 2000


def test_record_limit():
    limits = {"max_records": 10}
    assert evaluate_limit(limits, "create", "records", current_count=9).allowed is True

    check = evaluate_limit(limits, "create", "records", quantity=2, current_count=9)
    assert check.allowed is False
    assert check.current_count == 9
    assert check.max_allowed == 10


def test_unknown_count_does_not_block():
    assert evaluate_limit({"max_records": 0}, "create", "records").allowed is True


def test_export_and_ai_flags():
    assert evaluate_limit({"export_enabled": False}, "export", "records").allowed is False
    assert evaluate_limit({"export_enabled": True}, "export", "records").allowed is True
    assert evaluate_limit({"enable_ai_features": False}, "read", "ai_features").allowed is False
