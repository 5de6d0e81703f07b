"""Tests for datapoint metadata, field configuration and validation results."""

import pytest

from mcdu.schemas import (
    DatapointMetadata,
    DatapointType,
    FieldConfig,
    InputType,
    RemoteValue,
    ValidationResult,
)


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("boolean", DatapointType.BOOLEAN),
        ("Number", DatapointType.NUMBER),
        (" string ", DatapointType.STRING),
        ("mixed", DatapointType.UNSUPPORTED),
        ("array", DatapointType.UNSUPPORTED),
        (None, DatapointType.UNSUPPORTED),
        (42, DatapointType.UNSUPPORTED),
    ],
)
def test_datapoint_type_collapses_to_closed_set(raw, expected):
    assert DatapointType.from_raw(raw) is expected


def test_metadata_reads_store_shape():
    meta = DatapointMetadata.model_validate(
        {"write": True, "type": "number", "min": 5, "max": 30, "unit": "C", "role": "level"}
    )
    assert meta.writable
    assert meta.type is DatapointType.NUMBER
    assert (meta.min, meta.max) == (5.0, 30.0)
    assert meta.unit == "C"


def test_metadata_defaults_are_read_only_and_unsupported():
    meta = DatapointMetadata()
    assert not meta.writable
    assert meta.type is DatapointType.UNSUPPORTED


def test_metadata_accepts_field_name():
    assert DatapointMetadata(writable=True).writable


def test_field_config_unknown_input_type_is_text():
    field = FieldConfig.model_validate({"inputType": "colour"})
    assert field.input_type is InputType.TEXT
    assert FieldConfig().effective_input_type is InputType.TEXT


def test_validation_rules_keep_custom_parameters():
    field = FieldConfig.model_validate(
        {
            "inputType": "numeric",
            "validation": {"min": 5, "maxLength": 4, "custom": "validateHeatingTarget", "compareWith": "a.b"},
        }
    )
    rules = field.validation
    assert rules.min == 5
    assert rules.max_length == 4
    assert rules.custom == "validateHeatingTarget"
    assert rules.extra_value("compareWith") == "a.b"
    assert rules.extra_value("checkAlarm", "fallback") == "fallback"


def test_validation_result_helpers():
    assert ValidationResult.ok() == ValidationResult(valid=True)
    failed = ValidationResult.fail("REQUIRED")
    assert not failed.valid
    assert failed.error == "REQUIRED"


def test_remote_value_quality():
    assert RemoteValue(val=1).is_good
    assert not RemoteValue(val=1, quality=0x42).is_good
