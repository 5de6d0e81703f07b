"""
Pydantic schemas for the MCDU input subsystem.

Datapoint metadata, field validation rules and validation results are defined
here. Page and line configuration lives in ``mcdu.pages``; display primitives
live in ``mcdu.display``.

Design Philosophy:
- Datapoint types form a closed set (Boolean, Number, String, Unsupported) so the
  LSK dispatcher can match them exhaustively at one site
- Configuration written by the admin UI uses camelCase keys; models accept both
  the camelCase aliases and the snake_case field names
- Unknown keys on validation rules are kept (custom validators read them)
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


# ============================================================================
# Datapoint Metadata
# ============================================================================


class DatapointType(str, Enum):
    """Declared value type of a remote datapoint."""

    BOOLEAN = "boolean"
    NUMBER = "number"
    STRING = "string"
    UNSUPPORTED = "unsupported"

    @classmethod
    def from_raw(cls, raw: Any) -> "DatapointType":
        """Map a raw type string from the value store onto the closed set.

        Anything that is not boolean/number/string (``mixed``, ``array``,
        ``object``, ``file``, missing) collapses to UNSUPPORTED.
        """

        if isinstance(raw, cls):
            return raw
        if isinstance(raw, str):
            try:
                return cls(raw.strip().lower())
            except ValueError:
                return cls.UNSUPPORTED
        return cls.UNSUPPORTED


class DatapointMetadata(BaseModel):
    """Capabilities of a remote datapoint as cached from the value store.

    The metadata cache is filled when pages are loaded (one entry per datapoint
    source referenced by a display field). The input subsystem only reads it.
    """

    model_config = ConfigDict(populate_by_name=True)

    # The value store calls this flag ``write``; ``writable`` reads better here.
    writable: bool = Field(False, alias="write", description="Whether the value may be written")
    type: DatapointType = Field(DatapointType.UNSUPPORTED, description="Declared value type")
    min: Optional[float] = Field(None, description="Inclusive lower bound (numbers only)")
    max: Optional[float] = Field(None, description="Inclusive upper bound (numbers only)")
    unit: Optional[str] = Field(None, description="Optional unit label (°C, %, etc.)")
    # Enumerated states, e.g. {"0": "OFF", "1": "ON"}
    states: Optional[Dict[str, str]] = Field(None, description="Enumerated value labels")

    @field_validator("type", mode="before")
    @classmethod
    def _coerce_type(cls, value: Any) -> DatapointType:
        return DatapointType.from_raw(value)


# ============================================================================
# Field Validation
# ============================================================================


class InputType(str, Enum):
    """Entry format expected by an editable field."""

    NUMERIC = "numeric"
    TIME = "time"
    DATE = "date"
    TEXT = "text"
    SELECT = "select"


class ValidationRule(BaseModel):
    """Constraints attached to an editable field.

    Extra keys are allowed and preserved: custom validators read their own
    parameters from here (``compareWith``, ``checkAlarm``...).
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    required: bool = False
    min: Optional[float] = None
    max: Optional[float] = None
    step: Optional[float] = None
    min_length: Optional[int] = Field(None, alias="minLength")
    max_length: Optional[int] = Field(None, alias="maxLength")
    pattern: Optional[str] = None
    options: Optional[List[str]] = None
    # Name of a registered custom (business logic) validator
    custom: Optional[str] = None

    def extra_value(self, key: str, default: Any = None) -> Any:
        """Return a free-form parameter stored alongside the standard rules."""

        extras = self.model_extra or {}
        return extras.get(key, default)


class FieldConfig(BaseModel):
    """Editable field definition: input type plus validation rules."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    input_type: Optional[InputType] = Field(None, alias="inputType")
    validation: ValidationRule = Field(default_factory=ValidationRule)

    @field_validator("input_type", mode="before")
    @classmethod
    def _coerce_input_type(cls, value: Any) -> Optional[InputType]:
        # Unknown input types fall back to text validation
        if value is None or isinstance(value, InputType):
            return value
        try:
            return InputType(str(value).lower())
        except ValueError:
            return InputType.TEXT

    @property
    def effective_input_type(self) -> InputType:
        return self.input_type or InputType.TEXT


class ValidationResult(BaseModel):
    """Outcome of a validation check. ``error`` is a display token, never a trace."""

    valid: bool
    error: Optional[str] = None

    @classmethod
    def ok(cls) -> "ValidationResult":
        return cls(valid=True, error=None)

    @classmethod
    def fail(cls, error: str) -> "ValidationResult":
        return cls(valid=False, error=error)


# ============================================================================
# Remote Values
# ============================================================================


class RemoteValue(BaseModel):
    """A value read from the remote store together with its quality flag."""

    val: Any = None
    # 0 means good; any other code is a device/connection quality problem
    quality: int = 0

    @property
    def is_good(self) -> bool:
        return self.quality == 0
