"""Three-tier validation for scratchpad entries.

Tier 1 - format: does the text look like the field's input type?
Tier 2 - range/constraints: required, min/max/step, length, pattern, options.
Tier 3 - business rules: a named custom validator that may consult other
remote values through the accessor it is handed.

The engine holds no per-entry state. Each tier short-circuits the next.

Fail-open vs fail-closed:
- A custom validator name that is not registered passes (logged); a missing
  rule must never block the operator.
- The built-in business rules pass when their comparison data is unavailable;
  a transient lookup failure must not brick the terminal.
- A custom validator that raises fails closed with VALIDATION ERROR.
"""

from __future__ import annotations

import math
import re
from datetime import date, datetime
from typing import Any, Awaitable, Callable, Dict, Optional

from ..logging_utils import log_debug, log_error, log_warning
from ..messages import GENERIC_ERROR, VALIDATION_MESSAGES
from ..remote import RemoteValueStore
from ..schemas import FieldConfig, InputType, ValidationResult, ValidationRule


CustomValidator = Callable[[FieldConfig, Any, RemoteValueStore], Awaitable[ValidationResult]]

TIME_PATTERN = re.compile(r"^([0-1][0-9]|2[0-3]):([0-5][0-9])$")
DATE_PATTERN = re.compile(r"^(0[1-9]|[12][0-9]|3[01])\.(0[1-9]|1[0-2])\.\d{4}$")
CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")
# Something that starts like a number (JS parseFloat semantics: "12abc" is a number with junk)
_NUMBER_PREFIX = re.compile(r"^\s*[-+]?(\d|\.\d)")
_LOOSE_DECIMAL = re.compile(r"^-?\d+\.?\d*$")

DEFAULT_COOLING_SOURCE = "climate.0.cooling.target"
DEFAULT_ALARM_SOURCE = "alarm.0.armed"


def format_number(value: float) -> str:
    """Render a bound for display: ``30.0`` -> ``30``, ``0.5`` -> ``0.5``."""

    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def matches_step(value: float, step: float, base: Optional[float] = None) -> bool:
    """True when ``value`` lies on the ``step`` grid anchored at ``base`` (default 0).

    Tolerance is 1% of the step or 0.001, whichever is smaller, so that typed
    decimals such as ``0.3`` on a ``0.1`` grid are not rejected for binary
    floating point noise.
    """

    if not step:
        return True
    remainder = math.fmod(value - (base or 0), step)
    tolerance = min(step * 0.01, 0.001)
    return abs(remainder) <= tolerance or abs(abs(remainder) - step) <= tolerance


class ValidationEngine:
    """Format, range and business-rule validation with pluggable custom rules."""

    def __init__(self, *, now: Callable[[], datetime] = datetime.now) -> None:
        self._now = now
        self.custom_validators: Dict[str, CustomValidator] = {}
        self.error_messages: Dict[str, str] = dict(VALIDATION_MESSAGES)
        self._register_built_in_validators()
        log_debug("Validation", "ValidationEngine initialized")

    # ------------------------------------------------------------------
    # Registry
    # ------------------------------------------------------------------

    def _register_built_in_validators(self) -> None:
        self.register_custom_validator("validateHeatingTarget", self.validate_heating_target)
        self.register_custom_validator("validateScheduleTime", self.validate_schedule_time)
        self.register_custom_validator("validateDoorUnlock", self.validate_door_unlock)

    def register_custom_validator(self, name: str, validator: CustomValidator) -> None:
        self.custom_validators[name] = validator
        log_debug("Validation", f"Custom validator registered: {name}")

    def get_error_message(self, code: str, **context: Any) -> str:
        """Return the display token for ``code`` with min/max/step appended."""

        message = self.error_messages.get(code, GENERIC_ERROR)
        for key in ("min", "max", "step"):
            if context.get(key) is not None:
                message = f"{message} {format_number(context[key])}"
        return message

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    async def validate(
        self,
        value: str,
        field: FieldConfig,
        accessor: RemoteValueStore,
    ) -> ValidationResult:
        """Run all tiers against ``value``; the first failing tier wins."""

        input_type = field.effective_input_type
        format_result = self.validate_format(value, input_type)
        if not format_result.valid:
            return format_result

        typed_value: Any = value
        if input_type is InputType.NUMERIC and value != "":
            typed_value = float(value)

        rules = field.validation
        range_result = self.validate_range(typed_value, rules)
        if not range_result.valid:
            return range_result

        if rules.custom:
            return await self.validate_business_logic(field, typed_value, accessor)

        return ValidationResult.ok()

    def validate_format(self, value: str, input_type: InputType | str | None) -> ValidationResult:
        try:
            kind = InputType(input_type) if input_type else InputType.TEXT
        except ValueError:
            kind = InputType.TEXT

        if kind is InputType.NUMERIC:
            return self.validate_numeric_format(value)
        if kind is InputType.TIME:
            return self.validate_time_format(value)
        if kind is InputType.DATE:
            return self.validate_date_format(value)
        if kind is InputType.SELECT:
            # Options are checked in the range tier
            return ValidationResult.ok()
        return self.validate_text_format(value)

    def validate_numeric_format(self, value: str) -> ValidationResult:
        if value == "":
            return ValidationResult.ok()
        if not _NUMBER_PREFIX.match(value):
            return ValidationResult.fail(self.error_messages["invalidNumber"])
        # Rejects multiple decimal points, exponents, signs other than a leading '-'
        if not _LOOSE_DECIMAL.match(value):
            return ValidationResult.fail(self.error_messages["invalidFormat"])
        return ValidationResult.ok()

    def validate_time_format(self, value: str) -> ValidationResult:
        if value == "":
            return ValidationResult.ok()
        if not TIME_PATTERN.match(value):
            return ValidationResult.fail(self.error_messages["invalidTime"])
        return ValidationResult.ok()

    def validate_date_format(self, value: str) -> ValidationResult:
        if value == "":
            return ValidationResult.ok()
        if not DATE_PATTERN.match(value):
            return ValidationResult.fail(self.error_messages["invalidDate"])

        day, month, year = (int(part) for part in value.split("."))
        try:
            date(year, month, day)
        except ValueError:
            # 31.02.2026, 29.02.2025, year 0000
            return ValidationResult.fail(self.error_messages["invalidCalendarDate"])
        return ValidationResult.ok()

    def validate_text_format(self, value: str) -> ValidationResult:
        if CONTROL_CHARS.search(value):
            return ValidationResult.fail(self.error_messages["invalidChars"])
        return ValidationResult.ok()

    def validate_range(self, value: Any, rules: ValidationRule) -> ValidationResult:
        empty = value is None or value == ""
        if rules.required and empty:
            return ValidationResult.fail(self.error_messages["required"])
        if empty:
            return ValidationResult.ok()

        if isinstance(value, (int, float)) and not isinstance(value, bool):
            if rules.min is not None and value < rules.min:
                return ValidationResult.fail(self.get_error_message("belowMin", min=rules.min))
            if rules.max is not None and value > rules.max:
                return ValidationResult.fail(self.get_error_message("aboveMax", max=rules.max))
            if rules.step is not None and not matches_step(value, rules.step, rules.min):
                return ValidationResult.fail(self.get_error_message("invalidStep", step=rules.step))

        if isinstance(value, str):
            if rules.min_length and len(value) < rules.min_length:
                return ValidationResult.fail(
                    f"{self.error_messages['tooShort']} (MIN {rules.min_length})"
                )
            if rules.max_length and len(value) > rules.max_length:
                return ValidationResult.fail(
                    f"{self.error_messages['tooLong']} (MAX {rules.max_length})"
                )
            if rules.pattern and not pattern_matches(rules.pattern, value):
                return ValidationResult.fail(self.error_messages["invalidFormat"])
            if rules.options is not None and value not in rules.options:
                return ValidationResult.fail(self.error_messages["invalidOption"])

        return ValidationResult.ok()

    async def validate_business_logic(
        self,
        field: FieldConfig,
        value: Any,
        accessor: RemoteValueStore,
    ) -> ValidationResult:
        name = field.validation.custom
        if not name:
            return ValidationResult.ok()

        validator = self.custom_validators.get(name)
        if validator is None:
            log_warning("Validation", f"Custom validator not found: {name}")
            return ValidationResult.ok()

        try:
            return await validator(field, value, accessor)
        except Exception as exc:
            log_error("Validation", f"Custom validator {name} failed: {exc}")
            return ValidationResult.fail(self.error_messages["validationError"])

    # ------------------------------------------------------------------
    # Built-in business rules
    # ------------------------------------------------------------------

    async def validate_heating_target(
        self, field: FieldConfig, value: Any, accessor: RemoteValueStore
    ) -> ValidationResult:
        """Heating target must stay below the cooling target (cross-reference)."""

        source = field.validation.extra_value("compareWith") or DEFAULT_COOLING_SOURCE
        try:
            cooling_state = await accessor.get_value(source)
            if cooling_state is None or cooling_state.val is None:
                return ValidationResult.ok()
            cooling_target = float(cooling_state.val)
            heating_target = float(value)
        except Exception as exc:
            log_error("Validation", f"validateHeatingTarget failed: {exc}")
            return ValidationResult.ok()

        if heating_target >= cooling_target:
            return ValidationResult.fail(f"MAX COOLING {format_number(cooling_target)}")
        return ValidationResult.ok()

    async def validate_schedule_time(
        self, field: FieldConfig, value: Any, accessor: RemoteValueStore
    ) -> ValidationResult:
        """Scheduled time (HH:MM, today) must not be in the past (temporal)."""

        try:
            hour_text, minute_text = str(value).split(":")
            hour, minute = int(hour_text), int(minute_text)
        except ValueError:
            return ValidationResult.fail("INVALID TIME")

        try:
            now = self._now()
            scheduled = now.replace(hour=hour, minute=minute, second=0, microsecond=0)
        except Exception as exc:
            log_error("Validation", f"validateScheduleTime failed: {exc}")
            return ValidationResult.ok()

        if scheduled < now:
            return ValidationResult.fail("TIME IN PAST")
        return ValidationResult.ok()

    async def validate_door_unlock(
        self, field: FieldConfig, value: Any, accessor: RemoteValueStore
    ) -> ValidationResult:
        """Unlocking requires a disarmed alarm (guarded precondition)."""

        if not value:
            return ValidationResult.ok()

        source = field.validation.extra_value("checkAlarm") or DEFAULT_ALARM_SOURCE
        try:
            alarm_state = await accessor.get_value(source)
        except Exception as exc:
            log_error("Validation", f"validateDoorUnlock failed: {exc}")
            return ValidationResult.ok()

        if alarm_state is None:
            log_warning("Validation", f"Alarm state not found: {source}")
            return ValidationResult.ok()
        if alarm_state.val is True:
            return ValidationResult.fail("ALARM ARMED")
        return ValidationResult.ok()


def pattern_matches(pattern: str, value: str) -> bool:
    try:
        return re.search(pattern, value) is not None
    except re.error as exc:
        # A broken pattern is an authoring mistake; do not block entry on it
        log_warning("Validation", f"Invalid pattern {pattern!r}: {exc}")
        return True
