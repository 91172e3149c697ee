"""
Configuration validation for stdp-detect.

Declarative validation rules attached to config dataclasses through the
ValidatedConfig mixin, plus a registry of predefined validators (positive,
finite, range, ...).

Rules accept scalars or sequences of scalars; a sequence is valid when every
element passes the rule, which lets per-neuron arrays (thresholds, learning
increments) share the rules of their scalar form.
"""

from __future__ import annotations

import math
from typing import Any, Callable, Dict, List, Sequence, Tuple

from stdp_detect.errors import ConfigValidationError

# =============================================================================
# DECLARATIVE VALIDATION FRAMEWORK
# =============================================================================


def _elements(value: Any) -> Sequence[Any]:
    if isinstance(value, (list, tuple)):
        return value
    return (value,)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


class ValidatorRegistry:
    """Registry of predefined validation rules.

    Usage:
        validator = ValidatorRegistry.get_validator('positive')
        validator(0.5, 'tau_m')  # Passes
        validator(-0.1, 'tau_m')  # Raises ConfigValidationError
    """

    _validators: Dict[str, Callable[[Any, str], None]] = {}

    @classmethod
    def register(cls, name: str, validator: Callable[[Any, str], None]) -> None:
        """Register a validation function."""
        cls._validators[name] = validator

    @classmethod
    def get_validator(cls, rule: str) -> Callable[[Any, str], None]:
        """Get validator by name or parse compound rule."""
        if rule.startswith("range("):
            return cls._parse_range_rule(rule)

        if rule in cls._validators:
            return cls._validators[rule]

        raise ValueError(f"Unknown validation rule: {rule}")

    @classmethod
    def _parse_range_rule(cls, rule: str) -> Callable[[Any, str], None]:
        """Parse range(min, max) rules."""
        inner = rule[6:-1]
        parts = [p.strip() for p in inner.split(",")]

        if len(parts) != 2:
            raise ValueError(f"Invalid range rule format: {rule}")

        min_val = float(parts[0])
        max_val = float(parts[1])

        def range_validator(value: Any, name: str) -> None:
            for v in _elements(value):
                if not _is_number(v):
                    raise ConfigValidationError(f"{name} must be numeric, got {type(v)}")
                if not (min_val <= v <= max_val):
                    raise ConfigValidationError(
                        f"{name}={v} outside valid range [{min_val}, {max_val}]"
                    )

        return range_validator


def _register_builtin_validators() -> None:
    """Register standard validation rules."""

    def numeric(value: Any, name: str) -> None:
        for v in _elements(value):
            if not _is_number(v):
                raise ConfigValidationError(f"{name} must be numeric, got {type(v)}")

    def positive(value: Any, name: str) -> None:
        """Value must be > 0."""
        numeric(value, name)
        for v in _elements(value):
            if v <= 0:
                raise ConfigValidationError(f"{name}={v} must be positive")

    def non_negative(value: Any, name: str) -> None:
        """Value must be >= 0."""
        numeric(value, name)
        for v in _elements(value):
            if v < 0:
                raise ConfigValidationError(f"{name}={v} must be non-negative")

    def finite(value: Any, name: str) -> None:
        """Value must be finite (not inf or nan)."""
        numeric(value, name)
        for v in _elements(value):
            if not math.isfinite(v):
                raise ConfigValidationError(f"{name}={v} must be finite (not inf/nan)")

    def positive_integer(value: Any, name: str) -> None:
        """Value must be a positive integer."""
        if not isinstance(value, int) or isinstance(value, bool):
            raise ConfigValidationError(f"{name} must be integer, got {type(value)}")
        if value <= 0:
            raise ConfigValidationError(f"{name}={value} must be positive integer")

    def probability(value: Any, name: str) -> None:
        """Value must be in [0, 1]."""
        numeric(value, name)
        for v in _elements(value):
            if not (0.0 <= v <= 1.0):
                raise ConfigValidationError(f"{name}={v} must be probability in [0, 1]")

    def non_empty_string(value: Any, name: str) -> None:
        """Value must be a non-empty string."""
        if not isinstance(value, str):
            raise ConfigValidationError(f"{name} must be string, got {type(value)}")
        if not value.strip():
            raise ConfigValidationError(f"{name} must be non-empty string")

    ValidatorRegistry.register("positive", positive)
    ValidatorRegistry.register("non_negative", non_negative)
    ValidatorRegistry.register("finite", finite)
    ValidatorRegistry.register("positive_integer", positive_integer)
    ValidatorRegistry.register("probability", probability)
    ValidatorRegistry.register("non_empty_string", non_empty_string)


_register_builtin_validators()


class ValidatedConfig:
    """Mixin for declarative config validation.

    Usage:
        @dataclass
        class MyConfig(BaseConfig, ValidatedConfig):
            tau_m: float = 0.01
            n_post: int = 10

            _validation_rules = {
                'tau_m': ('positive', 'finite'),
                'n_post': ('positive_integer',),
            }

    Subclasses add cross-field checks by overriding ``_cross_field_errors``.
    """

    _validation_rules: Dict[str, Tuple[str, ...]] = {}

    def _cross_field_errors(self) -> List[str]:
        """Return messages for invariants spanning several fields."""
        return []

    def validate_config(self) -> None:
        """Validate configuration based on _validation_rules.

        Raises:
            ConfigValidationError: If any validation fails, listing every
                violated rule.
        """
        errors: List[str] = []

        for field_name, rules in self._validation_rules.items():
            if not hasattr(self, field_name):
                errors.append(f"Validation rule for non-existent field: {field_name}")
                continue

            value = getattr(self, field_name)

            for rule in rules:
                try:
                    validator = ValidatorRegistry.get_validator(rule)
                    validator(value, field_name)
                except ConfigValidationError as e:
                    errors.append(str(e))

        # Cross-field checks assume the per-field rules hold.
        if not errors:
            errors.extend(self._cross_field_errors())

        if errors:
            error_msg = f"{self.__class__.__name__} validation failed:\n" + "\n".join(
                f"  • {e}" for e in errors
            )
            raise ConfigValidationError(error_msg)
