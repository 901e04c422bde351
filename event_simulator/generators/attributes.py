"""
Attribute value synthesizers for random data simulation.

One synthesizer is built per stream attribute from its generation rule. The
rule's `type` tag selects a factory from the registry below:

- PRIMITIVE_BASED: uniform values bounded by `min`/`max` (INT, LONG, FLOAT,
  DOUBLE, with `precision` for the real types), alphanumeric strings of
  `length` (STRING), or coin flips (BOOL).
- CUSTOM_DATA_BASED: a uniform choice from `list`, a comma separated string
  or an array of values of the attribute's type.
- PROPERTY_BASED: realistic values from a Faker provider named by `property`
  (e.g. "name", "city", "email", "pyfloat").
"""

from __future__ import annotations

import random
import string
from decimal import Decimal
from typing import Any, Callable, Dict, List, Mapping, Optional

from faker import Faker

from event_simulator.domain.models import AttributeType, StreamAttribute
from event_simulator.exceptions import InvalidConfigError, InvalidEventError

PRIMITIVE_BASED = "PRIMITIVE_BASED"
CUSTOM_DATA_BASED = "CUSTOM_DATA_BASED"
PROPERTY_BASED = "PROPERTY_BASED"

_INT_BOUNDS = (-(2**31), 2**31 - 1)
_LONG_BOUNDS = (-(2**63), 2**63 - 1)
_STRING_ALPHABET = string.ascii_letters + string.digits


def conforms_to(attribute_type: AttributeType, value: Any) -> bool:
    """True if `value` is a valid value (or null) for an attribute of `attribute_type`."""
    if value is None:
        return True
    if attribute_type is AttributeType.STRING:
        return isinstance(value, str)
    if attribute_type is AttributeType.BOOL:
        return isinstance(value, bool)
    if isinstance(value, bool):
        return False
    if attribute_type is AttributeType.INT:
        return isinstance(value, int) and _INT_BOUNDS[0] <= value <= _INT_BOUNDS[1]
    if attribute_type is AttributeType.LONG:
        return isinstance(value, int) and _LONG_BOUNDS[0] <= value <= _LONG_BOUNDS[1]
    return isinstance(value, float)


class AttributeSynthesizer:
    """Base class: produces one value of the target attribute's type per call."""

    generation_type: str = ""

    def __init__(self, attribute: StreamAttribute, rule: Mapping[str, Any]) -> None:
        self.attribute = attribute
        self.rule = dict(rule)

    def generate(self) -> Any:  # pragma: no cover - interface only
        raise NotImplementedError

    def describe(self) -> str:
        return f"{self.attribute.name}:{self.attribute.type.value}:{self.rule}"

    def _invalid(self, reason: str) -> InvalidConfigError:
        return InvalidConfigError(
            f"Invalid {self.generation_type} configuration for attribute '{self.attribute.name}' "
            f"of type {self.attribute.type.value}: {reason}. Attribute configuration : {self.rule}",
            config=str(self.rule),
        )


def _number(rule: Mapping[str, Any], key: str, integral: bool) -> Any:
    raw = rule.get(key)
    if raw is None or isinstance(raw, bool):
        raise KeyError(key)
    if isinstance(raw, str):
        raw = raw.strip()
        return int(raw) if integral else float(raw)
    if integral:
        if isinstance(raw, float) and not raw.is_integer():
            raise ValueError(f"'{key}' must be an integer")
        return int(raw)
    return float(raw)


class PrimitiveBasedSynthesizer(AttributeSynthesizer):
    generation_type = PRIMITIVE_BASED

    def __init__(
        self,
        attribute: StreamAttribute,
        rule: Mapping[str, Any],
        rng: Optional[random.Random] = None,
    ) -> None:
        super().__init__(attribute, rule)
        self._rng = rng or random.Random()
        attr_type = attribute.type
        try:
            if attr_type is AttributeType.STRING:
                self.length = _number(rule, "length", integral=True)
                if self.length <= 0:
                    raise ValueError("'length' must be a positive value")
            elif attr_type in (AttributeType.INT, AttributeType.LONG):
                self.min = _number(rule, "min", integral=True)
                self.max = _number(rule, "max", integral=True)
                low, high = _INT_BOUNDS if attr_type is AttributeType.INT else _LONG_BOUNDS
                if not (low <= self.min <= high and low <= self.max <= high):
                    raise ValueError(f"bounds must lie within {attr_type.value} range")
            elif attr_type in (AttributeType.FLOAT, AttributeType.DOUBLE):
                self.min = _number(rule, "min", integral=False)
                self.max = _number(rule, "max", integral=False)
                self.precision = _number(rule, "precision", integral=True)
                if self.precision < 0:
                    raise ValueError("'precision' must not be negative")
        except KeyError as exc:
            raise self._invalid(f"property {exc} is required") from None
        except ValueError as exc:
            raise self._invalid(str(exc)) from exc
        if hasattr(self, "min") and self.min > self.max:
            raise self._invalid("'min' must not be greater than 'max'")

    def generate(self) -> Any:
        attr_type = self.attribute.type
        if attr_type is AttributeType.STRING:
            return "".join(self._rng.choices(_STRING_ALPHABET, k=self.length))
        if attr_type in (AttributeType.INT, AttributeType.LONG):
            return self._rng.randint(self.min, self.max)
        if attr_type in (AttributeType.FLOAT, AttributeType.DOUBLE):
            return round(self._rng.uniform(self.min, self.max), self.precision)
        return self._rng.random() < 0.5


def _parse_custom_value(attr_type: AttributeType, raw: Any) -> Any:
    if attr_type is AttributeType.STRING:
        return str(raw)
    if attr_type is AttributeType.BOOL:
        if isinstance(raw, bool):
            return raw
        text = str(raw).strip().lower()
        if text not in ("true", "false"):
            raise ValueError(f"'{raw}' is not a boolean")
        return text == "true"
    if isinstance(raw, bool):
        raise ValueError(f"'{raw}' is not numeric")
    if attr_type in (AttributeType.INT, AttributeType.LONG):
        value = int(str(raw).strip())
        low, high = _INT_BOUNDS if attr_type is AttributeType.INT else _LONG_BOUNDS
        if not low <= value <= high:
            raise ValueError(f"{value} is out of {attr_type.value} range")
        return value
    return float(str(raw).strip())


class CustomDataBasedSynthesizer(AttributeSynthesizer):
    generation_type = CUSTOM_DATA_BASED

    def __init__(
        self,
        attribute: StreamAttribute,
        rule: Mapping[str, Any],
        rng: Optional[random.Random] = None,
    ) -> None:
        super().__init__(attribute, rule)
        self._rng = rng or random.Random()
        raw = rule.get("list")
        if isinstance(raw, str):
            entries: List[Any] = [part.strip() for part in raw.split(",")]
        elif isinstance(raw, (list, tuple)):
            entries = list(raw)
        else:
            raise self._invalid("property 'list' is required")
        if not entries or any(isinstance(e, str) and not e for e in entries):
            raise self._invalid("'list' must not contain empty values")
        try:
            self.values = [_parse_custom_value(attribute.type, entry) for entry in entries]
        except ValueError as exc:
            raise self._invalid(str(exc)) from exc

    def generate(self) -> Any:
        return self._rng.choice(self.values)


class PropertyBasedSynthesizer(AttributeSynthesizer):
    generation_type = PROPERTY_BASED

    def __init__(
        self,
        attribute: StreamAttribute,
        rule: Mapping[str, Any],
        rng: Optional[random.Random] = None,
    ) -> None:
        super().__init__(attribute, rule)
        prop = rule.get("property")
        if not isinstance(prop, str) or not prop.strip() or prop.startswith("_"):
            raise self._invalid("property 'property' is required")
        self.property = prop.strip()
        self._faker = Faker()
        if rng is not None:
            self._faker.seed_instance(rng.getrandbits(32))
        # Only provider methods qualify; Faker's own seeding and formatting API does not.
        if not any(hasattr(provider, self.property) for provider in self._faker.get_providers()):
            raise self._invalid(f"unknown property '{self.property}'")
        try:
            self._provider: Callable[[], Any] = getattr(self._faker, self.property)
        except (AttributeError, TypeError):
            raise self._invalid(f"unknown property '{self.property}'") from None
        if not callable(self._provider):
            raise self._invalid(f"unknown property '{self.property}'")
        try:
            sample = self._convert(self._provider())
        except TypeError as exc:
            raise self._invalid(f"property '{self.property}' needs arguments ({exc})") from exc
        if not conforms_to(attribute.type, sample):
            raise self._invalid(
                f"property '{self.property}' produces {type(sample).__name__} values"
            )

    def _convert(self, value: Any) -> Any:
        if self.attribute.type is AttributeType.STRING and not isinstance(value, str):
            return str(value)
        if self.attribute.type in (AttributeType.FLOAT, AttributeType.DOUBLE) and isinstance(
            value, (int, Decimal)
        ) and not isinstance(value, bool):
            return float(value)
        return value

    def generate(self) -> Any:
        value = self._convert(self._provider())
        if not conforms_to(self.attribute.type, value):
            raise InvalidEventError(
                f"Property '{self.property}' produced {value!r} for attribute "
                f"'{self.attribute.name}' of type {self.attribute.type.value}"
            )
        return value


SynthesizerFactory = Callable[..., AttributeSynthesizer]

_SYNTHESIZER_FACTORIES: Dict[str, SynthesizerFactory] = {
    PRIMITIVE_BASED: PrimitiveBasedSynthesizer,
    CUSTOM_DATA_BASED: CustomDataBasedSynthesizer,
    PROPERTY_BASED: PropertyBasedSynthesizer,
}


def available_generation_types() -> List[str]:
    """List supported attribute generation types."""
    return sorted(_SYNTHESIZER_FACTORIES)


def build_synthesizer(
    rule: Mapping[str, Any],
    attribute: StreamAttribute,
    rng: Optional[random.Random] = None,
) -> AttributeSynthesizer:
    """
    Build the synthesizer for one attribute from its generation rule.

    Raises
    ------
    InvalidConfigError
        If the rule is not a mapping, names an unsupported generation type, or
        is incomplete for the attribute's type.
    """
    if not isinstance(rule, Mapping):
        raise InvalidConfigError(
            f"Attribute configuration for attribute '{attribute.name}' must be an object, got {rule!r}",
            config=str(rule),
        )
    generation_type = str(rule.get("type") or "").strip().upper()
    factory = _SYNTHESIZER_FACTORIES.get(generation_type)
    if factory is None:
        raise InvalidConfigError(
            f"Unsupported random generation type '{rule.get('type')}' for attribute "
            f"'{attribute.name}'. Available: {', '.join(available_generation_types())}. "
            f"Attribute configuration : {dict(rule)}",
            config=str(dict(rule)),
        )
    return factory(attribute, rule, rng=rng)


__all__ = [
    "AttributeSynthesizer",
    "CustomDataBasedSynthesizer",
    "PrimitiveBasedSynthesizer",
    "PropertyBasedSynthesizer",
    "available_generation_types",
    "build_synthesizer",
    "conforms_to",
]
