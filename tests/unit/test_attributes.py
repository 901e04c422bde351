from __future__ import annotations

import random

import pytest

from event_simulator.domain.models import AttributeType, StreamAttribute
from event_simulator.exceptions import InvalidConfigError
from event_simulator.generators.attributes import (
    CustomDataBasedSynthesizer,
    PrimitiveBasedSynthesizer,
    PropertyBasedSynthesizer,
    available_generation_types,
    build_synthesizer,
    conforms_to,
)

SAMPLES = 200


def _attr(attr_type: str) -> StreamAttribute:
    return StreamAttribute(name="attr", type=attr_type)


def test_available_generation_types() -> None:
    assert available_generation_types() == ["CUSTOM_DATA_BASED", "PRIMITIVE_BASED", "PROPERTY_BASED"]


def test_primitive_string_has_requested_length() -> None:
    synth = build_synthesizer({"type": "PRIMITIVE_BASED", "length": 8}, _attr("STRING"), rng=random.Random(1))

    values = {synth.generate() for _ in range(SAMPLES)}

    assert all(len(v) == 8 and v.isalnum() for v in values)
    assert len(values) > 1


@pytest.mark.parametrize("attr_type", ["INT", "LONG"])
def test_primitive_integers_within_bounds(attr_type: str) -> None:
    synth = build_synthesizer({"type": "PRIMITIVE_BASED", "min": -3, "max": 3}, _attr(attr_type))

    values = [synth.generate() for _ in range(SAMPLES)]

    assert all(isinstance(v, int) and -3 <= v <= 3 for v in values)


@pytest.mark.parametrize("attr_type", ["FLOAT", "DOUBLE"])
def test_primitive_reals_respect_precision(attr_type: str) -> None:
    synth = build_synthesizer(
        {"type": "PRIMITIVE_BASED", "min": "0.5", "max": "2.5", "precision": 1}, _attr(attr_type)
    )

    for _ in range(SAMPLES):
        value = synth.generate()
        assert isinstance(value, float)
        assert 0.5 <= value <= 2.5
        assert round(value, 1) == value


def test_primitive_bool() -> None:
    synth = build_synthesizer({"type": "PRIMITIVE_BASED"}, _attr("BOOL"), rng=random.Random(3))

    assert {synth.generate() for _ in range(SAMPLES)} == {True, False}


@pytest.mark.parametrize(
    "attr_type, rule, reason",
    [
        ("STRING", {"length": 0}, "positive"),
        ("INT", {"min": 1}, "'max'"),
        ("INT", {"min": 5, "max": 1}, "greater than"),
        ("INT", {"min": 0, "max": 2**40}, "INT range"),
        ("LONG", {"min": 0.5, "max": 2}, "integer"),
        ("DOUBLE", {"min": 1, "max": 2}, "'precision'"),
        ("DOUBLE", {"min": 1, "max": 2, "precision": -1}, "negative"),
        ("FLOAT", {"min": "low", "max": 2, "precision": 1}, "low"),
    ],
)
def test_primitive_invalid_rules(attr_type: str, rule: dict, reason: str) -> None:
    with pytest.raises(InvalidConfigError, match=reason):
        PrimitiveBasedSynthesizer(_attr(attr_type), rule)


def test_custom_data_parses_values_for_type() -> None:
    synth = build_synthesizer({"type": "custom_data_based", "list": "1, 2,3"}, _attr("INT"))

    assert synth.values == [1, 2, 3]
    assert {synth.generate() for _ in range(SAMPLES)} <= {1, 2, 3}


def test_custom_data_accepts_arrays() -> None:
    synth = CustomDataBasedSynthesizer(_attr("BOOL"), {"list": ["true", False]})

    assert synth.values == [True, False]


@pytest.mark.parametrize(
    "attr_type, values",
    [
        ("INT", "1,two"),
        ("BOOL", "true,maybe"),
        ("STRING", "a,,b"),
        ("DOUBLE", None),
    ],
)
def test_custom_data_invalid_lists(attr_type: str, values) -> None:
    with pytest.raises(InvalidConfigError):
        CustomDataBasedSynthesizer(_attr(attr_type), {"list": values})


def test_property_based_uses_faker_provider() -> None:
    synth = build_synthesizer({"type": "PROPERTY_BASED", "property": "city"}, _attr("STRING"), rng=random.Random(5))

    values = [synth.generate() for _ in range(10)]

    assert all(isinstance(v, str) and v for v in values)


def test_property_based_seeded_is_reproducible() -> None:
    first = PropertyBasedSynthesizer(_attr("STRING"), {"property": "name"}, rng=random.Random(11))
    second = PropertyBasedSynthesizer(_attr("STRING"), {"property": "name"}, rng=random.Random(11))

    assert [first.generate() for _ in range(5)] == [second.generate() for _ in range(5)]


def test_property_based_numeric_provider() -> None:
    synth = PropertyBasedSynthesizer(_attr("LONG"), {"property": "random_int"})

    assert isinstance(synth.generate(), int)


@pytest.mark.parametrize(
    "attr_type, prop",
    [
        ("STRING", "no_such_provider"),
        ("STRING", "_private"),
        ("STRING", "seed"),
        ("STRING", "seed_instance"),
        ("STRING", "add_provider"),
        ("STRING", "format"),
        ("INT", "city"),
        ("STRING", None),
    ],
)
def test_property_based_invalid(attr_type: str, prop) -> None:
    with pytest.raises(InvalidConfigError):
        PropertyBasedSynthesizer(_attr(attr_type), {"property": prop})


@pytest.mark.parametrize("rule", [{"type": "REGEX_BASED", "pattern": "[a-z]+"}, {}, "PRIMITIVE_BASED"])
def test_unsupported_rules(rule) -> None:
    with pytest.raises(InvalidConfigError):
        build_synthesizer(rule, _attr("STRING"))


@pytest.mark.parametrize(
    "attr_type, value, expected",
    [
        (AttributeType.STRING, "x", True),
        (AttributeType.STRING, 1, False),
        (AttributeType.INT, 2**31, False),
        (AttributeType.LONG, 2**31, True),
        (AttributeType.LONG, True, False),
        (AttributeType.DOUBLE, 1.5, True),
        (AttributeType.DOUBLE, 1, False),
        (AttributeType.BOOL, False, True),
        (AttributeType.BOOL, 0, False),
        (AttributeType.FLOAT, None, True),
    ],
)
def test_conforms_to(attr_type: AttributeType, value, expected: bool) -> None:
    assert conforms_to(attr_type, value) is expected


def test_attribute_type_parsing_is_lenient() -> None:
    assert StreamAttribute(name="flag", type="boolean").type is AttributeType.BOOL
    assert StreamAttribute(name="n", type="long").type is AttributeType.LONG
