"""
Domain models for the event simulator.

Defines stream schemas, the events produced by generators, and the validated
source configurations the two generator variants are built from. All models
are frozen so an event or configuration can be handed to other components
without defensive copies.
"""
from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional, Tuple

from pydantic import BaseModel, Field, SecretStr, field_validator


class AttributeType(str, Enum):
    """Declared type of a stream attribute."""

    STRING = "STRING"
    INT = "INT"
    LONG = "LONG"
    FLOAT = "FLOAT"
    DOUBLE = "DOUBLE"
    BOOL = "BOOL"

    @classmethod
    def parse(cls, value: "str | AttributeType") -> "AttributeType":
        if isinstance(value, AttributeType):
            return value
        normalized = str(value).strip().upper()
        if normalized == "BOOLEAN":
            normalized = "BOOL"
        return cls(normalized)


class StreamAttribute(BaseModel):
    """
    One typed field of a stream's schema.
    """

    name: str = Field(..., min_length=1, description="Attribute name.")
    type: AttributeType = Field(..., description="Declared attribute type.")

    model_config = {"frozen": True}

    @field_validator("type", mode="before")
    @classmethod
    def _parse_type(cls, value: Any) -> AttributeType:
        return AttributeType.parse(value)


class Event(BaseModel):
    """
    A single simulated event: one value per stream attribute plus a timestamp in ms.
    """

    timestamp: int = Field(..., description="Event timestamp in epoch milliseconds.")
    data: Tuple[Any, ...] = Field(..., description="Attribute values in schema order.")

    model_config = {"frozen": True}


class RandomSimulationConfig(BaseModel):
    """
    Validated configuration of a random data simulation.
    """

    stream_name: str
    execution_context_name: str
    timestamp_interval: int = Field(1000, gt=0)
    attribute_configs: Tuple[Dict[str, Any], ...] = ()

    model_config = {"frozen": True}


class DatabaseSimulationConfig(BaseModel):
    """
    Validated configuration of a database replay simulation.

    Exactly one of `timestamp_attribute` and `timestamp_interval` is the time source.
    """

    stream_name: str
    execution_context_name: str
    driver: str
    connection_location: str
    username: str
    password: SecretStr
    table_name: str
    column_names: Tuple[str, ...]
    timestamp_attribute: Optional[str] = None
    timestamp_interval: Optional[int] = Field(None, gt=0)

    model_config = {"frozen": True}


__all__ = [
    "AttributeType",
    "StreamAttribute",
    "Event",
    "RandomSimulationConfig",
    "DatabaseSimulationConfig",
]
