"""
Attribute classification and value coercion for CloudStack API records.

CloudStack hands back loosely typed JSON: quotas arrive as strings
("20", "Unlimited"), usage counters as numbers, flags as booleans.
This module decides whether an attribute is a tag or a field and turns
its raw value into something the accumulator can store.
"""

import math
import re
from enum import Enum
from typing import Any, Union

from cloudstack_collector.exceptions import (
    ParseError,
    UnexpectedValueType,
    UnsupportedTagType,
)
from cloudstack_collector.models import ResourceTotals

# --------------------------------------------------------------------
# Constants
# --------------------------------------------------------------------

TAG_ATTRIBUTES = frozenset({
    "haschild",
    "id",
    "name",
    "parentdomainid",
    "parentdomainname",
    "path",
    "state",
    "networkdomain",
})

UNLIMITED = "Unlimited"
UNLIMITED_VALUE = -1

CPU_AVAILABLE = "cpuavailable"
MEMORY_AVAILABLE = "memoryavailable"

# ASCII digits only: no whitespace, underscores, nan/inf or other scripts
INT_LITERAL = re.compile(r"[+-]?[0-9]+")
FLOAT_LITERAL = re.compile(r"[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")


class AttributeClass(str, Enum):
    TAG = "tag"
    FIELD = "field"


class JsonKind(str, Enum):
    """Variant of a json.loads() value."""
    STRING = "string"
    NUMBER = "number"
    BOOL = "bool"
    OBJECT = "object"
    ARRAY = "array"
    NULL = "null"


# --------------------------------------------------------------------
# Classification
# --------------------------------------------------------------------


def classify(name: str) -> AttributeClass:
    """Tag if the whole attribute name is in TAG_ATTRIBUTES, field otherwise."""
    if name in TAG_ATTRIBUTES:
        return AttributeClass.TAG
    return AttributeClass.FIELD


def kind_of(value: Any) -> JsonKind:
    # bool before number: bool is an int subclass
    if isinstance(value, bool):
        return JsonKind.BOOL
    if isinstance(value, str):
        return JsonKind.STRING
    if isinstance(value, (int, float)):
        return JsonKind.NUMBER
    if isinstance(value, dict):
        return JsonKind.OBJECT
    if isinstance(value, (list, tuple)):
        return JsonKind.ARRAY
    if value is None:
        return JsonKind.NULL
    raise TypeError(f"not a JSON value: {type(value).__name__}")


# --------------------------------------------------------------------
# Coercion
# --------------------------------------------------------------------


def coerce_tag(name: str, raw: Any) -> str:
    kind = kind_of(raw)
    if kind is JsonKind.STRING:
        return raw
    if kind is JsonKind.BOOL:
        return "true" if raw else "false"
    raise UnsupportedTagType(
        f"tag {name!r} has unsupported type {kind.value}", name, kind.value
    )


def _parse_int(name: str, raw: str) -> int:
    if not INT_LITERAL.fullmatch(raw):
        raise ParseError(f"error parsing integer from {raw!r} for {name!r}", name, raw)
    return int(raw)


def _parse_number(name: str, raw: str) -> Union[int, float]:
    if INT_LITERAL.fullmatch(raw):
        return int(raw)
    if FLOAT_LITERAL.fullmatch(raw):
        value = float(raw)
        if math.isfinite(value):
            return value
    raise ParseError(f"error parsing number from {raw!r} for {name!r}", name, raw)


def coerce_field(name: str, raw: Any, totals: ResourceTotals) -> Union[int, float]:
    """
    Convert a field value.

    - "Unlimited" -> -1 for any field
    - cpuavailable / memoryavailable strings -> int(raw) minus the
      matching total, truncated to an integer
    - other strings -> int, or float when not an integer literal
    - numbers pass through unchanged
    """
    kind = kind_of(raw)
    if kind is JsonKind.STRING:
        if raw == UNLIMITED:
            return UNLIMITED_VALUE
        if name == CPU_AVAILABLE:
            return _parse_int(name, raw) - math.floor(totals.cpu_total)
        if name == MEMORY_AVAILABLE:
            return _parse_int(name, raw) - math.floor(totals.memory_total)
        return _parse_number(name, raw)
    if kind is JsonKind.NUMBER:
        return raw
    # bool, object, array, null
    raise UnexpectedValueType(
        f"field {name!r} has unexpected type {kind.value}", name, kind.value
    )


def coerce(name: str, raw: Any, totals: ResourceTotals) -> Union[str, int, float]:
    """Classify `name` and coerce `raw` accordingly.

    Raises TypeMismatchError or ParseError; callers report the error and
    drop the attribute.
    """
    if classify(name) is AttributeClass.TAG:
        return coerce_tag(name, raw)
    return coerce_field(name, raw, totals)
