"""
Format selection and schema descriptions shared by the serializers.

Schemas are loaded lazily, once per process, and treated as read-only.
Fields that one binary format can represent but another cannot yet are
listed in ``PENDING_FIELDS``; encoding a document that populates such a
field to the lacking format fails instead of dropping data.
"""

import json
import logging
import math
from datetime import datetime, timedelta, timezone
from enum import Enum
from functools import lru_cache
from typing import Any, Dict, List, Optional, Tuple

import fastavro

from agsi.core.errors import MalformedInput, SchemaMismatch
from agsi.utils.constants import DOCUMENT_AVRO_SCHEMA_PATH, DOCUMENT_JSON_SCHEMA_PATH

logger = logging.getLogger(__name__)


class Format(Enum):
    """Serialization formats."""
    TEXT = "json"
    COMPACT_BINARY = "avro"
    WIRE_BINARY = "protobuf"

    @classmethod
    def parse(cls, value: str) -> 'Format':
        """
        Look up a format by value or name (case-insensitive).

        Raises:
            ValueError: If no format matches
        """
        if isinstance(value, cls):
            return value
        key = str(value).strip()
        for fmt in cls:
            if key.lower() == fmt.value or key.upper() == fmt.name:
                return fmt
        raise ValueError(
            f"Unknown format {value!r}; expected one of "
            f"{', '.join(f.value for f in cls)}"
        )


# Populated optional fields each format cannot represent yet
PENDING_FIELDS: Dict[Format, Tuple[str, ...]] = {
    Format.TEXT: (),
    Format.COMPACT_BINARY: (
        "models[].components[].geometry.crs",
    ),
    Format.WIRE_BINARY: (
        "comments",
        "materials[].geology",
        "models[].materials[].geology",
    ),
}


def pending_fields_in(document, fmt: Format) -> List[str]:
    """
    List the populated fields of a document that a format cannot encode.

    Args:
        document: Document to inspect
        fmt: Target format

    Returns:
        Concrete field paths, empty when the document is fully representable
    """
    paths: List[str] = []
    if fmt is Format.COMPACT_BINARY:
        for i, model in enumerate(document.models):
            for j, component in enumerate(model.components):
                geometry = component.geometry
                if geometry is not None and getattr(geometry, 'crs', None) is not None:
                    paths.append(f"models[{i}].components[{j}].geometry.crs")
    elif fmt is Format.WIRE_BINARY:
        if document.comments is not None:
            paths.append("comments")
        for i, material in enumerate(document.materials):
            if material.geology is not None:
                paths.append(f"materials[{i}].geology")
        for i, model in enumerate(document.models):
            for j, material in enumerate(model.materials):
                if material.geology is not None:
                    paths.append(f"models[{i}].materials[{j}].geology")
    return paths


@lru_cache(maxsize=None)
def load_json_schema() -> Dict[str, Any]:
    """Load the JSON Schema of the canonical text format."""
    with open(DOCUMENT_JSON_SCHEMA_PATH, 'r', encoding='utf-8') as f:
        schema = json.load(f)
    logger.debug(f"Loaded JSON schema from {DOCUMENT_JSON_SCHEMA_PATH}")
    return schema


@lru_cache(maxsize=None)
def load_avro_schema_definition() -> Dict[str, Any]:
    """Load the raw Avro schema of the compact binary format."""
    with open(DOCUMENT_AVRO_SCHEMA_PATH, 'r', encoding='utf-8') as f:
        return json.load(f)


@lru_cache(maxsize=None)
def load_avro_schema():
    """Load and parse the Avro schema of the compact binary format."""
    parsed = fastavro.parse_schema(load_avro_schema_definition())
    logger.debug(f"Parsed Avro schema from {DOCUMENT_AVRO_SCHEMA_PATH}")
    return parsed


# Timestamps travel as integer microseconds since the Unix epoch (UTC)

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

LONG_MIN = -(2 ** 63)
LONG_MAX = 2 ** 63 - 1


def to_epoch_micros(value: datetime) -> int:
    """Exact conversion of an aware datetime to epoch microseconds."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    delta = value - EPOCH
    return (delta.days * 86400 + delta.seconds) * 1000000 + delta.microseconds


def from_epoch_micros(micros: int) -> datetime:
    """Exact conversion of epoch microseconds to a UTC datetime."""
    return EPOCH + timedelta(microseconds=micros)


# Field domain checks shared by the binary encoders

def is_utf8_text(value: str) -> bool:
    """Check that a string can be written as UTF-8 (no lone surrogates)."""
    try:
        value.encode('utf-8')
    except UnicodeEncodeError:
        return False
    return True


def require_string(value: Any, path: str, optional: bool = False) -> Optional[str]:
    """Return a string field value, or raise SchemaMismatch naming the path."""
    if value is None and optional:
        return None
    if not isinstance(value, str):
        raise SchemaMismatch(f"Expected a string, got {value!r}", path=path)
    if not is_utf8_text(value):
        raise SchemaMismatch(f"String {value!r} is not encodable as UTF-8", path=path)
    return value


def require_number(value: Any, path: str, optional: bool = False) -> Optional[float]:
    """Return a double field value, or raise SchemaMismatch naming the path."""
    if value is None and optional:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise SchemaMismatch(f"Expected a number, got {value!r}", path=path)
    return float(value)


def require_integer(value: Any, path: str, low: int, high: int) -> int:
    """Return an integer field value within [low, high], or raise SchemaMismatch."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise SchemaMismatch(f"Expected an integer, got {value!r}", path=path)
    if not low <= value <= high:
        raise SchemaMismatch(f"Integer {value} is outside [{low}, {high}]", path=path)
    return value


def require_timestamp(value: Any, path: str) -> int:
    """Convert a timestamp field to epoch microseconds, or raise SchemaMismatch."""
    if not isinstance(value, datetime):
        raise SchemaMismatch(f"Expected a timestamp, got {value!r}", path=path)
    return require_integer(to_epoch_micros(value), path, LONG_MIN, LONG_MAX)


# Component attributes hold free-form JSON values; the binary formats carry
# each value as compact JSON text

def require_json_value(value: Any, path: str) -> Any:
    """
    Check that a value is representable as JSON.

    Accepted are None, booleans, finite numbers, UTF-8 strings, and lists
    or string-keyed dictionaries of those.

    Raises:
        SchemaMismatch: Naming the path of the first offending value
    """
    if value is None or isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if not math.isfinite(value):
            raise SchemaMismatch(f"Expected a finite number, got {value!r}", path=path)
        return value
    if isinstance(value, str):
        return require_string(value, path)
    if isinstance(value, (list, tuple)):
        for i, item in enumerate(value):
            require_json_value(item, f"{path}[{i}]")
        return value
    if isinstance(value, dict):
        for key, item in value.items():
            if not isinstance(key, str):
                raise SchemaMismatch(f"Object keys must be strings, got {key!r}", path=path)
            require_string(key, path)
            require_json_value(item, f"{path}.{key}")
        return value
    raise SchemaMismatch(f"Value of type {type(value).__name__} is not representable as JSON",
                         path=path)


def require_attributes(attributes: Any, path: str) -> Dict[str, Any]:
    """Check a component's attribute mapping, or raise SchemaMismatch naming the path."""
    if not isinstance(attributes, dict):
        raise SchemaMismatch(f"Attributes must be a mapping, got {attributes!r}", path=path)
    for key, value in attributes.items():
        if not isinstance(key, str) or not key:
            raise SchemaMismatch(f"Attribute keys must be non-empty strings, got {key!r}",
                                 path=path)
        require_string(key, path)
        require_json_value(value, f"{path}.{key}")
    return attributes


def attribute_to_text(value: Any, path: str) -> str:
    """Compact, key-sorted JSON text of an attribute value."""
    require_json_value(value, path)
    return json.dumps(value, sort_keys=True, separators=(',', ':'), ensure_ascii=False,
                      allow_nan=False)


def attribute_from_text(text: str, path: str) -> Any:
    """Parse the JSON text of an attribute value, or raise MalformedInput naming the path."""
    try:
        return json.loads(text, parse_constant=_reject_constant)
    except ValueError as e:
        raise MalformedInput(f"Attribute value is not valid JSON: {e}", path=path) from e


def _reject_constant(name: str):
    raise ValueError(f"{name} is not a JSON number")
