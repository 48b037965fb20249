"""
JSON import engine for AGSi documents.

This module reads the canonical text format back into a Document. Input
goes through three gates, each failing with ``MalformedInput``: JSON syntax
(reported with line, column and character offset), the JSON Schema of the
format (reported with the offending field path), and conversion into the
domain model (bad geometry, base64 or version strings, reported by path).
"""

import json
import logging
import math
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

import jsonschema

from agsi.core.errors import AgsiError, MalformedInput
from agsi.core.geometry import LineString, Point, Polygon, Surface
from agsi.core.geometry_codec import from_base64
from agsi.core.models import (
    Document, GroundModel, Material, ModelBoundary, ModelComponent, NumericValue, Project,
    PropertyValue, RangeValue, SchemaVersion, TextValue,
)
from agsi.core.schemas import load_json_schema, require_attributes
from agsi.utils.file_io import read_payload

logger = logging.getLogger(__name__)


def format_path(parts: Iterable[Union[str, int]]) -> str:
    """Render a sequence of keys and indexes as ``models[0].components[2].id``."""
    rendered = ""
    for part in parts:
        if isinstance(part, int):
            rendered += f"[{part}]"
        else:
            rendered += f".{part}" if rendered else str(part)
    return rendered


class _NonFiniteNumber(ValueError):
    def __init__(self, name: str):
        super().__init__(name)
        self.name = name


def _reject_constant(name: str):
    raise _NonFiniteNumber(name)


def _finite_float(literal: str) -> float:
    value = float(literal)
    if math.isinf(value):
        raise _NonFiniteNumber(literal)
    return value


def _constant_offset(text: str, name: str) -> int:
    """Character offset of the first ``name`` token outside string literals."""
    in_string = escaped = False
    for i, char in enumerate(text):
        if in_string:
            if escaped:
                escaped = False
            elif char == '\\':
                escaped = True
            elif char == '"':
                in_string = False
        elif char == '"':
            in_string = True
        elif text.startswith(name, i):
            return i
    return 0


class DocumentImporter:
    """Handles importing documents from the canonical JSON format."""

    def __init__(self, validate_schema: bool = True):
        """
        Initialize importer.

        Args:
            validate_schema: Whether to check input against the JSON schema
        """
        self.validate_schema = validate_schema
        self.schema = load_json_schema()

    def decode(self, text: Union[str, bytes]) -> Document:
        """
        Decode canonical JSON text into a document.

        Args:
            text: JSON text (bytes are decoded as UTF-8)

        Returns:
            Decoded document

        Raises:
            MalformedInput: On syntax, schema or conversion failure
        """
        data = self._load_json_text(text)
        if not isinstance(data, dict):
            raise MalformedInput("Expected a JSON object at the top level", offset=0)
        if self.validate_schema:
            self.validate_dict(data)
        document = self.document_from_dict(data)
        logger.debug(f"Decoded document {document.id} from JSON")
        return document

    def import_material(self, text: Union[str, bytes]) -> Material:
        """
        Decode a standalone material written by ``export_material``.

        Raises:
            MalformedInput: On syntax, schema or conversion failure
        """
        data = self._load_json_text(text)
        if self.validate_schema:
            self._validate_against(data, self._material_schema())
        return self._convert(lambda: self._material_from_dict(data, []), [])

    def import_document(self, input_path: Union[str, Path]) -> Document:
        """
        Import a document from a JSON file (``.gz`` files are decompressed).

        Args:
            input_path: Input JSON file path

        Returns:
            Decoded document
        """
        document = self.decode(read_payload(input_path))
        logger.info(f"Document {document.id} imported from {input_path}")
        return document

    def validate_text(self, text: Union[str, bytes]) -> Tuple[bool, List[str]]:
        """
        Validate JSON text against the schema without building a document.

        Args:
            text: JSON text

        Returns:
            Tuple of (is_valid, error_messages)
        """
        try:
            data = self._load_json_text(text)
        except MalformedInput as e:
            return False, [str(e)]

        validator = jsonschema.Draft7Validator(self.schema)
        messages = []
        for error in sorted(validator.iter_errors(data), key=lambda e: list(map(str, e.absolute_path))):
            location = format_path(error.absolute_path) or "<root>"
            messages.append(f"Schema validation error at {location}: {error.message}")
        return not messages, messages

    def validate_dict(self, data: Any):
        """
        Check a parsed JSON value against the document schema.

        Raises:
            MalformedInput: Naming the path of the most relevant violation
        """
        self._validate_against(data, self.schema)

    # Parsing gates

    @staticmethod
    def _load_json_text(text: Union[str, bytes]) -> Any:
        if isinstance(text, (bytes, bytearray, memoryview)):
            try:
                text = bytes(text).decode('utf-8')
            except UnicodeDecodeError as e:
                raise MalformedInput(f"Input is not valid UTF-8: {e.reason}", offset=e.start) from e
        if not isinstance(text, str):
            raise MalformedInput(f"Expected text input, got {type(text).__name__}")
        try:
            return json.loads(text, parse_constant=_reject_constant, parse_float=_finite_float)
        except _NonFiniteNumber as e:
            offset = _constant_offset(text, e.name)
            logger.error(f"Non-finite number {e.name} at offset {offset}")
            raise MalformedInput(f"Invalid JSON: {e.name} is not a finite number",
                                 offset=offset) from e
        except json.JSONDecodeError as e:
            logger.error(f"JSON syntax error at line {e.lineno}, column {e.colno}: {e.msg}")
            raise MalformedInput(
                f"Invalid JSON: {e.msg}",
                offset=e.pos,
                context={"line": e.lineno, "column": e.colno},
            ) from e

    def _material_schema(self) -> Dict[str, Any]:
        return {
            "$schema": self.schema.get("$schema"),
            "$ref": "#/definitions/material",
            "definitions": self.schema["definitions"],
        }

    @staticmethod
    def _validate_against(data: Any, schema: Dict[str, Any]):
        validator = jsonschema.Draft7Validator(schema)
        error = jsonschema.exceptions.best_match(validator.iter_errors(data))
        if error is not None:
            path = format_path(error.absolute_path) or "<root>"
            logger.error(f"Schema validation failed at {path}: {error.message}")
            raise MalformedInput(f"Schema validation error: {error.message}", path=path)

    @staticmethod
    def _convert(build, parts: List[Union[str, int]]):
        """Run a conversion step, turning domain errors into MalformedInput."""
        try:
            return build()
        except MalformedInput:
            raise
        except (AgsiError, ValueError, TypeError, KeyError, AttributeError) as e:
            message = e.message if isinstance(e, AgsiError) else str(e)
            if isinstance(e, KeyError):
                message = f"missing field {e}"
            raise MalformedInput(f"Cannot convert field: {message}",
                                 path=format_path(parts) or "<root>") from e

    @staticmethod
    def _object(data: Any, parts: List[Union[str, int]]) -> Dict[str, Any]:
        if not isinstance(data, dict):
            raise MalformedInput(f"Expected an object, got {type(data).__name__}",
                                 path=format_path(parts) or "<root>")
        return data

    @staticmethod
    def _items(data: Dict[str, Any], key: str, parts: List[Union[str, int]]) -> List[Any]:
        items = data.get(key, [])
        if not isinstance(items, list):
            raise MalformedInput(f"Expected a list, got {type(items).__name__}",
                                 path=format_path(parts + [key]))
        return items

    # Conversion into the domain model

    def document_from_dict(self, data: Dict[str, Any]) -> Document:
        """
        Build a document from its JSON dictionary.

        Raises:
            MalformedInput: If a field cannot be converted
        """
        data = self._object(data, [])
        version = self._convert(lambda: SchemaVersion.parse(data['schemaVersion']),
                                ['schemaVersion'])
        created = self._convert(lambda: self._timestamp(data['created']), ['created'])
        modified = None
        if 'modified' in data:
            modified = self._convert(lambda: self._timestamp(data['modified']), ['modified'])

        project = None
        if 'project' in data:
            project = self._convert(lambda: Project(**self._project_fields(data['project'])),
                                    ['project'])

        materials = [
            self._material_from_dict(m, ['materials', i])
            for i, m in enumerate(self._items(data, 'materials', []))
        ]
        models = [
            self._model_from_dict(m, ['models', i])
            for i, m in enumerate(self._items(data, 'models', []))
        ]
        document_id = self._convert(lambda: data['id'], ['id'])
        return self._convert(lambda: Document(
            id=document_id,
            name=data.get('name'),
            file_name=data.get('fileName'),
            author=data.get('author'),
            software=data.get('software'),
            schema_version=version,
            created=created,
            modified=modified,
            comments=data.get('comments'),
            project=project,
            materials=materials,
            models=models,
        ), [])

    @staticmethod
    def _timestamp(text: str) -> datetime:
        if text.endswith('Z'):
            text = text[:-1] + '+00:00'
        return datetime.fromisoformat(text)

    @staticmethod
    def _project_fields(data: Dict[str, Any]) -> Dict[str, Any]:
        return {
            'name': data['name'],
            'client': data.get('client'),
            'contractor': data.get('contractor'),
            'location': data.get('location'),
            'country': data.get('country'),
            'description': data.get('description'),
        }

    def _material_from_dict(self, data: Dict[str, Any], parts: List[Union[str, int]]) -> Material:
        data = self._object(data, parts)
        properties = [
            self._property_from_dict(p, parts + ['properties', i])
            for i, p in enumerate(self._items(data, 'properties', parts))
        ]
        return self._convert(lambda: Material(
            id=data['id'],
            name=data['name'],
            kind=data['kind'],
            description=data.get('description'),
            geology=data.get('geology'),
            properties=properties,
        ), parts)

    def _property_from_dict(self, data: Dict[str, Any],
                            parts: List[Union[str, int]]) -> PropertyValue:
        data = self._object(data, parts)
        value = self._convert(lambda: self._property_value(data['value']), parts + ['value'])
        return self._convert(lambda: PropertyValue(
            code=data['code'],
            value=value,
            unit=data.get('unit'),
            source=data.get('source'),
            test_method=data.get('testMethod'),
            case_id=data.get('caseId'),
        ), parts)

    @staticmethod
    def _property_value(raw: Any):
        if isinstance(raw, dict):
            return RangeValue(float(raw['min']), float(raw['max']))
        if isinstance(raw, str):
            return TextValue(raw)
        if isinstance(raw, (int, float)) and not isinstance(raw, bool):
            return NumericValue(float(raw))
        raise ValueError(f"Unsupported property value {raw!r}")

    def _model_from_dict(self, data: Dict[str, Any], parts: List[Union[str, int]]) -> GroundModel:
        data = self._object(data, parts)
        boundary = None
        if 'boundary' in data:
            b = self._object(data['boundary'], parts + ['boundary'])
            boundary = self._convert(lambda: ModelBoundary(
                min_x=b.get('minX'), max_x=b.get('maxX'),
                min_y=b.get('minY'), max_y=b.get('maxY'),
                top_elevation=b.get('topElevation'),
                bottom_elevation=b.get('bottomElevation'),
            ), parts + ['boundary'])
        materials = [
            self._material_from_dict(m, parts + ['materials', i])
            for i, m in enumerate(self._items(data, 'materials', parts))
        ]
        components = [
            self._component_from_dict(c, parts + ['components', i])
            for i, c in enumerate(self._items(data, 'components', parts))
        ]
        return self._convert(lambda: GroundModel(
            id=data['id'],
            name=data['name'],
            model_type=data['modelType'],
            dimension=data['dimension'],
            description=data.get('description'),
            crs=data.get('crs'),
            boundary=boundary,
            materials=materials,
            components=components,
        ), parts)

    def _component_from_dict(self, data: Dict[str, Any],
                             parts: List[Union[str, int]]) -> ModelComponent:
        data = self._object(data, parts)
        geometry = None
        if 'geometry' in data:
            geometry = self._convert(lambda: self._geometry_from_dict(data['geometry']),
                                     parts + ['geometry'])
        attribute_parts = parts + ['attributes']
        attributes = self._convert(
            lambda: require_attributes(data.get('attributes', {}), format_path(attribute_parts)),
            attribute_parts)
        return self._convert(lambda: ModelComponent(
            id=data['id'],
            name=data['name'],
            component_type=data['componentType'],
            material_ref=data['materialRef'],
            geometry=geometry,
            top_elevation=data.get('topElevation'),
            bottom_elevation=data.get('bottomElevation'),
            attributes=attributes,
        ), parts)

    @staticmethod
    def _geometry_from_dict(data: Dict[str, Any]):
        kind = data['type']
        crs = data.get('crs')
        if kind == 'Surface':
            bounds = None
            if 'bounds' in data:
                bounds = (data['bounds']['min'], data['bounds']['max'])
            return Surface(from_base64(data['mesh']), data['vertexCount'], data['faceCount'],
                           crs, bounds)

        wkt: Optional[str] = data.get('wkt')
        wkb = from_base64(data['wkb']) if 'wkb' in data else None
        if kind == 'Point':
            return Point(tuple(data['coordinates']), wkt, wkb, crs)
        if kind == 'LineString':
            return LineString(tuple(tuple(c) for c in data['coordinates']), wkt, wkb, crs)
        if kind == 'Polygon':
            return Polygon(
                tuple(tuple(c) for c in data['exterior']),
                tuple(tuple(tuple(c) for c in ring) for ring in data.get('interiors', [])),
                wkt, wkb, crs,
            )
        raise ValueError(f"Unknown geometry type {kind!r}")


# Convenience functions
def decode_document(text: Union[str, bytes], validate_schema: bool = True) -> Document:
    """
    Decode canonical JSON text into a document.

    Args:
        text: JSON text
        validate_schema: Whether to validate against the schema

    Returns:
        Decoded document
    """
    return DocumentImporter(validate_schema).decode(text)


def document_from_dict(data: Dict[str, Any]) -> Document:
    """Build a document from an already parsed JSON dictionary."""
    importer = DocumentImporter()
    importer.validate_dict(data)
    return importer.document_from_dict(data)


def import_material(text: Union[str, bytes]) -> Material:
    """Decode a standalone material from JSON text."""
    return DocumentImporter().import_material(text)


def import_document_from_json(input_path: Union[str, Path]) -> Document:
    """Import a document from a JSON file."""
    return DocumentImporter().import_document(input_path)


def validate_json_text(text: Union[str, bytes]) -> Tuple[bool, List[str]]:
    """
    Validate JSON text against the schema.

    Args:
        text: JSON text

    Returns:
        Tuple of (is_valid, error_messages)
    """
    return DocumentImporter().validate_text(text)
