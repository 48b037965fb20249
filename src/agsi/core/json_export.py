"""
JSON export engine for AGSi documents.

This module writes documents, and standalone materials, to the canonical
text format: JSON with sorted keys, two-space indentation and a trailing
newline, so that two equal documents always produce byte-identical output.
Optional fields are omitted when unset and binary payloads are base64.
"""

import json
import logging
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Type, Union

from agsi.core.errors import SchemaMismatch
from agsi.core.geometry import LineString, Point, Polygon, Surface
from agsi.core.geometry_codec import to_base64
from agsi.core.models import (
    ComponentType, Document, GroundModel, Material, MaterialKind, ModelBoundary,
    ModelComponent, ModelDimension, ModelType, NumericValue, Project, PropertySource,
    PropertyValue, RangeValue, TextValue, is_finite_number,
)
from agsi.core.parameters import StandardParameterCode, code_id
from agsi.core.schemas import is_utf8_text, require_attributes
from agsi.utils.constants import JSON_INDENT
from agsi.utils.file_io import write_payload

logger = logging.getLogger(__name__)


def _put(target: Dict[str, Any], key: str, value: Any):
    """Set a key only when the value is present."""
    if value is not None:
        target[key] = value


def _unencodable_path(value: Any, path: str) -> Optional[str]:
    """Path of the first string (key or value) that cannot be written as UTF-8."""
    if isinstance(value, str):
        return None if is_utf8_text(value) else path
    if isinstance(value, dict):
        for key, item in value.items():
            child = f"{path}.{key}" if path else str(key)
            if isinstance(key, str) and not is_utf8_text(key):
                return path
            found = _unencodable_path(item, child)
            if found is not None:
                return found
    elif isinstance(value, list):
        for i, item in enumerate(value):
            found = _unencodable_path(item, f"{path}[{i}]")
            if found is not None:
                return found
    return None


class DocumentExporter:
    """Handles exporting documents to the canonical JSON format."""

    def __init__(self, indent: int = JSON_INDENT):
        """
        Initialize exporter.

        Args:
            indent: Indentation width of the output
        """
        self.indent = indent

    def encode(self, document: Document) -> str:
        """
        Encode a document as canonical JSON text.

        Args:
            document: Document to encode

        Returns:
            JSON text ending with a newline

        Raises:
            SchemaMismatch: If a value cannot be represented in the format
        """
        text = self._dumps(self.document_to_dict(document))
        logger.debug(f"Encoded document {document.id} as JSON ({len(text)} chars)")
        return text

    def export_material(self, material: Material) -> str:
        """Encode a single material as a standalone JSON document."""
        return self._dumps(self.material_to_dict(material, "material"), "material")

    def export_document(self, document: Document, output_path: Union[str, Path],
                        compress: bool = False) -> Path:
        """
        Export a document to a JSON file.

        Args:
            document: Document to export
            output_path: Output file path
            compress: Whether to gzip the output

        Returns:
            Path actually written
        """
        data = self.encode(document).encode('utf-8')
        path = write_payload(output_path, data, compress)
        logger.info(f"Document {document.id} exported to {path}")
        return path

    def _dumps(self, data: Dict[str, Any], root: str = "") -> str:
        bad_path = _unencodable_path(data, root)
        if bad_path is not None:
            raise SchemaMismatch("String is not encodable as UTF-8", path=bad_path or "<root>")
        try:
            text = json.dumps(data, sort_keys=True, indent=self.indent,
                              ensure_ascii=False, allow_nan=False)
        except ValueError as e:
            raise SchemaMismatch(f"Value not representable in JSON: {e}") from e
        return text + "\n"

    # Dictionary builders

    def document_to_dict(self, document: Document) -> Dict[str, Any]:
        """Build the JSON-ready dictionary of a document."""
        if not isinstance(document.id, str):
            raise SchemaMismatch("Document id must be a string", path="id")
        data: Dict[str, Any] = {
            'id': document.id,
            'schemaVersion': str(document.schema_version),
            'created': self._timestamp(document.created, 'created'),
            'materials': [
                self.material_to_dict(m, f"materials[{i}]")
                for i, m in enumerate(document.materials)
            ],
            'models': [
                self._model_to_dict(m, f"models[{i}]")
                for i, m in enumerate(document.models)
            ],
        }
        _put(data, 'name', document.name)
        _put(data, 'fileName', document.file_name)
        _put(data, 'author', document.author)
        _put(data, 'software', document.software)
        _put(data, 'comments', document.comments)
        if document.modified is not None:
            data['modified'] = self._timestamp(document.modified, 'modified')
        if document.project is not None:
            data['project'] = self._project_to_dict(document.project)
        return data

    def material_to_dict(self, material: Material, path: str = "material") -> Dict[str, Any]:
        data: Dict[str, Any] = {
            'id': material.id,
            'name': material.name,
            'kind': self._enum(material.kind, MaterialKind, f"{path}.kind"),
            'properties': [
                self._property_to_dict(p, f"{path}.properties[{i}]")
                for i, p in enumerate(material.properties)
            ],
        }
        _put(data, 'description', material.description)
        _put(data, 'geology', material.geology)
        return data

    def _project_to_dict(self, project: Project) -> Dict[str, Any]:
        data: Dict[str, Any] = {'name': project.name}
        _put(data, 'client', project.client)
        _put(data, 'contractor', project.contractor)
        _put(data, 'location', project.location)
        _put(data, 'country', project.country)
        _put(data, 'description', project.description)
        return data

    def _property_to_dict(self, prop: PropertyValue, path: str) -> Dict[str, Any]:
        if isinstance(prop.code, (StandardParameterCode, str)):
            code = code_id(prop.code)
        else:
            raise SchemaMismatch(f"Unsupported parameter code {prop.code!r}", path=f"{path}.code")

        data: Dict[str, Any] = {
            'code': code,
            'value': self._value(prop.value, f"{path}.value"),
        }
        _put(data, 'unit', prop.unit)
        if prop.source is not None:
            data['source'] = self._enum(prop.source, PropertySource, f"{path}.source")
        _put(data, 'testMethod', prop.test_method)
        _put(data, 'caseId', prop.case_id)
        return data

    def _value(self, value, path: str) -> Any:
        if isinstance(value, NumericValue):
            return self._number(value.value, path)
        if isinstance(value, TextValue):
            if not isinstance(value.value, str):
                raise SchemaMismatch("Text value must be a string", path=path)
            return value.value
        if isinstance(value, RangeValue):
            return {
                'min': self._number(value.min, f"{path}.min"),
                'max': self._number(value.max, f"{path}.max"),
            }
        raise SchemaMismatch(f"Unknown property value kind {type(value).__name__}", path=path)

    def _model_to_dict(self, model: GroundModel, path: str) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            'id': model.id,
            'name': model.name,
            'modelType': self._enum(model.model_type, ModelType, f"{path}.modelType"),
            'dimension': self._enum(model.dimension, ModelDimension, f"{path}.dimension"),
            'materials': [
                self.material_to_dict(m, f"{path}.materials[{i}]")
                for i, m in enumerate(model.materials)
            ],
            'components': [
                self._component_to_dict(c, f"{path}.components[{i}]")
                for i, c in enumerate(model.components)
            ],
        }
        _put(data, 'description', model.description)
        _put(data, 'crs', model.crs)
        if model.boundary is not None:
            data['boundary'] = self._boundary_to_dict(model.boundary, f"{path}.boundary")
        return data

    def _boundary_to_dict(self, boundary: ModelBoundary, path: str) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        for key, value in (('minX', boundary.min_x), ('maxX', boundary.max_x),
                           ('minY', boundary.min_y), ('maxY', boundary.max_y),
                           ('topElevation', boundary.top_elevation),
                           ('bottomElevation', boundary.bottom_elevation)):
            if value is not None:
                data[key] = self._number(value, f"{path}.{key}")
        return data

    def _component_to_dict(self, component: ModelComponent, path: str) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            'id': component.id,
            'name': component.name,
            'componentType': self._enum(component.component_type, ComponentType,
                                        f"{path}.componentType"),
            'materialRef': component.material_ref,
        }
        if component.geometry is not None:
            data['geometry'] = self._geometry_to_dict(component.geometry, f"{path}.geometry")
        if component.top_elevation is not None:
            data['topElevation'] = self._number(component.top_elevation, f"{path}.topElevation")
        if component.bottom_elevation is not None:
            data['bottomElevation'] = self._number(component.bottom_elevation,
                                                   f"{path}.bottomElevation")
        if component.attributes:
            attributes = require_attributes(component.attributes, f"{path}.attributes")
            data['attributes'] = json.loads(json.dumps(attributes, allow_nan=False))
        return data

    def _geometry_to_dict(self, geometry, path: str) -> Dict[str, Any]:
        if isinstance(geometry, Surface):
            data: Dict[str, Any] = {
                'type': geometry.kind.value,
                'mesh': to_base64(geometry.mesh),
                'vertexCount': geometry.vertex_count,
                'faceCount': geometry.face_count,
            }
            if geometry.bounds is not None:
                data['bounds'] = {
                    'min': [self._number(v, f"{path}.bounds.min") for v in geometry.bounds.min],
                    'max': [self._number(v, f"{path}.bounds.max") for v in geometry.bounds.max],
                }
            _put(data, 'crs', geometry.crs)
            return data

        if isinstance(geometry, Point):
            data = {'type': geometry.kind.value, 'coordinates': list(geometry.coordinates)}
        elif isinstance(geometry, LineString):
            data = {'type': geometry.kind.value, 'coordinates': self._ring(geometry.coordinates)}
        elif isinstance(geometry, Polygon):
            data = {'type': geometry.kind.value, 'exterior': self._ring(geometry.exterior)}
            if geometry.interiors:
                data['interiors'] = [self._ring(ring) for ring in geometry.interiors]
        else:
            raise SchemaMismatch(f"Unknown geometry type {type(geometry).__name__}", path=path)

        _put(data, 'wkt', geometry.wkt)
        if geometry.wkb is not None:
            data['wkb'] = to_base64(geometry.wkb)
        _put(data, 'crs', geometry.crs)
        return data

    # Scalars

    @staticmethod
    def _ring(coordinates) -> List[List[float]]:
        return [list(c) for c in coordinates]

    @staticmethod
    def _number(value, path: str) -> float:
        if not is_finite_number(value):
            raise SchemaMismatch(f"Expected a finite number, got {value!r}", path=path)
        return float(value)

    @staticmethod
    def _enum(value, enum_type: Type[Enum], path: str) -> str:
        if not isinstance(value, enum_type):
            raise SchemaMismatch(
                f"{value!r} is not a {enum_type.__name__}", path=path
            )
        return value.value

    @staticmethod
    def _timestamp(value, path: str) -> str:
        if value is None or not hasattr(value, 'isoformat'):
            raise SchemaMismatch(f"Expected a timestamp, got {value!r}", path=path)
        return value.isoformat()


# Convenience functions
def encode_document(document: Document) -> str:
    """
    Encode a document as canonical JSON text.

    Args:
        document: Document to encode

    Returns:
        Deterministic JSON text
    """
    return DocumentExporter().encode(document)


def document_to_dict(document: Document) -> Dict[str, Any]:
    """Build the JSON-ready dictionary of a document."""
    return DocumentExporter().document_to_dict(document)


def export_material(material: Material) -> str:
    """Encode a standalone material as JSON text."""
    return DocumentExporter().export_material(material)


def export_document_to_json(document: Document, output_path: Union[str, Path],
                            compress: bool = False) -> Path:
    """
    Export a document to a JSON file.

    Args:
        document: Document to export
        output_path: Output file path
        compress: Whether to gzip the output

    Returns:
        Path actually written
    """
    return DocumentExporter().export_document(document, output_path, compress)
