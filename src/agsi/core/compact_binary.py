"""
Compact schema-typed binary format.

Documents are written as a single-record Avro object container (deflate
codec) using the schema in ``agsi_document.avsc``. Enumerations travel as
ordinals fixed by the schema's symbol order and every optional field is an
explicit ``["null", T]`` union. Encoding fails closed: a value outside the
domain a field declares raises ``SchemaMismatch`` naming the field path.
"""

import copy
import io
import logging
import struct
import zlib
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Type

import fastavro
from fastavro.read import SchemaResolutionError
from fastavro.validation import ValidationError

from agsi.core.errors import AgsiError, MalformedInput, SchemaMismatch, UnsupportedField
from agsi.core.geometry import GeometryKind, LineString, Point, Polygon, Surface
from agsi.core.models import (
    ComponentType, Document, GroundModel, Material, MaterialKind, ModelBoundary,
    ModelComponent, ModelDimension, ModelType, NumericValue, Project, PropertySource,
    PropertyValue, RangeValue, SchemaVersion, TextValue,
)
from agsi.core.parameters import StandardParameterCode
from agsi.core.schemas import (
    LONG_MAX, Format, from_epoch_micros, load_avro_schema, load_avro_schema_definition,
    attribute_from_text, attribute_to_text, pending_fields_in, require_attributes,
    require_integer, require_number, require_string, require_timestamp,
)

logger = logging.getLogger(__name__)

FORMAT_NAME = "compact binary (Avro)"
CONTAINER_CODEC = "deflate"

# Failures fastavro raises for containers it cannot read
READ_ERRORS = (
    ValueError, TypeError, KeyError, IndexError, EOFError, OverflowError, RuntimeError,
    struct.error, zlib.error, SchemaResolutionError,
)


def enum_symbols(definition: Any) -> Dict[str, Tuple[str, ...]]:
    """Collect the symbols of every enum declared in a raw Avro schema, by short name."""
    found: Dict[str, Tuple[str, ...]] = {}

    def walk(node):
        if isinstance(node, dict):
            if node.get('type') == 'enum':
                found[node['name'].split('.')[-1]] = tuple(node['symbols'])
            for value in node.values():
                walk(value)
        elif isinstance(node, list):
            for item in node:
                walk(item)

    walk(definition)
    return found


class CompactBinaryEncoder:
    """Writes documents to the compact binary format."""

    def __init__(self, schema: Optional[Dict[str, Any]] = None):
        """
        Initialize encoder.

        Args:
            schema: Alternative raw Avro schema (defaults to the bundled one)
        """
        if schema is None:
            self.definition = load_avro_schema_definition()
            self.parsed = load_avro_schema()
        else:
            self.definition = schema
            self.parsed = fastavro.parse_schema(copy.deepcopy(schema))
        self.symbols = enum_symbols(self.definition)

    def encode(self, document: Document) -> bytes:
        """
        Encode a document.

        Raises:
            UnsupportedField: If a populated field has no place in this format
            SchemaMismatch: If a value lies outside its field's declared domain
        """
        pending = pending_fields_in(document, Format.COMPACT_BINARY)
        if pending:
            logger.error(f"Cannot encode document {document.id}: pending fields {pending}")
            raise UnsupportedField(FORMAT_NAME, pending)

        record = self._document(document)
        buffer = io.BytesIO()
        try:
            fastavro.writer(buffer, self.parsed, [record], codec=CONTAINER_CODEC, validator=True)
        except (ValidationError, ValueError, TypeError, OverflowError) as e:
            raise SchemaMismatch(f"Record rejected by the compact schema: {e}") from e
        data = buffer.getvalue()
        logger.debug(f"Encoded document {document.id} as compact binary ({len(data)} bytes)")
        return data

    # Scalars

    def _symbol(self, value: Any, enum_type: Type[Enum], type_name: str, path: str) -> str:
        if not isinstance(value, enum_type):
            raise SchemaMismatch(f"{value!r} is not a {enum_type.__name__}", path=path)
        symbol = value.name
        if symbol not in self.symbols.get(type_name, ()):
            raise SchemaMismatch(
                f"{enum_type.__name__}.{symbol} is not declared by the compact schema",
                path=path, context={"type": type_name},
            )
        return symbol

    # Records

    def _document(self, document: Document) -> Dict[str, Any]:
        project = None
        if document.project is not None:
            project = self._project(document.project)
        return {
            'id': require_string(document.id, 'id'),
            'name': require_string(document.name, 'name', True),
            'fileName': require_string(document.file_name, 'fileName', True),
            'author': require_string(document.author, 'author', True),
            'software': require_string(document.software, 'software', True),
            'schemaVersion': str(document.schema_version),
            'created': require_timestamp(document.created, 'created'),
            'modified': (None if document.modified is None
                         else require_timestamp(document.modified, 'modified')),
            'comments': require_string(document.comments, 'comments', True),
            'project': project,
            'materials': [self._material(m, f"materials[{i}]")
                          for i, m in enumerate(document.materials)],
            'models': [self._model(m, f"models[{i}]") for i, m in enumerate(document.models)],
        }

    def _project(self, project: Project) -> Dict[str, Any]:
        return {
            'name': require_string(project.name, 'project.name'),
            'client': require_string(project.client, 'project.client', True),
            'contractor': require_string(project.contractor, 'project.contractor', True),
            'location': require_string(project.location, 'project.location', True),
            'country': require_string(project.country, 'project.country', True),
            'description': require_string(project.description, 'project.description', True),
        }

    def _material(self, material: Material, path: str) -> Dict[str, Any]:
        return {
            'id': require_string(material.id, f"{path}.id"),
            'name': require_string(material.name, f"{path}.name"),
            'kind': self._symbol(material.kind, MaterialKind, 'MaterialKind', f"{path}.kind"),
            'description': require_string(material.description, f"{path}.description", True),
            'geology': require_string(material.geology, f"{path}.geology", True),
            'properties': [self._property(p, f"{path}.properties[{i}]")
                           for i, p in enumerate(material.properties)],
        }

    def _property(self, prop: PropertyValue, path: str) -> Dict[str, Any]:
        if isinstance(prop.code, StandardParameterCode):
            code = {'standard': self._symbol(prop.code, StandardParameterCode,
                                             'StandardParameterCode', f"{path}.code"),
                    'custom': None}
        else:
            code = {'standard': None, 'custom': require_string(prop.code, f"{path}.code")}

        source = None
        if prop.source is not None:
            source = self._symbol(prop.source, PropertySource, 'PropertySource', f"{path}.source")

        return {
            'code': code,
            'value': self._value(prop.value, f"{path}.value"),
            'unit': require_string(prop.unit, f"{path}.unit", True),
            'source': source,
            'testMethod': require_string(prop.test_method, f"{path}.testMethod", True),
            'caseId': require_string(prop.case_id, f"{path}.caseId", True),
        }

    def _value(self, value: Any, path: str) -> Dict[str, Any]:
        record = {'kind': None, 'numeric': None, 'text': None, 'min': None, 'max': None}
        if isinstance(value, NumericValue):
            record['kind'] = 'NUMERIC'
            record['numeric'] = require_number(value.value, path)
        elif isinstance(value, TextValue):
            record['kind'] = 'TEXT'
            record['text'] = require_string(value.value, path)
        elif isinstance(value, RangeValue):
            record['kind'] = 'RANGE'
            record['min'] = require_number(value.min, f"{path}.min")
            record['max'] = require_number(value.max, f"{path}.max")
        else:
            raise SchemaMismatch(f"Unknown property value kind {type(value).__name__}", path=path)
        if record['kind'] not in self.symbols.get('ValueKind', ()):
            raise SchemaMismatch(f"Value kind {record['kind']} is not declared by the compact schema",
                                 path=path)
        return record

    def _model(self, model: GroundModel, path: str) -> Dict[str, Any]:
        boundary = None
        if model.boundary is not None:
            b = model.boundary
            bpath = f"{path}.boundary"
            boundary = {
                'minX': require_number(b.min_x, f"{bpath}.minX", True),
                'maxX': require_number(b.max_x, f"{bpath}.maxX", True),
                'minY': require_number(b.min_y, f"{bpath}.minY", True),
                'maxY': require_number(b.max_y, f"{bpath}.maxY", True),
                'topElevation': require_number(b.top_elevation, f"{bpath}.topElevation", True),
                'bottomElevation': require_number(b.bottom_elevation, f"{bpath}.bottomElevation", True),
            }
        return {
            'id': require_string(model.id, f"{path}.id"),
            'name': require_string(model.name, f"{path}.name"),
            'modelType': self._symbol(model.model_type, ModelType, 'ModelType', f"{path}.modelType"),
            'dimension': self._symbol(model.dimension, ModelDimension, 'ModelDimension',
                                      f"{path}.dimension"),
            'description': require_string(model.description, f"{path}.description", True),
            'crs': require_string(model.crs, f"{path}.crs", True),
            'boundary': boundary,
            'materials': [self._material(m, f"{path}.materials[{i}]")
                          for i, m in enumerate(model.materials)],
            'components': [self._component(c, f"{path}.components[{i}]")
                           for i, c in enumerate(model.components)],
        }

    def _component(self, component: ModelComponent, path: str) -> Dict[str, Any]:
        geometry = None
        if component.geometry is not None:
            geometry = self._geometry(component.geometry, f"{path}.geometry")
        return {
            'id': require_string(component.id, f"{path}.id"),
            'name': require_string(component.name, f"{path}.name"),
            'componentType': self._symbol(component.component_type, ComponentType,
                                          'ComponentType', f"{path}.componentType"),
            'materialRef': require_string(component.material_ref, f"{path}.materialRef"),
            'geometry': geometry,
            'topElevation': require_number(component.top_elevation, f"{path}.topElevation", True),
            'bottomElevation': require_number(component.bottom_elevation,
                                            f"{path}.bottomElevation", True),
            'attributes': {
                key: attribute_to_text(value, f"{path}.attributes.{key}")
                for key, value in require_attributes(component.attributes,
                                                     f"{path}.attributes").items()
            },
        }

    def _geometry(self, geometry: Any, path: str) -> Dict[str, Any]:
        record: Dict[str, Any] = {
            'kind': None, 'rings': [], 'wkt': None, 'wkb': None,
            'mesh': None, 'vertexCount': None, 'faceCount': None, 'bounds': None,
        }
        if isinstance(geometry, Surface):
            record['mesh'] = geometry.mesh
            record['vertexCount'] = require_integer(
                geometry.vertex_count, f"{path}.vertexCount", 0, LONG_MAX)
            record['faceCount'] = require_integer(
                geometry.face_count, f"{path}.faceCount", 0, LONG_MAX)
            if geometry.bounds is not None:
                record['bounds'] = {
                    'min': self._coordinate(geometry.bounds.min),
                    'max': self._coordinate(geometry.bounds.max),
                }
        elif isinstance(geometry, Point):
            record['rings'] = [[self._coordinate(geometry.coordinates)]]
        elif isinstance(geometry, LineString):
            record['rings'] = [[self._coordinate(c) for c in geometry.coordinates]]
        elif isinstance(geometry, Polygon):
            record['rings'] = [[self._coordinate(c) for c in ring] for ring in geometry.rings]
        else:
            raise SchemaMismatch(f"Unknown geometry type {type(geometry).__name__}", path=path)

        record['kind'] = self._symbol(geometry.kind, GeometryKind, 'GeometryKind', f"{path}.type")
        if not isinstance(geometry, Surface):
            record['wkt'] = require_string(geometry.wkt, f"{path}.wkt", True)
            record['wkb'] = geometry.wkb
        return record

    @staticmethod
    def _coordinate(coordinate) -> Dict[str, float]:
        x, y, z = coordinate
        return {'x': x, 'y': y, 'z': z}


class CompactBinaryDecoder:
    """Reads documents from the compact binary format."""

    def __init__(self):
        self.parsed = load_avro_schema()

    def decode(self, data: bytes) -> Document:
        """
        Decode a document.

        Raises:
            MalformedInput: If the payload is not a valid compact document
        """
        stream = io.BytesIO(bytes(data))
        try:
            records = list(fastavro.reader(stream, reader_schema=self.parsed))
        except READ_ERRORS as e:
            logger.error(f"Compact binary decode failed near byte {stream.tell()}: {e}")
            raise MalformedInput(f"Cannot read compact binary payload: {e}",
                                 offset=stream.tell()) from e

        if len(records) != 1:
            raise MalformedInput(f"Expected exactly one document record, found {len(records)}",
                                 offset=stream.tell())
        document = self._document(records[0])
        logger.debug(f"Decoded document {document.id} from compact binary")
        return document

    @staticmethod
    def _convert(build, path: str):
        """Run a conversion step, turning domain errors into MalformedInput."""
        try:
            return build()
        except MalformedInput:
            raise
        except (AgsiError, ValueError, TypeError, KeyError) as e:
            message = e.message if isinstance(e, AgsiError) else str(e)
            raise MalformedInput(f"Cannot convert compact record: {message}",
                                 path=path or "<root>") from e

    # Records

    def _document(self, record: Dict[str, Any]) -> Document:
        project = None
        if record['project'] is not None:
            project = self._convert(lambda: Project(**record['project']), "project")
        version = self._convert(lambda: SchemaVersion.parse(record['schemaVersion']),
                                "schemaVersion")
        materials = [self._material(m, f"materials[{i}]")
                     for i, m in enumerate(record['materials'])]
        models = [self._model(m, f"models[{i}]") for i, m in enumerate(record['models'])]
        modified = record['modified']
        return self._convert(lambda: Document(
            id=record['id'],
            name=record['name'],
            file_name=record['fileName'],
            author=record['author'],
            software=record['software'],
            schema_version=version,
            created=from_epoch_micros(record['created']),
            modified=None if modified is None else from_epoch_micros(modified),
            comments=record['comments'],
            project=project,
            materials=materials,
            models=models,
        ), "")

    def _material(self, record: Dict[str, Any], path: str) -> Material:
        properties = [self._property(p, f"{path}.properties[{i}]")
                      for i, p in enumerate(record['properties'])]
        return self._convert(lambda: Material(
            id=record['id'],
            name=record['name'],
            kind=MaterialKind[record['kind']],
            description=record['description'],
            geology=record['geology'],
            properties=properties,
        ), path)

    def _property(self, record: Dict[str, Any], path: str) -> PropertyValue:
        code_record = record['code']
        standard, custom = code_record['standard'], code_record['custom']
        if (standard is None) == (custom is None):
            raise MalformedInput("Parameter code must be either standard or custom",
                                 path=f"{path}.code")

        value = self._value(record['value'], f"{path}.value")
        source = record['source']
        return self._convert(lambda: PropertyValue(
            code=StandardParameterCode[standard] if standard is not None else custom,
            value=value,
            unit=record['unit'],
            source=None if source is None else PropertySource[source],
            test_method=record['testMethod'],
            case_id=record['caseId'],
        ), path)

    def _value(self, record: Dict[str, Any], path: str):
        kind = record['kind']
        if kind == 'NUMERIC' and record['numeric'] is not None:
            return NumericValue(record['numeric'])
        if kind == 'TEXT' and record['text'] is not None:
            return TextValue(record['text'])
        if kind == 'RANGE' and record['min'] is not None and record['max'] is not None:
            return self._convert(lambda: RangeValue(record['min'], record['max']), path)
        raise MalformedInput(f"Value of kind {kind} is missing its payload", path=path)

    def _model(self, record: Dict[str, Any], path: str) -> GroundModel:
        boundary = None
        if record['boundary'] is not None:
            b = record['boundary']
            boundary = ModelBoundary(b['minX'], b['maxX'], b['minY'], b['maxY'],
                                     b['topElevation'], b['bottomElevation'])
        materials = [self._material(m, f"{path}.materials[{i}]")
                     for i, m in enumerate(record['materials'])]
        components = [self._component(c, f"{path}.components[{i}]")
                      for i, c in enumerate(record['components'])]
        return self._convert(lambda: GroundModel(
            id=record['id'],
            name=record['name'],
            model_type=ModelType[record['modelType']],
            dimension=ModelDimension[record['dimension']],
            description=record['description'],
            crs=record['crs'],
            boundary=boundary,
            materials=materials,
            components=components,
        ), path)

    def _component(self, record: Dict[str, Any], path: str) -> ModelComponent:
        geometry = None
        if record['geometry'] is not None:
            geometry = self._geometry(record['geometry'], f"{path}.geometry")
        attributes = {
            key: attribute_from_text(text, f"{path}.attributes.{key}")
            for key, text in record['attributes'].items()
        }
        return self._convert(lambda: ModelComponent(
            id=record['id'],
            name=record['name'],
            component_type=ComponentType[record['componentType']],
            material_ref=record['materialRef'],
            geometry=geometry,
            top_elevation=record['topElevation'],
            bottom_elevation=record['bottomElevation'],
            attributes=attributes,
        ), path)

    def _geometry(self, record: Dict[str, Any], path: str):
        kind = self._convert(lambda: GeometryKind[record['kind']], f"{path}.type")
        rings: List[List[Tuple[float, float, float]]] = [
            [(c['x'], c['y'], c['z']) for c in ring] for ring in record['rings']
        ]
        if kind is GeometryKind.SURFACE:
            if record['mesh'] is None or record['vertexCount'] is None or record['faceCount'] is None:
                raise MalformedInput("Surface is missing its mesh payload or counts", path=path)
            bounds = None
            if record['bounds'] is not None:
                low, high = record['bounds']['min'], record['bounds']['max']
                bounds = ((low['x'], low['y'], low['z']), (high['x'], high['y'], high['z']))
            return self._convert(lambda: Surface(record['mesh'], record['vertexCount'],
                                                 record['faceCount'], bounds=bounds), path)
        if not rings or not rings[0]:
            raise MalformedInput(f"{kind.value} has no coordinates", path=path)
        if kind is GeometryKind.POINT:
            return self._convert(lambda: Point(rings[0][0], record['wkt'], record['wkb']), path)
        if kind is GeometryKind.LINE_STRING:
            return self._convert(lambda: LineString(tuple(rings[0]), record['wkt'],
                                                    record['wkb']), path)
        return self._convert(lambda: Polygon(tuple(rings[0]), tuple(tuple(r) for r in rings[1:]),
                                             record['wkt'], record['wkb']), path)


# Convenience functions
def encode_compact(document: Document, schema: Optional[Dict[str, Any]] = None) -> bytes:
    """
    Encode a document to the compact binary format.

    Args:
        document: Document to encode
        schema: Alternative raw Avro schema, for compatibility checks

    Returns:
        Avro object container bytes
    """
    return CompactBinaryEncoder(schema).encode(document)


def decode_compact(data: bytes) -> Document:
    """Decode a document from the compact binary format."""
    return CompactBinaryDecoder().decode(data)
