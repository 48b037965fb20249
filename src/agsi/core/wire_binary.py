"""
Wire binary format.

Documents are serialized as Protocol Buffers (proto2) messages. The message
schema is built at runtime as a ``FileDescriptorProto`` and distributed
separately as a serialized ``FileDescriptorSet``; it is never embedded in a
payload. Coordinates are packed repeated doubles, geometry kind, value kind
and parameter code are ``oneof`` groups, and every enum reserves 0 for an
unspecified value that is rejected on decode.
"""

import logging
from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple, Type, Union

from google.protobuf import descriptor_pb2, descriptor_pool, message_factory
from google.protobuf.message import DecodeError
from google.protobuf.message import EncodeError as ProtobufEncodeError

from agsi.core.errors import AgsiError, MalformedInput, SchemaMismatch, UnsupportedField
from agsi.core.geometry import LineString, Point, Polygon, Surface
from agsi.core.models import (
    ComponentType, Document, GroundModel, Material, MaterialKind, ModelBoundary,
    ModelComponent, ModelDimension, ModelType, NumericValue, Project, PropertySource,
    PropertyValue, RangeValue, SchemaVersion, TextValue,
)
from agsi.core.parameters import StandardParameterCode
from agsi.core.schemas import (
    LONG_MAX, LONG_MIN, Format, attribute_from_text, attribute_to_text, from_epoch_micros,
    pending_fields_in, require_attributes, require_integer, require_number, require_string,
    require_timestamp,
)
from agsi.utils.constants import WIRE_PACKAGE, WIRE_SCHEMA_FILE_NAME

logger = logging.getLogger(__name__)

FORMAT_NAME = "wire binary (protobuf)"

UINT32_MAX = 2 ** 32 - 1

_F = descriptor_pb2.FieldDescriptorProto

# Wire enum name, value prefix and domain enum, in declaration order
WIRE_ENUMS: Tuple[Tuple[str, str, Type[Enum]], ...] = (
    ("MaterialKind", "MATERIAL_KIND", MaterialKind),
    ("PropertySource", "PROPERTY_SOURCE", PropertySource),
    ("ModelType", "MODEL_TYPE", ModelType),
    ("ModelDimension", "MODEL_DIMENSION", ModelDimension),
    ("ComponentType", "COMPONENT_TYPE", ComponentType),
    ("StandardParameterCode", "PARAMETER_CODE", StandardParameterCode),
)

# Message name -> fields as (name, number, type, type name, label, oneof)
WIRE_MESSAGES: Tuple[Tuple[str, Sequence[tuple]], ...] = (
    ("Range", (
        ("min", 1, _F.TYPE_DOUBLE, None, _F.LABEL_OPTIONAL, None),
        ("max", 2, _F.TYPE_DOUBLE, None, _F.LABEL_OPTIONAL, None),
    )),
    ("PropertyValue", (
        ("standard_code", 1, _F.TYPE_ENUM, "StandardParameterCode", _F.LABEL_OPTIONAL, "code"),
        ("custom_code", 2, _F.TYPE_STRING, None, _F.LABEL_OPTIONAL, "code"),
        ("numeric", 3, _F.TYPE_DOUBLE, None, _F.LABEL_OPTIONAL, "value"),
        ("text", 4, _F.TYPE_STRING, None, _F.LABEL_OPTIONAL, "value"),
        ("range", 5, _F.TYPE_MESSAGE, "Range", _F.LABEL_OPTIONAL, "value"),
        ("unit", 6, _F.TYPE_STRING, None, _F.LABEL_OPTIONAL, None),
        ("source", 7, _F.TYPE_ENUM, "PropertySource", _F.LABEL_OPTIONAL, None),
        ("test_method", 8, _F.TYPE_STRING, None, _F.LABEL_OPTIONAL, None),
        ("case_id", 9, _F.TYPE_STRING, None, _F.LABEL_OPTIONAL, None),
    )),
    ("Material", (
        ("id", 1, _F.TYPE_STRING, None, _F.LABEL_OPTIONAL, None),
        ("name", 2, _F.TYPE_STRING, None, _F.LABEL_OPTIONAL, None),
        ("kind", 3, _F.TYPE_ENUM, "MaterialKind", _F.LABEL_OPTIONAL, None),
        ("description", 4, _F.TYPE_STRING, None, _F.LABEL_OPTIONAL, None),
        ("properties", 5, _F.TYPE_MESSAGE, "PropertyValue", _F.LABEL_REPEATED, None),
    )),
    ("Project", (
        ("name", 1, _F.TYPE_STRING, None, _F.LABEL_OPTIONAL, None),
        ("client", 2, _F.TYPE_STRING, None, _F.LABEL_OPTIONAL, None),
        ("contractor", 3, _F.TYPE_STRING, None, _F.LABEL_OPTIONAL, None),
        ("location", 4, _F.TYPE_STRING, None, _F.LABEL_OPTIONAL, None),
        ("country", 5, _F.TYPE_STRING, None, _F.LABEL_OPTIONAL, None),
        ("description", 6, _F.TYPE_STRING, None, _F.LABEL_OPTIONAL, None),
    )),
    ("Ring", (
        ("xyz", 1, _F.TYPE_DOUBLE, None, _F.LABEL_REPEATED, None),
    )),
    ("PointGeometry", (
        ("xyz", 1, _F.TYPE_DOUBLE, None, _F.LABEL_REPEATED, None),
    )),
    ("LineStringGeometry", (
        ("xyz", 1, _F.TYPE_DOUBLE, None, _F.LABEL_REPEATED, None),
    )),
    ("PolygonGeometry", (
        ("rings", 1, _F.TYPE_MESSAGE, "Ring", _F.LABEL_REPEATED, None),
    )),
    ("BoundingBox", (
        ("min", 1, _F.TYPE_DOUBLE, None, _F.LABEL_REPEATED, None),
        ("max", 2, _F.TYPE_DOUBLE, None, _F.LABEL_REPEATED, None),
    )),
    ("SurfaceGeometry", (
        ("mesh", 1, _F.TYPE_BYTES, None, _F.LABEL_OPTIONAL, None),
        ("vertex_count", 2, _F.TYPE_UINT32, None, _F.LABEL_OPTIONAL, None),
        ("face_count", 3, _F.TYPE_UINT32, None, _F.LABEL_OPTIONAL, None),
        ("bounds", 4, _F.TYPE_MESSAGE, "BoundingBox", _F.LABEL_OPTIONAL, None),
    )),
    ("Geometry", (
        ("point", 1, _F.TYPE_MESSAGE, "PointGeometry", _F.LABEL_OPTIONAL, "shape"),
        ("line_string", 2, _F.TYPE_MESSAGE, "LineStringGeometry", _F.LABEL_OPTIONAL, "shape"),
        ("polygon", 3, _F.TYPE_MESSAGE, "PolygonGeometry", _F.LABEL_OPTIONAL, "shape"),
        ("surface", 4, _F.TYPE_MESSAGE, "SurfaceGeometry", _F.LABEL_OPTIONAL, "shape"),
        ("wkt", 5, _F.TYPE_STRING, None, _F.LABEL_OPTIONAL, None),
        ("wkb", 6, _F.TYPE_BYTES, None, _F.LABEL_OPTIONAL, None),
        ("crs", 7, _F.TYPE_STRING, None, _F.LABEL_OPTIONAL, None),
    )),
    ("ModelBoundary", (
        ("min_x", 1, _F.TYPE_DOUBLE, None, _F.LABEL_OPTIONAL, None),
        ("max_x", 2, _F.TYPE_DOUBLE, None, _F.LABEL_OPTIONAL, None),
        ("min_y", 3, _F.TYPE_DOUBLE, None, _F.LABEL_OPTIONAL, None),
        ("max_y", 4, _F.TYPE_DOUBLE, None, _F.LABEL_OPTIONAL, None),
        ("top_elevation", 5, _F.TYPE_DOUBLE, None, _F.LABEL_OPTIONAL, None),
        ("bottom_elevation", 6, _F.TYPE_DOUBLE, None, _F.LABEL_OPTIONAL, None),
    )),
    ("Attribute", (
        ("key", 1, _F.TYPE_STRING, None, _F.LABEL_OPTIONAL, None),
        ("json", 2, _F.TYPE_STRING, None, _F.LABEL_OPTIONAL, None),
    )),
    ("ModelComponent", (
        ("id", 1, _F.TYPE_STRING, None, _F.LABEL_OPTIONAL, None),
        ("name", 2, _F.TYPE_STRING, None, _F.LABEL_OPTIONAL, None),
        ("component_type", 3, _F.TYPE_ENUM, "ComponentType", _F.LABEL_OPTIONAL, None),
        ("material_ref", 4, _F.TYPE_STRING, None, _F.LABEL_OPTIONAL, None),
        ("geometry", 5, _F.TYPE_MESSAGE, "Geometry", _F.LABEL_OPTIONAL, None),
        ("top_elevation", 6, _F.TYPE_DOUBLE, None, _F.LABEL_OPTIONAL, None),
        ("bottom_elevation", 7, _F.TYPE_DOUBLE, None, _F.LABEL_OPTIONAL, None),
        ("attributes", 8, _F.TYPE_MESSAGE, "Attribute", _F.LABEL_REPEATED, None),
    )),
    ("GroundModel", (
        ("id", 1, _F.TYPE_STRING, None, _F.LABEL_OPTIONAL, None),
        ("name", 2, _F.TYPE_STRING, None, _F.LABEL_OPTIONAL, None),
        ("model_type", 3, _F.TYPE_ENUM, "ModelType", _F.LABEL_OPTIONAL, None),
        ("dimension", 4, _F.TYPE_ENUM, "ModelDimension", _F.LABEL_OPTIONAL, None),
        ("description", 5, _F.TYPE_STRING, None, _F.LABEL_OPTIONAL, None),
        ("crs", 6, _F.TYPE_STRING, None, _F.LABEL_OPTIONAL, None),
        ("boundary", 7, _F.TYPE_MESSAGE, "ModelBoundary", _F.LABEL_OPTIONAL, None),
        ("materials", 8, _F.TYPE_MESSAGE, "Material", _F.LABEL_REPEATED, None),
        ("components", 9, _F.TYPE_MESSAGE, "ModelComponent", _F.LABEL_REPEATED, None),
    )),
    ("Document", (
        ("id", 1, _F.TYPE_STRING, None, _F.LABEL_OPTIONAL, None),
        ("name", 2, _F.TYPE_STRING, None, _F.LABEL_OPTIONAL, None),
        ("file_name", 3, _F.TYPE_STRING, None, _F.LABEL_OPTIONAL, None),
        ("author", 4, _F.TYPE_STRING, None, _F.LABEL_OPTIONAL, None),
        ("software", 5, _F.TYPE_STRING, None, _F.LABEL_OPTIONAL, None),
        ("schema_version", 6, _F.TYPE_STRING, None, _F.LABEL_OPTIONAL, None),
        ("created_micros", 7, _F.TYPE_INT64, None, _F.LABEL_OPTIONAL, None),
        ("modified_micros", 8, _F.TYPE_INT64, None, _F.LABEL_OPTIONAL, None),
        ("project", 9, _F.TYPE_MESSAGE, "Project", _F.LABEL_OPTIONAL, None),
        ("materials", 10, _F.TYPE_MESSAGE, "Material", _F.LABEL_REPEATED, None),
        ("models", 11, _F.TYPE_MESSAGE, "GroundModel", _F.LABEL_REPEATED, None),
    )),
)

# Fields that must be present when decoding each message
REQUIRED_FIELDS: Dict[str, Tuple[str, ...]] = {
    "Document": ("id", "schema_version", "created_micros"),
    "Project": ("name",),
    "Material": ("id", "name", "kind"),
    "GroundModel": ("id", "name", "model_type", "dimension"),
    "ModelComponent": ("id", "name", "component_type", "material_ref"),
    "SurfaceGeometry": ("mesh", "vertex_count", "face_count"),
    "Attribute": ("key", "json"),
}


@lru_cache(maxsize=None)
def wire_file_descriptor() -> descriptor_pb2.FileDescriptorProto:
    """Build the descriptor of the wire schema file."""
    file_proto = descriptor_pb2.FileDescriptorProto()
    file_proto.name = WIRE_SCHEMA_FILE_NAME
    file_proto.package = WIRE_PACKAGE
    file_proto.syntax = "proto2"

    for enum_name, prefix, enum_type in WIRE_ENUMS:
        enum_proto = file_proto.enum_type.add()
        enum_proto.name = enum_name
        unspecified = enum_proto.value.add()
        unspecified.name = f"{prefix}_UNSPECIFIED"
        unspecified.number = 0
        for number, member in enumerate(enum_type, start=1):
            value = enum_proto.value.add()
            value.name = f"{prefix}_{member.name}"
            value.number = number

    for message_name, fields in WIRE_MESSAGES:
        message_proto = file_proto.message_type.add()
        message_proto.name = message_name
        oneofs: List[str] = []
        for name, number, field_type, type_name, label, oneof in fields:
            field_proto = message_proto.field.add()
            field_proto.name = name
            field_proto.number = number
            field_proto.type = field_type
            field_proto.label = label
            if type_name is not None:
                field_proto.type_name = f".{WIRE_PACKAGE}.{type_name}"
            if field_type == _F.TYPE_DOUBLE and label == _F.LABEL_REPEATED:
                field_proto.options.packed = True
            if oneof is not None:
                if oneof not in oneofs:
                    oneofs.append(oneof)
                    message_proto.oneof_decl.add().name = oneof
                field_proto.oneof_index = oneofs.index(oneof)
    return file_proto


@lru_cache(maxsize=None)
def wire_message_classes() -> Dict[str, type]:
    """Message classes of the wire schema, created once per process."""
    pool = descriptor_pool.DescriptorPool()
    pool.AddSerializedFile(wire_file_descriptor().SerializeToString())
    classes = {}
    for message_name, _ in WIRE_MESSAGES:
        descriptor = pool.FindMessageTypeByName(f"{WIRE_PACKAGE}.{message_name}")
        classes[message_name] = message_factory.GetMessageClass(descriptor)
    logger.debug(f"Built {len(classes)} wire message classes")
    return classes


def wire_schema_artifact() -> bytes:
    """Serialized ``FileDescriptorSet`` describing the wire format."""
    descriptor_set = descriptor_pb2.FileDescriptorSet()
    descriptor_set.file.add().CopyFrom(wire_file_descriptor())
    return descriptor_set.SerializeToString()


def write_wire_schema(path: Union[str, Path]) -> Path:
    """Write the wire schema artifact to a file."""
    output_path = Path(path)
    with open(output_path, 'wb') as f:
        f.write(wire_schema_artifact())
    logger.info(f"Wire schema written to {output_path}")
    return output_path


def _wire_number(value: Any, enum_type: Type[Enum], path: str) -> int:
    """Wire enum number of a domain enum member (declaration order, from 1)."""
    if not isinstance(value, enum_type):
        raise SchemaMismatch(f"{value!r} is not a {enum_type.__name__}", path=path)
    return list(enum_type).index(value) + 1


def _domain_member(number: int, enum_type: Type[Enum], path: str):
    members = list(enum_type)
    if not 1 <= number <= len(members):
        raise MalformedInput(f"Unspecified or unknown {enum_type.__name__} value {number}",
                             path=path)
    return members[number - 1]


def _flatten(coordinates) -> List[float]:
    return [float(v) for coordinate in coordinates for v in coordinate]


def _triples(values: Sequence[float], path: str) -> Tuple[Tuple[float, float, float], ...]:
    if len(values) % 3:
        raise MalformedInput(f"Coordinate array length {len(values)} is not a multiple of 3",
                             path=path)
    return tuple((values[i], values[i + 1], values[i + 2]) for i in range(0, len(values), 3))


class WireBinaryEncoder:
    """Writes documents to the wire binary format."""

    def __init__(self):
        self.classes = wire_message_classes()

    def encode(self, document: Document) -> bytes:
        """
        Encode a document.

        Raises:
            UnsupportedField: If a populated field has no place in this format
            SchemaMismatch: If a value lies outside its field's declared domain
        """
        pending = pending_fields_in(document, Format.WIRE_BINARY)
        if pending:
            logger.error(f"Cannot encode document {document.id}: pending fields {pending}")
            raise UnsupportedField(FORMAT_NAME, pending)

        message = self.classes["Document"]()
        message.id = require_string(document.id, 'id')
        self._set(message, 'name', require_string(document.name, 'name', True))
        self._set(message, 'file_name', require_string(document.file_name, 'fileName', True))
        self._set(message, 'author', require_string(document.author, 'author', True))
        self._set(message, 'software', require_string(document.software, 'software', True))
        message.schema_version = str(document.schema_version)
        message.created_micros = require_timestamp(document.created, 'created')
        if document.modified is not None:
            message.modified_micros = require_timestamp(document.modified, 'modified')
        if document.project is not None:
            self._project(message.project, document.project)
        for i, material in enumerate(document.materials):
            self._material(message.materials.add(), material, f"materials[{i}]")
        for i, model in enumerate(document.models):
            self._model(message.models.add(), model, f"models[{i}]")

        try:
            data = message.SerializeToString(deterministic=True)
        except ProtobufEncodeError as e:
            raise SchemaMismatch(f"Message rejected by the wire schema: {e}") from e
        logger.debug(f"Encoded document {document.id} as wire binary ({len(data)} bytes)")
        return data

    @staticmethod
    def _set(message, name: str, value):
        if value is not None:
            setattr(message, name, value)

    def _project(self, message, project: Project):
        message.name = require_string(project.name, 'project.name')
        for name in ('client', 'contractor', 'location', 'country', 'description'):
            self._set(message, name, require_string(getattr(project, name), f"project.{name}", True))

    def _material(self, message, material: Material, path: str):
        message.id = require_string(material.id, f"{path}.id")
        message.name = require_string(material.name, f"{path}.name")
        message.kind = _wire_number(material.kind, MaterialKind, f"{path}.kind")
        self._set(message, 'description',
                  require_string(material.description, f"{path}.description", True))
        for i, prop in enumerate(material.properties):
            self._property(message.properties.add(), prop, f"{path}.properties[{i}]")

    def _property(self, message, prop: PropertyValue, path: str):
        if isinstance(prop.code, StandardParameterCode):
            message.standard_code = _wire_number(prop.code, StandardParameterCode, f"{path}.code")
        else:
            message.custom_code = require_string(prop.code, f"{path}.code")

        value = prop.value
        if isinstance(value, NumericValue):
            message.numeric = require_number(value.value, f"{path}.value")
        elif isinstance(value, TextValue):
            message.text = require_string(value.value, f"{path}.value")
        elif isinstance(value, RangeValue):
            message.range.min = require_number(value.min, f"{path}.value.min")
            message.range.max = require_number(value.max, f"{path}.value.max")
        else:
            raise SchemaMismatch(f"Unknown property value kind {type(value).__name__}",
                                 path=f"{path}.value")

        self._set(message, 'unit', require_string(prop.unit, f"{path}.unit", True))
        if prop.source is not None:
            message.source = _wire_number(prop.source, PropertySource, f"{path}.source")
        self._set(message, 'test_method',
                  require_string(prop.test_method, f"{path}.testMethod", True))
        self._set(message, 'case_id', require_string(prop.case_id, f"{path}.caseId", True))

    def _model(self, message, model: GroundModel, path: str):
        message.id = require_string(model.id, f"{path}.id")
        message.name = require_string(model.name, f"{path}.name")
        message.model_type = _wire_number(model.model_type, ModelType, f"{path}.modelType")
        message.dimension = _wire_number(model.dimension, ModelDimension, f"{path}.dimension")
        self._set(message, 'description',
                  require_string(model.description, f"{path}.description", True))
        self._set(message, 'crs', require_string(model.crs, f"{path}.crs", True))
        if model.boundary is not None:
            b = model.boundary
            bpath = f"{path}.boundary"
            message.boundary.SetInParent()
            self._set(message.boundary, 'min_x', require_number(b.min_x, f"{bpath}.minX", True))
            self._set(message.boundary, 'max_x', require_number(b.max_x, f"{bpath}.maxX", True))
            self._set(message.boundary, 'min_y', require_number(b.min_y, f"{bpath}.minY", True))
            self._set(message.boundary, 'max_y', require_number(b.max_y, f"{bpath}.maxY", True))
            self._set(message.boundary, 'top_elevation',
                      require_number(b.top_elevation, f"{bpath}.topElevation", True))
            self._set(message.boundary, 'bottom_elevation',
                      require_number(b.bottom_elevation, f"{bpath}.bottomElevation", True))
        for i, material in enumerate(model.materials):
            self._material(message.materials.add(), material, f"{path}.materials[{i}]")
        for i, component in enumerate(model.components):
            self._component(message.components.add(), component, f"{path}.components[{i}]")

    def _component(self, message, component: ModelComponent, path: str):
        message.id = require_string(component.id, f"{path}.id")
        message.name = require_string(component.name, f"{path}.name")
        message.component_type = _wire_number(component.component_type, ComponentType,
                                              f"{path}.componentType")
        message.material_ref = require_string(component.material_ref, f"{path}.materialRef")
        if component.geometry is not None:
            self._geometry(message.geometry, component.geometry, f"{path}.geometry")
        self._set(message, 'top_elevation',
                  require_number(component.top_elevation, f"{path}.topElevation", True))
        self._set(message, 'bottom_elevation',
                  require_number(component.bottom_elevation, f"{path}.bottomElevation", True))
        attributes = require_attributes(component.attributes, f"{path}.attributes")
        for key in sorted(attributes):
            attribute = message.attributes.add()
            attribute.key = key
            attribute.json = attribute_to_text(attributes[key], f"{path}.attributes.{key}")

    def _geometry(self, message, geometry, path: str):
        if isinstance(geometry, Surface):
            message.surface.mesh = geometry.mesh
            message.surface.vertex_count = require_integer(
                geometry.vertex_count, f"{path}.vertexCount", 0, UINT32_MAX)
            message.surface.face_count = require_integer(
                geometry.face_count, f"{path}.faceCount", 0, UINT32_MAX)
            if geometry.bounds is not None:
                message.surface.bounds.min.extend(_flatten([geometry.bounds.min]))
                message.surface.bounds.max.extend(_flatten([geometry.bounds.max]))
        elif isinstance(geometry, Point):
            message.point.xyz.extend(_flatten([geometry.coordinates]))
        elif isinstance(geometry, LineString):
            message.line_string.xyz.extend(_flatten(geometry.coordinates))
        elif isinstance(geometry, Polygon):
            for ring in geometry.rings:
                message.polygon.rings.add().xyz.extend(_flatten(ring))
        else:
            raise SchemaMismatch(f"Unknown geometry type {type(geometry).__name__}", path=path)

        if not isinstance(geometry, Surface):
            self._set(message, 'wkt', require_string(geometry.wkt, f"{path}.wkt", True))
            self._set(message, 'wkb', geometry.wkb)
        self._set(message, 'crs', require_string(geometry.crs, f"{path}.crs", True))


class WireBinaryDecoder:
    """Reads documents from the wire binary format."""

    def __init__(self):
        self.classes = wire_message_classes()

    def decode(self, data: bytes) -> Document:
        """
        Decode a document.

        Raises:
            MalformedInput: If the payload cannot be parsed or lacks required fields
        """
        message = self.classes["Document"]()
        try:
            message.ParseFromString(bytes(data))
        except (DecodeError, RuntimeError, ValueError) as e:
            logger.error(f"Wire binary decode failed: {e}")
            raise MalformedInput(f"Cannot parse wire binary payload: {e}",
                                 context={"size": len(data)}) from e

        try:
            document = self._document(message)
        except MalformedInput:
            raise
        except (AgsiError, ValueError, TypeError) as e:
            text = e.message if isinstance(e, AgsiError) else str(e)
            raise MalformedInput(f"Cannot convert wire message: {text}") from e
        logger.debug(f"Decoded document {document.id} from wire binary")
        return document

    @staticmethod
    def _require(message, message_name: str, path: str):
        for name in REQUIRED_FIELDS.get(message_name, ()):
            if not message.HasField(name):
                field_path = f"{path}.{name}" if path else name
                raise MalformedInput(f"{message_name} is missing required field {name}",
                                     path=field_path)

    @staticmethod
    def _optional(message, name: str) -> Optional[Any]:
        return getattr(message, name) if message.HasField(name) else None

    def _document(self, message) -> Document:
        self._require(message, "Document", "")
        try:
            version = SchemaVersion.parse(message.schema_version)
        except ValueError as e:
            raise MalformedInput(str(e), path="schemaVersion") from e
        if not LONG_MIN <= message.created_micros <= LONG_MAX:
            raise MalformedInput("Creation timestamp out of range", path="created")

        modified = self._optional(message, 'modified_micros')
        project = None
        if message.HasField('project'):
            self._require(message.project, "Project", "project")
            project = Project(**{
                name: self._optional(message.project, name)
                for name in ('name', 'client', 'contractor', 'location', 'country', 'description')
            })

        return Document(
            id=message.id,
            name=self._optional(message, 'name'),
            file_name=self._optional(message, 'file_name'),
            author=self._optional(message, 'author'),
            software=self._optional(message, 'software'),
            schema_version=version,
            created=from_epoch_micros(message.created_micros),
            modified=None if modified is None else from_epoch_micros(modified),
            project=project,
            materials=[self._material(m, f"materials[{i}]")
                       for i, m in enumerate(message.materials)],
            models=[self._model(m, f"models[{i}]") for i, m in enumerate(message.models)],
        )

    def _material(self, message, path: str) -> Material:
        self._require(message, "Material", path)
        return Material(
            id=message.id,
            name=message.name,
            kind=_domain_member(message.kind, MaterialKind, f"{path}.kind"),
            description=self._optional(message, 'description'),
            properties=[self._property(p, f"{path}.properties[{i}]")
                        for i, p in enumerate(message.properties)],
        )

    def _property(self, message, path: str) -> PropertyValue:
        which_code = message.WhichOneof('code')
        if which_code == 'standard_code':
            code = _domain_member(message.standard_code, StandardParameterCode, f"{path}.code")
        elif which_code == 'custom_code':
            code = message.custom_code
        else:
            raise MalformedInput("Property value has no parameter code", path=f"{path}.code")

        which_value = message.WhichOneof('value')
        if which_value == 'numeric':
            value = NumericValue(message.numeric)
        elif which_value == 'text':
            value = TextValue(message.text)
        elif which_value == 'range':
            if not (message.range.HasField('min') and message.range.HasField('max')):
                raise MalformedInput("Range value needs both min and max", path=f"{path}.value")
            value = RangeValue(message.range.min, message.range.max)
        else:
            raise MalformedInput("Property value has no value", path=f"{path}.value")

        source = None
        if message.HasField('source'):
            source = _domain_member(message.source, PropertySource, f"{path}.source")
        return PropertyValue(
            code=code,
            value=value,
            unit=self._optional(message, 'unit'),
            source=source,
            test_method=self._optional(message, 'test_method'),
            case_id=self._optional(message, 'case_id'),
        )

    def _model(self, message, path: str) -> GroundModel:
        self._require(message, "GroundModel", path)
        boundary = None
        if message.HasField('boundary'):
            b = message.boundary
            boundary = ModelBoundary(
                self._optional(b, 'min_x'), self._optional(b, 'max_x'),
                self._optional(b, 'min_y'), self._optional(b, 'max_y'),
                self._optional(b, 'top_elevation'), self._optional(b, 'bottom_elevation'),
            )
        return GroundModel(
            id=message.id,
            name=message.name,
            model_type=_domain_member(message.model_type, ModelType, f"{path}.modelType"),
            dimension=_domain_member(message.dimension, ModelDimension, f"{path}.dimension"),
            description=self._optional(message, 'description'),
            crs=self._optional(message, 'crs'),
            boundary=boundary,
            materials=[self._material(m, f"{path}.materials[{i}]")
                       for i, m in enumerate(message.materials)],
            components=[self._component(c, f"{path}.components[{i}]")
                        for i, c in enumerate(message.components)],
        )

    def _component(self, message, path: str) -> ModelComponent:
        self._require(message, "ModelComponent", path)
        geometry = None
        if message.HasField('geometry'):
            geometry = self._geometry(message.geometry, f"{path}.geometry")
        attributes: Dict[str, Any] = {}
        for attribute in message.attributes:
            self._require(attribute, "Attribute", f"{path}.attributes")
            if attribute.key in attributes:
                raise MalformedInput(f"Duplicate attribute {attribute.key!r}",
                                     path=f"{path}.attributes.{attribute.key}")
            attributes[attribute.key] = attribute_from_text(
                attribute.json, f"{path}.attributes.{attribute.key}")
        return ModelComponent(
            id=message.id,
            name=message.name,
            component_type=_domain_member(message.component_type, ComponentType,
                                          f"{path}.componentType"),
            material_ref=message.material_ref,
            geometry=geometry,
            top_elevation=self._optional(message, 'top_elevation'),
            bottom_elevation=self._optional(message, 'bottom_elevation'),
            attributes=attributes,
        )

    def _geometry(self, message, path: str):
        shape = message.WhichOneof('shape')
        crs = self._optional(message, 'crs')
        wkt = self._optional(message, 'wkt')
        wkb = self._optional(message, 'wkb')
        try:
            if shape == 'surface':
                self._require(message.surface, "SurfaceGeometry", path)
                s = message.surface
                bounds = None
                if s.HasField('bounds'):
                    low = _triples(list(s.bounds.min), f"{path}.bounds")
                    high = _triples(list(s.bounds.max), f"{path}.bounds")
                    if len(low) != 1 or len(high) != 1:
                        raise MalformedInput("Bounds must carry one minimum and one maximum "
                                             "coordinate", path=f"{path}.bounds")
                    bounds = (low[0], high[0])
                return Surface(s.mesh, s.vertex_count, s.face_count, crs, bounds)
            if shape == 'point':
                coordinates = _triples(list(message.point.xyz), path)
                if len(coordinates) != 1:
                    raise MalformedInput("Point must carry exactly one coordinate", path=path)
                return Point(coordinates[0], wkt, wkb, crs)
            if shape == 'line_string':
                return LineString(_triples(list(message.line_string.xyz), path), wkt, wkb, crs)
            if shape == 'polygon':
                rings = [_triples(list(r.xyz), path) for r in message.polygon.rings]
                if not rings:
                    raise MalformedInput("Polygon has no rings", path=path)
                return Polygon(rings[0], tuple(rings[1:]), wkt, wkb, crs)
        except MalformedInput:
            raise
        except AgsiError as e:
            raise MalformedInput(f"Invalid geometry: {e.message}", path=path) from e
        raise MalformedInput("Geometry has no shape", path=path)


# Convenience functions
def encode_wire(document: Document) -> bytes:
    """Encode a document to the wire binary format."""
    return WireBinaryEncoder().encode(document)


def decode_wire(data: bytes) -> Document:
    """Decode a document from the wire binary format."""
    return WireBinaryDecoder().decode(data)
