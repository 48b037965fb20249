"""
Tests for the wire binary (protobuf) format.
"""

import pytest
from google.protobuf import descriptor_pb2

from agsi.core.errors import MalformedInput, SchemaMismatch, UnsupportedField
from agsi.core.geometry import Surface
from agsi.core.models import (
    ComponentType, Document, GroundModel, Material, MaterialKind, ModelComponent,
)
from agsi.core.schemas import to_epoch_micros
from agsi.core.wire_binary import (
    WIRE_ENUMS, decode_wire, encode_wire, wire_file_descriptor, wire_message_classes,
    wire_schema_artifact, write_wire_schema,
)
from agsi.utils.constants import WIRE_PACKAGE


class TestWireBinaryEncoder:
    """Test wire binary encoding."""

    def test_round_trip(self, sample_document):
        """Decoding the encoded bytes yields an equal document."""
        assert decode_wire(encode_wire(sample_document)) == sample_document

    def test_deterministic(self, sample_document):
        """Equal documents give identical bytes."""
        assert encode_wire(sample_document) == encode_wire(sample_document)

    def test_message_fields(self, sample_document):
        """Timestamps are epoch microseconds and coordinates packed triples."""
        message = wire_message_classes()["Document"]()
        message.ParseFromString(encode_wire(sample_document))
        assert message.created_micros == to_epoch_micros(sample_document.created)
        geometry = message.models[0].components[0].geometry
        assert geometry.WhichOneof('shape') == 'point'
        assert list(geometry.point.xyz) == [10.0, 20.0, 15.0]
        polygon = message.models[0].components[2].geometry.polygon
        assert len(polygon.rings) == 2

    def test_enums_start_at_one(self, sample_document):
        """Enum value 0 is reserved for unspecified values."""
        message = wire_message_classes()["Document"]()
        message.ParseFromString(encode_wire(sample_document))
        assert message.materials[0].kind == list(MaterialKind).index(MaterialKind.SOIL) + 1

    def test_pending_fields(self, sample_document):
        """Comments and geology have no place in the wire format yet."""
        sample_document.comments = "Preliminary"
        sample_document.materials[1].geology = "Kempton Park Gravel"
        sample_document.models[0].materials[0].geology = "Made ground"

        with pytest.raises(UnsupportedField) as excinfo:
            encode_wire(sample_document)
        assert excinfo.value.paths == [
            "comments", "materials[1].geology", "models[0].materials[0].geology",
        ]

    def test_counts_outside_uint32(self):
        """Surface counts must fit the declared unsigned 32-bit fields."""
        document = Document(id="DOC")
        document.add_material(Material("MAT001", "Clay", MaterialKind.SOIL))
        model = document.add_model(GroundModel("GM1", "Model"))
        model.add_component(ModelComponent("CMP001", "Surface", ComponentType.BOUNDARY,
                                           "MAT001", Surface(b"", 2 ** 32, 0)))
        with pytest.raises(SchemaMismatch) as excinfo:
            encode_wire(document)
        assert excinfo.value.path == "models[0].components[0].geometry.vertexCount"

    def test_invalid_enumeration_value(self):
        """Values that are not enum members are schema mismatches."""
        document = Document(id="DOC")
        document.add_material(Material("MAT001", "Clay", "Clayish"))
        with pytest.raises(SchemaMismatch) as excinfo:
            encode_wire(document)
        assert excinfo.value.path == "materials[0].kind"

    def test_attributes_sorted_by_key(self, sample_document):
        """Attributes are written in key order as compact JSON text."""
        message = wire_message_classes()["Document"]()
        message.ParseFromString(encode_wire(sample_document))
        attributes = message.models[0].components[0].attributes
        assert [a.key for a in attributes] == ["borehole", "checked", "confidence", "log", "tags"]
        assert attributes[1].json == "true"
        assert attributes[4].json == '["interpreted","reviewed"]'

    def test_surface_bounds_are_packed(self, sample_document):
        """Bounds carry one minimum and one maximum triple."""
        message = wire_message_classes()["Document"]()
        message.ParseFromString(encode_wire(sample_document))
        surface = message.models[0].components[3].geometry.surface
        assert list(surface.bounds.min) == [0.0, 0.0, 0.0]
        assert list(surface.bounds.max) == [10.0, 10.0, 0.0]
        assert not message.models[0].components[0].geometry.HasField('surface')


class TestWireBinaryDecoder:
    """Test wire binary decoding failures."""

    def test_garbage(self):
        """Unparseable bytes are malformed input."""
        with pytest.raises(MalformedInput):
            decode_wire(b"\xff\xff\xff\xff")

    def test_missing_required_fields(self):
        """An empty message lacks the required document fields."""
        with pytest.raises(MalformedInput) as excinfo:
            decode_wire(b"")
        assert excinfo.value.path == "id"

    def test_unspecified_enum_value(self, minimal_document):
        """The reserved zero value is rejected."""
        message = wire_message_classes()["Document"]()
        message.ParseFromString(encode_wire(minimal_document))
        message.materials[0].kind = 0
        with pytest.raises(MalformedInput) as excinfo:
            decode_wire(message.SerializeToString())
        assert excinfo.value.path == "materials[0].kind"

    def test_coordinate_count(self, sample_document):
        """Coordinate arrays must hold whole triples."""
        message = wire_message_classes()["Document"]()
        message.ParseFromString(encode_wire(sample_document))
        message.models[0].components[1].geometry.line_string.xyz.append(1.0)
        with pytest.raises(MalformedInput) as excinfo:
            decode_wire(message.SerializeToString())
        assert excinfo.value.path == "models[0].components[1].geometry"

    def test_duplicate_attribute_key(self, sample_document):
        """An attribute key may appear only once per component."""
        message = wire_message_classes()["Document"]()
        message.ParseFromString(encode_wire(sample_document))
        duplicate = message.models[0].components[0].attributes.add()
        duplicate.key, duplicate.json = "borehole", '"BH02"'
        with pytest.raises(MalformedInput) as excinfo:
            decode_wire(message.SerializeToString())
        assert excinfo.value.path == "models[0].components[0].attributes.borehole"

    def test_attribute_text_must_be_json(self, sample_document):
        """Attribute values that are not JSON text are rejected by key."""
        message = wire_message_classes()["Document"]()
        message.ParseFromString(encode_wire(sample_document))
        message.models[0].components[3].attributes[0].json = "NaN"
        with pytest.raises(MalformedInput) as excinfo:
            decode_wire(message.SerializeToString())
        assert excinfo.value.path == "models[0].components[3].attributes.source"

    def test_bounds_need_one_triple_each(self, sample_document):
        """Bounds with extra coordinates are malformed input."""
        message = wire_message_classes()["Document"]()
        message.ParseFromString(encode_wire(sample_document))
        message.models[0].components[3].geometry.surface.bounds.max.extend([1.0, 2.0, 3.0])
        with pytest.raises(MalformedInput) as excinfo:
            decode_wire(message.SerializeToString())
        assert excinfo.value.path == "models[0].components[3].geometry.bounds"


class TestWireSchema:
    """Test the distributed schema artifact."""

    def test_descriptor(self):
        """Every domain enumeration and message is declared."""
        descriptor = wire_file_descriptor()
        assert descriptor.package == WIRE_PACKAGE
        assert descriptor.syntax == "proto2"
        assert {e.name for e in descriptor.enum_type} == {name for name, _, _ in WIRE_ENUMS}
        assert "Document" in {m.name for m in descriptor.message_type}

    def test_artifact_is_a_descriptor_set(self):
        """The artifact parses as a FileDescriptorSet."""
        descriptor_set = descriptor_pb2.FileDescriptorSet()
        descriptor_set.ParseFromString(wire_schema_artifact())
        assert len(descriptor_set.file) == 1
        assert descriptor_set.file[0] == wire_file_descriptor()

    def test_write_schema(self, tmp_path):
        """The artifact can be written to disk."""
        path = write_wire_schema(tmp_path / "agsi.pb")
        assert path.read_bytes() == wire_schema_artifact()
