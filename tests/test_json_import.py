"""
Tests for JSON import functionality.
"""

import json
import os
import tempfile

import pytest

from agsi.core.errors import MalformedInput
from agsi.core.json_export import document_to_dict, encode_document, export_material
from agsi.core.json_import import (
    DocumentImporter, decode_document, document_from_dict, format_path, import_material,
    import_document_from_json, validate_json_text,
)
from agsi.core.models import SchemaVersion
from agsi.core.parameters import StandardParameterCode


class TestDocumentImporter:
    """Test JSON import functionality."""

    @pytest.fixture
    def sample_json_data(self):
        """Hand-written document in the canonical text format."""
        return {
            'id': "IMPORT-001",
            'schemaVersion': "1.0.1",
            'created': "2023-06-15T08:00:00Z",
            'author': "Test Engineer",
            'project': {'name': "Import Test Project", 'client': "Test Client"},
            'materials': [
                {
                    'id': "MAT001",
                    'name': "Brown silty clay",
                    'kind': "SOIL",
                    'properties': [
                        {'code': "UnitWeightBulk", 'value': 19, 'source': "TESTED"},
                        {'code': "AngleFriction", 'value': {'min': 24, 'max': 28}},
                        {'code': "LocalClass", 'value': "B"},
                    ],
                },
            ],
            'models': [
                {
                    'id': "GM001",
                    'name': "Import model",
                    'modelType': "GEOTECHNICAL",
                    'dimension': "TWO_D",
                    'materials': [],
                    'components': [
                        {
                            'id': "CMP001",
                            'name': "Clay layer",
                            'componentType': "LAYER",
                            'materialRef': "MAT001",
                            'geometry': {
                                'type': "LineString",
                                'coordinates': [[0, 0, 100], [25, 0, 98.5]],
                            },
                            'topElevation': 100,
                            'bottomElevation': 95,
                        },
                    ],
                },
            ],
        }

    def test_decode_document(self, sample_json_data):
        """A hand-written document decodes into the domain model."""
        document = decode_document(json.dumps(sample_json_data))

        assert document.id == "IMPORT-001"
        assert document.schema_version == SchemaVersion(1, 0, 1)
        assert document.created.utcoffset().total_seconds() == 0
        assert document.project.client == "Test Client"

        material = document.materials[0]
        weight = material.get_property(StandardParameterCode.UNIT_WEIGHT_BULK)
        assert weight.value.value == 19.0
        assert material.get_property("AngleFriction").numeric_bounds() == (24.0, 28.0)
        assert material.get_property("LocalClass").code == "LocalClass"

        component = document.models[0].components[0]
        assert component.geometry.coordinates[1] == (25.0, 0.0, 98.5)
        assert component.thickness == 5.0

    def test_round_trip(self, sample_document):
        """Decoding the canonical text yields an equal document."""
        decoded = decode_document(encode_document(sample_document))
        assert decoded == sample_document
        assert encode_document(decoded) == encode_document(sample_document)

    def test_bytes_input(self, sample_document):
        """UTF-8 bytes are accepted."""
        data = encode_document(sample_document).encode('utf-8')
        assert DocumentImporter().decode(data) == sample_document

    def test_syntax_error_reports_position(self):
        """Syntax errors carry line, column and character offset."""
        text = '{\n  "id": "DOC",\n  "materials": [,]\n}'
        with pytest.raises(MalformedInput) as excinfo:
            decode_document(text)
        error = excinfo.value
        assert error.offset == text.index(',]')
        assert error.context['line'] == 3

    def test_invalid_utf8(self):
        """Undecodable bytes are malformed input."""
        with pytest.raises(MalformedInput):
            decode_document(b'{"id": "\xff"}')

    def test_schema_violation_reports_path(self, sample_json_data):
        """Schema failures name the offending field."""
        sample_json_data['models'][0]['components'][0]['componentType'] = "SLAB"
        with pytest.raises(MalformedInput) as excinfo:
            decode_document(json.dumps(sample_json_data))
        assert excinfo.value.path == "models[0].components[0].componentType"

    def test_missing_required_field(self, sample_json_data):
        """A missing required field is malformed input."""
        del sample_json_data['created']
        with pytest.raises(MalformedInput):
            decode_document(json.dumps(sample_json_data))

    def test_unknown_field_is_rejected(self, sample_json_data):
        """Fields outside the format are rejected."""
        sample_json_data['materials'][0]['colour'] = "brown"
        with pytest.raises(MalformedInput) as excinfo:
            decode_document(json.dumps(sample_json_data))
        assert excinfo.value.path.startswith("materials[0]")

    @pytest.mark.parametrize("literal", ["NaN", "Infinity", "-Infinity", "1e999"])
    def test_non_finite_numbers_are_rejected(self, sample_json_data, literal):
        """Non-finite numbers are malformed input located by character offset."""
        text = json.dumps(sample_json_data).replace('"value": 19', f'"value": {literal}')
        with pytest.raises(MalformedInput) as excinfo:
            decode_document(text)
        assert excinfo.value.offset == text.index(f'"value": {literal}') + len('"value": ')

    def test_constant_inside_string_is_text(self, sample_json_data):
        """The same characters inside a string are ordinary text."""
        sample_json_data['author'] = "NaN"
        sample_json_data['comments'] = 'Infinity "quoted"'
        document = decode_document(json.dumps(sample_json_data))
        assert document.author == "NaN"

    def test_offset_skips_constant_spelled_in_string(self):
        """The reported offset is that of the number, not of earlier text."""
        text = '{"id": "NaN", "x": NaN}'
        with pytest.raises(MalformedInput) as excinfo:
            decode_document(text)
        assert excinfo.value.offset == text.rindex("NaN")

    def test_missing_id_without_schema_validation(self, sample_json_data):
        """Conversion failures name the field even when the schema is skipped."""
        del sample_json_data['id']
        with pytest.raises(MalformedInput) as excinfo:
            decode_document(json.dumps(sample_json_data), validate_schema=False)
        assert excinfo.value.path == "id"

    def test_missing_component_field_without_schema_validation(self, sample_json_data):
        """Nested conversion failures carry the nested path."""
        del sample_json_data['models'][0]['components'][0]['materialRef']
        with pytest.raises(MalformedInput) as excinfo:
            decode_document(json.dumps(sample_json_data), validate_schema=False)
        assert excinfo.value.path == "models[0].components[0]"

    def test_wrong_container_types_without_schema_validation(self, sample_json_data):
        """Lists and objects of the wrong shape are malformed input."""
        sample_json_data['models'][0]['components'] = {'id': "CMP001"}
        with pytest.raises(MalformedInput) as excinfo:
            decode_document(json.dumps(sample_json_data), validate_schema=False)
        assert excinfo.value.path == "models[0].components"

        sample_json_data['models'] = ["GM001"]
        with pytest.raises(MalformedInput) as excinfo:
            decode_document(json.dumps(sample_json_data), validate_schema=False)
        assert excinfo.value.path == "models[0]"

    def test_bad_property_value_without_schema_validation(self, sample_json_data):
        """Property values are converted under their own path."""
        sample_json_data['materials'][0]['properties'][1]['value'] = {'min': 24}
        with pytest.raises(MalformedInput) as excinfo:
            decode_document(json.dumps(sample_json_data), validate_schema=False)
        assert excinfo.value.path == "materials[0].properties[1].value"

    def test_attributes_and_bounds(self, sample_json_data):
        """Component attributes and surface bounds are read back."""
        component = sample_json_data['models'][0]['components'][0]
        component['attributes'] = {'borehole': "BH01", 'depths': [1.5, 3]}
        component['geometry'] = {
            'type': "Surface", 'mesh': "", 'vertexCount': 0, 'faceCount': 0,
            'bounds': {'min': [0, 0, 90], 'max': [25, 10, 100]},
        }
        document = decode_document(json.dumps(sample_json_data))
        decoded = document.models[0].components[0]
        assert decoded.attributes == {'borehole': "BH01", 'depths': [1.5, 3]}
        assert decoded.geometry.bounds.max == (25.0, 10.0, 100.0)

    def test_reversed_bounds(self, sample_json_data):
        """A bounding box whose minimum exceeds its maximum is rejected."""
        sample_json_data['models'][0]['components'][0]['geometry'] = {
            'type': "Surface", 'mesh': "", 'vertexCount': 0, 'faceCount': 0,
            'bounds': {'min': [5, 0, 0], 'max': [0, 0, 0]},
        }
        with pytest.raises(MalformedInput) as excinfo:
            decode_document(json.dumps(sample_json_data))
        assert excinfo.value.path == "models[0].components[0].geometry"

    def test_malformed_bounds_fail_schema(self, sample_json_data):
        """Bounds corners must be coordinate triples."""
        sample_json_data['models'][0]['components'][0]['geometry'] = {
            'type': "Surface", 'mesh': "", 'vertexCount': 0, 'faceCount': 0,
            'bounds': {'min': [0, 0], 'max': [1, 1, 1]},
        }
        with pytest.raises(MalformedInput) as excinfo:
            decode_document(json.dumps(sample_json_data))
        assert excinfo.value.path.startswith("models[0].components[0].geometry")

    def test_bad_schema_version(self, sample_json_data):
        """Version strings must be major.minor.patch."""
        sample_json_data['schemaVersion'] = "one"
        with pytest.raises(MalformedInput) as excinfo:
            decode_document(json.dumps(sample_json_data))
        assert excinfo.value.path == "schemaVersion"

    def test_bad_base64_payload(self, sample_document):
        """Undecodable base64 is reported at the geometry path."""
        data = document_to_dict(sample_document)
        data['models'][0]['components'][0]['geometry']['wkb'] = "%%%"
        with pytest.raises(MalformedInput) as excinfo:
            decode_document(json.dumps(data))
        assert excinfo.value.path == "models[0].components[0].geometry"

    def test_document_from_dict(self, sample_document):
        """Already parsed dictionaries are accepted."""
        assert document_from_dict(document_to_dict(sample_document)) == sample_document

    def test_material_round_trip(self, london_clay):
        """Standalone materials round trip through the text format."""
        assert import_material(export_material(london_clay)) == london_clay

    def test_material_schema_violation(self):
        """A standalone material is validated against the material schema."""
        with pytest.raises(MalformedInput) as excinfo:
            import_material('{"id": "MAT001", "kind": "SOIL", "properties": []}')
        assert "name" in str(excinfo.value)

    def test_import_from_file(self, sample_document):
        """Documents are read back from files."""
        with tempfile.TemporaryDirectory() as temp_dir:
            path = os.path.join(temp_dir, "document.json")
            with open(path, 'w', encoding='utf-8') as f:
                f.write(encode_document(sample_document))
            assert import_document_from_json(path) == sample_document


class TestValidateJsonText:
    """Test schema checks without building a document."""

    def test_valid_text(self, sample_document):
        """Canonical output is schema-valid."""
        is_valid, errors = validate_json_text(encode_document(sample_document))
        assert is_valid
        assert errors == []

    def test_invalid_text_lists_errors(self):
        """Every violation is listed with its location."""
        is_valid, errors = validate_json_text('{"id": 5, "materials": []}')
        assert not is_valid
        assert any("id" in message for message in errors)
        assert len(errors) >= 3

    def test_syntax_error(self):
        """Unparseable text is reported, not raised."""
        is_valid, errors = validate_json_text("{")
        assert not is_valid
        assert len(errors) == 1

    def test_format_path(self):
        """Paths render keys and indexes."""
        assert format_path(['models', 0, 'components', 2, 'id']) == "models[0].components[2].id"
        assert format_path([]) == ""
