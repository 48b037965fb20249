"""
Tests for the document validation engine.
"""

from datetime import datetime, timezone

import pytest

from agsi.core.geometry import LineString, Point, Surface
from agsi.core.models import (
    ComponentType, Document, GroundModel, Material, MaterialKind, ModelBoundary,
    ModelComponent, PropertyValue, SchemaVersion,
)
from agsi.core.parameters import StandardParameterCode
from agsi.core.validators import (
    AgsiValidator, IssueKind, ValidationSeverity, validate, validate_material,
)


def _document_with_component(component, materials=None):
    document = Document(id="DOC", created=datetime(2024, 1, 1, tzinfo=timezone.utc))
    for material in materials or [Material("MAT001", "Clay", MaterialKind.SOIL)]:
        document.add_material(material)
    model = document.add_model(GroundModel("GM1", "Model"))
    model.add_component(component)
    return document


class TestValidateCompleteDocuments:
    """Clean documents pass every tier; single defects are reported at their path."""

    def test_minimal_document_is_clean(self, minimal_document):
        """One material and no models: no errors and no warnings."""
        result = validate(minimal_document)
        assert result.is_valid()
        assert not result.errors
        assert not result.warnings

    def test_sample_document_is_clean(self, sample_document):
        """The full sample document passes every tier."""
        result = validate(sample_document)
        assert result.is_valid(), result.summary()
        assert not result.has_warnings(), result.summary()

    def test_dangling_material_reference(self):
        """An unresolved reference is exactly one referential error."""
        document = Document(id="DOC")
        model = document.add_model(GroundModel("GM1", "Model"))
        model.add_component(ModelComponent("CMP001", "Layer", ComponentType.LAYER, "MAT999",
                                           Point((0, 0, 0))))

        result = validate(document)

        assert not result.is_valid()
        assert len(result.errors) == 1
        issue = result.errors[0]
        assert issue.kind is IssueKind.REFERENTIAL_VIOLATION
        assert issue.path == "models[0].components[0].materialRef"
        assert "MAT999" in issue.message and "CMP001" in issue.message
        assert issue.entity_id == "CMP001"

    def test_inverted_elevations(self):
        """Top below bottom is a structural error naming the component."""
        component = ModelComponent("CMP001", "Layer", ComponentType.LAYER, "MAT001",
                                   Point((0, 0, 0)), top_elevation=5.0, bottom_elevation=10.0)
        result = validate(_document_with_component(component))

        structural = result.issues_of(IssueKind.STRUCTURAL_VIOLATION)
        assert len(structural) == 1
        assert structural[0].severity is ValidationSeverity.ERROR
        assert "CMP001" in structural[0].message
        assert structural[0].path == "models[0].components[0].topElevation"

    def test_implausible_friction_angle(self):
        """A friction angle of 95 degrees is a warning, not an error."""
        document = Document(id="DOC")
        material = document.add_material(Material("MAT001", "Sand", MaterialKind.SOIL))
        material.add_property(PropertyValue.numeric(StandardParameterCode.ANGLE_FRICTION, 95.0))

        result = validate(document)

        assert result.is_valid()
        assert len(result.warnings) == 1
        warning = result.warnings[0]
        assert warning.kind is IssueKind.PARAMETER_OUT_OF_RANGE
        assert "MAT001" in warning.message and "AngleFriction" in warning.message
        assert warning.path == "materials[0].properties[0].value"

    def test_validation_does_not_modify_document(self, sample_document):
        """Validation is read-only."""
        before = repr(sample_document)
        validate(sample_document)
        assert repr(sample_document) == before


class TestStructuralTier:
    """Test required fields, bounds and enumerations."""

    def test_empty_document_id(self):
        """The document identifier must not be empty."""
        result = validate(Document(id=""))
        assert [i.path for i in result.errors] == ["id"]

    def test_unknown_enumeration_value(self):
        """Kind strings outside the enumeration are structural errors."""
        document = Document(id="DOC")
        document.add_material(Material("MAT001", "Clay", "Clayish"))
        result = validate(document)
        assert [i.path for i in result.errors] == ["materials[0].kind"]

    def test_overlong_name(self):
        """Names beyond the length bound are rejected."""
        document = Document(id="DOC", name="x" * 501)
        result = validate(document)
        assert result.errors[0].path == "name"

    def test_range_bounds_reversed(self):
        """A range with min above max is an error."""
        material = Material("MAT001", "Clay", MaterialKind.SOIL)
        material.add_property(PropertyValue.range("Cohesion", 10.0, 2.0))
        result = validate_material(material)
        assert not result.is_valid()
        assert result.errors[0].path == "material.properties[0].value"

    def test_non_finite_value(self):
        """NaN values are structural errors."""
        material = Material("MAT001", "Clay", MaterialKind.SOIL)
        material.add_property(PropertyValue.numeric("Cohesion", float("nan")))
        result = validate_material(material)
        assert result.issues_of(IssueKind.STRUCTURAL_VIOLATION)

    def test_component_without_geometry(self):
        """Every component needs a geometry."""
        component = ModelComponent("CMP001", "Layer", ComponentType.LAYER, "MAT001", None)
        result = validate(_document_with_component(component))
        assert [i.path for i in result.errors] == ["models[0].components[0].geometry"]

    def test_embedded_text_of_wrong_kind(self):
        """Embedded WKT must describe the same geometry kind."""
        geometry = Point((1, 2, 3), wkt="LINESTRING Z (1 2 3, 4 5 6)")
        component = ModelComponent("CMP001", "Borehole", ComponentType.LAYER, "MAT001", geometry)
        result = validate(_document_with_component(component))
        assert [i.path for i in result.errors] == ["models[0].components[0].geometry.wkt"]

    def test_undecodable_embedded_binary(self):
        """Embedded WKB that cannot be decoded is an error."""
        geometry = LineString(((0, 0, 0), (1, 1, 1)), wkb=b"\x00\x01")
        component = ModelComponent("CMP001", "Line", ComponentType.LAYER, "MAT001", geometry)
        result = validate(_document_with_component(component))
        assert [i.path for i in result.errors] == ["models[0].components[0].geometry.wkb"]

    def test_surface_size_mismatch(self):
        """Mesh payloads grossly inconsistent with their counts are errors."""
        component = ModelComponent("CMP001", "Surface", ComponentType.BOUNDARY, "MAT001",
                                   Surface(b"v 0 0 0\n", 5000, 10000))
        result = validate(_document_with_component(component))
        assert [i.path for i in result.errors] == ["models[0].components[0].geometry.mesh"]

    def test_boundary_limits_reversed(self):
        """Boundary minimums must not exceed maximums."""
        document = Document(id="DOC")
        document.add_model(GroundModel("GM1", "Model",
                                       boundary=ModelBoundary(min_x=10.0, max_x=0.0)))
        result = validate(document)
        assert [i.path for i in result.errors] == ["models[0].boundary.minX"]

    def test_modified_before_created(self):
        """A modification time before creation is a warning."""
        document = Document(id="DOC", created=datetime(2024, 6, 1, tzinfo=timezone.utc),
                            modified=datetime(2024, 5, 1, tzinfo=timezone.utc))
        result = validate(document)
        assert result.is_valid()
        assert [i.kind for i in result.warnings] == [IssueKind.TIMESTAMP_ORDER]

    def test_text_not_encodable_as_utf8(self):
        """Lone surrogates in strings are structural errors."""
        document = Document(id="DOC", author="Engineer \udc80")
        result = validate(document)
        assert [i.path for i in result.errors] == ["author"]
        assert "UTF-8" in result.errors[0].message

    def test_invalid_attribute(self):
        """Attributes without a JSON form are reported under the component."""
        component = ModelComponent("CMP001", "Layer", ComponentType.LAYER, "MAT001",
                                   Point((0, 0, 0))).with_attribute("sampled", {1, 2})
        result = validate(_document_with_component(component))
        assert [i.path for i in result.errors] == ["models[0].components[0].attributes.sampled"]

    def test_non_finite_surface_bounds(self):
        """Surface bounds must be finite."""
        surface = Surface(b"v 0 0 0\nv 1 0 0\nv 0 1 0\nf 1 2 3\n", 3, 1,
                          bounds=((0, 0, 0), (1, 1, float("inf"))))
        component = ModelComponent("CMP001", "Surface", ComponentType.BOUNDARY, "MAT001", surface)
        result = validate(_document_with_component(component))
        assert [i.path for i in result.errors] == ["models[0].components[0].geometry.bounds"]


class TestReferentialTier:
    """Test reference resolution and identifier uniqueness."""

    def test_model_local_reference_resolves(self):
        """References resolve against model-local materials."""
        document = Document(id="DOC")
        model = document.add_model(GroundModel("GM1", "Model"))
        model.add_material(Material("MAT101", "Fill", MaterialKind.FILL))
        model.add_component(ModelComponent("CMP001", "Fill", ComponentType.LAYER, "MAT101",
                                           Point((0, 0, 0))))
        assert validate(document).is_valid()

    def test_duplicate_model_ids(self):
        """Duplicate model identifiers are reported once with both locations."""
        document = Document(id="DOC")
        document.add_model(GroundModel("GM1", "First"))
        document.add_model(GroundModel("GM1", "Second"))
        result = validate(document)
        assert len(result.errors) == 1
        issue = result.errors[0]
        assert issue.kind is IssueKind.REFERENTIAL_VIOLATION
        assert issue.path == "models[1].id"
        assert "models[0]" in issue.message

    def test_duplicate_component_ids(self):
        """Component identifiers are unique within a model."""
        document = Document(id="DOC")
        document.add_material(Material("MAT001", "Clay", MaterialKind.SOIL))
        model = document.add_model(GroundModel("GM1", "Model"))
        for _ in range(3):
            model.add_component(ModelComponent("CMP001", "Layer", ComponentType.LAYER,
                                               "MAT001", Point((0, 0, 0))))
        result = validate(document)
        assert [i.path for i in result.errors] == [
            "models[0].components[1].id", "models[0].components[2].id",
        ]

    def test_conflicting_material_definitions(self):
        """The same identifier defined differently in two scopes is a warning."""
        document = Document(id="DOC")
        document.add_material(Material("MAT001", "Clay", MaterialKind.SOIL))
        model = document.add_model(GroundModel("GM1", "Model"))
        model.add_material(Material("MAT001", "Clay", MaterialKind.ROCK))
        result = validate(document)
        assert result.is_valid()
        assert [i.kind for i in result.warnings] == [IssueKind.MATERIAL_DEFINITION_CONFLICT]
        assert result.warnings[0].path == "models[0].materials[0]"

    def test_identical_material_copies_are_accepted(self):
        """Identical definitions in two scopes raise nothing."""
        document = Document(id="DOC")
        document.add_material(Material("MAT001", "Clay", MaterialKind.SOIL))
        model = document.add_model(GroundModel("GM1", "Model"))
        model.add_material(Material("MAT001", "Clay", MaterialKind.SOIL))
        result = validate(document)
        assert not result.errors and not result.warnings


class TestSemanticTier:
    """Test extents, parameter ranges, encodings and schema versions."""

    def test_component_outside_model_extent(self):
        """Elevations outside the boundary range are warnings."""
        document = Document(id="DOC")
        document.add_material(Material("MAT001", "Clay", MaterialKind.SOIL))
        model = document.add_model(GroundModel(
            "GM1", "Model", boundary=ModelBoundary(top_elevation=10.0, bottom_elevation=-10.0)))
        model.add_component(ModelComponent("CMP001", "Layer", ComponentType.LAYER, "MAT001",
                                           Point((0, 0, 0)), 12.0, -15.0))
        result = validate(document)
        assert result.is_valid()
        assert [i.path for i in result.issues_of(IssueKind.EXTENT_INCONSISTENCY)] == [
            "models[0].components[0].topElevation",
            "models[0].components[0].bottomElevation",
        ]

    def test_unit_override_skips_range_check(self):
        """A non-standard unit is reported and the range check skipped."""
        material = Material("MAT001", "Clay", MaterialKind.SOIL)
        material.add_property(PropertyValue.numeric("Cohesion", 50000.0, unit="Pa"))
        result = validate_material(material)
        assert [i.kind for i in result.warnings] == [IssueKind.NON_STANDARD_UNIT]

    def test_dimensionless_unit_spelling(self):
        """A dash is accepted as the unit of dimensionless codes."""
        material = Material("MAT001", "Clay", MaterialKind.SOIL)
        material.add_property(PropertyValue.numeric("PoissonsRatio", 0.3, unit="-"))
        result = validate_material(material)
        assert not result.warnings

    def test_range_value_outside_limits(self):
        """Range values are checked by their bounds."""
        material = Material("MAT001", "Clay", MaterialKind.SOIL)
        material.add_property(PropertyValue.range("PoissonsRatio", 0.2, 0.7))
        result = validate_material(material)
        assert [i.kind for i in result.warnings] == [IssueKind.PARAMETER_OUT_OF_RANGE]

    def test_custom_codes_are_not_range_checked(self):
        """Free-text codes have no plausible range."""
        material = Material("MAT001", "Clay", MaterialKind.SOIL)
        material.add_property(PropertyValue.numeric("AngleFrictionLocal", 1000.0))
        assert not validate_material(material).warnings

    def test_embedded_encoding_mismatch(self):
        """Embedded text describing other coordinates is an advisory warning."""
        geometry = Point((1.0, 2.0, 3.0), wkt="POINT Z (1 2 4)")
        component = ModelComponent("CMP001", "Borehole", ComponentType.LAYER, "MAT001", geometry)
        result = validate(_document_with_component(component))
        assert result.is_valid()
        assert [i.path for i in result.issues_of(IssueKind.GEOMETRY_ENCODING_MISMATCH)] == [
            "models[0].components[0].geometry.wkt",
        ]

    @pytest.mark.parametrize("version, severity", [
        ("2.0.0", ValidationSeverity.ERROR),
        ("1.1.0", ValidationSeverity.WARNING),
        ("1.0.9", ValidationSeverity.WARNING),
    ])
    def test_unrecognized_schema_version(self, version, severity):
        """Unknown majors are errors, unknown minor or patch releases warnings."""
        document = Document(id="DOC", schema_version=SchemaVersion.parse(version))
        issues = validate(document).issues_of(IssueKind.UNRECOGNIZED_SCHEMA_VERSION)
        assert len(issues) == 1
        assert issues[0].severity is severity

    def test_supported_older_version(self):
        """Every supported release is accepted silently."""
        document = Document(id="DOC", schema_version="1.0.0")
        result = validate(document)
        assert not result.errors and not result.warnings


class TestValidationResult:
    """Test result reporting."""

    def test_all_tiers_run_to_completion(self):
        """Errors from every tier are collected in one call."""
        document = Document(id="", schema_version=SchemaVersion(3, 0, 0))
        model = document.add_model(GroundModel("GM1", "Model"))
        model.add_component(ModelComponent("CMP001", "Layer", ComponentType.LAYER, "MAT999",
                                           Point((0, 0, 0))))
        result = validate(document)
        kinds = {issue.kind for issue in result.errors}
        assert kinds == {
            IssueKind.STRUCTURAL_VIOLATION,
            IssueKind.REFERENTIAL_VIOLATION,
            IssueKind.UNRECOGNIZED_SCHEMA_VERSION,
        }

    def test_summary_lists_issues(self):
        """The summary names the status and every issue."""
        document = Document(id="DOC")
        material = document.add_material(Material("MAT001", "Sand", MaterialKind.SOIL))
        material.add_property(PropertyValue.numeric("AngleFriction", 95.0))
        text = validate(document).summary()
        assert text.startswith("Validation passed: 0 error(s), 1 warning(s)")
        assert "PARAMETER_OUT_OF_RANGE" in text

    def test_validator_is_reusable(self, minimal_document):
        """Each run starts from an empty result."""
        validator = AgsiValidator()
        validator.validate(Document(id=""))
        assert validator.validate(minimal_document).is_valid()
