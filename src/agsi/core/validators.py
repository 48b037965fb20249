"""
Validation engine for AGSi documents.

Three tiers run in a fixed order over a fully constructed document:
structural (required fields, bounds, enumeration membership), referential
(material references resolve, identifiers are unique) and semantic/schema
(extent consistency, plausible parameter ranges, embedded geometry
encodings, schema version). Every tier always runs to completion so a single
call reports every problem. The document is never modified.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Type

from agsi.core.errors import GeometryError, SchemaMismatch
from agsi.core.geometry import GEOMETRY_TYPES, Surface
from agsi.core.geometry_codec import (
    check_surface_payload, coordinates_finite, decode_binary, decode_text, same_shape,
)
from agsi.core.models import (
    ComponentType, Document, GroundModel, Material, MaterialKind, ModelComponent,
    ModelDimension, ModelType, NumericValue, PropertySource, PropertyValue, RangeValue,
    SchemaVersion, TextValue, is_finite_number,
)
from agsi.core.parameters import StandardParameterCode, code_id, standard_unit
from agsi.core.schemas import is_utf8_text, require_attributes
from agsi.utils.constants import (
    FLOATING_POINT_TOLERANCE, MAX_ID_LENGTH, MAX_NAME_LENGTH, MAX_TEXT_LENGTH,
    PARAMETER_RANGES, SUPPORTED_SCHEMA_VERSIONS,
)

logger = logging.getLogger(__name__)

# Unit spellings accepted for dimensionless standard parameters
DIMENSIONLESS_UNITS = ("", "-")


class ValidationSeverity(Enum):
    """Validation issue severity levels."""
    WARNING = "warning"
    ERROR = "error"


class IssueKind(Enum):
    """Machine-readable kind of a validation issue."""
    STRUCTURAL_VIOLATION = "STRUCTURAL_VIOLATION"
    REFERENTIAL_VIOLATION = "REFERENTIAL_VIOLATION"
    UNRECOGNIZED_SCHEMA_VERSION = "UNRECOGNIZED_SCHEMA_VERSION"
    EXTENT_INCONSISTENCY = "EXTENT_INCONSISTENCY"
    PARAMETER_OUT_OF_RANGE = "PARAMETER_OUT_OF_RANGE"
    NON_STANDARD_UNIT = "NON_STANDARD_UNIT"
    GEOMETRY_ENCODING_MISMATCH = "GEOMETRY_ENCODING_MISMATCH"
    MATERIAL_DEFINITION_CONFLICT = "MATERIAL_DEFINITION_CONFLICT"
    TIMESTAMP_ORDER = "TIMESTAMP_ORDER"


@dataclass
class ValidationIssue:
    """Single finding of the validator."""
    kind: IssueKind
    severity: ValidationSeverity
    path: str
    message: str
    entity_id: Optional[str] = None

    def __str__(self) -> str:
        return f"[{self.kind.value}] {self.path}: {self.message}"


@dataclass
class ValidationResult:
    """Errors and warnings found in one validation run."""
    errors: List[ValidationIssue] = field(default_factory=list)
    warnings: List[ValidationIssue] = field(default_factory=list)

    def is_valid(self) -> bool:
        """True iff no errors were found (warnings never affect validity)."""
        return not self.errors

    def has_warnings(self) -> bool:
        return bool(self.warnings)

    @property
    def issues(self) -> List[ValidationIssue]:
        return self.errors + self.warnings

    def issues_of(self, kind: IssueKind) -> List[ValidationIssue]:
        """All errors and warnings of one kind."""
        return [issue for issue in self.issues if issue.kind is kind]

    def summary(self) -> str:
        """Human-readable report."""
        status = "passed" if self.is_valid() else "failed"
        lines = [f"Validation {status}: {len(self.errors)} error(s), "
                 f"{len(self.warnings)} warning(s)"]
        if self.errors:
            lines.append("Errors:")
            lines.extend(f"  - {issue}" for issue in self.errors)
        if self.warnings:
            lines.append("Warnings:")
            lines.extend(f"  - {issue}" for issue in self.warnings)
        return "\n".join(lines)


class AgsiValidator:
    """Three-tier validation of AGSi documents."""

    def __init__(self):
        """Initialize validator with plausible parameter ranges."""
        self.parameter_ranges = PARAMETER_RANGES
        self.errors: List[ValidationIssue] = []
        self.warnings: List[ValidationIssue] = []
        # Embedded encodings decoded during the structural tier, by geometry path
        self._embedded: Dict[str, List[Any]] = {}

    def clear_results(self):
        """Clear previous validation results."""
        self.errors = []
        self.warnings = []
        self._embedded = {}

    def add_result(self, issue: ValidationIssue):
        """Add a validation issue to the list matching its severity."""
        if issue.severity is ValidationSeverity.ERROR:
            self.errors.append(issue)
        else:
            self.warnings.append(issue)

    def error(self, kind: IssueKind, path: str, message: str, entity_id: Optional[str] = None):
        self.add_result(ValidationIssue(kind, ValidationSeverity.ERROR, path, message, entity_id))

    def warning(self, kind: IssueKind, path: str, message: str, entity_id: Optional[str] = None):
        self.add_result(ValidationIssue(kind, ValidationSeverity.WARNING, path, message, entity_id))

    def get_result(self) -> ValidationResult:
        return ValidationResult(list(self.errors), list(self.warnings))

    def validate(self, document: Document) -> ValidationResult:
        """
        Run every tier over a document.

        Args:
            document: Document to validate (not modified)

        Returns:
            Complete validation result
        """
        self.clear_results()
        self.validate_structure(document)
        self.validate_references(document)
        self.validate_semantics(document)

        result = self.get_result()
        logger.info(
            f"Validation of document {document.id!r} finished: "
            f"{len(result.errors)} error(s), {len(result.warnings)} warning(s)"
        )
        return result

    # Tier 1: structure

    def validate_structure(self, document: Document):
        """Check required fields, bounds and enumeration membership."""
        self._check_string(document.id, "id", "Document id", MAX_ID_LENGTH, True, document.id)
        self._check_string(document.name, "name", "Document name", MAX_NAME_LENGTH)
        self._check_string(document.file_name, "fileName", "File name", MAX_NAME_LENGTH)
        self._check_string(document.author, "author", "Author", MAX_NAME_LENGTH)
        self._check_string(document.software, "software", "Software", MAX_NAME_LENGTH)
        self._check_string(document.comments, "comments", "Comments", MAX_TEXT_LENGTH)

        if not isinstance(document.schema_version, SchemaVersion):
            self.error(IssueKind.STRUCTURAL_VIOLATION, "schemaVersion",
                       f"Schema version must be a SchemaVersion, got {document.schema_version!r}")

        if not isinstance(document.created, datetime):
            self.error(IssueKind.STRUCTURAL_VIOLATION, "created", "Creation timestamp is required")
        elif isinstance(document.modified, datetime):
            if self._as_aware(document.modified) < self._as_aware(document.created):
                self.warning(IssueKind.TIMESTAMP_ORDER, "modified",
                             f"Modification time {document.modified.isoformat()} is earlier "
                             f"than creation time {document.created.isoformat()}", document.id)

        if document.project is not None:
            project = document.project
            self._check_string(project.name, "project.name", "Project name", MAX_NAME_LENGTH, True)
            for name in ('client', 'contractor', 'location', 'country'):
                self._check_string(getattr(project, name), f"project.{name}",
                                   f"Project {name}", MAX_NAME_LENGTH)
            self._check_string(project.description, "project.description",
                               "Project description", MAX_TEXT_LENGTH)

        for i, material in enumerate(document.materials):
            self.validate_material_structure(material, f"materials[{i}]")
        for i, model in enumerate(document.models):
            self._check_model(model, f"models[{i}]")

    def validate_material_structure(self, material: Material, path: str):
        """Structural checks of one material and its property values."""
        entity = material.id if isinstance(material.id, str) else None
        self._check_string(material.id, f"{path}.id", "Material id", MAX_ID_LENGTH, True, entity)
        self._check_string(material.name, f"{path}.name", "Material name",
                           MAX_NAME_LENGTH, True, entity)
        self._check_enum(material.kind, MaterialKind, f"{path}.kind", entity)
        self._check_string(material.description, f"{path}.description", "Material description",
                           MAX_TEXT_LENGTH, entity_id=entity)
        self._check_string(material.geology, f"{path}.geology", "Material geology",
                           MAX_TEXT_LENGTH, entity_id=entity)
        for j, prop in enumerate(material.properties):
            self._check_property(prop, f"{path}.properties[{j}]", entity)

    def _check_property(self, prop: PropertyValue, path: str, material_id: Optional[str]):
        if isinstance(prop.code, StandardParameterCode):
            pass
        elif isinstance(prop.code, str):
            self._check_string(prop.code, f"{path}.code", "Parameter code",
                               MAX_ID_LENGTH, True, material_id)
        else:
            self.error(IssueKind.STRUCTURAL_VIOLATION, f"{path}.code",
                       f"Parameter code must be a standard code or text, got {prop.code!r}",
                       material_id)

        value = prop.value
        if isinstance(value, NumericValue):
            if not is_finite_number(value.value):
                self.error(IssueKind.STRUCTURAL_VIOLATION, f"{path}.value",
                           f"Numeric value must be a finite number, got {value.value!r}",
                           material_id)
        elif isinstance(value, TextValue):
            self._check_string(value.value, f"{path}.value", "Text value",
                               MAX_TEXT_LENGTH, entity_id=material_id)
        elif isinstance(value, RangeValue):
            if not (is_finite_number(value.min) and is_finite_number(value.max)):
                self.error(IssueKind.STRUCTURAL_VIOLATION, f"{path}.value",
                           "Range bounds must be finite numbers", material_id)
            elif value.min > value.max:
                self.error(IssueKind.STRUCTURAL_VIOLATION, f"{path}.value",
                           f"Range minimum {value.min} exceeds maximum {value.max}", material_id)
        else:
            self.error(IssueKind.STRUCTURAL_VIOLATION, f"{path}.value",
                       f"Unknown property value kind: {type(value).__name__}", material_id)

        if prop.source is not None:
            self._check_enum(prop.source, PropertySource, f"{path}.source", material_id)
        self._check_string(prop.unit, f"{path}.unit", "Unit", MAX_ID_LENGTH, entity_id=material_id)
        self._check_string(prop.test_method, f"{path}.testMethod", "Test method",
                           MAX_NAME_LENGTH, entity_id=material_id)
        self._check_string(prop.case_id, f"{path}.caseId", "Case id",
                           MAX_ID_LENGTH, entity_id=material_id)

    def _check_model(self, model: GroundModel, path: str):
        entity = model.id if isinstance(model.id, str) else None
        self._check_string(model.id, f"{path}.id", "Model id", MAX_ID_LENGTH, True, entity)
        self._check_string(model.name, f"{path}.name", "Model name", MAX_NAME_LENGTH, True, entity)
        self._check_enum(model.model_type, ModelType, f"{path}.modelType", entity)
        self._check_enum(model.dimension, ModelDimension, f"{path}.dimension", entity)
        self._check_string(model.description, f"{path}.description", "Model description",
                           MAX_TEXT_LENGTH, entity_id=entity)
        self._check_string(model.crs, f"{path}.crs", "CRS", MAX_NAME_LENGTH, entity_id=entity)

        boundary = model.boundary
        if boundary is not None:
            bpath = f"{path}.boundary"
            for key, value in (('minX', boundary.min_x), ('maxX', boundary.max_x),
                               ('minY', boundary.min_y), ('maxY', boundary.max_y),
                               ('topElevation', boundary.top_elevation),
                               ('bottomElevation', boundary.bottom_elevation)):
                if value is not None and not is_finite_number(value):
                    self.error(IssueKind.STRUCTURAL_VIOLATION, f"{bpath}.{key}",
                               f"Boundary limit must be a finite number, got {value!r}", entity)
            self._check_order(boundary.min_x, boundary.max_x, f"{bpath}.minX",
                              "Boundary minX exceeds maxX", entity)
            self._check_order(boundary.min_y, boundary.max_y, f"{bpath}.minY",
                              "Boundary minY exceeds maxY", entity)
            self._check_order(boundary.bottom_elevation, boundary.top_elevation,
                              f"{bpath}.bottomElevation",
                              "Boundary bottom elevation is above top elevation", entity)

        for k, material in enumerate(model.materials):
            self.validate_material_structure(material, f"{path}.materials[{k}]")
        for j, component in enumerate(model.components):
            self._check_component(component, f"{path}.components[{j}]")

    def _check_component(self, component: ModelComponent, path: str):
        entity = component.id if isinstance(component.id, str) else None
        self._check_string(component.id, f"{path}.id", "Component id", MAX_ID_LENGTH, True, entity)
        self._check_string(component.name, f"{path}.name", "Component name",
                           MAX_NAME_LENGTH, True, entity)
        self._check_enum(component.component_type, ComponentType, f"{path}.componentType", entity)
        self._check_string(component.material_ref, f"{path}.materialRef", "Material reference",
                           MAX_ID_LENGTH, True, entity)

        for key, value in (('topElevation', component.top_elevation),
                           ('bottomElevation', component.bottom_elevation)):
            if value is not None and not is_finite_number(value):
                self.error(IssueKind.STRUCTURAL_VIOLATION, f"{path}.{key}",
                           f"Elevation must be a finite number, got {value!r}", entity)
        if (is_finite_number(component.top_elevation)
                and is_finite_number(component.bottom_elevation)
                and component.top_elevation < component.bottom_elevation):
            self.error(IssueKind.STRUCTURAL_VIOLATION, f"{path}.topElevation",
                       f"Component {entity}: top elevation ({component.top_elevation}) is below "
                       f"bottom elevation ({component.bottom_elevation})", entity)

        if component.geometry is None:
            self.error(IssueKind.STRUCTURAL_VIOLATION, f"{path}.geometry",
                       f"Component {entity} has no geometry", entity)
        else:
            self._check_geometry(component.geometry, f"{path}.geometry", entity)

        try:
            require_attributes(component.attributes, f"{path}.attributes")
        except SchemaMismatch as e:
            self.error(IssueKind.STRUCTURAL_VIOLATION, e.path, e.message, entity)

    def _check_geometry(self, geometry: Any, path: str, entity: Optional[str]):
        if not isinstance(geometry, GEOMETRY_TYPES):
            self.error(IssueKind.STRUCTURAL_VIOLATION, path,
                       f"Unknown geometry type: {type(geometry).__name__}", entity)
            return

        if isinstance(geometry, Surface):
            try:
                check_surface_payload(geometry.mesh, geometry.vertex_count, geometry.face_count)
            except GeometryError as e:
                self.error(IssueKind.STRUCTURAL_VIOLATION, f"{path}.mesh", e.message, entity)
            bounds = geometry.bounds
            if bounds is not None and not all(map(is_finite_number, bounds.min + bounds.max)):
                self.error(IssueKind.STRUCTURAL_VIOLATION, f"{path}.bounds",
                           "Surface bounds must be finite numbers", entity)
            return

        if not coordinates_finite(geometry):
            self.error(IssueKind.STRUCTURAL_VIOLATION, path,
                       "Geometry coordinates must be finite numbers", entity)

        decoded = []
        if geometry.wkt is not None:
            decoded.append(self._decode_embedded(geometry, 'wkt', path, entity))
        if geometry.wkb is not None:
            decoded.append(self._decode_embedded(geometry, 'wkb', path, entity))
        self._embedded[path] = [(name, shape) for name, shape in decoded if shape is not None]

    def _decode_embedded(self, geometry, name: str, path: str,
                         entity: Optional[str]) -> Tuple[str, Any]:
        try:
            if name == 'wkt':
                shape = decode_text(geometry.wkt)
            else:
                shape = decode_binary(geometry.wkb)
        except GeometryError as e:
            self.error(IssueKind.STRUCTURAL_VIOLATION, f"{path}.{name}",
                       f"Embedded {name.upper()} cannot be decoded: {e.message}", entity)
            return name, None
        if shape.kind is not geometry.kind:
            self.error(IssueKind.STRUCTURAL_VIOLATION, f"{path}.{name}",
                       f"Embedded {name.upper()} describes a {shape.kind.value}, "
                       f"expected {geometry.kind.value}", entity)
            return name, None
        return name, shape

    # Tier 2: references

    def validate_references(self, document: Document):
        """Check material references and identifier uniqueness."""
        self._check_unique([m.id for m in document.models], "models", "Model id")
        self._check_unique([m.id for m in document.materials], "materials", "Material id")

        for i, model in enumerate(document.models):
            path = f"models[{i}]"
            self._check_unique([m.id for m in model.materials], f"{path}.materials", "Material id")
            self._check_unique([c.id for c in model.components], f"{path}.components",
                               "Component id")
            for j, component in enumerate(model.components):
                ref = component.material_ref
                if not isinstance(ref, str) or not ref:
                    continue
                if document.resolve_material(ref, model) is None:
                    self.error(
                        IssueKind.REFERENTIAL_VIOLATION,
                        f"{path}.components[{j}].materialRef",
                        f"Component {component.id} references unknown material {ref!r}",
                        component.id,
                    )

        self._check_material_conflicts(document)

    def _check_unique(self, ids: List[Any], prefix: str, label: str):
        first_seen: Dict[Any, int] = {}
        for index, identifier in enumerate(ids):
            if not isinstance(identifier, str) or not identifier:
                continue
            if identifier in first_seen:
                self.error(
                    IssueKind.REFERENTIAL_VIOLATION,
                    f"{prefix}[{index}].id",
                    f"Duplicate {label} {identifier!r} at {prefix}[{index}] "
                    f"(first defined at {prefix}[{first_seen[identifier]}])",
                    identifier,
                )
            else:
                first_seen[identifier] = index

    def _check_material_conflicts(self, document: Document):
        """Warn when one material id is defined differently in two scopes."""
        definitions: Dict[str, Tuple[str, Material]] = {}
        scopes = [("materials", document.materials)] + [
            (f"models[{i}].materials", model.materials) for i, model in enumerate(document.models)
        ]
        for prefix, materials in scopes:
            seen_here = set()
            for k, material in enumerate(materials):
                if not isinstance(material.id, str) or material.id in seen_here:
                    continue
                seen_here.add(material.id)
                path = f"{prefix}[{k}]"
                if material.id not in definitions:
                    definitions[material.id] = (path, material)
                    continue
                first_path, first = definitions[material.id]
                if first != material:
                    self.warning(
                        IssueKind.MATERIAL_DEFINITION_CONFLICT, path,
                        f"Material {material.id!r} at {path} differs from its definition "
                        f"at {first_path}", material.id,
                    )

    # Tier 3: semantics and schema

    def validate_semantics(self, document: Document):
        """Check extents, parameter plausibility, embedded encodings and schema version."""
        self.validate_schema_version(document.schema_version)

        for i, material in enumerate(document.materials):
            self.validate_material_values(material, f"materials[{i}]")

        for i, model in enumerate(document.models):
            path = f"models[{i}]"
            for k, material in enumerate(model.materials):
                self.validate_material_values(material, f"{path}.materials[{k}]")
            for j, component in enumerate(model.components):
                cpath = f"{path}.components[{j}]"
                self.validate_extent(model, component, cpath)
                self._check_embedded_shapes(component, f"{cpath}.geometry")

    def validate_schema_version(self, version: Any):
        """Unknown major versions are errors; unknown minor/patch versions are warnings."""
        if not isinstance(version, SchemaVersion):
            return
        if version.as_tuple() in SUPPORTED_SCHEMA_VERSIONS:
            return
        known_majors = {v[0] for v in SUPPORTED_SCHEMA_VERSIONS}
        supported = ", ".join(".".join(map(str, v)) for v in SUPPORTED_SCHEMA_VERSIONS)
        if version.major not in known_majors:
            self.error(IssueKind.UNRECOGNIZED_SCHEMA_VERSION, "schemaVersion",
                       f"Schema version {version} has an unsupported major version "
                       f"(supported: {supported})")
        else:
            self.warning(IssueKind.UNRECOGNIZED_SCHEMA_VERSION, "schemaVersion",
                         f"Schema version {version} is not a known release "
                         f"(supported: {supported})")

    def validate_extent(self, model: GroundModel, component: ModelComponent, path: str):
        """Warn when component elevations fall outside the model boundary."""
        boundary = model.boundary
        if boundary is None:
            return
        top = boundary.top_elevation if is_finite_number(boundary.top_elevation) else None
        bottom = boundary.bottom_elevation if is_finite_number(boundary.bottom_elevation) else None

        for key, value in (('topElevation', component.top_elevation),
                           ('bottomElevation', component.bottom_elevation)):
            if not is_finite_number(value):
                continue
            if top is not None and value > top + FLOATING_POINT_TOLERANCE:
                self.warning(IssueKind.EXTENT_INCONSISTENCY, f"{path}.{key}",
                             f"Component {component.id} {key} {value} is above the model "
                             f"top elevation {top}", component.id)
            if bottom is not None and value < bottom - FLOATING_POINT_TOLERANCE:
                self.warning(IssueKind.EXTENT_INCONSISTENCY, f"{path}.{key}",
                             f"Component {component.id} {key} {value} is below the model "
                             f"bottom elevation {bottom}", component.id)

    def validate_material_values(self, material: Material, path: str):
        """Compare standard-code values with their plausible ranges."""
        for j, prop in enumerate(material.properties):
            if not isinstance(prop.code, StandardParameterCode):
                continue
            ppath = f"{path}.properties[{j}]"
            code = code_id(prop.code)

            if not self._is_standard_unit(prop):
                self.warning(IssueKind.NON_STANDARD_UNIT, f"{ppath}.unit",
                             f"Material {material.id}: {code} given in {prop.unit!r} instead of "
                             f"{standard_unit(prop.code)!r}; plausibility check skipped",
                             material.id)
                continue

            bounds = prop.numeric_bounds()
            limits = self.parameter_ranges.get(code)
            if bounds is None or limits is None:
                continue
            low, high = bounds
            if not (is_finite_number(low) and is_finite_number(high)):
                continue
            if low < limits['min'] or high > limits['max']:
                shown = low if low == high else f"{low}..{high}"
                self.warning(
                    IssueKind.PARAMETER_OUT_OF_RANGE, f"{ppath}.value",
                    f"Material {material.id}: {code} = {shown} {limits['units']} is outside "
                    f"the plausible range [{limits['min']}, {limits['max']}]",
                    material.id,
                )

    @staticmethod
    def _is_standard_unit(prop: PropertyValue) -> bool:
        if prop.unit is None:
            return True
        expected = standard_unit(prop.code)
        if expected is None:
            return prop.unit in DIMENSIONLESS_UNITS
        return prop.unit == expected

    def _check_embedded_shapes(self, component: ModelComponent, path: str):
        geometry = component.geometry
        for name, shape in self._embedded.get(path, []):
            if not same_shape(geometry, shape):
                self.warning(IssueKind.GEOMETRY_ENCODING_MISMATCH, f"{path}.{name}",
                             f"Embedded {name.upper()} of component {component.id} describes "
                             f"different coordinates than the geometry", component.id)

    # Helpers

    def _check_string(self, value: Any, path: str, label: str, limit: int,
                      required: bool = False, entity_id: Optional[str] = None):
        if value is None:
            if required:
                self.error(IssueKind.STRUCTURAL_VIOLATION, path, f"{label} is required", entity_id)
            return
        if not isinstance(value, str):
            self.error(IssueKind.STRUCTURAL_VIOLATION, path,
                       f"{label} must be text, got {type(value).__name__}", entity_id)
            return
        if required and not value.strip():
            self.error(IssueKind.STRUCTURAL_VIOLATION, path, f"{label} must not be empty",
                       entity_id)
        if len(value) > limit:
            self.error(IssueKind.STRUCTURAL_VIOLATION, path,
                       f"{label} exceeds {limit} characters ({len(value)})", entity_id)
        if not is_utf8_text(value):
            self.error(IssueKind.STRUCTURAL_VIOLATION, path,
                       f"{label} is not encodable as UTF-8", entity_id)

    def _check_enum(self, value: Any, enum_type: Type[Enum], path: str,
                    entity_id: Optional[str] = None):
        if not isinstance(value, enum_type):
            allowed = ", ".join(member.value for member in enum_type)
            self.error(IssueKind.STRUCTURAL_VIOLATION, path,
                       f"{value!r} is not a valid {enum_type.__name__} (expected one of {allowed})",
                       entity_id)

    def _check_order(self, low: Any, high: Any, path: str, message: str,
                     entity_id: Optional[str] = None):
        if is_finite_number(low) and is_finite_number(high) and low > high:
            self.error(IssueKind.STRUCTURAL_VIOLATION, path, f"{message} ({low} > {high})",
                       entity_id)

    @staticmethod
    def _as_aware(value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


# Convenience functions
def validate(document: Document) -> ValidationResult:
    """
    Validate a complete document.

    Args:
        document: Document to validate

    Returns:
        ValidationResult with errors and warnings
    """
    return AgsiValidator().validate(document)


def validate_material(material: Material) -> ValidationResult:
    """
    Validate a standalone material (structure and plausible ranges).

    Args:
        material: Material to validate

    Returns:
        ValidationResult with errors and warnings
    """
    validator = AgsiValidator()
    validator.validate_material_structure(material, "material")
    validator.validate_material_values(material, "material")
    return validator.get_result()
