"""
Data models for AGSi ground-model documents.

This module defines the in-memory Document graph: the Document root, its
embedded Project, Materials with parameterised property values, and
GroundModels built from ModelComponents carrying geometry. Materials are
referenced by identifier only; lookup is model-local first, then the
document-level material table.
"""

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Tuple, Type, Union

from agsi.core.errors import ModelNotFound
from agsi.core.geometry import Geometry
from agsi.core.parameters import ParameterCode, parse_parameter_code, standard_unit
from agsi.utils.constants import APP_NAME, CURRENT_SCHEMA_VERSION

logger = logging.getLogger(__name__)


class MaterialKind(Enum):
    """Material classification."""
    SOIL = "SOIL"
    ROCK = "ROCK"
    FILL = "FILL"
    MADE_GROUND = "MADE_GROUND"
    ANTHROPOGENIC = "ANTHROPOGENIC"
    WATER = "WATER"
    VOID = "VOID"
    UNKNOWN = "UNKNOWN"


class PropertySource(Enum):
    """Provenance of a material property value."""
    TESTED = "TESTED"
    ESTIMATED = "ESTIMATED"
    LITERATURE = "LITERATURE"
    ASSUMED = "ASSUMED"
    CALCULATED = "CALCULATED"
    DERIVED = "DERIVED"


class ModelType(Enum):
    """Ground model types."""
    STRATIGRAPHIC = "STRATIGRAPHIC"
    STRUCTURAL = "STRUCTURAL"
    HYDROGEOLOGICAL = "HYDROGEOLOGICAL"
    GEOTECHNICAL = "GEOTECHNICAL"
    ENVIRONMENTAL = "ENVIRONMENTAL"
    COMPOSITE = "COMPOSITE"


class ModelDimension(Enum):
    """Spatial dimension of a ground model."""
    ONE_D = "ONE_D"
    TWO_D = "TWO_D"
    THREE_D = "THREE_D"


class ComponentType(Enum):
    """Model component types."""
    LAYER = "LAYER"
    LENS = "LENS"
    VOLUME = "VOLUME"
    FAULT = "FAULT"
    INTRUSION = "INTRUSION"
    BOUNDARY = "BOUNDARY"


def _coerce_enum(enum_type: Type[Enum], value: Any) -> Any:
    """
    Turn a string naming an enum member into the member.

    Unknown values are returned unchanged so that validation can report them.
    """
    if isinstance(value, enum_type) or not isinstance(value, str):
        return value
    try:
        return enum_type(value)
    except ValueError:
        return enum_type.__members__.get(value, value)


def _utc(value: Optional[datetime]) -> Optional[datetime]:
    """Normalise a timestamp to timezone-aware UTC (naive values are taken as UTC)."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


@dataclass(frozen=True, order=True)
class SchemaVersion:
    """Semantic version triple of the document schema."""
    major: int
    minor: int
    patch: int

    @classmethod
    def parse(cls, text: str) -> 'SchemaVersion':
        """
        Parse a "major.minor.patch" version string.

        Raises:
            ValueError: If the text is not three dot-separated integers
        """
        parts = str(text).strip().split('.')
        if len(parts) != 3:
            raise ValueError(f"Schema version must be major.minor.patch: {text!r}")
        try:
            major, minor, patch = (int(p) for p in parts)
        except ValueError as e:
            raise ValueError(f"Schema version parts must be integers: {text!r}") from e
        if min(major, minor, patch) < 0:
            raise ValueError(f"Schema version parts must not be negative: {text!r}")
        return cls(major, minor, patch)

    @classmethod
    def current(cls) -> 'SchemaVersion':
        return cls(*CURRENT_SCHEMA_VERSION)

    def as_tuple(self) -> Tuple[int, int, int]:
        return (self.major, self.minor, self.patch)

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"


# Property value kinds

@dataclass
class NumericValue:
    """Single numeric value."""
    value: float

    def __post_init__(self):
        if isinstance(self.value, int) and not isinstance(self.value, bool):
            self.value = float(self.value)


@dataclass
class TextValue:
    """Free-text value (classes, descriptions, drainage conditions)."""
    value: str


@dataclass
class RangeValue:
    """Closed min/max range."""
    min: float
    max: float

    def __post_init__(self):
        if isinstance(self.min, int) and not isinstance(self.min, bool):
            self.min = float(self.min)
        if isinstance(self.max, int) and not isinstance(self.max, bool):
            self.max = float(self.max)

    @property
    def midpoint(self) -> float:
        return (self.min + self.max) / 2.0


Value = Union[NumericValue, TextValue, RangeValue]


@dataclass
class PropertyValue:
    """
    Parameter value of a material.

    The same code may appear several times on a material with different
    ``case_id`` values (e.g. "characteristic" and "conservative").
    """
    code: ParameterCode
    value: Value
    unit: Optional[str] = None
    source: Optional[PropertySource] = None
    test_method: Optional[str] = None
    case_id: Optional[str] = None

    def __post_init__(self):
        self.code = parse_parameter_code(self.code)
        if isinstance(self.value, (int, float)) and not isinstance(self.value, bool):
            self.value = NumericValue(float(self.value))
        elif isinstance(self.value, str):
            self.value = TextValue(self.value)
        self.source = _coerce_enum(PropertySource, self.source)

    @classmethod
    def numeric(cls, code: Union[ParameterCode, str], value: float,
                unit: Optional[str] = None, **kwargs) -> 'PropertyValue':
        """Create a numeric property value."""
        return cls(code, NumericValue(value), unit=unit, **kwargs)

    @classmethod
    def text(cls, code: Union[ParameterCode, str], value: str, **kwargs) -> 'PropertyValue':
        """Create a text property value."""
        return cls(code, TextValue(value), **kwargs)

    @classmethod
    def range(cls, code: Union[ParameterCode, str], minimum: float, maximum: float,
              unit: Optional[str] = None, **kwargs) -> 'PropertyValue':
        """Create a min/max range property value."""
        return cls(code, RangeValue(minimum, maximum), unit=unit, **kwargs)

    @property
    def effective_unit(self) -> Optional[str]:
        """Unit override if given, otherwise the standard unit of the code."""
        if self.unit is not None:
            return self.unit
        return standard_unit(self.code)

    def with_source(self, source: PropertySource) -> 'PropertyValue':
        self.source = _coerce_enum(PropertySource, source)
        return self

    def with_test_method(self, method: str) -> 'PropertyValue':
        self.test_method = method
        return self

    def with_case(self, case_id: str) -> 'PropertyValue':
        self.case_id = case_id
        return self

    def numeric_bounds(self) -> Optional[Tuple[float, float]]:
        """(low, high) of a numeric or range value, None for text."""
        if isinstance(self.value, NumericValue):
            return (self.value.value, self.value.value)
        if isinstance(self.value, RangeValue):
            return (self.value.min, self.value.max)
        return None


@dataclass
class Material:
    """Material with classification and parameter values."""
    id: str
    name: str
    kind: MaterialKind = MaterialKind.UNKNOWN
    description: Optional[str] = None
    geology: Optional[str] = None
    properties: List[PropertyValue] = field(default_factory=list)

    def __post_init__(self):
        self.kind = _coerce_enum(MaterialKind, self.kind)
        self.properties = list(self.properties)

    def with_description(self, description: str) -> 'Material':
        self.description = description
        return self

    def with_geology(self, geology: str) -> 'Material':
        self.geology = geology
        return self

    def with_property(self, prop: PropertyValue) -> 'Material':
        self.properties.append(prop)
        return self

    def add_property(self, prop: PropertyValue) -> PropertyValue:
        """Append a property value and return it."""
        self.properties.append(prop)
        return prop

    def get_properties(self, code: Union[ParameterCode, str]) -> List[PropertyValue]:
        """All values for a code, in insertion order."""
        code = parse_parameter_code(code)
        return [p for p in self.properties if p.code == code]

    def get_property(self, code: Union[ParameterCode, str],
                     case_id: Optional[str] = None) -> Optional[PropertyValue]:
        """
        Select "the" value of a parameter for an analysis case.

        With a case identifier, the first value carrying that case is
        returned. Without one, the first value with no case is preferred,
        falling back to the first value of the code.

        Args:
            code: Standard code or code ID
            case_id: Analysis case identifier

        Returns:
            Selected property value, or None if the code is absent
        """
        candidates = self.get_properties(code)
        if case_id is not None:
            return next((p for p in candidates if p.case_id == case_id), None)
        for prop in candidates:
            if prop.case_id is None:
                return prop
        return candidates[0] if candidates else None

    def case_ids(self, code: Union[ParameterCode, str]) -> List[str]:
        """Distinct case identifiers used with a code, in first-seen order."""
        seen: List[str] = []
        for prop in self.get_properties(code):
            if prop.case_id is not None and prop.case_id not in seen:
                seen.append(prop.case_id)
        return seen


@dataclass
class Project:
    """Project metadata embedded in a document."""
    name: str
    client: Optional[str] = None
    contractor: Optional[str] = None
    location: Optional[str] = None
    country: Optional[str] = None
    description: Optional[str] = None


@dataclass
class ModelBoundary:
    """Spatial limits of a ground model (every limit is optional)."""
    min_x: Optional[float] = None
    max_x: Optional[float] = None
    min_y: Optional[float] = None
    max_y: Optional[float] = None
    top_elevation: Optional[float] = None
    bottom_elevation: Optional[float] = None

    def __post_init__(self):
        for name in ('min_x', 'max_x', 'min_y', 'max_y', 'top_elevation', 'bottom_elevation'):
            value = getattr(self, name)
            if isinstance(value, int) and not isinstance(value, bool):
                setattr(self, name, float(value))

    @property
    def has_elevation_range(self) -> bool:
        return self.top_elevation is not None and self.bottom_elevation is not None

    def contains_elevation(self, elevation: float) -> bool:
        """Check an elevation against whichever elevation limits are set."""
        if self.top_elevation is not None and elevation > self.top_elevation:
            return False
        if self.bottom_elevation is not None and elevation < self.bottom_elevation:
            return False
        return True

    def contains(self, x: float, y: float, z: Optional[float] = None) -> bool:
        """
        Check whether a location lies within the boundary.

        Each axis is checked against whichever of its limits are set; the
        elevation is only checked when ``z`` is given.
        """
        if self.min_x is not None and x < self.min_x:
            return False
        if self.max_x is not None and x > self.max_x:
            return False
        if self.min_y is not None and y < self.min_y:
            return False
        if self.max_y is not None and y > self.max_y:
            return False
        return z is None or self.contains_elevation(z)


@dataclass
class ModelComponent:
    """Geometric building block of a ground model."""
    id: str
    name: str
    component_type: ComponentType
    material_ref: str
    geometry: Optional[Geometry]
    top_elevation: Optional[float] = None
    bottom_elevation: Optional[float] = None
    attributes: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        self.component_type = _coerce_enum(ComponentType, self.component_type)
        if isinstance(self.top_elevation, int) and not isinstance(self.top_elevation, bool):
            self.top_elevation = float(self.top_elevation)
        if isinstance(self.bottom_elevation, int) and not isinstance(self.bottom_elevation, bool):
            self.bottom_elevation = float(self.bottom_elevation)

    def with_elevations(self, top: float, bottom: float) -> 'ModelComponent':
        self.top_elevation = float(top)
        self.bottom_elevation = float(bottom)
        return self

    def with_attribute(self, key: str, value: Any) -> 'ModelComponent':
        """Set a free-form attribute (any JSON-representable value)."""
        self.attributes[key] = value
        return self

    @property
    def thickness(self) -> Optional[float]:
        """Top minus bottom elevation, when both are set."""
        if self.top_elevation is None or self.bottom_elevation is None:
            return None
        return self.top_elevation - self.bottom_elevation


@dataclass
class GroundModel:
    """Typed, dimensioned spatial model composed of components."""
    id: str
    name: str
    model_type: ModelType = ModelType.STRATIGRAPHIC
    dimension: ModelDimension = ModelDimension.THREE_D
    description: Optional[str] = None
    crs: Optional[str] = None
    boundary: Optional[ModelBoundary] = None
    materials: List[Material] = field(default_factory=list)
    components: List[ModelComponent] = field(default_factory=list)

    def __post_init__(self):
        self.model_type = _coerce_enum(ModelType, self.model_type)
        self.dimension = _coerce_enum(ModelDimension, self.dimension)
        self.materials = list(self.materials)
        self.components = list(self.components)

    def add_material(self, material: Material) -> Material:
        self.materials.append(material)
        return material

    def add_component(self, component: ModelComponent) -> ModelComponent:
        self.components.append(component)
        return component

    def get_material(self, material_id: str) -> Optional[Material]:
        """First model-local material with the given identifier."""
        return next((m for m in self.materials if m.id == material_id), None)

    def get_component(self, component_id: str) -> Optional[ModelComponent]:
        return next((c for c in self.components if c.id == component_id), None)

    def components_using(self, material_id: str) -> List[ModelComponent]:
        """Components referencing a material identifier."""
        return [c for c in self.components if c.material_ref == material_id]

    def with_crs(self, crs: str) -> 'GroundModel':
        self.crs = crs
        return self

    def with_boundary(self, boundary: ModelBoundary) -> 'GroundModel':
        self.boundary = boundary
        return self

    def with_description(self, description: str) -> 'GroundModel':
        self.description = description
        return self


@dataclass
class Document:
    """
    Root aggregate of one interchange file.

    Owns its project, the document-level material table and its ground
    models. Timestamps are stored as timezone-aware UTC datetimes.
    """
    id: str
    name: Optional[str] = None
    file_name: Optional[str] = None
    author: Optional[str] = None
    software: Optional[str] = APP_NAME
    schema_version: SchemaVersion = field(default_factory=SchemaVersion.current)
    created: datetime = field(default_factory=utc_now)
    modified: Optional[datetime] = None
    comments: Optional[str] = None
    project: Optional[Project] = None
    materials: List[Material] = field(default_factory=list)
    models: List[GroundModel] = field(default_factory=list)

    def __post_init__(self):
        if isinstance(self.schema_version, str):
            self.schema_version = SchemaVersion.parse(self.schema_version)
        self.created = _utc(self.created)
        self.modified = _utc(self.modified)
        self.materials = list(self.materials)
        self.models = list(self.models)

    # Builder methods

    def with_name(self, name: str) -> 'Document':
        self.name = name
        return self

    def with_author(self, author: str) -> 'Document':
        self.author = author
        return self

    def with_file_name(self, file_name: str) -> 'Document':
        self.file_name = file_name
        return self

    def with_comments(self, comments: str) -> 'Document':
        self.comments = comments
        return self

    def with_software(self, software: str) -> 'Document':
        self.software = software
        return self

    def with_project(self, project: Project) -> 'Document':
        self.project = project
        return self

    # Mutators

    def add_material(self, material: Material) -> Material:
        """Add a material to the document-level material table."""
        self.materials.append(material)
        return material

    def add_model(self, model: GroundModel) -> GroundModel:
        self.models.append(model)
        logger.debug(f"Added model {model.id} to document {self.id}")
        return model

    def touch(self, when: Optional[datetime] = None) -> 'Document':
        """Set the modification timestamp (defaults to now)."""
        self.modified = _utc(when) if when is not None else utc_now()
        return self

    # Lookups

    def get_model(self, model_id: str) -> Optional[GroundModel]:
        return next((m for m in self.models if m.id == model_id), None)

    def get_material(self, material_id: str) -> Optional[Material]:
        """First document-level material with the given identifier."""
        return next((m for m in self.materials if m.id == material_id), None)

    def resolve_material(self, material_ref: str,
                         model: Optional[GroundModel] = None) -> Optional[Material]:
        """
        Resolve a material reference.

        Args:
            material_ref: Material identifier
            model: Owning model whose local materials are searched first

        Returns:
            Resolved material, or None if the reference dangles
        """
        if model is not None:
            local = model.get_material(material_ref)
            if local is not None:
                return local
        return self.get_material(material_ref)

    def all_materials(self) -> Iterator[Material]:
        """Document-level materials, then each model's materials (duplicates included)."""
        yield from self.materials
        for model in self.models:
            yield from model.materials


def extract_materials(document: Document, model_id: Optional[str] = None) -> List[Material]:
    """
    Project the materials of a document or of one of its models.

    Without a model identifier, document-level materials come first followed
    by each model's materials; the first occurrence of an identifier wins.
    With a model identifier, the model's own materials are followed by the
    document-level materials its components reference.

    Args:
        document: Source document (not modified)
        model_id: Restrict to one ground model

    Returns:
        List of materials in first-seen order

    Raises:
        ModelNotFound: If ``model_id`` names no model in the document
    """
    if model_id is None:
        candidates = list(document.all_materials())
    else:
        model = document.get_model(model_id)
        if model is None:
            raise ModelNotFound(model_id)
        candidates = list(model.materials)
        for component in model.components:
            if model.get_material(component.material_ref) is None:
                shared = document.get_material(component.material_ref)
                if shared is not None:
                    candidates.append(shared)

    seen = set()
    result = []
    for material in candidates:
        if material.id not in seen:
            seen.add(material.id)
            result.append(material)
    return result


def is_finite_number(value: Any) -> bool:
    """Check that a value is a real, finite int or float (bool excluded)."""
    return (isinstance(value, (int, float)) and not isinstance(value, bool)
            and math.isfinite(value))
