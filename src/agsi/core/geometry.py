"""
Geometry payloads of model components.

Geometry is a closed union of four kinds. Point, LineString and Polygon carry
ordered (x, y, z) coordinate triples and may carry a parallel text (WKT)
and/or binary (WKB) encoding of the same shape. Surface carries an opaque
mesh payload (OBJ in practice) plus declared vertex/face counts.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Optional, Sequence, Tuple, Union

from agsi.core.errors import InvalidGeometry

Coordinate = Tuple[float, float, float]


class GeometryKind(Enum):
    """Geometry kinds (value is the canonical text type tag)."""
    POINT = "Point"
    LINE_STRING = "LineString"
    POLYGON = "Polygon"
    SURFACE = "Surface"


def _coordinate(value: Sequence[float]) -> Coordinate:
    """Normalise a 2- or 3-element sequence to a float triple."""
    try:
        values = [float(v) for v in value]
    except (TypeError, ValueError) as e:
        raise InvalidGeometry(f"Coordinate must be numeric: {value!r}") from e
    if len(values) == 2:
        values.append(0.0)
    if len(values) != 3:
        raise InvalidGeometry(f"Coordinate must have 2 or 3 values, got {len(values)}")
    return (values[0], values[1], values[2])


def _coordinates(values: Iterable[Sequence[float]]) -> Tuple[Coordinate, ...]:
    return tuple(_coordinate(v) for v in values)


def _ring(values: Iterable[Sequence[float]], label: str) -> Tuple[Coordinate, ...]:
    """Normalise a polygon ring and close it if needed."""
    ring = _coordinates(values)
    if len(set(ring)) < 3:
        raise InvalidGeometry(f"Polygon {label} ring must have at least 3 distinct points")
    if ring[0] != ring[-1]:
        ring = ring + (ring[0],)
    return ring


@dataclass
class Point:
    """Single located point (boreholes, CPT locations)."""
    coordinates: Coordinate
    wkt: Optional[str] = None
    wkb: Optional[bytes] = None
    crs: Optional[str] = None

    kind = GeometryKind.POINT

    def __post_init__(self):
        self.coordinates = _coordinate(self.coordinates)
        if self.wkb is not None:
            self.wkb = bytes(self.wkb)

    @property
    def x(self) -> float:
        return self.coordinates[0]

    @property
    def y(self) -> float:
        return self.coordinates[1]

    @property
    def z(self) -> float:
        return self.coordinates[2]

    def all_coordinates(self) -> Tuple[Coordinate, ...]:
        return (self.coordinates,)


@dataclass
class LineString:
    """Ordered polyline of at least two coordinates."""
    coordinates: Tuple[Coordinate, ...]
    wkt: Optional[str] = None
    wkb: Optional[bytes] = None
    crs: Optional[str] = None

    kind = GeometryKind.LINE_STRING

    def __post_init__(self):
        self.coordinates = _coordinates(self.coordinates)
        if len(self.coordinates) < 2:
            raise InvalidGeometry("LineString must have at least 2 points")
        if self.wkb is not None:
            self.wkb = bytes(self.wkb)

    def all_coordinates(self) -> Tuple[Coordinate, ...]:
        return self.coordinates


@dataclass
class Polygon:
    """
    Polygon with an exterior ring and optional interior rings (holes).

    Rings are closed on construction (the first coordinate is repeated at the
    end when missing). Interior rings keep their insertion order.
    """
    exterior: Tuple[Coordinate, ...]
    interiors: Tuple[Tuple[Coordinate, ...], ...] = field(default_factory=tuple)
    wkt: Optional[str] = None
    wkb: Optional[bytes] = None
    crs: Optional[str] = None

    kind = GeometryKind.POLYGON

    def __post_init__(self):
        self.exterior = _ring(self.exterior, "exterior")
        self.interiors = tuple(
            _ring(ring, f"interior {index}") for index, ring in enumerate(self.interiors)
        )
        if self.wkb is not None:
            self.wkb = bytes(self.wkb)

    @property
    def rings(self) -> Tuple[Tuple[Coordinate, ...], ...]:
        """Exterior ring followed by interior rings."""
        return (self.exterior,) + self.interiors

    def all_coordinates(self) -> Tuple[Coordinate, ...]:
        return tuple(c for ring in self.rings for c in ring)


@dataclass
class BoundingBox:
    """Axis-aligned 3D extent, given as minimum and maximum corners."""
    min: Coordinate
    max: Coordinate

    def __post_init__(self):
        self.min = _coordinate(self.min)
        self.max = _coordinate(self.max)
        if any(low > high for low, high in zip(self.min, self.max)):
            raise InvalidGeometry(f"Bounding box minimum {self.min} exceeds maximum {self.max}")

    def contains(self, coordinate: Sequence[float]) -> bool:
        """Check whether a coordinate lies inside the box (edges included)."""
        point = _coordinate(coordinate)
        return all(low <= v <= high for low, v, high in zip(self.min, point, self.max))


@dataclass
class Surface:
    """
    3D surface stored as an opaque mesh payload with declared counts.

    ``bounds`` is optional metadata describing the extent of the mesh; it is
    carried as given and never derived from the payload.
    """
    mesh: bytes
    vertex_count: int
    face_count: int
    crs: Optional[str] = None
    bounds: Optional[BoundingBox] = None

    kind = GeometryKind.SURFACE

    def __post_init__(self):
        if not isinstance(self.mesh, (bytes, bytearray, memoryview)):
            raise InvalidGeometry("Surface mesh payload must be bytes")
        self.mesh = bytes(self.mesh)
        if self.vertex_count < 0 or self.face_count < 0:
            raise InvalidGeometry("Surface vertex and face counts must not be negative")
        if self.bounds is not None and not isinstance(self.bounds, BoundingBox):
            low, high = self.bounds
            self.bounds = BoundingBox(low, high)

    def all_coordinates(self) -> Tuple[Coordinate, ...]:
        return ()


Geometry = Union[Point, LineString, Polygon, Surface]

GEOMETRY_TYPES = (Point, LineString, Polygon, Surface)


def is_geometry(value) -> bool:
    """Check whether a value is one of the geometry kinds."""
    return isinstance(value, GEOMETRY_TYPES)


def point(x: float, y: float, z: float = 0.0) -> Point:
    """Create a point geometry."""
    return Point((x, y, z))


def line_string(coordinates: Iterable[Sequence[float]]) -> LineString:
    """Create a line string from coordinates."""
    return LineString(tuple(coordinates))


def polygon(exterior: Iterable[Sequence[float]],
            interiors: Iterable[Iterable[Sequence[float]]] = ()) -> Polygon:
    """Create a polygon from an exterior ring and interior rings."""
    return Polygon(tuple(exterior), tuple(tuple(ring) for ring in interiors))


def surface(mesh: bytes, vertex_count: int, face_count: int,
            bounds: Optional[Tuple[Sequence[float], Sequence[float]]] = None) -> Surface:
    """Create a surface from a mesh payload."""
    return Surface(mesh, vertex_count, face_count, bounds=bounds)
