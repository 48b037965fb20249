"""
Geometry codec: text (WKT), binary (WKB / mesh) and base64 framing.

Point, LineString and Polygon geometry converts to and from 3D WKT and
little-endian 3D WKB through shapely. Surface geometry has no text form; its
binary form is the opaque mesh payload, checked only for gross size
inconsistency against the declared vertex and face counts.
"""

import base64
import binascii
import dataclasses
import logging
from typing import Optional, Tuple

import numpy as np
import shapely
import shapely.geometry
from shapely.errors import ShapelyError

from agsi.core.errors import (
    EmptyGeometry, GeometryPayloadSizeMismatch, InvalidGeometry, MalformedGeometryBinary,
    MalformedGeometryText, UnsupportedGeometryKind,
)
from agsi.core.geometry import Coordinate, Geometry, LineString, Point, Polygon, Surface
from agsi.utils.constants import (
    MAX_BYTES_PER_MESH_ELEMENT, MESH_HEADER_ALLOWANCE, MIN_BYTES_PER_MESH_ELEMENT,
)

logger = logging.getLogger(__name__)

# Full precision: doubles survive a text round trip exactly
WKT_ROUNDING_PRECISION = -1

# Little-endian (NDR) byte order for WKB output
WKB_BYTE_ORDER = 1

# Relative/absolute tolerance when comparing decoded encodings with coordinates
SHAPE_TOLERANCE = 1e-9


def _to_shapely(geometry: Geometry):
    """Convert a Point, LineString or Polygon into a shapely geometry."""
    if isinstance(geometry, Point):
        return shapely.geometry.Point(geometry.coordinates)
    if isinstance(geometry, LineString):
        return shapely.geometry.LineString(geometry.coordinates)
    if isinstance(geometry, Polygon):
        return shapely.geometry.Polygon(geometry.exterior, list(geometry.interiors))
    if isinstance(geometry, Surface):
        raise UnsupportedGeometryKind(
            "Surface geometry has no WKT/WKB representation", {"kind": geometry.kind.value}
        )
    raise UnsupportedGeometryKind(f"Unknown geometry type: {type(geometry).__name__}")


def _sequence(coords, has_z: bool) -> Tuple[Coordinate, ...]:
    """Turn a shapely coordinate sequence into float triples."""
    if has_z:
        return tuple((float(x), float(y), float(z)) for x, y, z in coords)
    return tuple((float(c[0]), float(c[1]), 0.0) for c in coords)


def _from_shapely(shape, error_type) -> Geometry:
    """Convert a shapely geometry into a domain geometry."""
    geom_type = shape.geom_type
    if geom_type not in ("Point", "LineString", "Polygon"):
        raise UnsupportedGeometryKind(
            f"Geometry type {geom_type} is not supported", {"kind": geom_type}
        )
    if shape.is_empty:
        raise EmptyGeometry(f"{geom_type} contains no coordinates", {"kind": geom_type})

    has_z = shape.has_z
    try:
        if geom_type == "Point":
            return Point(_sequence(shape.coords, has_z)[0])
        if geom_type == "LineString":
            return LineString(_sequence(shape.coords, has_z))
        return Polygon(
            _sequence(shape.exterior.coords, has_z),
            tuple(_sequence(ring.coords, has_z) for ring in shape.interiors),
        )
    except InvalidGeometry as e:
        raise error_type(f"Invalid {geom_type}: {e.message}") from e


def encode_text(geometry: Geometry) -> str:
    """
    Encode a geometry as 3D WKT.

    Args:
        geometry: Point, LineString or Polygon

    Returns:
        WKT string with coordinate and ring order preserved

    Raises:
        UnsupportedGeometryKind: If called on a Surface
    """
    shape = _to_shapely(geometry)
    return shapely.to_wkt(
        shape, rounding_precision=WKT_ROUNDING_PRECISION, trim=True, output_dimension=3
    )


def decode_text(text: str) -> Geometry:
    """
    Decode WKT into a geometry.

    Args:
        text: WKT string (2D input is given z = 0.0)

    Returns:
        Point, LineString or Polygon

    Raises:
        MalformedGeometryText: On syntax errors
        EmptyGeometry: If the geometry has no coordinates
        UnsupportedGeometryKind: For multi-part and collection types
    """
    if not isinstance(text, str) or not text.strip():
        raise MalformedGeometryText("Geometry text is empty")
    try:
        shape = shapely.from_wkt(text)
    except (ShapelyError, ValueError, TypeError) as e:
        raise MalformedGeometryText(f"Cannot parse WKT: {e}", {"text": text[:80]}) from e
    if shape is None:
        raise MalformedGeometryText("Cannot parse WKT", {"text": text[:80]})
    return _from_shapely(shape, MalformedGeometryText)


def check_surface_payload(mesh: bytes, vertex_count: int, face_count: int) -> None:
    """
    Heuristic consistency check of a mesh payload against declared counts.

    The payload is never parsed; only its size is compared with what the
    declared numbers of vertices and faces could plausibly occupy.

    Raises:
        GeometryPayloadSizeMismatch: On gross mismatch
    """
    elements = int(vertex_count) + int(face_count)
    size = len(mesh)
    minimum = elements * MIN_BYTES_PER_MESH_ELEMENT
    maximum = elements * MAX_BYTES_PER_MESH_ELEMENT + MESH_HEADER_ALLOWANCE

    if elements > 0 and size == 0:
        raise GeometryPayloadSizeMismatch(
            "Surface declares vertices/faces but the mesh payload is empty",
            {"vertex_count": vertex_count, "face_count": face_count},
        )
    if size < minimum or size > maximum:
        raise GeometryPayloadSizeMismatch(
            f"Surface payload of {size} bytes is inconsistent with "
            f"{vertex_count} vertices and {face_count} faces",
            {"expected_min": minimum, "expected_max": maximum},
        )


def encode_binary(geometry: Geometry) -> bytes:
    """
    Encode a geometry as binary.

    Point, LineString and Polygon become little-endian 3D WKB; a Surface
    yields its mesh payload unchanged after the size heuristic.

    Raises:
        GeometryPayloadSizeMismatch: If a Surface payload fails the size check
    """
    if isinstance(geometry, Surface):
        check_surface_payload(geometry.mesh, geometry.vertex_count, geometry.face_count)
        return geometry.mesh
    shape = _to_shapely(geometry)
    return shapely.to_wkb(shape, output_dimension=3, byte_order=WKB_BYTE_ORDER)


def decode_binary(data: bytes, vertex_count: Optional[int] = None,
                  face_count: Optional[int] = None) -> Geometry:
    """
    Decode a binary geometry payload.

    Args:
        data: WKB bytes, or a mesh payload when counts are given
        vertex_count: Declared vertex count of a surface mesh
        face_count: Declared face count of a surface mesh

    Returns:
        Decoded geometry

    Raises:
        MalformedGeometryBinary: If WKB cannot be parsed
        EmptyGeometry: If the geometry has no coordinates
        GeometryPayloadSizeMismatch: If a mesh payload fails the size check
    """
    if vertex_count is not None or face_count is not None:
        vertices = vertex_count or 0
        faces = face_count or 0
        check_surface_payload(bytes(data), vertices, faces)
        return Surface(bytes(data), vertices, faces)

    if not data:
        raise MalformedGeometryBinary("Geometry binary payload is empty")
    try:
        shape = shapely.from_wkb(bytes(data))
    except (ShapelyError, ValueError, TypeError) as e:
        raise MalformedGeometryBinary(f"Cannot parse WKB: {e}", {"size": len(data)}) from e
    if shape is None:
        raise MalformedGeometryBinary("Cannot parse WKB", {"size": len(data)})
    return _from_shapely(shape, MalformedGeometryBinary)


def to_base64(data: bytes) -> str:
    """Frame binary data as base64 text for embedding in text formats."""
    return base64.b64encode(data).decode('ascii')


def from_base64(text: str) -> bytes:
    """
    Decode base64-framed binary data.

    Raises:
        MalformedGeometryBinary: If the text is not valid base64
    """
    try:
        return base64.b64decode(text, validate=True)
    except (binascii.Error, ValueError, TypeError) as e:
        raise MalformedGeometryBinary(f"Invalid base64 payload: {e}") from e


def with_encodings(geometry: Geometry) -> Geometry:
    """
    Return a copy of a geometry with its WKT and WKB encodings populated.

    Surfaces are returned unchanged.
    """
    if isinstance(geometry, Surface):
        return geometry
    plain = dataclasses.replace(geometry, wkt=None, wkb=None)
    return dataclasses.replace(
        geometry, wkt=encode_text(plain), wkb=encode_binary(plain)
    )


def _close(first: Tuple[Coordinate, ...], second: Tuple[Coordinate, ...]) -> bool:
    if len(first) != len(second):
        return False
    if not first:
        return True
    return bool(np.allclose(np.asarray(first, dtype=float), np.asarray(second, dtype=float),
                            rtol=SHAPE_TOLERANCE, atol=SHAPE_TOLERANCE))


def same_shape(first: Geometry, second: Geometry) -> bool:
    """
    Compare the kind and coordinates of two geometries, ignoring encodings.

    Coordinates are compared with a small tolerance since WKT output is
    limited to the significant digits of the writer.
    """
    if first.kind is not second.kind:
        return False
    if isinstance(first, Surface):
        return (first.mesh == second.mesh
                and first.vertex_count == second.vertex_count
                and first.face_count == second.face_count)
    if isinstance(first, Polygon):
        return (len(first.rings) == len(second.rings)
                and all(_close(a, b) for a, b in zip(first.rings, second.rings)))
    return _close(first.all_coordinates(), second.all_coordinates())


def coordinates_finite(geometry: Geometry) -> bool:
    """Check that every coordinate of a geometry is a finite number."""
    coords = geometry.all_coordinates()
    if not coords:
        return True
    return bool(np.isfinite(np.asarray(coords, dtype=float)).all())
