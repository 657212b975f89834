"""
Geometry Serializer
===================

Pure transforms: draw-library shapes -> geometry values -> persisted value.

Design:
- Deterministic: vertex order preserved, no sorting, no deduplication
- Polygons keep only their outer ring
- Longitudes from a wrapped (panned past the antimeridian) map view are
  brought back into [-180, 180]
"""

from typing import Any, Dict, Union

from ..errors import ValueShapeMismatch
from ..mode import CaptureMode
from .types import (
    CompositeValue,
    GeoArea,
    GeoPath,
    GeoPoint,
    LatLng,
    MarkerShape,
    PolygonShape,
    PolylineShape,
    ShapeKind,
)

Geometry = Union[GeoPoint, GeoPath, GeoArea, CompositeValue]
Shape = Union[MarkerShape, PolylineShape, PolygonShape]


def wrap_longitude(lng: float) -> float:
    """Bring a longitude into [-180, 180]; in-range values are returned unchanged."""
    lng = float(lng)
    if -180.0 <= lng <= 180.0:
        return lng
    return ((lng + 180.0) % 360.0) - 180.0


def point_from_latlng(latlng: LatLng) -> GeoPoint:
    """Build a GeoPoint from a raw (lat, lng) event coordinate."""
    lat, lng = latlng
    return GeoPoint(lat=lat, lng=wrap_longitude(lng))


def geometry_from_shape(shape: Shape) -> Union[GeoPoint, GeoPath, GeoArea]:
    """
    Read the geometry back from a drawn shape, dispatching on its kind tag.

    - marker: its single position
    - polyline: every vertex in draw order
    - polygon: the first ring only; further rings are dropped

    Raises:
        ValueError: If the shape holds invalid coordinates or too few vertices
    """
    if shape.kind is ShapeKind.MARKER:
        return point_from_latlng(shape.position)
    if shape.kind is ShapeKind.POLYLINE:
        return GeoPath(points=tuple(point_from_latlng(v) for v in shape.vertices))
    if shape.kind is ShapeKind.POLYGON:
        if not shape.rings:
            raise ValueError("Polygon shape has no rings")
        return GeoArea(points=tuple(point_from_latlng(v) for v in shape.rings[0]))
    raise ValueError(f"Unsupported shape kind: {shape.kind!r}")


def _composite_to_value(mode: CaptureMode, value: CompositeValue) -> Dict[str, Any]:
    result: Dict[str, Any] = {}
    if mode is CaptureMode.FULL and value.point is not None:
        result.update(value.point.to_dict())
    if value.trace is not None:
        result['trace'] = value.trace.to_list()
    if value.area is not None:
        result['area'] = value.area.to_list()
    return result


def serialize(mode: CaptureMode, geometry: Geometry) -> Any:
    """
    Convert committed geometry into the mode's persisted shape.

    Returns:
        current/manual -> {"lat", "lng"}
        trace          -> [{"lat", "lng"}, ...]
        area           -> [[{"lat", "lng"}, ...]]
        both           -> {"trace"?: [...], "area"?: [[...]]}
        full           -> {"lat"?, "lng"?, "trace"?, "area"?}

    Raises:
        ValueShapeMismatch: If geometry is not the type the mode stores
    """
    expected = {
        CaptureMode.CURRENT: GeoPoint,
        CaptureMode.MANUAL: GeoPoint,
        CaptureMode.TRACE: GeoPath,
        CaptureMode.AREA: GeoArea,
        CaptureMode.BOTH: CompositeValue,
        CaptureMode.FULL: CompositeValue,
    }[mode]
    if not isinstance(geometry, expected):
        raise ValueShapeMismatch(
            f"Mode '{mode.value}' stores {expected.__name__}, got {type(geometry).__name__}"
        )

    if mode.is_point:
        return geometry.to_dict()
    if mode is CaptureMode.TRACE or mode is CaptureMode.AREA:
        return geometry.to_list()
    if mode is CaptureMode.BOTH and geometry.point is not None:
        raise ValueShapeMismatch("Mode 'both' has no point slot")
    return _composite_to_value(mode, geometry)
