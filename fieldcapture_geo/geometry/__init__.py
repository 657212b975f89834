"""
Geometry Layer
==============

Bounded Context: Geometry values and their persisted form.

Responsibilities:
- Value types (immutable)
- Shape -> geometry -> persisted value transforms
- NO state, NO surface access, NO logging
"""

from fieldcapture_geo.geometry.types import (
    Bounds,
    CompositeValue,
    GeoArea,
    GeoPath,
    GeoPoint,
    MarkerShape,
    PolygonShape,
    PolylineShape,
    ShapeKind,
)
from fieldcapture_geo.geometry.serializer import (
    geometry_from_shape,
    point_from_latlng,
    serialize,
    wrap_longitude,
)

__all__ = [
    "Bounds",
    "CompositeValue",
    "GeoArea",
    "GeoPath",
    "GeoPoint",
    "MarkerShape",
    "PolygonShape",
    "PolylineShape",
    "ShapeKind",
    "geometry_from_shape",
    "point_from_latlng",
    "serialize",
    "wrap_longitude",
]
