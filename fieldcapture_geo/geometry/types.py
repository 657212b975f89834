"""
Geometry Value Types
====================

Pure value vocabulary - NO state, NO side effects.

Design:
- Immutable values (frozen dataclass pattern)
- Fail-fast validation in __post_init__
- to_dict()/to_list() give the persisted, JSON-compatible form
- from_dict()/from_list() parse it back, raising ValueError when malformed

Persisted forms:
    GeoPoint  -> {"lat": 10.0, "lng": 20.0}
    GeoPath   -> [{"lat": .., "lng": ..}, ...]
    GeoArea   -> [[{"lat": .., "lng": ..}, ...]]   (outer ring only)

The area nests its single ring the way polygon vertex accessors do, so a
path and an area can never be mistaken for one another.
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from numbers import Real
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple

import numpy as np

LatLng = Tuple[float, float]


def _coordinate(value: Any, name: str) -> float:
    """Coerce one coordinate, rejecting bools, non-numbers and non-finite values."""
    if isinstance(value, bool) or not isinstance(value, Real):
        raise ValueError(f"{name} must be a number, got {value!r}")
    value = float(value)
    if not math.isfinite(value):
        raise ValueError(f"{name} must be finite, got {value}")
    return value


@dataclass(frozen=True)
class GeoPoint:
    """
    Immutable latitude/longitude pair in decimal degrees.

    Invariants:
        - -90 <= lat <= 90
        - -180 <= lng <= 180

    Example:
        >>> GeoPoint(lat=10.0, lng=20.0).to_dict()
        {'lat': 10.0, 'lng': 20.0}
    """
    lat: float
    lng: float

    def __post_init__(self):
        """Validate invariants."""
        lat = _coordinate(self.lat, "lat")
        lng = _coordinate(self.lng, "lng")
        if not -90.0 <= lat <= 90.0:
            raise ValueError(f"lat must be in [-90, 90], got {lat}")
        if not -180.0 <= lng <= 180.0:
            raise ValueError(f"lng must be in [-180, 180], got {lng}")
        object.__setattr__(self, 'lat', lat)
        object.__setattr__(self, 'lng', lng)

    def to_dict(self) -> Dict[str, float]:
        """Serialize to JSON-compatible dict."""
        return {'lat': self.lat, 'lng': self.lng}

    @classmethod
    def from_dict(cls, data: Any) -> 'GeoPoint':
        """Deserialize from a {"lat", "lng"} mapping.

        Raises:
            ValueError: If keys are missing or values are invalid
        """
        if not isinstance(data, dict):
            raise ValueError(f"GeoPoint must be a mapping, got {type(data).__name__}")
        try:
            return cls(lat=data['lat'], lng=data['lng'])
        except KeyError as e:
            raise ValueError(f"Missing required GeoPoint field: {e}")

    def as_tuple(self) -> LatLng:
        return (self.lat, self.lng)


def _points_from_list(data: Any, what: str) -> Tuple[GeoPoint, ...]:
    if not isinstance(data, (list, tuple)):
        raise ValueError(f"{what} must be a list, got {type(data).__name__}")
    return tuple(GeoPoint.from_dict(item) for item in data)


@dataclass(frozen=True)
class Bounds:
    """
    Axis-aligned lat/lng bounding box.

    Attributes:
        south, west: minimum lat / lng
        north, east: maximum lat / lng
    """
    south: float
    west: float
    north: float
    east: float

    def __post_init__(self):
        if self.south > self.north or self.west > self.east:
            raise ValueError(f"Inverted bounds: {self}")

    @classmethod
    def from_points(cls, points: Iterable[GeoPoint]) -> 'Bounds':
        """Smallest box containing every point.

        Raises:
            ValueError: If points is empty
        """
        coords = np.array([p.as_tuple() for p in points], dtype=float)
        if coords.size == 0:
            raise ValueError("Cannot compute bounds of an empty point set")
        south, west = coords.min(axis=0)
        north, east = coords.max(axis=0)
        return cls(float(south), float(west), float(north), float(east))

    def union(self, other: 'Bounds') -> 'Bounds':
        return Bounds(
            south=min(self.south, other.south),
            west=min(self.west, other.west),
            north=max(self.north, other.north),
            east=max(self.east, other.east),
        )

    def center(self) -> GeoPoint:
        return GeoPoint(lat=(self.south + self.north) / 2, lng=(self.west + self.east) / 2)

    def to_list(self) -> List[List[float]]:
        """Corner form used by map libraries: [[south, west], [north, east]]."""
        return [[self.south, self.west], [self.north, self.east]]


@dataclass(frozen=True)
class GeoPath:
    """
    Ordered sequence of points forming a traced line.

    Insertion order defines traversal order. May be empty.
    """
    points: Tuple[GeoPoint, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, 'points', tuple(self.points))
        for p in self.points:
            if not isinstance(p, GeoPoint):
                raise TypeError(f"GeoPath points must be GeoPoint, got {type(p).__name__}")

    def __len__(self) -> int:
        return len(self.points)

    def __iter__(self) -> Iterator[GeoPoint]:
        return iter(self.points)

    def bounds(self) -> Optional[Bounds]:
        """Bounds of the path, or None when empty."""
        return Bounds.from_points(self.points) if self.points else None

    def to_list(self) -> List[Dict[str, float]]:
        return [p.to_dict() for p in self.points]

    @classmethod
    def from_list(cls, data: Any) -> 'GeoPath':
        """Parse a flat list of {"lat", "lng"} mappings."""
        return cls(points=_points_from_list(data, "GeoPath"))


@dataclass(frozen=True)
class GeoArea:
    """
    Outer ring of a polygon. Holes are not modeled.

    The ring is closed implicitly: the last vertex connects back to the first.
    An explicitly repeated closing vertex is dropped on construction.

    Invariants:
        - at least 3 distinct ring vertices
    """
    points: Tuple[GeoPoint, ...]

    def __post_init__(self):
        points = tuple(self.points)
        for p in points:
            if not isinstance(p, GeoPoint):
                raise TypeError(f"GeoArea points must be GeoPoint, got {type(p).__name__}")
        if len(points) > 3 and points[0] == points[-1]:
            points = points[:-1]
        if len(points) < 3:
            raise ValueError(f"GeoArea ring must have at least 3 points, got {len(points)}")
        object.__setattr__(self, 'points', points)

    def __len__(self) -> int:
        return len(self.points)

    def __iter__(self) -> Iterator[GeoPoint]:
        return iter(self.points)

    def bounds(self) -> Bounds:
        return Bounds.from_points(self.points)

    def to_list(self) -> List[List[Dict[str, float]]]:
        """Persisted form: a list holding the single outer ring."""
        return [[p.to_dict() for p in self.points]]

    @classmethod
    def from_list(cls, data: Any) -> 'GeoArea':
        """Parse [[{"lat", "lng"}, ...]]; only the outer ring is read."""
        if not isinstance(data, (list, tuple)) or not data:
            raise ValueError("GeoArea must be a non-empty list of rings")
        return cls(points=_points_from_list(data[0], "GeoArea ring"))


@dataclass(frozen=True)
class CompositeValue:
    """
    Independent slots for the composite modes.

    A slot left as None is absent: it is skipped on serialization and on
    redraw.
    """
    point: Optional[GeoPoint] = None
    trace: Optional[GeoPath] = None
    area: Optional[GeoArea] = None

    @property
    def is_empty(self) -> bool:
        return self.point is None and self.trace is None and self.area is None

    def bounds(self) -> Optional[Bounds]:
        """Union of the bounds of every present slot."""
        parts = []
        if self.point is not None:
            parts.append(Bounds.from_points([self.point]))
        if self.trace is not None and len(self.trace):
            parts.append(self.trace.bounds())
        if self.area is not None:
            parts.append(self.area.bounds())
        if not parts:
            return None
        result = parts[0]
        for b in parts[1:]:
            result = result.union(b)
        return result


class ShapeKind(str, Enum):
    """Kind tag carried by every shape a draw tool emits."""
    MARKER = "marker"
    POLYLINE = "polyline"
    POLYGON = "polygon"


@dataclass(frozen=True)
class MarkerShape:
    """Marker placed with the draw tool."""
    position: LatLng

    @property
    def kind(self) -> ShapeKind:
        return ShapeKind.MARKER


@dataclass(frozen=True)
class PolylineShape:
    """Polyline (not polygon) in draw order."""
    vertices: Tuple[LatLng, ...]

    def __post_init__(self):
        object.__setattr__(self, 'vertices', tuple(tuple(v) for v in self.vertices))

    @property
    def kind(self) -> ShapeKind:
        return ShapeKind.POLYLINE


@dataclass(frozen=True)
class PolygonShape:
    """
    Polygon as a list of rings; rings[0] is the outer boundary.

    Extra rings (holes) may be present and are ignored when serialized.
    """
    rings: Tuple[Tuple[LatLng, ...], ...] = field(default=())

    def __post_init__(self):
        object.__setattr__(
            self, 'rings', tuple(tuple(tuple(v) for v in ring) for ring in self.rings)
        )

    @property
    def kind(self) -> ShapeKind:
        return ShapeKind.POLYGON
