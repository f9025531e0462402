"""
Location and Coordinate Type Definitions

Pydantic models for representing geographic coordinates and bounding
boxes used throughout the application.

Both types are immutable and do not range-check on construction: a box
parsed from a filter in British National Grid carries eastings and
northings until it is transformed to WGS84. Call ``is_valid()`` to check
WGS84 ranges.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class GeoCoordinate(BaseModel):
    """
    Geographic coordinate (latitude and longitude).

    For projected systems the same slots hold northing (latitude) and
    easting (longitude).
    """

    model_config = ConfigDict(frozen=True)

    latitude: float = Field(..., description="Latitude in decimal degrees")
    longitude: float = Field(..., description="Longitude in decimal degrees")

    def __init__(self, latitude: float, longitude: float, **data):
        super().__init__(latitude=latitude, longitude=longitude, **data)

    def is_valid(self) -> bool:
        """Check the coordinate lies within WGS84 ranges."""
        return -90.0 <= self.latitude <= 90.0 and -180.0 <= self.longitude <= 180.0

    def __str__(self) -> str:
        return f"{self.latitude},{self.longitude}"


class BoundingBox(BaseModel):
    """
    Axis-aligned bounding box.

    The constructor takes latitude first; the WFS wire format
    (``to_wfs_string`` / ``parse``) is ``minLon,minLat,maxLon,maxLat``.
    """

    model_config = ConfigDict(frozen=True)

    min_latitude: float = Field(..., description="Minimum latitude (south)")
    min_longitude: float = Field(..., description="Minimum longitude (west)")
    max_latitude: float = Field(..., description="Maximum latitude (north)")
    max_longitude: float = Field(..., description="Maximum longitude (east)")

    def __init__(
        self,
        min_latitude: float,
        min_longitude: float,
        max_latitude: float,
        max_longitude: float,
        **data,
    ):
        super().__init__(
            min_latitude=min_latitude,
            min_longitude=min_longitude,
            max_latitude=max_latitude,
            max_longitude=max_longitude,
            **data,
        )

    @property
    def south_west(self) -> GeoCoordinate:
        return GeoCoordinate(self.min_latitude, self.min_longitude)

    @property
    def north_east(self) -> GeoCoordinate:
        return GeoCoordinate(self.max_latitude, self.max_longitude)

    @property
    def width(self) -> float:
        """Width in degrees of longitude."""
        return self.max_longitude - self.min_longitude

    @property
    def height(self) -> float:
        """Height in degrees of latitude."""
        return self.max_latitude - self.min_latitude

    def is_valid(self) -> bool:
        """Check every bound is in WGS84 range and min/max are ordered."""
        return (
            -90.0 <= self.min_latitude <= 90.0
            and -90.0 <= self.max_latitude <= 90.0
            and -180.0 <= self.min_longitude <= 180.0
            and -180.0 <= self.max_longitude <= 180.0
            and self.min_latitude <= self.max_latitude
            and self.min_longitude <= self.max_longitude
        )

    def contains(self, coordinate: GeoCoordinate) -> bool:
        """Check whether a coordinate lies inside the box (bounds inclusive)."""
        return (
            self.min_latitude <= coordinate.latitude <= self.max_latitude
            and self.min_longitude <= coordinate.longitude <= self.max_longitude
        )

    def to_wfs_string(self) -> str:
        """Format as WFS ``minx,miny,maxx,maxy``."""
        return f"{self.min_longitude},{self.min_latitude},{self.max_longitude},{self.max_latitude}"

    @classmethod
    def parse(cls, text: Optional[str]) -> Optional["BoundingBox"]:
        """
        Parse a WFS bounding box string (``minLon,minLat,maxLon,maxLat``).

        Returns None unless exactly four numbers are given and the resulting
        box is valid WGS84.
        """
        if not text or not text.strip():
            return None

        parts = text.split(",")
        if len(parts) != 4:
            return None

        try:
            min_lon, min_lat, max_lon, max_lat = (float(part) for part in parts)
        except ValueError:
            return None

        box = cls(min_lat, min_lon, max_lat, max_lon)
        return box if box.is_valid() else None

    def __str__(self) -> str:
        return self.to_wfs_string()
