"""
Location Schema

Pydantic models for three-word locations and the What3Words
convert-to-3wa response payload.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from app.schemas.geo import BoundingBox, GeoCoordinate


class ThreeWordLocation(BaseModel):
    """A three-word address with its center point and 3m x 3m square."""

    model_config = ConfigDict(frozen=True)

    words: str = Field(..., description="Three-word address, e.g. filled.count.soap")
    coordinates: GeoCoordinate = Field(..., description="Center of the square")
    country: str = Field(..., description="ISO 3166-1 alpha-2 country code")
    square: BoundingBox = Field(..., description="Bounds of the 3m x 3m square")
    nearest_place: Optional[str] = None
    language: str = "en"
    map: Optional[str] = Field(None, description="URL of the location on the What3Words map")


class ApiCoordinates(BaseModel):
    """Coordinates as returned by the What3Words API."""

    lat: float
    lng: float

    def to_coordinate(self) -> GeoCoordinate:
        return GeoCoordinate(self.lat, self.lng)


class ApiSquare(BaseModel):
    """Square bounds as returned by the What3Words API."""

    southwest: ApiCoordinates
    northeast: ApiCoordinates

    def to_bounding_box(self) -> BoundingBox:
        return BoundingBox(
            self.southwest.lat,
            self.southwest.lng,
            self.northeast.lat,
            self.northeast.lng,
        )


class ConvertTo3waResponse(BaseModel):
    """Body of a successful convert-to-3wa response."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    country: Optional[str] = None
    square: Optional[ApiSquare] = None
    nearest_place: Optional[str] = Field(None, alias="nearestPlace")
    coordinates: Optional[ApiCoordinates] = None
    words: Optional[str] = None
    language: Optional[str] = None
    map: Optional[str] = None
