"""
GeoJSON Schema

Pydantic models for the GeoJSON documents returned by GetFeature and the
OGC API - Features items endpoint. Serialize with ``exclude_none=True``
and ``by_alias=True`` so optional members are omitted.
"""

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class LatLng(BaseModel):
    lat: float
    lng: float


class Square(BaseModel):
    """Bounds of a 3m x 3m What3Words square."""

    southwest: LatLng
    northeast: LatLng


class PointGeometry(BaseModel):
    type: Literal["Point"] = "Point"
    coordinates: List[float] = Field(..., description="[x, y] i.e. [lon, lat] for WGS84")


class LocationProperties(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    words: str
    country: str
    nearest_place: Optional[str] = Field(None, alias="nearestPlace")
    language: str
    map: Optional[str] = None
    square: Square


class GeoJsonFeature(BaseModel):
    type: Literal["Feature"] = "Feature"
    id: str
    geometry: PointGeometry
    properties: LocationProperties


class NamedCrsProperties(BaseModel):
    name: str


class NamedCrs(BaseModel):
    type: Literal["name"] = "name"
    properties: NamedCrsProperties


class GeoJsonFeatureCollection(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    type: Literal["FeatureCollection"] = "FeatureCollection"
    features: List[GeoJsonFeature]
    number_matched: int = Field(..., alias="numberMatched")
    number_returned: int = Field(..., alias="numberReturned")
    crs: Optional[NamedCrs] = None
