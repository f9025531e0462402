"""
Feature Schema

Pydantic models for WFS features and feature collections.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.schemas.geo import BoundingBox, GeoCoordinate
from app.schemas.location import ThreeWordLocation


class WfsFeature(BaseModel):
    """A grid point combined with its three-word location."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Feature identifier, e.g. location.1")
    coordinate: GeoCoordinate
    location: ThreeWordLocation


class WfsFeatureCollection(BaseModel):
    """A set of features returned by GetFeature."""

    model_config = ConfigDict(frozen=True)

    features: List[WfsFeature]
    total_count: int = Field(..., description="Number of features in the collection")
    bounding_box: Optional[BoundingBox] = None
