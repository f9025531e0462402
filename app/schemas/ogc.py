"""
OGC API - Features Schema

Pydantic models for the minimal OGC API - Features facade over the
``location`` feature type.

References:
- OGC API - Features Core 1.0: https://docs.ogc.org/is/17-069r4/17-069r4.html
"""

from typing import List, Literal, Optional

from pydantic import BaseModel, Field

CRS84 = "http://www.opengis.net/def/crs/OGC/1.3/CRS84"

CONFORMANCE_CLASSES = [
    "http://www.opengis.net/spec/ogcapi-features-1/1.0/conf/core",
    "http://www.opengis.net/spec/ogcapi-features-1/1.0/conf/geojson",
]


class OGCLink(BaseModel):
    """Link object (RFC 8288 Web Linking)."""

    href: str
    rel: str
    type: Optional[str] = None
    title: Optional[str] = None


class OGCLandingPage(BaseModel):
    title: str
    description: Optional[str] = None
    links: List[OGCLink]


class OGCConformance(BaseModel):
    conformsTo: List[str] = Field(default_factory=lambda: list(CONFORMANCE_CLASSES))


class OGCSpatialExtent(BaseModel):
    bbox: List[List[float]] = Field(..., description="minx, miny, maxx, maxy")
    crs: str = CRS84


class OGCExtent(BaseModel):
    spatial: OGCSpatialExtent


class OGCCollection(BaseModel):
    id: str
    title: str
    description: Optional[str] = None
    links: List[OGCLink]
    extent: OGCExtent
    itemType: Literal["feature"] = "feature"
    crs: List[str]


class OGCCollectionList(BaseModel):
    collections: List[OGCCollection]
    links: List[OGCLink]
