"""
OGC API - Features Service

A minimal OGC API - Features facade over the same pipeline as WFS
GetFeature. It serves one collection, ``location``, and only GeoJSON in
WGS84 (CRS84 axis order).
"""

import logging
from typing import Optional

from app.core.config import Settings, settings
from app.schemas.geo import BoundingBox
from app.schemas.ogc import (
    CRS84,
    OGCCollection,
    OGCCollectionList,
    OGCConformance,
    OGCExtent,
    OGCLandingPage,
    OGCLink,
    OGCSpatialExtent,
)
from app.schemas.wfs import WfsResponse
from app.services.crs_service import WGS84
from app.services.feature_formatter import WfsFeatureFormatter, feature_formatter
from app.services.wfs_service import GEOJSON_MEDIA_TYPE, WfsService, wfs_service

logger = logging.getLogger(__name__)

COLLECTION_ID = "location"
JSON_MEDIA_TYPE = "application/json"


class OgcFeaturesService:
    """Builds OGC API - Features documents for the location collection."""

    def __init__(
        self,
        config: Settings = settings,
        wfs: WfsService = wfs_service,
        features: WfsFeatureFormatter = feature_formatter,
    ):
        self._config = config
        self._wfs = wfs
        self._features = features

    def get_landing_page(self, base_url: str) -> OGCLandingPage:
        return OGCLandingPage(
            title=self._config.WFS_SERVICE_TITLE,
            description=self._config.WFS_SERVICE_ABSTRACT,
            links=[
                OGCLink(href=base_url, rel="self", type=JSON_MEDIA_TYPE, title="This document"),
                OGCLink(
                    href=f"{base_url}/conformance",
                    rel="conformance",
                    type=JSON_MEDIA_TYPE,
                    title="Conformance classes implemented by this API",
                ),
                OGCLink(
                    href=f"{base_url}/collections",
                    rel="data",
                    type=JSON_MEDIA_TYPE,
                    title="Feature collections",
                ),
            ],
        )

    def get_conformance(self) -> OGCConformance:
        return OGCConformance()

    def get_collections(self, base_url: str) -> OGCCollectionList:
        return OGCCollectionList(
            collections=[self._collection(base_url)],
            links=[
                OGCLink(href=f"{base_url}/collections", rel="self", type=JSON_MEDIA_TYPE)
            ],
        )

    def get_collection(self, collection_id: str, base_url: str) -> Optional[OGCCollection]:
        """The collection, or None when ``collection_id`` is unknown."""
        if collection_id != COLLECTION_ID:
            return None
        return self._collection(base_url)

    async def get_items(self, bbox: BoundingBox, limit: Optional[int]) -> WfsResponse:
        """
        Geocode a WGS84 BBOX and return the features as GeoJSON.

        Raises:
            InvalidBoundingBoxError: If the BBOX bounds are not strictly increasing
            InvalidArgumentError: If limit is not positive
        """
        wgs84_bbox = self._wfs.resolve_bbox(bbox, WGS84)
        collection = await self._wfs.fetch_features(wgs84_bbox, self._wfs.feature_limit(limit))
        logger.info("Returning %d items for collection %s", collection.total_count, COLLECTION_ID)
        return WfsResponse(
            content=self._features.format_as_geojson(collection, WGS84),
            media_type=GEOJSON_MEDIA_TYPE,
        )

    def _collection(self, base_url: str) -> OGCCollection:
        href = f"{base_url}/collections/{COLLECTION_ID}"
        return OGCCollection(
            id=COLLECTION_ID,
            title="What3Words Location",
            description="Geographic location with What3Words 3-word address",
            links=[
                OGCLink(href=href, rel="self", type=JSON_MEDIA_TYPE),
                OGCLink(href=f"{href}/items", rel="items", type=GEOJSON_MEDIA_TYPE),
            ],
            extent=OGCExtent(spatial=OGCSpatialExtent(bbox=[[-180.0, -90.0, 180.0, 90.0]])),
            crs=[CRS84],
        )


# Singleton instance for dependency injection
ogc_service = OgcFeaturesService()
