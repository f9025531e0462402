"""
WFS Service

Dispatches WFS operations. GetFeature runs the full pipeline:

    validate BBOX -> transform to WGS84 -> generate grid
        -> geocode every point -> assemble collection -> format

The What3Words API only accepts WGS84, so everything after the BBOX
transform happens in WGS84 and responses are always written in WGS84.
"""

import asyncio
import logging
from typing import List, Optional

from pydantic import BaseModel, ConfigDict

from app.core.config import Settings, settings
from app.core.exceptions import (
    InvalidArgumentError,
    InvalidBoundingBoxError,
    InvalidCoordinateError,
    MissingParameterError,
    UnsupportedCrsError,
)
from app.schemas.feature import WfsFeature, WfsFeatureCollection
from app.schemas.geo import BoundingBox, GeoCoordinate
from app.schemas.location import ThreeWordLocation
from app.schemas.wfs import WfsDialect, WfsRequest, WfsResponse
from app.services.capabilities_formatter import WfsCapabilitiesFormatter, capabilities_formatter
from app.services.crs_service import WGS84, CoordinateTransformationService, crs_service
from app.services.feature_formatter import WfsFeatureFormatter, feature_formatter
from app.services.grid_service import CoordinateGridService, grid_service
from app.services.what3words_service import (
    What3WordsService,
    What3WordsServiceError,
    what3words_service,
)

logger = logging.getLogger(__name__)

XML_MEDIA_TYPE = "application/xml"
GML_MEDIA_TYPE = "application/gml+xml"
GEOJSON_MEDIA_TYPE = "application/geo+json"

DESCRIBE_FEATURE_TYPE_FORMATS = ("XMLSCHEMA", "TEXT/XML", "APPLICATION/XML")


class GeocodeOutcome(BaseModel):
    """Result of geocoding one grid point: a location or an error message."""

    model_config = ConfigDict(frozen=True)

    coordinate: GeoCoordinate
    location: Optional[ThreeWordLocation] = None
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.location is not None


class WfsService:
    """
    Service implementing the WFS operations.
    """

    def __init__(
        self,
        config: Settings = settings,
        geocoder: What3WordsService = what3words_service,
        grid: CoordinateGridService = grid_service,
        transformer: CoordinateTransformationService = crs_service,
        capabilities: WfsCapabilitiesFormatter = capabilities_formatter,
        features: WfsFeatureFormatter = feature_formatter,
    ):
        self._config = config
        self._geocoder = geocoder
        self._grid = grid
        self._crs = transformer
        self._capabilities = capabilities
        self._features = features

    def dialect_for(self, version: Optional[str]) -> WfsDialect:
        return WfsDialect.from_version(version, self._config.WFS_DEFAULT_VERSION)

    def get_capabilities(self, version: Optional[str], service_url: str) -> WfsResponse:
        """
        Build the GetCapabilities response.

        Args:
            version: Requested WFS version (defaults to configured version)
            service_url: URL advertised for the operations
        """
        dialect = self.dialect_for(version)
        service_url = self._config.WFS_SERVICE_URL or service_url
        logger.debug("Generating GetCapabilities response for version %s", dialect.value)

        xml = self._capabilities.generate_capabilities(dialect, service_url)

        logger.debug("GetCapabilities response generated (%d bytes)", len(xml))
        return WfsResponse(content=xml, media_type=XML_MEDIA_TYPE)

    def describe_feature_type(
        self, version: Optional[str], output_format: Optional[str] = None
    ) -> WfsResponse:
        """
        Build the DescribeFeatureType response.

        Raises:
            InvalidArgumentError: If the requested output format is not an XML schema format
        """
        dialect = self.dialect_for(version)
        logger.debug(
            "DescribeFeatureType request: version=%s, outputFormat=%s",
            dialect.value,
            output_format or "default",
        )

        if output_format:
            requested = output_format.upper()
            if not any(f in requested for f in DESCRIBE_FEATURE_TYPE_FORMATS):
                logger.warning("Unsupported outputFormat requested: %s", output_format)
                raise InvalidArgumentError(
                    f"OutputFormat '{output_format}' is not supported. "
                    "Supported formats: XMLSCHEMA, text/xml; subtype=gml/3.1.1, "
                    "text/xml; subtype=gml/3.2.0",
                    "outputFormat",
                )

        xml = self._features.describe_feature_type(dialect)
        return WfsResponse(content=xml, media_type=XML_MEDIA_TYPE)

    async def get_feature(self, request: WfsRequest) -> WfsResponse:
        """
        Run the GetFeature pipeline for a parsed request.

        Raises:
            MissingParameterError: If no BBOX was found in BBOX or FILTER
            InvalidBoundingBoxError: If the BBOX bounds are not strictly increasing
            UnsupportedCrsError: If the request CRS is not supported
            InvalidArgumentError: If the BBOX is not valid WGS84 after transformation,
                or maxFeatures is not positive
        """
        bbox = self.resolve_bbox(request.bbox, request.srs_name)
        max_features = self.feature_limit(request.max_features)

        collection = await self.fetch_features(bbox, max_features)

        logger.info("Returning %d features for GetFeature request", collection.total_count)

        # Output is always WGS84: the grid and the What3Words results are WGS84
        output_format = (request.output_format or "").lower()
        if "json" in output_format:
            json_body = self._features.format_as_geojson(collection, WGS84)
            return WfsResponse(content=json_body, media_type=GEOJSON_MEDIA_TYPE)

        dialect = WfsDialect.for_features(request.version, self._config.WFS_DEFAULT_VERSION)
        xml = self._features.format_as_gml(collection, dialect, WGS84)
        return WfsResponse(content=xml, media_type=GML_MEDIA_TYPE)

    def resolve_bbox(self, bbox: Optional[BoundingBox], srs_name: Optional[str]) -> BoundingBox:
        """
        Validate a request BBOX and bring it into WGS84.

        The BBOX may be in any supported CRS; ordering is checked on the raw
        values before any transformation.
        """
        if bbox is None:
            logger.warning("GetFeature request missing required BBOX parameter")
            raise MissingParameterError(
                "BBOX", "BBOX parameter is required for GetFeature requests"
            )

        if bbox.min_longitude >= bbox.max_longitude or bbox.min_latitude >= bbox.max_latitude:
            logger.warning("GetFeature request with invalid BBOX (min >= max): %s", bbox)
            raise InvalidBoundingBoxError(
                "Invalid BBOX parameter: minimum values must be less than maximum values"
            )

        source = self._crs.normalize_code(srs_name)
        logger.info(
            "GetFeature request: BBOX=[%s], SRS=%s", bbox.to_wfs_string(), source
        )

        if source == WGS84:
            return bbox

        if not self._crs.is_supported(source):
            logger.warning(
                "GetFeature request with unsupported CRS: %s. Supported: %s",
                source,
                ", ".join(self._crs.supported_codes),
            )
            raise UnsupportedCrsError(source, self._crs.supported_codes)

        transformed = self._crs.transform_bbox_to_wgs84(bbox, source)
        logger.info(
            "Transformed BBOX from %s to WGS84: [%s]", source, transformed.to_wfs_string()
        )
        return transformed

    def feature_limit(self, requested: Optional[int]) -> int:
        """
        Requested maxFeatures, or the configured default when absent.

        Non-positive values are passed through and rejected by the grid.
        """
        if requested is None:
            return self._config.WFS_MAX_FEATURES
        return requested

    async def fetch_features(
        self,
        bbox: BoundingBox,
        max_features: int,
        language: Optional[str] = None,
    ) -> WfsFeatureCollection:
        """
        Geocode a grid over a WGS84 BBOX and collect the successes.

        Failed points are logged and skipped. Feature ids are assigned after
        all calls complete, in grid order, to successes only, so ids are
        dense and deterministic.
        """
        coordinates = self._grid.generate_grid(
            bbox, self._config.WFS_DEFAULT_GRID_DENSITY, max_features
        )
        outcomes = await self.geocode_all(coordinates, language)

        features: List[WfsFeature] = []
        for outcome in outcomes:
            if outcome.succeeded:
                features.append(
                    WfsFeature(
                        id=f"location.{len(features) + 1}",
                        coordinate=outcome.coordinate,
                        location=outcome.location,
                    )
                )

        failed = len(outcomes) - len(features)
        if failed:
            logger.warning("%d of %d grid points could not be geocoded", failed, len(outcomes))

        return WfsFeatureCollection(
            features=features, total_count=len(features), bounding_box=bbox
        )

    async def geocode_all(
        self, coordinates: List[GeoCoordinate], language: Optional[str] = None
    ) -> List[GeocodeOutcome]:
        """
        Geocode coordinates concurrently with bounded parallelism.

        The returned outcomes are in the same order as ``coordinates``. If any
        point raises an unexpected error, the remaining calls are cancelled
        and awaited before the error propagates.
        """
        semaphore = asyncio.Semaphore(max(1, self._config.W3W_MAX_CONCURRENCY))

        async def geocode(coordinate: GeoCoordinate) -> GeocodeOutcome:
            async with semaphore:
                try:
                    location = await self._geocoder.convert_to_words(coordinate, language)
                except (What3WordsServiceError, InvalidCoordinateError) as e:
                    logger.warning(
                        "Failed to get What3Words data for coordinate %s: %s", coordinate, str(e)
                    )
                    return GeocodeOutcome(coordinate=coordinate, error=str(e))
                return GeocodeOutcome(coordinate=coordinate, location=location)

        tasks = [asyncio.ensure_future(geocode(c)) for c in coordinates]
        try:
            return list(await asyncio.gather(*tasks))
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise


# Singleton instance for dependency injection
wfs_service = WfsService()
