"""
Coordinate Transformation Service

Transforms coordinates between WGS84 and the coordinate reference systems
the WFS advertises. WGS84 (EPSG:4326) is always the pivot: forward
transforms go WGS84 -> target, inverse transforms go source -> WGS84, and
there is no direct projected-to-projected path.

The projection math is done by pyproj. Each supported system is described
by a static table of projection parameters which is rendered to a PROJ
string, so the datum shifts used are exactly the ones listed here.
"""

import logging
import math
import threading
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict
from pyproj import CRS, Transformer
from pyproj.exceptions import CRSError, ProjError

from app.core.exceptions import InvalidCoordinateError, UnsupportedCrsError
from app.schemas.geo import BoundingBox, GeoCoordinate

logger = logging.getLogger(__name__)

WGS84 = "EPSG:4326"

_URN_PREFIXES = (
    "URN:OGC:DEF:CRS:EPSG::",
    "URN:OGC:DEF:CRS:EPSG:",
    "URN:X-OGC:DEF:CRS:EPSG:",
)
_URL_PREFIXES = (
    "HTTP://WWW.OPENGIS.NET/DEF/CRS/EPSG/0/",
    "HTTPS://WWW.OPENGIS.NET/DEF/CRS/EPSG/0/",
    "HTTP://WWW.OPENGIS.NET/GML/SRS/EPSG.XML#",
)


class ProjectionParameters(BaseModel):
    """PROJ projection parameters for one coordinate reference system."""

    model_config = ConfigDict(frozen=True)

    proj: str
    ellps: str = "WGS84"
    lat_0: Optional[float] = None
    lon_0: Optional[float] = None
    lat_1: Optional[float] = None
    lat_2: Optional[float] = None
    k: Optional[float] = None
    x_0: Optional[float] = None
    y_0: Optional[float] = None
    towgs84: Tuple[float, ...] = (0.0, 0.0, 0.0)

    def to_proj_string(self) -> str:
        parts = [f"+proj={self.proj}"]
        for name in ("lat_0", "lon_0", "lat_1", "lat_2", "k", "x_0", "y_0"):
            value = getattr(self, name)
            if value is not None:
                parts.append(f"+{name}={value!r}")
        parts.append(f"+ellps={self.ellps}")
        parts.append("+towgs84=" + ",".join(repr(v) for v in self.towgs84))
        if self.proj != "longlat":
            parts.append("+units=m")
        parts.append("+no_defs")
        return " ".join(parts)


class CrsDefinition(BaseModel):
    """A supported coordinate reference system."""

    model_config = ConfigDict(frozen=True)

    code: str
    name: str
    geographic: bool
    parameters: ProjectionParameters


def _utm(zone: int, ellps: str = "WGS84") -> ProjectionParameters:
    return ProjectionParameters(
        proj="tmerc",
        ellps=ellps,
        lat_0=0.0,
        lon_0=-183.0 + zone * 6.0,
        k=0.9996,
        x_0=500000.0,
        y_0=0.0,
    )


# Built once at import time and never mutated.
CRS_REGISTRY: Mapping[str, CrsDefinition] = MappingProxyType(
    {
        definition.code: definition
        for definition in (
            CrsDefinition(
                code="EPSG:4326",
                name="WGS 84",
                geographic=True,
                parameters=ProjectionParameters(proj="longlat"),
            ),
            CrsDefinition(
                code="EPSG:3857",
                name="WGS 84 / Pseudo-Mercator",
                geographic=False,
                parameters=ProjectionParameters(
                    proj="webmerc", lat_0=0.0, lon_0=0.0, x_0=0.0, y_0=0.0
                ),
            ),
            CrsDefinition(
                code="EPSG:4258",
                name="ETRS89",
                geographic=True,
                parameters=ProjectionParameters(proj="longlat", ellps="GRS80"),
            ),
            CrsDefinition(
                code="EPSG:27700",
                name="OSGB 1936 / British National Grid",
                geographic=False,
                parameters=ProjectionParameters(
                    proj="tmerc",
                    ellps="airy",
                    lat_0=49.0,
                    lon_0=-2.0,
                    k=0.9996012717,
                    x_0=400000.0,
                    y_0=-100000.0,
                    towgs84=(446.448, -125.157, 542.06, 0.15, 0.247, 0.842, -20.489),
                ),
            ),
            CrsDefinition(
                code="EPSG:32630",
                name="WGS 84 / UTM zone 30N",
                geographic=False,
                parameters=_utm(30),
            ),
            CrsDefinition(
                code="EPSG:32631",
                name="WGS 84 / UTM zone 31N",
                geographic=False,
                parameters=_utm(31),
            ),
            CrsDefinition(
                code="EPSG:2154",
                name="RGF93 / Lambert-93",
                geographic=False,
                parameters=ProjectionParameters(
                    proj="lcc",
                    ellps="GRS80",
                    lat_0=46.5,
                    lon_0=3.0,
                    lat_1=49.0,
                    lat_2=44.0,
                    x_0=700000.0,
                    y_0=6600000.0,
                ),
            ),
            CrsDefinition(
                code="EPSG:25832",
                name="ETRS89 / UTM zone 32N",
                geographic=False,
                parameters=_utm(32, ellps="GRS80"),
            ),
        )
    }
)


class CoordinateTransformationService:
    """
    Service for coordinate transformations between WGS84 and supported systems.

    pyproj transformers are not safe to share between threads, so they are
    created lazily and cached per thread.
    """

    def __init__(self, registry: Mapping[str, CrsDefinition] = CRS_REGISTRY):
        self._registry = registry
        self._local = threading.local()

    @property
    def supported_codes(self) -> List[str]:
        """Supported EPSG codes, WGS84 first."""
        return list(self._registry.keys())

    def normalize_code(self, code: Optional[str]) -> str:
        """
        Normalize a CRS identifier to ``EPSG:<n>``.

        Accepts a bare number, ``EPSG:n``, ``urn:ogc:def:crs:EPSG::n`` and
        ``http://www.opengis.net/def/crs/EPSG/0/n`` in any case. Empty input
        defaults to WGS84.
        """
        if code is None or not code.strip():
            return WGS84

        code = code.strip().upper()

        if code.startswith("EPSG:"):
            return code

        for prefix in _URN_PREFIXES + _URL_PREFIXES:
            if code.startswith(prefix):
                return f"EPSG:{code[len(prefix):]}"

        return f"EPSG:{code}"

    def is_supported(self, code: Optional[str]) -> bool:
        return self.normalize_code(code) in self._registry

    def get_definition(self, code: Optional[str]) -> CrsDefinition:
        """
        Look up a supported system.

        Raises:
            UnsupportedCrsError: If the code is not in the registry
        """
        normalized = self.normalize_code(code)
        definition = self._registry.get(normalized)
        if definition is None:
            raise UnsupportedCrsError(normalized, self.supported_codes)
        return definition

    def transform(self, coordinate: GeoCoordinate, target_code: Optional[str]) -> GeoCoordinate:
        """
        Transform a WGS84 coordinate into the target system.

        For projected targets the result holds northing in ``latitude`` and
        easting in ``longitude``.

        Raises:
            InvalidCoordinateError: If the input is not a valid WGS84 coordinate
            UnsupportedCrsError: If the target system is not supported
        """
        if not coordinate.is_valid():
            raise InvalidCoordinateError(f"Invalid coordinate: {coordinate}")

        definition = self.get_definition(target_code)
        if definition.code == WGS84:
            return coordinate

        x, y = self._run(definition.code, coordinate.longitude, coordinate.latitude, inverse=False)
        return GeoCoordinate(y, x)

    def to_wgs84(self, x: float, y: float, source_code: Optional[str]) -> GeoCoordinate:
        """
        Transform ``x``/``y`` (easting/northing, or lon/lat) from a source
        system back to WGS84.

        Raises:
            UnsupportedCrsError: If the source system is not supported
            InvalidCoordinateError: If the result is not a valid WGS84 coordinate
        """
        definition = self.get_definition(source_code)
        if definition.code == WGS84:
            result = GeoCoordinate(y, x)
        else:
            lon, lat = self._run(definition.code, x, y, inverse=True)
            result = GeoCoordinate(lat, lon)

        if not result.is_valid():
            raise InvalidCoordinateError(
                f"Coordinate ({x}, {y}) in {definition.code} is outside the WGS84 range"
            )
        return result

    def transform_bbox_to_wgs84(self, bbox: BoundingBox, source_code: Optional[str]) -> BoundingBox:
        """
        Transform a bounding box given in a source system to WGS84.

        All four corners are transformed and the enclosing envelope is
        returned, since a rectangle in a projected system is not a rectangle
        in latitude/longitude.
        """
        corners = [
            self.to_wgs84(x, y, source_code)
            for x, y in (
                (bbox.min_longitude, bbox.min_latitude),
                (bbox.min_longitude, bbox.max_latitude),
                (bbox.max_longitude, bbox.min_latitude),
                (bbox.max_longitude, bbox.max_latitude),
            )
        ]
        return BoundingBox(
            min(c.latitude for c in corners),
            min(c.longitude for c in corners),
            max(c.latitude for c in corners),
            max(c.longitude for c in corners),
        )

    def _run(self, code: str, x: float, y: float, inverse: bool) -> Tuple[float, float]:
        transformer = self._get_transformer(code, inverse)
        try:
            out_x, out_y = transformer.transform(x, y, errcheck=True)
        except ProjError as e:
            raise InvalidCoordinateError(
                f"Coordinate ({x}, {y}) cannot be transformed with {code}: {e}"
            ) from e

        if not (math.isfinite(out_x) and math.isfinite(out_y)):
            raise InvalidCoordinateError(f"Coordinate ({x}, {y}) cannot be represented in {code}")
        return out_x, out_y

    def _get_transformer(self, code: str, inverse: bool) -> Transformer:
        cache: Optional[Dict[Tuple[str, bool], Transformer]] = getattr(
            self._local, "transformers", None
        )
        if cache is None:
            cache = {}
            self._local.transformers = cache

        key = (code, inverse)
        if key not in cache:
            wgs84 = self._crs(WGS84)
            other = self._crs(code)
            source, target = (other, wgs84) if inverse else (wgs84, other)
            cache[key] = Transformer.from_crs(source, target, always_xy=True)
            logger.debug(
                "Created transformer %s -> %s",
                code if inverse else WGS84,
                WGS84 if inverse else code,
            )
        return cache[key]

    def _crs(self, code: str) -> CRS:
        try:
            return CRS.from_proj4(self._registry[code].parameters.to_proj_string())
        except CRSError:
            logger.error("Invalid projection parameters for %s", code)
            raise


# Singleton instance for dependency injection
crs_service = CoordinateTransformationService()
