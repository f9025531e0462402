"""
Coordinate Grid Service

Tiles a WGS84 bounding box into a regular lattice of points. Each point
is later resolved to a three-word address, so the lattice is capped and
emitted lazily: generation stops as soon as the cap is reached.
"""

import logging
import math
from typing import Iterator, List

from app.core.exceptions import InvalidArgumentError
from app.schemas.geo import BoundingBox, GeoCoordinate

logger = logging.getLogger(__name__)

# Absorbs float error in (max - min) / step so the upper bound is reached
_STEP_TOLERANCE = 1e-9


class CoordinateGridService:
    """Service for generating coordinate grids within bounding boxes."""

    def iter_grid(
        self,
        bbox: BoundingBox,
        density: float = 100.0,
        max_points: int = 1000,
    ) -> Iterator[GeoCoordinate]:
        """
        Lazily yield lattice points covering ``bbox``.

        Points are spaced ``1 / density`` degrees apart in both axes, start at
        the south-west corner and include the north/east bounds when they
        fall on the lattice. Order is row-major: ascending latitude, then
        ascending longitude. At most ``max_points`` points are yielded.

        Args:
            bbox: WGS84 bounding box
            density: Points per degree
            max_points: Maximum number of points to yield

        Raises:
            InvalidArgumentError: If any argument is invalid
        """
        self._validate(bbox, density, max_points)

        step = 1.0 / density
        lat_count = self._steps(bbox.height, step)
        lon_count = self._steps(bbox.width, step)

        emitted = 0
        for i in range(lat_count):
            lat = min(bbox.min_latitude + i * step, bbox.max_latitude)
            for j in range(lon_count):
                if emitted >= max_points:
                    return

                lon = min(bbox.min_longitude + j * step, bbox.max_longitude)
                coordinate = GeoCoordinate(lat, lon)
                if coordinate.is_valid() and bbox.contains(coordinate):
                    emitted += 1
                    yield coordinate

    def generate_grid(
        self,
        bbox: BoundingBox,
        density: float = 100.0,
        max_points: int = 1000,
    ) -> List[GeoCoordinate]:
        """Generate the grid as a list. See ``iter_grid``."""
        points = list(self.iter_grid(bbox, density, max_points))
        logger.debug(
            "Generated %d grid points for BBOX [%s] at density %s",
            len(points),
            bbox,
            density,
        )
        return points

    @staticmethod
    def _steps(extent: float, step: float) -> int:
        return int(math.floor(extent / step + _STEP_TOLERANCE)) + 1

    @staticmethod
    def _validate(bbox: BoundingBox, density: float, max_points: int) -> None:
        if not bbox.is_valid():
            raise InvalidArgumentError(
                "Invalid bounding box - coordinates must be in WGS84 (EPSG:4326)",
                "bbox",
            )
        if not density > 0 or not math.isfinite(density):
            raise InvalidArgumentError("Grid density must be positive", "density")
        if max_points <= 0:
            raise InvalidArgumentError("Max points must be positive", "max_points")


# Singleton instance for dependency injection
grid_service = CoordinateGridService()
