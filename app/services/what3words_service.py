"""
What3Words Service

This service interfaces with the What3Words REST API to convert WGS84
coordinates into three-word addresses.

API Endpoint: https://api.what3words.com/v3/
Documentation: https://developer.what3words.com/public-api/docs
"""

import logging
from typing import Optional

import httpx
from pydantic import ValidationError

from app.core.config import settings
from app.core.exceptions import InvalidCoordinateError
from app.schemas.geo import GeoCoordinate
from app.schemas.health import ServiceHealth
from app.schemas.location import ConvertTo3waResponse, ThreeWordLocation

logger = logging.getLogger(__name__)

# Coordinate queried by the health check (London)
HEALTH_CHECK_COORDINATE = GeoCoordinate(51.520847, -0.195521)


class What3WordsServiceError(Exception):
    """Base exception for What3Words API failures."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        error_code: Optional[str] = None,
    ):
        self.status_code = status_code
        self.error_code = error_code
        super().__init__(message)


class What3WordsAPIError(What3WordsServiceError):
    """Raised when the What3Words API returns a non-success status."""


class What3WordsNetworkError(What3WordsServiceError):
    """Raised when network communication fails or times out."""


class What3WordsDataError(What3WordsServiceError):
    """Raised when response data cannot be parsed."""


class What3WordsService:
    """
    Client for the What3Words convert-to-3wa endpoint.
    """

    def __init__(self):
        """
        Initialize the What3Words client with configuration.
        """
        self._api_url = settings.W3W_BASE_URL
        self._api_key = settings.W3W_API_KEY
        self._timeout = settings.W3W_TIMEOUT_SECONDS
        self._default_language = settings.W3W_DEFAULT_LANGUAGE
        self._client: Optional[httpx.AsyncClient] = None

    def _get_client(self) -> httpx.AsyncClient:
        """
        Get or create the HTTP client for the What3Words API.
        """
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._api_url,
                timeout=self._timeout,
                headers={"X-Api-Key": self._api_key},
            )
        return self._client

    async def convert_to_words(
        self, coordinate: GeoCoordinate, language: Optional[str] = None
    ) -> ThreeWordLocation:
        """
        Convert a WGS84 coordinate to a three-word address.

        Args:
            coordinate: WGS84 coordinate to convert
            language: Language of the three-word address (defaults to configured language)

        Returns:
            ThreeWordLocation for the 3m x 3m square containing the coordinate

        Raises:
            InvalidCoordinateError: If the coordinate is outside the WGS84 range
            What3WordsAPIError: If the API returns a non-success status
            What3WordsNetworkError: If the request fails or times out
            What3WordsDataError: If the response body cannot be parsed
        """
        if not coordinate.is_valid():
            raise InvalidCoordinateError(f"Invalid coordinate: {coordinate}")

        language = language or self._default_language
        params = {
            "coordinates": f"{coordinate.latitude},{coordinate.longitude}",
            "language": language,
        }

        logger.debug("Requesting convert-to-3wa for coordinate (%s)", coordinate)

        try:
            client = self._get_client()
            response = await client.get("convert-to-3wa", params=params)
        except httpx.TimeoutException as e:
            logger.warning("Request to What3Words API timed out for (%s)", coordinate)
            raise What3WordsNetworkError("What3Words API request timed out") from e
        except httpx.HTTPError as e:
            logger.error("Network error while contacting What3Words API: %s", str(e))
            raise What3WordsNetworkError("Failed to connect to What3Words API") from e
        except Exception as e:  # pylint: disable=broad-except
            logger.error("Unexpected error calling What3Words API: %s", str(e))
            raise What3WordsServiceError("Unexpected error calling What3Words API") from e

        if not response.is_success:
            error_code = self._error_code(response)
            logger.error(
                "What3Words API returned %s: %s", response.status_code, response.text
            )
            raise What3WordsAPIError(
                f"What3Words API request failed with status {response.status_code}",
                status_code=response.status_code,
                error_code=error_code,
            )

        try:
            location = self._parse_location(response.json(), language)
        except (ValueError, ValidationError) as e:
            logger.error("Failed to parse What3Words API response: %s", str(e))
            raise What3WordsDataError(f"Invalid response from What3Words API: {str(e)}") from e

        logger.debug("What3Words API response: '%s' for (%s)", location.words, coordinate)
        return location

    async def health_check(self) -> ServiceHealth:
        """
        Perform a health check of the What3Words API.

        Returns:
            ServiceHealth indicating whether the API answers a known coordinate.
        """
        try:
            client = self._get_client()
            response = await client.get(
                "convert-to-3wa",
                params={"coordinates": str(HEALTH_CHECK_COORDINATE)},
            )

            if response.status_code == 200:
                return ServiceHealth(healthy=True, message="What3Words API is responding")
            return ServiceHealth(
                healthy=False,
                message=f"What3Words API returned status code: {response.status_code}",
            )

        except httpx.TimeoutException:
            return ServiceHealth(healthy=False, message="What3Words API request timed out")
        except Exception as e:  # pylint: disable=broad-except
            logger.warning("Health check failed for What3Words API: %s", str(e))
            return ServiceHealth(healthy=False, message=f"What3Words API check failed: {str(e)}")

    def _parse_location(self, data: dict, language: str) -> ThreeWordLocation:
        """
        Map a convert-to-3wa response body to a ThreeWordLocation.
        """
        body = ConvertTo3waResponse.model_validate(data)
        if body.coordinates is None or body.square is None:
            raise ValueError("response has no coordinates or square")

        return ThreeWordLocation(
            words=body.words or "",
            coordinates=body.coordinates.to_coordinate(),
            country=body.country or "",
            square=body.square.to_bounding_box(),
            nearest_place=body.nearest_place,
            language=language,
            map=body.map,
        )

    @staticmethod
    def _error_code(response: httpx.Response) -> Optional[str]:
        try:
            return response.json().get("error", {}).get("code")
        except (ValueError, AttributeError):
            return None

    async def close(self):
        """
        Close the HTTP client and release its connections.
        """
        if self._client is not None:
            await self._client.aclose()
            self._client = None


# Singleton instance for dependency injection
what3words_service = What3WordsService()
