"""
WFS Error Taxonomy

Exceptions raised by the request pipeline. Each carries the HTTP status
the WFS endpoint maps it to, so the endpoint layer can translate any of
them into a ``{"error": ...}`` response without knowing the details.

Upstream geocoding failures live with the geocoding client in
``app.services.what3words_service``.
"""

from typing import Iterable, List


class WfsError(Exception):
    """Base exception for WFS request errors."""

    status_code: int = 400

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class InvalidArgumentError(ValueError, WfsError):
    """Raised when a local precondition on an argument is violated."""

    def __init__(self, message: str, argument: str = ""):
        self.argument = argument
        WfsError.__init__(self, message)


class InvalidCoordinateError(InvalidArgumentError):
    """Raised when a coordinate is outside the WGS84 range."""

    def __init__(self, message: str = "Invalid coordinate", argument: str = "coordinate"):
        super().__init__(message, argument)


class UnsupportedCrsError(WfsError):
    """Raised when a coordinate reference system is not in the registry."""

    def __init__(self, code: str, supported: Iterable[str]):
        self.code = code
        self.supported: List[str] = list(supported)
        super().__init__(
            f"Coordinate system {code} is not supported. "
            f"Supported systems: {', '.join(self.supported)}"
        )


class MissingParameterError(WfsError):
    """Raised when a required WFS query parameter is absent."""

    def __init__(self, parameter: str, message: str = ""):
        self.parameter = parameter
        super().__init__(message or f"{parameter} parameter is required")


class InvalidBoundingBoxError(WfsError):
    """Raised when a bounding box does not have strictly increasing bounds."""
