"""
WFS Request Schema

Normalized view of an incoming WFS key-value-pair request and the
protocol dialect it resolves to.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from app.schemas.geo import BoundingBox


class WfsDialect(str, Enum):
    """WFS wire-format dialects."""

    V1_0 = "1.0.0"
    V2_0 = "2.0.0"

    @classmethod
    def from_version(cls, version: Optional[str], default: str = "2.0.0") -> "WfsDialect":
        """
        Resolve a requested version string to a dialect.

        Versions starting with ``2.`` use the WFS 2.0 dialect, anything else
        falls back to WFS 1.0. A missing version resolves ``default``.
        """
        version = (version or "").strip() or default
        return cls.V2_0 if version.startswith("2.") else cls.V1_0

    @classmethod
    def for_features(cls, version: Optional[str], default: str = "2.0.0") -> "WfsDialect":
        """
        Resolve the GML dialect of a GetFeature response.

        Only ``1.0.0`` is written as GML 2; every other version gets GML 3.
        """
        version = (version or "").strip() or default
        return cls.V1_0 if version == cls.V1_0.value else cls.V2_0

    @property
    def is_v2(self) -> bool:
        return self is WfsDialect.V2_0


class WfsOperation(str, Enum):
    """Supported WFS operations."""

    GET_CAPABILITIES = "GetCapabilities"
    DESCRIBE_FEATURE_TYPE = "DescribeFeatureType"
    GET_FEATURE = "GetFeature"

    @classmethod
    def from_request(cls, request: Optional[str]) -> Optional["WfsOperation"]:
        """Match a REQUEST parameter case-insensitively."""
        if not request:
            return None
        for operation in cls:
            if operation.value.upper() == request.strip().upper():
                return operation
        return None


class WfsRequest(BaseModel):
    """A parsed WFS request."""

    model_config = ConfigDict(frozen=True)

    service: Optional[str] = Field(None, description="Service name, normally WFS")
    version: Optional[str] = Field(None, description="Requested WFS version")
    request: Optional[str] = Field(None, description="Operation name as sent by the client")
    type_name: Optional[str] = None
    bbox: Optional[BoundingBox] = Field(
        None, description="Bounding box from the BBOX parameter or Filter XML"
    )
    max_features: Optional[int] = None
    output_format: Optional[str] = None
    srs_name: Optional[str] = None

    @property
    def operation(self) -> Optional[WfsOperation]:
        return WfsOperation.from_request(self.request)


class WfsResponse(BaseModel):
    """A serialized WFS response body and its media type."""

    content: str
    media_type: str
