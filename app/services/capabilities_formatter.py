"""
WFS Capabilities Formatter

Builds GetCapabilities documents. WFS 1.0.0 and 2.0.0 differ in almost
every block, so each block has one writer per dialect:

- service metadata: ``Service`` vs ``ows:ServiceIdentification``
- provider: absent vs ``ows:ServiceProvider``
- operations: ``Capability/Request`` vs ``ows:OperationsMetadata``
- feature type CRS: ``SRS`` vs ``DefaultCRS`` + ``OtherCRS``
- extent: ``LatLongBoundingBox`` vs ``ows:WGS84BoundingBox``
- filter capabilities: ``ogc:Filter_Capabilities`` (1.0.0 only)
"""

from typing import Optional, Sequence

from lxml import etree

from app.core.config import Settings, settings
from app.schemas.wfs import WfsDialect
from app.services.crs_service import WGS84, CoordinateTransformationService, crs_service
from app.utils.xml import (
    GML_NS,
    OGC_NS,
    OWS_NS,
    W3W_NS,
    WFS20_NS,
    WFS_NS,
    XLINK_NS,
    XSI_NS,
    qname,
    sub,
    to_string,
)

FEATURE_TYPE_TITLE = "What3Words Location"
FEATURE_TYPE_ABSTRACT = "Geographic location with What3Words 3-word address"
OPERATIONS = ("GetCapabilities", "DescribeFeatureType", "GetFeature")


class WfsCapabilitiesFormatter:
    """Formatter for WFS GetCapabilities responses."""

    def __init__(
        self,
        config: Settings = settings,
        transformation_service: CoordinateTransformationService = crs_service,
    ):
        self._config = config
        self._crs = transformation_service

    def generate_capabilities(self, dialect: WfsDialect, service_url: str) -> str:
        """
        Generate the GetCapabilities document for a dialect.

        Args:
            dialect: WFS dialect to emit
            service_url: URL advertised for every operation

        Returns:
            XML document as a string
        """
        if dialect.is_v2:
            root = etree.Element(
                qname(WFS20_NS, "WFS_Capabilities"),
                nsmap={
                    None: WFS20_NS,
                    "xsi": XSI_NS,
                    "gml": GML_NS,
                    "ogc": OGC_NS,
                    "ows": OWS_NS,
                    "xlink": XLINK_NS,
                    "w3w": W3W_NS,
                },
            )
            root.set("version", dialect.value)
            self._write_service_identification(root, dialect)
            self._write_service_provider(root)
            self._write_operations_metadata(root, service_url)
            self._write_feature_type_list_v2(root)
        else:
            root = etree.Element(
                qname(WFS_NS, "WFS_Capabilities"),
                nsmap={None: WFS_NS, "xsi": XSI_NS, "gml": GML_NS, "ogc": OGC_NS},
            )
            root.set("version", dialect.value)
            self._write_service(root, service_url)
            self._write_capability(root, service_url)
            self._write_feature_type_list_v1(root)
            self._write_filter_capabilities(root)

        return to_string(root)

    # WFS 1.0.0

    def _write_service(self, root, service_url: str) -> None:
        service = sub(root, WFS_NS, "Service")
        sub(service, WFS_NS, "Name", "WFS")
        sub(service, WFS_NS, "Title", self._config.WFS_SERVICE_TITLE)
        sub(service, WFS_NS, "Abstract", self._config.WFS_SERVICE_ABSTRACT)
        # 1.0.0 keywords are a single comma-separated text node
        sub(service, WFS_NS, "Keywords", self._config.WFS_KEYWORDS)
        sub(service, WFS_NS, "OnlineResource", service_url)
        sub(service, WFS_NS, "Fees", self._config.WFS_FEES)
        sub(service, WFS_NS, "AccessConstraints", self._config.WFS_ACCESS_CONSTRAINTS)

    def _write_capability(self, root, service_url: str) -> None:
        request = sub(sub(root, WFS_NS, "Capability"), WFS_NS, "Request")
        self._write_operation(request, "GetCapabilities", service_url)
        self._write_operation(
            request,
            "DescribeFeatureType",
            service_url,
            formats=("XMLSCHEMA",),
            format_container="SchemaDescriptionLanguage",
        )
        self._write_operation(
            request,
            "GetFeature",
            service_url,
            formats=("GML2",),
            format_container="ResultFormat",
        )

    @staticmethod
    def _write_operation(
        parent,
        name: str,
        service_url: str,
        formats: Sequence[str] = (),
        format_container: Optional[str] = None,
    ) -> None:
        operation = sub(parent, WFS_NS, name)
        if formats and format_container:
            container = sub(operation, WFS_NS, format_container)
            for output_format in formats:
                sub(container, WFS_NS, output_format)

        http = sub(sub(operation, WFS_NS, "DCPType"), WFS_NS, "HTTP")
        sub(http, WFS_NS, "Get", onlineResource=service_url)
        sub(http, WFS_NS, "Post", onlineResource=service_url)

    def _write_feature_type_list_v1(self, root) -> None:
        type_list = sub(root, WFS_NS, "FeatureTypeList")
        sub(sub(type_list, WFS_NS, "Operations"), WFS_NS, "Query")

        feature_type = sub(type_list, WFS_NS, "FeatureType")
        sub(feature_type, WFS_NS, "Name", "location")
        sub(feature_type, WFS_NS, "Title", FEATURE_TYPE_TITLE)
        sub(feature_type, WFS_NS, "Abstract", FEATURE_TYPE_ABSTRACT)
        sub(feature_type, WFS_NS, "SRS", WGS84)
        sub(
            feature_type,
            WFS_NS,
            "LatLongBoundingBox",
            minx="-180",
            miny="-90",
            maxx="180",
            maxy="90",
        )

    @staticmethod
    def _write_filter_capabilities(root) -> None:
        filter_caps = sub(root, OGC_NS, "Filter_Capabilities")
        spatial = sub(sub(filter_caps, OGC_NS, "Spatial_Capabilities"), OGC_NS, "Spatial_Operators")
        sub(spatial, OGC_NS, "BBOX")
        sub(sub(filter_caps, OGC_NS, "Scalar_Capabilities"), OGC_NS, "Logical_Operators")

    # WFS 2.0.0

    def _write_service_identification(self, root, dialect: WfsDialect) -> None:
        identification = sub(root, OWS_NS, "ServiceIdentification")
        sub(identification, OWS_NS, "Title", self._config.WFS_SERVICE_TITLE)
        sub(identification, OWS_NS, "Abstract", self._config.WFS_SERVICE_ABSTRACT)

        keywords = sub(identification, OWS_NS, "Keywords")
        for keyword in self._config.WFS_KEYWORDS.split(","):
            if keyword.strip():
                sub(keywords, OWS_NS, "Keyword", keyword.strip())

        sub(identification, OWS_NS, "ServiceType", "WFS")
        sub(identification, OWS_NS, "ServiceTypeVersion", dialect.value)
        sub(identification, OWS_NS, "Fees", self._config.WFS_FEES)
        sub(identification, OWS_NS, "AccessConstraints", self._config.WFS_ACCESS_CONSTRAINTS)

    def _write_service_provider(self, root) -> None:
        config = self._config
        has_contact = bool(config.WFS_CONTACT_PERSON or config.WFS_CONTACT_EMAIL)

        # The OWS schema needs ProviderSite or ServiceContact; a name alone is invalid
        if not config.WFS_PROVIDER_SITE and not has_contact:
            return

        provider = sub(root, OWS_NS, "ServiceProvider")
        if config.WFS_PROVIDER_NAME:
            sub(provider, OWS_NS, "ProviderName", config.WFS_PROVIDER_NAME)
        if config.WFS_PROVIDER_SITE:
            sub(provider, OWS_NS, "ProviderSite", **{qname(XLINK_NS, "href"): config.WFS_PROVIDER_SITE})

        if has_contact:
            contact = sub(provider, OWS_NS, "ServiceContact")
            if config.WFS_CONTACT_PERSON:
                sub(contact, OWS_NS, "IndividualName", config.WFS_CONTACT_PERSON)
            if config.WFS_CONTACT_EMAIL:
                address = sub(sub(contact, OWS_NS, "ContactInfo"), OWS_NS, "Address")
                sub(address, OWS_NS, "ElectronicMailAddress", config.WFS_CONTACT_EMAIL)

    @staticmethod
    def _write_operations_metadata(root, service_url: str) -> None:
        metadata = sub(root, OWS_NS, "OperationsMetadata")
        for name in OPERATIONS:
            operation = sub(metadata, OWS_NS, "Operation", name=name)
            http = sub(sub(operation, OWS_NS, "DCP"), OWS_NS, "HTTP")
            sub(http, OWS_NS, "Get", **{qname(XLINK_NS, "href"): service_url})

    def _write_feature_type_list_v2(self, root) -> None:
        feature_type = sub(sub(root, WFS20_NS, "FeatureTypeList"), WFS20_NS, "FeatureType")
        sub(feature_type, WFS20_NS, "Name", "w3w:location")
        sub(feature_type, WFS20_NS, "Title", FEATURE_TYPE_TITLE)
        sub(feature_type, WFS20_NS, "Abstract", FEATURE_TYPE_ABSTRACT)
        sub(feature_type, WFS20_NS, "DefaultCRS", WGS84)
        for code in self._crs.supported_codes:
            if code != WGS84:
                sub(feature_type, WFS20_NS, "OtherCRS", code)

        extent = sub(feature_type, OWS_NS, "WGS84BoundingBox")
        sub(extent, OWS_NS, "LowerCorner", "-180 -90")
        sub(extent, OWS_NS, "UpperCorner", "180 90")


# Singleton instance for dependency injection
capabilities_formatter = WfsCapabilitiesFormatter()
