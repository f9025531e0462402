"""
Unit tests for the GetCapabilities formatter.
"""

import pytest
from lxml import etree

from app.core.config import Settings
from app.schemas.wfs import WfsDialect
from app.services.capabilities_formatter import WfsCapabilitiesFormatter
from app.services.crs_service import crs_service
from app.utils.xml import OGC_NS, OWS_NS, WFS20_NS, WFS_NS, XLINK_NS, qname

SERVICE_URL = "http://example.com/wfs"
NS = {"wfs": WFS_NS, "wfs2": WFS20_NS, "ows": OWS_NS, "ogc": OGC_NS, "xlink": XLINK_NS}


def _parse(xml: str):
    return etree.fromstring(xml.encode("utf-8"))


@pytest.fixture
def formatter():
    """Create a capabilities formatter with default settings."""
    return WfsCapabilitiesFormatter(config=Settings())


def test_v2_document_structure(formatter):
    root = _parse(formatter.generate_capabilities(WfsDialect.V2_0, SERVICE_URL))

    assert root.tag == qname(WFS20_NS, "WFS_Capabilities")
    assert root.get("version") == "2.0.0"
    assert root.findtext("ows:ServiceIdentification/ows:ServiceType", namespaces=NS) == "WFS"
    assert root.findtext("ows:ServiceIdentification/ows:Title", namespaces=NS) == (
        "What3Words WFS Service"
    )

    keywords = root.findall("ows:ServiceIdentification/ows:Keywords/ows:Keyword", namespaces=NS)
    assert [k.text for k in keywords] == ["WFS", "What3Words", "OGC", "Location"]


def test_v2_operations_advertise_service_url(formatter):
    root = _parse(formatter.generate_capabilities(WfsDialect.V2_0, SERVICE_URL))

    operations = root.findall("ows:OperationsMetadata/ows:Operation", namespaces=NS)
    assert [op.get("name") for op in operations] == [
        "GetCapabilities",
        "DescribeFeatureType",
        "GetFeature",
    ]
    for op in operations:
        get = op.find("ows:DCP/ows:HTTP/ows:Get", namespaces=NS)
        assert get.get(qname(XLINK_NS, "href")) == SERVICE_URL


def test_v2_feature_type_lists_supported_crs(formatter):
    root = _parse(formatter.generate_capabilities(WfsDialect.V2_0, SERVICE_URL))

    feature_type = root.find("wfs2:FeatureTypeList/wfs2:FeatureType", namespaces=NS)
    assert feature_type.findtext("wfs2:Name", namespaces=NS) == "w3w:location"
    assert feature_type.findtext("wfs2:DefaultCRS", namespaces=NS) == "EPSG:4326"

    other = [e.text for e in feature_type.findall("wfs2:OtherCRS", namespaces=NS)]
    assert other == [code for code in crs_service.supported_codes if code != "EPSG:4326"]
    assert "EPSG:27700" in other

    assert feature_type.findtext("ows:WGS84BoundingBox/ows:LowerCorner", namespaces=NS) == (
        "-180 -90"
    )


def test_v2_service_provider_omitted_without_contact(formatter):
    root = _parse(formatter.generate_capabilities(WfsDialect.V2_0, SERVICE_URL))

    assert root.find("ows:ServiceProvider", namespaces=NS) is None


def test_v2_service_provider_with_contact():
    formatter = WfsCapabilitiesFormatter(
        config=Settings(
            WFS_PROVIDER_SITE="https://example.com",
            WFS_CONTACT_PERSON="Ada",
            WFS_CONTACT_EMAIL="ada@example.com",
        )
    )

    root = _parse(formatter.generate_capabilities(WfsDialect.V2_0, SERVICE_URL))
    provider = root.find("ows:ServiceProvider", namespaces=NS)

    assert provider.findtext("ows:ProviderName", namespaces=NS) == "WFS3Words"
    site = provider.find("ows:ProviderSite", namespaces=NS)
    assert site.get(qname(XLINK_NS, "href")) == "https://example.com"
    assert provider.findtext("ows:ServiceContact/ows:IndividualName", namespaces=NS) == "Ada"
    assert (
        provider.findtext(
            "ows:ServiceContact/ows:ContactInfo/ows:Address/ows:ElectronicMailAddress",
            namespaces=NS,
        )
        == "ada@example.com"
    )


def test_v1_document_structure(formatter):
    root = _parse(formatter.generate_capabilities(WfsDialect.V1_0, SERVICE_URL))

    assert root.tag == qname(WFS_NS, "WFS_Capabilities")
    assert root.get("version") == "1.0.0"
    assert root.findtext("wfs:Service/wfs:Name", namespaces=NS) == "WFS"
    assert root.findtext("wfs:Service/wfs:OnlineResource", namespaces=NS) == SERVICE_URL
    assert root.findtext("wfs:Service/wfs:Keywords", namespaces=NS) == (
        "WFS,What3Words,OGC,Location"
    )


def test_v1_capability_request_block(formatter):
    root = _parse(formatter.generate_capabilities(WfsDialect.V1_0, SERVICE_URL))
    request = root.find("wfs:Capability/wfs:Request", namespaces=NS)

    assert request.find("wfs:GetFeature/wfs:ResultFormat/wfs:GML2", namespaces=NS) is not None
    assert (
        request.find(
            "wfs:DescribeFeatureType/wfs:SchemaDescriptionLanguage/wfs:XMLSCHEMA", namespaces=NS
        )
        is not None
    )
    get = request.find("wfs:GetCapabilities/wfs:DCPType/wfs:HTTP/wfs:Get", namespaces=NS)
    assert get.get("onlineResource") == SERVICE_URL


def test_v1_feature_type_and_filter_capabilities(formatter):
    root = _parse(formatter.generate_capabilities(WfsDialect.V1_0, SERVICE_URL))

    feature_type = root.find("wfs:FeatureTypeList/wfs:FeatureType", namespaces=NS)
    assert feature_type.findtext("wfs:Name", namespaces=NS) == "location"
    assert feature_type.findtext("wfs:SRS", namespaces=NS) == "EPSG:4326"
    assert feature_type.find("wfs:LatLongBoundingBox", namespaces=NS).get("maxx") == "180"

    assert (
        root.find(
            "ogc:Filter_Capabilities/ogc:Spatial_Capabilities/ogc:Spatial_Operators/ogc:BBOX",
            namespaces=NS,
        )
        is not None
    )
