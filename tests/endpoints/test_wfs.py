import json
import logging
from unittest.mock import patch

from fastapi.testclient import TestClient

from app.services.what3words_service import What3WordsAPIError

GML2_FILTER_27700 = (
    '<ogc:Filter xmlns:ogc="http://www.opengis.net/ogc" xmlns:gml="http://www.opengis.net/gml">'
    '<ogc:BBOX><gml:Box srsName="EPSG:27700">'
    "<gml:coordinates>529000,179000 531000,181000</gml:coordinates>"
    "</gml:Box></ogc:BBOX></ogc:Filter>"
)


def test_get_capabilities_defaults_to_wfs_2(client: TestClient):
    response = client.get("/wfs", params={"service": "WFS", "request": "GetCapabilities"})

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("application/xml")
    assert "WFS_Capabilities" in response.text
    assert 'version="2.0.0"' in response.text
    assert 'xlink:href="http://testserver/wfs"' in response.text


def test_get_capabilities_wfs_1(client: TestClient):
    response = client.get(
        "/wfs", params={"SERVICE": "WFS", "VERSION": "1.0.0", "REQUEST": "getcapabilities"}
    )

    assert response.status_code == 200
    assert 'version="1.0.0"' in response.text
    assert "<OnlineResource>http://testserver/wfs</OnlineResource>" in response.text


def test_missing_request_parameter(client: TestClient):
    response = client.get("/wfs", params={"service": "WFS"})

    assert response.status_code == 400
    assert response.json() == {"error": "Invalid or missing REQUEST parameter"}


def test_unknown_request_parameter(client: TestClient):
    response = client.get("/wfs", params={"request": "Transaction"})

    assert response.status_code == 400
    assert response.json() == {"error": "Invalid or missing REQUEST parameter"}


def test_describe_feature_type(client: TestClient):
    response = client.get("/wfs", params={"request": "DescribeFeatureType", "version": "2.0.0"})

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("application/xml")
    assert 'name="location"' in response.text


def test_describe_feature_type_unsupported_format(client: TestClient):
    response = client.get(
        "/wfs", params={"request": "DescribeFeatureType", "outputFormat": "application/json"}
    )

    assert response.status_code == 400
    assert "not supported" in response.json()["error"]


def test_get_feature_gml(client: TestClient, sample_location):
    """Test a GetFeature request end to end with a mocked What3Words API."""
    with patch(
        "app.services.what3words_service.what3words_service.convert_to_words",
        return_value=sample_location,
    ) as mock_convert:
        response = client.get(
            "/wfs",
            params={"request": "GetFeature", "bbox": "-1,51,0,52", "maxFeatures": "4"},
        )

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("application/gml+xml")
        assert 0 < response.text.count("<wfs:member>") <= 4
        assert "<w3w:words>filled.count.soap</w3w:words>" in response.text
        assert mock_convert.await_count == 4


def test_get_feature_geojson(client: TestClient, sample_location):
    with patch(
        "app.services.what3words_service.what3words_service.convert_to_words",
        return_value=sample_location,
    ):
        response = client.get(
            "/wfs",
            params={
                "request": "GetFeature",
                "bbox": "-1,51,0,52",
                "count": "2",
                "outputFormat": "application/json",
            },
        )

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("application/geo+json")
        document = json.loads(response.text)
        assert document["type"] == "FeatureCollection"
        assert [f["id"] for f in document["features"]] == ["location.1", "location.2"]


def test_get_feature_with_projected_filter(client: TestClient, sample_location):
    with patch(
        "app.services.what3words_service.what3words_service.convert_to_words",
        return_value=sample_location,
    ) as mock_convert:
        response = client.get(
            "/wfs",
            params={"request": "GetFeature", "filter": GML2_FILTER_27700, "maxFeatures": "3"},
        )

        assert response.status_code == 200
        assert mock_convert.await_count == 3
        coordinate = mock_convert.await_args_list[0].args[0]
        assert 51.49 < coordinate.latitude < 51.53


def test_get_feature_skips_failed_points(client: TestClient, sample_location):
    with patch(
        "app.services.what3words_service.what3words_service.convert_to_words",
        side_effect=[sample_location, What3WordsAPIError("quota exceeded", status_code=402)],
    ):
        response = client.get(
            "/wfs",
            params={"request": "GetFeature", "bbox": "-1,51,0,52", "maxFeatures": "2"},
        )

        assert response.status_code == 200
        assert response.text.count("<wfs:member>") == 1
        assert 'numberMatched="1"' in response.text


def test_get_feature_missing_bbox(client: TestClient):
    response = client.get("/wfs", params={"request": "GetFeature"})

    assert response.status_code == 400
    assert response.json() == {"error": "BBOX parameter is required for GetFeature requests"}


def test_get_feature_degenerate_bbox(client: TestClient):
    response = client.get("/wfs", params={"request": "GetFeature", "bbox": "-1,51,0,51"})

    assert response.status_code == 400
    assert response.json() == {
        "error": "Invalid BBOX parameter: minimum values must be less than maximum values"
    }


def test_get_feature_unsupported_crs(client: TestClient):
    response = client.get(
        "/wfs",
        params={"request": "GetFeature", "bbox": "-1,51,0,52", "srsName": "EPSG:9999"},
    )

    assert response.status_code == 400
    assert response.json()["error"].startswith("Coordinate system EPSG:9999 is not supported")


def test_get_feature_unexpected_error(client: TestClient, caplog):
    """Test that unexpected failures return a generic 500 and log the traceback."""
    with patch(
        "app.services.wfs_service.wfs_service.fetch_features",
        side_effect=RuntimeError("boom"),
    ):
        with caplog.at_level(logging.ERROR, logger="app.api.endpoints.wfs"):
            response = client.get(
                "/wfs", params={"request": "GetFeature", "bbox": "-1,51,0,52"}
            )

        assert response.status_code == 500
        assert response.json() == {"error": "Internal server error processing WFS request"}
        assert any(record.exc_info for record in caplog.records)


def test_requests_are_logged_with_request_id(client: TestClient, caplog):
    with caplog.at_level(logging.INFO, logger="app.main"):
        client.get("/wfs", params={"request": "GetCapabilities"})

    messages = [r.getMessage() for r in caplog.records if r.name == "app.main"]
    assert any("GET /wfs" in m for m in messages)
    assert any("Completed 200" in m for m in messages)


def test_get_feature_non_positive_max_features(client: TestClient):
    with patch(
        "app.services.what3words_service.what3words_service.convert_to_words"
    ) as mock_convert:
        response = client.get(
            "/wfs", params={"request": "GetFeature", "bbox": "-1,51,0,52", "maxFeatures": "0"}
        )

        assert response.status_code == 400
        assert response.json() == {"error": "Max points must be positive"}
        mock_convert.assert_not_called()
