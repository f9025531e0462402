import json
from unittest.mock import patch

from fastapi.testclient import TestClient

from app.schemas.ogc import CRS84


def test_landing_page(client: TestClient):
    response = client.get("/ogcapi/")

    assert response.status_code == 200
    data = response.json()
    assert data["title"] == "What3Words WFS Service"
    links = {link["rel"]: link["href"] for link in data["links"]}
    assert links["self"] == "http://testserver/ogcapi"
    assert links["conformance"] == "http://testserver/ogcapi/conformance"
    assert links["data"] == "http://testserver/ogcapi/collections"


def test_conformance(client: TestClient):
    response = client.get("/ogcapi/conformance")

    assert response.status_code == 200
    conforms_to = response.json()["conformsTo"]
    assert "http://www.opengis.net/spec/ogcapi-features-1/1.0/conf/core" in conforms_to
    assert "http://www.opengis.net/spec/ogcapi-features-1/1.0/conf/geojson" in conforms_to


def test_collections(client: TestClient):
    response = client.get("/ogcapi/collections")

    assert response.status_code == 200
    collections = response.json()["collections"]
    assert [c["id"] for c in collections] == ["location"]

    collection = collections[0]
    assert collection["itemType"] == "feature"
    assert collection["extent"]["spatial"]["bbox"] == [[-180.0, -90.0, 180.0, 90.0]]
    # Items are only served in CRS84
    assert collection["crs"] == [CRS84]


def test_get_collection(client: TestClient):
    response = client.get("/ogcapi/collections/location")

    assert response.status_code == 200
    links = {link["rel"]: link["href"] for link in response.json()["links"]}
    assert links["items"] == "http://testserver/ogcapi/collections/location/items"


def test_unknown_collection(client: TestClient):
    assert client.get("/ogcapi/collections/roads").status_code == 404
    assert client.get("/ogcapi/collections/roads/items", params={"bbox": "-1,51,0,52"}).status_code == 404


def test_items(client: TestClient, sample_location):
    with patch(
        "app.services.what3words_service.what3words_service.convert_to_words",
        return_value=sample_location,
    ) as mock_convert:
        response = client.get(
            "/ogcapi/collections/location/items", params={"bbox": "-1,51,0,52", "limit": "3"}
        )

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("application/geo+json")
        document = json.loads(response.text)
        assert document["numberReturned"] == 3
        assert len(document["features"]) == 3
        assert document["features"][0]["geometry"]["coordinates"] == [-1.0, 51.0]
        assert mock_convert.await_count == 3


def test_items_requires_bbox(client: TestClient):
    response = client.get("/ogcapi/collections/location/items")

    assert response.status_code == 400
    assert response.json()["detail"] == "bbox parameter is required"


def test_items_rejects_invalid_bbox(client: TestClient):
    response = client.get(
        "/ogcapi/collections/location/items", params={"bbox": "529000,179000,531000,181000"}
    )

    assert response.status_code == 400


def test_items_rejects_degenerate_bbox(client: TestClient):
    response = client.get("/ogcapi/collections/location/items", params={"bbox": "-1,51,-1,52"})

    assert response.status_code == 400
    assert "minimum values must be less than maximum values" in response.json()["detail"]
