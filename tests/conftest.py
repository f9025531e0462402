import pytest
from fastapi.testclient import TestClient

from app.main import app
from app.schemas.geo import BoundingBox, GeoCoordinate
from app.schemas.location import ThreeWordLocation


@pytest.fixture(scope="function")
def client():
    """Provides a FastAPI test client."""
    with TestClient(app) as c:
        yield c


@pytest.fixture
def sample_location():
    """A three-word location in London as returned by the What3Words client."""
    return ThreeWordLocation(
        words="filled.count.soap",
        coordinates=GeoCoordinate(51.520847, -0.195521),
        country="GB",
        square=BoundingBox(51.520833, -0.195543, 51.52086, -0.195499),
        nearest_place="Bayswater, London",
        language="en",
        map="https://w3w.co/filled.count.soap",
    )
