"""
OGC API - Features Endpoints

Read-only OGC API - Features surface for the ``location`` collection.
Items are generated on request from a WGS84 ``bbox``, the same way WFS
GetFeature does it.
"""

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Query, Request, Response, status

from app.core.exceptions import WfsError
from app.schemas.geo import BoundingBox
from app.schemas.ogc import OGCCollection, OGCCollectionList, OGCConformance, OGCLandingPage
from app.services.ogc_service import ogc_service

logger = logging.getLogger(__name__)

router = APIRouter()


def _base_url(request: Request) -> str:
    return str(request.url_for("landing_page")).rstrip("/")


@router.get("/", response_model=OGCLandingPage, response_model_exclude_none=True)
async def landing_page(request: Request):
    return ogc_service.get_landing_page(_base_url(request))


@router.get("/conformance", response_model=OGCConformance)
async def conformance():
    return ogc_service.get_conformance()


@router.get("/collections", response_model=OGCCollectionList, response_model_exclude_none=True)
async def list_collections(request: Request):
    return ogc_service.get_collections(_base_url(request))


@router.get(
    "/collections/{collection_id}",
    response_model=OGCCollection,
    response_model_exclude_none=True,
)
async def get_collection(collection_id: str, request: Request):
    collection = ogc_service.get_collection(collection_id, _base_url(request))
    if collection is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Collection '{collection_id}' not found",
        )
    return collection


@router.get("/collections/{collection_id}/items")
async def get_items(
    collection_id: str,
    bbox: Optional[str] = Query(None, description="minLon,minLat,maxLon,maxLat in WGS84"),
    limit: Optional[int] = Query(None, description="Maximum number of features"),
) -> Response:
    """
    Return the features of a collection within a WGS84 bounding box.

    Raises:
        HTTPException: 404 for an unknown collection, 400 for a missing or
            invalid bbox
    """
    if ogc_service.get_collection(collection_id, "") is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Collection '{collection_id}' not found",
        )

    if not bbox:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="bbox parameter is required",
        )

    parsed = BoundingBox.parse(bbox)
    if parsed is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid bbox parameter: {bbox}",
        )

    try:
        result = await ogc_service.get_items(parsed, limit)
    except WfsError as e:
        logger.warning("Items request rejected: %s", e.message)
        raise HTTPException(status_code=e.status_code, detail=e.message) from e

    return Response(content=result.content, media_type=result.media_type)
