"""
WFS API Endpoint

Single key-value-pair entry point for the WFS operations. The REQUEST
parameter selects GetCapabilities, DescribeFeatureType or GetFeature.
"""

import logging

from fastapi import APIRouter, Request, Response
from fastapi.responses import JSONResponse

from app.core.exceptions import WfsError
from app.schemas.wfs import WfsOperation
from app.services.query_parser import query_parser
from app.services.wfs_service import wfs_service

logger = logging.getLogger(__name__)

router = APIRouter()


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


@router.get("/wfs")
async def handle_wfs_request(request: Request) -> Response:
    """
    Handle a WFS request.

    Args:
        request: Incoming request; all WFS parameters come from the query string

    Returns:
        XML, GML or GeoJSON body depending on the operation and outputFormat.
        Client errors are returned as 400 ``{"error": ...}``, unexpected
        GetFeature failures as 500.
    """
    wfs_request = query_parser.parse(request.query_params)
    operation = wfs_request.operation

    logger.info(
        "WFS request: service=%s, version=%s, request=%s",
        wfs_request.service,
        wfs_request.version,
        wfs_request.request,
    )

    if operation is None:
        logger.warning("Invalid or missing REQUEST parameter: %s", wfs_request.request)
        return _error(400, "Invalid or missing REQUEST parameter")

    try:
        if operation is WfsOperation.GET_CAPABILITIES:
            service_url = f"{request.url.scheme}://{request.url.netloc}{request.url.path}"
            result = wfs_service.get_capabilities(wfs_request.version, service_url)
        elif operation is WfsOperation.DESCRIBE_FEATURE_TYPE:
            result = wfs_service.describe_feature_type(
                wfs_request.version, wfs_request.output_format
            )
        else:
            result = await wfs_service.get_feature(wfs_request)
    except WfsError as e:
        logger.warning("%s request rejected: %s", operation.value, e.message)
        return _error(e.status_code, e.message)
    except Exception:  # pylint: disable=broad-except
        logger.exception("Error processing %s request", operation.value)
        return _error(500, "Internal server error processing WFS request")

    return Response(content=result.content, media_type=result.media_type)
