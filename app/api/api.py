from fastapi import APIRouter

from app.api.endpoints import health, ogc, wfs

api_router = APIRouter()

api_router.include_router(health.router, tags=["health"])
api_router.include_router(wfs.router, tags=["wfs"])
api_router.include_router(ogc.router, prefix="/ogcapi", tags=["ogcapi"])
