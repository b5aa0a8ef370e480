from fastapi import APIRouter

from pm_api.api.routes import imports

api_router = APIRouter()

api_router.include_router(imports.router, prefix="/imports", tags=["imports"])
