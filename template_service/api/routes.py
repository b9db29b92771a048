from fastapi import APIRouter
from template_service.api.routes_health import router as health_router
from template_service.api.routes_templates import router as templates_router

router = APIRouter()
router.include_router(health_router, tags=["health"])
router.include_router(templates_router, tags=["templates"])
