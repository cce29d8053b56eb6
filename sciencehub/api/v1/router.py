from fastapi import APIRouter

from sciencehub.api.v1.coworking import admin_router as coworking_admin_router
from sciencehub.api.v1.coworking import router as coworking_router
from sciencehub.api.v1.events import router as events_router
from sciencehub.api.v1.migrations import router as migrations_router
from sciencehub.api.v1.registrations import me_router
from sciencehub.api.v1.registrations import router as registrations_router

router = APIRouter()
router.include_router(registrations_router)
router.include_router(me_router)
router.include_router(events_router)
router.include_router(coworking_router)
router.include_router(coworking_admin_router)
router.include_router(migrations_router)
