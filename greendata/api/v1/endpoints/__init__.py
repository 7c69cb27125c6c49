from fastapi import APIRouter
from .auth import router as auth_router
from .files import router as files_router
from .functions import router as functions_router
from .admin import router as admin_router
from .realtime import router as realtime_router

router = APIRouter()
router.include_router(auth_router)
router.include_router(files_router)
router.include_router(functions_router)
router.include_router(admin_router)
router.include_router(realtime_router)
