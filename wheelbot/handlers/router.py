from aiogram import Router

from wheelbot.handlers.admin.router import router as admin_router
from wheelbot.handlers.common import router as common_router
from wheelbot.handlers.user.router import router as user_router

router = Router()

router.include_router(admin_router)   # admin commands first
router.include_router(user_router)
router.include_router(common_router)  # LAST = fallback only
