from aiogram import Router

from wheelbot.handlers.admin.panel import router as panel_router

router = Router()

router.include_router(panel_router)
