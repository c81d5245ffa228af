# wheelbot/handlers/user/router.py
from aiogram import Router

from wheelbot.handlers.user.invite import router as invite_router
from wheelbot.handlers.user.notifications import router as notifications_router
from wheelbot.handlers.user.spin import router as spin_router
from wheelbot.handlers.user.start import router as start_router
from wheelbot.handlers.user.verify import router as verify_router
from wheelbot.handlers.user.whoami import router as whoami_router

router = Router(name="user")

router.include_router(start_router)
router.include_router(whoami_router)
router.include_router(spin_router)
router.include_router(verify_router)
router.include_router(invite_router)
router.include_router(notifications_router)
