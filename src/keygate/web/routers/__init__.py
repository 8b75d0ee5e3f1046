from keygate.web.routers.admin import router as admin_router
from keygate.web.routers.keys import router as keys_router
from keygate.web.routers.system import router as system_router

__all__ = [
    "admin_router",
    "keys_router",
    "system_router",
]
