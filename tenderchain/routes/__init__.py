from tenderchain.routes.auth import router as auth_router
from tenderchain.routes.notifications import router as notifications_router
from tenderchain.routes.projects import router as projects_router

__all__ = ["auth_router", "notifications_router", "projects_router"]
