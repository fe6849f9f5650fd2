from app.routes.session import router as session_router
from app.routes.leads import router as leads_router
from app.routes.slots import router as slots_router
from app.routes.admin import router as admin_router

__all__ = ["session_router", "leads_router", "slots_router", "admin_router"]
