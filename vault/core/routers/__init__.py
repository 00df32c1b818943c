from vault.core.routers.auth import router as auth_router
from vault.core.routers.step_up import router as step_up_router

__all__ = ["auth_router", "step_up_router"]
