from .auth import router as auth_router
from .brands import router as brands_router
from .consultations import router as consultations_router
from .manager import router as manager_router
from .saved import router as saved_router
from .start import router as start_router

__all__ = [
    "auth_router",
    "brands_router",
    "consultations_router",
    "manager_router",
    "saved_router",
    "start_router",
]
