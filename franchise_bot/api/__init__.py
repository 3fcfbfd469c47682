from .client import FranchiseAPIClient, FranchiseAPIError
from .models import (
    AccountRole,
    APIResponse,
    Brand,
    Category,
    Consultation,
    ConsultationStatus,
    RescheduleAnswer,
)

__all__ = [
    "APIResponse",
    "AccountRole",
    "Brand",
    "Category",
    "Consultation",
    "ConsultationStatus",
    "FranchiseAPIClient",
    "FranchiseAPIError",
    "RescheduleAnswer",
]
