"""
Константы для API франчайзингового каталога
"""

# Endpoints
ENDPOINTS = {
    # Public
    "brands": "/api/public/brands",
    "brand_detail": "/api/public/brands/{brand_id}",
    "brands_by_category": "/api/public/brands/category/{category_id}",
    "brands_search": "/api/public/brands/search",
    "categories": "/api/public/categories",
    # Auth
    "user_login": "/api/auth/user/login",
    "manager_login": "/api/auth/manager/login",
    # User
    "saved_brands": "/api/user/brands/saved",
    "brand_save_toggle": "/api/user/brands/{brand_id}/save",
    "brand_save_status": "/api/user/brands/save-status",
    "user_consultations": "/api/user/consultations",
    "user_consultation": "/api/user/consultations/{consultation_id}",
    "user_consultation_respond": (
        "/api/user/consultations/{consultation_id}/reschedule-response"
    ),
    "user_consultation_cancel": "/api/user/consultations/{consultation_id}/cancel",
    # Manager
    "manager_consultations": "/api/manager/consultations",
    "manager_consultation_confirm": (
        "/api/manager/consultations/{consultation_id}/confirm"
    ),
    "manager_consultation_reschedule": (
        "/api/manager/consultations/{consultation_id}/reschedule"
    ),
    "manager_consultation_cancel": (
        "/api/manager/consultations/{consultation_id}/cancel"
    ),
}

# HTTP заголовки
DEFAULT_HEADERS = {
    "accept": "application/json",
    "content-type": "application/json",
    "accept-language": "ko-KR,ko;q=0.9,en-US;q=0.8,en;q=0.7",
    "cache-control": "no-cache",
}

USER_ID_HEADER = "User-Id"
MANAGER_ID_HEADER = "Manager-Id"

# Backend error codes
ERROR_CONSULTATION_DUPLICATE = "CONSULTATION_DUPLICATE"
ERROR_INVALID_PARAMETER = "INVALID_PARAMETER"
ERROR_VALIDATION_FAILED = "VALIDATION_FAILED"
ERROR_INTERNAL = "INTERNAL_ERROR"
ERROR_LOGIN_FAILED = "LOGIN_FAILED"
ERROR_NOT_FOUND = "NOT_FOUND"
ERROR_UNAUTHORIZED = "UNAUTHORIZED"
