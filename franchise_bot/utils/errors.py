"""User-facing texts for backend failures."""

import aiohttp

from franchise_bot.api.client import FranchiseAPIError
from franchise_bot.api.constants import (
    ERROR_CONSULTATION_DUPLICATE,
    ERROR_INTERNAL,
    ERROR_INVALID_PARAMETER,
    ERROR_LOGIN_FAILED,
    ERROR_NOT_FOUND,
    ERROR_UNAUTHORIZED,
    ERROR_VALIDATION_FAILED,
)

SERVER_ERROR = "서버에 문제가 발생했습니다. 잠시 후 다시 시도해주세요."
NETWORK_ERROR = "네트워크 연결을 확인하거나 잠시 후 다시 시도해주세요."
BAD_INPUT = "입력하신 정보를 다시 확인해주세요."
NOT_FOUND = "요청한 정보를 찾을 수 없습니다."
LOGIN_REQUIRED = "로그인이 필요합니다."

ERROR_CODE_TEXTS = {
    ERROR_CONSULTATION_DUPLICATE: "이미 진행 중인 상담 신청이 있습니다.",
    ERROR_INTERNAL: SERVER_ERROR,
    ERROR_NOT_FOUND: NOT_FOUND,
    ERROR_UNAUTHORIZED: LOGIN_REQUIRED,
}

STATUS_TEXTS = {
    400: BAD_INPUT,
    401: LOGIN_REQUIRED,
    403: LOGIN_REQUIRED,
    404: NOT_FOUND,
    500: SERVER_ERROR,
}


def describe_error(error: BaseException, fallback: str) -> str:
    """
    Turn a failed backend call into a message for the user.

    Validation errors are shown as sent by the backend, field messages
    joined into one line. Known error codes map to fixed texts, then the
    HTTP status decides, then ``fallback`` is used.
    """
    if isinstance(error, FranchiseAPIError):
        if error.errors:
            return error.display_message
        if error.error_code in (ERROR_INVALID_PARAMETER, ERROR_VALIDATION_FAILED):
            return error.message or BAD_INPUT
        if error.error_code == ERROR_LOGIN_FAILED:
            return error.message or fallback
        if error.error_code in ERROR_CODE_TEXTS:
            return ERROR_CODE_TEXTS[error.error_code]
        if error.status is not None and error.status in STATUS_TEXTS:
            return STATUS_TEXTS[error.status]
        return fallback
    if isinstance(error, (aiohttp.ClientError, TimeoutError)):
        return NETWORK_ERROR
    return fallback
