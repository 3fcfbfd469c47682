"""Client-side form validation.

Checks mirror the backend rules and run before any request is sent;
the backend still validates everything on its own.
"""

import re
from datetime import date
from typing import Optional, Sequence

from franchise_bot.api.models import (
    ConsultationCreateRequest,
    LoginRequest,
    RescheduleRequest,
)
from franchise_bot.api.utils import parse_date
from franchise_bot.settings import settings

MIN_PASSWORD_LENGTH = 6
MAX_MESSAGE_LENGTH = 1000

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

ALL_FIELDS_REQUIRED = "모든 필드를 입력해주세요."
RESCHEDULE_FIELDS_REQUIRED = "조정할 날짜와 시간을 모두 선택해주세요."
DATE_FORMAT_INVALID = "날짜 형식이 올바르지 않습니다. (예: 2025-01-20)"
DATE_IN_PAST = "오늘 이후의 날짜를 선택해주세요."
TIME_SLOT_INVALID = "상담 가능한 시간을 선택해주세요."
MESSAGE_TOO_LONG = f"상담 내용은 {MAX_MESSAGE_LENGTH}자 이하로 입력해주세요."
LOGIN_FIELDS_REQUIRED = "이메일과 비밀번호를 입력해주세요."
EMAIL_INVALID = "이메일 형식이 올바르지 않습니다."
PASSWORD_TOO_SHORT = f"비밀번호는 {MIN_PASSWORD_LENGTH}자 이상이어야 합니다."
NOT_POSITIVE = "0보다 큰 숫자를 입력해주세요."


class FormValidationError(Exception):
    """Form input rejected before submission."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


def _clean(value: Optional[str]) -> str:
    return (value or "").strip()


def _coerce_date(value: "date | str | None") -> Optional[date]:
    if value is None or isinstance(value, date):
        return value
    raw = _clean(value)
    if not raw:
        return None
    parsed = parse_date(raw)
    if parsed is None:
        raise FormValidationError(DATE_FORMAT_INVALID)
    return parsed


def _ensure_not_past(value: date, today: Optional[date]) -> None:
    if value < (today or date.today()):
        raise FormValidationError(DATE_IN_PAST)


def validate_consultation_form(
    brand_id: int,
    preferred_date: "date | str | None",
    preferred_time: Optional[str],
    message: Optional[str],
    *,
    today: Optional[date] = None,
    time_slots: Optional[Sequence[str]] = None,
) -> ConsultationCreateRequest:
    """
    Validate consultation request form.

    Args:
        brand_id: Brand the consultation is requested for.
        preferred_date: Desired date, ``YYYY-MM-DD`` or date.
        preferred_time: Desired time slot, e.g. ``14:00``.
        message: What the user wants to discuss.
        today: Reference date, defaults to the current date.
        time_slots: Allowed slots, defaults to the configured ones.

    Returns:
        Request ready to be sent.

    Raises:
        FormValidationError: With the message to show to the user.
    """
    time_value = _clean(preferred_time)
    text = _clean(message)
    if preferred_date in (None, "") or not time_value or not text:
        raise FormValidationError(ALL_FIELDS_REQUIRED)

    day = _coerce_date(preferred_date)
    if day is None:
        raise FormValidationError(ALL_FIELDS_REQUIRED)
    _ensure_not_past(day, today)

    slots = time_slots if time_slots is not None else settings.CONSULTATION_TIME_SLOTS
    if time_value not in slots:
        raise FormValidationError(TIME_SLOT_INVALID)

    if len(text) > MAX_MESSAGE_LENGTH:
        raise FormValidationError(MESSAGE_TOO_LONG)

    return ConsultationCreateRequest(
        brand_id=brand_id,
        preferred_date=day,
        preferred_time=time_value,
        message=text,
    )


def validate_reschedule_form(
    adjusted_date: "date | str | None",
    adjusted_time: Optional[str],
    adjustment_reason: Optional[str] = None,
    manager_note: Optional[str] = None,
    *,
    today: Optional[date] = None,
) -> RescheduleRequest:
    """
    Validate manager reschedule form.

    Date and time are required, reason and note are optional.

    Raises:
        FormValidationError: With the message to show to the user.
    """
    time_value = _clean(adjusted_time)
    if adjusted_date in (None, "") or not time_value:
        raise FormValidationError(RESCHEDULE_FIELDS_REQUIRED)

    day = _coerce_date(adjusted_date)
    if day is None:
        raise FormValidationError(RESCHEDULE_FIELDS_REQUIRED)
    _ensure_not_past(day, today)

    return RescheduleRequest(
        adjusted_date=day,
        adjusted_time=time_value,
        adjustment_reason=_clean(adjustment_reason) or None,
        manager_note=_clean(manager_note) or None,
    )


def validate_login_form(email: Optional[str], password: Optional[str]) -> LoginRequest:
    """
    Validate login form.

    Raises:
        FormValidationError: With the message to show to the user.
    """
    email_value = _clean(email)
    if not email_value or not password:
        raise FormValidationError(LOGIN_FIELDS_REQUIRED)
    if not EMAIL_RE.match(email_value):
        raise FormValidationError(EMAIL_INVALID)
    if len(password) < MIN_PASSWORD_LENGTH:
        raise FormValidationError(PASSWORD_TOO_SHORT)
    return LoginRequest(email=email_value, password=password)


def parse_positive_int(value: Optional[str], message: str = NOT_POSITIVE) -> int:
    """
    Parse a number typed by hand.

    Raises:
        FormValidationError: If the value is not an integer greater than zero.
    """
    raw = _clean(value)
    try:
        number = int(raw)
    except ValueError:
        raise FormValidationError(message) from None
    if number <= 0:
        raise FormValidationError(message)
    return number


def parse_form_date(
    value: Optional[str],
    *,
    required_message: str = ALL_FIELDS_REQUIRED,
    today: Optional[date] = None,
) -> date:
    """
    Parse a date typed into a form step.

    Raises:
        FormValidationError: If the value is empty, malformed or in the past.
    """
    day = _coerce_date(value)
    if day is None:
        raise FormValidationError(required_message)
    _ensure_not_past(day, today)
    return day
