"""Utilities for working with franchise API values."""

import re
from datetime import date, datetime
from typing import Any, Optional

from loguru import logger

DATE_FORMATS = (
    "%Y-%m-%d",
    "%Y.%m.%d",
    "%Y/%m/%d",
)

DATETIME_FORMATS = (
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%dT%H:%M:%S.%f",
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d %H:%M",
    *DATE_FORMATS,
)

WEEKDAYS_KO = ("월", "화", "수", "목", "금", "토", "일")


def parse_date(date_str: str) -> Optional[date]:
    """
    Parse date from string in backend format.

    Args:
        date_str: Date string (e.g., "2025-01-20")

    Returns:
        date object or None on error
    """
    if not date_str:
        return None

    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(date_str.strip(), fmt).date()
        except ValueError:
            continue

    logger.warning(f"Failed to parse date: {date_str}")
    return None


def parse_datetime(value: Any) -> Optional[datetime]:
    """
    Parse backend timestamp.

    Accepts ISO strings with or without offset, date-only strings
    and ready datetime objects.

    Args:
        value: Raw value from the payload

    Returns:
        datetime object or None on error
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str):
        return None

    raw = value.strip()
    try:
        return datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError:
        pass

    for fmt in DATETIME_FORMATS:
        try:
            return datetime.strptime(raw, fmt)
        except ValueError:
            continue

    logger.warning(f"Failed to parse timestamp: {value}")
    return None


def format_phone(phone: str) -> str:
    """
    Format phone number to standard format.

    Args:
        phone: Phone number

    Returns:
        Formatted number as 010-XXXX-XXXX
    """
    if not phone:
        return phone

    digits = re.sub(r"[^\d]", "", phone)
    if digits.startswith("82"):
        digits = "0" + digits[2:]

    if len(digits) == 11:
        return f"{digits[:3]}-{digits[3:7]}-{digits[7:]}"
    if len(digits) == 10:
        return f"{digits[:3]}-{digits[3:6]}-{digits[6:]}"
    return phone


def format_money(amount: Optional[float]) -> str:
    """
    Format amount given in units of 10,000 KRW.

    Args:
        amount: Amount in 만원

    Returns:
        Human readable amount, e.g. "1억 2,000만원"
    """
    if amount is None:
        return "-"

    value = int(round(amount))
    eok, man = divmod(value, 10_000)
    if eok and man:
        return f"{eok:,}억 {man:,}만원"
    if eok:
        return f"{eok:,}억원"
    return f"{man:,}만원"


def format_date(value: Optional[date]) -> str:
    """
    Format date the Korean way.

    Args:
        value: Date to format

    Returns:
        String like "2025년 1월 20일 (월)"
    """
    if value is None:
        return "-"
    return (
        f"{value.year}년 {value.month}월 {value.day}일 ({WEEKDAYS_KO[value.weekday()]})"
    )


def format_datetime(value: Optional[datetime]) -> str:
    """Format timestamp as "1월 20일 14:00"."""
    if value is None:
        return "-"
    return f"{value.month}월 {value.day}일 {value:%H:%M}"
