from datetime import date, datetime

import pytest

from franchise_bot.api.models import (
    Brand,
    Consultation,
    ConsultationStatus,
    SavedBrandsResponse,
)
from franchise_bot.api.utils import (
    format_date,
    format_datetime,
    format_money,
    format_phone,
    parse_date,
    parse_datetime,
)


@pytest.mark.parametrize(
    "status",
    [
        "RESCHEDULE_REQUEST",
        {"statusName": "RESCHEDULE_REQUEST", "description": "일정 조정 중"},
        {"name": "RESCHEDULE_REQUEST"},
    ],
)
def test_consultation_status_forms(status):
    consultation = Consultation.model_validate(
        {"consultationId": 1, "status": status},
    )
    assert consultation.status == ConsultationStatus.RESCHEDULE_REQUEST


def test_consultation_fields():
    consultation = Consultation.model_validate(
        {
            "consultationId": 3,
            "brand": {"brandId": 42, "brandName": "맛있는 치킨"},
            "preferredDate": "2030-05-01",
            "preferredTime": "14:00",
            "status": "PENDING",
            "createdAt": "2030-04-20T10:00:00Z",
        },
    )
    assert consultation.brand_id == 42
    assert consultation.brand_name == "맛있는 치킨"
    assert consultation.preferred_date == date(2030, 5, 1)
    assert consultation.created_at is not None
    assert consultation.created_at.year == 2030


def test_consultation_without_brand_name():
    consultation = Consultation.model_validate(
        {"consultationId": 3, "brand": {"brandId": 42}},
    )
    assert consultation.brand_name == "#42"


def test_unknown_status_rejected():
    with pytest.raises(ValueError):
        Consultation.model_validate({"consultationId": 1, "status": "ARCHIVED"})


def test_brand_aliases():
    brand = Brand.model_validate(
        {
            "brandId": 1,
            "brandName": "커피왕",
            "brandDescription": "스페셜티 커피",
            "avgMonthlyRevenue": 3500,
        },
    )
    assert brand.description == "스페셜티 커피"
    assert brand.avg_monthly_revenue == 3500
    assert brand.save_count == 0


def test_saved_brands_accepts_bare_list():
    response = SavedBrandsResponse.model_validate(
        {"success": True, "data": [{"brandId": 1, "brandName": "커피왕"}]},
    )
    assert [brand.id for brand in response.data.content] == [1]

    empty = SavedBrandsResponse.model_validate({"success": True, "data": None})
    assert empty.data.content == []


def test_parse_date():
    assert parse_date("2025-01-20") == date(2025, 1, 20)
    assert parse_date("2025.01.20") == date(2025, 1, 20)
    assert parse_date("20/01/2025") is None
    assert parse_date("") is None


def test_parse_datetime():
    assert parse_datetime("2025-01-20T14:00:00") == datetime(2025, 1, 20, 14)
    assert parse_datetime(None) is None


@pytest.mark.parametrize(
    ("amount", "expected"),
    [
        (None, "-"),
        (500, "500만원"),
        (3500, "3,500만원"),
        (10000, "1억원"),
        (12000, "1억 2,000만원"),
    ],
)
def test_format_money(amount, expected):
    assert format_money(amount) == expected


def test_format_dates():
    assert format_date(date(2025, 1, 20)) == "2025년 1월 20일 (월)"
    assert format_date(None) == "-"
    assert format_datetime(datetime(2025, 1, 20, 14, 5)) == "1월 20일 14:05"


def test_format_phone():
    assert format_phone("01012345678") == "010-1234-5678"
    assert format_phone("+82 10 1234 5678") == "010-1234-5678"
