from datetime import date
from typing import Any, AsyncGenerator

import pytest
from aiohttp import test_utils, web

from franchise_bot.api.client import FranchiseAPIClient, FranchiseAPIError
from franchise_bot.api.models import (
    AccountRole,
    ConsultationCreateRequest,
    ConsultationStatus,
    RescheduleAnswer,
    RescheduleRequest,
)


def ok(data: Any = None, message: str = "OK") -> web.Response:
    return web.json_response(
        {
            "success": True,
            "message": message,
            "data": data,
            "timestamp": "2030-04-25T12:00:00",
        },
    )


def fail(status: int, error_code: str, message: str, **extra: Any) -> web.Response:
    return web.json_response(
        {"success": False, "errorCode": error_code, "message": message, **extra},
        status=status,
    )


BRAND = {
    "brandId": 42,
    "brandName": "맛있는 치킨",
    "categoryId": 1,
    "categoryName": "치킨",
    "initialCost": 5000,
    "storeCount": 120,
    "viewCount": 10,
    "saveCount": 2,
}

CONSULTATION = {
    "consultationId": 9,
    "brand": {"brandId": 42, "brandName": "맛있는 치킨"},
    "preferredDate": "2030-05-01",
    "preferredTime": "14:00",
    "message": "문의",
    "status": "PENDING",
}


class Backend:
    """Requests seen by the fake backend."""

    def __init__(self) -> None:
        self.requests: list[dict[str, Any]] = []

    async def record(self, request: web.Request) -> dict[str, Any]:
        body = await request.json() if request.can_read_body else None
        entry = {
            "method": request.method,
            "path": request.path,
            "query": dict(request.query),
            "headers": dict(request.headers),
            "json": body,
        }
        self.requests.append(entry)
        return entry

    @property
    def last(self) -> dict[str, Any]:
        return self.requests[-1]


def build_app(backend: Backend) -> web.Application:
    async def brands(request: web.Request) -> web.Response:
        await backend.record(request)
        return ok(
            {
                "content": [BRAND],
                "pageInfo": {
                    "page": int(request.query["page"]),
                    "size": int(request.query["size"]),
                    "totalElements": 30,
                    "totalPages": 3,
                    "first": False,
                    "last": False,
                    "hasNext": True,
                    "hasPrevious": True,
                },
            },
        )

    async def search(request: web.Request) -> web.Response:
        await backend.record(request)
        return ok({"content": [], "pageInfo": {"page": 0, "size": 10}})

    async def brand_detail(request: web.Request) -> web.Response:
        await backend.record(request)
        if request.match_info["brand_id"] == "404":
            return fail(404, "NOT_FOUND", "브랜드를 찾을 수 없습니다.")
        return ok(BRAND)

    async def categories(request: web.Request) -> web.Response:
        await backend.record(request)
        return ok([{"categoryId": 1, "categoryName": "치킨", "brandCount": 12}])

    async def user_login(request: web.Request) -> web.Response:
        entry = await backend.record(request)
        if entry["json"]["password"] != "secret1":
            return fail(401, "LOGIN_FAILED", "이메일 또는 비밀번호가 올바르지 않습니다.")
        return ok(
            {
                "userType": "USER",
                "user": {"userId": 7, "name": "홍길동", "email": "hong@example.com"},
            },
        )

    async def manager_login(request: web.Request) -> web.Response:
        await backend.record(request)
        return ok(
            {
                "userType": "MANAGER",
                "manager": {"managerId": 3, "name": "김매니저"},
            },
        )

    async def saved_brands(request: web.Request) -> web.Response:
        await backend.record(request)
        return ok([BRAND])

    async def save_toggle(request: web.Request) -> web.Response:
        await backend.record(request)
        if request.match_info["brand_id"] == "500":
            return fail(500, "INTERNAL_ERROR", "Internal error")
        return ok({"brandId": 42, "isSaved": True, "saveCount": 3})

    async def save_status(request: web.Request) -> web.Response:
        entry = await backend.record(request)
        return ok({str(brand_id): brand_id == 42 for brand_id in entry["json"]["brandIds"]})

    async def create_consultation(request: web.Request) -> web.Response:
        entry = await backend.record(request)
        if entry["json"]["message"] == "again":
            return fail(409, "CONSULTATION_DUPLICATE", "이미 신청한 상담이 있습니다.")
        if entry["json"]["message"] == "invalid":
            return fail(
                400,
                "VALIDATION_FAILED",
                "입력값 검증 실패",
                errors={"preferredDate": "날짜가 필요합니다", "message": "내용이 필요합니다"},
            )
        return ok(CONSULTATION)

    async def user_consultations(request: web.Request) -> web.Response:
        await backend.record(request)
        confirmed = {**CONSULTATION, "status": {"statusName": "CONFIRMED"}}
        return ok({"content": [confirmed], "pageInfo": {"page": 0, "size": 10}})

    async def respond(request: web.Request) -> web.Response:
        await backend.record(request)
        return ok({**CONSULTATION, "status": "CONFIRMED"})

    async def user_cancel(request: web.Request) -> web.Response:
        await backend.record(request)
        return web.json_response({"success": False, "message": "이미 취소된 상담입니다."})

    async def manager_consultations(request: web.Request) -> web.Response:
        await backend.record(request)
        return ok({"content": [CONSULTATION], "pageInfo": {"page": 0, "size": 20}})

    async def manager_reschedule(request: web.Request) -> web.Response:
        entry = await backend.record(request)
        return ok(
            {
                **CONSULTATION,
                "status": "RESCHEDULE_REQUEST",
                "adjustedDate": entry["json"]["adjustedDate"],
                "adjustedTime": entry["json"]["adjustedTime"],
            },
        )

    async def manager_confirm(request: web.Request) -> web.Response:
        await backend.record(request)
        return ok(
            {**CONSULTATION, "status": "CONFIRMED", "confirmedAt": "2030-04-25T12:00:00"},
        )

    async def manager_cancel(request: web.Request) -> web.Response:
        await backend.record(request)
        return ok(None, message="상담이 취소되었습니다.")

    async def broken(request: web.Request) -> web.Response:
        await backend.record(request)
        return web.Response(status=502, text="<html>Bad Gateway</html>")

    app = web.Application()
    app.router.add_get("/api/public/brands", brands)
    app.router.add_get("/api/public/brands/search", search)
    app.router.add_get("/api/public/brands/category/{category_id}", brands)
    app.router.add_get("/api/public/brands/{brand_id}", brand_detail)
    app.router.add_get("/api/public/categories", categories)
    app.router.add_post("/api/auth/user/login", user_login)
    app.router.add_post("/api/auth/manager/login", manager_login)
    app.router.add_get("/api/user/brands/saved", saved_brands)
    app.router.add_post("/api/user/brands/save-status", save_status)
    app.router.add_post("/api/user/brands/{brand_id}/save", save_toggle)
    app.router.add_post("/api/user/consultations", create_consultation)
    app.router.add_get("/api/user/consultations", user_consultations)
    app.router.add_get("/api/user/consultations/{consultation_id}", broken)
    app.router.add_put(
        "/api/user/consultations/{consultation_id}/reschedule-response",
        respond,
    )
    app.router.add_put("/api/user/consultations/{consultation_id}/cancel", user_cancel)
    app.router.add_get("/api/manager/consultations", manager_consultations)
    app.router.add_put(
        "/api/manager/consultations/{consultation_id}/reschedule",
        manager_reschedule,
    )
    app.router.add_put(
        "/api/manager/consultations/{consultation_id}/confirm",
        manager_confirm,
    )
    app.router.add_put(
        "/api/manager/consultations/{consultation_id}/cancel",
        manager_cancel,
    )
    return app


@pytest.fixture
def backend() -> Backend:
    return Backend()


@pytest.fixture
async def api_client(backend: Backend) -> AsyncGenerator[FranchiseAPIClient, None]:
    server = test_utils.TestServer(build_app(backend))
    await server.start_server()
    async with FranchiseAPIClient(base_url=str(server.make_url("")), timeout=5) as client:
        yield client
    await server.close()


async def test_get_brands(api_client, backend):
    response = await api_client.get_brands(page=1, size=12)

    assert backend.last["query"] == {"page": "1", "size": "12"}
    assert response.success is True
    assert response.timestamp is not None
    brand = response.data.content[0]
    assert brand.id == 42
    assert brand.name == "맛있는 치킨"
    assert brand.initial_cost == 5000
    assert response.data.page_info.total_elements == 30
    assert response.data.page_info.has_next is True


async def test_public_lookups(api_client, backend):
    await api_client.get_brands_by_category(5, page=0, size=12)
    assert backend.last["path"] == "/api/public/brands/category/5"

    await api_client.search_brands("치킨")
    assert backend.last["path"] == "/api/public/brands/search"
    assert backend.last["query"]["keyword"] == "치킨"

    detail = await api_client.get_brand_detail(42)
    assert detail.data.category_name == "치킨"

    categories = await api_client.get_categories()
    assert categories.data[0].name == "치킨"
    assert categories.data[0].brand_count == 12


async def test_not_found_raises(api_client):
    with pytest.raises(FranchiseAPIError) as exc_info:
        await api_client.get_brand_detail(404)

    error = exc_info.value
    assert error.status == 404
    assert error.error_code == "NOT_FOUND"
    assert error.message == "브랜드를 찾을 수 없습니다."


async def test_login(api_client, backend):
    response = await api_client.login("hong@example.com", "secret1")

    assert backend.last["json"] == {"email": "hong@example.com", "password": "secret1"}
    assert response.data.user_type == AccountRole.USER
    assert response.data.account is not None
    assert response.data.account.id == 7

    manager = await api_client.manager_login("kim@example.com", "secret1")
    assert manager.data.user_type == AccountRole.MANAGER
    assert manager.data.account is not None
    assert manager.data.account.id == 3


async def test_login_failed(api_client):
    with pytest.raises(FranchiseAPIError) as exc_info:
        await api_client.login("hong@example.com", "wrong-password")
    assert exc_info.value.error_code == "LOGIN_FAILED"
    assert exc_info.value.status == 401


async def test_user_endpoints_send_user_id(api_client, backend):
    toggled = await api_client.toggle_saved_brand(7, 42)
    assert backend.last["path"] == "/api/user/brands/42/save"
    assert backend.last["headers"]["User-Id"] == "7"
    assert toggled.data is not None
    assert toggled.data.is_saved is True

    status = await api_client.get_brand_save_status(7, [42, 43])
    assert backend.last["json"] == {"brandIds": [42, 43]}
    assert status.data == {42: True, 43: False}

    saved = await api_client.get_saved_brands(7)
    assert backend.last["headers"]["User-Id"] == "7"
    assert [brand.id for brand in saved.data.content] == [42]


async def test_save_toggle_server_error(api_client):
    with pytest.raises(FranchiseAPIError) as exc_info:
        await api_client.toggle_saved_brand(7, 500)
    assert exc_info.value.status == 500
    assert exc_info.value.error_code == "INTERNAL_ERROR"


async def test_create_consultation(api_client, backend):
    payload = ConsultationCreateRequest(
        brand_id=42,
        preferred_date=date(2030, 5, 1),
        preferred_time="14:00",
        message="문의",
    )

    response = await api_client.create_consultation(7, payload)

    assert backend.last["headers"]["User-Id"] == "7"
    assert backend.last["json"] == {
        "brandId": 42,
        "preferredDate": "2030-05-01",
        "preferredTime": "14:00",
        "message": "문의",
    }
    assert response.data.id == 9
    assert response.data.status == ConsultationStatus.PENDING
    assert response.data.preferred_date == date(2030, 5, 1)


async def test_duplicate_consultation(api_client):
    payload = ConsultationCreateRequest(
        brand_id=42,
        preferred_date=date(2030, 5, 1),
        preferred_time="14:00",
        message="again",
    )
    with pytest.raises(FranchiseAPIError) as exc_info:
        await api_client.create_consultation(7, payload)
    assert exc_info.value.error_code == "CONSULTATION_DUPLICATE"
    assert exc_info.value.status == 409


async def test_validation_errors(api_client):
    payload = ConsultationCreateRequest(
        brand_id=42,
        preferred_date=date(2030, 5, 1),
        preferred_time="14:00",
        message="invalid",
    )
    with pytest.raises(FranchiseAPIError) as exc_info:
        await api_client.create_consultation(7, payload)

    error = exc_info.value
    assert error.errors == {
        "preferredDate": "날짜가 필요합니다",
        "message": "내용이 필요합니다",
    }
    assert error.display_message == (
        "preferredDate: 날짜가 필요합니다, message: 내용이 필요합니다"
    )


async def test_status_object_is_parsed(api_client):
    response = await api_client.get_user_consultations(7)
    assert response.data.content[0].status == ConsultationStatus.CONFIRMED


async def test_respond_to_reschedule(api_client, backend):
    response = await api_client.respond_to_reschedule(7, 9, RescheduleAnswer.ACCEPT)

    assert backend.last["method"] == "PUT"
    assert backend.last["path"] == "/api/user/consultations/9/reschedule-response"
    assert backend.last["json"] == {"response": "ACCEPT"}
    assert response.data.status == ConsultationStatus.CONFIRMED


async def test_unsuccessful_envelope_raises(api_client):
    with pytest.raises(FranchiseAPIError) as exc_info:
        await api_client.cancel_user_consultation(7, 9)
    assert exc_info.value.status == 200
    assert exc_info.value.message == "이미 취소된 상담입니다."


async def test_non_json_response(api_client):
    with pytest.raises(FranchiseAPIError) as exc_info:
        await api_client.get_user_consultation(7, 9)
    assert exc_info.value.status == 502


async def test_manager_endpoints_send_manager_id(api_client, backend):
    await api_client.get_manager_consultations(3, page=0, size=20)
    assert backend.last["headers"]["Manager-Id"] == "3"
    assert "User-Id" not in backend.last["headers"]

    payload = RescheduleRequest(adjusted_date=date(2030, 5, 3), adjusted_time="16:00")
    response = await api_client.reschedule_consultation(3, 9, payload)

    assert backend.last["path"] == "/api/manager/consultations/9/reschedule"
    assert backend.last["json"] == {"adjustedDate": "2030-05-03", "adjustedTime": "16:00"}
    assert response.data.status == ConsultationStatus.RESCHEDULE_REQUEST
    assert response.data.adjusted_date == date(2030, 5, 3)


async def test_manager_confirm_and_cancel(api_client, backend):
    confirmed = await api_client.confirm_consultation(3, 9)

    assert backend.last["method"] == "PUT"
    assert backend.last["path"] == "/api/manager/consultations/9/confirm"
    assert backend.last["headers"]["Manager-Id"] == "3"
    assert confirmed.data.status == ConsultationStatus.CONFIRMED
    assert confirmed.data.confirmed_at is not None

    cancelled = await api_client.cancel_manager_consultation(3, 9)

    assert backend.last["path"] == "/api/manager/consultations/9/cancel"
    assert cancelled.success
    assert cancelled.message == "상담이 취소되었습니다."
