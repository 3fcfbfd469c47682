"""Асинхронный минималистичный API клиент для франчайзингового каталога."""

from types import TracebackType
from typing import Any, Dict, Iterable, Optional, Self, Type

import aiohttp
import orjson
from loguru import logger
from yarl import URL

from franchise_bot.api.constants import (
    DEFAULT_HEADERS,
    ENDPOINTS,
    MANAGER_ID_HEADER,
    USER_ID_HEADER,
)
from franchise_bot.settings import settings

from .models import (
    BrandDetailResponse,
    BrandPageResponse,
    CategoriesResponse,
    ConsultationCreateRequest,
    ConsultationPageResponse,
    ConsultationResponse,
    EmptyResponse,
    LoginRequest,
    LoginResponse,
    RescheduleAnswer,
    RescheduleAnswerRequest,
    RescheduleRequest,
    SavedBrandsResponse,
    SaveStatusRequest,
    SaveStatusResponse,
    SaveToggleResponse,
)


class FranchiseAPIError(Exception):
    """Exception with fields of the error response."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        status: Optional[int] = None,
        errors: Optional[Dict[str, str]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.status = status
        self.errors = errors or {}

    @property
    def display_message(self) -> str:
        """Message with field validation errors joined into one line."""
        if not self.errors:
            return self.message
        return ", ".join(f"{field}: {text}" for field, text in self.errors.items())


def _validation_errors(body: Dict[str, Any]) -> Dict[str, str]:
    """Extract field -> message map from an error envelope."""
    for key in ("errors", "data"):
        value = body.get(key)
        if isinstance(value, dict) and value and all(
            isinstance(text, str) for text in value.values()
        ):
            return {str(field): text for field, text in value.items()}
    return {}


class FranchiseAPIClient:
    """Asynchronous client for working with API."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[int] = None,
    ) -> None:
        self._base_url = URL(base_url or settings.API_BASE_URL)
        self._timeout = aiohttp.ClientTimeout(total=timeout or settings.API_TIMEOUT)
        self._session: Optional[aiohttp.ClientSession] = None

    async def __aenter__(self) -> Self:
        await self._ensure_session()
        return self

    async def __aexit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        if self._session and not self._session.closed:
            await self._session.close()
            self._session = None

    def _headers(self) -> Dict[str, str]:
        return dict(DEFAULT_HEADERS)

    async def _ensure_session(self) -> None:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=self._timeout,
                headers=self._headers(),
                json_serialize=lambda obj: orjson.dumps(obj).decode(),
            )

    async def _request(
        self,
        method: str,
        endpoint: str,
        **kwargs: Any,
    ) -> Dict[str, Any]:
        """Make HTTP request to the API.

        Args:
            method: HTTP method (GET, POST, etc.)
            endpoint: API endpoint
            **kwargs: Additional request parameters

        Returns:
            API response envelope as dictionary

        Raises:
            FranchiseAPIError: When API returns error
            RuntimeError: If session is not initialized
        """
        await self._ensure_session()
        url = self._base_url.join(URL(endpoint))

        if self._session is None:
            raise RuntimeError("Session not initialized")

        async with self._session.request(method, url, **kwargs) as resp:
            try:
                data = await resp.json(loads=orjson.loads, content_type=None)
            except ValueError as e:
                raise FranchiseAPIError(
                    message=f"HTTP {resp.status}",
                    status=resp.status,
                ) from e

            if not isinstance(data, dict):
                raise FranchiseAPIError(
                    message=f"Unexpected response: HTTP {resp.status}",
                    status=resp.status,
                )

            if resp.status >= 400 or not data.get("success", False):
                raise FranchiseAPIError(
                    message=data.get("message") or f"HTTP {resp.status}",
                    error_code=data.get("errorCode"),
                    status=resp.status,
                    errors=_validation_errors(data),
                )
            return data

    @staticmethod
    def _user_headers(user_id: int) -> Dict[str, str]:
        return {USER_ID_HEADER: str(user_id)}

    @staticmethod
    def _manager_headers(manager_id: int) -> Dict[str, str]:
        return {MANAGER_ID_HEADER: str(manager_id)}

    # Public
    async def get_brands(self, page: int = 0, size: int = 10) -> BrandPageResponse:
        """Get public brands page.

        Args:
            page: Zero-based page number
            size: Page size

        Returns:
            Brand page response
        """
        logger.info(f"Fetching brands page={page} size={size}")
        data = await self._request(
            "GET",
            ENDPOINTS["brands"],
            params={"page": page, "size": size},
        )
        response = BrandPageResponse(**data)
        logger.debug(f"Retrieved {len(response.data.content)} brands")
        return response

    async def get_brand_detail(self, brand_id: int) -> BrandDetailResponse:
        """Get single brand by ID.

        Args:
            brand_id: Brand ID

        Returns:
            Brand detail response
        """
        logger.info(f"Fetching brand {brand_id}")
        endpoint = ENDPOINTS["brand_detail"].format(brand_id=brand_id)
        data = await self._request("GET", endpoint)
        return BrandDetailResponse(**data)

    async def get_brands_by_category(
        self,
        category_id: int,
        page: int = 0,
        size: int = 10,
    ) -> BrandPageResponse:
        """Get brands of a category.

        Args:
            category_id: Category ID to filter brands
            page: Zero-based page number
            size: Page size

        Returns:
            Brand page response
        """
        logger.info(f"Fetching brands of category {category_id}, page={page}")
        endpoint = ENDPOINTS["brands_by_category"].format(category_id=category_id)
        data = await self._request(
            "GET",
            endpoint,
            params={"page": page, "size": size},
        )
        response = BrandPageResponse(**data)
        logger.debug(
            f"Retrieved {len(response.data.content)} brands "
            f"for category {category_id}",
        )
        return response

    async def search_brands(
        self,
        keyword: str,
        page: int = 0,
        size: int = 10,
    ) -> BrandPageResponse:
        """Search brands by keyword.

        Args:
            keyword: Search keyword
            page: Zero-based page number
            size: Page size

        Returns:
            Brand page response
        """
        logger.info(f"Searching brands: {keyword!r}, page={page}")
        data = await self._request(
            "GET",
            ENDPOINTS["brands_search"],
            params={"keyword": keyword, "page": page, "size": size},
        )
        response = BrandPageResponse(**data)
        logger.debug(f"Found {len(response.data.content)} brands")
        return response

    async def get_categories(self) -> CategoriesResponse:
        """Get all brand categories."""
        logger.info("Fetching categories")
        data = await self._request("GET", ENDPOINTS["categories"])
        response = CategoriesResponse(**data)
        logger.debug(f"Retrieved {len(response.data)} categories")
        return response

    # Auth
    async def login(self, email: str, password: str) -> LoginResponse:
        """Log in as a regular user.

        Args:
            email: Account email
            password: Account password

        Returns:
            Login response with the account data
        """
        logger.info(f"User login attempt: {email}")
        payload = LoginRequest(email=email, password=password)
        data = await self._request(
            "POST",
            ENDPOINTS["user_login"],
            json=payload.model_dump(by_alias=True),
        )
        return LoginResponse(**data)

    async def manager_login(self, email: str, password: str) -> LoginResponse:
        """Log in as a brand manager.

        Args:
            email: Account email
            password: Account password

        Returns:
            Login response with the account data
        """
        logger.info(f"Manager login attempt: {email}")
        payload = LoginRequest(email=email, password=password)
        data = await self._request(
            "POST",
            ENDPOINTS["manager_login"],
            json=payload.model_dump(by_alias=True),
        )
        return LoginResponse(**data)

    # User
    async def get_saved_brands(
        self,
        user_id: int,
        page: int = 0,
        size: int = 10,
    ) -> SavedBrandsResponse:
        """Get brands saved by the user.

        Args:
            user_id: Backend user ID
            page: Zero-based page number
            size: Page size

        Returns:
            Saved brands response
        """
        logger.info(f"Fetching saved brands of user {user_id}")
        data = await self._request(
            "GET",
            ENDPOINTS["saved_brands"],
            params={"page": page, "size": size},
            headers=self._user_headers(user_id),
        )
        response = SavedBrandsResponse(**data)
        logger.debug(f"Retrieved {len(response.data.content)} saved brands")
        return response

    async def toggle_saved_brand(
        self,
        user_id: int,
        brand_id: int,
    ) -> SaveToggleResponse:
        """Save or unsave a brand.

        Args:
            user_id: Backend user ID
            brand_id: Brand ID

        Returns:
            Toggle response, optionally with the resulting saved flag
        """
        logger.info(f"Toggling saved brand {brand_id} for user {user_id}")
        endpoint = ENDPOINTS["brand_save_toggle"].format(brand_id=brand_id)
        data = await self._request(
            "POST",
            endpoint,
            headers=self._user_headers(user_id),
        )
        return SaveToggleResponse(**data)

    async def get_brand_save_status(
        self,
        user_id: int,
        brand_ids: Iterable[int],
    ) -> SaveStatusResponse:
        """Get saved flags for several brands.

        Args:
            user_id: Backend user ID
            brand_ids: Brand IDs to check

        Returns:
            Response with brand ID -> saved flag map
        """
        payload = SaveStatusRequest(brand_ids=list(brand_ids))
        logger.info(f"Fetching save status of {len(payload.brand_ids)} brands")
        data = await self._request(
            "POST",
            ENDPOINTS["brand_save_status"],
            json=payload.model_dump(by_alias=True),
            headers=self._user_headers(user_id),
        )
        return SaveStatusResponse(**data)

    async def create_consultation(
        self,
        user_id: int,
        payload: ConsultationCreateRequest,
    ) -> ConsultationResponse:
        """Create new consultation request.

        Args:
            user_id: Backend user ID
            payload: Consultation creation request data

        Returns:
            Created consultation
        """
        logger.info(f"Creating consultation for brand {payload.brand_id}")
        data = await self._request(
            "POST",
            ENDPOINTS["user_consultations"],
            json=payload.model_dump(by_alias=True, mode="json"),
            headers=self._user_headers(user_id),
        )
        logger.debug("Consultation created successfully")
        return ConsultationResponse(**data)

    async def get_user_consultations(
        self,
        user_id: int,
        page: int = 0,
        size: int = 10,
    ) -> ConsultationPageResponse:
        """Get consultations requested by the user.

        Args:
            user_id: Backend user ID
            page: Zero-based page number
            size: Page size

        Returns:
            Consultation page response
        """
        logger.info(f"Fetching consultations of user {user_id}, page={page}")
        data = await self._request(
            "GET",
            ENDPOINTS["user_consultations"],
            params={"page": page, "size": size},
            headers=self._user_headers(user_id),
        )
        response = ConsultationPageResponse(**data)
        logger.debug(f"Retrieved {len(response.data.content)} consultations")
        return response

    async def get_user_consultation(
        self,
        user_id: int,
        consultation_id: int,
    ) -> ConsultationResponse:
        """Get single consultation of the user."""
        logger.info(f"Fetching consultation {consultation_id} of user {user_id}")
        endpoint = ENDPOINTS["user_consultation"].format(
            consultation_id=consultation_id,
        )
        data = await self._request(
            "GET",
            endpoint,
            headers=self._user_headers(user_id),
        )
        return ConsultationResponse(**data)

    async def respond_to_reschedule(
        self,
        user_id: int,
        consultation_id: int,
        answer: RescheduleAnswer,
    ) -> ConsultationResponse:
        """Accept or reject the manager's reschedule proposal.

        Args:
            user_id: Backend user ID
            consultation_id: Consultation ID
            answer: ACCEPT or REJECT

        Returns:
            Updated consultation
        """
        logger.info(
            f"User {user_id} answers {answer} to consultation {consultation_id}",
        )
        endpoint = ENDPOINTS["user_consultation_respond"].format(
            consultation_id=consultation_id,
        )
        data = await self._request(
            "PUT",
            endpoint,
            json=RescheduleAnswerRequest(response=answer).model_dump(mode="json"),
            headers=self._user_headers(user_id),
        )
        return ConsultationResponse(**data)

    async def cancel_user_consultation(
        self,
        user_id: int,
        consultation_id: int,
    ) -> EmptyResponse:
        """Cancel consultation on behalf of the user."""
        logger.info(f"User {user_id} cancels consultation {consultation_id}")
        endpoint = ENDPOINTS["user_consultation_cancel"].format(
            consultation_id=consultation_id,
        )
        data = await self._request(
            "PUT",
            endpoint,
            headers=self._user_headers(user_id),
        )
        return EmptyResponse(**data)

    # Manager
    async def get_manager_consultations(
        self,
        manager_id: int,
        page: int = 0,
        size: int = 10,
    ) -> ConsultationPageResponse:
        """Get consultations requested for the manager's brands.

        Args:
            manager_id: Backend manager ID
            page: Zero-based page number
            size: Page size

        Returns:
            Consultation page response
        """
        logger.info(f"Fetching consultations of manager {manager_id}, page={page}")
        data = await self._request(
            "GET",
            ENDPOINTS["manager_consultations"],
            params={"page": page, "size": size},
            headers=self._manager_headers(manager_id),
        )
        response = ConsultationPageResponse(**data)
        logger.debug(f"Retrieved {len(response.data.content)} consultations")
        return response

    async def confirm_consultation(
        self,
        manager_id: int,
        consultation_id: int,
    ) -> ConsultationResponse:
        """Confirm pending consultation as is."""
        logger.info(f"Manager {manager_id} confirms consultation {consultation_id}")
        endpoint = ENDPOINTS["manager_consultation_confirm"].format(
            consultation_id=consultation_id,
        )
        data = await self._request(
            "PUT",
            endpoint,
            headers=self._manager_headers(manager_id),
        )
        return ConsultationResponse(**data)

    async def reschedule_consultation(
        self,
        manager_id: int,
        consultation_id: int,
        payload: RescheduleRequest,
    ) -> ConsultationResponse:
        """Propose another date and time for a pending consultation.

        Args:
            manager_id: Backend manager ID
            consultation_id: Consultation ID
            payload: Proposed slot with optional reason and note

        Returns:
            Updated consultation
        """
        logger.info(
            f"Manager {manager_id} proposes {payload.adjusted_date} "
            f"{payload.adjusted_time} for consultation {consultation_id}",
        )
        endpoint = ENDPOINTS["manager_consultation_reschedule"].format(
            consultation_id=consultation_id,
        )
        data = await self._request(
            "PUT",
            endpoint,
            json=payload.model_dump(by_alias=True, exclude_none=True, mode="json"),
            headers=self._manager_headers(manager_id),
        )
        return ConsultationResponse(**data)

    async def cancel_manager_consultation(
        self,
        manager_id: int,
        consultation_id: int,
    ) -> EmptyResponse:
        """Cancel consultation on behalf of the manager."""
        logger.info(f"Manager {manager_id} cancels consultation {consultation_id}")
        endpoint = ENDPOINTS["manager_consultation_cancel"].format(
            consultation_id=consultation_id,
        )
        data = await self._request(
            "PUT",
            endpoint,
            headers=self._manager_headers(manager_id),
        )
        return EmptyResponse(**data)
