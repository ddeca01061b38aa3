from __future__ import annotations

from pydantic import ValidationError as PydanticValidationError
import httpx

from storefront.core.config import settings
from storefront.schemas.order import OrderCreate, OrderCreated
from storefront.services.exceptions import NetworkError

ORDERS_PATH = "/api/orders"


def _headers() -> dict:
    return {
        "Accept": "application/json",
        "Content-Type": "application/json",
    }


class OrderClient:
    """Single-shot order creation against the backend."""

    def __init__(self, client: httpx.AsyncClient | None = None, *, base_url: str | None = None) -> None:
        self._client = client
        self._base_url = (base_url or settings.API_BASE_URL).rstrip("/")

    async def _post(self, payload: dict) -> httpx.Response:
        url = f"{self._base_url}{ORDERS_PATH}"
        timeout = settings.ORDER_REQUEST_TIMEOUT_SECONDS
        if self._client is not None:
            return await self._client.post(url, json=payload, headers=_headers(), timeout=timeout)
        async with httpx.AsyncClient() as client:
            return await client.post(url, json=payload, headers=_headers(), timeout=timeout)

    async def create_order(self, payload: OrderCreate) -> OrderCreated:
        try:
            response = await self._post(payload.to_wire())
            response.raise_for_status()
        except httpx.TimeoutException as exc:
            raise NetworkError("Order service timed out") from exc
        except httpx.HTTPStatusError as exc:
            raise NetworkError(
                f"Order service error ({exc.response.status_code}): {exc.response.text}"
            ) from exc
        except httpx.HTTPError as exc:
            raise NetworkError(f"Order service connection error: {exc}") from exc

        try:
            body = response.json()
        except ValueError as exc:
            raise NetworkError("Order service returned a non-JSON response") from exc

        if isinstance(body, dict) and isinstance(body.get("data"), dict):
            body = body["data"]
        try:
            return OrderCreated.model_validate(body)
        except PydanticValidationError as exc:
            raise NetworkError("Order service response has no order id") from exc
