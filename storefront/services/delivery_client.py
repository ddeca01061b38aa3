from __future__ import annotations

from typing import Any

import httpx

from storefront.core.config import settings
from storefront.core.logging import get_logger

logger = get_logger(__name__)

DELIVERY_CONFIG_PATH = "/api/delivery/config"


class DeliveryConfigClient:
    """Fetches the raw delivery config of a company.

    Returns ``None`` on any failure; callers normalize ``None`` to the
    disabled-delivery config. Not retried.
    """

    def __init__(self, client: httpx.AsyncClient | None = None, *, base_url: str | None = None) -> None:
        self._client = client
        self._base_url = (base_url or settings.API_BASE_URL).rstrip("/")

    async def _get(self, params: dict[str, str]) -> httpx.Response:
        url = f"{self._base_url}{DELIVERY_CONFIG_PATH}"
        timeout = settings.DELIVERY_CONFIG_TIMEOUT_SECONDS
        if self._client is not None:
            return await self._client.get(url, params=params, timeout=timeout)
        async with httpx.AsyncClient() as client:
            return await client.get(url, params=params, timeout=timeout)

    async def fetch(
        self,
        *,
        company_id: str | None = None,
        company_slug: str | None = None,
    ) -> dict[str, Any] | None:
        if company_id:
            params = {"company": company_id}
        elif company_slug:
            params = {"slug": company_slug}
        else:
            return None

        try:
            response = await self._get(params)
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPStatusError as exc:
            logger.warning(
                "delivery config request failed",
                extra={"status_code": exc.response.status_code, **params},
            )
            return None
        except httpx.HTTPError as exc:
            logger.warning("delivery config connection error", extra={"error": str(exc), **params})
            return None
        except ValueError:
            logger.warning("delivery config response is not JSON", extra=params)
            return None

        if isinstance(body, dict) and body.get("status") == "success" and isinstance(body.get("data"), dict):
            return body["data"]
        logger.warning("unexpected delivery config envelope", extra=params)
        return None
