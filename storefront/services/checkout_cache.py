from __future__ import annotations

from datetime import timedelta
from typing import Optional
import time

from storefront.core.config import settings
from storefront.schemas.checkout import CachedCheckout


class CheckoutCache:
    def __init__(self, ttl_seconds: int | None = None) -> None:
        if ttl_seconds is None:
            ttl_seconds = settings.CHECKOUT_CACHE_TTL_SECONDS
        self.ttl = timedelta(seconds=ttl_seconds)
        self._store: dict[str, CachedCheckout] = {}

    def get(self, company_slug: str) -> Optional[CachedCheckout]:
        entry = self._store.get(company_slug)
        if not entry:
            return None
        if (time.time() - entry.saved_at) > self.ttl.total_seconds():
            self._store.pop(company_slug, None)
            return None
        return entry

    def set(self, entry: CachedCheckout) -> None:
        self._store[entry.company_slug] = entry

    def clear(self, company_slug: Optional[str] = None) -> None:
        if company_slug:
            self._store.pop(company_slug, None)
        else:
            self._store.clear()
