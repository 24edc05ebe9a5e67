"""Read-only client for the restaurant catalog's internal food lookup."""
import logging
from decimal import Decimal
from typing import Iterable, Optional
from uuid import UUID

import pydantic
import requests
from pydantic import BaseModel

from orderflow.config import CatalogConfig
from orderflow.exceptions import ExternalServiceError

logger = logging.getLogger(__name__)


class FoodDetails(BaseModel):
    id: UUID
    name: str
    description: Optional[str] = None
    price: Decimal
    is_available: bool
    restaurant_id: Optional[UUID] = None


class CatalogClient:

    def __init__(self, config: CatalogConfig, session: Optional[requests.Session] = None):
        self.config = config
        self._session = session or requests.Session()

    def get_foods(self, food_ids: Iterable[UUID]) -> list[FoodDetails]:
        """Fetch details for ``food_ids``. Ids the catalog does not know are simply absent."""
        ids = list(dict.fromkeys(food_ids))
        if not ids:
            return []

        url = f"{self.config.base_url.rstrip('/')}/internal/foods"
        logger.info("Fetching %d food items from catalog", len(ids))
        try:
            response = self._session.get(
                url,
                params={"ids": ",".join(str(i) for i in ids)},
                timeout=self.config.timeout_seconds,
            )
        except requests.RequestException as exc:
            logger.error("Catalog request failed: %s", exc)
            raise ExternalServiceError(f"Failed to fetch food details: {exc}") from exc

        if not response.ok:
            logger.error("Catalog returned %s: %s", response.status_code, response.text)
            raise ExternalServiceError(f"Restaurant catalog error: {response.status_code}")

        try:
            return [FoodDetails.model_validate(item) for item in response.json()]
        except (ValueError, TypeError, pydantic.ValidationError) as exc:
            logger.error("Failed to parse catalog response: %s", exc)
            raise ExternalServiceError(f"Failed to parse food details: {exc}") from exc
