"""Read-only client for the user directory (email lookup for notifications)."""
import logging
from typing import Optional
from uuid import UUID

import pydantic
import requests
from pydantic import BaseModel

from orderflow.config import UserDirectoryConfig
from orderflow.exceptions import ExternalServiceError

logger = logging.getLogger(__name__)


class UserInfo(BaseModel):
    id: UUID
    email: str
    role: Optional[str] = None


class UserDirectoryClient:

    def __init__(self, config: UserDirectoryConfig, session: Optional[requests.Session] = None):
        self.config = config
        self._session = session or requests.Session()

    def get_user(self, user_id: UUID) -> UserInfo:
        url = f"{self.config.base_url.rstrip('/')}/internal/users/{user_id}"
        try:
            response = self._session.get(url, timeout=self.config.timeout_seconds)
        except requests.RequestException as exc:
            logger.error("User directory request failed: %s", exc)
            raise ExternalServiceError(f"Failed to call user directory: {exc}") from exc

        if not response.ok:
            logger.error("User directory returned %s for user %s", response.status_code, user_id)
            raise ExternalServiceError(f"User directory error: {response.status_code}")

        try:
            return UserInfo.model_validate(response.json())
        except (ValueError, pydantic.ValidationError) as exc:
            raise ExternalServiceError(f"Failed to parse user directory response: {exc}") from exc
