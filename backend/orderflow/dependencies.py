"""Shared FastAPI dependencies."""
from typing import Optional
from uuid import UUID

from fastapi import Header, Request

from orderflow.container import Services
from orderflow.exceptions import UnauthorizedError, ValidationError


def get_services(request: Request) -> Services:
    return request.app.state.services


def get_user_id(x_user_id: Optional[str] = Header(None)) -> UUID:
    """Caller identity, set by the gateway after it validates the token."""
    if not x_user_id:
        raise UnauthorizedError("Missing X-User-Id header")
    try:
        return UUID(x_user_id)
    except ValueError:
        raise ValidationError("X-User-Id header is not a valid UUID")
