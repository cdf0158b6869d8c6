"""
FastAPI dependency injection providers.

Dependencies can be overridden in tests using app.dependency_overrides, making
it easy to inject an in-memory database or a fake payment gateway.

Identity is established upstream: the identity provider's gateway forwards the
verified principal as X-User-Id and X-User-Role headers, and the engine trusts
them without re-validating.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generator, Optional

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.engine import Engine

from bnb_booking.config import STRIPE_SECRET_KEY
from bnb_booking.db.engine import engine
from bnb_booking.payments.stripe_client import StripeGateway


@dataclass(frozen=True)
class Principal:
    user_id: str
    role: str = "guest"

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


def get_db_engine() -> Generator[Engine, None, None]:
    """
    Provide database engine for dependency injection.

    Yields:
        Engine: SQLAlchemy database engine

    Testing Example:
        >>> app.dependency_overrides[get_db_engine] = lambda: sqlite_engine
    """
    yield engine


def get_payment_gateway() -> Optional[StripeGateway]:
    """
    Provide the Stripe gateway, or None when payments are not configured.
    """
    if not STRIPE_SECRET_KEY:
        return None
    return StripeGateway(api_key=STRIPE_SECRET_KEY)


def get_current_user(
    x_user_id: Optional[str] = Header(None),
    x_user_role: Optional[str] = Header(None),
) -> Principal:
    """
    Read the requesting principal from the identity headers.

    Raises:
        HTTPException: 401 if no user id was forwarded
    """
    if not x_user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing X-User-Id header",
        )
    return Principal(user_id=x_user_id, role=(x_user_role or "guest").lower())


def require_admin(principal: Principal = Depends(get_current_user)) -> Principal:
    """
    Raises:
        HTTPException: 403 unless the principal has the admin role
    """
    if not principal.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin role required",
        )
    return principal
