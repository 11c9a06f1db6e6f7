# checkout_service/api/deps.py
from typing import Iterator

from fastapi import Depends, Header
from sqlalchemy.orm import Session, sessionmaker

from checkout_service.api.errors import http_error
from checkout_service.data.database import SessionLocal, transaction
from checkout_service.domain.errors import CheckoutError
from checkout_service.domain.owner import Owner


def get_session_factory() -> sessionmaker:
    return SessionLocal


def get_tx(session_factory: sessionmaker = Depends(get_session_factory)) -> Iterator[Session]:
    """One transaction per request: committed after the handler, rolled back on error."""
    with transaction(session_factory) as tx:
        yield tx


def get_owner(
    x_user_id: str | None = Header(None),
    x_session_id: str | None = Header(None),
) -> Owner:
    # a signed-in user wins over the guest session
    try:
        if x_user_id:
            return Owner(user_id=x_user_id)
        return Owner(session_id=x_session_id)
    except CheckoutError as e:
        raise http_error(e)
