# checkout_service/api/errors.py
from fastapi import HTTPException

from checkout_service.domain.errors import CheckoutError


def http_error(e: CheckoutError) -> HTTPException:
    return HTTPException(status_code=e.status_code, detail=e.as_dict())
