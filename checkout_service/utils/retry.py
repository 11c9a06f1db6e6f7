# checkout_service/utils/retry.py
import logging

from tenacity import before_sleep_log, retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from checkout_service.domain.errors import ConflictError
from checkout_service.utils.logging import get_logger
from checkout_service.utils.settings import CHECKOUT_MAX_ATTEMPTS

logger = get_logger(__name__)


def conflict_retry(attempts: int = CHECKOUT_MAX_ATTEMPTS):
    """Re-run the whole unit of work after a lost optimistic update."""
    return retry(
        reraise=True,
        stop=stop_after_attempt(attempts),
        wait=wait_exponential(multiplier=0.05, min=0.05, max=0.5),
        retry=retry_if_exception_type(ConflictError),
        before_sleep=before_sleep_log(logger, logging.WARNING),
    )
