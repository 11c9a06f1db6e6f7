# checkout_service/tasks/expire.py
from checkout_service.celery_worker import celery_app
from checkout_service.data.database import SessionLocal, transaction
from checkout_service.services.payment_service import PaymentService
from checkout_service.utils.logging import get_logger

logger = get_logger(__name__)


def expire_payments(session_factory=SessionLocal) -> int:
    with transaction(session_factory) as tx:
        return PaymentService(tx).expire_overdue()


@celery_app.task(name="checkout_service.tasks.expire.expire_payments_task")
def expire_payments_task():
    logger.info("Expire payments task started")
    expired = expire_payments()
    logger.info(f"Marked {expired} overdue payments as failed")
    return expired
