# checkout_service/celery_worker.py
from celery import Celery

from checkout_service.utils.settings import CELERY_BROKER_URL, CELERY_RESULT_BACKEND

celery_app = Celery(
    "checkout",
    broker=CELERY_BROKER_URL,
    backend=CELERY_RESULT_BACKEND,
)

# tasks have to be imported explicitly to get registered
celery_app.conf.imports = ("checkout_service.tasks.expire",)

celery_app.conf.beat_schedule = {
    "expire-payments-every-minute": {
        "task": "checkout_service.tasks.expire.expire_payments_task",
        "schedule": 60.0,
    },
}

celery_app.conf.timezone = "UTC"
