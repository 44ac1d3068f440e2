"""
Celery Worker Configuration
Sets up Celery with Redis as message broker and result backend.

Run with:
    celery -A hostel_orders.celery_worker worker --loglevel=info
"""

from celery import Celery

from hostel_orders.core.config import get_settings

REDIS_URL = get_settings().redis_url

celery_app = Celery(
    'hostel_orders_worker',
    broker=REDIS_URL,
    backend=REDIS_URL,
    include=['hostel_orders.tasks']
)

celery_app.conf.update(
    task_serializer='json',
    accept_content=['json'],
    result_serializer='json',
    timezone='UTC',
    enable_utc=True,

    # One spreadsheet writer at a time per process
    worker_prefetch_multiplier=1,
    worker_concurrency=2,

    result_expires=3600,

    task_acks_late=True,
    task_reject_on_worker_lost=True,

    broker_connection_retry_on_startup=True,
)


if __name__ == '__main__':
    celery_app.start()
