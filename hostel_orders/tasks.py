"""
Celery Tasks
Background spreadsheet export of placed orders.
"""

import logging
import time

from hostel_orders.celery_worker import celery_app
from hostel_orders.services.excel_manager import ExcelManager

logger = logging.getLogger(__name__)


@celery_app.task(
    bind=True,
    max_retries=3,
    default_retry_delay=5,
    autoretry_for=(OSError,),
    retry_backoff=True
)
def export_order_to_excel(self, order_data: dict) -> dict:
    """
    Append a placed order to the spreadsheet ledger.

    Args:
        order_data: The order serialized with camelCase keys

    Returns:
        dict: Result of the export operation
    """
    task_id = self.request.id
    order_number = order_data.get('orderNumber', 'unknown')

    logger.info(f"📋 Task {task_id}: exporting order {order_number}")
    start_time = time.time()

    result = ExcelManager.export_order(order_data)

    elapsed = round(time.time() - start_time, 3)
    result['task_id'] = task_id
    result['processing_time_seconds'] = elapsed

    if result['success']:
        logger.info(f"✅ Task {task_id}: order {order_number} exported in {elapsed}s")
    else:
        logger.warning(f"⚠️ Task {task_id}: order {order_number} failed - {result['message']}")

    return result
