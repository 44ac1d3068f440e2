"""
Excel File Manager with Concurrency Control

Appends placed orders to a spreadsheet ledger for the canteen staff.
Rows are written by the Celery worker; the file is guarded by a
FileLock because several workers may export at the same time.

Version: 1.0.0
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Any

import pandas as pd
from filelock import FileLock, Timeout

from hostel_orders.core.config import get_settings

logger = logging.getLogger(__name__)


def summarize_items(items: list[dict[str, Any]]) -> str:
    """'2x Classic Masala Maggi, 1x Coca-Cola (500ml)'"""
    return ", ".join(f"{line.get('quantity')}x {line.get('name')}" for line in items)


class ExcelManager:
    """Thread-safe Excel file manager for the order ledger."""

    ORDER_COLUMNS = [
        "order_id",
        "order_number",
        "date_time",
        "customer_name",
        "room_number",
        "phone",
        "student_email",
        "payment_method",
        "notes",
        "items",
        "total",
        "order_status",
        "exported_at",
    ]

    @classmethod
    def _orders_file(cls) -> Path:
        return get_settings().excel_path

    @classmethod
    def _lock_file(cls) -> Path:
        orders_file = cls._orders_file()
        return orders_file.with_name(f"{orders_file.name}.lock")

    @classmethod
    def _ensure_data_dir(cls) -> None:
        """Create data directory if needed."""
        data_dir = cls._orders_file().parent
        if not data_dir.exists():
            data_dir.mkdir(parents=True, exist_ok=True)
            logger.info(f"Created data directory: {data_dir}")

    @classmethod
    def _load_or_create_df(cls, file_path: Path) -> pd.DataFrame:
        """Load existing file or create new DataFrame."""
        if file_path.exists():
            try:
                return pd.read_excel(file_path, engine="openpyxl")
            except Exception as e:
                logger.warning(f"Error reading {file_path}: {e}")
                return pd.DataFrame(columns=cls.ORDER_COLUMNS)
        return pd.DataFrame(columns=cls.ORDER_COLUMNS)

    @classmethod
    def build_row(cls, order_data: dict[str, Any], export_time: str) -> dict[str, Any]:
        """Flatten a serialized order (camelCase keys) into one sheet row."""
        return {
            "order_id": order_data.get("id"),
            "order_number": order_data.get("orderNumber"),
            "date_time": order_data.get("createdAt", export_time),
            "customer_name": order_data.get("customerName"),
            "room_number": order_data.get("roomNumber"),
            "phone": order_data.get("phone"),
            "student_email": order_data.get("studentEmail"),
            "payment_method": order_data.get("paymentMethod"),
            "notes": order_data.get("notes", ""),
            "items": summarize_items(order_data.get("items", [])),
            "total": order_data.get("total"),
            "order_status": order_data.get("status"),
            "exported_at": export_time,
        }

    @classmethod
    def export_order(cls, order_data: dict[str, Any]) -> dict[str, Any]:
        """Append one order to the spreadsheet under the file lock."""
        cls._ensure_data_dir()

        orders_file = cls._orders_file()
        timeout = get_settings().excel_lock_timeout
        order_number = order_data.get("orderNumber", "unknown")
        result = {
            "success": False,
            "message": "",
            "order_number": order_number,
            "exported_at": None,
        }

        try:
            lock = FileLock(str(cls._lock_file()), timeout=timeout)

            with lock:
                logger.debug(f"Lock acquired for Order {order_number}")

                df = cls._load_or_create_df(orders_file)

                export_time = datetime.now().isoformat()
                new_row = cls.build_row(order_data, export_time)

                df = pd.concat([df, pd.DataFrame([new_row])], ignore_index=True)
                df.to_excel(str(orders_file), index=False, engine="openpyxl")

                logger.info(f"Order {order_number} exported to Excel")

                result["success"] = True
                result["message"] = f"Order {order_number} exported"
                result["exported_at"] = export_time

            logger.debug(f"Lock released for Order {order_number}")

        except Timeout:
            result["message"] = f"Lock timeout ({timeout}s)"
            logger.error(f"Lock timeout for Order {order_number}")

        return result

    @classmethod
    def get_all_orders(cls) -> list[dict[str, Any]]:
        """Get all exported orders from Excel."""
        orders_file = cls._orders_file()
        if not orders_file.exists():
            return []

        df = pd.read_excel(orders_file, engine="openpyxl")
        return df.to_dict("records")

    @classmethod
    def clear_all(cls) -> bool:
        """Delete the spreadsheet and its lock file."""
        removed = False
        for f in [cls._orders_file(), cls._lock_file()]:
            if f.exists():
                f.unlink()
                removed = True
        logger.info("Excel export cleared")
        return removed
