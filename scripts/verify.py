"""
Excel Verification Script

Verifies data integrity of the spreadsheet export written by the
Celery worker.
Run from project root: python scripts/verify.py

Version: 1.0.0
"""

import os
import re
import sys
from datetime import datetime

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pandas as pd

from hostel_orders.core.config import get_settings

EXCEL_FILE = get_settings().excel_path

# Matches one "2x Classic Masala Maggi" entry of the items column
ITEM_PATTERN = re.compile(r"(\d+)x ")


def verify_excel() -> bool:
    """Verify the export after a simulation run."""

    print("=" * 60)
    print("🔍 EXCEL VERIFICATION REPORT")
    print("=" * 60)
    print(f"⏰ Timestamp: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    print(f"📄 File: {EXCEL_FILE}")
    print("=" * 60)

    if not EXCEL_FILE.exists():
        print("\n❌ Excel file not found!")
        print("   Enable EXCEL_EXPORT_ENABLED, start the worker and run: python scripts/simulate.py")
        return False

    try:
        df = pd.read_excel(EXCEL_FILE, engine='openpyxl')
        print("\n✅ File loaded successfully!")
    except (OSError, ValueError) as e:
        print(f"\n❌ Could not read Excel file: {e}")
        return False

    print("\n📊 STATISTICS:")
    print(f"   Total Orders: {len(df)}")
    print(f"   Columns: {len(df.columns)}")

    required = ['order_id', 'order_number', 'items', 'total', 'order_status']
    missing = [col for col in required if col not in df.columns]
    if missing:
        print(f"\n⚠️ Missing Columns: {missing}")
        return False
    print("\n✅ All required columns present")

    ok = True

    duplicates = df['order_id'].duplicated().sum()
    if duplicates > 0:
        print(f"\n⚠️ {duplicates} duplicate order IDs found!")
        ok = False
    else:
        print("✅ No duplicate order IDs")

    empty_orders = df[df['items'].fillna("").map(lambda s: not ITEM_PATTERN.search(str(s)))]
    if len(empty_orders) > 0:
        print(f"⚠️ {len(empty_orders)} orders without items")
        ok = False

    non_positive = (df['total'] <= 0).sum()
    if non_positive > 0:
        print(f"⚠️ {non_positive} orders with a non-positive total")
        ok = False

    print("\n💰 VALUE:")
    print(f"   Total: ₹{df['total'].sum():.0f}")
    print(f"   Average: ₹{df['total'].mean():.0f}")

    print("\n📋 RECENT ORDERS:")
    print("-" * 60)
    if len(df) > 0:
        cols = ['order_number', 'customer_name', 'room_number', 'total', 'order_status']
        cols = [c for c in cols if c in df.columns]
        print(df[cols].tail(5).to_string(index=False))

    print("\n" + "=" * 60)
    print("✅ VERIFICATION COMPLETE" if ok else "❌ VERIFICATION FOUND PROBLEMS")
    print("=" * 60)

    return ok


if __name__ == "__main__":
    sys.exit(0 if verify_excel() else 1)
