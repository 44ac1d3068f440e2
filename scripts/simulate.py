"""
Concurrency Simulation Script

Fires many student orders at a running API at once, then checks with
the admin token that every order got its own id and that the ids form
one contiguous run (no lost counter updates).

Run from project root, with the API running:
    python scripts/simulate.py --orders 50 --pin 1234

Version: 1.0.0
"""

import argparse
import asyncio
import random
import sys
import time
from datetime import datetime
from typing import Any

import httpx

API_BASE_URL = "http://localhost:5000/api"
TOTAL_ORDERS = 50

FIRST_NAMES = ["Amit", "Riya", "Karan", "Sneha", "Rahul", "Pooja", "Arjun", "Neha", "Vikram", "Isha"]
BLOCKS = ["A", "B", "C", "D"]
MENU_IDS = ["m1", "m2", "m3", "d1", "d2", "d3", "s1", "s2", "s3", "b1", "b2"]


def generate_order_payload(name: str) -> dict[str, Any]:
    """Random cart for one student."""
    item_ids = random.sample(MENU_IDS, k=random.randint(1, 4))
    return {
        "customerName": name,
        "roomNumber": f"{random.choice(BLOCKS)}-{random.randint(101, 420)}",
        "phone": f"9{random.randint(100000000, 999999999)}",
        "paymentMethod": random.choice(["cash", "upi"]),
        "notes": random.choice(["", "Less spicy", "Extra cheese", "Call on arrival"]),
        "items": [{"itemId": i, "quantity": random.randint(1, 3)} for i in item_ids],
    }


async def login_student(client: httpx.AsyncClient, student_num: int) -> str:
    name = f"{random.choice(FIRST_NAMES)} {student_num}"
    response = await client.post(
        f"{API_BASE_URL}/auth/student/email-login",
        json={"name": name, "email": f"sim-student-{student_num}@hostel.test"},
    )
    response.raise_for_status()
    return response.json()["token"]


async def send_order(
    client: httpx.AsyncClient,
    order_num: int,
    token: str,
) -> dict[str, Any]:
    """Place one order and time it."""
    payload = generate_order_payload(f"Sim Student {order_num}")
    start_time = time.time()

    try:
        response = await client.post(
            f"{API_BASE_URL}/orders",
            json=payload,
            headers={"Authorization": f"Bearer {token}"},
            timeout=30.0,
        )
        elapsed = round(time.time() - start_time, 3)

        if response.status_code == 201:
            order = response.json()["order"]
            return {
                "order_num": order_num,
                "success": True,
                "order_id": order["id"],
                "total": order["total"],
                "time": elapsed,
            }
        return {
            "order_num": order_num,
            "success": False,
            "error": response.text[:100],
            "time": elapsed,
        }
    except httpx.HTTPError as e:
        elapsed = round(time.time() - start_time, 3)
        return {
            "order_num": order_num,
            "success": False,
            "error": str(e)[:100],
            "time": elapsed,
        }


async def verify_ledger(client: httpx.AsyncClient, pin: str, placed_ids: list[int]) -> bool:
    """Check the placed ids are unique, contiguous, and all visible to the admin."""
    response = await client.post(f"{API_BASE_URL}/auth/admin/login", json={"pin": pin})
    if response.status_code != 200:
        print(f"❌ Admin login failed: {response.text[:100]}")
        return False
    token = response.json()["token"]

    response = await client.get(
        f"{API_BASE_URL}/orders/admin",
        params={"limit": 300},
        headers={"Authorization": f"Bearer {token}"},
    )
    listed = {o["id"] for o in response.json()["orders"]}

    ok = True
    if len(set(placed_ids)) != len(placed_ids):
        print(f"❌ Duplicate order ids handed out: {len(placed_ids) - len(set(placed_ids))}")
        ok = False
    else:
        print("✅ Every order got a unique id")

    if placed_ids and sorted(placed_ids) != list(range(min(placed_ids), max(placed_ids) + 1)):
        print("⚠️ Order ids are not contiguous (another client may have ordered meanwhile)")

    missing = [i for i in placed_ids if i not in listed]
    if missing and len(placed_ids) <= 300:
        print(f"❌ {len(missing)} placed orders missing from the admin listing: {missing[:5]}")
        ok = False
    else:
        print("✅ All placed orders are in the ledger")

    return ok


async def run_simulation(num_orders: int = TOTAL_ORDERS, pin: str = "1234") -> bool:
    """
    Run the concurrency simulation.

    Args:
        num_orders: Number of orders to place concurrently
        pin: Admin PIN used for verification
    """
    print("=" * 70)
    print("🔥 CONCURRENCY SIMULATION")
    print("=" * 70)
    print(f"📋 Total Orders: {num_orders}")
    print(f"🎯 Target: {API_BASE_URL}")
    print(f"⏰ Started: {datetime.now().strftime('%H:%M:%S')}")
    print("=" * 70)

    async with httpx.AsyncClient() as client:
        response = await client.get(f"{API_BASE_URL}/health")
        if response.status_code != 200:
            print(f"❌ API not healthy: {response.text[:100]}")
            return False
        print(f"✅ Health: {response.json().get('status')}")

        print("\n🔑 Logging students in...")
        student_count = max(1, num_orders // 5)
        tokens = await asyncio.gather(*(login_student(client, i + 1) for i in range(student_count)))

        print("🚀 Firing orders...\n")
        start_time = time.time()
        results = await asyncio.gather(
            *(send_order(client, i + 1, tokens[i % student_count]) for i in range(num_orders))
        )
        total_time = round(time.time() - start_time, 2)

        successful = [r for r in results if r["success"]]
        failed = [r for r in results if not r["success"]]

        print("=" * 70)
        print("📊 SIMULATION RESULTS")
        print("=" * 70)
        print(f"\n✅ Successful Orders: {len(successful)}/{num_orders}")
        print(f"❌ Failed Orders: {len(failed)}/{num_orders}")
        print(f"⏱️  Total Time: {total_time}s")

        if successful:
            avg_time = round(sum(r["time"] for r in successful) / len(successful), 3)
            print(f"\n📈 Average Response: {avg_time}s")
            print(f"   Fastest: {min(r['time'] for r in successful)}s")
            print(f"   Slowest: {max(r['time'] for r in successful)}s")
            print(f"   💰 Total Value: ₹{sum(r['total'] for r in successful)}")

        if failed:
            print("\n⚠️  Failed Order Details (showing first 5):")
            for f in failed[:5]:
                print(f"   Order #{f['order_num']}: {f.get('error', 'Unknown error')}")

        print("\n" + "=" * 70)
        print("🔍 LEDGER VERIFICATION")
        print("=" * 70)
        ok = await verify_ledger(client, pin, [r["order_id"] for r in successful])

    print("=" * 70)
    return ok and not failed


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Concurrency Simulation Script")
    parser.add_argument("--orders", type=int, default=TOTAL_ORDERS, help="Number of orders")
    parser.add_argument("--pin", default="1234", help="Admin PIN for verification")
    parser.add_argument("--base-url", default=API_BASE_URL, help="API base URL including prefix")
    args = parser.parse_args()

    API_BASE_URL = args.base_url.rstrip("/")

    passed = asyncio.run(run_simulation(args.orders, args.pin))
    sys.exit(0 if passed else 1)
