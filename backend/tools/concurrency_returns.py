"""
Fire concurrent return requests at one order and report how many were
accepted. With per-order write serialization the accepted quantity never
exceeds what the order had outstanding.

    python tools/concurrency_returns.py --order <order id> --product <product id> \
        --tenant tenant-1 --user u1 --branch branch-1 --workers 8 --qty 3
"""
import argparse
import concurrent.futures
import os

import requests

BASE = os.environ.get("SALES_BASE", "http://127.0.0.1:8002")


def return_task(i, headers, payload):
    try:
        r = requests.post(f"{BASE}/api/returns", json=payload, headers=headers, timeout=20)
        return (i, r.status_code, r.text)
    except requests.RequestException as e:
        return (i, "ERR", str(e))


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Concurrent return creation against one order.")
    parser.add_argument("--order", required=True)
    parser.add_argument("--product", required=True)
    parser.add_argument("--tenant", required=True)
    parser.add_argument("--user", required=True)
    parser.add_argument("--branch", required=True)
    parser.add_argument("--workers", type=int, default=8)
    parser.add_argument("--qty", type=int, default=1)
    parser.add_argument("--date", default="2024-01-01")
    args = parser.parse_args()

    headers = {"X-Tenant-Id": args.tenant, "X-User-Id": args.user}
    payload = {
        "branch_id": args.branch,
        "order_id": args.order,
        "return_date": args.date,
        "lines": [{"product_id": args.product, "quantity": args.qty}],
    }
    print(f"Running return test: workers={args.workers}, qty={args.qty}")
    with concurrent.futures.ThreadPoolExecutor(max_workers=args.workers) as ex:
        futures = [ex.submit(return_task, i, headers, payload) for i in range(args.workers)]
        results = [f.result() for f in futures]
    for r in results:
        print(r[0], r[1], r[2][:120])
    accepted = sum(1 for r in results if r[1] == 200)
    print(f"accepted={accepted} returned_qty={accepted * args.qty}")

    outstanding = requests.get(f"{BASE}/api/orders/{args.order}/outstanding", headers=headers, timeout=10)
    print("outstanding now:", outstanding.json().get("outstanding"))
