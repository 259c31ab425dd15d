"""
Read a list stream (orders, returns, customers, salesmen) from a running
sales service and print one line per row.

    python tools/stream_list.py orders --tenant tenant-1 --user u1 --limit 20
    python tools/stream_list.py returns --tenant tenant-1 --user u1 --param sales_id=<order id>
"""
import argparse
import json
import os

import requests

BASE = os.environ.get("SALES_BASE", "http://127.0.0.1:8002")

ROW_KEYS = {"orders": "order", "returns": "sales_return", "customers": "customer", "salesmen": "salesman"}


def stream(resource, headers, params):
    with requests.get(f"{BASE}/api/{resource}", headers=headers, params=params, stream=True, timeout=30) as r:
        r.raise_for_status()
        for line in r.iter_lines():
            if line:
                yield json.loads(line)


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Print a sales service list stream.")
    parser.add_argument("resource", choices=sorted(ROW_KEYS))
    parser.add_argument("--tenant", required=True)
    parser.add_argument("--user", required=True)
    parser.add_argument("--limit", type=int, default=0)
    parser.add_argument("--search", default="")
    parser.add_argument("--param", action="append", default=[], help="extra filter as key=value")
    args = parser.parse_args()

    headers = {"X-Tenant-Id": args.tenant, "X-User-Id": args.user}
    params = {"limit": args.limit, "search": args.search}
    params.update(dict(p.split("=", 1) for p in args.param))

    total = None
    shown = 0
    for row in stream(args.resource, headers, params):
        total = row["pagination"]["count"]
        item = row[ROW_KEYS[args.resource]]
        print(item.get("code"), item.get("total_price", item.get("name")))
        shown += 1
    print(f"{shown} shown of {total if total is not None else 0}")
