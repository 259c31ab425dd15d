#!/usr/bin/env python3
"""
Seed one tenant with customers and salesmen so orders can be created
against it (run once against a fresh database).

Usage:
    python scripts/seed_demo.py --tenant tenant-1 --user admin
    python scripts/seed_demo.py --tenant tenant-1 --file parties.json

The optional JSON file holds {"customers": [...], "salesmen": [...]}; each
entry carries code, name, address, phone (and email for salesmen).
"""
import argparse
import json
import os
import sys

# allow running from repo/scripts
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from sales_service.context import CallerContext
from sales_service.db import SessionLocal, init_db
from sales_service.errors import AlreadyExists
from sales_service.services.party_service import CustomerService, SalesmanService
from sales_service.utils.log import configure_logging

DEFAULT_PARTIES = {
    "customers": [
        {"code": "C001", "name": "Toko Makmur", "address": "Jl. Merdeka 10", "phone": "0811000001"},
        {"code": "C002", "name": "Warung Sejahtera", "address": "Jl. Pahlawan 4", "phone": "0811000002"},
    ],
    "salesmen": [
        {"code": "S001", "name": "Andi", "email": "andi@example.com", "address": "Jl. Mawar 1", "phone": "0812000001"},
    ],
}


def seed(ctx: CallerContext, parties: dict):
    db = SessionLocal()
    created = 0
    try:
        for service, entries in ((CustomerService(db), parties.get("customers", [])),
                                 (SalesmanService(db), parties.get("salesmen", []))):
            for entry in entries:
                try:
                    service.create(ctx, entry)
                    created += 1
                except AlreadyExists:
                    print(f"skip {service.label} {entry.get('code')}: already exists")
        print("Seeded parties:", created)
    finally:
        db.close()


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    parser.add_argument("--tenant", required=True)
    parser.add_argument("--user", default="seed-script")
    parser.add_argument("--file", "-f", help="JSON file with customers/salesmen")
    args = parser.parse_args()

    parties = DEFAULT_PARTIES
    if args.file:
        if not os.path.exists(args.file):
            print("File not found:", args.file)
            sys.exit(1)
        with open(args.file, "r", encoding="utf-8") as f:
            parties = json.load(f)

    configure_logging()
    init_db()
    seed(CallerContext(tenant_id=args.tenant, caller_id=args.user), parties)
