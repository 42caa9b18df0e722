#!/usr/bin/env python3
"""
Seed script to load a demo shopkeeper with customers and dues.
Usage: python seed_demo_ledger.py
"""

import os
from decimal import Decimal

from duesbook.core.exceptions import DuesbookError
from duesbook.db.init_db import init_db
from duesbook.db.session import SessionLocal
from duesbook.models.customer import Customer
from duesbook.models.user import User
from duesbook.services import auth as auth_service
from duesbook.services import customers as customer_service
from duesbook.services import transactions as transaction_service

DEMO_EMAIL = os.getenv("DEMO_EMAIL", "demo@duesbook.local")
DEMO_PASSWORD = os.getenv("DEMO_PASSWORD", "demo-ledger-123")

# (name, village, contact, [(type, amount, description), ...])
DEMO_CUSTOMERS = [
    ("Lakshmi Devi", "Rampur", "9876500011", [
        ("DEBIT", "450.00", "Rice 10kg"),
        ("DEBIT", "120.50", "Mustard oil"),
        ("CREDIT", "300.00", "Cash payment"),
    ]),
    ("Bhola Nath", "Rampur", None, [
        ("DEBIT", "80.00", "Sugar"),
    ]),
    ("Chandan Kumar", "Devgarh", "9876500033", [
        ("DEBIT", "1200.00", "Fertiliser"),
        ("CREDIT", "500.00", None),
    ]),
    ("Deepa Rampal", "Sitapur", None, [
        ("DEBIT", "60.00", "Soap, matches"),
        ("CREDIT", "60.00", "Settled"),
    ]),
]


def seed_demo_ledger():
    """Create the demo account and its customers through the service layer"""

    # Ensure tables exist
    init_db()

    db = SessionLocal()
    try:
        owner = db.query(User).filter(User.email == DEMO_EMAIL).first()
        if not owner:
            owner = auth_service.register(db, DEMO_EMAIL, DEMO_PASSWORD, name="Demo Shop")
            print(f"✓ Created demo account: {DEMO_EMAIL} / {DEMO_PASSWORD}")
        elif db.query(Customer).filter(Customer.owner_id == owner.id).count():
            print(f"⊙ {DEMO_EMAIL} already has customers, skipping")
            return True

        for name, village, contact, entries in DEMO_CUSTOMERS:
            customer = customer_service.create_customer(db, owner.id, name, village, contact)
            for txn_type, amount, description in entries:
                transaction_service.create_transaction(
                    db, owner.id, customer.id, txn_type, Decimal(amount), description
                )
            db.refresh(customer)
            print(f"✓ Added: {customer.name} ({customer.village_name}) dues ₹{customer.outstanding_dues}")

        print(f"\n✅ Seeded {len(DEMO_CUSTOMERS)} customers for {DEMO_EMAIL}")
        return True

    except DuesbookError as e:
        print(f"\n❌ Error seeding data: {e.message}")
        return False
    finally:
        db.close()


if __name__ == "__main__":
    print("📒 Duesbook - Demo Ledger Seeding\n")
    seed_demo_ledger()
