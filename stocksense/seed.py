from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

from sqlalchemy import delete

from stocksense.auth import hash_password
from stocksense.config import configure_logging
from stocksense.database import Base, SessionLocal, engine
from stocksense.models import Product, UserAccount
from stocksense.services.inventory import derive_status

logger = logging.getLogger(__name__)

DEMO_USERS = [
    {
        "username": "demo",
        "full_name": "Demo User",
        "password": "demo1234",
        "api_key": "demo-key",
    },
    {
        "username": "clerk",
        "full_name": "Stock Clerk",
        "password": "clerk1234",
        "api_key": "clerk-key",
    },
]

# (name, sku, category, quantity, min_quantity, unit_cost, selling_price, location, days_ago)
DEMO_PRODUCTS = [
    ("Wireless Headphones", "WH-001", "Electronics", 24, 10, 35.00, 79.99, "Aisle 1", 30),
    ("Organic Green Tea", "GT-002", "Food & Beverage", 8, 15, 3.20, 6.50, "Aisle 4", 20),
    ("Ergonomic Office Chair", "OC-003", "Furniture", 0, 5, 120.00, 249.00, "Warehouse B", 14),
    ("Smartphone Case", "SC-004", "Accessories", 56, 20, 2.10, 14.99, "Aisle 2", 5),
    ("Yoga Mat", "YM-005", "Sports", 12, 10, 9.00, 24.00, "Aisle 6", 3),
    ("LED Desk Lamp", "DL-006", "Lighting", 7, 8, 11.50, 29.90, None, 1),
]


def run_seed() -> None:
    Base.metadata.create_all(bind=engine)

    with SessionLocal() as db:
        db.execute(delete(Product))
        db.execute(delete(UserAccount))
        db.flush()

        users = [
            UserAccount(
                username=row["username"],
                full_name=row["full_name"],
                password_hash=hash_password(row["password"]),
                api_key=row["api_key"],
                is_active=True,
            )
            for row in DEMO_USERS
        ]
        db.add_all(users)
        db.flush()

        owner = users[0]
        now = datetime.now(timezone.utc)
        for name, sku, category, quantity, min_quantity, unit_cost, selling_price, location, days_ago in DEMO_PRODUCTS:
            created_at = now - timedelta(days=days_ago)
            db.add(
                Product(
                    name=name,
                    sku=sku,
                    category=category,
                    description=f"{name} ({category})",
                    location=location,
                    quantity=quantity,
                    min_quantity=min_quantity,
                    unit_cost=unit_cost,
                    selling_price=selling_price,
                    status=derive_status(quantity, min_quantity),
                    created_by_id=owner.id,
                    updated_by_id=owner.id,
                    created_at=created_at,
                    updated_at=created_at,
                )
            )

        db.commit()
    logger.info("Seeded %d users and %d products", len(DEMO_USERS), len(DEMO_PRODUCTS))


if __name__ == "__main__":
    configure_logging()
    run_seed()
    print("Seed complete. Users: demo/demo1234, clerk/clerk1234")
