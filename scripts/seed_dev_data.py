# scripts/seed_dev_data.py
"""
Seed development staff, a partner, a few listings, an open pay period and a
v1 API key.
Run: python scripts/seed_dev_data.py
"""
from __future__ import annotations

import asyncio
import os
import sys
from datetime import datetime, timedelta, timezone
from decimal import Decimal

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from sqlalchemy import select

from db.session import session_scope
from models.api_key import ApiKey
from models.listing import Listing
from models.partner import Partner
from models.pay_period import PayPeriod
from models.staff import Staff
from services.api_keys import generate_api_key, hash_api_key
from services.time_tracking import compute_period_bounds

STAFF = [
    ("admin@aerialshots.media", "Dev Admin", "admin", None),
    ("qc@aerialshots.media", "Quinn QC", "qc", Decimal("22.00")),
    ("photo1@aerialshots.media", "Pat Photographer", "photographer", Decimal("30.00")),
    ("photo2@aerialshots.media", "Sam Shooter", "photographer", Decimal("28.50")),
    ("editor@aerialshots.media", "Eddie Editor", "editor", Decimal("25.00")),
]

LISTINGS = [
    ("123 Lake Eola Dr", "Orlando"),
    ("45 Park Ave S", "Winter Park"),
    ("900 Celebration Ave", "Celebration"),
]


async def seed():
    async with session_scope() as db:
        for email, name, role, rate in STAFF:
            result = await db.execute(select(Staff).where(Staff.email == email))
            if result.scalar_one_or_none():
                print(f"Staff exists: {email}")
                continue
            db.add(
                Staff(
                    email=email,
                    name=name,
                    role=role,
                    is_active=True,
                    payout_type="hourly" if rate else "w2",
                    hourly_rate=rate,
                )
            )
            print(f"Created staff: {email} ({role})")
        await db.flush()

        result = await db.execute(select(Partner).where(Partner.email == "partner@example.com"))
        if result.scalar_one_or_none() is None:
            db.add(
                Partner(
                    email="partner@example.com",
                    name="Dev Partner",
                    active_roles=["photographer", "qc"],
                    designated_staff={},
                    role_overrides={},
                )
            )
            print("Created partner: partner@example.com")

        result = await db.execute(select(Listing).limit(1))
        if result.scalar_one_or_none() is None:
            tomorrow = datetime.now(timezone.utc) + timedelta(days=1)
            for i, (address, city) in enumerate(LISTINGS):
                db.add(
                    Listing(
                        address=address,
                        city=city,
                        state="FL",
                        ops_status="pending",
                        is_rush=i == 0,
                        scheduled_at=tomorrow + timedelta(hours=i * 2),
                    )
                )
            print(f"Created {len(LISTINGS)} listings")

        result = await db.execute(select(PayPeriod).where(PayPeriod.status == "open"))
        if result.scalar_one_or_none() is None:
            start, end = compute_period_bounds(datetime.now(timezone.utc).date())
            db.add(PayPeriod(start_date=start, end_date=end, status="open"))
            print(f"Opened pay period {start} .. {end}")

        raw_key = generate_api_key()
        db.add(
            ApiKey(
                name="dev",
                key_hash=hash_api_key(raw_key),
                is_active=True,
                rate_limit_tier="default",
            )
        )
        print(f"Created API key (shown once): {raw_key}")


if __name__ == "__main__":
    asyncio.run(seed())
