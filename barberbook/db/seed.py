"""
Database seeding and initialization functions.

``ensure_admin_user`` guarantees the bootstrap admin configured through
ADMIN_USERNAME / ADMIN_PASSWORD exists. ``seed_demo_data`` fills an empty
database with a demo business for local development.
"""

import logging
from datetime import timedelta
from decimal import Decimal
from typing import Dict, Optional

from barberbook.core import config
from barberbook.core.security import hash_password, verify_password
from barberbook.db.base import (
    Booking,
    BookingStatus,
    Business,
    BusinessClient,
    BusinessSettings,
    Role,
    Service,
    User,
)
from barberbook.db.session import SessionLocal

logger = logging.getLogger(__name__)

DEMO_PASSWORD = "Password123!"


def ensure_admin_user() -> Optional[int]:
    """
    Ensure the bootstrap admin exists and matches the configured credentials.

    Idempotent: creates the user when missing, otherwise re-asserts the ADMIN
    role, the active flag and the password hash.

    Returns:
        The admin's id, or None when no credentials are configured.
    """
    credentials = config.get_admin_credentials()
    if credentials is None:
        return None
    username, password = credentials
    email = username.lower()

    with SessionLocal() as db:
        user = db.query(User).filter(User.email == email).first()
        if user is None:
            user = User(
                name="Super Admin",
                email=email,
                role=Role.ADMIN,
                active_flag=True,
                password_hash=hash_password(password),
            )
            db.add(user)
            db.commit()
            logger.info(
                "Bootstrap admin created",
                extra={"context": {"user_id": user.id, "email": email}},
            )
            return user.id

        changed = False
        if user.role != Role.ADMIN:
            user.role = Role.ADMIN
            changed = True
        if not user.active_flag:
            user.active_flag = True
            changed = True
        if not verify_password(password, user.password_hash):
            user.password_hash = hash_password(password)
            changed = True
        if changed:
            db.commit()
            logger.info(
                "Bootstrap admin updated",
                extra={"context": {"user_id": user.id, "email": email}},
            )
        return user.id


def seed_demo_data() -> Dict[str, int]:
    """
    Create a demo business with an owner, two workers, three services, two
    clients and a couple of bookings. Skipped when the owner already exists.

    Every demo account uses the password ``Password123!``.

    Returns:
        Ids of the main records created (or found).
    """
    with SessionLocal() as db:
        owner = db.query(User).filter(User.email == "owner@demo.barber").first()
        if owner is not None:
            business = db.query(Business).filter(Business.owner_id == owner.id).first()
            logger.info("Demo data already present, skipping")
            return {"owner_id": owner.id, "business_id": business.id if business else 0}

        password_hash = hash_password(DEMO_PASSWORD)
        owner = User(
            name="Olivia Owner",
            email="owner@demo.barber",
            role=Role.BUSINESS_OWNER,
            password_hash=password_hash,
        )
        db.add(owner)
        db.flush()

        business = Business(
            name="Sharp Cuts",
            description="Classic cuts and hot towel shaves",
            address="1 High Street",
            phone="555-0100",
            email="hello@demo.barber",
            owner_id=owner.id,
        )
        business.settings = BusinessSettings(
            currency="usd", opening_hours="Mon-Sat 09:00-18:00"
        )
        db.add(business)
        db.flush()
        owner.business_id = business.id

        workers = [
            User(
                name=name,
                email=email,
                role=Role.WORKER,
                business_id=business.id,
                password_hash=password_hash,
            )
            for name, email in (
                ("Wes Worker", "wes@demo.barber"),
                ("Wendy Worker", "wendy@demo.barber"),
            )
        ]
        services = [
            Service(name=name, duration=duration, price=Decimal(price), business_id=business.id)
            for name, duration, price in (
                ("Haircut", 30, "25.00"),
                ("Beard Trim", 15, "12.00"),
                ("Hot Towel Shave", 45, "35.00"),
            )
        ]
        clients = [
            User(name=name, email=email, role=Role.CLIENT, password_hash=password_hash)
            for name, email in (
                ("Carl Client", "carl@demo.barber"),
                ("Cara Client", "cara@demo.barber"),
            )
        ]
        db.add_all(workers + services + clients)
        db.flush()
        db.add_all(
            [BusinessClient(business_id=business.id, client_id=c.id) for c in clients]
        )

        tomorrow = (config.local_now() + timedelta(days=1)).replace(
            hour=10, minute=0, second=0, microsecond=0
        )
        for offset, (worker, service, client) in enumerate(
            zip(workers, services, clients)
        ):
            start = tomorrow + timedelta(hours=offset)
            db.add(
                Booking(
                    business_id=business.id,
                    service_id=service.id,
                    worker_id=worker.id,
                    client_id=client.id,
                    start_time=start,
                    end_time=start + timedelta(minutes=service.duration),
                    status=BookingStatus.CONFIRMED,
                )
            )
        db.commit()
        logger.info(
            "Demo data created",
            extra={"context": {"business_id": business.id, "owner_id": owner.id}},
        )
        return {"owner_id": owner.id, "business_id": business.id}
