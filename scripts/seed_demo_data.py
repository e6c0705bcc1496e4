"""Seed a handful of demo registrations for each supported company."""
from __future__ import annotations

import logging
import sys
from pathlib import Path

from sqlalchemy.orm import Session

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from registry.core.config import get_settings
from registry.core.logging import configure_logging
from registry.db.session import engine, get_session
from registry.models import Base
from registry.services.records import RecordStore
from registry.services.validation import (
    Provenance,
    RegistrationSubmission,
    ValidationGuard,
    prepare_record,
)

logger = logging.getLogger(__name__)

DEMO_HOLDERS = [
    ("Camille Martin", "camille.martin@demo.local", "+33 6 12 34 56 78", 1200, "14.80", "3.10"),
    ("Lucas Bernard", "lucas.bernard@demo.local", "+33 6 23 45 67 89", 450, "22.35", "2.95"),
    ("Emma Dubois", "emma.dubois@demo.local", "+33 7 34 56 78 90", 3000, "9.60", "4.20"),
]


def seed(session: Session) -> int:
    """Insert demo rows that are not already present; returns how many were added."""

    settings = get_settings()
    store = RecordStore(session)
    guard = ValidationGuard(store, support_email=settings.support_email)
    added = 0
    for company in settings.supported_companies:
        for name, email, phone, shares, bought, sold in DEMO_HOLDERS:
            submission = RegistrationSubmission(
                company=company,
                name=name,
                email=email,
                phone=phone,
                share_count=shares,
                purchase_price=bought,
                sell_price=sold,
            )
            if guard.check_duplicate(submission, company) is not None:
                logger.info("Registration %s already exists for %s", email, company)
                continue
            store.insert(prepare_record(submission, Provenance(ip_address="127.0.0.1", country="FR")))
            added += 1
            logger.info("Added %s for %s", email, company)
    return added


def main() -> None:
    configure_logging()
    Base.metadata.create_all(bind=engine)
    with get_session() as session:
        seed(session)


if __name__ == "__main__":
    main()
