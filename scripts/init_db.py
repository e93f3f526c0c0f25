#!/usr/bin/env python
"""
Create the database tables and the default pricing factor.

Usage:
    python scripts/init_db.py
    python scripts/init_db.py --admin-email admin@example.com
"""
import argparse
import logging
import sys
from pathlib import Path

# Add src to path for internal imports
sys.path.insert(0, str(Path(__file__).parent.parent / 'src'))

from sqlalchemy import select

from media_pricing.config.logging_config import configure_logging
from media_pricing.config.settings import get_settings
from media_pricing.services.factors_service import FactorsService
from media_pricing.store.db import get_session_factory, init_db
from media_pricing.store.models import User

logger = logging.getLogger("init_db")


def main():
    parser = argparse.ArgumentParser(description="Initialize the media pricing database")
    parser.add_argument('--admin-email', help="Create an active admin user with this email")
    parser.add_argument('--first-name', default="Admin")
    parser.add_argument('--last-name', default="User")
    args = parser.parse_args()

    configure_logging()
    settings = get_settings()
    logger.info(f"Initializing database at {settings.database_url}")

    try:
        init_db()
        session = get_session_factory()()
        try:
            FactorsService(session, default_factor_id=settings.default_factor_id).ensure_default_factor()

            if args.admin_email:
                existing = session.execute(
                    select(User).where(User.email == args.admin_email)
                ).scalars().first()
                if existing:
                    logger.info(f"User {args.admin_email} already exists (ID: {existing.id})")
                else:
                    admin = User(
                        email=args.admin_email,
                        first_name=args.first_name,
                        last_name=args.last_name,
                        role='admin',
                        is_active=True,
                    )
                    session.add(admin)
                    session.commit()
                    logger.info(f"Created admin user {admin.email} (ID: {admin.id})")
        finally:
            session.close()
    except Exception as e:
        logger.error(f"Database initialization failed: {e}")
        sys.exit(1)

    logger.info("Database initialized successfully")


if __name__ == "__main__":
    main()
