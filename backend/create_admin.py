"""Create the BroDesk administrator account

Usage:
    python create_admin.py --email admin@example.com --password s3cret!
    BOOTSTRAP_ADMIN_PASSWORD=s3cret! python create_admin.py
"""
import argparse
import asyncio
import sys

from app.core.config import settings
from app.core.database import get_session_local, init_db, close_db
from app.core.exceptions import BroDeskError
from app.modules.auth.bootstrap import bootstrap_admin


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Create a pre-approved BroDesk admin")
    parser.add_argument("--email", default=settings.BOOTSTRAP_ADMIN_EMAIL)
    parser.add_argument("--password", default=settings.BOOTSTRAP_ADMIN_PASSWORD)
    parser.add_argument("--name", default=settings.BOOTSTRAP_ADMIN_NAME)
    parser.add_argument("--phone", default=settings.BOOTSTRAP_ADMIN_PHONE)
    return parser.parse_args(argv)


async def create_admin(args) -> int:
    await init_db()
    try:
        async with get_session_local()() as db:
            account = await bootstrap_admin(db, args.email, args.password, args.name, args.phone)
    except BroDeskError as e:
        print(f"Could not create admin: {e.message}", file=sys.stderr)
        return 1
    finally:
        await close_db()

    print(f"Created admin: {account.email}")
    print(f"Account ID: {account.id}")
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(create_admin(parse_args())))
