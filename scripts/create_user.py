#!/usr/bin/env python3
"""
Script to create a new user interactively.

Usage:
    python scripts/create_user.py --email writer@example.com

    # Or with a phone number and an explicit username:
    python scripts/create_user.py --phone 09121234567 --username writer
"""

import argparse
import asyncio
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from sqlalchemy.exc import IntegrityError

from quillpost.auth import AuthMethod, CredentialResolver, Identifier, UserStore
from quillpost.config import load_config
from quillpost.db import Database
from quillpost.errors import ServiceError


async def create_user(username, email, phone, verified: bool) -> int:
    config = load_config()
    database = Database(config.database)

    try:
        await database.create_all()

        async with database.sessionmaker() as session:
            users = UserStore(session)
            resolver = CredentialResolver(users, phone_region=config.phone_region)

            try:
                if email:
                    resolver.validate(AuthMethod.EMAIL.value, email)
                if phone:
                    phone = resolver.validate(AuthMethod.PHONE.value, phone).value
            except ServiceError as e:
                print(f"❌ {e.message}")
                return 1

            for method, value in ((AuthMethod.USERNAME, username), (AuthMethod.EMAIL, email), (AuthMethod.PHONE, phone)):
                if value and await resolver.find_user(Identifier(method, value)):
                    print(f"❌ User with {method.value} {value} already exists!")
                    return 1

            try:
                user = await users.create_user(
                    username=username,
                    email=email,
                    phone=phone,
                    verify_email=verified and bool(email),
                    verify_phone=verified and bool(phone),
                )
                await session.commit()
            except IntegrityError as e:
                print(f"❌ Failed to create user: {e.orig}")
                return 1

            print()
            print("✅ User created successfully!")
            print(f"   User ID: {user.id}")
            print(f"   Username: {user.username}")
            if user.email:
                print(f"   Email: {user.email}")
            if user.phone:
                print(f"   Phone: {user.phone}")
            return 0
    finally:
        await database.dispose()


def main():
    parser = argparse.ArgumentParser(description="Create a new user")
    parser.add_argument("--username", "-u", help="Username (default: generated)")
    parser.add_argument("--email", "-e", help="User's email")
    parser.add_argument("--phone", "-p", help="User's mobile number")
    parser.add_argument("--verified", action="store_true", help="Mark the given email/phone as verified")
    args = parser.parse_args()

    email = args.email
    phone = args.phone
    if not email and not phone:
        email = input("Email (optional, press Enter to skip): ").strip() or None
        phone = input("Phone (optional, press Enter to skip): ").strip() or None

    if not email and not phone:
        print("❌ An email or a phone number is required!")
        sys.exit(1)

    sys.exit(asyncio.run(create_user(args.username, email, phone, args.verified)))


if __name__ == "__main__":
    main()
