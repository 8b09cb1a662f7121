"""
Script to create an admin or evaluator account.

Usage:
    python -m app.features.auth.utils.create_staff_user

Staff accounts skip the emailed-code signup and are created already verified.
"""

import asyncio
import sys

from pydantic import ValidationError

from app.features.auth.schemas.auth import CreateStaffUser
from app.features.auth.services.auth_service import AuthService
from app.platform.db.session import get_db


async def main():
    print("=== Staff Account Creation Script ===")
    print("Roles: admin, technical_reviewer, jury_member, dragons_den_judge\n")

    name = input("Full name: ").strip()
    email = input("Email: ").strip()
    role = input("Role [admin]: ").strip() or "admin"
    password = input("Password: ").strip()
    confirm_password = input("Confirm password: ").strip()

    if password != confirm_password:
        print("Error: Passwords do not match")
        sys.exit(1)

    try:
        payload = CreateStaffUser(name=name, email=email, password=password, role=role)
    except ValidationError as e:
        print(f"Error: {e}")
        sys.exit(1)

    async for db in get_db():
        try:
            user = await AuthService(db).create_staff_user(
                payload.name, payload.email, payload.password, payload.role
            )
        except ValueError as e:
            print(f"\nError creating account: {e}")
            sys.exit(1)

        print("\nAccount created successfully!")
        print(f"   Email: {user.email}")
        print(f"   ID: {user.id}")
        print(f"   Role: {user.role.value}")
        break


if __name__ == "__main__":
    asyncio.run(main())
