#!/usr/bin/env python3
"""
Create a CampusConnect administrator account.

Administrators sign in through /admin/login and manage events and
announcements. The account is created already confirmed.

Usage:
    python scripts/create_admin.py [--seed-demo]

Options:
    --seed-demo    Also load the demo events into an empty database
"""
import sys
from getpass import getpass
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from campusconnect.auth.backend import AccountBackend
from campusconnect.auth.errors import AuthError
from campusconnect.core.database import create_db_and_tables, engine
from campusconnect.store import DatabaseEventStore
from campusconnect.store.mock_data import seed_demo_data


def main(seed_demo: bool = False):
    """Prompt for the admin's details and store the account."""
    create_db_and_tables()

    email = input("Enter email: ").strip()
    full_name = input("Enter full name: ").strip()
    password = getpass("Enter password: ")
    password2 = getpass("Confirm password: ")

    if password != password2:
        print("Error: Passwords do not match.")
        sys.exit(1)

    if len(password) < 6:
        print("Error: Password must be at least 6 characters.")
        sys.exit(1)

    try:
        user = AccountBackend(engine).create_admin(email, password, full_name or email)
    except AuthError as e:
        print(f"Error creating admin account: {e.message}")
        sys.exit(1)

    print("Admin account created")
    print(f"  Email: {user.email}")
    print(f"  User id: {user.id}")

    if seed_demo:
        seeded = seed_demo_data(DatabaseEventStore(engine))
        print(f"Seeded {seeded} demo events" if seeded else "Database already has events, nothing seeded")


if __name__ == "__main__":
    seed_demo = "--seed-demo" in sys.argv
    main(seed_demo=seed_demo)
