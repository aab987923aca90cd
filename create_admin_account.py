#!/usr/bin/env python3
"""
Create (or reactivate) an admin account and seed the default settings row
and email templates.

Usage:
    ADMIN_PASSWORD=... python create_admin_account.py admin@church.org "Pastor Dan"
"""
import os
import sys
import getpass
from dotenv import load_dotenv

load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL")

if not DATABASE_URL:
    print("ERROR: DATABASE_URL not found in .env")
    sys.exit(1)

from db import SessionLocal
from models import AdminUser
from auth.utils import hash_password
from seeds.email_templates_seeds import seed_admin_settings, seed_email_templates


def main(argv):
    if len(argv) < 2:
        print(__doc__)
        return 1

    email = argv[1].strip().lower()
    name = argv[2] if len(argv) > 2 else None
    password = os.getenv("ADMIN_PASSWORD") or getpass.getpass("Admin password: ")
    if len(password) < 8:
        print("ERROR: password must be at least 8 characters")
        return 1

    print("=== Creating Admin Account ===\n")

    with SessionLocal() as session:
        admin = session.query(AdminUser).filter(AdminUser.email == email).first()
        if admin:
            admin.password_hash = hash_password(password)
            admin.is_active = True
            if name:
                admin.name = name
            print(f"✅ Admin already existed, password reset: {email}")
        else:
            admin = AdminUser(email=email, name=name, password_hash=hash_password(password))
            session.add(admin)
            print(f"✅ Created admin: {email}")
        session.commit()
        print(f"   Admin ID: {admin.id}")

        seed_admin_settings(session)
        seed_email_templates(session)
        print("   Default settings and email templates seeded")

    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv))
