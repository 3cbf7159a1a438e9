"""
Create the first admin account.

Usage:
    python seed.py
    python seed.py --username admin --email admin@school.example --password 'S3cretpass'

Defaults come from ADMIN_USERNAME / ADMIN_EMAIL / ADMIN_PASSWORD. Does nothing
when an admin already exists.
"""

import argparse
import logging
import os
import sys

from sqlalchemy.orm import Session

from db import SessionLocal
from models import User
from passwords import hash_password
from repositories import UserRepository
from validators import password_problems

logger = logging.getLogger("exam-authority.seed")


def create_admin_user(db: Session, username: str, email: str, password: str, full_name: str) -> bool:
    users = UserRepository(db)
    if users.has_role("admin"):
        logger.info("An admin already exists; nothing to do")
        return False
    if users.find_by_username(username) or users.find_by_email(email):
        logger.warning("Username or email already taken: %s / %s", username, email)
        return False

    users.add(
        User(
            username=username,
            email=email,
            password_hash=hash_password(password),
            role="admin",
            full_name=full_name,
        )
    )
    db.commit()
    logger.info("Admin user created: %s", username)
    return True


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Seed the exam database with an admin user")
    parser.add_argument("--username", default=os.getenv("ADMIN_USERNAME", "admin"))
    parser.add_argument("--email", default=os.getenv("ADMIN_EMAIL", "admin@school.example"))
    parser.add_argument("--password", default=os.getenv("ADMIN_PASSWORD"))
    parser.add_argument("--name", default="Administrator")
    args = parser.parse_args(argv)

    if not args.password:
        parser.error("an admin password is required (--password or ADMIN_PASSWORD)")
    problems = password_problems(args.password)
    if problems:
        parser.error("; ".join(problems))

    with SessionLocal() as db:
        create_admin_user(db, args.username, args.email, args.password, args.name)
    return 0


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    sys.exit(main())
