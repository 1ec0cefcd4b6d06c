#!/usr/bin/env python3
"""
Create the tables and the default admin, manager and employee accounts
"""

import sys
import logging
from dotenv import load_dotenv
from sqlalchemy.exc import SQLAlchemyError

import model  # registers every table on Base.metadata
from db.database import Base, engine, SessionLocal
from model.usermodels import User, UserRole
from utils.token import hash_password

# Load environment variables
load_dotenv()

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

DEFAULT_USERS = [
    {
        "first_name": "Admin",
        "last_name": "User",
        "email": "admin@example.com",
        "password": "admin123",
        "role": UserRole.ADMIN,
    },
    {
        "first_name": "Manager",
        "last_name": "User",
        "email": "manager@example.com",
        "password": "manager123",
        "role": UserRole.MANAGER,
        "department": "Management",
        "position": "Project Manager",
    },
    {
        "first_name": "Employee",
        "last_name": "User",
        "email": "employee@example.com",
        "password": "employee123",
        "role": UserRole.EMPLOYEE,
        "department": "Development",
        "position": "Software Developer",
    },
]


def seed_users(session) -> int:
    """Insert the default users that do not exist yet; returns how many were created"""
    created = 0
    for account in DEFAULT_USERS:
        if session.query(User).filter(User.email == account["email"]).first():
            logger.info(f"{account['email']} already exists, skipping")
            continue
        fields = dict(account)
        fields["password"] = hash_password(fields["password"])
        session.add(User(is_active=True, **fields))
        created += 1
        logger.info(f"Created {account['role'].value} user (email: {account['email']}, password: {account['password']})")
    session.commit()
    return created


def setup_database() -> bool:
    session = None
    try:
        Base.metadata.create_all(bind=engine)
        logger.info("Database tables synchronized")

        session = SessionLocal()
        created = seed_users(session)
        logger.info(f"Seeding finished, {created} user(s) created")
        return True
    except SQLAlchemyError as e:
        logger.error(f"Database setup failed: {e}")
        if session:
            session.rollback()
        return False
    finally:
        if session:
            session.close()


if __name__ == "__main__":
    logger.info("Setting up database...")
    sys.exit(0 if setup_database() else 1)
