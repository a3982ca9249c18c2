"""
Default reference data and the first admin account.

Run with ``python -m institute_crm.seed``. Safe to run repeatedly; rows
that already exist (matched by name or email) are left untouched.
"""
import asyncio
import logging

from sqlmodel import SQLModel, select
from sqlmodel.ext.asyncio.session import AsyncSession

from institute_crm.config import settings
from institute_crm.core.context import Role
from institute_crm.core.security import get_password_hash
from institute_crm.models.reference import Branch, Course, EnquirySource, RequiredService
from institute_crm.models.user import User

logger = logging.getLogger(__name__)

ENQUIRY_SOURCES = [
    "Website",
    "Instagram",
    "Facebook",
    "Referral",
    "Walk-in",
    "Phone Call",
    "Google Ads",
]

BRANCHES = [
    {
        "name": "Main Branch",
        "address": "123 Main Street, City Center",
        "phone": "+91 9876543210",
        "email": "main@institute.com",
    },
    {
        "name": "East Branch",
        "address": "456 East Avenue, East District",
        "phone": "+91 9876543211",
        "email": "east@institute.com",
    },
]

COURSES = [
    {
        "name": "Web Development",
        "description": "Full-stack web development course covering HTML, CSS, JavaScript, React, and Node.js",
        "duration": "6 months",
    },
    {
        "name": "Digital Marketing",
        "description": "Comprehensive digital marketing course including SEO, SEM, Social Media Marketing",
        "duration": "4 months",
    },
    {
        "name": "Data Science",
        "description": "Data science and machine learning course with Python, R, and ML algorithms",
        "duration": "8 months",
    },
    {
        "name": "Graphic Design",
        "description": "Creative graphic design course with Adobe Creative Suite",
        "duration": "3 months",
    },
    {
        "name": "Mobile App Development",
        "description": "Native and cross-platform mobile app development with React Native and Flutter",
        "duration": "5 months",
    },
    {
        "name": "UI/UX Design",
        "description": "User interface and user experience design course with Figma and Adobe XD",
        "duration": "4 months",
    },
]

REQUIRED_SERVICES = [
    "Career Guidance",
    "Placement Assistance",
    "Certification",
    "Internship Support",
    "Project Mentoring",
]


async def upsert_by_name(session: AsyncSession, model, data: dict) -> SQLModel:
    name = data["name"].strip()
    result = await session.exec(select(model).where(model.name == name))
    existing = result.first()
    if existing:
        return existing

    row = model(**{**data, "name": name})
    session.add(row)
    return row


async def seed_defaults(session: AsyncSession, admin_email: str, admin_password: str) -> None:
    """Insert whatever defaults are missing and commit once."""
    try:
        for name in ENQUIRY_SOURCES:
            await upsert_by_name(session, EnquirySource, {"name": name})
        for branch in BRANCHES:
            await upsert_by_name(session, Branch, branch)
        for course in COURSES:
            await upsert_by_name(session, Course, course)
        for name in REQUIRED_SERVICES:
            await upsert_by_name(session, RequiredService, {"name": name})

        email = admin_email.lower()
        result = await session.exec(select(User).where(User.email == email))
        if not result.first():
            session.add(User(
                email=email,
                password_hash=get_password_hash(admin_password),
                full_name="Administrator",
                role=Role.ADMIN
            ))
            logger.info(f"Created admin user {email}")

        await session.commit()
    except Exception:
        await session.rollback()
        logger.exception("Seed failed")
        raise

    logger.info("Seed complete")


async def _run() -> None:
    from institute_crm.database import init_db, async_session

    await init_db()
    async with async_session() as session:
        await seed_defaults(session, settings.SEED_ADMIN_EMAIL, settings.SEED_ADMIN_PASSWORD)


def main():
    logging.basicConfig(level=settings.LOG_LEVEL)
    asyncio.run(_run())


if __name__ == "__main__":
    main()
