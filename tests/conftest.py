import os

# Must be set before institute_crm.config is imported
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["SECRET_KEY"] = "test-secret-key"

from datetime import datetime  # noqa: E402

import pytest  # noqa: E402
from httpx import AsyncClient, ASGITransport  # noqa: E402
from sqlalchemy.ext.asyncio import create_async_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402
from sqlmodel import SQLModel  # noqa: E402
from sqlmodel.ext.asyncio.session import AsyncSession  # noqa: E402

from institute_crm import models  # noqa: E402,F401
from institute_crm.core.context import ActorContext, Role  # noqa: E402
from institute_crm.core.security import get_password_hash, create_access_token  # noqa: E402
from institute_crm.database import get_session  # noqa: E402
from institute_crm.models.enquiry import Enquiry, EnquiryStatus  # noqa: E402
from institute_crm.models.reference import Branch  # noqa: E402
from institute_crm.models.user import User  # noqa: E402
from institute_crm.services.auth_service import build_token_data  # noqa: E402

TEST_PASSWORD = "password123"


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def session(engine):
    factory = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        yield session


async def _add(session, obj):
    session.add(obj)
    await session.commit()
    await session.refresh(obj)
    return obj


@pytest.fixture
async def branch(session):
    return await _add(session, Branch(name="Main Branch"))


@pytest.fixture
async def other_branch(session):
    return await _add(session, Branch(name="East Branch"))


async def _make_user(session, email, role, branch_id=None):
    return await _add(session, User(
        email=email,
        password_hash=get_password_hash(TEST_PASSWORD),
        full_name=email.split("@")[0].title(),
        role=role,
        branch_id=branch_id,
    ))


@pytest.fixture
async def admin(session):
    return await _make_user(session, "admin@test.com", Role.ADMIN)


@pytest.fixture
async def executive(session, branch):
    return await _make_user(session, "exec@test.com", Role.EXECUTIVE, branch.id)


@pytest.fixture
async def telecaller(session, branch):
    return await _make_user(session, "tc1@test.com", Role.TELECALLER, branch.id)


@pytest.fixture
async def other_telecaller(session, branch):
    return await _make_user(session, "tc2@test.com", Role.TELECALLER, branch.id)


def actor_for(user) -> ActorContext:
    return ActorContext(user_id=user.id, role=user.role, branch_id=user.branch_id)


@pytest.fixture
def make_enquiry(session, admin):
    """Insert an enquiry directly, bypassing the service's auto-assignment."""
    async def _make(
        assigned_to=None,
        status=EnquiryStatus.NEW,
        branch_id=None,
        candidate_name="Test Candidate",
        created_at=None,
    ):
        enquiry = Enquiry(
            candidate_name=candidate_name,
            phone="9876543210",
            status=status,
            branch_id=branch_id,
            assigned_to_user_id=assigned_to.id if assigned_to else None,
            created_by_user_id=admin.id,
            created_at=created_at or datetime.utcnow(),
        )
        return await _add(session, enquiry)
    return _make


@pytest.fixture
async def client(session):
    from institute_crm.main import app

    async def _override_session():
        yield session

    app.dependency_overrides[get_session] = _override_session
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


def auth_headers(user) -> dict:
    token = create_access_token(build_token_data(user))
    return {"Authorization": f"Bearer {token}"}
