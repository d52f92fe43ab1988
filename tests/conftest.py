import os

# Settings() is built at import time; make sure tests never need a real .env
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")

from decimal import Decimal

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.core.broadcast import BroadcastHub
from app.core.database import Base, get_db
from app.core.security import create_access_token
from app.main import app
from app.models.user import User, UserRoleEnum
from app.models.project import Project, ProjectStatusEnum
from app.models.proposal import Proposal, ProposalStatusEnum
from app.models.transaction import Transaction, TransactionStatusEnum


@pytest.fixture
async def engine(tmp_path):
    # file-backed so several sessions can look at the same data
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def hub():
    hub = BroadcastHub(queue_size=4)
    yield hub
    hub.close()


@pytest.fixture
async def client(session_factory, hub):
    """FastAPI test client with get_db overridden and a hub on app.state."""
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    # ASGITransport does not run the lifespan, so wire the hub by hand
    app.state.broadcast_hub = hub

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c

    app.dependency_overrides.clear()


async def _persist(db, obj):
    db.add(obj)
    await db.commit()
    await db.refresh(obj)
    return obj


@pytest.fixture
def make_user(db):
    async def _make(user_id, role=UserRoleEnum.client, earnings="0", total_spent="0"):
        return await _persist(db, User(
            user_id=user_id,
            name=f"user-{user_id}",
            email=f"user{user_id}@example.com",
            password_hash="not-a-real-hash",
            role=role,
            earnings=Decimal(earnings),
            total_spent=Decimal(total_spent),
        ))
    return _make


@pytest.fixture
def make_project(db):
    async def _make(project_id, client_id, status=ProjectStatusEnum.open, freelancer_id=None):
        return await _persist(db, Project(
            project_id=project_id,
            client_id=client_id,
            freelancer_id=freelancer_id,
            title=f"Project {project_id}",
            description="Build something",
            budget=Decimal("1000.00"),
            status=status,
        ))
    return _make


@pytest.fixture
def make_proposal(db):
    async def _make(proposal_id, project_id, freelancer_id, bid="800.00",
                    status=ProposalStatusEnum.pending):
        return await _persist(db, Proposal(
            proposal_id=proposal_id,
            project_id=project_id,
            freelancer_id=freelancer_id,
            proposal_text="I can do it",
            bid_amount=Decimal(bid),
            status=status,
        ))
    return _make


@pytest.fixture
def make_transaction(db):
    async def _make(transaction_id, client_id, freelancer_id, project_id, amount="250.00",
                    status=TransactionStatusEnum.pending):
        return await _persist(db, Transaction(
            transaction_id=transaction_id,
            client_id=client_id,
            freelancer_id=freelancer_id,
            project_id=project_id,
            amount=Decimal(amount),
            payment_method="paypal",
            status=status,
        ))
    return _make


@pytest.fixture
def auth_headers():
    def _headers(user_id, role):
        role = role.value if isinstance(role, UserRoleEnum) else role
        token = create_access_token({"user_id": user_id, "role": role})
        return {"Authorization": f"Bearer {token}"}
    return _headers
