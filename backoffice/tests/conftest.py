"""
Test fixtures - both storage backends, a loaded BoardState and an HTTP client
"""
import uuid
from datetime import date

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.pool import StaticPool

from backoffice.api.deps import get_board
from backoffice.config import get_settings
from backoffice.database import create_engine_from_url, create_tables, make_session_factory
from backoffice.main import app
from backoffice.schemas import Activity, Customer, Invoice, Project, Task
from backoffice.state import BoardState
from backoffice.store import JsonFileStorage, local_stores, sql_stores
from backoffice.utils.helpers import utc_now


@pytest_asyncio.fixture()
async def sql_engine():
    """Fresh in-memory SQLite database shared across sessions of one test"""
    engine = create_engine_from_url(
        "sqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await create_tables(engine)
    yield engine
    await engine.dispose()


@pytest.fixture()
def json_path(tmp_path):
    return str(tmp_path / "store.json")


@pytest_asyncio.fixture(params=["sql", "local"])
async def stores(request, json_path):
    """The four entity stores, once per backend"""
    if request.param == "local":
        yield local_stores(JsonFileStorage(json_path))
        return

    engine = create_engine_from_url(
        "sqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await create_tables(engine)
    yield sql_stores(make_session_factory(engine))
    await engine.dispose()


@pytest.fixture()
def settings():
    return get_settings()


@pytest_asyncio.fixture()
async def board(stores, settings):
    """Loaded (empty) BoardState over the parametrized stores"""
    state = BoardState(stores, settings)
    await state.load_all()
    return state


@pytest_asyncio.fixture()
async def api_board(sql_engine, settings):
    """BoardState served by the app in API tests"""
    state = BoardState(sql_stores(make_session_factory(sql_engine)), settings)
    await state.load_all()
    return state


@pytest_asyncio.fixture()
async def client(api_board):
    """httpx AsyncClient bound to the FastAPI app with the board dependency overridden"""
    app.dependency_overrides[get_board] = lambda: api_board

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test", follow_redirects=True) as ac:
        yield ac

    app.dependency_overrides.clear()


# ===================== RECORD FACTORIES =====================


def _stamps():
    now = utc_now()
    return {"id": str(uuid.uuid4()), "created_at": now, "updated_at": now}


@pytest.fixture()
def make_customer():
    def _make(**fields):
        fields.setdefault("name", "Acme")
        return Customer(**{**_stamps(), **fields})
    return _make


@pytest.fixture()
def make_project():
    def _make(**fields):
        fields.setdefault("customer_id", "customer-1")
        fields.setdefault("name", "Website")
        return Project(**{**_stamps(), **fields})
    return _make


@pytest.fixture()
def make_task():
    def _make(**fields):
        fields.setdefault("project_id", "project-1")
        fields.setdefault("name", "Task")
        return Task(**{**_stamps(), **fields})
    return _make


@pytest.fixture()
def make_invoice():
    def _make(**fields):
        fields.setdefault("customer_id", "customer-1")
        fields.setdefault("invoice_number", "INV-TEST")
        fields.setdefault("amount", 0)
        fields.setdefault("issue_date", date(2025, 1, 1))
        return Invoice(**{**_stamps(), **fields})
    return _make


@pytest.fixture()
def make_activity():
    def _make(**fields):
        fields.setdefault("content", "Follow up")
        return Activity(id=str(uuid.uuid4()), created_at=utc_now(), **fields)
    return _make
