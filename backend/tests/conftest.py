"""
Pytest configuration and shared fixtures
"""
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from panelkit.context import PanelContext
from panelkit.database import get_db
from panelkit.events import EventBus
from panelkit.panel import PanelRegistry
from panelkit.routing import Router
from panelkit.security import AuthorizationGate, create_access_token, get_password_hash

from fixtures.models import Base, Post, PostCategory, Product, Team, User
from fixtures.providers import AdminPanelProvider, CustomPanelProvider, TeamPanelProvider

BASE_URL = "http://testserver"


@pytest.fixture(scope="function")
def db_engine():
    """In-memory database engine"""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db_session(db_engine):
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = SessionLocal()
    yield session
    session.close()


# ============== Panel fixtures ==============

@pytest.fixture
def gate():
    return AuthorizationGate()


@pytest.fixture
def bus():
    return EventBus()


@pytest.fixture
def registry():
    return PanelRegistry()


@pytest.fixture
def app():
    return FastAPI()


@pytest.fixture
def router(app):
    return Router(app, base_url=BASE_URL)


@pytest.fixture
def admin_panel(router, gate, registry, bus):
    return AdminPanelProvider(gate).register(router, registry=registry, bus=bus)


@pytest.fixture
def team_panel(router, gate, registry, bus):
    return TeamPanelProvider(gate).register(router, registry=registry, bus=bus)


@pytest.fixture
def custom_panel(router, registry, bus):
    return CustomPanelProvider().register(router, registry=registry, bus=bus)


@pytest.fixture
def client(app, db_session):
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


# ============== Data fixtures ==============

@pytest.fixture
def teams(db_session):
    acme = Team(name="Acme", slug="acme")
    globex = Team(name="Globex", slug="globex")
    db_session.add_all([acme, globex])
    db_session.commit()
    return {"acme": acme, "globex": globex}


@pytest.fixture
def users(db_session, teams):
    alice = User(
        name="Alice Admin",
        email="alice@example.com",
        password=get_password_hash("secret"),
        is_admin=True,
        team=teams["acme"],
    )
    bob = User(
        name="Bob Writer",
        email="bob@example.com",
        password=get_password_hash("secret"),
        is_admin=False,
        team=teams["acme"],
    )
    carol = User(
        name="Carol Globex",
        email="carol@example.com",
        password=get_password_hash("secret"),
        is_admin=False,
        team=teams["globex"],
    )
    db_session.add_all([alice, bob, carol])
    db_session.commit()
    return {"alice": alice, "bob": bob, "carol": carol}


@pytest.fixture
def blog(db_session, teams, users):
    """Two categories and four posts; three belong to Acme"""
    news = PostCategory(name="News", team=teams["acme"])
    guides = PostCategory(name="Guides", team=teams["globex"])
    posts = [
        Post(title="Laravel tips", author=users["alice"], category=news, team=teams["acme"]),
        Post(title="Django tips", author=users["bob"], category=news, team=teams["acme"]),
        Post(title="Release notes", author=users["bob"], category=news, team=teams["acme"]),
        Post(title="Globex tips", author=users["carol"], category=guides, team=teams["globex"]),
    ]
    db_session.add_all([news, guides, *posts])
    db_session.commit()
    return {"news": news, "guides": guides, "posts": posts}


@pytest.fixture
def products(db_session, teams):
    chair = Product(name={"en": "Chair", "fr": "Chaise"}, sku="CH-001", team=teams["acme"])
    table = Product(name={"en": "Table", "fr": "Table"}, sku="TB-002", team=teams["acme"])
    db_session.add_all([chair, table])
    db_session.commit()
    return {"chair": chair, "table": table}


@pytest.fixture
def context_for(db_session):
    """Build a PanelContext for a user on a panel"""
    def build(user=None, panel_id="admin", tenant=None, tenant_routable=True):
        return PanelContext(
            panel_id=panel_id,
            db=db_session,
            user=user,
            tenant=tenant,
            tenant_routable=tenant_routable,
        )
    return build


def auth_headers_for(user: User, panel_id: str = "admin") -> dict:
    return {"Authorization": f"Bearer {create_access_token(user.id, panel_id)}"}


@pytest.fixture
def alice_headers(users):
    return auth_headers_for(users["alice"])


@pytest.fixture
def bob_headers(users):
    return auth_headers_for(users["bob"])


@pytest.fixture
def headers_for():
    return auth_headers_for
