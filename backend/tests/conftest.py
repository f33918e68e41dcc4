import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ["EMAIL_ENABLED"] = "false"

from datetime import datetime, timedelta  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from marketplace import auth, models  # noqa: E402
from marketplace.access_guard import get_now  # noqa: E402
from marketplace.database import Base, get_db  # noqa: E402
from marketplace.main import app  # noqa: E402

NOW = datetime(2025, 6, 1, 12, 0, 0)


@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=eng)
    yield eng
    Base.metadata.drop_all(bind=eng)
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def clock():
    """Mutable clock shared with the app; tests move time with clock['now']."""
    return {"now": NOW}


@pytest.fixture
def client(session_factory, clock):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_now] = lambda: clock["now"]
    yield TestClient(app)
    app.dependency_overrides.clear()


def make_user(db, role, email, name=None):
    user = models.User(email=email, name=name or email.split("@")[0], role=role)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def auth_headers(user):
    token = auth.create_access_token(user_id=user.id, email=user.email)
    return {"Authorization": f"Bearer {token}"}


def make_business(db, owner, **overrides):
    fields = {
        "owner_id": owner.id,
        "name": "Sparkle Clean Station",
        "city": "Gaborone",
        "verification_status": "verified",
        "subscription_plan": "None",
        "subscription_status": "inactive",
        "trial_start_date": NOW - timedelta(days=1),
        "trial_end_date": NOW + timedelta(days=6),
    }
    fields.update(overrides)
    business = models.Business(**fields)
    db.add(business)
    db.commit()
    db.refresh(business)
    return business


def make_service(db, business, name="Express Exterior", price=25.0):
    service = models.Service(business_id=business.id, name=name, price=price, duration=15)
    db.add(service)
    db.commit()
    db.refresh(service)
    return service


@pytest.fixture
def owner(db):
    return make_user(db, "business-owner", "owner@example.com", name="Jane Smith")


@pytest.fixture
def customer(db):
    return make_user(db, "customer", "customer@example.com", name="John Doe")


@pytest.fixture
def admin(db):
    return make_user(db, "admin", "admin@example.com", name="Admin User")
