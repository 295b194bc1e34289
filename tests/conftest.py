import pytest
import os
from datetime import timedelta
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Set env before importing app components
os.environ["APP_ENV"] = "testing"
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ.pop("SUPER_ADMIN_EMAIL", None)

from facilityhub.database import Base, get_db
from facilityhub.main import app
from fastapi.testclient import TestClient

# SQLite in-memory database configuration
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

PASSWORD = "Password123!"


@pytest.fixture(scope="session", autouse=True)
def setup_database():
    """Create tables once for the whole test session."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db_session():
    """Get a clean database session for each test function with rollback safety."""
    connection = engine.connect()
    transaction = connection.begin()
    session = TestingSessionLocal(bind=connection)

    yield session

    session.close()
    transaction.rollback()
    connection.close()


@pytest.fixture(autouse=True)
def upload_dir(tmp_path, monkeypatch):
    """Uploaded files land in a per-test temporary directory."""
    from facilityhub.core.config import settings
    monkeypatch.setattr(settings, "upload_dir", str(tmp_path))
    return tmp_path


def _make_user(db_session, email, role, company_id=None, full_name=None):
    from facilityhub.models.user import User
    from facilityhub.services import auth as auth_service

    user = User(
        email=email,
        hashed_password=auth_service.get_password_hash(PASSWORD),
        role=role,
        company_id=company_id,
        is_active=True,
        full_name=full_name or email.split("@")[0].title(),
    )
    db_session.add(user)
    db_session.commit()
    return user


def _make_company(db_session, name, plan="monthly"):
    from facilityhub.core.clock import utcnow
    from facilityhub.models.company import Company

    company = Company(
        name=name,
        currency="GHS",
        is_active=True,
        plan=plan,
        subscription_status="active",
        activated_at=utcnow(),
        expires_at=utcnow() + timedelta(days=30),
    )
    db_session.add(company)
    db_session.commit()
    return company


@pytest.fixture(scope="function")
def company(db_session):
    """An active company on the monthly plan."""
    return _make_company(db_session, "Alpha Venues")


@pytest.fixture(scope="function")
def other_company(db_session):
    return _make_company(db_session, "Beta Halls")


@pytest.fixture(scope="function")
def admin_user(db_session, company):
    from facilityhub.models.user import UserRole
    user = _make_user(db_session, "admin@alpha.example.com", UserRole.ADMIN, company.id, "Alpha Admin")
    company.owner_id = user.id
    db_session.commit()
    return user


@pytest.fixture(scope="function")
def staff_user(db_session, company):
    from facilityhub.models.user import UserRole
    return _make_user(db_session, "staff@alpha.example.com", UserRole.STAFF, company.id, "Alpha Staff")


@pytest.fixture(scope="function")
def other_admin(db_session, other_company):
    from facilityhub.models.user import UserRole
    return _make_user(db_session, "admin@beta.example.com", UserRole.ADMIN, other_company.id, "Beta Admin")


@pytest.fixture(scope="function")
def customer(db_session):
    from facilityhub.models.user import UserRole
    return _make_user(db_session, "customer@example.com", UserRole.USER, None, "Casey Customer")


@pytest.fixture(scope="function")
def other_customer(db_session):
    from facilityhub.models.user import UserRole
    return _make_user(db_session, "someone@example.com", UserRole.USER, None, "Sam Someone")


@pytest.fixture(scope="function")
def super_admin(db_session):
    from facilityhub.models.user import UserRole
    return _make_user(db_session, "root@platform.example.com", UserRole.SUPER_ADMIN, None, "Platform Owner")


@pytest.fixture(scope="function")
def get_token():
    """Helper fixture to create access tokens carrying the user's company."""
    from facilityhub.services.auth import build_token_claims, create_access_token

    def _get_token(user):
        return create_access_token(data=build_token_claims(user))
    return _get_token


@pytest.fixture(scope="function")
def auth_headers(get_token):
    def _auth_headers(user):
        return {"Authorization": f"Bearer {get_token(user)}"}
    return _auth_headers


@pytest.fixture(scope="function")
def facility(db_session, company, admin_user):
    from facilityhub.models.facility import Facility
    facility = Facility(
        company_id=company.id,
        name="Main Hall",
        description="Large hall for events",
        capacity_maximum=200,
        capacity_recommended=150,
        pricing=[{"unit": "hour", "amount": 50.0, "is_default": True}],
        availability=[],
        blocked_dates=[],
        images=[],
        amenities=["projector"],
        is_active=True,
        created_by=admin_user.id,
    )
    db_session.add(facility)
    db_session.commit()
    return facility


@pytest.fixture(scope="function")
def inventory_item(db_session, company, admin_user):
    from facilityhub.models.inventory import InventoryItem
    item = InventoryItem(
        company_id=company.id,
        name="Folding Chair",
        category="furniture",
        quantity=10,
        status="in_stock",
        pricing=[{"unit": "day", "amount": 2.0, "is_default": True}],
        images=[],
        history=[],
        is_taxable=True,
        created_by=admin_user.id,
    )
    db_session.add(item)
    db_session.commit()
    return item


class FakePaystack:
    """Records every call and answers like a healthy gateway."""

    def __init__(self):
        self.calls = []
        self.verify_status = "success"

    def initialize_transaction(self, payload):
        self.calls.append(("initialize_transaction", payload))
        return {
            "authorization_url": f"https://checkout.paystack.test/{payload['reference']}",
            "access_code": "ACCESS_123",
            "reference": payload["reference"],
        }

    def verify_transaction(self, reference):
        self.calls.append(("verify_transaction", reference))
        return {"status": self.verify_status, "reference": reference, "channel": "card"}

    def list_banks(self, country="ghana", currency=None, type=None):
        self.calls.append(("list_banks", country))
        return [{"name": "GCB Bank", "code": "GCB"}]

    def resolve_account(self, account_number, bank_code):
        self.calls.append(("resolve_account", account_number, bank_code))
        return {"account_number": account_number, "account_name": "ALPHA VENUES LTD"}

    def create_subaccount(self, payload):
        self.calls.append(("create_subaccount", payload))
        return {
            "subaccount_code": "ACCT_alpha",
            "business_name": payload["business_name"],
            "settlement_bank": payload["settlement_bank"],
            "account_number": payload["account_number"],
            "account_name": "ALPHA VENUES LTD",
            "percentage_charge": payload["percentage_charge"],
        }

    def fetch_subaccount(self, code):
        self.calls.append(("fetch_subaccount", code))
        return {"subaccount_code": code, "account_number": "0123456789", "settlement_bank": "GCB"}

    def update_subaccount(self, code, payload):
        self.calls.append(("update_subaccount", code, payload))
        return {"subaccount_code": code, "account_number": payload.get("account_number", "0123456789")}

    def create_transfer_recipient(self, payload):
        self.calls.append(("create_transfer_recipient", payload))
        return {"recipient_code": "RCP_alpha"}

    def initiate_transfer(self, payload):
        self.calls.append(("initiate_transfer", payload))
        return {"transfer_code": "TRF_123", "reference": payload["reference"], "status": "pending"}


@pytest.fixture(scope="function")
def fake_paystack(monkeypatch):
    """Replace the gateway client; no network in tests."""
    from facilityhub.services import paystack
    fake = FakePaystack()
    monkeypatch.setattr(paystack, "get_client", lambda: fake)
    return fake


@pytest.fixture(scope="function")
def client(db_session):
    """Get a TestClient that uses the test database session via dependency override."""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
