"""
Pytest fixtures for stockroom backend tests.

Provides an in-memory database, a Flask test client, and verified
MANAGER / STAFF accounts with bearer headers.
"""

import pytest

from stockroom import create_app
from stockroom.config import Config
from stockroom.extensions import db
from stockroom.models import UserProfile, Product, Debtor, ROLE_STAFF
from stockroom.services.auth_service import hash_password


MANAGER_EMAIL = "boss@stockroom.test"
STAFF_EMAIL = "clerk@stockroom.test"
PASSWORD = "Password123"


class TestingConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    MANAGER_EMAILS = [MANAGER_EMAIL]
    REQUIRE_EMAIL_VERIFICATION = True
    BCRYPT_ROUNDS = 4


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app(TestingConfig)

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def make_user(db_session):
    """Factory for verified accounts. role=None leaves resolution to MANAGER_EMAILS."""
    def _make(email, name, role=None, verified=True, password=PASSWORD):
        profile = UserProfile(
            email=email,
            name=name,
            role=role,
            password_hash=hash_password(password),
            email_verified=verified,
        )
        db_session.add(profile)
        db_session.commit()
        return profile

    return _make


@pytest.fixture(scope='function')
def manager(make_user):
    """Manager through the MANAGER_EMAILS allow-list (no stored role)."""
    return make_user(MANAGER_EMAIL, "Ama Boss")


@pytest.fixture(scope='function')
def staff(make_user):
    return make_user(STAFF_EMAIL, "Kofi Clerk", role=ROLE_STAFF)


@pytest.fixture(scope='function')
def manager_headers(client, manager):
    return auth_headers(get_auth_token(client, MANAGER_EMAIL, PASSWORD))


@pytest.fixture(scope='function')
def staff_headers(client, staff):
    return auth_headers(get_auth_token(client, STAFF_EMAIL, PASSWORD))


@pytest.fixture(scope='function')
def product(db_session):
    """Example product: Nsakena 20 prev / 5 sold, reorder level 10."""
    p = Product(
        sku="DRS-001",
        name="Summer Dress",
        category="Dresses",
        collection_week="Week 1",
        nsakena_prev=20,
        nsakena_sold=5,
        reorder_level=10,
        purchase_price_cents=2500,
        selling_price_cents=4000,
    )
    db_session.add(p)
    db_session.commit()
    return p


@pytest.fixture(scope='function')
def debtor(db_session):
    d = Debtor(name="Yaw Mensah", amount_cents=15000, is_paid=False)
    db_session.add(d)
    db_session.commit()
    return d


def get_auth_token(client, email: str, password: str) -> str:
    """Helper to get auth token for a user."""
    response = client.post('/api/auth/login', json={
        'email': email,
        'password': password
    })
    if response.status_code == 200:
        return response.json.get('token')
    return None


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}
