"""
Pytest configuration and fixtures for testing the Hopaba API.
"""

import os
from datetime import date, timedelta

import pytest
from faker import Faker

from hopaba import create_app, db
from hopaba.models import (
    User, ServiceProvider, ServiceRequest, MarketplaceListing, Event,
)
from hopaba.services.distance import distance_service
from hopaba.services.realtime import conversation_refresher

fake = Faker()

DEFAULT_PASSWORD = 'Passw0rd!'


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    os.environ['JWT_SECRET_KEY'] = 'test-secret-key-for-testing'
    os.environ.pop('REDIS_URL', None)
    os.environ.pop('ADMIN_EMAILS', None)

    app = create_app('testing')

    with app.app_context():
        db.create_all()

    yield app

    with app.app_context():
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client for each test function."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Empty every table before the test and keep an app context pushed."""
    with app.app_context():
        for table in reversed(db.metadata.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()
        distance_service.clear()
        yield db.session
        db.session.rollback()
        conversation_refresher.cancel_all()


def _create_user(password=DEFAULT_PASSWORD, **overrides):
    """Helper to create a user with sensible defaults."""
    data = {
        'email': fake.unique.email(),
        'full_name': fake.name(),
        'phone': '+91' + fake.numerify('9#########'),
        'city': 'Bangalore',
    }
    data.update(overrides)
    user = User(**data)
    user.set_password(password)
    db.session.add(user)
    db.session.commit()
    return {
        'id': user.id,
        'email': user.email,
        'full_name': user.full_name,
        'phone': user.phone,
        'password': password,
    }


@pytest.fixture
def test_user(app, db_session):
    """Create a test user."""
    return _create_user()


@pytest.fixture
def second_user(app, db_session):
    """Create a second test user for interaction tests."""
    return _create_user()


@pytest.fixture
def admin_user(app, db_session):
    return _create_user(is_admin=True, full_name='Admin')


def _get_token(client, email, password):
    """Login and return JWT token."""
    resp = client.post('/api/auth/login', json={
        'email': email,
        'password': password,
    })
    data = resp.get_json()
    if data is None or not data.get('token'):
        raise RuntimeError(
            f"Login returned no token: status={resp.status_code}, body={data}"
        )
    return data['token']


@pytest.fixture
def auth_headers(client, test_user):
    """Get authentication headers for test user."""
    token = _get_token(client, test_user['email'], test_user['password'])
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture
def second_auth_headers(client, second_user):
    """Get authentication headers for second user."""
    token = _get_token(client, second_user['email'], second_user['password'])
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture
def admin_headers(client, admin_user):
    token = _get_token(client, admin_user['email'], admin_user['password'])
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture
def provider_payload():
    """A valid business form, as the client submits it."""
    def build(**overrides):
        data = {
            'name': 'Sharma Plumbing Works',
            'category': 'Plumber',
            'subcategory': ['Pipe Repair'],
            'description': 'Leak repairs, bathroom fittings and drainage work.',
            'address': '12, 4th Cross, Jayanagar',
            'area': 'Jayanagar',
            'city': 'Bangalore',
            'postal_code': '560041',
            'contact_phone': '+919876543210',
            'whatsapp': '+919876543210',
            'tags': ['plumbing', 'leak repair', 'bathroom'],
        }
        data.update(overrides)
        return data
    return build


@pytest.fixture
def make_provider(db_session):
    """Factory for providers stored directly in the database (approved by default)."""
    def build(user_id, **overrides):
        data = {
            'name': 'Sharma Plumbing Works',
            'category': 'Plumber',
            'subcategory': [],
            'description': 'Leak repairs, bathroom fittings and drainage work.',
            'address': '12, 4th Cross, Jayanagar',
            'area': 'Jayanagar',
            'city': 'Bangalore',
            'postal_code': '560041',
            'contact_phone': '+919876543210',
            'whatsapp': '+919876543210',
            'tags': ['plumbing', 'leak repair', 'bathroom'],
            'approval_status': 'approved',
        }
        data.update(overrides)
        provider = ServiceProvider(user_id=user_id, **data)
        db.session.add(provider)
        db.session.commit()
        return provider.id
    return build


@pytest.fixture
def request_payload():
    def build(**overrides):
        data = {
            'title': 'Need a plumber for a leaking tap',
            'description': 'Kitchen tap has been leaking for two days.',
            'category': 'Plumber',
            'city': 'Bangalore',
            'area': 'Jayanagar',
            'postal_code': '560041',
            'budget': 500,
        }
        data.update(overrides)
        return data
    return build


@pytest.fixture
def make_request(db_session):
    def build(user_id, **overrides):
        data = {
            'title': 'Need a plumber for a leaking tap',
            'description': 'Kitchen tap has been leaking for two days.',
            'category': 'Plumber',
            'city': 'Bangalore',
            'area': 'Jayanagar',
            'postal_code': '560041',
            'budget': 500,
            'status': 'open',
        }
        data.update(overrides)
        service_request = ServiceRequest(user_id=user_id, **data)
        db.session.add(service_request)
        db.session.commit()
        return service_request.id
    return build


@pytest.fixture
def listing_payload():
    def build(**overrides):
        data = {
            'title': 'Royal Enfield Classic 350',
            'description': 'Well maintained bike, single owner, all service records.',
            'price': 120000,
            'category': 'Vehicles',
            'condition': 'good',
            'model_year': 2019,
            'seller_name': 'Ravi Kumar',
            'seller_role': 'owner',
            'seller_phone': '+919812345678',
            'images': ['https://cdn.example.com/bike.jpg'],
        }
        data.update(overrides)
        return data
    return build


@pytest.fixture
def make_listing(db_session):
    def build(seller_id, **overrides):
        data = {
            'title': 'Royal Enfield Classic 350',
            'description': 'Well maintained bike, single owner, all service records.',
            'price': 120000,
            'category': 'Vehicles',
            'condition': 'good',
            'model_year': 2019,
            'seller_name': 'Ravi Kumar',
            'seller_role': 'owner',
            'seller_phone': '+919812345678',
            'images': ['https://cdn.example.com/bike.jpg'],
            'approval_status': 'approved',
        }
        data.update(overrides)
        listing = MarketplaceListing(seller_id=seller_id, **data)
        db.session.add(listing)
        db.session.commit()
        return listing.id
    return build


@pytest.fixture
def event_payload():
    def build(**overrides):
        data = {
            'title': 'Sunday Jazz Evening',
            'description': 'Live jazz quartet with food stalls and open seating.',
            'location': 'Cubbon Park Bandstand',
            'date': (date.today() + timedelta(days=7)).isoformat(),
            'time': '6:00 PM',
            'image': 'https://cdn.example.com/jazz.jpg',
            'price_per_person': 250,
        }
        data.update(overrides)
        return data
    return build


@pytest.fixture
def make_event(db_session):
    def build(user_id, days_from_today=7, **overrides):
        data = {
            'title': 'Sunday Jazz Evening',
            'description': 'Live jazz quartet with food stalls and open seating.',
            'location': 'Cubbon Park Bandstand',
            'date': date.today() + timedelta(days=days_from_today),
            'time': '6:00 PM',
            'image': 'https://cdn.example.com/jazz.jpg',
            'approval_status': 'approved',
        }
        data.update(overrides)
        event = Event(user_id=user_id, **data)
        db.session.add(event)
        db.session.commit()
        return event.id
    return build
