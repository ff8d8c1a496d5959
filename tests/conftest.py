"""
Pytest configuration and fixtures for ServiceHub backend tests
"""
import itertools
from datetime import datetime, timedelta, timezone

import jwt
import pytest

from servicehub import bidding, create_app, db
from servicehub.models import User, WorkerDetails, ROLE_ADMIN, ROLE_CUSTOMER, ROLE_WORKER

_phone_numbers = itertools.count(9000000001)


def next_phone():
    return str(next(_phone_numbers))


@pytest.fixture(scope='function')
def app():
    """Create application instance with a fresh in-memory database"""
    app = create_app('testing')

    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client"""
    return app.test_client()


@pytest.fixture
def customer_factory(app):
    """Factory for approved customers"""
    def _create_customer(**kwargs):
        defaults = {
            'phone': next_phone(),
            'full_name': 'Test Customer',
            'role': ROLE_CUSTOMER,
            'is_active': True,
        }
        defaults.update(kwargs)
        user = User(**defaults)
        db.session.add(user)
        db.session.commit()
        return user

    return _create_customer


@pytest.fixture
def worker_factory(app):
    """Factory for workers; eligible (approved and verified) unless told otherwise"""
    def _create_worker(active=True, verified=True, category='plumbing', rating=4.5, **kwargs):
        defaults = {
            'phone': next_phone(),
            'full_name': 'Test Worker',
            'role': ROLE_WORKER,
            'is_active': active,
        }
        defaults.update(kwargs)
        user = User(**defaults)
        db.session.add(user)
        db.session.add(WorkerDetails(
            user=user,
            category=category,
            experience=5,
            city='Pune',
            id_proof='https://files.example.com/id.pdf',
            is_verified=verified,
            rating=rating,
            total_earnings=0.0,
        ))
        db.session.commit()
        return user

    return _create_worker


@pytest.fixture
def test_customer(customer_factory):
    return customer_factory(full_name='Asha Customer')


@pytest.fixture
def test_worker(worker_factory):
    return worker_factory(full_name='Ravi Worker')


@pytest.fixture
def test_admin(app):
    user = User(phone=next_phone(), full_name='Site Admin', role=ROLE_ADMIN, is_active=True)
    db.session.add(user)
    db.session.commit()
    return user


def job_payload(**overrides):
    payload = {
        'title': 'Fix kitchen sink',
        'description': 'Leaking pipe under the basin',
        'category': 'HOME_VISIT',
        'serviceType': 'plumbing',
        'budget': 500,
        'budgetType': 'fixed',
        'urgency': 'normal',
        'address': {'house': '12', 'street': 'MG Road', 'city': 'Pune', 'pincode': '411001'},
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def job_factory(test_customer):
    """Factory for open jobs posted through the bidding engine"""
    def _create_job(customer=None, **overrides):
        customer = customer or test_customer
        return bidding.post_job(customer.id, job_payload(**overrides))

    return _create_job


@pytest.fixture
def test_job(job_factory):
    return job_factory()


@pytest.fixture
def bid_factory(app):
    """Factory for pending bids placed through the bidding engine"""
    def _create_bid(job, worker, amount=450, **overrides):
        data = {
            'amount': amount,
            'proposedDate': '2026-11-02',
            'proposedTime': '10:00',
            'estimatedDuration': '2 hours',
            'coverLetter': 'Licensed plumber with spare parts',
        }
        data.update(overrides)
        return bidding.submit_bid(job.id, worker.id, data)

    return _create_bid


def make_headers(app, user, expires_in=timedelta(hours=1)):
    token = jwt.encode({
        'user_id': user.id,
        'role': user.role,
        'exp': datetime.now(timezone.utc) + expires_in,
    }, app.config['JWT_SECRET'], algorithm='HS256')

    return {
        'Authorization': f'Bearer {token}',
        'Content-Type': 'application/json'
    }


@pytest.fixture
def admin_headers(app, test_admin):
    """Generate auth headers with JWT token for admin"""
    return make_headers(app, test_admin)


@pytest.fixture
def customer_headers(app, test_customer):
    """Generate auth headers with JWT token for customer"""
    return make_headers(app, test_customer)
