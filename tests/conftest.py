import os
import sys
from decimal import Decimal
import pytest

os.environ.setdefault('APP_ENV', 'testing')
os.environ.setdefault('CELERY_TASK_ALWAYS_EAGER', '1')

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))
from models import db
from models.user import UserProfile
from models.product import Product

SHIPPING = {
    'full_name': 'Ada Buyer',
    'street': '1 Main St',
    'city': 'Springfield',
    'state': 'IL',
    'zip_code': '62701',
    'country': 'US',
}


@pytest.fixture(scope='session')
def app_instance():
    from app import create_app
    app = create_app()
    app.config.update(TESTING=True)
    return app


@pytest.fixture(scope='function')
def app(app_instance):
    with app_instance.app_context():
        db.drop_all()
        db.create_all()
        yield app_instance
        db.session.remove()
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    return app.test_client()


@pytest.fixture()
def make_user(app):
    def _make(user_id, role='user', email=None):
        user = UserProfile(id=user_id, role=role, email=email or f'{user_id}@example.com')
        db.session.add(user)
        db.session.commit()
        return user
    return _make


@pytest.fixture()
def make_product(app):
    def _make(vendor_id, price, name='Item', is_active=True):
        product = Product(vendor_id=vendor_id, name=name, price=Decimal(str(price)), is_active=is_active)
        db.session.add(product)
        db.session.commit()
        return product.id
    return _make


def obtain_token(client, user_id, role='user'):
    resp = client.post('/__auth/login_stub', json={'user_id': user_id, 'role': role})
    return resp.get_json()['data']['access']


def bearer(token):
    return {'Authorization': f'Bearer {token}'}
