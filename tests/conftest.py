import pytest
from decimal import Decimal

from fieldsales import create_app, database
from fieldsales.database import get_session
from fieldsales.models import AppUser, Order, OrderStatus, UserRole
from fieldsales.services.line_items import LineItemStore
from fieldsales.services.totals_service import DiscountMode, compute_totals


KINDER_BOX = 'Kinder Box 1.0'
LKG_PACK = 'LKG - Pack of 9 Books'
NURSERY_PACK = 'Nursery Pack of 5 books'


@pytest.fixture(scope='session')
def app():
    """Create application instance for testing (in-memory SQLite)."""
    app = create_app('config.TestConfig')
    database.create_all()
    return app


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def session(app):
    """Database session; every table is emptied after the test."""
    session = get_session()
    yield session
    session.rollback()
    for table in reversed(database.Base.metadata.sorted_tables):
        session.execute(table.delete())
    session.commit()
    session.remove()


def _make_user(session, username, role=UserRole.EXECUTIVE.value, name=None):
    user = AppUser(username=username, name=name or f'User {username}', role=role, active=True)
    user.set_password('password123')
    session.add(user)
    session.commit()
    return user


@pytest.fixture(scope='function')
def executive(session):
    return _make_user(session, '1001', name='Ravi Kumar')


@pytest.fixture(scope='function')
def other_executive(session):
    return _make_user(session, '1002', name='Sita Devi')


@pytest.fixture(scope='function')
def admin(session):
    return _make_user(session, 'admin', role=UserRole.ADMIN.value, name='Administrator')


def _login(client, user):
    with client.session_transaction() as sess:
        sess['user_id'] = user.id
    return client


@pytest.fixture(scope='function')
def authenticated_client(client, executive):
    """Client logged in as the executive."""
    return _login(client, executive)


@pytest.fixture(scope='function')
def admin_client(app, admin):
    """Separate client logged in as the admin."""
    return _login(app.test_client(), admin)


@pytest.fixture(scope='function')
def other_client(app, other_executive):
    return _login(app.test_client(), other_executive)


@pytest.fixture(scope='function')
def public_client(app, session):
    """Anonymous client holding only a share link."""
    return app.test_client()


@pytest.fixture(scope='function')
def order_payload():
    """Internal order form: 2 x LKG pack + 1 x Nursery pack, flat 300 off."""
    return {
        'schoolName': 'Sunrise Public School',
        'board': 'CBSE',
        'pincode': '500001',
        'principalMobile': '9876543210',
        'modeOfOrder': 'SCHOOL',
        'items': {
            f'{KINDER_BOX}-{LKG_PACK}': {'qty': 2, 'price': '2175'},
            f'{KINDER_BOX}-{NURSERY_PACK}': {'qty': 1, 'price': '950'},
        },
        'totalDiscount': '300',
    }


@pytest.fixture(scope='function')
def pending_order(session, executive):
    """Pending order of the executive with 2 x LKG pack and no discount."""
    store = LineItemStore()
    store.set_quantity(KINDER_BOX, LKG_PACK, 2)
    totals = compute_totals(store, DiscountMode.FLAT, Decimal('0'))

    order = Order(
        user_id=executive.id,
        school_name='Green Valley School',
        items=store.to_wire(),
        discount_mode=DiscountMode.FLAT.value,
        flat_discount=Decimal('0'),
        total_amount=totals.total_amount,
        total_discount=totals.total_discount,
        net_amount=totals.net_amount,
        status=OrderStatus.PENDING.value,
    )
    session.add(order)
    session.commit()
    return order


@pytest.fixture(scope='function')
def percent_order(session, executive):
    """Pending order with per-category percentage discounts, ready to share."""
    store = LineItemStore()
    store.set_quantity(KINDER_BOX, LKG_PACK, 2)
    totals = compute_totals(store, DiscountMode.PERCENT)

    order = Order(
        user_id=executive.id,
        school_name='Green Valley School',
        items=store.to_wire(),
        discount_mode=DiscountMode.PERCENT.value,
        flat_discount=Decimal('0'),
        total_amount=totals.total_amount,
        total_discount=totals.total_discount,
        net_amount=totals.net_amount,
        status=OrderStatus.PENDING.value,
    )
    session.add(order)
    session.commit()
    return order
