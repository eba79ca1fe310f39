import pytest
from sqlalchemy.exc import OperationalError
from models import db
from models.order import Order, OrderStatusLog
from models.notification import Notification
from app.services.checkout import checkout
from app.services.exceptions import InvalidRequest, NotFound, Unauthorized
from app.services import fulfillment
from app.services.fulfillment import (
    allowed_transitions, announce_status_change, is_allowed, set_status, update_payment_status,
)
from app.utils.db import transactional
from conftest import SHIPPING


@pytest.fixture()
def placed(make_user, make_product):
    make_user('buyer')
    make_user('v1', role='vendor')
    make_user('v2', role='vendor')
    make_user('boss', role='admin')
    p1 = make_product('v1', '10.00')
    p2 = make_product('v2', '5.00')

    def _place(method='cod'):
        ids = checkout('buyer', [{'product_id': p1, 'quantity': 1}, {'product_id': p2, 'quantity': 1}], SHIPPING, method)
        return ids[0]
    return _place


def _move(order_id, status, actor):
    with transactional():
        set_status(order_id, status, actor)
    return db.session.get(Order, order_id)


def test_transition_table():
    assert allowed_transitions('pending') == ('processing', 'shipped', 'out_for_delivery', 'delivered', 'cancelled')
    assert allowed_transitions('shipped') == ('out_for_delivery', 'delivered')
    assert allowed_transitions('delivered') == ()
    assert allowed_transitions('cancelled') == ()
    assert is_allowed('processing', 'cancelled')
    assert not is_allowed('shipped', 'cancelled')
    assert not is_allowed('delivered', 'processing')
    assert not is_allowed('pending', 'pending')


def test_cod_order_is_paid_on_delivery(app, placed):
    order_id = placed('cod')
    order = _move(order_id, 'shipped', 'v1')
    assert (order.status, order.payment_status) == ('shipped', 'pending')

    order = _move(order_id, 'delivered', 'v1')
    assert order.status == 'delivered'
    assert order.payment_status == 'paid'
    assert order.paid_at is not None

    with pytest.raises(InvalidRequest):
        set_status(order_id, 'processing', 'v1')
    db.session.rollback()
    assert db.session.get(Order, order_id).status == 'delivered'


def test_prepaid_order_delivery_keeps_payment_status(app, placed):
    order_id = placed('stripe')
    order = _move(order_id, 'delivered', 'v1')
    assert order.payment_status == 'pending'


def test_transitions_are_logged_and_buyer_notified(app, placed):
    order_id = placed('cod')
    _move(order_id, 'processing', 'v1')
    _move(order_id, 'cancelled', 'v1')

    logs = OrderStatusLog.query.filter_by(order_id=order_id).order_by(OrderStatusLog.id).all()
    assert [(log.from_status, log.status) for log in logs] == [(None, 'pending'), ('pending', 'processing'), ('processing', 'cancelled')]
    notes = Notification.query.filter_by(type='order_status', recipient_id='buyer').all()
    assert len(notes) == 2
    assert all(n.recipient_role == 'USER' for n in notes)


def test_cancel_after_shipping_rejected(app, placed):
    order_id = placed('cod')
    _move(order_id, 'shipped', 'v1')
    with pytest.raises(InvalidRequest):
        set_status(order_id, 'cancelled', 'v1')


def test_other_vendor_cannot_touch_order(app, placed):
    order_id = placed('cod')
    with pytest.raises(Unauthorized):
        set_status(order_id, 'processing', 'v2')
    with pytest.raises(Unauthorized):
        set_status(order_id, 'processing', 'buyer')
    with pytest.raises(Unauthorized):
        set_status(order_id, 'processing', 'nobody')


def test_admin_can_move_any_order(app, placed):
    order_id = placed('cod')
    assert _move(order_id, 'processing', 'boss').status == 'processing'


def test_demoted_vendor_loses_access_immediately(app, placed):
    order_id = placed('cod')
    from models.user import UserProfile
    db.session.get(UserProfile, 'v1').role = 'user'
    db.session.commit()
    with pytest.raises(Unauthorized):
        set_status(order_id, 'processing', 'v1')


def test_unknown_order_and_status(app, placed):
    with pytest.raises(NotFound):
        set_status(424242, 'processing', 'boss')
    with pytest.raises(InvalidRequest):
        set_status(placed('cod'), 'teleported', 'boss')


def test_payment_status_transitions(app, placed):
    order_id = placed('stripe')
    with transactional():
        assert update_payment_status(order_id, 'paid', 'gateway', gateway_payment_id='pi_1', amount='15.00', currency='usd') is True
    order = db.session.get(Order, order_id)
    assert order.payment_status == 'paid'
    assert order.gateway_payment_id == 'pi_1'
    assert order.status == 'pending'

    assert update_payment_status(order_id, 'paid', 'gateway') is False
    with pytest.raises(InvalidRequest):
        update_payment_status(order_id, 'failed', 'gateway')


def test_gateway_cannot_settle_cod_order(app, placed):
    order_id = placed('cod')
    with pytest.raises(InvalidRequest):
        update_payment_status(order_id, 'paid', 'gateway')


def test_stale_read_loses_compare_and_set(app, placed):
    order_id = placed('stripe')
    order = db.session.get(Order, order_id)
    assert order.payment_status == 'pending'
    # A concurrent writer settles payment behind this session's back
    db.session.execute(
        Order.__table__.update().where(Order.__table__.c.id == order_id).values(payment_status='paid')
    )
    with pytest.raises(InvalidRequest):
        fulfillment._compare_and_set(order, {'status': 'processing'})


def test_status_email_goes_to_buyer(app, placed, monkeypatch):
    order_id = placed('cod')
    _move(order_id, 'shipped', 'v1')
    sent = []
    monkeypatch.setattr(fulfillment, 'enqueue_email', lambda *args: sent.append(args))
    announce_status_change(order_id)
    assert sent == [('buyer@example.com', f'Order #{order_id} update', 'Your order is now shipped.')]


def test_status_email_lookup_failure_does_not_raise(app, placed, monkeypatch):
    order_id = placed('cod')
    _move(order_id, 'shipped', 'v1')
    sent = []

    def _fail(*args, **kwargs):
        raise OperationalError('SELECT', {}, Exception('connection lost'))

    monkeypatch.setattr(fulfillment, 'enqueue_email', lambda *args: sent.append(args))
    monkeypatch.setattr(db.session, 'get', _fail)
    announce_status_change(order_id)
    monkeypatch.undo()

    assert sent == []
    assert db.session.get(Order, order_id).status == 'shipped'
