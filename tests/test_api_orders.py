import json
from models import db
from models.order import Order
from app.version import API_PREFIX
from conftest import SHIPPING, bearer, obtain_token
from test_reconciliation import session_completed, sign


def seed_product(client, vendor_id, price, name='Item'):
    resp = client.post('/__seed/product', json={'vendor_id': vendor_id, 'price': price, 'name': name})
    return resp.get_json()['data']['product_id']


def test_requests_need_a_token(client):
    assert client.get(f'{API_PREFIX}/cart').status_code == 401
    assert client.get(f'{API_PREFIX}/cart', headers=bearer('garbage')).status_code == 401


def test_cart_endpoints(client):
    token = obtain_token(client, 'b1')
    pid = seed_product(client, 'v1', 10, 'Mug')

    r = client.post(f'{API_PREFIX}/cart', json={'product_id': pid, 'quantity': 2}, headers=bearer(token))
    assert r.status_code == 200
    cart = r.get_json()['data']['cart']
    assert cart['total'] == 20.0
    assert cart['items'][0]['display_name'] == 'Mug'

    r = client.put(f'{API_PREFIX}/cart/{pid}', json={'quantity': 3}, headers=bearer(token))
    assert r.get_json()['data']['cart']['total'] == 30.0

    r = client.put(f'{API_PREFIX}/cart/{pid}', json={'quantity': 0}, headers=bearer(token))
    assert r.get_json()['data']['cart']['items'] == []

    r = client.post(f'{API_PREFIX}/cart', json={'product_id': 424242, 'quantity': 1}, headers=bearer(token))
    assert r.status_code == 404

    r = client.post(f'{API_PREFIX}/cart', json={'product_id': pid, 'quantity': -1}, headers=bearer(token))
    assert r.status_code == 422

    client.post(f'{API_PREFIX}/cart', json={'product_id': pid}, headers=bearer(token))
    assert client.delete(f'{API_PREFIX}/cart', headers=bearer(token)).status_code == 200
    assert client.get(f'{API_PREFIX}/cart', headers=bearer(token)).get_json()['data']['cart']['items'] == []


def test_checkout_from_stored_cart(client):
    token = obtain_token(client, 'b1')
    p1 = seed_product(client, 'v1', 10)
    p2 = seed_product(client, 'v2', 50)
    client.post(f'{API_PREFIX}/cart', json={'product_id': p1, 'quantity': 2}, headers=bearer(token))
    client.post(f'{API_PREFIX}/cart', json={'product_id': p2, 'quantity': 1}, headers=bearer(token))

    r = client.post(
        f'{API_PREFIX}/orders',
        json={'shipping_address': SHIPPING, 'payment_method': 'cod', 'clear_cart': True},
        headers=bearer(token),
    )
    assert r.status_code == 201
    order_ids = r.get_json()['data']['order_ids']
    assert len(order_ids) == 2

    history = client.get(f'{API_PREFIX}/orders', headers=bearer(token)).get_json()['data']['orders']
    assert sorted(o['total'] for o in history) == [20.0, 50.0]
    assert client.get(f'{API_PREFIX}/cart', headers=bearer(token)).get_json()['data']['cart']['items'] == []


def test_checkout_validation_errors(client):
    token = obtain_token(client, 'b1')
    r = client.post(f'{API_PREFIX}/orders', json={'payment_method': 'cod'}, headers=bearer(token))
    assert r.status_code == 422
    assert any(e['field'].startswith('shipping_address') for e in r.get_json()['errors'])

    r = client.post(
        f'{API_PREFIX}/orders',
        json={'shipping_address': SHIPPING, 'payment_method': 'cod'},
        headers=bearer(token),
    )
    assert r.status_code == 400
    assert r.get_json()['message'] == 'Cart is empty'


def test_orders_are_private_to_their_buyer(client):
    alice = obtain_token(client, 'alice')
    bob = obtain_token(client, 'bob')
    pid = seed_product(client, 'v1', 10)
    r = client.post(
        f'{API_PREFIX}/orders',
        json={'items': [{'product_id': pid, 'quantity': 1}], 'shipping_address': SHIPPING, 'payment_method': 'cod'},
        headers=bearer(alice),
    )
    order_id = r.get_json()['data']['order_ids'][0]
    assert client.get(f'{API_PREFIX}/orders/{order_id}', headers=bearer(alice)).status_code == 200
    assert client.get(f'{API_PREFIX}/orders/{order_id}', headers=bearer(bob)).status_code == 404


def test_vendor_fulfils_cod_order_end_to_end(client):
    buyer = obtain_token(client, 'b1')
    pid = seed_product(client, 'v1', 10)
    vendor = obtain_token(client, 'v1')
    other_vendor = obtain_token(client, 'v9', role='vendor')
    r = client.post(
        f'{API_PREFIX}/orders',
        json={'items': [{'product_id': pid, 'quantity': 1}], 'shipping_address': SHIPPING, 'payment_method': 'cod'},
        headers=bearer(buyer),
    )
    order_id = r.get_json()['data']['order_ids'][0]

    inbox = client.get(f'{API_PREFIX}/vendor/notifications', headers=bearer(vendor)).get_json()['data']['notifications']
    assert [n['type'] for n in inbox] == ['new_order']
    r = client.post(f'{API_PREFIX}/vendor/notifications/{inbox[0]["id"]}/read', headers=bearer(vendor))
    assert r.get_json()['data']['notification']['is_read'] is True

    assert client.get(f'{API_PREFIX}/vendor/orders/{order_id}', headers=bearer(other_vendor)).status_code == 404
    r = client.patch(f'{API_PREFIX}/vendor/orders/{order_id}', json={'status': 'shipped'}, headers=bearer(other_vendor))
    assert r.status_code == 403

    r = client.patch(f'{API_PREFIX}/vendor/orders/{order_id}', json={'status': 'shipped'}, headers=bearer(vendor))
    assert r.status_code == 200
    r = client.patch(f'{API_PREFIX}/vendor/orders/{order_id}', json={'status': 'delivered'}, headers=bearer(vendor))
    order = r.get_json()['data']['order']
    assert (order['status'], order['payment_status']) == ('delivered', 'paid')

    r = client.patch(f'{API_PREFIX}/vendor/orders/{order_id}', json={'status': 'processing'}, headers=bearer(vendor))
    assert r.status_code == 400

    updates = client.get(f'{API_PREFIX}/notifications', headers=bearer(buyer)).get_json()['data']['notifications']
    assert len(updates) == 2


def test_buyer_cannot_use_vendor_or_admin_routes(client):
    token = obtain_token(client, 'b1')
    assert client.get(f'{API_PREFIX}/vendor/orders', headers=bearer(token)).status_code == 403
    assert client.get(f'{API_PREFIX}/admin/orders', headers=bearer(token)).status_code == 403


def test_vendor_request_approval_takes_effect_on_next_request(client):
    user = obtain_token(client, 'u1')
    admin = obtain_token(client, 'boss', role='admin')

    r = client.post(f'{API_PREFIX}/vendor-request', json={'business_name': 'Corner Shop'}, headers=bearer(user))
    assert r.status_code == 201
    request_id = r.get_json()['data']['request']['id']
    assert client.get(f'{API_PREFIX}/vendor/orders', headers=bearer(user)).status_code == 403

    pending = client.get(f'{API_PREFIX}/admin/vendor-requests', headers=bearer(admin)).get_json()['data']['requests']
    assert [p['id'] for p in pending] == [request_id]
    r = client.post(f'{API_PREFIX}/admin/vendor-requests/{request_id}/approve', headers=bearer(admin))
    assert r.status_code == 200

    # same token, role re-read from the database
    assert client.get(f'{API_PREFIX}/vendor/orders', headers=bearer(user)).status_code == 200
    r = client.post(f'{API_PREFIX}/vendor-request', json={'business_name': 'Second'}, headers=bearer(user))
    assert r.status_code == 403


def test_admin_order_controls(client):
    buyer = obtain_token(client, 'b1')
    admin = obtain_token(client, 'boss', role='admin')
    pid = seed_product(client, 'v1', 10)
    r = client.post(
        f'{API_PREFIX}/orders',
        json={'items': [{'product_id': pid, 'quantity': 1}], 'shipping_address': SHIPPING, 'payment_method': 'stripe'},
        headers=bearer(buyer),
    )
    order_id = r.get_json()['data']['order_ids'][0]

    orders = client.get(f'{API_PREFIX}/admin/orders?vendor_id=v1', headers=bearer(admin)).get_json()['data']['orders']
    assert [o['order_id'] for o in orders] == [order_id]
    r = client.patch(f'{API_PREFIX}/admin/orders/{order_id}', json={'status': 'cancelled'}, headers=bearer(admin))
    assert r.get_json()['data']['order']['status'] == 'cancelled'
    r = client.patch(f'{API_PREFIX}/admin/orders/{order_id}', json={'status': 'bogus'}, headers=bearer(admin))
    assert r.status_code == 422


def test_stripe_webhook_endpoint(client, app):
    buyer = obtain_token(client, 'b1')
    pid = seed_product(client, 'v1', 20)
    r = client.post(
        f'{API_PREFIX}/orders',
        json={'items': [{'product_id': pid, 'quantity': 1}], 'shipping_address': SHIPPING, 'payment_method': 'stripe'},
        headers=bearer(buyer),
    )
    order_id = r.get_json()['data']['order_ids'][0]
    payload = session_completed(order_id)

    r = client.post(f'{API_PREFIX}/webhooks/stripe', data=payload, headers={'Stripe-Signature': 'bogus'},
                    content_type='application/json')
    assert r.status_code == 400

    for _ in range(2):
        r = client.post(f'{API_PREFIX}/webhooks/stripe', data=payload, headers={'Stripe-Signature': sign(payload)},
                        content_type='application/json')
        assert r.status_code == 200
        assert r.get_json()['data']['received'] is True
    assert db.session.get(Order, order_id).payment_status == 'paid'

    ignored = json.dumps({'id': 'evt_x', 'type': 'charge.refunded', 'data': {'object': {}}}).encode()
    r = client.post(f'{API_PREFIX}/webhooks/stripe', data=ignored, headers={'Stripe-Signature': sign(ignored)},
                    content_type='application/json')
    assert r.status_code == 200
    assert r.get_json()['data']['applied'] is False
