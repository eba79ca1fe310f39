import extensions
from app.version import API_PREFIX
from conftest import bearer, obtain_token
from test_app_infra import make_app


def test_checkout_rate_limited_per_ip():
    app = make_app(RATELIMIT_ENABLED=True, CHECKOUT_LIMIT_PER_IP='2 per minute')
    client = app.test_client()
    try:
        headers = bearer(obtain_token(client, 'shopper'))
        codes = [client.post(f'{API_PREFIX}/orders', json={}, headers=headers).status_code for _ in range(3)]
    finally:
        extensions.limiter.enabled = False
    # an empty body fails validation, but still counts against the limit
    assert codes[:2] == [422, 422]
    assert codes[2] == 429


def test_webhook_is_not_rate_limited():
    app = make_app(RATELIMIT_ENABLED=True, CHECKOUT_LIMIT_PER_IP='1 per minute')
    client = app.test_client()
    try:
        codes = [client.post(f'{API_PREFIX}/webhooks/stripe', data=b'{}').status_code for _ in range(3)]
    finally:
        extensions.limiter.enabled = False
    assert codes == [400, 400, 400]
