from flask import Blueprint, request, current_app
from extensions import limiter
from app.version import API_PREFIX
from app.services.reconciliation import on_payment_event
from app.utils import ok

webhooks_bp = Blueprint("webhooks", __name__, url_prefix=f"{API_PREFIX}/webhooks")


@webhooks_bp.route("/stripe", methods=["POST"])
@limiter.exempt
def stripe_webhook():
    """
    Stripe delivery endpoint. Authenticated by the Stripe-Signature header
    over the raw body, never by a bearer token.
    ---
    tags:
      - Webhooks
    responses:
      200:
        description: Event acknowledged
      400:
        description: Signature or payload rejected
    """
    ack = on_payment_event(
        request.get_data(),
        request.headers.get("Stripe-Signature"),
        current_app.config.get("STRIPE_WEBHOOK_SECRET"),
        current_app.config.get("STRIPE_WEBHOOK_TOLERANCE", 300),
    )
    return ok({"received": True, "applied": ack.applied})
