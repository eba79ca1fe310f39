from app.routes import (
    buyer_bp,
    vendor_bp,
    admin_bp,
    webhooks_bp,
)


def register_api_v1(app):
    """Register blueprint routes under the API version prefix."""
    app.register_blueprint(buyer_bp)
    app.register_blueprint(vendor_bp)
    app.register_blueprint(admin_bp)
    app.register_blueprint(webhooks_bp)
