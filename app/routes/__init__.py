from .buyer import buyer_bp
from .vendor import vendor_bp
from .admin import admin_bp
from .webhooks import webhooks_bp


__all__ = [
    'buyer_bp',
    'vendor_bp',
    'admin_bp',
    'webhooks_bp',
]
