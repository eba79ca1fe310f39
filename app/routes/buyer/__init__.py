from flask import Blueprint
from app.version import API_PREFIX
from app.utils import auth_required, role_required

buyer_bp = Blueprint("buyer", __name__, url_prefix=API_PREFIX)


@buyer_bp.before_request
@auth_required
@role_required(["user", "vendor", "admin"])
def _enforce_signed_in():
    """Any signed-in account can shop."""
    return None

from . import cart  # noqa: E402
from . import orders  # noqa: E402
from . import notifications  # noqa: E402
from . import vendor_request  # noqa: E402
