from flask import Blueprint

admin_bp = Blueprint("admin", __name__, url_prefix="/api/admin")

# importing the modules attaches their views to admin_bp
from . import routes            # orders
from . import payments_routes   # payment review
from . import product_routes    # catalog and restock
