# ringoshop/auth/__init__.py
from . import routes as _routes

# package-level name for app.py; same object the routes module registers views on
auth_bp = _routes.auth_bp
