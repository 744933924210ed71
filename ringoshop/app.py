# ringoshop/app.py
import atexit
import logging
import os
from datetime import timedelta

# Show INFO logs even outside the werkzeug access log
logging.basicConfig(level=logging.INFO)

from flask import Flask

from ringoshop.config import Config
from ringoshop.errors import register_error_handlers

# Extensions
from ringoshop.extensions import db, login_manager, bcrypt, migrate, cors, init_mail

# Blueprints
from ringoshop.admin import admin_bp
from ringoshop.auth import auth_bp
from ringoshop.api.routes.order_routes import order_bp
from ringoshop.api.routes.payment_routes import payment_bp
from ringoshop.api.routes.product_routes import api_products
from ringoshop import models as _models  # noqa: F401

from ringoshop.cli import register_cli
from ringoshop.services import EXTENSION_KEY, ShopServices
from ringoshop.services.catalog import Catalog
from ringoshop.services.expiration import ExpirationRegistry
from ringoshop.services.inventory import InventoryLedger
from ringoshop.services.orders import OrderManager
from ringoshop.services.payments import PaymentReconciler
from ringoshop.services.storage import ProofStorage


def _build_services(app: Flask) -> ShopServices:
    cfg = app.config
    catalog = Catalog()
    inventory = InventoryLedger()
    expirations = ExpirationRegistry(
        workers=int(cfg["ORDER_EXPIRY_WORKERS"]),
        logger=app.logger,
    )
    storage = ProofStorage(cfg["PAYMENT_PROOF_FOLDER"])
    orders = OrderManager(
        app,
        catalog=catalog,
        inventory=inventory,
        expirations=expirations,
        payment_window=timedelta(seconds=int(cfg["ORDER_PAYMENT_WINDOW_SECONDS"])),
        expiry_timeout=float(cfg["ORDER_EXPIRY_TIMEOUT_SECONDS"]),
        max_quantity=int(cfg["ORDER_MAX_QUANTITY"]),
    )
    payments = PaymentReconciler(inventory=inventory, expirations=expirations, storage=storage)
    return ShopServices(
        catalog=catalog,
        inventory=inventory,
        expirations=expirations,
        storage=storage,
        orders=orders,
        payments=payments,
    )


def create_app(overrides: dict | None = None) -> Flask:
    app = Flask(__name__)
    app.config.from_object(Config)
    if overrides:
        app.config.update(overrides)

    # Init extensions
    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)
    bcrypt.init_app(app)
    init_mail(app)

    cors.init_app(
        app,
        resources={
            r"/api/*": {
                "origins": app.config["CORS_ORIGINS"],
                "supports_credentials": True,
            }
        },
    )

    os.makedirs(app.config["PAYMENT_PROOF_FOLDER"], exist_ok=True)
    register_error_handlers(app)

    services = _build_services(app)
    app.extensions[EXTENSION_KEY] = services
    atexit.register(services.expirations.shutdown)

    # Register blueprints
    app.register_blueprint(auth_bp)
    app.register_blueprint(admin_bp)
    app.register_blueprint(api_products)
    app.register_blueprint(order_bp)
    app.register_blueprint(payment_bp)

    register_cli(app)

    app.logger.info(
        "ringoshop ready: payment window %ss, %s expiry worker(s)",
        app.config["ORDER_PAYMENT_WINDOW_SECONDS"],
        app.config["ORDER_EXPIRY_WORKERS"],
    )
    return app
