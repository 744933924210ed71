# ringoshop/services/__init__.py
from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from flask import current_app

if TYPE_CHECKING:
    from .catalog import Catalog
    from .expiration import ExpirationRegistry
    from .inventory import InventoryLedger
    from .orders import OrderManager
    from .payments import PaymentReconciler
    from .storage import ProofStorage

EXTENSION_KEY = "ringoshop"


@dataclass
class ShopServices:
    """Per-app service graph, built once in ``create_app``."""

    catalog: Catalog
    inventory: InventoryLedger
    expirations: ExpirationRegistry
    storage: ProofStorage
    orders: OrderManager
    payments: PaymentReconciler


def get_services() -> ShopServices:
    return current_app.extensions[EXTENSION_KEY]
