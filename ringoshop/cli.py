# ringoshop/cli.py
import os
from decimal import Decimal

import click
from flask import current_app
from flask.cli import with_appcontext

from ringoshop.extensions import db

DEMO_PRODUCTS = (
    {"sku": "RING-SLV-01", "name": "Silver band ring", "price": Decimal("49.90"), "stock": 12},
    {"sku": "RING-GLD-01", "name": "Gold plated signet ring", "price": Decimal("89.00"), "stock": 5},
    {"sku": "BRC-BEAD-01", "name": "Beaded bracelet", "price": Decimal("19.50"), "stock": 30},
)


@click.command("create-admin")
@click.option("--username", default=lambda: os.environ.get("ADMIN_USERNAME", "admin"),
              show_default=True, help="Admin username")
@click.option("--email", default=lambda: os.environ.get("ADMIN_EMAIL"),
              help="Admin e-mail")
@click.option("--password", default=lambda: os.environ.get("ADMIN_PASSWORD"),
              help="Password (prompted when omitted)")
@click.option("--force", is_flag=True, default=False,
              help="Reset password and role when the user already exists")
@with_appcontext
def create_admin(username: str, email: str | None, password: str | None, force: bool):
    """Create or reset an admin account."""
    from ringoshop.models.user import User

    if not password:
        password = click.prompt("Password", hide_input=True, confirmation_prompt=True)

    user = User.query.filter_by(username=username).first()
    if user and not force:
        click.echo(f"User '{username}' already exists. Use --force to reset the password.")
        return

    if not user:
        user = User(username=username, email=email)
        db.session.add(user)
    elif email:
        user.email = email

    user.is_admin = True
    user.set_password(password)
    db.session.commit()
    click.echo(f"Admin ready: {username}")


@click.command("seed-catalog")
@with_appcontext
def seed_catalog():
    """Insert a few demo products (existing SKUs are left alone)."""
    from ringoshop.models import Product

    added = 0
    for row in DEMO_PRODUCTS:
        if Product.query.filter_by(sku=row["sku"]).first():
            continue
        db.session.add(Product(**row))
        added += 1
    db.session.commit()
    click.echo(f"Seeded {added} product(s).")


@click.command("expire-stale-orders")
@with_appcontext
def expire_stale_orders():
    """Cancel pending orders whose payment window has already passed."""
    from ringoshop.services import get_services

    expired = get_services().orders.expire_stale()
    current_app.logger.info("expire-stale-orders cancelled %s order(s)", len(expired))
    if expired:
        click.echo("Cancelled orders: " + ", ".join(str(oid) for oid in expired))
    else:
        click.echo("No stale orders.")


def register_cli(app) -> None:
    app.cli.add_command(create_admin)
    app.cli.add_command(seed_catalog)
    app.cli.add_command(expire_stale_orders)
