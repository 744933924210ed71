# ringoshop/api/routes/payment_routes.py
from flask import Blueprint, jsonify, request
from flask_login import current_user, login_required

from ringoshop.api.utils.serializers import serialize_payment
from ringoshop.errors import ValidationFailed
from ringoshop.services import get_services

payment_bp = Blueprint("payment_bp", __name__, url_prefix="/api/payments")


@payment_bp.post("")
@login_required
def submit_payment():
    """Multipart upload: ``order_id`` plus the ``proof_image`` file."""
    try:
        order_id = int(request.form.get("order_id", ""))
    except (TypeError, ValueError):
        raise ValidationFailed("order_id must be an integer", fields={"order_id": "must be an integer"})

    proof = request.files.get("proof_image")
    payment = get_services().payments.submit_proof(order_id, current_user.id, proof)
    return jsonify({"ok": True, "payment": serialize_payment(payment)})
