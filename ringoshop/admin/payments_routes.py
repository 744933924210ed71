# ringoshop/admin/payments_routes.py
from flask import jsonify, request, send_file
from flask_login import current_user

from ringoshop.api.utils.serializers import serialize_payment
from ringoshop.auth.decorators import admin_required
from ringoshop.services import get_services

from . import admin_bp


def _note_from_body():
    data = request.get_json(silent=True) or {}
    return data.get("note")


@admin_bp.get("/payments/pending")
@admin_required
def pending_payments():
    rows = get_services().payments.get_pending_payments()
    return jsonify({"ok": True, "payments": [serialize_payment(p, include_order=True) for p in rows]})


@admin_bp.get("/payments/<int:payment_id>")
@admin_required
def payment_detail(payment_id: int):
    payment = get_services().payments.get_payment(payment_id)
    return jsonify({"ok": True, "payment": serialize_payment(payment, include_order=True)})


@admin_bp.get("/payments/<int:payment_id>/proof")
@admin_required
def payment_proof(payment_id: int):
    payments = get_services().payments
    path = payments.proof_location(payments.get_payment(payment_id))
    return send_file(path)


@admin_bp.post("/payments/<int:payment_id>/approve")
@admin_required
def approve_payment(payment_id: int):
    payment = get_services().payments.approve(payment_id, current_user.id, note=_note_from_body())
    return jsonify({"ok": True, "payment": serialize_payment(payment, include_order=True)})


@admin_bp.post("/payments/<int:payment_id>/reject")
@admin_required
def reject_payment(payment_id: int):
    payment = get_services().payments.reject(payment_id, current_user.id, note=_note_from_body())
    return jsonify({"ok": True, "payment": serialize_payment(payment, include_order=True)})
