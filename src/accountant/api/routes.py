"""
Shop Accountant API v1: inventory, sales and repayments.
All routes require an active Flask session (login_required).
"""
from flask import jsonify, request, send_file, current_app
from flask_login import login_required

from accountant.api import api_bp
from accountant.exceptions import ValidationError
from accountant.ledger import stock, balance, purchases
from accountant.models import get_store_configuration
from accountant.receipts import generate_repayment_receipt_pdf


def get_payload() -> dict:
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON body")
    return payload


# ── Purchases (inventory lots) ────────────────────────────────────────────────
@api_bp.route("/purchases", methods=["GET"])
@login_required
def list_purchases():
    data = [lot.to_dict() for lot in purchases.list_purchases()]
    return jsonify({"success": True, "data": data}), 200


@api_bp.route("/purchases/<int:lot_id>", methods=["GET"])
@login_required
def get_purchase(lot_id):
    return jsonify({"success": True, "data": purchases.get_purchase(lot_id).to_dict()}), 200


@api_bp.route("/purchases", methods=["POST"])
@login_required
def create_purchase():
    lot = purchases.create_purchase(get_payload())
    return jsonify({
        "success": True,
        "message": "Purchase created successfully",
        "data": lot.to_dict(),
    }), 201


@api_bp.route("/purchases/<int:lot_id>", methods=["PUT"])
@login_required
def update_purchase(lot_id):
    lot = purchases.update_purchase(lot_id, get_payload())
    return jsonify({
        "success": True,
        "message": "Purchase updated successfully",
        "data": lot.to_dict(),
    }), 200


@api_bp.route("/purchases/<int:lot_id>", methods=["DELETE"])
@login_required
def delete_purchase(lot_id):
    purchases.delete_purchase(lot_id)
    return jsonify({"success": True, "message": "Purchase deleted successfully"}), 200


# ── Sales (income = cash, debts = credit) ─────────────────────────────────────
def _register_sale_routes(kind: str, prefix: str):
    """Same CRUD surface for both sale kinds; only the model differs."""
    label = stock.SALE_LABELS[kind]

    @login_required
    def list_view():
        data = [sale.to_dict() for sale in stock.list_sales(kind)]
        return jsonify({"success": True, "data": data}), 200

    @login_required
    def detail_view(sale_id):
        return jsonify({"success": True, "data": stock.get_sale(kind, sale_id).to_dict()}), 200

    @login_required
    def create_view():
        sale = stock.create_sale(kind, get_payload())
        return jsonify({
            "success": True,
            "message": f"{label} record created successfully",
            "data": sale.to_dict(),
        }), 201

    @login_required
    def update_view(sale_id):
        sale = stock.update_sale(kind, sale_id, get_payload())
        return jsonify({
            "success": True,
            "message": f"{label} record updated successfully",
            "data": sale.to_dict(),
        }), 200

    @login_required
    def delete_view(sale_id):
        stock.delete_sale(kind, sale_id)
        return jsonify({
            "success": True,
            "message": f"{label} record deleted successfully",
        }), 200

    api_bp.add_url_rule(prefix, f"list_{kind}", list_view, methods=["GET"])
    api_bp.add_url_rule(prefix, f"create_{kind}", create_view, methods=["POST"])
    api_bp.add_url_rule(f"{prefix}/<int:sale_id>", f"get_{kind}", detail_view, methods=["GET"])
    api_bp.add_url_rule(f"{prefix}/<int:sale_id>", f"update_{kind}", update_view, methods=["PUT"])
    api_bp.add_url_rule(f"{prefix}/<int:sale_id>", f"delete_{kind}", delete_view, methods=["DELETE"])


_register_sale_routes("income", "/income")
_register_sale_routes("debt", "/debts")


@api_bp.route("/debts/by-receipt/<receipt_no>", methods=["GET"])
@login_required
def get_debt_by_receipt(receipt_no):
    """Debt plus its repayments, oldest first."""
    debt, payments = balance.find_debt_by_receipt(receipt_no)
    return jsonify({
        "success": True,
        "debt": debt.to_dict(),
        "payments": [payment.to_dict() for payment in payments],
    }), 200


# ── Debt repayments ───────────────────────────────────────────────────────────
@api_bp.route("/debt-repayments", methods=["GET"])
@login_required
def list_repayments():
    data = [repayment.to_dict() for repayment in balance.list_repayments()]
    return jsonify({"success": True, "data": data}), 200


@api_bp.route("/debt-repayments/<int:repayment_id>", methods=["GET"])
@login_required
def get_repayment(repayment_id):
    return jsonify({"success": True, "data": balance.get_repayment(repayment_id).to_dict()}), 200


@api_bp.route("/debt-repayments", methods=["POST"])
@login_required
def create_repayment():
    """
    Required fields:
      - debt_id
      - amount: positive, at most the debt's balance_owed
      - payment_date: YYYY-MM-DD
    """
    payload = get_payload()
    repayment = balance.create_repayment(
        payload.get("debt_id"),
        payload.get("amount"),
        payload.get("payment_date"),
        seller_name=payload.get("seller_name"),
    )
    return jsonify({
        "success": True,
        "message": "Repayment recorded successfully",
        "data": repayment.to_dict(),
    }), 201


@api_bp.route("/debt-repayments/<int:repayment_id>", methods=["PUT"])
@login_required
def update_repayment(repayment_id):
    payload = get_payload()
    repayment = balance.update_repayment(
        repayment_id,
        amount=payload.get("amount"),
        payment_date=payload.get("payment_date"),
        seller_name=payload.get("seller_name"),
    )
    return jsonify({
        "success": True,
        "message": "Repayment updated successfully",
        "data": repayment.to_dict(),
    }), 200


@api_bp.route("/debt-repayments/<int:repayment_id>", methods=["DELETE"])
@login_required
def delete_repayment(repayment_id):
    balance.delete_repayment(repayment_id)
    return jsonify({"success": True, "message": "Repayment deleted successfully"}), 200


@api_bp.route("/debt-repayments/<int:repayment_id>/receipt.pdf", methods=["GET"])
@login_required
def download_repayment_receipt(repayment_id):
    repayment = balance.get_repayment(repayment_id)
    pdf_buffer = generate_repayment_receipt_pdf(
        repayment,
        get_store_configuration(),
        currency=current_app.config.get("DEFAULT_CURRENCY", "FCFA"),
    )
    return send_file(
        pdf_buffer,
        mimetype="application/pdf",
        as_attachment=True,
        download_name=f"{repayment.receipt_number}.pdf",
    )
