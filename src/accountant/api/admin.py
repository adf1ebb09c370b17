"""
Expenses, currencies, storefront configuration and backups.
"""
from flask import jsonify, current_app
from flask_login import login_required

from accountant.api import api_bp
from accountant.api.routes import get_payload
from accountant import shop
from accountant.decorators import admin_required
from accountant.backup import backup_info, create_backup, restore_backup
from accountant.models import get_store_configuration
from accountant.utils import local_now


# ── Expenses ──────────────────────────────────────────────────────────────────
@api_bp.route("/expenses", methods=["GET"])
@login_required
def list_expenses():
    data = [expense.to_dict() for expense in shop.list_expenses()]
    return jsonify({"success": True, "data": data}), 200


@api_bp.route("/expenses/<int:expense_id>", methods=["GET"])
@login_required
def get_expense(expense_id):
    return jsonify({"success": True, "data": shop.get_expense(expense_id).to_dict()}), 200


@api_bp.route("/expenses", methods=["POST"])
@login_required
def create_expense():
    expense = shop.create_expense(get_payload())
    return jsonify({
        "success": True,
        "message": "Expense created successfully",
        "data": expense.to_dict(),
    }), 201


@api_bp.route("/expenses/<int:expense_id>", methods=["PUT"])
@login_required
def update_expense(expense_id):
    expense = shop.update_expense(expense_id, get_payload())
    return jsonify({
        "success": True,
        "message": "Expense updated successfully",
        "data": expense.to_dict(),
    }), 200


@api_bp.route("/expenses/<int:expense_id>", methods=["DELETE"])
@login_required
def delete_expense(expense_id):
    shop.delete_expense(expense_id)
    return jsonify({"success": True, "message": "Expense deleted successfully"}), 200


# ── Currencies ────────────────────────────────────────────────────────────────
@api_bp.route("/currencies", methods=["GET"])
@login_required
def list_currencies():
    data = [currency.to_dict() for currency in shop.list_currencies()]
    return jsonify({"success": True, "currencies": data}), 200


@api_bp.route("/currencies/default", methods=["GET"])
@login_required
def get_default_currency():
    return jsonify({"success": True, "currency": shop.get_default_currency()}), 200


@api_bp.route("/currencies", methods=["POST"])
@login_required
def create_currency():
    currency = shop.create_currency(get_payload())
    return jsonify({
        "success": True,
        "message": "Currency created successfully",
        "currency": currency.to_dict(),
    }), 201


@api_bp.route("/currencies/<int:currency_id>", methods=["PUT"])
@login_required
def update_currency(currency_id):
    currency = shop.update_currency(currency_id, get_payload())
    return jsonify({
        "success": True,
        "message": "Currency updated successfully",
        "currency": currency.to_dict(),
    }), 200


@api_bp.route("/currencies/<int:currency_id>/set-default", methods=["PUT"])
@login_required
def set_default_currency(currency_id):
    currency = shop.set_default_currency(currency_id)
    return jsonify({
        "success": True,
        "message": f"{currency.code} is now the default currency",
        "currency": currency.to_dict(),
    }), 200


@api_bp.route("/currencies/<int:currency_id>", methods=["DELETE"])
@login_required
def delete_currency(currency_id):
    shop.delete_currency(currency_id)
    return jsonify({"success": True, "message": "Currency deleted successfully"}), 200


# ── Storefront configuration ──────────────────────────────────────────────────
@api_bp.route("/configuration", methods=["GET"])
@login_required
def get_configuration():
    return jsonify({"success": True, **get_store_configuration().to_dict()}), 200


@api_bp.route("/configuration/app-name", methods=["PUT"])
@login_required
def update_app_name():
    data = shop.update_app_name(get_payload().get("app_name"))
    return jsonify({
        "success": True,
        "message": "App name updated successfully",
        "data": data,
    }), 200


@api_bp.route("/configuration", methods=["PUT"])
@login_required
def update_configuration():
    data = shop.update_store_configuration(get_payload())
    return jsonify({
        "success": True,
        "message": "Configuration updated successfully",
        "data": data,
    }), 200


# ── Backup / restore ──────────────────────────────────────────────────────────
@api_bp.route("/backup", methods=["GET"])
@login_required
def download_backup():
    document = create_backup()
    filename = f"shop-accountant-backup-{local_now().strftime('%Y%m%d-%H%M%S')}.json"
    response = jsonify(document)
    response.headers["Content-Disposition"] = f'attachment; filename="{filename}"'
    return response, 200


@api_bp.route("/backup/info", methods=["GET"])
@login_required
def get_backup_info():
    return jsonify({"success": True, **backup_info()}), 200


@api_bp.route("/backup/restore", methods=["POST"])
@admin_required
def restore():
    result = restore_backup(get_payload())
    current_app.logger.info("Restore requested through the API: %s", result["restored"])
    return jsonify({
        "success": True,
        "message": "Backup restored successfully",
        **result,
    }), 200
