"""
Reporting endpoints: gain/loss and stock levels.
"""
from flask import jsonify, request
from flask_login import login_required

from accountant.api import api_bp
from accountant.api.routes import get_payload
from accountant.ledger import alerts
from accountant.ledger.gain import get_gain_loss, resolve_range, serialize_report


@api_bp.route("/gain", methods=["GET"])
@login_required
def gain_report():
    """
    Query parameters: `date`, or `startDate` and `endDate` (YYYY-MM-DD).
    """
    start_date, end_date = resolve_range(
        date=request.args.get("date"),
        start_date=request.args.get("startDate"),
        end_date=request.args.get("endDate"),
    )
    report = serialize_report(get_gain_loss(start_date, end_date))
    return jsonify({"success": True, **report}), 200


@api_bp.route("/stock-deficiency/alerts", methods=["GET"])
@login_required
def deficiency_alerts():
    data = alerts.get_deficiency_alerts()
    return jsonify({"success": True, "count": len(data), "data": data}), 200


@api_bp.route("/stock-deficiency/inventory-stock", methods=["GET"])
@login_required
def inventory_stock():
    return jsonify({"success": True, "data": alerts.get_inventory_stock()}), 200


@api_bp.route("/stock-deficiency/threshold/<int:lot_id>", methods=["PUT"])
@login_required
def update_threshold(lot_id):
    lot = alerts.update_threshold(lot_id, get_payload().get("stock_deficiency_threshold"))
    return jsonify({
        "success": True,
        "message": "Threshold updated successfully",
        "data": lot.to_dict(),
    }), 200


@api_bp.route("/stock-deficiency/stock/<int:lot_id>", methods=["PUT"])
@login_required
def update_available_stock(lot_id):
    lot = alerts.set_available_stock(lot_id, get_payload().get("available_stock"))
    return jsonify({
        "success": True,
        "message": "Available stock updated successfully",
        "data": lot.to_dict(),
    }), 200
