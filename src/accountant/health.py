"""
Probes for the shop backend: /health reports, /health/ready gates traffic
on the ledger database, /health/live only answers.
"""

from flask import Blueprint, jsonify, current_app
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from accountant import db

health_bp = Blueprint('health', __name__)


@health_bp.route('/health')
def health_check():
    """Always 200; a broken ledger connection shows up in `database`."""
    try:
        db.session.execute(text('SELECT 1'))
        db_status = 'connected'
    except SQLAlchemyError as e:
        db.session.rollback()
        db_status = f'error: {e}'

    return jsonify({
        'status': 'healthy',
        'database': db_status,
        'app': current_app.config.get('APP_NAME', 'Shop Accountant'),
        'version': '1.0.0'
    }), 200


@health_bp.route('/health/ready')
def readiness_check():
    """
    503 until the ledger tables can be read, so sales and repayments are
    not routed to an instance that cannot record them.
    """
    checks = {
        'database': False,
        'ledger': False,
        'status': 'unhealthy'
    }

    try:
        with db.engine.connect() as conn:
            conn.execute(text("SELECT 1"))
            checks['database'] = True
            conn.execute(text("SELECT 1 FROM purchases LIMIT 1"))
        checks['ledger'] = True
    except SQLAlchemyError as e:
        checks['error'] = str(e)
        return jsonify(checks), 503

    checks['status'] = 'ready'
    return jsonify(checks), 200


@health_bp.route('/health/live')
def liveness_check():
    return jsonify({
        'status': 'alive',
        'debug': current_app.debug
    }), 200
