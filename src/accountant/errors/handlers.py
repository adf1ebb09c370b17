import logging
from flask import jsonify
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from accountant.errors import bp
from accountant.exceptions import LedgerError
from accountant import db

logger = logging.getLogger(__name__)


def json_error(code: str, message: str, status: int):
    return jsonify({"success": False, "error": code, "message": message}), status


def _safe_rollback():
    """Rollback the DB session without raising if the connection is dead."""
    try:
        db.session.rollback()
    except SQLAlchemyError:
        logger.warning("Session rollback failed", exc_info=True)
    finally:
        try:
            db.session.remove()
        except SQLAlchemyError:
            logger.warning("Session cleanup failed", exc_info=True)


# ── Ledger errors ─────────────────────────────────────────────────────────────

@bp.app_errorhandler(LedgerError)
def ledger_error(error):
    if error.status_code >= 500:
        logger.error("%s: %s", error.code, error.message)
    return jsonify(error.to_dict()), error.status_code


# ── HTTP error handlers ───────────────────────────────────────────────────────

@bp.app_errorhandler(400)
def bad_request_error(error):
    return json_error("bad_request", "Bad request", 400)


@bp.app_errorhandler(401)
def unauthorized_error(error):
    return json_error("unauthorized", "Authentication required", 401)


@bp.app_errorhandler(403)
def forbidden_error(error):
    return json_error("forbidden", "Forbidden", 403)


@bp.app_errorhandler(404)
def not_found_error(error):
    return json_error("not_found", "Resource not found", 404)


@bp.app_errorhandler(405)
def method_not_allowed_error(error):
    return json_error("method_not_allowed", "Method not allowed", 405)


@bp.app_errorhandler(500)
def internal_error(error):
    _safe_rollback()
    logger.error("500 Internal Server Error: %s", error)
    return json_error("internal_error", "Internal server error", 500)


@bp.app_errorhandler(503)
def service_unavailable_error(error):
    _safe_rollback()
    return json_error("service_unavailable", "Service unavailable", 503)


# ── Database / connectivity exception handlers ────────────────────────────────
# Writes inside the ledger already map these to StorageError; these catch
# the ones raised by plain reads.

@bp.app_errorhandler(OperationalError)
def db_operational_error(error):
    """Handles DB connection failures."""
    _safe_rollback()
    logger.error("Database OperationalError: %s", error)
    return json_error("database_unavailable", "Database unavailable", 503)


@bp.app_errorhandler(SQLAlchemyError)
def db_generic_error(error):
    _safe_rollback()
    logger.error("SQLAlchemyError: %s", error)
    return json_error("database_error", "Database error", 500)
