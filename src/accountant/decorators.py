"""
Route decorators for access control.
"""

from functools import wraps
from flask import current_app
from flask_login import current_user, login_required

from accountant.errors.handlers import json_error


def is_admin(user) -> bool:
    return (
        user.is_authenticated
        and user.username == current_app.config.get("ADMIN_USERNAME")
    )


def admin_required(f):
    """
    Restrict access to the shop administrator (the ADMIN_USERNAME account).
    Use for: deleting accounts, restoring backups.
    """
    @wraps(f)
    @login_required
    def decorated_function(*args, **kwargs):
        if current_app.config.get("LOGIN_DISABLED"):
            return f(*args, **kwargs)
        if not is_admin(current_user):
            return json_error("forbidden", "Only the administrator can do this", 403)
        return f(*args, **kwargs)
    return decorated_function
