from flask import Blueprint

bp = Blueprint("auth_bp", __name__)

from accountant.auth import routes  # noqa: F401, E402
