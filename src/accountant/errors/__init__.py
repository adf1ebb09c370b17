from flask import Blueprint

bp = Blueprint("errors", __name__)

from accountant.errors import handlers  # noqa: F401, E402
