from flask import Blueprint

history = Blueprint('history', __name__)

from app.history import routes  # noqa: F401, E402
