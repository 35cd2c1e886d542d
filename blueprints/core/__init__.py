from flask import Blueprint

bp = Blueprint("core", __name__)
# los handlers y hooks se registran al importar routes
from . import routes  # noqa: E402,F401
