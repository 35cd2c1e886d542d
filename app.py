from __future__ import annotations
import os
from importlib import import_module
from flask import Flask
from config import config_map
from extensions import db, migrate

def register_blueprints(app: Flask) -> None:
    # core primero: registra logging JSON y los manejadores de error
    import_module("blueprints.core.routes")
    from blueprints.core import bp as core_bp
    from blueprints.directory import bp as directory_bp
    from blueprints.program.routes import api_bp as program_api_bp
    from blueprints.rotation.routes import api_bp as rotation_api_bp
    from blueprints.availability.routes import api_bp as availability_api_bp

    # core sin prefijo → '/health' en la raíz
    app.register_blueprint(core_bp)
    app.register_blueprint(directory_bp, url_prefix="/directory")
    app.register_blueprint(program_api_bp, url_prefix="/api/v1")
    app.register_blueprint(rotation_api_bp, url_prefix="/api/v1/admin")
    app.register_blueprint(availability_api_bp, url_prefix="/api/v1/admin")

def create_app(config_name: str | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    cfg_name = config_name or os.getenv("FLASK_CONFIG", "default")
    app.config.from_object(config_map[cfg_name])
    # pytest siempre define PYTEST_CURRENT_TEST: base en memoria, sin fugas entre tests
    if os.environ.get("PYTEST_CURRENT_TEST"):
        app.config["SQLALCHEMY_DATABASE_URI"] = "sqlite:///:memory:"
        app.config.setdefault("SQLALCHEMY_ENGINE_OPTIONS", {"connect_args": {"check_same_thread": False}})

    try:
        os.makedirs(app.instance_path, exist_ok=True)
    except OSError:
        pass
    db.init_app(app)
    migrate.init_app(app, db)
    register_blueprints(app)
    return app
