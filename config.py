from __future__ import annotations
import os
from pathlib import Path

class BaseConfig:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")
    BASE_DIR = Path(__file__).resolve().parent
    # SQLite file in project directory
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", f"sqlite:///{BASE_DIR / 'app.db'}")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    JSON_SORT_KEYS = False

    # límites mañana/tarde: el planificador y la impresión usan umbrales distintos
    SCHEDULER_AFTERNOON_FROM_HOUR = 12
    GRID_AFTERNOON_FROM_HOUR = 14
    GRID_GROUPS_PER_LINE = 6

    DEFAULT_WEEKDAY_MEETING_TIME = "19:30"
    DEFAULT_WEEKEND_MEETING_TIME = "18:00"

class DevConfig(BaseConfig):
    DEBUG = True

class ProdConfig(BaseConfig):
    DEBUG = False

config_map = {
    "dev": DevConfig,
    "prod": ProdConfig,
    "default": DevConfig,
}
