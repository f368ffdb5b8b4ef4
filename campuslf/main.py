import logging
import os
from pathlib import Path

from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

from campuslf import db_utils
from campuslf.filter_utils import build_filters
from campuslf.item_form_utils import read_item_fields, read_status, validate_item_fields
from campuslf.match_utils import KINDS, MatchItem, find_matches, other_kind
from campuslf.routes_items import register_item_routes
from campuslf.routes_overview import register_overview_routes


DEFAULT_DATA_DIR = "/app/data"
DEFAULT_MAX_CONTENT_LENGTH = 1024 * 1024


def _env_config():
    data_dir = os.environ.get("DATA_DIR", DEFAULT_DATA_DIR)
    return {
        "DATA_DIR": data_dir,
        "DB_PATH": os.environ.get("DB_PATH", ""),
        "MAX_CONTENT_LENGTH": int(os.environ.get("MAX_CONTENT_LENGTH", str(DEFAULT_MAX_CONTENT_LENGTH))),
        "LOG_LEVEL": os.environ.get("LOG_LEVEL", "INFO"),
    }


def create_app(config=None):
    app = Flask(__name__)
    app.config.update(_env_config())
    if config:
        app.config.update(config)

    level = logging.getLevelName(str(app.config["LOG_LEVEL"]).upper())
    app.logger.setLevel(level if isinstance(level, int) else logging.INFO)

    data_dir = Path(app.config["DATA_DIR"])
    db_path = app.config.get("DB_PATH") or ""
    if not db_path:
        data_dir.mkdir(parents=True, exist_ok=True)
        db_path = str(data_dir / "lostfound.db")
    app.config["DB_PATH"] = db_path

    db_utils.init_db(db_path)
    app.logger.info("Item store ready at %s", db_path)

    def get_db():
        return db_utils.get_db(app.config["DB_PATH"])

    deps = {
        "get_db": get_db,
        "build_filters": build_filters,
        "read_item_fields": read_item_fields,
        "validate_item_fields": validate_item_fields,
        "read_status": read_status,
        "insert_item": db_utils.insert_item,
        "get_item": db_utils.get_item,
        "fetch_open_items": db_utils.fetch_open_items,
        "update_item_status": db_utils.update_item_status,
        "count_items_by_status": db_utils.count_items_by_status,
        "find_matches": find_matches,
        "other_kind": other_kind,
        "MatchItem": MatchItem,
        "STATUSES": db_utils.STATUSES,
        "KINDS": KINDS,
    }
    register_item_routes(app, deps)
    register_overview_routes(app, deps)

    @app.errorhandler(HTTPException)
    def http_error(err):
        return jsonify({"error": err.name, "description": err.description}), err.code

    return app
