import os
from collections.abc import Mapping

from flask import Flask
from flask_cors import CORS

from .events import register_hook
from .extensions import db
from .hooks import notify_owner, record_activity
from .routes import register_routes

DEFAULT_CONFIG = {
    "SQLALCHEMY_DATABASE_URI": os.environ.get("DATABASE_URL", "sqlite:///petgroom.db"),
    "SQLALCHEMY_TRACK_MODIFICATIONS": False,
    "SECRET_KEY": os.environ.get("SECRET_KEY", "dev-secret-change-me"),
    "BOOKING_TIMEZONE": os.environ.get("BOOKING_TIMEZONE", "Asia/Manila"),
    "MATTED_COAT_DEFAULT_FEE": 80,
    "QUEUE_ALLOCATION_RETRIES": 5,
    "MIN_RESCHEDULE_REASON_LENGTH": 10,
    "TOKEN_MAX_AGE_SECONDS": 86400,
    "CORS_ORIGINS": "*",
}


def create_app(config_object=None):
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_mapping(DEFAULT_CONFIG)

    if isinstance(config_object, Mapping):
        app.config.from_mapping(config_object)
    elif config_object:
        app.config.from_object(config_object)
    else:
        app.config.from_envvar("APP_SETTINGS", silent=True)

    db.init_app(app)

    # Allow frontend to talk to backend
    CORS(app,
         origins=app.config["CORS_ORIGINS"],
         supports_credentials=True,
         allow_headers=["Content-Type", "Authorization"],
         methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]
    )

    register_routes(app)

    # Post-commit side effects, run in this order after each workflow
    register_hook(app, notify_owner)
    register_hook(app, record_activity)

    return app
