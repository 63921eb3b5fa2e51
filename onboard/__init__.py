import os
from typing import Optional

from flask import Flask

from . import settings
from .errors import ConfigError
from .routes import bp as routes_bp
from .runtime import Onboard

# Bind only localhost unless overridden
BIND = os.environ.get("BIND", "127.0.0.1")
PORT = int(os.environ.get("PORT", "5000"))


def ensure_api_url() -> str:
    try:
        return settings.api_url()
    except ConfigError as e:
        raise SystemExit(str(e))


def create_app(runtime: Optional[Onboard] = None) -> Flask:
    app = Flask(__name__)
    app.config["APP_TITLE"] = "Onboard"
    app.config["ALLOWED_ASSETS"] = {"icon", "banner"}
    app.extensions["onboard"] = runtime or Onboard()

    app.register_blueprint(routes_bp)
    return app
