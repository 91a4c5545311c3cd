import logging
import os

from flask import Flask
from flask_cors import CORS
from dotenv import load_dotenv

from lectern.core import config
from lectern.routes.bible_api import bible_bp, set_orchestrator

load_dotenv()


def create_app(orchestrator=None) -> Flask:
    app = Flask(__name__)

    app.config["SECRET_KEY"] = os.getenv("SECRET_KEY", "change-me")

    # The proxy is called from the browser
    CORS(app, resources={r"/api/bible*": {"origins": "*"}}, methods=["GET", "POST", "OPTIONS"])

    if orchestrator is not None:
        set_orchestrator(orchestrator)

    # Register blueprints
    app.register_blueprint(bible_bp)

    return app


if __name__ == "__main__":
    logging.basicConfig(
        level=getattr(logging, config.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    create_app().run(host="127.0.0.1", port=int(os.getenv("PORT", "5055")))
