import logging

from flask import Flask, request
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from pymongo import MongoClient
from werkzeug.exceptions import HTTPException
from werkzeug.middleware.proxy_fix import ProxyFix

from catalog_api import config
from catalog_api.api_cache.cache_store import build_cache_store
from catalog_api.api_episodes.episodes import bp as episodes_bp
from catalog_api.api_feedback.feedback import bp as feedback_bp
from catalog_api.api_movies.movies import bp as movies_bp
from catalog_api.context import EXTENSION_KEY
from catalog_api.responses import error
from catalog_api.uploads import CloudinaryUploader

logger = logging.getLogger(__name__)

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "X-DNS-Prefetch-Control": "off",
    "Referrer-Policy": "no-referrer",
    "Cross-Origin-Resource-Policy": "same-origin",
    "Content-Security-Policy": "default-src 'none'; frame-ancestors 'self'",
}


def create_app(settings: dict | None = None, database=None, cache=None, uploader=None):
    """
    Build the catalog application.

    The database, cache store and uploader are created from configuration
    unless passed in, which lets tests run against isolated instances.

    Args:
        settings (dict | None): Overrides for the environment configuration.
        database (Database | None): PyMongo database handle.
        cache (MemoryCacheStore | RedisCacheStore | None): Cache store.
        uploader (CloudinaryUploader | None): Asset upload service.

    Returns:
        Flask: Configured application.
    """
    app = Flask(__name__)
    app.json.sort_keys = False
    app.config.update(config.load_settings())
    if settings:
        app.config.update(settings)
    app.config["MAX_CONTENT_LENGTH"] = app.config["MAX_UPLOAD_BYTES"] * (app.config["MAX_QUALITY_SAMPLES"] + 2)

    logging.basicConfig(level=app.config["LOG_LEVEL"], format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    CORS(app)
    if app.config["PROXY_HOPS"]:
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=app.config["PROXY_HOPS"])
    Limiter(key_func=get_remote_address, app=app)

    if database is None:
        client = MongoClient(app.config["MONGO_URI"])
        database = client[app.config["MONGO_DB"]]
        logger.info("connected to MongoDB database %s", app.config["MONGO_DB"])

    app.extensions[EXTENSION_KEY] = {
        "database": database,
        "cache": cache if cache is not None else build_cache_store(app.config),
        "uploader": uploader or CloudinaryUploader(),
    }

    app.register_blueprint(movies_bp)
    app.register_blueprint(episodes_bp)
    app.register_blueprint(feedback_bp)

    @app.route("/", methods=["GET"])
    def health():
        return "Hello World", 200

    @app.after_request
    def add_security_headers(response):
        for name, value in SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)
        return response

    @app.errorhandler(429)
    def rate_limited(exc: HTTPException):
        logger.warning("rate limit hit by %s on %s", get_remote_address(), request.path)
        return error(429, app.config["RATE_LIMIT_MESSAGE"], request.path)

    @app.errorhandler(HTTPException)
    def http_error(exc: HTTPException):
        return error(exc.code or 500, exc.description or exc.name, request.path)

    return app


if __name__ == "__main__":
    application = create_app()
    application.run(host="0.0.0.0", port=application.config["PORT"], debug=True)
