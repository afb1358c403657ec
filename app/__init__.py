# app/__init__.py

import logging
import os
import time
from flask import Flask, request, jsonify
from flask_cors import CORS
from sqlalchemy import text
from werkzeug.exceptions import HTTPException
from .config import Config
from db.extensions import db, migrate, mail, jwt, check_redis_health
import models  # noqa: F401  registers mappers and the order total hooks
from controllers.auth_controller import auth_bp
from controllers.profile_controller import profile_bp
from controllers.vendor_controller import vendor_bp
from controllers.product_controller import product_bp
from controllers.order_controller import order_bp
from controllers.payment_controller import payment_bp
from services.exceptions import MarketplaceError
from .commands import register_commands

BLUEPRINTS = (auth_bp, profile_bp, vendor_bp, product_bp, order_bp, payment_bp)
SLOW_REQUEST_MS = 500


def create_app(config_object=Config):
    app = Flask(__name__)
    app.config.from_object(config_object)

    CORS(app,
         origins=app.config.get('CORS_ORIGINS', []),
         methods=['GET', 'POST', 'PUT', 'DELETE', 'OPTIONS'],
         allow_headers=['Content-Type', 'Authorization'],
         supports_credentials=True,
         expose_headers=['Content-Type', 'Authorization'],
         max_age=3600
    )

    db.init_app(app)
    migrate.init_app(app, db)
    mail.init_app(app)
    jwt.init_app(app)

    for blueprint in BLUEPRINTS:
        app.register_blueprint(blueprint, url_prefix='/api')
    register_commands(app)

    debug_mode = os.getenv("DEBUG_MODE", "false").lower() == "true"
    logging.basicConfig(
        level=logging.DEBUG if debug_mode else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    app.logger.setLevel(logging.DEBUG if debug_mode else logging.INFO)

    _register_request_timing(app, debug_mode)
    _register_error_handlers(app)

    @app.route('/api/health', methods=['GET'])
    def health_check():
        """Database and Redis reachability, for the load balancer."""
        try:
            db.session.execute(text('SELECT 1'))
        except Exception as e:
            app.logger.error(f"Health check failed: {str(e)}")
            return {'status': 'error', 'message': str(e), 'timestamp': time.time()}, 500

        return {
            'status': 'ok',
            'database': 'connected',
            'redis': 'connected' if check_redis_health() else 'unavailable',
            'timestamp': time.time()
        }, 200

    return app


def _register_request_timing(app, debug_mode):
    @app.before_request
    def start_timer():
        request.start_time = time.time()

    @app.after_request
    def log_duration(response):
        started = getattr(request, 'start_time', None)
        if started is None:
            return response
        elapsed = (time.time() - started) * 1000
        summary = f"{request.method} {request.path} took {elapsed:.2f}ms - Status: {response.status_code}"
        if elapsed > SLOW_REQUEST_MS:
            app.logger.warning(f"SLOW REQUEST: {summary}")
        elif debug_mode:
            app.logger.debug(summary)
        return response


def _register_error_handlers(app):
    @app.errorhandler(MarketplaceError)
    def handle_marketplace_error(e):
        db.session.rollback()
        app.logger.info(f"{request.method} {request.path} -> {e.status_code}: {e.message}")
        return jsonify({'error': e.message}), e.status_code

    @jwt.expired_token_loader
    def expired_token_callback(jwt_header, jwt_payload):
        return jsonify({'error': 'The token has expired'}), 401

    @jwt.invalid_token_loader
    def invalid_token_callback(reason):
        return jsonify({'error': 'Invalid token'}), 401

    @jwt.unauthorized_loader
    def unauthorized_callback(reason):
        return jsonify({'error': 'Missing Authorization Header'}), 401

    @app.errorhandler(HTTPException)
    def handle_http_exception(e):
        return jsonify({'error': e.description}), e.code

    @app.errorhandler(Exception)
    def handle_exception(e):
        db.session.rollback()
        app.logger.error(f"Unhandled exception: {str(e)}", exc_info=True)
        return {
            'success': False,
            'message': 'Internal server error. Please try again.'
        }, 500
