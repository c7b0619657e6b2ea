import os
import logging
from datetime import timedelta

from flask import Flask, jsonify, redirect, url_for
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from dotenv import load_dotenv

from .config import DevConfig, ProdConfig, TestConfig
from .errors import EstimatorError

# Initialize extensions
db = SQLAlchemy()
migrate = Migrate()

CONFIGS = {
    'development': DevConfig,
    'production': ProdConfig,
    'testing': TestConfig,
}


def create_app(config_name: str | None = None) -> Flask:
    """Application factory with environment based configuration."""
    load_dotenv()

    app = Flask(__name__, instance_relative_config=True)
    os.makedirs(app.instance_path, exist_ok=True)
    # /api/estimates and /api/estimates/ are the same collection
    app.url_map.strict_slashes = False

    # Pick configuration
    env = config_name or os.getenv('ENV') or os.getenv('FLASK_ENV') or 'production'
    cfg_cls = CONFIGS.get(env, ProdConfig)
    app.config.from_object(cfg_cls())

    # Initialise logging
    logging.basicConfig(level=logging.DEBUG if app.debug else logging.INFO)

    db.init_app(app)
    migrate.init_app(app, db)

    # Ensure models loaded so tables can be created
    from estimator import models  # noqa
    with app.app_context():
        db.create_all()

    from estimator.ai.cache import InMemoryPricingCache
    max_age = timedelta(days=app.config['AI_CACHE_TTL_DAYS'])
    if app.config['AI_CACHE_BACKEND'] == 'memory':
        app.extensions['pricing_cache'] = InMemoryPricingCache(max_age=max_age)
    else:
        # resolved per request, the session is request scoped
        app.extensions['pricing_cache'] = None

    from estimator.pricing.formatters import format_currency, format_quantity
    app.add_template_filter(format_currency, 'currency')
    app.add_template_filter(format_quantity, 'quantity')

    @app.route('/')
    def index():
        return redirect(url_for('estimates.list_estimates'))

    @app.errorhandler(EstimatorError)
    def estimator_error(err):
        return jsonify(err.to_dict()), err.status_code

    @app.errorhandler(400)
    def bad_request(_):
        return jsonify(error='Bad request'), 400

    @app.errorhandler(404)
    def not_found(_):
        return jsonify(error='Not found'), 404

    @app.errorhandler(500)
    def server_error(_):
        return jsonify(error='Internal server error'), 500

    from estimator.estimates.routes import bp as estimates_bp
    from estimator.scope_templates.routes import bp as templates_bp
    from estimator.settings.routes import bp as settings_bp
    from estimator.ai.routes import bp as ai_bp
    from estimator.pricing.routes import bp as pricing_bp
    from estimator.cli import ai_cache_cli

    app.register_blueprint(estimates_bp, url_prefix='/api/estimates')
    app.register_blueprint(templates_bp, url_prefix='/api/templates')
    app.register_blueprint(settings_bp, url_prefix='/api/settings')
    app.register_blueprint(ai_bp, url_prefix='/api/ai')
    app.register_blueprint(pricing_bp, url_prefix='/api/pricing')
    app.cli.add_command(ai_cache_cli)

    return app
