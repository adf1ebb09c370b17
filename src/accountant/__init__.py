import logging
from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from flask_login import LoginManager


from .config import DebugConfig

# --- Extension Instantiation ---
db = SQLAlchemy()
migrate = Migrate()
login_manager = LoginManager()

app_logger = logging.getLogger(__name__)


# --- Application Factory Function ---
def create_app(config_object=DebugConfig):
    app = Flask(__name__)
    app.config.from_object(config_object)

    logging.basicConfig(
        level=app.config.get("LOG_LEVEL", "INFO"),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    app.logger.setLevel(app.config.get("LOG_LEVEL", "INFO"))

    # --- Initialize Extensions ---
    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)

    # --- User Loader ---
    from .models import User

    @login_manager.user_loader
    def load_user(user_id):
        return db.session.get(User, int(user_id))

    @login_manager.unauthorized_handler
    def unauthorized():
        from .errors.handlers import json_error

        return json_error("unauthorized", "Authentication required", 401)

    # --- Register Blueprints ---
    with app.app_context():
        from .api import api_bp

        app.register_blueprint(api_bp)

        from .auth import bp as auth_bp

        app.register_blueprint(auth_bp, url_prefix="/api/v1/users")

        from .errors import bp as errors_bp

        app.register_blueprint(errors_bp)

        from .health import health_bp

        app.register_blueprint(health_bp)

        app_logger.info("Blueprints registered.")

    # --- Register CLI Commands ---
    from accountant.cli import register_cli_commands

    register_cli_commands(app)

    return app
