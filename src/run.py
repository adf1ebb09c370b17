from flask_migrate import Migrate
from decouple import config
from accountant import create_app, db
from accountant.config import config_dict
import os

# --- ENVIRONMENT DETECTION LOGIC ---

# 1. Production Mode Check (Highest Priority)
IS_PRODUCTION = "RUNNING_IN_PRODUCTION" in os.environ

if IS_PRODUCTION:
    get_config_mode = "Production"
    DEBUG = False

# 2. Local Docker Compose Check
elif os.environ.get("FLASK_ENV") == "development" and "DBHOST" in os.environ:
    get_config_mode = "Development"
    DEBUG = True

# 3. Default Local Debug (Fallback to SQLite)
else:
    get_config_mode = "Debug"
    DEBUG = True

ENVIRONMENT = get_config_mode.lower()


# --- APP INITIALIZATION ---

app_config = config_dict[get_config_mode]

app = create_app(app_config)
app.app_context().push()
Migrate(app, db)

app.logger.info(f"Environment: {ENVIRONMENT}")
app.logger.info(f"DEBUG: {DEBUG}")
if not IS_PRODUCTION:
    app.logger.info(f"DB URI: {app_config.SQLALCHEMY_DATABASE_URI}")

if __name__ == "__main__":
    app.run(host="0.0.0.0", port=config("PORT", default=5000, cast=int), debug=DEBUG)
