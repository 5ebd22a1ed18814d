from app.main import app
from app.harvest import config
from app.harvest.config_validation import validate_runtime_config

if __name__ == "__main__":
    # The hosting environment may provide PORT; default to 8080 for local
    # development.
    validate_runtime_config("ui")
    app.run(host="0.0.0.0", port=config.PORT)
