import os

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")

ORG_ID = os.getenv("ORG_ID", "default-org")
STORE_BACKEND = os.getenv("STORE_BACKEND", "mysql")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "pto_tracker"),
}

STORE_POLL_SECONDS = float(os.getenv("STORE_POLL_SECONDS", "2"))

# Close view sessions of identities idle this long (0 keeps them until sign-out)
VIEW_SESSION_IDLE_SECONDS = float(os.getenv("VIEW_SESSION_IDLE_SECONDS", "3600"))

DEBUG = False
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
