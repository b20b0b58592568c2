import os

SECRET_KEY = "test-secret"

ORG_ID = "test-org"
STORE_BACKEND = "memory"

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "pto_tracker_test"),
}

STORE_POLL_SECONDS = 0
VIEW_SESSION_IDLE_SECONDS = 0

DEBUG = False
TESTING = True
LOG_LEVEL = "WARNING"

AUTO_INIT_DB = False
