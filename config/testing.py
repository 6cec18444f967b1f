import os

SECRET_KEY = "test-secret"

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "school_portal_test"),
    "connection_timeout": int(os.getenv("DB_CONNECT_TIMEOUT", "5")),
}

UPLOAD_DIR = os.getenv("UPLOAD_DIR", "/tmp/school_portal_uploads")
UPLOAD_BASE_URL = os.getenv("UPLOAD_BASE_URL", "http://testserver/uploads")

LOG_LEVEL = os.getenv("LOG_LEVEL", "WARNING")

DEBUG = False
TESTING = True

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))
