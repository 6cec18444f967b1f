import os

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "school_portal"),
    "connection_timeout": int(os.getenv("DB_CONNECT_TIMEOUT", "10")),
}

UPLOAD_DIR = os.getenv("UPLOAD_DIR", "/var/lib/school_portal/uploads")
UPLOAD_BASE_URL = os.getenv("UPLOAD_BASE_URL", "https://portal.example.edu/uploads")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

DEBUG = False

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))
