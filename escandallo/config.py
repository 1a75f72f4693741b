# config.py
#
# Configuration settings for the recipe costing workbook.
# Values come from the environment (a local .env file is loaded first), so
# paths and defaults can change without touching the code.

import os

from dotenv import load_dotenv

load_dotenv()

# --- Storage ---
DB_DIR = os.environ.get("ESCANDALLO_DB_DIR", "data")
DB_FILENAME = "escandallo.db"

# --- Logging ---
LOG_LEVEL = os.environ.get("ESCANDALLO_LOG_LEVEL", "INFO").upper()
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# --- Default settings for a new workbook ---
DEFAULT_TEACHER_NAME = os.environ.get("ESCANDALLO_TEACHER_NAME", "")
DEFAULT_INSTITUTE_NAME = os.environ.get("ESCANDALLO_INSTITUTE_NAME", "")

# --- Product import ---
CSV_DELIMITER = os.environ.get("ESCANDALLO_CSV_DELIMITER", ";")

# --- Web ---
FLASK_SECRET_KEY = os.environ.get("FLASK_SECRET_KEY", "dev-secret-key-change-in-production")
PORT = int(os.environ.get("ESCANDALLO_PORT", 5000))
DEBUG = os.environ.get("ESCANDALLO_DEBUG", "false").lower() == "true"
