"""Configuration module for the Campus class service.

This module provides centralized configuration management, including directory
paths, API server settings, class code rules, and gamification defaults.
All configuration values can be overridden via environment variables.
"""

import os
import string
from pathlib import Path
from typing import Dict, List, Optional

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# --- Directory Configuration ---

# Root directory of the project
ROOT_DIR = Path(__file__).parent.parent.resolve()

# Data directory name
DATA_DIR_NAME = "data"
DATA_DIR = Path(os.getenv("DATA_DIR", str(ROOT_DIR / DATA_DIR_NAME)))

# --- Database Configuration ---

DATABASE_URL: str = os.getenv("DATABASE_URL", f"sqlite:///{DATA_DIR}/campus.db")

# --- API Server Configuration ---

API_HOST: str = os.getenv("API_HOST", "0.0.0.0")
API_PORT: int = int(os.getenv("API_PORT", "8000"))

# CORS allowed origins (comma-separated list)
# Default includes local development addresses. For production, set via
# CORS_ALLOWED_ORIGINS environment variable.
_CORS_ALLOWED_ORIGINS_STR: str = os.getenv(
    "CORS_ALLOWED_ORIGINS",
    "http://localhost:5173,http://127.0.0.1:5173,http://localhost:3000,"
    "http://127.0.0.1:3000,http://0.0.0.0:5173",
)
CORS_ALLOWED_ORIGINS: List[str] = [
    origin.strip()
    for origin in _CORS_ALLOWED_ORIGINS_STR.split(",")
    if origin.strip()
]

# --- Logging Configuration ---

LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

# --- Authentication Configuration ---

JWT_SECRET_KEY: str = os.getenv("JWT_SECRET_KEY", "your-secret-key-change-in-production")
JWT_ALGORITHM: str = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES: int = int(
    os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(60 * 24 * 7))
)

# Admin token for admin registration (set via ADMIN_TOKEN environment variable)
ADMIN_TOKEN: Optional[str] = os.getenv("ADMIN_TOKEN")

# --- Class Code Configuration ---

CLASS_CODE_LENGTH: int = 6
CLASS_CODE_ALPHABET: str = string.ascii_uppercase + string.digits

# Collisions are retried silently up to this many times before giving up.
CLASS_CODE_MAX_ATTEMPTS: int = int(os.getenv("CLASS_CODE_MAX_ATTEMPTS", "10"))

DEFAULT_CODE_EXPIRY_HOURS: int = 24
MAX_CODE_EXPIRY_HOURS: int = int(os.getenv("MAX_CODE_EXPIRY_HOURS", str(24 * 30)))

# --- Gamification Configuration ---

# Points awarded per activity, grouped by category.
POINTS_SYSTEM: Dict[str, Dict[str, int]] = {
    "activity": {
        "post": 10,
        "comment": 5,
        "like": 1,
        "share": 3,
        "attendance": 15,
    },
    "academic": {
        "assignment": 25,
        "quiz": 15,
        "exam": 50,
        "project": 100,
        "participation": 20,
    },
    "social": {
        "helpPeer": 30,
        "leadDiscussion": 40,
        "organizeEvent": 75,
        "mentor": 50,
    },
    "special": {
        "firstPost": 100,
        "perfectAttendance": 200,
        "topPerformer": 150,
        "streak": 10,
    },
}

DEFAULT_LEADERBOARD_SIZE: int = 10
