"""
config.py
---------
Central configuration module. Loads all environment variables
from the .env file and exposes them as typed constants.
"""

import os
from dotenv import load_dotenv

load_dotenv()


# ── LINE Messaging API ────────────────────────────────────
LINE_CHANNEL_ACCESS_TOKEN: str = os.getenv("LINE_CHANNEL_ACCESS_TOKEN", "")
LINE_CHANNEL_SECRET: str = os.getenv("LINE_CHANNEL_SECRET", "")
# Public id of the official account (e.g. "@123abcde"), used in deep links
LINE_BOT_BASIC_ID: str = os.getenv("LINE_BOT_BASIC_ID", "")

# ── Storage ───────────────────────────────────────────────
# One of: firebase | postgres | memory
STORE_BACKEND: str = os.getenv("STORE_BACKEND", "firebase").strip().lower()

# ── Firebase Realtime Database ────────────────────────────
FIREBASE_PROJECT_ID: str = os.getenv("FIREBASE_PROJECT_ID", "")
FIREBASE_CLIENT_EMAIL: str = os.getenv("FIREBASE_CLIENT_EMAIL", "")
FIREBASE_PRIVATE_KEY: str = os.getenv("FIREBASE_PRIVATE_KEY", "").replace("\\n", "\n")
FIREBASE_CREDENTIALS_FILE: str = os.getenv("FIREBASE_CREDENTIALS_FILE", "")
FIREBASE_DATABASE_URL: str = os.getenv(
    "FIREBASE_DATABASE_URL",
    f"https://{FIREBASE_PROJECT_ID}.firebaseio.com" if FIREBASE_PROJECT_ID else "",
)

# ── PostgreSQL ────────────────────────────────────────────
DB_HOST: str = os.getenv("DB_HOST", "localhost")
DB_PORT: int = int(os.getenv("DB_PORT", "5432"))
DB_NAME: str = os.getenv("DB_NAME", "idlink")
DB_USER: str = os.getenv("DB_USER", "idlink_user")
DB_PASS: str = os.getenv("DB_PASS", "")

DATABASE_URL: str = (
    f"postgresql://{DB_USER}:{DB_PASS}@{DB_HOST}:{DB_PORT}/{DB_NAME}"
)

# ── HTTP server ───────────────────────────────────────────
HOST: str = os.getenv("HOST", "0.0.0.0")
PORT: int = int(os.getenv("PORT", "3000"))
# Base URL encoded into QR codes; derived from the request when empty
PUBLIC_BASE_URL: str = os.getenv("PUBLIC_BASE_URL", "").rstrip("/")

# ── Presentation ──────────────────────────────────────────
DISPLAY_TIMEZONE: str = os.getenv("DISPLAY_TIMEZONE", "Asia/Tokyo")

# ── Logging ───────────────────────────────────────────────
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
