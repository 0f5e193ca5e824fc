# CompsMVP/config.py
import os
from dotenv import load_dotenv

# ===================================================
# 🏗 BASE CONFIG PATH SETUP
# ===================================================
BASE_DIR = os.path.abspath(os.path.dirname(__file__))

load_dotenv()


def _env_bool(name, default="false"):
    return os.environ.get(name, default).lower() in ("1", "true", "yes")


def parse_locations(raw):
    """
    "Atlanta,GA;Canton,GA,30114" -> [{"city": "Atlanta", "state": "GA", "zipCode": None}, ...]
    """
    locations = []
    for chunk in (raw or "").split(";"):
        parts = [p.strip() for p in chunk.split(",") if p.strip()]
        if len(parts) < 2:
            continue
        locations.append({
            "city": parts[0],
            "state": parts[1],
            "zipCode": parts[2] if len(parts) > 2 else None,
        })
    return locations


# ===================================================
# ⚙️ MAIN CONFIG CLASS
# ===================================================
class Config:
    # --------------------------------------------------
    # 🔐 CORE APP SETTINGS
    # --------------------------------------------------
    SECRET_KEY = os.getenv("SECRET_KEY", "dev_only_change_me")
    DEBUG = _env_bool("FLASK_DEBUG")
    TESTING = False

    # --------------------------------------------------
    # 🗄 DATABASE
    # --------------------------------------------------
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL",
        "postgresql+psycopg2://postgres@localhost:5432/compsmvp_db"
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # --------------------------------------------------
    # 🌍 CORS
    # --------------------------------------------------
    CORS_ORIGINS = os.environ.get("CORS_ORIGINS", "*")

    # =========================================================
    # 🏠 MLS (Datafiniti listings)
    # =========================================================
    MLS_API_KEY = os.environ.get("MLS_API_KEY", "").strip()
    MLS_API_ENDPOINT = os.environ.get("MLS_API_ENDPOINT", "https://api.datafiniti.co/v4").strip()
    MLS_SYNC_LIMIT = int(os.environ.get("MLS_SYNC_LIMIT", 50))

    # =========================================================
    # 🏘 ATTOM (property + market statistics)
    # =========================================================
    ATTOM_API_KEY = os.environ.get("ATTOM_API_KEY", "").strip()
    ATTOM_BASE_URL = os.environ.get("ATTOM_BASE_URL", "https://api.gateway.attomdata.com").strip()

    # Shared provider tuning
    PROVIDER_TIMEOUT = int(os.environ.get("PROVIDER_TIMEOUT", 12))
    PROVIDER_CACHE_TTL = int(os.environ.get("PROVIDER_CACHE_TTL", 60 * 60))
    PROVIDER_CACHE_MAX_ENTRIES = int(os.environ.get("PROVIDER_CACHE_MAX_ENTRIES", 512))

    # --------------------------------------------------
    # 🔀 RECONCILIATION
    # --------------------------------------------------
    SUFFICIENT_LOCAL_RESULTS = int(os.environ.get("SUFFICIENT_LOCAL_RESULTS", 20))
    PERSIST_PROVIDER_RESULTS = _env_bool("PERSIST_PROVIDER_RESULTS")

    # --------------------------------------------------
    # 📈 MARKET DATA
    # --------------------------------------------------
    MARKET_DATA_STALE_DAYS = int(os.environ.get("MARKET_DATA_STALE_DAYS", 30))
    MARKET_DATA_MAX_POINTS = int(os.environ.get("MARKET_DATA_MAX_POINTS", 12))

    # --------------------------------------------------
    # ⏱ BACKGROUND JOBS
    # --------------------------------------------------
    ENABLE_SCHEDULER = _env_bool("ENABLE_SCHEDULER")
    MLS_SYNC_INTERVAL = int(os.environ.get("MLS_SYNC_INTERVAL", 60 * 60))
    MARKET_DATA_SYNC_INTERVAL = int(os.environ.get("MARKET_DATA_SYNC_INTERVAL", 12 * 60 * 60))
    MARKET_SYNC_LOCATIONS = parse_locations(
        os.environ.get(
            "MARKET_SYNC_LOCATIONS",
            "Atlanta,GA;Canton,GA;Woodstock,GA;Alpharetta,GA"
        )
    )

    # --------------------------------------------------
    # 📝 LOGGING
    # --------------------------------------------------
    LOG_FOLDER = os.environ.get("LOG_FOLDER", os.path.join(BASE_DIR, "logs"))
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
    LOG_TO_FILE = True


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    MLS_API_KEY = ""
    ATTOM_API_KEY = ""
    ENABLE_SCHEDULER = False
    LOG_TO_FILE = False
