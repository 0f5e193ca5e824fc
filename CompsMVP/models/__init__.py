# CompsMVP/models/__init__.py
from CompsMVP.extensions import db

# ======================================================
# 🧱 Model Imports
# ======================================================

# 🏠 Listings
from CompsMVP.models.property import Property

# 📈 Market snapshots
from CompsMVP.models.market_data import MarketData

# 🧍 Users & saved items
from CompsMVP.models.user_models import User, SavedSearch, SavedProperty, Report

__all__ = [
    "db",
    "Property",
    "MarketData",
    "User",
    "SavedSearch",
    "SavedProperty",
    "Report",
]
