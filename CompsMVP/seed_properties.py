# CompsMVP/seed_properties.py
from datetime import date

from CompsMVP.app import create_app
from CompsMVP.extensions import db
from CompsMVP.services.storage import Storage
from CompsMVP.services.normalizer import determine_market_type

# ----------------------------
# 🌱 Seed Demo Listings + Market Data
# ----------------------------
PROPERTIES = [
    {
        "address": "123 Main St", "city": "Austin", "state": "TX", "zipCode": "78701",
        "neighborhood": "Downtown", "price": "525000", "bedrooms": 3, "bathrooms": "2",
        "squareFeet": "1850", "lotSize": "0.18", "yearBuilt": 2004,
        "propertyType": "Single Family", "status": "Active", "daysOnMarket": 12,
        "latitude": "30.2672", "longitude": "-97.7431",
        "description": "Updated single family home a few blocks from Congress Ave.",
        "images": ["https://images.compsmvp.dev/austin/123-main-1.jpg"],
        "features": ["Hardwood Floors", "Central Air", "Garage"],
        "hasGarage": True, "garageSpaces": 2,
    },
    {
        "address": "88 Peachtree Ln", "city": "Atlanta", "state": "GA", "zipCode": "30303",
        "neighborhood": "Midtown", "price": "389000", "bedrooms": 2, "bathrooms": "2.5",
        "squareFeet": "1420", "yearBuilt": 2015, "propertyType": "Townhouse",
        "status": "Active", "daysOnMarket": 21,
        "description": "End-unit townhouse with rooftop deck.",
        "images": ["https://images.compsmvp.dev/atlanta/88-peachtree-1.jpg"],
        "features": ["Rooftop Deck", "Renovated Kitchen"],
    },
    {
        "address": "410 Towne Lake Pkwy", "city": "Woodstock", "state": "GA", "zipCode": "30189",
        "price": "455000", "bedrooms": 4, "bathrooms": "3", "squareFeet": "2600",
        "yearBuilt": 1999, "propertyType": "Single Family", "status": "Sold",
        "hasBasement": True,
    },
]

MARKET_LOCATIONS = [
    ("Atlanta", "GA", "", "425000", 28, 2.4),
    ("Canton", "GA", "", "365000", 34, 3.8),
    ("Woodstock", "GA", "", "410000", 31, 3.1),
    ("Alpharetta", "GA", "", "640000", 25, 2.2),
]


def seed_properties(storage):
    created = 0
    for data in PROPERTIES:
        _row, was_created = storage.upsert_property(data)
        created += int(was_created)
    return created


def seed_market_data(storage, today=None):
    today = today or date.today()
    for city, state, zip_code, median, dom, inventory in MARKET_LOCATIONS:
        storage.upsert_market_data({
            "city": city,
            "state": state,
            "zipCode": zip_code,
            "year": today.year,
            "month": today.month,
            "medianPrice": median,
            "daysOnMarket": dom,
            "inventoryMonths": inventory,
            "saleToListRatio": "0.98",
            "marketType": determine_market_type(inventory),
        })
    return len(MARKET_LOCATIONS)


if __name__ == "__main__":
    app = create_app()
    with app.app_context():
        db.create_all()
        storage = Storage()
        print(f"Seeded {seed_properties(storage)} new properties.")
        print(f"Seeded {seed_market_data(storage)} market snapshots.")
