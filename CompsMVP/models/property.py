# CompsMVP/models/property.py
from datetime import datetime, date
from CompsMVP.extensions import db
from CompsMVP.utils.numbers import to_decimal, decimal_str, parse_int


# camelCase (API / normalizer) -> column name
PROPERTY_FIELDS = {
    "externalId": "external_id",
    "source": "source",
    "address": "address",
    "city": "city",
    "state": "state",
    "zipCode": "zip_code",
    "neighborhood": "neighborhood",
    "latitude": "latitude",
    "longitude": "longitude",
    "price": "price",
    "bedrooms": "bedrooms",
    "bathrooms": "bathrooms",
    "squareFeet": "square_feet",
    "lotSize": "lot_size",
    "yearBuilt": "year_built",
    "propertyType": "property_type",
    "status": "status",
    "daysOnMarket": "days_on_market",
    "saleDate": "sale_date",
    "hasBasement": "has_basement",
    "hasGarage": "has_garage",
    "garageSpaces": "garage_spaces",
    "images": "images",
    "pricePerSqft": "price_per_sqft",
    "description": "description",
    "features": "features",
}

IDENTITY_FIELDS = ("address", "city", "state", "zipCode")

DECIMAL_COLUMNS = {"latitude", "longitude", "price", "bathrooms", "square_feet", "lot_size", "price_per_sqft"}
INTEGER_COLUMNS = {"bedrooms", "year_built", "days_on_market", "garage_spaces"}
BOOLEAN_COLUMNS = {"has_basement", "has_garage"}
LIST_COLUMNS = {"images", "features"}


def _coerce(column, value):
    if value is None:
        return None
    if column in DECIMAL_COLUMNS:
        return to_decimal(value)
    if column in INTEGER_COLUMNS:
        return parse_int(value)
    if column in BOOLEAN_COLUMNS:
        if isinstance(value, str):
            return value.strip().lower() in ("1", "true", "yes", "y")
        return bool(value)
    if column in LIST_COLUMNS:
        return list(value) if isinstance(value, (list, tuple)) else []
    if column == "sale_date":
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date):
            return value
        try:
            return date.fromisoformat(str(value)[:10])
        except ValueError:
            return None
    return value


# ====================================
# 🏠 PROPERTY MODEL
# ====================================
class Property(db.Model):
    __tablename__ = "properties"
    __table_args__ = (
        db.UniqueConstraint("address", "city", "state", "zip_code", name="uq_properties_identity"),
    )

    id = db.Column(db.Integer, primary_key=True)
    external_id = db.Column(db.String(120), index=True)
    source = db.Column(db.String(30), default="local")

    address = db.Column(db.String(255), nullable=False)
    city = db.Column(db.String(100), nullable=False)
    state = db.Column(db.String(50), nullable=False)
    zip_code = db.Column(db.String(20), nullable=False)
    neighborhood = db.Column(db.String(120))
    latitude = db.Column(db.Numeric(10, 7))
    longitude = db.Column(db.Numeric(10, 7))

    price = db.Column(db.Numeric(14, 2))
    bedrooms = db.Column(db.Integer)
    bathrooms = db.Column(db.Numeric(4, 1))
    square_feet = db.Column(db.Numeric(12, 2))
    lot_size = db.Column(db.Numeric(12, 4))
    year_built = db.Column(db.Integer)
    property_type = db.Column(db.String(50))
    status = db.Column(db.String(30), default="Active")
    days_on_market = db.Column(db.Integer)
    sale_date = db.Column(db.Date)

    has_basement = db.Column(db.Boolean, default=False)
    has_garage = db.Column(db.Boolean, default=False)
    garage_spaces = db.Column(db.Integer)

    images = db.Column(db.JSON, default=list)
    price_per_sqft = db.Column(db.Numeric(12, 2))
    description = db.Column(db.Text)
    features = db.Column(db.JSON, default=list)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<Property {self.address}, {self.city}, {self.state} {self.zip_code}>"

    @property
    def identity_key(self):
        return (self.address, self.city, self.state, self.zip_code)

    @property
    def is_complete(self):
        """Enough data to serve a detail view without calling out."""
        return bool((self.description or "").strip()) and bool(self.images)

    def apply(self, data: dict, only_missing: bool = False):
        """
        Copy camelCase fields onto the row. Unknown keys are ignored.
        only_missing=True fills empty columns and leaves populated ones alone.
        """
        for key, column in PROPERTY_FIELDS.items():
            if key not in data:
                continue
            value = _coerce(column, data[key])
            if only_missing and not _is_empty(getattr(self, column)):
                continue
            setattr(self, column, value)
        return self

    def to_dict(self):
        return {
            "id": self.id,
            "externalId": self.external_id,
            "source": self.source,
            "address": self.address,
            "city": self.city,
            "state": self.state,
            "zipCode": self.zip_code,
            "neighborhood": self.neighborhood,
            "latitude": decimal_str(self.latitude),
            "longitude": decimal_str(self.longitude),
            "price": decimal_str(self.price),
            "bedrooms": self.bedrooms,
            "bathrooms": decimal_str(self.bathrooms),
            "squareFeet": decimal_str(self.square_feet),
            "lotSize": decimal_str(self.lot_size),
            "yearBuilt": self.year_built,
            "propertyType": self.property_type,
            "status": self.status,
            "daysOnMarket": self.days_on_market,
            "saleDate": self.sale_date.isoformat() if self.sale_date else None,
            "hasBasement": bool(self.has_basement),
            "hasGarage": bool(self.has_garage),
            "garageSpaces": self.garage_spaces,
            "images": list(self.images or []),
            "pricePerSqft": decimal_str(self.price_per_sqft, places=2),
            "description": self.description,
            "features": list(self.features or []),
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }


def _is_empty(value):
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, dict)):
        return len(value) == 0
    return False


def identity_of(data: dict):
    """Identity tuple for a camelCase property dict."""
    return tuple(data.get(k) for k in IDENTITY_FIELDS)
