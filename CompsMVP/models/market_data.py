# CompsMVP/models/market_data.py
from datetime import datetime
from CompsMVP.extensions import db
from CompsMVP.utils.numbers import decimal_str


# ====================================
# 📈 MONTHLY MARKET SNAPSHOT
# ====================================
class MarketData(db.Model):
    __tablename__ = "market_data"
    __table_args__ = (
        db.UniqueConstraint("city", "state", "zip_code", "year", "month", name="uq_market_data_period"),
    )

    id = db.Column(db.Integer, primary_key=True)
    city = db.Column(db.String(100), nullable=False)
    state = db.Column(db.String(50), nullable=False)
    zip_code = db.Column(db.String(20), nullable=False, default="")  # "" when city-wide

    median_price = db.Column(db.Numeric(14, 2))
    average_price_per_sqft = db.Column(db.Numeric(12, 2))
    days_on_market = db.Column(db.Integer)
    active_listings = db.Column(db.Integer)
    inventory_months = db.Column(db.Numeric(6, 2))
    sale_to_list_ratio = db.Column(db.Numeric(6, 3))
    price_reductions = db.Column(db.Numeric(6, 2))
    market_type = db.Column(db.String(50))

    month = db.Column(db.Integer, nullable=False)
    year = db.Column(db.Integer, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def __repr__(self):
        return f"<MarketData {self.city}, {self.state} {self.zip_code} {self.year}-{self.month:02d}>"

    @property
    def period_key(self):
        return (self.city, self.state, self.zip_code, self.year, self.month)

    def to_dict(self):
        return {
            "id": self.id,
            "city": self.city,
            "state": self.state,
            "zipCode": self.zip_code,
            "medianPrice": decimal_str(self.median_price),
            "averagePricePerSqft": decimal_str(self.average_price_per_sqft),
            "daysOnMarket": self.days_on_market,
            "activeListings": self.active_listings,
            "inventoryMonths": decimal_str(self.inventory_months),
            "saleToListRatio": decimal_str(self.sale_to_list_ratio),
            "priceReductions": decimal_str(self.price_reductions),
            "marketType": self.market_type,
            "month": self.month,
            "year": self.year,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }
