# CompsMVP/services/storage.py
import logging
import math
from datetime import datetime
from decimal import Decimal

from sqlalchemy import and_, func, or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from CompsMVP.extensions import db
from CompsMVP.models import Property, MarketData, User, SavedSearch, SavedProperty, Report
from CompsMVP.models.property import identity_of
from CompsMVP.services.property_filters import PropertyFilters
from CompsMVP.utils.numbers import to_decimal, price_per_sqft

logger = logging.getLogger(__name__)

MILES_PER_DEGREE = Decimal(69)

# refreshed from upstream on every upsert; everything else only fills gaps
VOLATILE_FIELDS = ("price", "status", "daysOnMarket", "pricePerSqft")

IDENTITY_KEYS = ("address", "city", "state", "zipCode")

MARKET_FIELDS = {
    "medianPrice": "median_price",
    "averagePricePerSqft": "average_price_per_sqft",
    "daysOnMarket": "days_on_market",
    "activeListings": "active_listings",
    "inventoryMonths": "inventory_months",
    "saleToListRatio": "sale_to_list_ratio",
    "priceReductions": "price_reductions",
    "marketType": "market_type",
}
MARKET_DECIMALS = {"median_price", "average_price_per_sqft", "inventory_months", "sale_to_list_ratio", "price_reductions"}


class StorageError(RuntimeError):
    """A database operation failed; the session has been rolled back."""


class DuplicatePropertyError(StorageError):
    """Another row already holds this (address, city, state, zipCode)."""


def _commit():
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error("Commit failed, rolled back: %s", e)
        raise StorageError(str(e)) from e


class Storage:
    """Read/write access to listings, market snapshots and user-owned records."""

    # =====================================================
    # 🏠 PROPERTIES
    # =====================================================
    def get_all_properties(self):
        return Property.query.order_by(Property.id).all()

    def get_property(self, property_id):
        return db.session.get(Property, property_id)

    def get_property_by_identity(self, address, city, state, zip_code):
        return Property.query.filter_by(
            address=address, city=city, state=state, zip_code=zip_code
        ).first()

    def get_property_by_external_id(self, external_id):
        if not external_id:
            return None
        return Property.query.filter_by(external_id=str(external_id)).first()

    def count_external_properties(self) -> int:
        return Property.query.filter(Property.external_id.isnot(None)).count()

    def get_properties_by_filters(self, filters: PropertyFilters):
        q = Property.query

        if filters.location:
            parts = filters.location_parts()
            if parts.get("city") and parts.get("state"):
                q = q.filter(
                    func.lower(Property.city) == parts["city"].lower(),
                    func.lower(Property.state) == parts["state"].lower(),
                )
                if parts.get("zipCode"):
                    q = q.filter(Property.zip_code == parts["zipCode"])
            else:
                like = f"%{filters.location.lower()}%"
                q = q.filter(or_(
                    func.lower(Property.city).like(like),
                    func.lower(Property.state).like(like),
                    func.lower(Property.zip_code).like(like),
                    func.lower(Property.neighborhood).like(like),
                ))

        if filters.zip_code:
            q = q.filter(Property.zip_code == filters.zip_code)
        if filters.property_type:
            q = q.filter(Property.property_type == filters.property_type)
        if filters.min_price is not None:
            q = q.filter(Property.price >= filters.min_price)
        if filters.max_price is not None:
            q = q.filter(Property.price <= filters.max_price)
        if filters.min_beds is not None:
            q = q.filter(Property.bedrooms >= filters.min_beds)
        if filters.max_beds is not None:
            q = q.filter(Property.bedrooms <= filters.max_beds)
        if filters.min_baths is not None:
            q = q.filter(Property.bathrooms >= filters.min_baths)
        if filters.max_baths is not None:
            q = q.filter(Property.bathrooms <= filters.max_baths)
        if filters.min_sqft is not None:
            q = q.filter(Property.square_feet >= filters.min_sqft)
        if filters.max_sqft is not None:
            q = q.filter(Property.square_feet <= filters.max_sqft)
        if filters.status_list:
            q = q.filter(Property.status.in_(filters.status_list))
        elif filters.status:
            q = q.filter(Property.status == filters.status)
        if filters.year_built is not None:
            q = q.filter(Property.year_built >= filters.year_built)
        if filters.sale_date_from is not None:
            q = q.filter(Property.sale_date >= filters.sale_date_from)
        if filters.exclude_property_id is not None:
            q = q.filter(Property.id != filters.exclude_property_id)

        if filters.lat is not None and filters.lng is not None and filters.radius:
            q = q.filter(_bounding_box(filters.lat, filters.lng, filters.radius))

        q = q.order_by(Property.id)
        if filters.limit:
            q = q.limit(filters.limit)
        return q.all()

    def create_property(self, data: dict) -> Property:
        _require_identity(data)
        if self.get_property_by_identity(*identity_of(data)):
            raise DuplicatePropertyError(f"property already exists: {identity_of(data)}")

        row = Property(source="local").apply(data)
        _fill_price_per_sqft(row, data)
        db.session.add(row)
        try:
            _commit()
        except IntegrityError as e:
            raise DuplicatePropertyError(str(e.orig)) from e
        return row

    def update_property(self, property_id, patch: dict):
        row = self.get_property(property_id)
        if row is None:
            return None
        # only identity keys present in the patch are checked
        _require_identity(patch, keys=[k for k in IDENTITY_KEYS if k in patch])
        row.apply(patch)
        if ("price" in patch or "squareFeet" in patch) and "pricePerSqft" not in patch:
            row.price_per_sqft = to_decimal(price_per_sqft(row.price, row.square_feet))
        row.updated_at = datetime.utcnow()
        try:
            _commit()
        except IntegrityError as e:
            raise DuplicatePropertyError(str(e.orig)) from e
        return row

    def upsert_property(self, data: dict, refresh_fields=VOLATILE_FIELDS):
        """
        Insert-or-update keyed by the identity tuple. Returns (row, created).
        Existing rows take refresh_fields from data and fill any empty columns;
        other populated columns are left alone.
        """
        if not (data.get("address") or "").strip():
            raise ValueError("address is required")
        key = identity_of(data)

        row = self.get_property_by_identity(*key)
        if row is None:
            row = Property().apply(data)
            _fill_price_per_sqft(row, data)
            db.session.add(row)
            try:
                _commit()
                return row, True
            except IntegrityError:
                # lost a race with a concurrent insert of the same address
                row = self.get_property_by_identity(*key)
                if row is None:
                    raise StorageError(f"upsert conflict without existing row: {key}")

        row.apply({k: data[k] for k in refresh_fields if data.get(k) is not None})
        row.apply(data, only_missing=True)
        row.updated_at = datetime.utcnow()
        try:
            _commit()
        except IntegrityError as e:
            raise StorageError(str(e.orig)) from e
        return row, False

    def fill_missing(self, row: Property, data: dict) -> Property:
        """Enrich a row in place; identity columns and populated values are kept."""
        patch = {k: v for k, v in data.items() if k not in IDENTITY_KEYS and k != "source"}
        row.apply(patch, only_missing=True)
        if not row.price_per_sqft:
            row.price_per_sqft = to_decimal(price_per_sqft(row.price, row.square_feet))
        row.updated_at = datetime.utcnow()
        try:
            _commit()
        except IntegrityError as e:
            raise StorageError(str(e.orig)) from e
        return row

    # =====================================================
    # 📈 MARKET DATA
    # =====================================================
    def get_market_data_by_location(self, city, state, zip_code=None):
        q = MarketData.query.filter_by(city=city, state=state)
        if zip_code:
            q = q.filter_by(zip_code=zip_code)
        return q.order_by(MarketData.year.desc(), MarketData.month.desc()).all()

    def upsert_market_data(self, point: dict) -> MarketData:
        """Replace whatever is stored for (city, state, zip, year, month)."""
        zip_code = point.get("zipCode") or ""
        MarketData.query.filter_by(
            city=point["city"],
            state=point["state"],
            zip_code=zip_code,
            year=int(point["year"]),
            month=int(point["month"]),
        ).delete(synchronize_session=False)

        row = MarketData(
            city=point["city"],
            state=point["state"],
            zip_code=zip_code,
            year=int(point["year"]),
            month=int(point["month"]),
        )
        for key, column in MARKET_FIELDS.items():
            value = point.get(key)
            if column in MARKET_DECIMALS:
                value = to_decimal(value)
            setattr(row, column, value)
        db.session.add(row)
        try:
            _commit()
        except IntegrityError as e:
            raise StorageError(str(e.orig)) from e
        return row

    # =====================================================
    # 🧍 USERS
    # =====================================================
    def get_user(self, user_id):
        return db.session.get(User, user_id)

    def get_user_by_username(self, username):
        return User.query.filter_by(username=username).first()

    def create_user(self, username, password=None, **fields):
        user = User(username=username, **fields)
        if password:
            user.set_password(password)
        db.session.add(user)
        try:
            _commit()
        except IntegrityError as e:
            raise StorageError(f"username taken: {username}") from e
        return user

    # =====================================================
    # 🔖 SAVED SEARCHES / PROPERTIES
    # =====================================================
    def get_saved_searches(self, user_id):
        return SavedSearch.query.filter_by(user_id=user_id).order_by(SavedSearch.created_at.desc()).all()

    def create_saved_search(self, user_id, name, filters: dict):
        row = SavedSearch(user_id=user_id, name=name, filters=dict(filters or {}))
        db.session.add(row)
        _commit()
        return row

    def delete_saved_search(self, search_id, user_id) -> bool:
        deleted = SavedSearch.query.filter_by(id=search_id, user_id=user_id).delete()
        _commit()
        return bool(deleted)

    def get_saved_properties(self, user_id):
        return SavedProperty.query.filter_by(user_id=user_id).order_by(SavedProperty.created_at.desc()).all()

    def save_property(self, user_id, property_id, notes=None):
        row = SavedProperty.query.filter_by(user_id=user_id, property_id=property_id).first()
        if row:
            if notes is not None:
                row.notes = notes
                _commit()
            return row
        row = SavedProperty(user_id=user_id, property_id=property_id, notes=notes)
        db.session.add(row)
        _commit()
        return row

    def unsave_property(self, user_id, property_id) -> bool:
        deleted = SavedProperty.query.filter_by(user_id=user_id, property_id=property_id).delete()
        _commit()
        return bool(deleted)

    # =====================================================
    # 📄 REPORTS
    # =====================================================
    def get_reports(self, user_id):
        return Report.query.filter_by(user_id=user_id).order_by(Report.created_at.desc()).all()

    def get_report(self, report_id):
        return db.session.get(Report, report_id)

    def create_report(self, user_id, title, report_type="cma", property_ids=None, content=None):
        row = Report(
            user_id=user_id,
            title=title,
            report_type=report_type,
            property_ids=list(property_ids or []),
            content=dict(content or {}),
        )
        db.session.add(row)
        _commit()
        return row


# ---------------------------------------------------------
# Helpers
# ---------------------------------------------------------
def _require_identity(data, keys=IDENTITY_KEYS):
    missing = [k for k in keys if not str(data.get(k) or "").strip()]
    if missing:
        raise ValueError(f"missing required fields: {', '.join(missing)}")


def _fill_price_per_sqft(row, data):
    if not data.get("pricePerSqft"):
        row.price_per_sqft = to_decimal(price_per_sqft(row.price, row.square_feet))


def _bounding_box(lat, lng, radius):
    lat = to_decimal(lat)
    lng = to_decimal(lng)
    radius = to_decimal(radius)
    d_lat = radius / MILES_PER_DEGREE
    cos_lat = Decimal(str(max(math.cos(math.radians(float(lat))), 0.01)))
    d_lng = radius / (MILES_PER_DEGREE * cos_lat)
    return and_(
        Property.latitude.between(lat - d_lat, lat + d_lat),
        Property.longitude.between(lng - d_lng, lng + d_lng),
    )
