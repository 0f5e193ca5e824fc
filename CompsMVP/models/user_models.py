# CompsMVP/models/user_models.py
from datetime import datetime
from werkzeug.security import generate_password_hash, check_password_hash
from CompsMVP.extensions import db


class User(db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(120), unique=True, nullable=False)
    email = db.Column(db.String(120), unique=True)
    full_name = db.Column(db.String(200))
    password_hash = db.Column(db.String(255))
    role = db.Column(db.String(50), default="agent")  # admin, agent, viewer
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    saved_searches = db.relationship("SavedSearch", back_populates="user", cascade="all, delete-orphan", lazy=True)
    saved_properties = db.relationship("SavedProperty", back_populates="user", cascade="all, delete-orphan", lazy=True)
    reports = db.relationship("Report", back_populates="user", cascade="all, delete-orphan", lazy=True)

    def __repr__(self):
        return f"<User {self.username} ({self.role})>"

    def set_password(self, password):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        return bool(self.password_hash) and check_password_hash(self.password_hash, password)

    def to_dict(self):
        return {
            "id": self.id,
            "username": self.username,
            "email": self.email,
            "fullName": self.full_name,
            "role": self.role,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }


class SavedSearch(db.Model):
    __tablename__ = "saved_searches"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    name = db.Column(db.String(200), nullable=False)
    filters = db.Column(db.JSON, default=dict)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    user = db.relationship("User", back_populates="saved_searches")

    def to_dict(self):
        return {
            "id": self.id,
            "userId": self.user_id,
            "name": self.name,
            "filters": dict(self.filters or {}),
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }


class SavedProperty(db.Model):
    __tablename__ = "saved_properties"
    __table_args__ = (
        db.UniqueConstraint("user_id", "property_id", name="uq_saved_properties_user_property"),
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    property_id = db.Column(db.Integer, db.ForeignKey("properties.id"), nullable=False)
    notes = db.Column(db.Text)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    user = db.relationship("User", back_populates="saved_properties")
    property = db.relationship("Property")

    def to_dict(self):
        return {
            "id": self.id,
            "userId": self.user_id,
            "propertyId": self.property_id,
            "notes": self.notes,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }


class Report(db.Model):
    __tablename__ = "reports"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    title = db.Column(db.String(255), nullable=False)
    report_type = db.Column(db.String(50), default="cma")
    property_ids = db.Column(db.JSON, default=list)
    content = db.Column(db.JSON, default=dict)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    user = db.relationship("User", back_populates="reports")

    def to_dict(self):
        return {
            "id": self.id,
            "userId": self.user_id,
            "title": self.title,
            "reportType": self.report_type,
            "propertyIds": list(self.property_ids or []),
            "content": dict(self.content or {}),
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }
