# --- models/user.py ---
from models import db
from datetime import datetime

ROLES = ("user", "vendor", "admin")


class UserProfile(db.Model):
    __tablename__ = "user_profile"

    id = db.Column(db.String(64), primary_key=True)
    email = db.Column(db.String(255), unique=True, nullable=True)
    name = db.Column(db.String(100), nullable=True)
    role = db.Column(db.String(20), nullable=False, default="user")  # user, vendor, admin
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<User id={self.id} role={self.role}>"
