from models import db, BIGINT
from datetime import datetime


class VendorRequest(db.Model):
    __tablename__ = "vendor_request"

    id = db.Column(BIGINT, primary_key=True)
    user_id = db.Column(db.String(64), db.ForeignKey("user_profile.id"), nullable=False, index=True)
    business_name = db.Column(db.String(150), nullable=False)
    note = db.Column(db.Text, nullable=True)
    status = db.Column(db.String(20), nullable=False, default="pending")  # pending, approved, rejected
    reviewed_by = db.Column(db.String(64), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = db.relationship("UserProfile")

    def to_dict(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "business_name": self.business_name,
            "note": self.note,
            "status": self.status,
            "reviewed_by": self.reviewed_by,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
