from __future__ import annotations

from ..extensions import db
from opsdesk.time_utils import to_iso_date, to_utc_z, utcnow


class DailyLog(db.Model):
    """One work log per user per calendar date."""
    __tablename__ = "daily_logs"
    __table_args__ = (
        db.UniqueConstraint("user_id", "log_date", name="uq_daily_logs_user_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    log_date = db.Column(db.Date, nullable=False, index=True)
    content = db.Column(db.Text, nullable=False)
    work_hours = db.Column(db.Numeric(4, 1), nullable=False, default=8)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    user = db.relationship("User", backref=db.backref("daily_logs", lazy=True, cascade="all, delete-orphan"))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "userId": self.user_id,
            "username": self.user.username if self.user else None,
            "realName": self.user.real_name if self.user else None,
            "logDate": to_iso_date(self.log_date),
            "content": self.content,
            "workHours": float(self.work_hours) if self.work_hours is not None else None,
            "createdAt": to_utc_z(self.created_at),
            "updatedAt": to_utc_z(self.updated_at),
        }
