from __future__ import annotations

from ..extensions import db
from opsdesk.time_utils import to_iso_date, to_utc_z, utcnow


class MediaUpload(db.Model):
    """
    A media asset uploaded toward the daily quota.

    leader_id is the uploader's leader at upload time, so team views keep
    their history when the hierarchy changes later.
    """
    __tablename__ = "media_uploads"
    __table_args__ = (
        db.Index("ix_media_uploads_user_date", "user_id", "upload_date"),
        db.Index("ix_media_uploads_leader_date", "leader_id", "upload_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    user_name = db.Column(db.String(50), nullable=True)
    leader_id = db.Column(db.Integer, nullable=True)

    oss_key = db.Column(db.String(255), nullable=False)
    file_name = db.Column(db.String(255), nullable=False)
    file_type = db.Column(db.String(20), nullable=False, default="image")  # image | video
    file_size = db.Column(db.BigInteger, nullable=False, default=0)

    upload_date = db.Column(db.Date, nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    def to_dict(self, url: str | None = None) -> dict:
        return {
            "id": self.id,
            "userId": self.user_id,
            "userName": self.user_name,
            "leaderId": self.leader_id,
            "key": self.oss_key,
            "fileName": self.file_name,
            "fileType": self.file_type,
            "fileSize": self.file_size,
            "uploadDate": to_iso_date(self.upload_date),
            "createdAt": to_utc_z(self.created_at),
            "url": url,
        }
