# Overview: Media uploads counted against a per-user daily quota, with leader team views.

"""
Media quota tracking.

Every upload row records the uploader's leader and the upload date at the
time of upload. A user "completes" a day once their uploads for that date
reach MEDIA_DAILY_TARGET.

VISIBILITY:
- own uploads: always
- team views: uploads whose leader_id is the viewer; holders of
  media_view_team see everyone
- delete: uploader or the leader recorded on the upload
"""

from __future__ import annotations

import logging
from datetime import timedelta

from flask import current_app
from sqlalchemy import func

from ..extensions import db
from ..models import MediaUpload, User
from ..validation import (
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
    optional_date,
    optional_int,
    require_text,
)
from opsdesk.time_utils import to_iso_date, today
from . import storage
from .concurrency import commit_session


logger = logging.getLogger(__name__)

ALLOWED_MEDIA_TYPES = {
    "image/jpeg", "image/png", "image/gif", "image/webp",
    "video/mp4", "video/quicktime", "video/x-msvideo", "video/webm",
}
STATS_WINDOW_DAYS = 30


def daily_target() -> int:
    return current_app.config["MEDIA_DAILY_TARGET"]


def file_type_for(content_type: str | None) -> str:
    return "video" if (content_type or "").startswith("video/") else "image"


def _quota(count: int) -> dict:
    target = daily_target()
    return {"count": count, "target": target, "completed": count >= target}


def serialize(upload: MediaUpload) -> dict:
    return upload.to_dict(url=storage.read_url(upload.oss_key))


def presign_upload(user: User, filename, content_type) -> dict:
    filename = require_text(filename, "filename")
    content_type = require_text(content_type, "contentType")
    if content_type not in ALLOWED_MEDIA_TYPES:
        raise ValidationError("Unsupported file type")
    key = storage.media_key(user.id, filename)
    return {
        "key": key,
        "uploadUrl": storage.write_url(key, content_type),
        "viewUrl": storage.read_url(key),
    }


def _record(user: User, key: str, file_name: str, file_type: str, file_size: int) -> MediaUpload:
    upload = MediaUpload(
        user_id=user.id,
        user_name=user.display_name,
        leader_id=user.leader_id,
        oss_key=key,
        file_name=file_name,
        file_type=file_type,
        file_size=file_size,
        upload_date=today(),
    )
    db.session.add(upload)
    db.session.flush()
    logger.info("User %s uploaded %s (%s)", user.id, key, file_type)
    return upload


def upload_file(user: User, file_storage) -> MediaUpload:
    """Store an uploaded werkzeug FileStorage and record it."""
    if file_storage is None or not file_storage.filename:
        raise ValidationError("file is required")
    content_type = file_storage.mimetype
    if content_type not in ALLOWED_MEDIA_TYPES:
        raise ValidationError("Unsupported file type")
    data = file_storage.read()
    if len(data) > current_app.config["MEDIA_MAX_BYTES"]:
        raise ValidationError("File is too large")

    key = storage.media_key(user.id, file_storage.filename)
    storage.get_blob_store().put(key, data, content_type)
    return _record(user, key, file_storage.filename, file_type_for(content_type), len(data))


def confirm_upload(user: User, payload: dict) -> MediaUpload:
    """Record a file the client already PUT to a presigned URL."""
    key = require_text(payload.get("key"), "key", max_length=255)
    if not key.startswith(f"media/{user.id}/"):
        raise ValidationError("key does not belong to the current user")
    file_name = require_text(payload.get("fileName"), "fileName", max_length=255)
    file_type = payload.get("fileType") or "image"
    if file_type not in ("image", "video"):
        raise ValidationError("fileType must be image or video")
    file_size = optional_int(payload.get("fileSize"), "fileSize") or 0
    if file_size < 0:
        raise ValidationError("fileSize must be >= 0")
    return _record(user, key, file_name, file_type, file_size)


def count_for(user_id: int, day) -> int:
    return db.session.query(func.count(MediaUpload.id)).filter_by(user_id=user_id, upload_date=day).scalar()


def my_uploads(user_id: int, *, day=None, page: int = 1, page_size: int = 20):
    """Uploads of one day (default today) plus today's quota stats."""
    day = optional_date(day, "date") or today()
    query = db.session.query(MediaUpload).filter_by(user_id=user_id, upload_date=day)
    total = query.count()
    rows = query.order_by(MediaUpload.id.desc()).offset((page - 1) * page_size).limit(page_size).all()
    today_count = count_for(user_id, today())
    quota = _quota(today_count)
    stats = {"todayCount": today_count, "dailyTarget": quota["target"], "completed": quota["completed"]}
    return rows, total, stats


def my_stats(user_id: int, *, start_date=None, end_date=None) -> dict:
    """Per-day counts, newest first, capped to the last 30 days with uploads."""
    query = db.session.query(MediaUpload.upload_date, func.count(MediaUpload.id)).filter(
        MediaUpload.user_id == user_id
    )
    start = optional_date(start_date, "startDate")
    end = optional_date(end_date, "endDate")
    if start is None and end is None:
        start = today() - timedelta(days=STATS_WINDOW_DAYS - 1)
    if start:
        query = query.filter(MediaUpload.upload_date >= start)
    if end:
        query = query.filter(MediaUpload.upload_date <= end)
    rows = (
        query.group_by(MediaUpload.upload_date)
        .order_by(MediaUpload.upload_date.desc())
        .limit(STATS_WINDOW_DAYS)
        .all()
    )
    return {
        "dailyStats": [{"uploadDate": to_iso_date(d), "count": c} for d, c in rows],
        "today": _quota(count_for(user_id, today())),
    }


def team_uploads(viewer_id: int, see_all: bool, *, day=None, salesman_id=None, page: int = 1, page_size: int = 20):
    day = optional_date(day, "date") or today()
    query = db.session.query(MediaUpload).filter(MediaUpload.upload_date == day)
    if not see_all:
        query = query.filter(MediaUpload.leader_id == viewer_id)
    if salesman_id is not None:
        query = query.filter(MediaUpload.user_id == salesman_id)
    total = query.count()
    rows = query.order_by(MediaUpload.id.desc()).offset((page - 1) * page_size).limit(page_size).all()
    return rows, total


def team_stats(viewer_id: int, see_all: bool, *, day=None) -> dict:
    """
    Per-member upload counts for one day, busiest first.

    Members are the viewer's active direct reports, or every active
    salesman for media_view_team holders.
    """
    day = optional_date(day, "date") or today()

    counts_query = db.session.query(MediaUpload.user_id, func.count(MediaUpload.id)).filter(
        MediaUpload.upload_date == day
    )
    members_query = db.session.query(User).filter(User.is_active.is_(True))
    if see_all:
        members_query = members_query.filter(User.user_type == "salesman")
    else:
        counts_query = counts_query.filter(MediaUpload.leader_id == viewer_id)
        members_query = members_query.filter(User.leader_id == viewer_id)

    counts = dict(counts_query.group_by(MediaUpload.user_id).all())
    target = daily_target()
    members = [
        {
            "userId": u.id,
            "userName": u.real_name,
            "username": u.username,
            "uploadCount": counts.get(u.id, 0),
            "dailyTarget": target,
            "completed": counts.get(u.id, 0) >= target,
        }
        for u in members_query.order_by(User.id).all()
    ]
    members.sort(key=lambda m: -m["uploadCount"])
    return {
        "salesmen": members,
        "total": {"count": sum(counts.values()), "targetDate": to_iso_date(day)},
    }


def delete_upload(upload_id: int, user_id: int) -> bool:
    """
    Delete an upload record (uploader or their recorded leader).

    Commits the row delete before removing the stored object, and returns
    whether the object was removed too.
    """
    upload = db.session.get(MediaUpload, upload_id)
    if not upload:
        raise NotFoundError("Upload not found")
    if user_id not in (upload.user_id, upload.leader_id):
        raise PermissionDeniedError("You cannot delete this upload")
    key = upload.oss_key
    db.session.delete(upload)
    commit_session()
    removed = storage.delete_quietly(key)
    logger.info("Deleted upload %s by user %s (object removed: %s)", upload_id, user_id, removed)
    return removed
