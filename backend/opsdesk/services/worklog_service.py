# Overview: Daily work logs, one per user per calendar date.

from __future__ import annotations

import logging
from decimal import Decimal

from ..extensions import db
from ..models import DailyLog, User
from ..validation import (
    NotFoundError,
    ValidationError,
    optional_date,
    optional_decimal,
    require_text,
)
from opsdesk.time_utils import today


logger = logging.getLogger(__name__)

DEFAULT_WORK_HOURS = Decimal("8")


def _work_hours(value) -> Decimal:
    hours = optional_decimal(value, "workHours")
    if hours is None:
        return DEFAULT_WORK_HOURS
    if hours < 0 or hours > 24:
        raise ValidationError("workHours must be between 0 and 24")
    return hours


def upsert_log(user_id: int, payload: dict) -> tuple[DailyLog, bool]:
    """
    Write the user's log for logDate, replacing an existing one.

    Returns (log, created).
    """
    log_date = optional_date(payload.get("logDate"), "logDate")
    if log_date is None:
        raise ValidationError("logDate is required")
    content = require_text(payload.get("content"), "content")
    hours = _work_hours(payload.get("workHours"))

    log = db.session.query(DailyLog).filter_by(user_id=user_id, log_date=log_date).first()
    created = log is None
    if created:
        log = DailyLog(user_id=user_id, log_date=log_date)
        db.session.add(log)
    log.content = content
    log.work_hours = hours
    db.session.flush()
    logger.info("%s work log %s for user %s", "Created" if created else "Updated", log_date, user_id)
    return log, created


def get_log(log_id: int, viewer_id: int, can_view_all: bool) -> DailyLog:
    log = db.session.get(DailyLog, log_id)
    if not log or (not can_view_all and log.user_id != viewer_id):
        raise NotFoundError("Work log not found")
    return log


def get_today_log(user_id: int) -> DailyLog | None:
    return db.session.query(DailyLog).filter_by(user_id=user_id, log_date=today()).first()


def _owned(log_id: int, user_id: int) -> DailyLog:
    log = db.session.get(DailyLog, log_id)
    if not log or log.user_id != user_id:
        raise NotFoundError("Work log not found or not yours")
    return log


def update_log(log_id: int, user_id: int, payload: dict) -> DailyLog:
    log = _owned(log_id, user_id)
    if "content" in payload:
        log.content = require_text(payload.get("content"), "content")
    if "workHours" in payload:
        log.work_hours = _work_hours(payload.get("workHours"))
    db.session.flush()
    return log


def delete_log(log_id: int, user_id: int) -> None:
    db.session.delete(_owned(log_id, user_id))


def list_logs(
    *,
    viewer_id: int,
    can_view_all: bool,
    user_id: int | None = None,
    start_date=None,
    end_date=None,
    page: int = 1,
    page_size: int = 20,
):
    query = db.session.query(DailyLog)
    if not can_view_all:
        query = query.filter(DailyLog.user_id == viewer_id)
    elif user_id is not None:
        query = query.filter(DailyLog.user_id == user_id)
    start = optional_date(start_date, "startDate")
    end = optional_date(end_date, "endDate")
    if start:
        query = query.filter(DailyLog.log_date >= start)
    if end:
        query = query.filter(DailyLog.log_date <= end)
    total = query.count()
    rows = (
        query.order_by(DailyLog.log_date.desc(), DailyLog.id.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
        .all()
    )
    return rows, total


def active_users() -> list[dict]:
    users = db.session.query(User).filter(User.is_active.is_(True)).order_by(User.id).all()
    return [{"id": u.id, "username": u.username, "realName": u.real_name} for u in users]
