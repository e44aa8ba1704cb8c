"""Member reports on petitions and their moderation."""
from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import datetime
from typing import Any

from sqlalchemy.orm import Session

from consejo.models import Report, ReportState, User
from consejo.services.errors import TargetNotFoundError
from consejo.services.petition_service import get_petition

logger = logging.getLogger(__name__)

__all__ = ["create_report", "delete_report", "get_report", "list_reports", "update_report"]


def get_report(db: Session, report_id: int) -> Report:
    report = db.get(Report, report_id)
    if report is None:
        raise TargetNotFoundError(f"Report {report_id} not found")
    return report


def create_report(
    db: Session,
    *,
    author: User,
    petition_id: int,
    description: str,
    now: datetime,
) -> Report:
    """File an open report against a visible petition.

    Raises:
        TargetNotFoundError: No such visible petition.
    """
    get_petition(db, petition_id)
    report = Report(
        author_user_id=author.id,
        petition_id=petition_id,
        description=description,
        state=ReportState.OPEN,
        created_at=now,
    )
    db.add(report)
    db.flush()
    logger.info("User %s reported petition %s (report %s)", author.id, petition_id, report.id)
    return report


def list_reports(db: Session, state: ReportState | None = None) -> list[Report]:
    """Return reports newest first, optionally filtered by state."""
    query = db.query(Report)
    if state is not None:
        query = query.filter(Report.state == state)
    return query.order_by(Report.created_at.desc(), Report.id.desc()).all()


def update_report(db: Session, report_id: int, changes: Mapping[str, Any]) -> Report:
    """Apply a moderator's partial update (state and/or description)."""
    report = get_report(db, report_id)
    for key, value in changes.items():
        setattr(report, key, value)
    db.flush()
    logger.info("Report %s updated: %s", report_id, sorted(changes))
    return report


def delete_report(db: Session, report_id: int) -> None:
    db.delete(get_report(db, report_id))
    db.flush()
    logger.info("Report %s deleted", report_id)
