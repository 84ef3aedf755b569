from __future__ import annotations

import json
import uuid
from datetime import datetime, timezone
from typing import Any, List, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from libs.core import models
from .models import ResumeRecord, ResumeVersionRecord


class ResumeStoreError(Exception):
    def __init__(self, detail: str, status_code: int = 400) -> None:
        super().__init__(detail)
        self.detail = detail
        self.status_code = status_code


def create_resume(db: Session, owner_id: str, request: models.ResumeCreate) -> models.Resume:
    now = _utcnow()
    record = ResumeRecord(
        id=str(uuid.uuid4()),
        owner_id=owner_id,
        title=request.title,
        category=request.category,
        description=request.description,
        is_public=request.is_public,
        content=request.content,
        created_at=now,
        updated_at=now,
        deleted_at=None,
    )
    db.add(record)
    db.commit()
    return _resume_from_record(record, version_count=0)


def list_resumes(db: Session, owner_id: str) -> List[models.Resume]:
    counts = dict(
        db.query(ResumeVersionRecord.resume_id, func.count(ResumeVersionRecord.id))
        .join(ResumeRecord, ResumeRecord.id == ResumeVersionRecord.resume_id)
        .filter(ResumeRecord.owner_id == owner_id)
        .group_by(ResumeVersionRecord.resume_id)
        .all()
    )
    records = (
        db.query(ResumeRecord)
        .filter(ResumeRecord.owner_id == owner_id, ResumeRecord.deleted_at.is_(None))
        .order_by(ResumeRecord.updated_at.desc())
        .all()
    )
    return [_resume_from_record(record, counts.get(record.id, 0)) for record in records]


def get_resume(db: Session, owner_id: str, resume_id: str) -> models.Resume:
    record = _require_resume(db, owner_id, resume_id)
    return _resume_from_record(record, _version_count(db, resume_id))


def update_resume(
    db: Session, owner_id: str, resume_id: str, request: models.ResumeUpdate
) -> models.Resume:
    record = _require_resume(db, owner_id, resume_id)
    for field_name, value in request.model_dump(exclude_unset=True).items():
        if value is None and field_name in {"title", "is_public"}:
            continue
        setattr(record, field_name, value)
    record.updated_at = _utcnow()
    db.commit()
    return _resume_from_record(record, _version_count(db, resume_id))


def delete_resume(db: Session, owner_id: str, resume_id: str) -> None:
    record = _require_resume(db, owner_id, resume_id)
    record.deleted_at = _utcnow()
    db.commit()


def list_versions(db: Session, owner_id: str, resume_id: str) -> List[models.ResumeVersion]:
    _require_resume(db, owner_id, resume_id)
    records = (
        db.query(ResumeVersionRecord)
        .filter(ResumeVersionRecord.resume_id == resume_id)
        .order_by(ResumeVersionRecord.version.desc())
        .all()
    )
    return [_version_from_record(record) for record in records]


def create_version(
    db: Session, owner_id: str, request: models.VersionCreate
) -> models.ResumeVersion:
    resume = _require_resume(db, owner_id, request.resume_id)
    latest = (
        db.query(func.max(ResumeVersionRecord.version))
        .filter(ResumeVersionRecord.resume_id == resume.id)
        .scalar()
    )
    now = _utcnow()
    record = ResumeVersionRecord(
        id=str(uuid.uuid4()),
        resume_id=resume.id,
        version=(latest or 0) + 1,
        content=_serialize_content(request.content),
        commit_msg=request.commit_msg,
        created_at=now,
    )
    db.add(record)
    resume.updated_at = now
    db.commit()
    return _version_from_record(record)


def get_version_pair(
    db: Session, owner_id: str, first_id: str, second_id: str
) -> Tuple[models.ResumeVersion, models.ResumeVersion]:
    records = {
        record.id: record
        for record in db.query(ResumeVersionRecord)
        .join(ResumeRecord, ResumeRecord.id == ResumeVersionRecord.resume_id)
        .filter(
            ResumeVersionRecord.id.in_([first_id, second_id]),
            ResumeRecord.owner_id == owner_id,
        )
        .all()
    }
    first = records.get(first_id)
    second = records.get(second_id)
    if first is None or second is None:
        raise ResumeStoreError("Versions not found", status_code=404)
    return _version_from_record(first), _version_from_record(second)


def resume_ids_with_versions(db: Session, owner_id: str) -> List[str]:
    rows = (
        db.query(ResumeRecord.id)
        .join(ResumeVersionRecord, ResumeVersionRecord.resume_id == ResumeRecord.id)
        .filter(ResumeRecord.owner_id == owner_id, ResumeRecord.deleted_at.is_(None))
        .group_by(ResumeRecord.id)
        .order_by(ResumeRecord.id)
        .all()
    )
    return [row[0] for row in rows]


def _require_resume(db: Session, owner_id: str, resume_id: str) -> ResumeRecord:
    record = (
        db.query(ResumeRecord)
        .filter(
            ResumeRecord.id == resume_id,
            ResumeRecord.owner_id == owner_id,
            ResumeRecord.deleted_at.is_(None),
        )
        .first()
    )
    if record is None:
        raise ResumeStoreError("Resume not found", status_code=404)
    return record


def _version_count(db: Session, resume_id: str) -> int:
    return (
        db.query(func.count(ResumeVersionRecord.id))
        .filter(ResumeVersionRecord.resume_id == resume_id)
        .scalar()
        or 0
    )


def _serialize_content(content: Any) -> str | None:
    if content is None:
        return None
    if isinstance(content, str):
        return content
    return json.dumps(content, ensure_ascii=False)


def _resume_from_record(record: ResumeRecord, version_count: int) -> models.Resume:
    return models.Resume(
        id=record.id,
        owner_id=record.owner_id,
        title=record.title,
        category=record.category,
        description=record.description,
        is_public=bool(record.is_public),
        content=record.content,
        created_at=_as_utc(record.created_at),
        updated_at=_as_utc(record.updated_at),
        version_count=version_count,
    )


def _version_from_record(record: ResumeVersionRecord) -> models.ResumeVersion:
    return models.ResumeVersion(
        id=record.id,
        resume_id=record.resume_id,
        version=record.version,
        content=record.content,
        commit_msg=record.commit_msg,
        created_at=_as_utc(record.created_at),
    )


def _utcnow() -> datetime:
    # Stored naive in UTC; SQLite drops tzinfo.
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
