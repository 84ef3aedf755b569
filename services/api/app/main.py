from __future__ import annotations

import os
import uuid
from functools import partial
from time import perf_counter
from typing import Any, Generator, List, Optional

from fastapi import Depends, FastAPI, Header, HTTPException, Query, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import Counter, Histogram, make_asgi_app
from sqlalchemy.orm import Session

from libs import history
from libs.core import logging as core_logging, models
from . import resume_store
from .database import Base, SessionLocal, engine
from .resume_store import ResumeStoreError

core_logging.configure_logging("api")
LOGGER = core_logging.get_logger("api")


def _parse_optional_int(value: str | None) -> int | None:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except ValueError:
        return None


CONTRIBUTION_WINDOW_DAYS = (
    _parse_optional_int(os.getenv("CONTRIBUTION_WINDOW_DAYS")) or history.DEFAULT_DAYS_TO_SHOW
)
HISTORY_HOTSPOT_LIMIT = _parse_optional_int(os.getenv("HISTORY_HOTSPOT_LIMIT"))
if HISTORY_HOTSPOT_LIMIT is None:
    HISTORY_HOTSPOT_LIMIT = history.DEFAULT_HOTSPOT_LIMIT
ACTIVITY_FETCH_WORKERS = (
    _parse_optional_int(os.getenv("ACTIVITY_FETCH_WORKERS")) or history.DEFAULT_FETCH_WORKERS
)
MAX_WINDOW_DAYS = 3660

app = FastAPI(title="Resume History API")

cors_origins = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "http://localhost:5173,http://localhost:3000").split(",")
    if origin.strip()
]
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

metrics_app = make_asgi_app()
app.mount("/metrics", metrics_app)

resume_versions_created_total = Counter(
    "resume_versions_created_total", "Resume versions created"
)
history_views_total = Counter("history_views_total", "History views served", ["view"])
activity_fetch_failures_total = Counter(
    "activity_fetch_failures_total", "Per-resume version fetches that failed during aggregation"
)
history_build_seconds = Histogram("history_build_seconds", "Time spent building history views")


@app.on_event("startup")
def _init_db() -> None:
    Base.metadata.create_all(bind=engine)


@app.middleware("http")
async def _request_context(request: Request, call_next):
    core_logging.bind_request_context(
        request_id=request.headers.get("x-request-id") or str(uuid.uuid4()),
        path=request.url.path,
    )
    try:
        return await call_next(request)
    finally:
        core_logging.clear_request_context()


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_owner_id(x_user_id: Optional[str] = Header(default=None)) -> str:
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(status_code=401, detail="Unauthorized")
    return x_user_id.strip()


def _http_error(error: ResumeStoreError) -> HTTPException:
    return HTTPException(status_code=error.status_code, detail=error.detail)


def _window_days(days: int | None) -> int:
    return days if days is not None else CONTRIBUTION_WINDOW_DAYS


@app.get("/healthz")
def healthz() -> dict[str, str]:
    return {"status": "ok"}


@app.post("/resumes", response_model=models.Resume, status_code=201)
def create_resume(
    payload: models.ResumeCreate,
    owner_id: str = Depends(get_owner_id),
    db: Session = Depends(get_db),
) -> models.Resume:
    resume = resume_store.create_resume(db, owner_id, payload)
    LOGGER.info("resume_created", resume_id=resume.id, owner_id=owner_id)
    return resume


@app.get("/resumes", response_model=List[models.Resume])
def list_resumes(
    owner_id: str = Depends(get_owner_id), db: Session = Depends(get_db)
) -> List[models.Resume]:
    return resume_store.list_resumes(db, owner_id)


@app.post("/resumes/versions", response_model=models.ResumeVersion, status_code=201)
def create_version(
    payload: models.VersionCreate,
    owner_id: str = Depends(get_owner_id),
    db: Session = Depends(get_db),
) -> models.ResumeVersion:
    try:
        version = resume_store.create_version(db, owner_id, payload)
    except ResumeStoreError as exc:
        raise _http_error(exc) from exc
    resume_versions_created_total.inc()
    core_logging.log_event(
        LOGGER,
        "version_created",
        {"resume_id": version.resume_id, "version_id": version.id, "version": version.version},
    )
    return version


@app.get("/resumes/diff", response_model=models.VersionDiff)
def get_diff(
    version_id1: Optional[str] = Query(default=None, alias="versionId1"),
    version_id2: Optional[str] = Query(default=None, alias="versionId2"),
    owner_id: str = Depends(get_owner_id),
    db: Session = Depends(get_db),
) -> models.VersionDiff:
    if not version_id1 or not version_id2:
        raise HTTPException(status_code=400, detail="Invalid version IDs provided")
    try:
        first, second = resume_store.get_version_pair(db, owner_id, version_id1, version_id2)
    except ResumeStoreError as exc:
        raise _http_error(exc) from exc
    comparison = history.compare_versions(first, second)
    history_views_total.labels(view="diff").inc()
    return models.VersionDiff(
        version1=first,
        version2=second,
        changes=comparison.changes,
        stats=comparison.stats,
        total_changed_fields=comparison.total_changed_fields,
    )


@app.get("/resumes/{resume_id}", response_model=models.Resume)
def get_resume(
    resume_id: str, owner_id: str = Depends(get_owner_id), db: Session = Depends(get_db)
) -> models.Resume:
    try:
        return resume_store.get_resume(db, owner_id, resume_id)
    except ResumeStoreError as exc:
        raise _http_error(exc) from exc


@app.put("/resumes/{resume_id}", response_model=models.Resume)
def update_resume(
    resume_id: str,
    payload: models.ResumeUpdate,
    owner_id: str = Depends(get_owner_id),
    db: Session = Depends(get_db),
) -> models.Resume:
    try:
        return resume_store.update_resume(db, owner_id, resume_id, payload)
    except ResumeStoreError as exc:
        raise _http_error(exc) from exc


@app.delete("/resumes/{resume_id}", status_code=204)
def delete_resume(
    resume_id: str, owner_id: str = Depends(get_owner_id), db: Session = Depends(get_db)
) -> Response:
    try:
        resume_store.delete_resume(db, owner_id, resume_id)
    except ResumeStoreError as exc:
        raise _http_error(exc) from exc
    LOGGER.info("resume_deleted", resume_id=resume_id, owner_id=owner_id)
    return Response(status_code=204)


@app.get("/resumes/{resume_id}/versions", response_model=List[models.ResumeVersion])
def list_versions(
    resume_id: str, owner_id: str = Depends(get_owner_id), db: Session = Depends(get_db)
) -> List[models.ResumeVersion]:
    try:
        return resume_store.list_versions(db, owner_id, resume_id)
    except ResumeStoreError as exc:
        raise _http_error(exc) from exc


@app.get("/resumes/{resume_id}/history", response_model=models.ResumeHistory)
def get_resume_history(
    resume_id: str,
    days: Optional[int] = Query(default=None, ge=1, le=MAX_WINDOW_DAYS),
    hotspots: Optional[int] = Query(default=None, ge=0),
    owner_id: str = Depends(get_owner_id),
    db: Session = Depends(get_db),
) -> models.ResumeHistory:
    try:
        resume = resume_store.get_resume(db, owner_id, resume_id)
        versions = resume_store.list_versions(db, owner_id, resume_id)
    except ResumeStoreError as exc:
        raise _http_error(exc) from exc
    started = perf_counter()
    commits = history.build_field_change_commits(versions)
    hotspot_limit = hotspots if hotspots is not None else HISTORY_HOTSPOT_LIMIT
    result = models.ResumeHistory(
        resume_id=resume.id,
        title=resume.title,
        commits=commits,
        hotspots=history.build_field_hotspots(commits, limit=hotspot_limit),
        total_fields_touched=history.count_touched_fields(commits),
        contributions=history.build_contribution_data_from_versions(
            versions, _window_days(days)
        ),
    )
    history_build_seconds.observe(perf_counter() - started)
    history_views_total.labels(view="history").inc()
    LOGGER.info(
        "history_built",
        resume_id=resume_id,
        commits=len(commits),
        fields_touched=result.total_fields_touched,
    )
    return result


@app.get("/resumes/{resume_id}/contributions", response_model=models.ContributionDataset)
def get_resume_contributions(
    resume_id: str,
    days: Optional[int] = Query(default=None, ge=1, le=MAX_WINDOW_DAYS),
    owner_id: str = Depends(get_owner_id),
    db: Session = Depends(get_db),
) -> models.ContributionDataset:
    try:
        versions = resume_store.list_versions(db, owner_id, resume_id)
    except ResumeStoreError as exc:
        raise _http_error(exc) from exc
    history_views_total.labels(view="contributions").inc()
    return history.build_contribution_data_from_versions(versions, _window_days(days))


def _fetch_versions(owner_id: str, resume_id: str) -> List[models.ResumeVersion]:
    with SessionLocal() as db:
        return resume_store.list_versions(db, owner_id, resume_id)


@app.get("/profile/activity", response_model=models.ProfileActivity)
def get_profile_activity(
    days: Optional[int] = Query(default=None, ge=1, le=MAX_WINDOW_DAYS),
    owner_id: str = Depends(get_owner_id),
    db: Session = Depends(get_db),
) -> models.ProfileActivity:
    resume_ids = resume_store.resume_ids_with_versions(db, owner_id)
    collected = history.collect_version_lists(
        resume_ids,
        partial(_fetch_versions, owner_id),
        max_workers=ACTIVITY_FETCH_WORKERS,
    )
    if collected.failed_keys:
        activity_fetch_failures_total.inc(len(collected.failed_keys))
        LOGGER.warning(
            "activity_partial_failure",
            owner_id=owner_id,
            failed_resume_ids=collected.failed_keys,
        )
    version_lists: List[List[Any]] = collected.version_lists
    history_views_total.labels(view="activity").inc()
    return models.ProfileActivity(
        contributions=history.build_contribution_data_from_version_lists(
            version_lists, _window_days(days)
        ),
        total_commits=sum(len(versions) for versions in version_lists),
        latest_commit_at=history.latest_commit_at(version_lists),
        resumes_with_versions=len(resume_ids),
        failed_resume_ids=collected.failed_keys,
    )
