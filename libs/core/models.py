from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ChangeType(str, Enum):
    added = "added"
    removed = "removed"
    modified = "modified"


class Version(ApiModel):
    id: Optional[str] = None
    version: Optional[int] = None
    content: Any = None
    commit_msg: Optional[str] = None
    created_at: Optional[datetime] = None


class FieldChange(ApiModel):
    field: str
    before: str = ""
    after: str = ""
    type: ChangeType


class CommitStats(ApiModel):
    added: int = 0
    removed: int = 0
    modified: int = 0


class Commit(ApiModel):
    id: Optional[str] = None
    version: Optional[int] = None
    created_at: Optional[datetime] = None
    message: str
    hash: str
    changes: List[FieldChange] = Field(default_factory=list)
    stats: CommitStats = Field(default_factory=CommitStats)
    total_changed_fields: int = 0


class VersionComparison(ApiModel):
    changes: List[FieldChange] = Field(default_factory=list)
    stats: CommitStats = Field(default_factory=CommitStats)
    total_changed_fields: int = 0


class Hotspot(ApiModel):
    field: str
    count: int = 0
    added: int = 0
    removed: int = 0
    modified: int = 0


class ContributionCell(ApiModel):
    date_key: Optional[str] = None
    count: int = 0
    in_range: bool = False
    level: int = 0


class ContributionDataset(ApiModel):
    # Whole weeks; trailing cells with no date_key pad the final week after today.
    cells: List[ContributionCell] = Field(default_factory=list)
    total_commits: int = 0
    active_days: int = 0
    max_commits: int = 0
    streak: int = 0


class ResumeCreate(ApiModel):
    title: str
    category: Optional[str] = Field(default=None, max_length=64)
    description: Optional[str] = None
    is_public: bool = False
    content: Optional[str] = None


class ResumeUpdate(ApiModel):
    title: Optional[str] = None
    category: Optional[str] = Field(default=None, max_length=64)
    description: Optional[str] = None
    is_public: Optional[bool] = None
    content: Optional[str] = None


class Resume(ApiModel):
    id: str
    owner_id: str
    title: str
    category: Optional[str] = None
    description: Optional[str] = None
    is_public: bool = False
    content: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    version_count: int = 0


class VersionCreate(ApiModel):
    resume_id: str
    content: Any = None
    commit_msg: Optional[str] = None


class ResumeVersion(ApiModel):
    id: str
    resume_id: str
    version: int
    content: Optional[str] = None
    commit_msg: Optional[str] = None
    created_at: datetime


class VersionDiff(ApiModel):
    version1: ResumeVersion
    version2: ResumeVersion
    changes: List[FieldChange] = Field(default_factory=list)
    stats: CommitStats = Field(default_factory=CommitStats)
    total_changed_fields: int = 0


class ResumeHistory(ApiModel):
    resume_id: str
    title: str
    commits: List[Commit] = Field(default_factory=list)
    hotspots: List[Hotspot] = Field(default_factory=list)
    total_fields_touched: int = 0
    contributions: ContributionDataset = Field(default_factory=ContributionDataset)


class ProfileActivity(ApiModel):
    contributions: ContributionDataset = Field(default_factory=ContributionDataset)
    total_commits: int = 0
    latest_commit_at: Optional[datetime] = None
    resumes_with_versions: int = 0
    failed_resume_ids: List[str] = Field(default_factory=list)
