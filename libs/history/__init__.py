from .activity import DEFAULT_FETCH_WORKERS, VersionListResult, collect_version_lists
from .commits import (
    build_field_change_commits,
    coerce_version,
    compare_versions,
    count_touched_fields,
    sort_versions_ascending,
)
from .contributions import (
    DEFAULT_DAYS_TO_SHOW,
    DEFAULT_WEEKS_TO_SHOW,
    build_contribution_data_from_version_lists,
    build_contribution_data_from_versions,
    create_contribution_data,
    latest_commit_at,
    to_date_key,
    weeks_to_days,
)
from .diff import apply_field_changes, diff_field_maps
from .flatten import flatten_resume_fields
from .hotspots import DEFAULT_HOTSPOT_LIMIT, build_field_hotspots
from .normalize import strip_html, to_comparable_string

__all__ = [
    "DEFAULT_DAYS_TO_SHOW",
    "DEFAULT_FETCH_WORKERS",
    "DEFAULT_HOTSPOT_LIMIT",
    "DEFAULT_WEEKS_TO_SHOW",
    "VersionListResult",
    "apply_field_changes",
    "build_contribution_data_from_version_lists",
    "build_contribution_data_from_versions",
    "build_field_change_commits",
    "build_field_hotspots",
    "coerce_version",
    "collect_version_lists",
    "compare_versions",
    "count_touched_fields",
    "create_contribution_data",
    "diff_field_maps",
    "flatten_resume_fields",
    "latest_commit_at",
    "sort_versions_ascending",
    "strip_html",
    "to_comparable_string",
    "to_date_key",
    "weeks_to_days",
]
