from __future__ import annotations

import math
from typing import Any, Callable, Iterable, List, Mapping, Optional, Tuple

from libs.core.models import Commit, Version, VersionComparison

from .diff import diff_field_maps, summarize_changes
from .flatten import FieldMap, flatten_resume_fields
from .timestamps import parse_timestamp, to_epoch_seconds

HASH_LENGTH = 8
UNKNOWN_HASH = "unknown"


def coerce_version(raw: Any) -> Version:
    if isinstance(raw, Version):
        return raw
    if isinstance(raw, Mapping):
        getter: Callable[[str], Any] = raw.get
    else:
        getter = lambda name: getattr(raw, name, None)  # noqa: E731
    identifier = getter("id")
    commit_msg = _first_present(getter, "commitMsg", "commit_msg")
    return Version(
        id=None if identifier is None or identifier == "" else str(identifier),
        version=_version_number(getter("version")),
        content=getter("content"),
        commit_msg=commit_msg if isinstance(commit_msg, str) else None,
        created_at=parse_timestamp(_first_present(getter, "createdAt", "created_at")),
    )


def version_sort_key(version: Version) -> Tuple[int, int, float]:
    created = to_epoch_seconds(version.created_at)
    if version.version is not None:
        return (0, version.version, created)
    return (1, 0, created)


def sort_versions_ascending(versions: Iterable[Any]) -> List[Version]:
    return sorted((coerce_version(raw) for raw in _safe_iter(versions)), key=version_sort_key)


def build_field_change_commits(versions: Iterable[Any]) -> List[Commit]:
    ordered = sort_versions_ascending(versions)
    field_maps = [flatten_resume_fields(version.content) for version in ordered]

    entries: List[Tuple[Version, Commit]] = []
    previous: FieldMap = {}
    for position, (version, field_map) in enumerate(zip(ordered, field_maps), start=1):
        changes = diff_field_maps(previous, field_map)
        number = version.version if version.version is not None else position
        commit = Commit(
            id=version.id,
            version=version.version,
            created_at=version.created_at,
            message=version.commit_msg or f"Version {number}",
            hash=version.id[:HASH_LENGTH] if version.id else UNKNOWN_HASH,
            changes=changes,
            stats=summarize_changes(changes),
            total_changed_fields=len(changes),
        )
        entries.append((version, commit))
        previous = field_map

    entries.sort(key=lambda entry: version_sort_key(entry[0]), reverse=True)
    return [commit for _, commit in entries]


def compare_versions(before: Any, after: Any) -> VersionComparison:
    before_fields = flatten_resume_fields(coerce_version(before).content)
    after_fields = flatten_resume_fields(coerce_version(after).content)
    changes = diff_field_maps(before_fields, after_fields)
    return VersionComparison(
        changes=changes,
        stats=summarize_changes(changes),
        total_changed_fields=len(changes),
    )


def count_touched_fields(commits: Iterable[Commit]) -> int:
    return len({change.field for commit in _safe_iter(commits) for change in commit.changes})


def _version_number(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and math.isfinite(value) and value.is_integer():
        return int(value)
    return None


def _first_present(getter: Callable[[str], Any], *names: str) -> Any:
    for name in names:
        value = getter(name)
        if value is not None:
            return value
    return None


def _safe_iter(values: Any) -> Iterable[Any]:
    if values is None or isinstance(values, (str, bytes, Mapping)):
        return ()
    try:
        return list(values)
    except TypeError:
        return ()
