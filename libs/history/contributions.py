from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Any, Dict, Iterable, List, Mapping, Optional

from libs.core.models import ContributionCell, ContributionDataset

from .timestamps import parse_timestamp, to_epoch_seconds, to_local_date

DEFAULT_DAYS_TO_SHOW = 365
DEFAULT_WEEKS_TO_SHOW = 53
DAYS_IN_WEEK = 7

CountsByDate = Dict[str, int]


def weeks_to_days(weeks: int) -> int:
    return max(int(weeks), 1) * DAYS_IN_WEEK


def to_date_key(value: Any) -> Optional[str]:
    local_date = to_local_date(value)
    if local_date is None:
        return None
    return local_date.isoformat()


def contribution_level(count: int, max_count: int) -> int:
    if count <= 0 or max_count <= 0:
        return 0
    if max_count == 1:
        return 4
    ratio = count / max_count
    if ratio < 0.25:
        return 1
    if ratio < 0.5:
        return 2
    if ratio < 0.75:
        return 3
    return 4


def create_contribution_data(
    counts_by_date: Optional[Mapping[str, Any]] = None,
    days_to_show: int = DEFAULT_DAYS_TO_SHOW,
    *,
    today: Optional[date] = None,
) -> ContributionDataset:
    counts = _clean_counts(counts_by_date)
    end = _resolve_today(today)
    window_days = max(_as_int(days_to_show, DEFAULT_DAYS_TO_SHOW), 1)
    start = end - timedelta(days=window_days - 1)
    # Sunday on or before the window start; weekday() counts Monday as 0.
    grid_start = start - timedelta(days=(start.weekday() + 1) % DAYS_IN_WEEK)

    total_commits = 0
    active_days = 0
    max_commits = 0
    cells: List[ContributionCell] = []
    cursor = grid_start
    while cursor <= end:
        in_range = start <= cursor <= end
        date_key = cursor.isoformat()
        count = counts.get(date_key, 0) if in_range else 0
        if in_range:
            total_commits += count
            if count > 0:
                active_days += 1
            max_commits = max(max_commits, count)
        cells.append(ContributionCell(date_key=date_key, count=count, in_range=in_range))
        cursor += timedelta(days=1)

    for cell in cells:
        cell.level = contribution_level(cell.count, max_commits) if cell.in_range else 0

    # Trailing placeholders carry no date; the last dated cell is today.
    while len(cells) % DAYS_IN_WEEK:
        cells.append(ContributionCell())

    return ContributionDataset(
        cells=cells,
        total_commits=total_commits,
        active_days=active_days,
        max_commits=max_commits,
        streak=calculate_streak(counts, start, end),
    )


def calculate_streak(counts_by_date: Mapping[str, int], start: date, end: date) -> int:
    streak = 0
    cursor = end
    while cursor >= start:
        if counts_by_date.get(cursor.isoformat(), 0) <= 0:
            break
        streak += 1
        cursor -= timedelta(days=1)
    return streak


def count_versions_by_date(versions: Iterable[Any], counts: Optional[CountsByDate] = None) -> CountsByDate:
    counts = {} if counts is None else counts
    if versions is None or isinstance(versions, (str, bytes, Mapping)):
        return counts
    for version in versions:
        date_key = to_date_key(_created_at(version))
        if date_key is None:
            continue
        counts[date_key] = counts.get(date_key, 0) + 1
    return counts


def build_contribution_data_from_versions(
    versions: Iterable[Any],
    days_to_show: int = DEFAULT_DAYS_TO_SHOW,
    *,
    today: Optional[date] = None,
) -> ContributionDataset:
    return create_contribution_data(count_versions_by_date(versions), days_to_show, today=today)


def build_contribution_data_from_version_lists(
    version_lists: Iterable[Any],
    days_to_show: int = DEFAULT_DAYS_TO_SHOW,
    *,
    today: Optional[date] = None,
) -> ContributionDataset:
    counts: CountsByDate = {}
    for versions in version_lists or ():
        if isinstance(versions, (list, tuple)):
            count_versions_by_date(versions, counts)
    return create_contribution_data(counts, days_to_show, today=today)


def latest_commit_at(version_lists: Iterable[Any]) -> Optional[datetime]:
    latest: Optional[datetime] = None
    latest_seconds = 0.0
    for versions in version_lists or ():
        if not isinstance(versions, (list, tuple)):
            continue
        for version in versions:
            created = parse_timestamp(_created_at(version))
            if created is None:
                continue
            seconds = to_epoch_seconds(created)
            if latest is None or seconds > latest_seconds:
                latest, latest_seconds = created, seconds
    return latest


def _created_at(version: Any) -> Any:
    if isinstance(version, Mapping):
        value = version.get("createdAt")
        return value if value is not None else version.get("created_at")
    return getattr(version, "created_at", None)


def _resolve_today(today: Optional[date]) -> date:
    if isinstance(today, datetime):
        return today.date()
    if isinstance(today, date):
        return today
    return date.today()


def _clean_counts(counts_by_date: Optional[Mapping[str, Any]]) -> CountsByDate:
    if not isinstance(counts_by_date, Mapping):
        return {}
    cleaned: CountsByDate = {}
    for key, value in counts_by_date.items():
        if not isinstance(key, str):
            continue
        count = _as_int(value, 0)
        if count > 0:
            cleaned[key] = count
    return cleaned


def _as_int(value: Any, default: int) -> int:
    if isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return default
