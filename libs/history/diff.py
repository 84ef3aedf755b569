from __future__ import annotations

from typing import Dict, Iterable, List, Mapping, Optional

from libs.core.models import ChangeType, CommitStats, FieldChange


def diff_field_maps(
    before_map: Optional[Mapping[str, str]] = None,
    after_map: Optional[Mapping[str, str]] = None,
) -> List[FieldChange]:
    before_map = before_map if isinstance(before_map, Mapping) else {}
    after_map = after_map if isinstance(after_map, Mapping) else {}
    changes: List[FieldChange] = []
    fields = {key for key in before_map if isinstance(key, str)}
    fields.update(key for key in after_map if isinstance(key, str))
    for field in sorted(fields):
        before = _display_value(before_map.get(field))
        after = _display_value(after_map.get(field))
        if before == after:
            continue
        if field not in before_map:
            change_type = ChangeType.added
        elif field not in after_map:
            change_type = ChangeType.removed
        else:
            change_type = ChangeType.modified
        changes.append(FieldChange(field=field, before=before, after=after, type=change_type))
    return changes


def summarize_changes(changes: Iterable[FieldChange]) -> CommitStats:
    stats = CommitStats()
    for change in changes:
        if change.type == ChangeType.added:
            stats.added += 1
        elif change.type == ChangeType.removed:
            stats.removed += 1
        else:
            stats.modified += 1
    return stats


def apply_field_changes(
    field_map: Mapping[str, str], changes: Iterable[FieldChange]
) -> Dict[str, str]:
    result = dict(field_map)
    for change in changes:
        if change.type == ChangeType.removed:
            result.pop(change.field, None)
        else:
            result[change.field] = change.after
    return dict(sorted(result.items()))


def _display_value(value: object) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)
