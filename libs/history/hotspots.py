from __future__ import annotations

from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple

from libs.core.models import ChangeType, Hotspot

DEFAULT_HOTSPOT_LIMIT = 8


def build_field_hotspots(commits: Iterable[Any], limit: Optional[int] = None) -> List[Hotspot]:
    by_field: Dict[str, Hotspot] = {}
    for field, change_type in _iter_changes(commits):
        hotspot = by_field.get(field)
        if hotspot is None:
            hotspot = by_field[field] = Hotspot(field=field)
        hotspot.count += 1
        if change_type == ChangeType.added:
            hotspot.added += 1
        elif change_type == ChangeType.removed:
            hotspot.removed += 1
        elif change_type == ChangeType.modified:
            hotspot.modified += 1
    ranked = sorted(by_field.values(), key=lambda item: (-item.count, item.field))
    if limit is not None and limit >= 0:
        return ranked[:limit]
    return ranked


def _iter_changes(commits: Iterable[Any]) -> Iterator[Tuple[str, Optional[ChangeType]]]:
    if commits is None or isinstance(commits, (str, bytes, Mapping)):
        return
    for commit in commits:
        changes = _read(commit, "changes")
        if not isinstance(changes, (list, tuple)):
            continue
        for change in changes:
            field = _read(change, "field")
            if not isinstance(field, str) or not field:
                continue
            yield field, _change_type(_read(change, "type"))


def _read(item: Any, name: str) -> Any:
    if isinstance(item, Mapping):
        return item.get(name)
    return getattr(item, name, None)


def _change_type(value: Any) -> Optional[ChangeType]:
    try:
        return ChangeType(value)
    except ValueError:
        return None
