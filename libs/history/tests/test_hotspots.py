from __future__ import annotations

from libs.history.commits import build_field_change_commits
from libs.history.hotspots import build_field_hotspots


def _history() -> list:
    return build_field_change_commits(
        [
            {"id": "1", "version": 1, "content": {"title": "CV", "summary": "A"}},
            {"id": "2", "version": 2, "content": {"title": "CV", "summary": "B", "email": "x@y"}},
            {"id": "3", "version": 3, "content": {"title": "Resume", "summary": "C"}},
        ]
    )


def test_hotspots_rank_by_count_then_field_name() -> None:
    hotspots = build_field_hotspots(_history())
    assert [(h.field, h.count) for h in hotspots] == [
        ("summary", 3),
        ("email", 2),
        ("title", 2),
    ]
    summary = hotspots[0]
    assert (summary.added, summary.modified, summary.removed) == (1, 2, 0)
    email = hotspots[1]
    assert (email.added, email.removed) == (1, 1)


def test_hotspot_counts_conserve_total_changes() -> None:
    commits = _history()
    hotspots = build_field_hotspots(commits)
    assert sum(h.count for h in hotspots) == sum(c.total_changed_fields for c in commits)


def test_hotspot_limit_truncates_after_sorting() -> None:
    hotspots = build_field_hotspots(_history(), limit=1)
    assert [h.field for h in hotspots] == ["summary"]


def test_hotspots_accept_plain_dicts_and_skip_bad_entries() -> None:
    commits = [
        {"changes": [{"field": "a", "type": "added"}, {"field": "", "type": "added"}, "junk"]},
        {"changes": "not a list"},
        None,
        {"changes": [{"field": "a", "type": "modified"}]},
    ]
    hotspots = build_field_hotspots(commits)
    assert [h.model_dump() for h in hotspots] == [
        {"field": "a", "count": 2, "added": 1, "removed": 0, "modified": 1}
    ]


def test_hotspots_are_stateless_between_calls() -> None:
    commits = _history()
    assert build_field_hotspots(commits) == build_field_hotspots(commits)
    assert build_field_hotspots([]) == []
