from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Callable, List, Sequence

LOGGER = logging.getLogger(__name__)

DEFAULT_FETCH_WORKERS = 4


@dataclass
class VersionListResult:
    version_lists: List[List[Any]] = field(default_factory=list)
    failed_keys: List[str] = field(default_factory=list)


def collect_version_lists(
    keys: Sequence[str],
    fetch: Callable[[str], Any],
    max_workers: int = DEFAULT_FETCH_WORKERS,
) -> VersionListResult:
    result = VersionListResult()
    if not keys:
        return result
    workers = max(1, min(max_workers, len(keys)))
    with ThreadPoolExecutor(max_workers=workers) as pool:
        futures = [(key, pool.submit(fetch, key)) for key in keys]
        for key, future in futures:
            try:
                versions = future.result()
            except Exception as exc:  # noqa: BLE001
                LOGGER.warning("version_fetch_failed", extra={"key": key, "error": str(exc)})
                result.failed_keys.append(key)
                continue
            result.version_lists.append(list(versions) if isinstance(versions, (list, tuple)) else [])
    return result
