from __future__ import annotations

import logging
from typing import Any, Dict, Mapping

from .content import (
    GenericSection,
    ListSection,
    PersonalSection,
    Section,
    TextSection,
    parse_sections,
    parse_version_content,
)
from .normalize import to_comparable_string

LOGGER = logging.getLogger(__name__)

FieldMap = Dict[str, str]

MAX_FLATTEN_DEPTH = 32


def flatten_resume_fields(snapshot: Any) -> FieldMap:
    content = parse_version_content(snapshot)
    output: FieldMap = {}
    sections = parse_sections(content)
    if sections is not None:
        for section in sections:
            _flatten_section(section, output)
    elif isinstance(content, (Mapping, list, tuple)):
        flatten_generic(content, "", output)
    return dict(sorted(output.items()))


def _flatten_section(section: Section, output: FieldMap) -> None:
    if isinstance(section, PersonalSection):
        for field_key, value in section.fields.items():
            _put(output, f"{section.key}.{field_key}", value)
    elif isinstance(section, TextSection):
        _put(output, section.key, section.text)
    elif isinstance(section, ListSection):
        for position, item in enumerate(section.items, start=1):
            item_prefix = f"{section.key}[{position}]"
            if isinstance(item, Mapping):
                for field_key, value in item.items():
                    if field_key == "id":
                        continue
                    _put(output, f"{item_prefix}.{field_key}", value)
            else:
                _put(output, item_prefix, item)
    elif isinstance(section, GenericSection):
        flatten_generic(section.content, section.key, output)


def flatten_generic(value: Any, prefix: str, output: FieldMap, depth: int = 0) -> None:
    if value is None:
        return
    if depth > MAX_FLATTEN_DEPTH:
        LOGGER.debug("flatten_depth_exceeded", extra={"prefix": prefix})
        return
    if isinstance(value, (list, tuple)):
        for position, entry in enumerate(value, start=1):
            flatten_generic(entry, f"{prefix}[{position}]", output, depth + 1)
        return
    if isinstance(value, Mapping):
        for key, nested in value.items():
            next_prefix = f"{prefix}.{key}" if prefix else str(key)
            flatten_generic(nested, next_prefix, output, depth + 1)
        return
    if prefix:
        _put(output, prefix, value)


def _put(output: FieldMap, path: str, value: Any) -> None:
    if not path:
        return
    try:
        normalized = to_comparable_string(value)
    except RecursionError:
        LOGGER.debug("field_value_too_deep", extra={"path": path})
        return
    if normalized:
        output[path] = normalized
