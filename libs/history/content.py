from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Union

from .normalize import stringify_scalar

LOGGER = logging.getLogger(__name__)

_WHITESPACE_PATTERN = re.compile(r"\s+")


@dataclass(frozen=True)
class PersonalSection:
    key: str
    fields: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class TextSection:
    key: str
    text: Any = None


@dataclass(frozen=True)
class ListSection:
    key: str
    items: List[Any] = field(default_factory=list)


@dataclass(frozen=True)
class GenericSection:
    key: str
    content: Any = None


Section = Union[PersonalSection, TextSection, ListSection, GenericSection]


def parse_version_content(content: Any) -> Any:
    if content is None:
        return {}
    if isinstance(content, (bytes, bytearray)):
        content = content.decode("utf-8", errors="replace")
    if isinstance(content, str):
        try:
            return json.loads(content)
        except (ValueError, RecursionError):
            LOGGER.debug("version_content_invalid_json", extra={"length": len(content)})
            return {}
    if isinstance(content, (Mapping, list, tuple)):
        return content
    return {}


def section_key(section: Mapping[str, Any], index: int) -> str:
    raw = section.get("id") or section.get("title") or f"section-{index + 1}"
    text = raw if isinstance(raw, str) else stringify_scalar(raw)
    return _WHITESPACE_PATTERN.sub("_", text.strip()).lower()


def parse_section(raw: Any, index: int) -> Optional[Section]:
    if not isinstance(raw, Mapping):
        return None
    key = section_key(raw, index)
    section_type = raw.get("type")
    content = raw.get("content")
    if section_type == "personal" and isinstance(content, Mapping):
        return PersonalSection(key=key, fields=dict(content))
    if section_type == "text":
        return TextSection(key=key, text=content)
    if section_type == "list" and isinstance(content, (list, tuple)):
        return ListSection(key=key, items=list(content))
    return GenericSection(key=key, content=content)


def parse_sections(snapshot: Any) -> Optional[List[Section]]:
    if not isinstance(snapshot, Mapping):
        return None
    raw_sections = snapshot.get("sections")
    if not isinstance(raw_sections, list):
        return None
    sections: List[Section] = []
    for index, raw in enumerate(raw_sections):
        section = parse_section(raw, index)
        if section is not None:
            sections.append(section)
    return sections
