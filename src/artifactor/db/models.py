"""Domain models for the Artifactor relational store."""

from __future__ import annotations

import json
from dataclasses import dataclass, field


@dataclass
class Project:
    id: str
    name: str
    description: str = ""
    settings: str = field(default_factory=lambda: "{}")
    created_at: str | None = None
    updated_at: str | None = None
    last_accessed: str | None = None
    file_count: int = 0

    @property
    def settings_dict(self) -> dict:
        return json.loads(self.settings)


@dataclass
class FileRecord:
    id: str
    project_id: str
    path: str
    content: str | None = None  # None when listed without content
    language: str = ""
    size: int = 0
    created_at: str | None = None
    updated_at: str | None = None


@dataclass
class ChatSession:
    id: str
    project_id: str
    created_at: str | None = None
    updated_at: str | None = None


@dataclass
class ChatMessage:
    id: str
    session_id: str
    role: str
    content: str
    metadata: str = field(default_factory=lambda: "{}")
    created_at: str | None = None

    @property
    def metadata_dict(self) -> dict:
        return json.loads(self.metadata)
