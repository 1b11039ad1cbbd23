"""Request bodies (camelCase on the wire) and response serializers."""

from __future__ import annotations

from dataclasses import asdict
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from artifactor.db.models import ChatMessage, FileRecord, Project
from artifactor.rag.retriever import ContextFile


class _Body(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class ProjectCreate(_Body):
    name: str = Field(min_length=1)
    description: str = ""
    settings: dict = Field(default_factory=dict)


class ProjectUpdate(_Body):
    name: str | None = None
    description: str | None = None
    settings: dict | None = None


class FileItem(_Body):
    path: str = Field(min_length=1)
    content: str
    language: str | None = None


class FileUpdate(FileItem):
    project_id: str = Field(min_length=1)


class FileBatch(_Body):
    project_id: str = Field(min_length=1)
    files: list[FileItem]


class FileSearch(_Body):
    project_id: str = Field(min_length=1)
    query: str = Field(min_length=1)
    limit: int = Field(default=5, ge=1, le=50)


class FileRename(_Body):
    project_id: str = Field(min_length=1)
    old_path: str = Field(min_length=1)
    new_path: str = Field(min_length=1)


class Reindex(_Body):
    project_id: str = Field(min_length=1)


class ChatSend(_Body):
    project_id: str = Field(min_length=1)
    message: str = Field(min_length=1)
    context: Literal["relevant", "all"] = "relevant"
    mode: Literal["chat", "refactor", "test"] = "chat"


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


def project_out(project: Project) -> dict:
    data = asdict(project)
    data["settings"] = project.settings_dict
    return data


def file_out(record: FileRecord) -> dict:
    data = asdict(record)
    if record.content is None:
        data.pop("content")
    return data


def message_out(message: ChatMessage) -> dict:
    data = asdict(message)
    data["metadata"] = message.metadata_dict
    return data


def context_file_out(f: ContextFile) -> dict:
    return {
        "path": f.path,
        "language": f.language,
        "content": f.content,
        "score": f.relevance_score,
    }
