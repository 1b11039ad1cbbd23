"""Chat turn pipeline.

send(): retrieve → assemble → model call → parse → persist files → re-index.
Retrieval failures degrade to an empty context; model and persistence
failures propagate to the caller.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field

from artifactor.db.models import ChatMessage
from artifactor.db.repository import Repository
from artifactor.rag.assembler import ChatMode, assemble
from artifactor.rag.indexer import ContextIndexer
from artifactor.rag.orchestrator import Orchestrator
from artifactor.rag.parser import GeneratedFile, parse
from artifactor.rag.retriever import ContextRetriever
from artifactor.workspace.files import DEFAULT_LANGUAGE
from artifactor.workspace.paths import normalize_path

logger = logging.getLogger(__name__)

CONTEXT_MODES = frozenset(["relevant", "all"])


@dataclass
class ChatResult:
    message: str
    session_id: str
    generated_files: list[GeneratedFile] = field(default_factory=list)
    thinking: str | None = None


class ChatService:
    """Runs chat turns for a project and serves its history."""

    def __init__(
        self,
        repo: Repository,
        retriever: ContextRetriever,
        indexer: ContextIndexer,
        orchestrator: Orchestrator,
        *,
        model: str,
        top_k: int = 5,
        top_k_all: int = 10,
    ) -> None:
        self._repo = repo
        self._retriever = retriever
        self._indexer = indexer
        self._orchestrator = orchestrator
        self._model = model
        self._top_k = top_k
        self._top_k_all = top_k_all

    def send(
        self,
        project_id: str,
        message: str,
        context_mode: str = "relevant",
        mode: str = "chat",
    ) -> ChatResult:
        """Run one chat turn.

        Args:
            project_id: Target project.
            message: The user's message, sent to the model verbatim.
            context_mode: 'relevant' (top_k files) or 'all' (top_k_all files).
            mode: Prompt mode: chat, refactor or test.

        Returns:
            ChatResult with the cleaned assistant message and the files written.

        Raises:
            ValueError: On a blank message or unknown mode.
            NotFoundError: If the project does not exist.
            OrchestratorError: If the model call fails.
        """
        if not message or not message.strip():
            raise ValueError("Message is required")
        chat_mode = ChatMode(mode)
        if context_mode not in CONTEXT_MODES:
            raise ValueError(f"context must be one of {sorted(CONTEXT_MODES)}, got '{context_mode}'")
        self._repo.get_project(project_id)

        logger.info("Chat request for project %s (mode=%s)", project_id, chat_mode.value)
        session = self._repo.get_or_create_session(project_id)
        self._repo.add_message(session.id, "user", message)

        top_k = self._top_k_all if context_mode == "all" else self._top_k
        context = self._retriever.retrieve(project_id, message, top_k=top_k)
        prompt = assemble(message, context, chat_mode).render()

        raw = self._orchestrator.chat(project_id, prompt, chat_mode.value, self._model)
        parsed = parse(raw)
        files = _accept_files(parsed.files)

        assistant = self._repo.add_message(
            session.id,
            "assistant",
            parsed.cleaned_message,
            {"files": [asdict(f) for f in files]},
        )

        if files:
            saved = []
            for f in files:
                existed = self._repo.file_exists(project_id, f.path)
                record = self._repo.save_file(project_id, f.path, f.content, f.language)
                saved.append(record)
                self._repo.log_generated_file(
                    assistant.id, record.id, "update" if existed else "create"
                )
            self._indexer.index(project_id, saved)
            logger.info("Generated %d file(s) for project %s", len(saved), project_id)

        return ChatResult(
            message=parsed.cleaned_message,
            session_id=session.id,
            generated_files=files,
            thinking=parsed.thinking,
        )

    def history(self, project_id: str, limit: int = 50, offset: int = 0) -> list[ChatMessage]:
        """Return a page of chat history, oldest message first."""
        if limit < 1 or offset < 0:
            raise ValueError("limit must be >= 1 and offset >= 0")
        return self._repo.list_messages(project_id, limit=limit, offset=offset)

    def delete_session(self, session_id: str) -> None:
        self._repo.delete_session(session_id)


def _accept_files(files: list[GeneratedFile]) -> list[GeneratedFile]:
    accepted: list[GeneratedFile] = []
    for f in files:
        try:
            path = normalize_path(f.path)
        except ValueError as exc:
            logger.warning("Skipping generated file with unsafe path %r: %s", f.path, exc)
            continue
        accepted.append(
            GeneratedFile(path=path, language=f.language or DEFAULT_LANGUAGE, content=f.content)
        )
    return accepted
