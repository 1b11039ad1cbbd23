"""Prompt assembler: retrieved context + instructions + user request → prompt text.

Section order:
  1. ``# Project Context``
  2. ``## Relevant Files:`` (one fenced block per file; omitted when none)
  3. ``## Project Structure:`` (omitted when the outline is blank)
  4. ``# Instructions`` (file-tagging contract)
  5. mode guidance (refactor / test only)
  6. ``# User Request`` + the verbatim user message
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from artifactor.rag.retriever import ContextFile, RetrievedContext


class ChatMode(str, Enum):
    CHAT = "chat"
    REFACTOR = "refactor"
    TEST = "test"


INSTRUCTIONS = (
    "# Instructions\n\n"
    "You are helping develop a software project. When generating code:\n"
    "1. Generate complete, production-ready code\n"
    "2. Follow the existing project structure and conventions\n"
    "3. Include all necessary imports and dependencies\n"
    "4. Wrap each file in XML tags with path and language:\n\n"
    '<file path="src/components/Button.jsx" language="javascript">\n'
    "// file content here\n"
    "</file>\n\n"
    "5. You can generate multiple files in one response\n"
    "6. Make sure code is ready to run without modifications\n\n"
    "If you reason before answering, wrap that reasoning in "
    "<thinking>...</thinking> tags.\n\n"
)

MODE_GUIDANCE: dict[ChatMode, str] = {
    ChatMode.REFACTOR: "Focus on refactoring existing code while maintaining functionality.\n\n",
    ChatMode.TEST: "Generate comprehensive tests for the code.\n\n",
}


@dataclass
class PromptEnvelope:
    """Everything that goes into one prompt. Built per request, never persisted."""

    user_message: str
    context_files: list[ContextFile] = field(default_factory=list)
    structure_summary: str = ""
    instructions: str = INSTRUCTIONS
    mode: ChatMode = ChatMode.CHAT

    def render(self) -> str:
        parts = ["# Project Context\n\n"]

        if self.context_files:
            parts.append("## Relevant Files:\n\n")
            for f in self.context_files:
                parts.append(f"### {f.path}\n")
                parts.append(f"```{f.language or 'text'}\n")
                parts.append(f"{f.content}\n")
                parts.append("```\n\n")

        if self.structure_summary:
            parts.append(f"## Project Structure:\n```\n{self.structure_summary}\n```\n\n")

        parts.append(self.instructions)
        parts.append(MODE_GUIDANCE.get(self.mode, ""))
        parts.append(f"# User Request\n\n{self.user_message}")
        return "".join(parts)


def assemble(
    user_message: str,
    context: RetrievedContext,
    mode: ChatMode | str = ChatMode.CHAT,
) -> PromptEnvelope:
    """Build the prompt envelope for one chat turn.

    Raises:
        ValueError: If *mode* is not chat, refactor or test.
    """
    return PromptEnvelope(
        user_message=user_message,
        context_files=list(context.files),
        structure_summary=context.structure,
        mode=ChatMode(mode),
    )
