"""Response parser: pull tagged files and reasoning out of a model answer.

Wire format::

    <file path="src/App.jsx" language="javascript">...</file>
    <thinking>...</thinking>

File blocks are found by a left-to-right scan rather than one regex over the
whole text, so malformed input has well-defined results:

- an open tag without a later ``</file>`` stays in the message as plain text;
- if another well-formed open tag appears before the close, the outer tag is
  left as text and scanning resumes at the inner one;
- a block whose path is blank is left as text.

parse() never raises.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

_OPEN_TAG_RE = re.compile(r'<file\s+path="([^"]*)"\s*,?\s*language="([^"]*)"\s*>')
_CLOSE_TAG = "</file>"
_THINKING_RE = re.compile(r"<thinking>([\s\S]*?)</thinking>")
_BLANK_LINES_RE = re.compile(r"\n{3,}")


@dataclass
class GeneratedFile:
    path: str
    language: str
    content: str


@dataclass
class ParsedResponse:
    """Result of parsing one model answer.

    Attributes:
        cleaned_message: Conversational text with file and thinking blocks removed.
        files: Extracted files in order of appearance.
        thinking: Body of the first thinking block, or None.
    """

    cleaned_message: str
    files: list[GeneratedFile] = field(default_factory=list)
    thinking: str | None = None


def _scan_files(text: str) -> tuple[list[GeneratedFile], str]:
    files: list[GeneratedFile] = []
    kept: list[str] = []
    pos = 0  # start of text not yet copied to kept
    cursor = 0  # where to look for the next open tag

    while True:
        start = text.find("<file", cursor)
        if start == -1:
            break
        opener = _OPEN_TAG_RE.match(text, start)
        if opener is None:
            cursor = start + 1
            continue

        close = text.find(_CLOSE_TAG, opener.end())
        if close == -1:
            break  # no closing tag anywhere after this point

        inner = _next_open_tag(text, opener.end(), close)
        if inner != -1:
            cursor = inner
            continue

        path = opener.group(1).strip()
        if not path:
            cursor = opener.end()
            continue

        files.append(
            GeneratedFile(
                path=path,
                language=opener.group(2).strip(),
                content=text[opener.end():close].strip(),
            )
        )
        kept.append(text[pos:start])
        pos = cursor = close + len(_CLOSE_TAG)

    kept.append(text[pos:])
    return files, "".join(kept)


def _next_open_tag(text: str, begin: int, end: int) -> int:
    """Index of the first well-formed open tag in text[begin:end], or -1."""
    idx = text.find("<file", begin, end)
    while idx != -1:
        if _OPEN_TAG_RE.match(text, idx):
            return idx
        idx = text.find("<file", idx + 1, end)
    return -1


def extract_thinking(text: str) -> str | None:
    match = _THINKING_RE.search(text)
    return match.group(1).strip() if match else None


def clean_message(text: str) -> str:
    text = _THINKING_RE.sub("", text)
    return _BLANK_LINES_RE.sub("\n\n", text).strip()


def parse(raw_text: str) -> ParsedResponse:
    """Split a raw model answer into message, files and reasoning."""
    files, remainder = _scan_files(raw_text)
    return ParsedResponse(
        cleaned_message=clean_message(remainder),
        files=files,
        thinking=extract_thinking(raw_text),
    )
