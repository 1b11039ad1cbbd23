"""Clients for the external model orchestrator.

Two backends share one small protocol: ``chat()`` sends a fully assembled
prompt and returns the model's raw text; ``ensure_workspace()`` prepares the
per-project workspace where the backend has one.

- LiteLLMOrchestrator calls the provider directly through litellm.
- AnythingLLMClient talks to an AnythingLLM server over its workspace HTTP API.

Both raise OrchestratorError on any upstream failure. No call is retried.
"""

from __future__ import annotations

import logging
import os
import re
from typing import Protocol

import httpx

from artifactor.config import OrchestratorCfg
from artifactor.rag import llm_client

logger = logging.getLogger(__name__)

# Only these modes exist on the AnythingLLM side; prompt modes such as
# 'refactor' or 'test' are carried inside the prompt text instead.
_WIRE_MODES = frozenset(["chat", "query"])


class OrchestratorError(RuntimeError):
    """Upstream model call failed.

    Attributes:
        status: HTTP status reported by the upstream, or None for transport errors.
        message: Human-readable description of the failure.
    """

    def __init__(self, status: int | None, message: str) -> None:
        super().__init__(message)
        self.status = status
        self.message = message


class Orchestrator(Protocol):
    def chat(self, workspace_id: str, prompt_text: str, mode: str, model: str) -> str: ...

    def ensure_workspace(self, workspace_id: str, name: str) -> None: ...


def workspace_slug(workspace_id: str) -> str:
    """Return the orchestrator workspace slug for a project ID (lowercase, URL-safe)."""
    return re.sub(r"[^a-z0-9-]", "-", workspace_id.lower())


# ---------------------------------------------------------------------------
# LiteLLM backend
# ---------------------------------------------------------------------------


class LiteLLMOrchestrator:
    """Direct provider call through litellm; there is no workspace concept."""

    def __init__(self, max_tokens: int = 8_192, timeout: float | None = None) -> None:
        self.max_tokens = max_tokens
        self.timeout = timeout

    def chat(self, workspace_id: str, prompt_text: str, mode: str, model: str) -> str:
        logger.info("Model call for %s (model=%s, mode=%s)", workspace_id, model, mode)
        try:
            return llm_client.complete(
                model,
                [{"role": "user", "content": prompt_text}],
                max_tokens=self.max_tokens,
                timeout=self.timeout,
            )
        except Exception as exc:  # litellm raises provider-specific exception types
            status = getattr(exc, "status_code", None)
            logger.error("Model call failed for %s: %s", workspace_id, exc)
            raise OrchestratorError(status if isinstance(status, int) else None, str(exc)) from exc

    def ensure_workspace(self, workspace_id: str, name: str) -> None:
        return None


# ---------------------------------------------------------------------------
# AnythingLLM backend
# ---------------------------------------------------------------------------


class AnythingLLMClient:
    """HTTP client for an AnythingLLM server's workspace API."""

    def __init__(
        self,
        base_url: str,
        api_key: str | None = None,
        timeout: float = 120.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Create the underlying httpx.Client.

        Args:
            base_url: Server root, e.g. http://localhost:3001.
            api_key: Bearer token; defaults to $ANYTHINGLLM_API_KEY.
            timeout: Per-request timeout in seconds.
            transport: Optional httpx transport (tests use httpx.MockTransport).
        """
        key = api_key if api_key is not None else os.environ.get("ANYTHINGLLM_API_KEY", "")
        headers = {"Content-Type": "application/json"}
        if key:
            headers["Authorization"] = f"Bearer {key}"
        self._client = httpx.Client(
            base_url=base_url.rstrip("/"),
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def chat(self, workspace_id: str, prompt_text: str, mode: str, model: str) -> str:
        slug = workspace_slug(workspace_id)
        payload = {
            "message": prompt_text,
            "mode": mode if mode in _WIRE_MODES else "chat",
            "model": model,
        }
        logger.info("Orchestrator chat for workspace %s (model=%s)", slug, model)
        response = self._request("POST", f"/api/v1/workspace/{slug}/chat", json=payload)
        try:
            body = response.json()
        except ValueError as exc:
            raise OrchestratorError(response.status_code, "Orchestrator returned invalid JSON") from exc
        text = body.get("textResponse")
        if not isinstance(text, str):
            error = body.get("error") or "Orchestrator response has no textResponse"
            raise OrchestratorError(response.status_code, str(error))
        return text

    def ensure_workspace(self, workspace_id: str, name: str) -> None:
        slug = workspace_slug(workspace_id)
        try:
            response = self._client.get(f"/api/v1/workspace/{slug}")
        except httpx.HTTPError as exc:
            raise OrchestratorError(None, f"Orchestrator unreachable: {exc}") from exc
        if response.status_code == 200 and _has_workspace(response):
            return
        if response.status_code not in (200, 404):
            raise OrchestratorError(response.status_code, response.text or "Workspace lookup failed")
        self._request(
            "POST",
            "/api/v1/workspace",
            json={"name": slug, "slug": slug, "description": name},
        )
        logger.info("Created orchestrator workspace %s", slug)

    def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        try:
            response = self._client.request(method, url, **kwargs)
        except httpx.HTTPError as exc:
            logger.error("Orchestrator request %s %s failed: %s", method, url, exc)
            raise OrchestratorError(None, f"Orchestrator unreachable: {exc}") from exc
        if response.is_error:
            logger.error("Orchestrator %s %s returned %d", method, url, response.status_code)
            raise OrchestratorError(response.status_code, response.text or response.reason_phrase)
        return response


def _has_workspace(response: httpx.Response) -> bool:
    try:
        return bool(response.json().get("workspace"))
    except ValueError:
        return False


def build_orchestrator(cfg: OrchestratorCfg) -> Orchestrator:
    """Construct the orchestrator selected by ``orchestrator.backend``."""
    if cfg.backend == "anythingllm":
        return AnythingLLMClient(cfg.url, timeout=cfg.timeout)
    return LiteLLMOrchestrator(max_tokens=cfg.max_tokens, timeout=cfg.timeout)
