"""Artifactor configuration loader.

Priority (high → low):
  1. CLI flags           (handled at call site, not in this module)
  2. Environment variables  (ARTIFACTOR_MODEL, ARTIFACTOR_EMBEDDING_MODEL, ...)
  3. Per-project artifactor.yaml
  4. Global ~/.artifactor/config.yaml  (model defaults only, no API keys)
  5. Hardcoded defaults

Global config must never contain API keys; use environment variables instead.
All YAML reads use yaml.safe_load(), never yaml.load().
"""

from __future__ import annotations

import os
import re
import warnings
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_GLOBAL_CONFIG_DIR: Path = Path.home() / ".artifactor"
_GLOBAL_CONFIG_PATH: Path = _GLOBAL_CONFIG_DIR / "config.yaml"
PROJECT_CONFIG_NAME: str = "artifactor.yaml"

# Matches: api_key, apikey, api-key, api_secret, _token (suffix), standalone token,
# standalone secret, _secret (suffix), password, passwd, credential(s).
# Does NOT match legitimate config keys like max_tokens or top_k.
_API_KEY_RE: re.Pattern[str] = re.compile(
    r"api[_\-]?(?:key|secret)"
    r"|_token$"
    r"|^token$"
    r"|_secret$"
    r"|^secret$"
    r"|passw(?:ord|d)"
    r"|credential",
    re.IGNORECASE,
)

_KNOWN_SECTIONS: frozenset[str] = frozenset(
    ["server", "database", "vectors", "embedding", "orchestrator", "retrieval", "logging"]
)

_BACKENDS: frozenset[str] = frozenset(["litellm", "anythingllm"])


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class ConfigError(ValueError):
    """Raised when a config file contains an invalid or forbidden value."""


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------


@dataclass
class ServerCfg:
    """HTTP server settings (artifactor.yaml: server:)."""

    host: str = "127.0.0.1"
    port: int = 4000
    cors_origins: list[str] = field(default_factory=lambda: ["*"])


@dataclass
class DatabaseCfg:
    """Relational file store (artifactor.yaml: database:)."""

    path: str = ".artifactor.db"


@dataclass
class VectorsCfg:
    """Vector index store (artifactor.yaml: vectors:)."""

    path: str = ".artifactor-vectors.db"


@dataclass
class EmbeddingCfg:
    """Embedding model configuration (artifactor.yaml: embedding:)."""

    model: str = "openai/text-embedding-3-small"
    dimensions: int = 1536


@dataclass
class OrchestratorCfg:
    """External model orchestrator (artifactor.yaml: orchestrator:).

    Attributes:
        backend: 'litellm' (direct provider call) or 'anythingllm' (HTTP workspace API).
        url: Base URL of the AnythingLLM server (anythingllm backend only).
        model: Model identifier sent with every chat request.
        timeout: HTTP timeout in seconds for orchestrator calls.
        max_tokens: Output token cap for the litellm backend.
    """

    backend: str = "litellm"
    url: str = "http://localhost:3001"
    model: str = "anthropic/claude-sonnet-4-20250514"
    timeout: float = 120.0
    max_tokens: int = 8_192


@dataclass
class RetrievalCfg:
    """Context retrieval configuration (artifactor.yaml: retrieval:)."""

    top_k: int = 5
    top_k_all: int = 10


@dataclass
class LoggingCfg:
    """Logging configuration (artifactor.yaml: logging:)."""

    level: str = "INFO"
    file: str | None = None


@dataclass
class ArtifactorConfig:
    """Root configuration object, built by load_config() from merged YAML layers."""

    server: ServerCfg = field(default_factory=ServerCfg)
    database: DatabaseCfg = field(default_factory=DatabaseCfg)
    vectors: VectorsCfg = field(default_factory=VectorsCfg)
    embedding: EmbeddingCfg = field(default_factory=EmbeddingCfg)
    orchestrator: OrchestratorCfg = field(default_factory=OrchestratorCfg)
    retrieval: RetrievalCfg = field(default_factory=RetrievalCfg)
    logging: LoggingCfg = field(default_factory=LoggingCfg)
    project_dir: Path = field(default_factory=Path.cwd)

    @property
    def database_path(self) -> Path:
        """Relational database path, resolved against the project directory."""
        return _resolve(self.project_dir, self.database.path)

    @property
    def vectors_path(self) -> Path:
        """Vector database path, resolved against the project directory."""
        return _resolve(self.project_dir, self.vectors.path)


def _resolve(base: Path, raw: str) -> Path:
    path = Path(raw).expanduser()
    return path if path.is_absolute() else base / path


# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------


def _check_no_api_keys(data: dict[str, Any], source: Path) -> None:
    """Raise ConfigError if *data* contains any API-key-like key names."""

    def _scan(obj: Any, path: str) -> None:
        if isinstance(obj, dict):
            for k, v in obj.items():
                full = f"{path}.{k}" if path else k
                if _API_KEY_RE.search(str(k)):
                    raise ConfigError(
                        f"Global config '{source}' contains a forbidden key '{full}'.\n"
                        f"  API keys must be set via environment variables, not config files.\n"
                        f"  Remove '{full}' from {source.name} and use:\n"
                        f"    export {str(k).upper().replace('-', '_')}=<value>"
                    )
                _scan(v, full)

    _scan(data, "")


def _warn_unknown_keys(data: dict[str, Any], source: Path) -> None:
    """Emit a UserWarning for unrecognised top-level keys."""
    for key in data:
        if key not in _KNOWN_SECTIONS:
            warnings.warn(
                f"Unknown config key '{key}' in '{source}'; ignored.",
                UserWarning,
                stacklevel=4,
            )


def _validate(cfg: ArtifactorConfig) -> None:
    if cfg.orchestrator.backend not in _BACKENDS:
        raise ConfigError(
            f"orchestrator.backend must be one of {sorted(_BACKENDS)}, "
            f"got '{cfg.orchestrator.backend}'"
        )
    if cfg.retrieval.top_k < 1 or cfg.retrieval.top_k_all < 1:
        raise ConfigError("retrieval.top_k and retrieval.top_k_all must be >= 1")
    if cfg.embedding.dimensions < 1:
        raise ConfigError(
            f"embedding.dimensions must be >= 1, got {cfg.embedding.dimensions}"
        )


# ---------------------------------------------------------------------------
# Merge + build
# ---------------------------------------------------------------------------


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Return a new dict that is *base* deep-merged with *override*."""
    result = dict(base)
    for k, v in override.items():
        if k in result and isinstance(result[k], dict) and isinstance(v, dict):
            result[k] = _deep_merge(result[k], v)
        else:
            result[k] = v
    return result


def _cfg_from_dict(data: dict[str, Any]) -> ArtifactorConfig:
    """Build an *ArtifactorConfig* from a merged raw YAML dict."""
    cfg = ArtifactorConfig()

    if "server" in data:
        s = data["server"]
        cfg.server = ServerCfg(
            host=str(s.get("host", cfg.server.host)),
            port=int(s.get("port", cfg.server.port)),
            cors_origins=[str(o) for o in s.get("cors_origins", cfg.server.cors_origins)],
        )

    if "database" in data:
        cfg.database = DatabaseCfg(path=str(data["database"].get("path", cfg.database.path)))

    if "vectors" in data:
        cfg.vectors = VectorsCfg(path=str(data["vectors"].get("path", cfg.vectors.path)))

    if "embedding" in data:
        e = data["embedding"]
        cfg.embedding = EmbeddingCfg(
            model=str(e.get("model", cfg.embedding.model)),
            dimensions=int(e.get("dimensions", cfg.embedding.dimensions)),
        )

    if "orchestrator" in data:
        o = data["orchestrator"]
        cfg.orchestrator = OrchestratorCfg(
            backend=str(o.get("backend", cfg.orchestrator.backend)),
            url=str(o.get("url", cfg.orchestrator.url)),
            model=str(o.get("model", cfg.orchestrator.model)),
            timeout=float(o.get("timeout", cfg.orchestrator.timeout)),
            max_tokens=int(o.get("max_tokens", cfg.orchestrator.max_tokens)),
        )

    if "retrieval" in data:
        r = data["retrieval"]
        cfg.retrieval = RetrievalCfg(
            top_k=int(r.get("top_k", cfg.retrieval.top_k)),
            top_k_all=int(r.get("top_k_all", cfg.retrieval.top_k_all)),
        )

    if "logging" in data:
        lg = data["logging"]
        cfg.logging = LoggingCfg(
            level=str(lg.get("level", cfg.logging.level)).upper(),
            file=lg.get("file") or cfg.logging.file,
        )

    return cfg


def _apply_env_overrides(cfg: ArtifactorConfig) -> ArtifactorConfig:
    """Apply ARTIFACTOR_* environment variable overrides."""
    if model := os.environ.get("ARTIFACTOR_MODEL"):
        cfg.orchestrator.model = model
    if model := os.environ.get("ARTIFACTOR_EMBEDDING_MODEL"):
        cfg.embedding.model = model
    if url := os.environ.get("ARTIFACTOR_ORCHESTRATOR_URL"):
        cfg.orchestrator.url = url
    if level := os.environ.get("ARTIFACTOR_LOG_LEVEL"):
        cfg.logging.level = level.upper()
    if db := os.environ.get("ARTIFACTOR_DB"):
        cfg.database.path = db
    return cfg


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(
    project_dir: Path | None = None,
    *,
    global_config_path: Path | None = None,
) -> ArtifactorConfig:
    """Load and return a merged *ArtifactorConfig*.

    Applies layers in order: global → per-project → env vars.
    CLI flag overrides must be applied by the caller after this function.

    Args:
        project_dir: Directory to search for *artifactor.yaml*. Defaults to CWD.
        global_config_path: Override the global config path (for testing).

    Returns:
        Fully merged *ArtifactorConfig* with env var overrides applied.

    Raises:
        ConfigError: If global config contains API-key-like fields, or a
            value is out of range.
    """
    global_path = global_config_path if global_config_path is not None else _GLOBAL_CONFIG_PATH
    search_dir = project_dir if project_dir is not None else Path.cwd()

    merged: dict[str, Any] = {}

    if global_path.exists():
        raw_global = yaml.safe_load(global_path.read_text(encoding="utf-8")) or {}
        _check_no_api_keys(raw_global, global_path)
        _warn_unknown_keys(raw_global, global_path)
        merged = _deep_merge(merged, raw_global)

    project_cfg_path = search_dir / PROJECT_CONFIG_NAME
    if project_cfg_path.exists():
        raw_project = yaml.safe_load(project_cfg_path.read_text(encoding="utf-8")) or {}
        _warn_unknown_keys(raw_project, project_cfg_path)
        merged = _deep_merge(merged, raw_project)

    cfg = _cfg_from_dict(merged)
    cfg.project_dir = search_dir

    cfg = _apply_env_overrides(cfg)
    _validate(cfg)

    return cfg


def ensure_global_config(
    global_config_path: Path | None = None,
) -> Path:
    """Create ``~/.artifactor/config.yaml`` with defaults if it does not exist.

    Creates parent directory with mode 0o700 and the config file with
    mode 0o600 (owner-readable only).

    Args:
        global_config_path: Override path (for testing).

    Returns:
        Path to the global config file.
    """
    target = global_config_path if global_config_path is not None else _GLOBAL_CONFIG_PATH
    target.parent.mkdir(mode=0o700, parents=True, exist_ok=True)

    if not target.exists():
        content = (
            "# Artifactor global configuration: model defaults only.\n"
            "# NEVER store API keys here. Use environment variables:\n"
            "#   export ANTHROPIC_API_KEY=sk-ant-...\n"
            "#   export OPENAI_API_KEY=sk-...\n"
            "#   export ANYTHINGLLM_API_KEY=...\n"
            "\n"
            "embedding:\n"
            "  model: openai/text-embedding-3-small\n"
            "\n"
            "orchestrator:\n"
            "  model: anthropic/claude-sonnet-4-20250514\n"
        )
        target.write_text(content, encoding="utf-8")
        target.chmod(0o600)

    return target
