"""Artifactor rich error messages: actionable feedback.

Every error shown to the user must contain:
  1. What went wrong (clear cause)
  2. The exact action the user should take to fix it

Usage:
    from artifactor.cli.errors import err_no_api_key, err_no_db
    console.print(err_no_api_key("openai"))
    raise typer.Exit(1)
"""

from __future__ import annotations


def err_no_api_key(provider: str) -> str:
    """No API key for *provider*.

    Example:
        No API key for 'openai'. Set:  export OPENAI_API_KEY=sk-...
    """
    env_map = {
        "openai": "OPENAI_API_KEY",
        "anthropic": "ANTHROPIC_API_KEY",
        "cohere": "COHERE_API_KEY",
        "gemini": "GEMINI_API_KEY",
        "mistral": "MISTRAL_API_KEY",
        "azure": "AZURE_API_KEY",
    }
    env_var = env_map.get(provider.lower(), f"{provider.upper()}_API_KEY")
    return (
        f"[red]Error:[/] No API key for '{provider}'.\n"
        f"  Set:  export {env_var}=sk-..."
    )


def err_no_db(db_path: str = ".artifactor.db") -> str:
    """No database at *db_path*."""
    return (
        f"[red]Error:[/] No database found at '{db_path}'.\n"
        "  Run:  artifactor init"
    )


def err_config(message: str) -> str:
    """Config file is invalid; *message* comes from ConfigError."""
    return (
        f"[red]Error:[/] Invalid configuration.\n"
        f"  {message}\n"
        "  Fix artifactor.yaml (or ~/.artifactor/config.yaml) and retry."
    )


def err_project_not_found(project_id: str) -> str:
    return (
        f"[red]Error:[/] Project '{project_id}' not found.\n"
        "  Run:  artifactor status  to list project IDs."
    )


def err_reindex_target() -> str:
    return (
        "[red]Error:[/] Nothing to reindex.\n"
        "  Pass exactly one of:  --project <id>  or  --all"
    )


def warn_no_anythingllm_key() -> str:
    """AnythingLLM backend selected but no key in the environment."""
    return (
        "[yellow]Warning:[/] ANYTHINGLLM_API_KEY is not set; orchestrator requests may be rejected.\n"
        "  Set:  export ANYTHINGLLM_API_KEY=<key from AnythingLLM settings>"
    )
