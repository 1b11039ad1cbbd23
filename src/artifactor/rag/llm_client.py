"""LiteLLM client wrapper with API key validation.

Chat completions and embeddings route through this module. Calls are made
without automatic retries (num_retries=0): a failed model call surfaces to the
caller immediately. API key presence is validated at startup.
"""

from __future__ import annotations

import os

import litellm

# Disable LiteLLM verbose logging unless explicitly enabled
litellm.suppress_debug_info = True
litellm.set_verbose = False  # type: ignore[assignment]


# ------------------------------------------------------------------
# Provider → env var mapping for API key validation
# ------------------------------------------------------------------

_PROVIDER_ENV: dict[str, str | None] = {
    "openai": "OPENAI_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
    "azure": "AZURE_API_KEY",
    "cohere": "COHERE_API_KEY",
    "gemini": "GEMINI_API_KEY",
    "mistral": "MISTRAL_API_KEY",
    "groq": "GROQ_API_KEY",
    "ollama": None,  # Local, no key required
    "ollama_chat": None,
}


def validate_api_key(model: str) -> None:
    """Check that the required API key env var is set for *model*.

    Args:
        model: LiteLLM model string in 'provider/model' format.

    Raises:
        EnvironmentError: If the required key is missing from environment.
    """
    provider = model.split("/")[0].lower() if "/" in model else "openai"
    env_var = _PROVIDER_ENV.get(provider)

    if env_var is None:
        return  # No key required (e.g. ollama) or provider unknown to us

    if not os.getenv(env_var):
        raise EnvironmentError(
            f"API key not found for provider '{provider}'. "
            f"Set the {env_var} environment variable."
        )


def complete(
    model: str,
    messages: list[dict],
    max_tokens: int = 8_192,
    temperature: float = 0.0,
    timeout: float | None = None,
    num_retries: int = 0,
) -> str:
    """Call litellm.completion(). Returns content string.

    Args:
        model: LiteLLM model string (provider/model format).
        messages: OpenAI-style message list.
        max_tokens: Maximum output tokens.
        temperature: Sampling temperature (0 = deterministic).
        timeout: Request timeout in seconds (None = provider default).
        num_retries: Retries on transient errors. Defaults to none.

    Returns:
        The text content of the first choice.

    Raises:
        litellm.exceptions.APIError: On API failure.
    """
    response = litellm.completion(
        model=model,
        messages=messages,
        max_tokens=max_tokens,
        temperature=temperature,
        timeout=timeout,
        num_retries=num_retries,
    )
    return response.choices[0].message.content or ""


def embed(model: str, texts: list[str], num_retries: int = 0) -> list[list[float]]:
    """Call litellm.embedding() for a batch of texts. Returns one vector per text.

    Args:
        model: LiteLLM embedding model string (provider/model format).
        texts: Texts to embed.
        num_retries: Retries on transient errors. Defaults to none.
    """
    if not texts:
        return []
    response = litellm.embedding(
        model=model,
        input=texts,
        num_retries=num_retries,
    )
    return [item["embedding"] for item in response.data]


def make_embedder(model: str):
    """Return an embedder callable bound to *model*, for use with VectorStore."""

    def _embed(texts: list[str]) -> list[list[float]]:
        return embed(model, texts)

    return _embed
