"""Application settings loaded from environment variables via pydantic-settings.

# ─── HOW SETTINGS WORK ────────────────────────────────────────────────
#
# Two sources, in priority order:
#
#   1. **Environment variables** -- e.g. ANTHROPIC_API_KEY=sk-ant-...
#   2. **.env file** -- key=value lines in the project root .env file
#
# Field ``anthropic_api_key`` maps to env var ``ANTHROPIC_API_KEY``.
# Defaults below apply when neither source defines a value.
#
# Static tuning knobs (chunk size, overlap, top-k) live in
# config/config.yaml instead; see docqa/config/loader.py.
# ──────────────────────────────────────────────────────────────────────
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """docqa application settings.

    Environment variables override defaults. Loaded from .env file when present.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # === LLM Providers ===
    # Empty string = "not configured"; provider selection in main.py skips
    # providers with empty keys and falls through to the next.
    anthropic_api_key: str = ""
    anthropic_model: str = "claude-sonnet-4-20250514"
    openai_api_key: str = ""
    openai_base_url: str = ""  # OpenAI-compatible endpoint (TogetherAI, etc.)
    openai_text_model: str = ""
    openai_embedding_model: str = ""
    ollama_base_url: str = "http://localhost:11434"

    # === Vector store ===
    # CHROMA_URL selects a remote ChromaDB server; when empty the collection
    # is persisted locally under chromadb_persist_dir.
    chroma_url: str = ""
    chromadb_persist_dir: str = "./data/chromadb"
    chromadb_collection: str = "document_collection"

    # === Document storage ===
    documents_dir: str = "./data/documents"

    # === Network bounds ===
    # Applied to every embedding and LLM call.  0 disables the bound.
    request_timeout_seconds: float = 60.0

    # === App Config ===
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    app_env: str = "development"
    log_level: str = "INFO"

    def get_available_llm_providers(self) -> list[str]:
        """Return LLM provider names that have non-empty API keys configured."""
        providers: list[str] = []
        if self.anthropic_api_key:
            providers.append("anthropic")
        if self.openai_api_key:
            providers.append("openai")
        return providers
