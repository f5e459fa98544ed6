"""
Configuration Management for Clerk

Loads configuration from ~/.clerk/config.json and environment variables.
"""

import os
import json
import logging
from pathlib import Path
from dataclasses import dataclass, field
from typing import List

logger = logging.getLogger("clerk.common.config")

# Default config paths
CONFIG_DIR = Path.home() / ".clerk"
CONFIG_PATH = CONFIG_DIR / "config.json"
DEFAULT_STORE_PATH = CONFIG_DIR / "vector_store.json"

DEFAULT_ORIGINS = ["http://localhost:3000", "http://127.0.0.1:3000"]


@dataclass
class LLMConfig:
    """Generation provider configuration"""
    provider: str = "google"
    google_api_key: str = ""
    google_model: str = "gemini-1.5-flash"
    anthropic_api_key: str = ""
    anthropic_model: str = "claude-sonnet-4-20250514"
    openai_api_key: str = ""
    openai_model: str = "gpt-4o-mini"

    @property
    def model(self) -> str:
        """Model name for the selected provider"""
        return getattr(self, f"{self.provider}_model", "")


@dataclass
class EmbeddingConfig:
    """Embedding provider configuration"""
    provider: str = "google"  # google | openai | local (fastembed)
    model: str = "models/text-embedding-004"


@dataclass
class StoreConfig:
    """Vector store file configuration"""
    path: str = str(DEFAULT_STORE_PATH)


@dataclass
class ServerConfig:
    """HTTP server configuration"""
    host: str = "0.0.0.0"
    port: int = 5000
    allowed_origins: List[str] = field(default_factory=lambda: list(DEFAULT_ORIGINS))


@dataclass
class ClerkConfig:
    """Main Clerk configuration"""
    llm: LLMConfig = field(default_factory=LLMConfig)
    embedding: EmbeddingConfig = field(default_factory=EmbeddingConfig)
    store: StoreConfig = field(default_factory=StoreConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    _env_sourced_keys: set = field(default_factory=set, repr=False)


def _parse_llm_config(data: dict) -> LLMConfig:
    """Parse llm section from config dict"""
    llm_data = data.get("llm", {})
    defaults = LLMConfig()
    return LLMConfig(
        provider=llm_data.get("provider", defaults.provider),
        google_api_key=llm_data.get("google_api_key", ""),
        google_model=llm_data.get("google_model", defaults.google_model),
        anthropic_api_key=llm_data.get("anthropic_api_key", ""),
        anthropic_model=llm_data.get("anthropic_model", defaults.anthropic_model),
        openai_api_key=llm_data.get("openai_api_key", ""),
        openai_model=llm_data.get("openai_model", defaults.openai_model),
    )


def _parse_embedding_config(data: dict) -> EmbeddingConfig:
    """Parse embedding section from config dict"""
    embedding_data = data.get("embedding", {})
    defaults = EmbeddingConfig()
    return EmbeddingConfig(
        provider=embedding_data.get("provider", defaults.provider),
        model=embedding_data.get("model", defaults.model),
    )


def _parse_store_config(data: dict) -> StoreConfig:
    store_data = data.get("store", {})
    return StoreConfig(path=store_data.get("path", str(DEFAULT_STORE_PATH)))


def _parse_server_config(data: dict) -> ServerConfig:
    server_data = data.get("server", {})
    return ServerConfig(
        host=server_data.get("host", "0.0.0.0"),
        port=server_data.get("port", 5000),
        allowed_origins=server_data.get("allowed_origins", list(DEFAULT_ORIGINS)),
    )


def load_config() -> ClerkConfig:
    """
    Load configuration from file and environment variables.

    Priority (highest to lowest):
    1. Environment variables
    2. Config file (~/.clerk/config.json)
    3. Default values
    """
    config = ClerkConfig()

    if CONFIG_PATH.exists():
        try:
            with open(CONFIG_PATH) as f:
                data = json.load(f)

            config.llm = _parse_llm_config(data)
            config.embedding = _parse_embedding_config(data)
            config.store = _parse_store_config(data)
            config.server = _parse_server_config(data)
        except (json.JSONDecodeError, IOError) as e:
            logger.warning("Failed to load config file %s: %s", CONFIG_PATH, e)

    # Secrets and provider choice; tracked so save_config never writes them back
    _env_llm_map = {
        "GOOGLE_API_KEY": "google_api_key",
        "GEMINI_API_KEY": "google_api_key",
        "ANTHROPIC_API_KEY": "anthropic_api_key",
        "OPENAI_API_KEY": "openai_api_key",
        "CLERK_LLM_PROVIDER": "provider",
    }
    for env_var, attr in _env_llm_map.items():
        val = os.getenv(env_var)
        if val:
            setattr(config.llm, attr, val)
            config._env_sourced_keys.add(attr)

    # Model and key lookups are keyed by the lowercase provider name
    config.llm.provider = (config.llm.provider or "google").lower()

    if os.getenv("CLERK_LLM_MODEL"):
        setattr(config.llm, f"{config.llm.provider}_model", os.getenv("CLERK_LLM_MODEL"))

    if os.getenv("CLERK_EMBEDDING_PROVIDER"):
        config.embedding.provider = os.getenv("CLERK_EMBEDDING_PROVIDER")
    config.embedding.provider = (config.embedding.provider or "google").lower()
    if os.getenv("CLERK_EMBEDDING_MODEL"):
        config.embedding.model = os.getenv("CLERK_EMBEDDING_MODEL")

    if os.getenv("CLERK_STORE_PATH"):
        config.store.path = os.getenv("CLERK_STORE_PATH")

    if os.getenv("CLERK_HOST"):
        config.server.host = os.getenv("CLERK_HOST")
    if os.getenv("CLERK_PORT"):
        config.server.port = int(os.getenv("CLERK_PORT"))
    if os.getenv("FRONTEND_URL"):
        frontend_url = os.getenv("FRONTEND_URL")
        if frontend_url not in config.server.allowed_origins:
            config.server.allowed_origins.append(frontend_url)

    return config


def save_config(config: ClerkConfig) -> None:
    """Save configuration to file.

    API key fields that were sourced from environment variables are written
    as empty strings so that secrets are not persisted to disk.
    """
    CONFIG_DIR.mkdir(parents=True, exist_ok=True)

    env_sourced = getattr(config, "_env_sourced_keys", set())

    llm_section = {
        "provider": config.llm.provider,
        "google_api_key": config.llm.google_api_key,
        "google_model": config.llm.google_model,
        "anthropic_api_key": config.llm.anthropic_api_key,
        "anthropic_model": config.llm.anthropic_model,
        "openai_api_key": config.llm.openai_api_key,
        "openai_model": config.llm.openai_model,
    }
    for key in ("google_api_key", "anthropic_api_key", "openai_api_key"):
        if key in env_sourced:
            llm_section[key] = ""

    data = {
        "llm": llm_section,
        "embedding": {
            "provider": config.embedding.provider,
            "model": config.embedding.model,
        },
        "store": {
            "path": config.store.path,
        },
        "server": {
            "host": config.server.host,
            "port": config.server.port,
            "allowed_origins": config.server.allowed_origins,
        },
    }

    with open(CONFIG_PATH, "w") as f:
        json.dump(data, f, indent=2)

    # Set secure permissions
    CONFIG_PATH.chmod(0o600)
