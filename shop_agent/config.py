"""
Configuration management for Shop Agent.

Loads all configuration from environment variables with sensible defaults
for local development.
"""

import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()


@dataclass
class ProviderConfig:
    """Which model backend new agents talk to."""
    default: str = os.getenv("SHOP_AGENT_PROVIDER", "deepseek")


@dataclass
class DeepSeekConfig:
    """Configuration for the OpenAI-compatible chat-completions backend."""
    base_url: str = os.getenv("DEEPSEEK_BASE_URL", "https://api.deepseek.com")
    model: str = os.getenv("DEEPSEEK_MODEL", "deepseek-chat")


@dataclass
class GeminiConfig:
    """Configuration for the Gemini content-parts backend."""
    model: str = os.getenv("GEMINI_MODEL", "gemini-3-flash-preview")


@dataclass
class AgentConfig:
    """Configuration for the conversation loop."""
    max_loops: int = int(os.getenv("AGENT_MAX_LOOPS", "5"))
    # Simulated processing delay before each tool runs, in seconds
    tool_delay: float = float(os.getenv("AGENT_TOOL_DELAY", "0.5"))


@dataclass
class StoreConfig:
    """Where the product catalog, order book and policies come from.

    An empty data_path means the built-in demo data is used.
    """
    data_path: str = os.getenv("STORE_DATA_PATH", "")


@dataclass
class ServerConfig:
    """Configuration for the FastAPI server."""
    host: str = os.getenv("SERVER_HOST", "0.0.0.0")
    port: int = int(os.getenv("SERVER_PORT", "8000"))
    reload: bool = os.getenv("SERVER_RELOAD", "false").lower() == "true"


@dataclass
class LangfuseConfig:
    """Configuration for Langfuse observability.

    Tracing auto-enables when both public_key and secret_key are provided.
    """
    public_key: str = os.getenv("LANGFUSE_PUBLIC_KEY", "")
    secret_key: str = os.getenv("LANGFUSE_SECRET_KEY", "")
    host: str = os.getenv("LANGFUSE_HOST", "")
    debug: bool = os.getenv("LANGFUSE_DEBUG", "false").lower() == "true"

    @property
    def enabled(self) -> bool:
        """Auto-enable when both keys are configured."""
        return bool(self.public_key and self.secret_key)


@dataclass
class Config:
    """Main configuration container."""
    provider: ProviderConfig
    deepseek: DeepSeekConfig
    gemini: GeminiConfig
    agent: AgentConfig
    store: StoreConfig
    server: ServerConfig
    langfuse: LangfuseConfig
    log_level: str = os.getenv("LOG_LEVEL", "INFO")


def get_config() -> Config:
    """Get the application configuration."""
    return Config(
        provider=ProviderConfig(),
        deepseek=DeepSeekConfig(),
        gemini=GeminiConfig(),
        agent=AgentConfig(),
        store=StoreConfig(),
        server=ServerConfig(),
        langfuse=LangfuseConfig(),
    )


# Global config instance
config = get_config()
