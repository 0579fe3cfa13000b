from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Database (SQLite by default)
    database_url: str = "sqlite+aiosqlite:///./salescoach.db"

    # Anthropic API (intent classification, coaching analysis, general replies)
    anthropic_api_key: str = ""
    anthropic_model: str = "claude-sonnet-4-20250514"

    # OpenAI API (embeddings for semantic call search)
    openai_api_key: str = ""
    embedding_model: str = "text-embedding-3-small"

    # App
    cors_origins: list[str] = ["http://localhost:5173"]
    debug: bool = True

    # Query defaults
    list_limit: int = 50
    search_limit: int = 10
    search_similarity_threshold: float = 0.5

    # Minimum similarity for a fuzzy agent-name match
    agent_match_threshold: float = 0.3

    # Model call budgets
    classification_max_tokens: int = 256
    analysis_max_tokens: int = 4096
    summary_max_tokens: int = 2048
    general_max_tokens: int = 512

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


settings = Settings()
