from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    # Application
    app_name: str = "AI Worksheet Generator"
    debug: bool = False

    # LLM provider: "gemini" (default) or "openai"
    llm_provider: str = "gemini"

    # Gemini
    gemini_api_key: str = ""
    gemini_model: str = "gemini-2.5-flash"

    # OpenAI (kept for fallback)
    openai_api_key: str = ""
    openai_model: str = "gpt-4o-mini"

    temperature: float = 0.7
    max_output_tokens: int = 8192

    # Source uploads
    max_upload_bytes: int = 10 * 1024 * 1024

    # CORS
    frontend_url: str = "http://localhost:5173"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


@lru_cache
def get_settings() -> Settings:
    return Settings()
