from worksheetgen.core.config import Settings, get_settings
from worksheetgen.core.errors import ConfigurationError
from worksheetgen.services.ai import (
    GeminiCapability,
    GenerationCapability,
    OpenAICapability,
    WorksheetGenerationClient,
)


def get_llm_capability(settings: Settings | None = None) -> GenerationCapability:
    """Return the active LLM capability based on llm_provider setting.

    The API key is a startup precondition: a missing key raises
    ConfigurationError here rather than failing every request later.
    """
    if settings is None:
        settings = get_settings()

    if settings.llm_provider == "openai":
        if not settings.openai_api_key:
            raise ConfigurationError("OPENAI_API_KEY is not set (llm_provider=openai)")
        return OpenAICapability(
            api_key=settings.openai_api_key,
            model=settings.openai_model,
            temperature=settings.temperature,
            max_output_tokens=settings.max_output_tokens,
        )

    if settings.llm_provider == "gemini":
        if not settings.gemini_api_key:
            raise ConfigurationError("GEMINI_API_KEY is not set (llm_provider=gemini)")
        return GeminiCapability(
            api_key=settings.gemini_api_key,
            model=settings.gemini_model,
            temperature=settings.temperature,
            max_output_tokens=settings.max_output_tokens,
        )

    raise ConfigurationError(f"Unknown llm_provider: {settings.llm_provider!r}")


def build_generation_client(settings: Settings | None = None) -> WorksheetGenerationClient:
    return WorksheetGenerationClient(get_llm_capability(settings))
