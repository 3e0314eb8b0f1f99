"""Judge model selection through LangChain chat model classes."""

import logging

from langchain_core.language_models.chat_models import BaseChatModel

from config.settings import Settings, get_settings

logger = logging.getLogger(__name__)

SUPPORTED_PROVIDERS = ("google", "anthropic")


def get_llm(settings: Settings | None = None) -> BaseChatModel:
    """Build the chat model used as the semantic and relevance judge.

    Client-side retries are disabled; RetryPolicy owns attempts and backoff.
    API keys left empty fall through to the provider's own environment lookup.
    """
    settings = settings or get_settings()
    provider = settings.bookgenie_llm_provider.lower()
    model = settings.bookgenie_llm_model

    if provider == "google":
        from langchain_google_genai import ChatGoogleGenerativeAI

        kwargs = {"google_api_key": settings.google_api_key} if settings.google_api_key else {}
        llm = ChatGoogleGenerativeAI(model=model, temperature=0, max_retries=0, **kwargs)
    elif provider == "anthropic":
        from langchain_anthropic import ChatAnthropic

        kwargs = {"api_key": settings.anthropic_api_key} if settings.anthropic_api_key else {}
        llm = ChatAnthropic(model=model, temperature=0, max_retries=0, **kwargs)
    else:
        raise ValueError(
            f"Unsupported LLM provider: {provider}. "
            f"Supported: {', '.join(SUPPORTED_PROVIDERS)}"
        )

    logger.info("Judge model: %s (%s)", model, provider)
    return llm
