from langchain_core.language_models import BaseChatModel
from langchain_openai import ChatOpenAI

from reviewer.settings import LlmSettings, llm_settings


def create_chat_model(temperature: float, settings: LlmSettings | None = None) -> BaseChatModel:
    """Create the chat model used by the workflow steps."""
    settings = settings or llm_settings
    return ChatOpenAI(
        model=settings.model,
        api_key=settings.api_key,
        base_url=settings.base_url,
        temperature=temperature,
    )
