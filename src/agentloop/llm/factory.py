"""
Invoker factory for creating provider instances.
"""

from ..config import Settings
from .anthropic import AnthropicInvoker
from .base import BaseInvoker, InvokerConfig
from .openai import OpenAIInvoker


def create_invoker(
    config: InvokerConfig | None = None,
    settings: Settings | None = None,
) -> BaseInvoker:
    """Create an invoker based on configuration.

    Provider routing:
    - anthropic -> AnthropicInvoker (native Anthropic SDK)
    - openai -> OpenAIInvoker (native OpenAI SDK, or any compatible endpoint)
    """
    if config is None:
        if settings is None:
            from ..config import get_settings
            settings = get_settings()
        config = settings.invoker_config()

    if config.provider == "anthropic":
        return AnthropicInvoker(config)
    elif config.provider == "openai":
        return OpenAIInvoker(config)
    else:
        raise ValueError(f"Unknown model provider: {config.provider}")
