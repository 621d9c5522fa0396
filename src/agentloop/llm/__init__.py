"""
Model invokers.

Providers:
- Anthropic Claude (native SDK)
- OpenAI GPT and compatible endpoints (native SDK)
"""

from .base import BaseInvoker, InvokerConfig, ModelInvoker
from .anthropic import AnthropicInvoker
from .openai import OpenAIInvoker
from .factory import create_invoker

__all__ = [
    "BaseInvoker",
    "InvokerConfig",
    "ModelInvoker",
    "AnthropicInvoker",
    "OpenAIInvoker",
    "create_invoker",
]
