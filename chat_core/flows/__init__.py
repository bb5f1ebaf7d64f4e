"""Fallback-aware response generation (LangGraph state machine)."""

from chat_core.flows.runner import (
    FallbackResponder,
    generate,
    get_default_responder,
    set_default_responder,
)

__all__ = ["FallbackResponder", "generate", "get_default_responder", "set_default_responder"]
