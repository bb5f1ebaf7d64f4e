"""State definition for the fallback-aware generation graph."""

from __future__ import annotations

import threading
from typing import List, Optional, TypedDict

from chat_core.domain.models import GenerationOutcome, GenerationRequest, GenerationResult, Prompt


class GenerationState(TypedDict, total=False):
    """State shared across graph nodes for one request; never reused."""

    trace_id: str
    request: GenerationRequest
    prompt: Optional[Prompt]
    primary_model: str
    fallback_model: str
    timeout: Optional[float]
    cancel: Optional[threading.Event]
    attempts: List[str]
    outcome: Optional[GenerationOutcome]
    fallback_used: bool
    cancelled: bool
    error_code: Optional[str]
    result: Optional[GenerationResult]
