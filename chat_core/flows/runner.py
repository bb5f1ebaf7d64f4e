"""High-level entry point for the fallback-aware responder."""

from __future__ import annotations

import logging
import threading
from typing import Optional, Union
from uuid import uuid4

from chat_core.config.settings import settings
from chat_core.domain.exceptions import InvalidRequestError
from chat_core.domain.models import GenerationRequest, GenerationResult, PromptStyle
from chat_core.flows.graph import build_graph
from chat_core.flows.state import GenerationState
from chat_core.infrastructure.logging.logger import logger
from chat_core.prompts.builder import parse_image_ref
from chat_core.providers import create_client
from chat_core.providers.base import ModelClient


class _DefaultTimeout:
    def __repr__(self) -> str:
        return "DEFAULT_TIMEOUT"


# generate() 未传 timeout 时使用 Responder 配置的 primary_timeout；显式传 None 表示不限时
DEFAULT_TIMEOUT = _DefaultTimeout()

Timeout = Union[float, None, _DefaultTimeout]


class FallbackResponder:
    """Run a request against the primary model, then once against the fallback.

    The responder holds no per-request state: the compiled graph and the
    client are shared by concurrent calls. Attempts that need a deadline or a
    cancel signal run on their own worker thread.
    """

    def __init__(
        self,
        client: ModelClient,
        primary_model: Optional[str] = None,
        fallback_model: Optional[str] = None,
        prompt_style: Optional[PromptStyle] = None,
        system_prompt: Optional[str] = None,
        primary_timeout: Optional[float] = None,
    ) -> None:
        self.client = client
        self.primary_model = primary_model or settings.primary_model_id
        self.fallback_model = fallback_model or settings.fallback_model_id
        self.primary_timeout = primary_timeout if primary_timeout is not None else settings.primary_timeout
        self._graph = build_graph(
            client,
            style=prompt_style or settings.prompt_style,
            system_prompt=system_prompt,
        )

    def generate(
        self,
        request: GenerationRequest,
        *,
        timeout: Timeout = DEFAULT_TIMEOUT,
        cancel: Optional[threading.Event] = None,
    ) -> GenerationResult:
        """Return exactly one GenerationResult for a valid request.

        Args:
            request: 当前用户消息、历史与可选图片
            timeout: 主模型调用的截止时间（秒）；不传时取 primary_timeout，传 None 表示本次不限时
            cancel: 调用方的取消信号，置位后不再发起新的调用

        Raises:
            InvalidRequestError: 消息和图片都为空，或当前图片无法解析（不会发起任何调用）
        """

        trace_id = f"tr-{uuid4().hex}"
        try:
            self._validate(request)
        except InvalidRequestError as e:
            logger.warning(
                "generation.invalid_request",
                extra={"extra": {"trace_id": trace_id, "error": e.message}},
            )
            e.extra["trace_id"] = trace_id
            raise

        state: GenerationState = {
            "trace_id": trace_id,
            "request": request,
            "primary_model": self.primary_model,
            "fallback_model": self.fallback_model,
            "timeout": self.primary_timeout if timeout is DEFAULT_TIMEOUT else timeout,
            "cancel": cancel,
        }
        final = self._graph.invoke(state)
        result: GenerationResult = final["result"]
        logger.log(
            logging.ERROR if result.failed else logging.INFO,
            "generation.completed",
            extra={"extra": {
                "trace_id": trace_id,
                "model": result.model,
                "fallback_used": result.fallback_used,
                "failed": result.failed,
                "attempts": final.get("attempts", []),
            }},
        )
        return result

    @staticmethod
    def _validate(request: GenerationRequest) -> None:
        if request.is_empty():
            raise InvalidRequestError()
        if request.image:
            parse_image_ref(request.image)


_responder: Optional[FallbackResponder] = None


def get_default_responder() -> FallbackResponder:
    """获取基于 settings 构建的默认 Responder（单例）。"""

    global _responder
    if _responder is None:
        _responder = FallbackResponder(create_client())
    return _responder


def set_default_responder(responder: Optional[FallbackResponder]) -> None:
    """替换默认 Responder（测试或自定义客户端时使用）。"""

    global _responder
    _responder = responder


def generate(
    request: GenerationRequest,
    *,
    timeout: Timeout = DEFAULT_TIMEOUT,
    cancel: Optional[threading.Event] = None,
) -> GenerationResult:
    """UI 层调用的唯一入口。"""

    return get_default_responder().generate(request, timeout=timeout, cancel=cancel)
