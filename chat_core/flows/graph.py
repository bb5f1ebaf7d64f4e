"""LangGraph construction and node implementations.

prompt -> primary -> (done | fallback | failed)
fallback -> (done | failed)

Every node catches client failures and turns them into the next state;
only a failed or cancelled request ends in the "failed" node.
"""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import Future, wait
from typing import Any, Optional

from langgraph.graph import END, StateGraph
from langgraph.graph.state import CompiledStateGraph

from chat_core.domain.exceptions import FallbackModelFailure, NetworkError, PrimaryModelFailure
from chat_core.domain.models import GenerationOutcome, GenerationResult, Prompt, PromptStyle
from chat_core.flows.state import GenerationState
from chat_core.infrastructure.logging.logger import logger
from chat_core.prompts.builder import build_prompt
from chat_core.providers.base import ModelClient

POLL_INTERVAL = 0.05


class AttemptCancelled(Exception):
    """Raised inside a node when the caller's cancel signal is set."""


def _log(level: int, event: str, state: GenerationState, **fields: Any) -> None:
    payload = {
        "trace_id": state.get("trace_id"),
        "primary_model": state.get("primary_model"),
        "fallback_model": state.get("fallback_model"),
    }
    payload.update(fields)
    logger.log(level, event, extra={"extra": payload})


def _error_code(exc: BaseException) -> str:
    return getattr(exc, "code", None) or type(exc).__name__


def _is_cancelled(cancel: Optional[threading.Event]) -> bool:
    return cancel is not None and cancel.is_set()


def _start_attempt(client: ModelClient, model_id: str, prompt: Prompt) -> "Future[GenerationOutcome]":
    # 每次尝试独占一个守护线程，被放弃的调用不会占住后续请求的执行位置
    future: "Future[GenerationOutcome]" = Future()

    def run() -> None:
        if not future.set_running_or_notify_cancel():
            return
        try:
            future.set_result(client.generate(model_id, prompt))
        except BaseException as exc:  # noqa: BLE001 - 交给等待方处理
            future.set_exception(exc)

    threading.Thread(target=run, name=f"chat-attempt-{model_id}", daemon=True).start()
    return future


def call_model(
    client: ModelClient,
    model_id: str,
    prompt: Prompt,
    timeout: Optional[float] = None,
    cancel: Optional[threading.Event] = None,
) -> GenerationOutcome:
    """Run one client call, honoring an optional deadline and cancel signal.

    Without either, the call runs inline. Otherwise it runs on its own worker
    thread and is abandoned when the deadline passes (NetworkError
    "PRIMARY_TIMEOUT") or the cancel signal is set (AttemptCancelled).
    """

    if _is_cancelled(cancel):
        raise AttemptCancelled()
    if timeout is None and cancel is None:
        return client.generate(model_id, prompt)

    future = _start_attempt(client, model_id, prompt)
    deadline = None if timeout is None else time.monotonic() + timeout
    while True:
        wait_for = POLL_INTERVAL
        if deadline is not None:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                future.cancel()
                raise NetworkError(
                    code="PRIMARY_TIMEOUT",
                    message=f"no answer from {model_id} within {timeout}s",
                    model=model_id,
                )
            wait_for = min(wait_for, remaining)
        done, _ = wait([future], timeout=wait_for)
        if done:
            return future.result()
        if _is_cancelled(cancel):
            future.cancel()
            raise AttemptCancelled()


def prompt_node(state: GenerationState, style: PromptStyle, system_prompt: Optional[str]) -> GenerationState:
    state["prompt"] = build_prompt(state["request"], style=style, system_prompt=system_prompt)
    state["attempts"] = []
    state["fallback_used"] = False
    state["cancelled"] = False
    return state


def primary_node(state: GenerationState, client: ModelClient) -> GenerationState:
    model_id = state["primary_model"]
    state["attempts"].append(model_id)
    try:
        state["outcome"] = call_model(
            client,
            model_id,
            state["prompt"],
            timeout=state.get("timeout"),
            cancel=state.get("cancel"),
        )
        _log(logging.INFO, "generation.primary_success", state, model=model_id)
    except AttemptCancelled:
        state["cancelled"] = True
        state["error_code"] = "CANCELLED"
    except Exception as exc:  # noqa: BLE001 - 任何失败都切换备用模型
        failure = PrimaryModelFailure(code=_error_code(exc), message=str(exc), model=model_id)
        state["error_code"] = failure.code
        _log(
            logging.WARNING,
            "generation.fallback_triggered",
            state,
            model=model_id,
            error_code=failure.code,
            error=failure.message,
        )
    return state


def fallback_node(state: GenerationState, client: ModelClient) -> GenerationState:
    model_id = state["fallback_model"]
    state["attempts"].append(model_id)
    state["fallback_used"] = True
    try:
        # 与主模型完全相同的 prompt 对象，不重新构建
        state["outcome"] = call_model(client, model_id, state["prompt"], cancel=state.get("cancel"))
        _log(logging.INFO, "generation.fallback_success", state, model=model_id)
    except AttemptCancelled:
        state["cancelled"] = True
        state["error_code"] = "CANCELLED"
    except Exception as exc:  # noqa: BLE001 - 终态失败以结果返回，不抛给 UI
        failure = FallbackModelFailure(code=_error_code(exc), message=str(exc), model=model_id)
        state["error_code"] = failure.code
        _log(
            logging.ERROR,
            "generation.total_failure",
            state,
            model=model_id,
            error_code=failure.code,
            error=failure.message,
            attempts=list(state["attempts"]),
        )
    return state


def done_node(state: GenerationState) -> GenerationState:
    outcome = state["outcome"]
    state["result"] = GenerationResult(
        response_text=outcome.text,
        model=outcome.model,
        fallback_used=state.get("fallback_used", False),
        usage=outcome.usage,
    )
    return state


def failed_node(state: GenerationState) -> GenerationState:
    if state.get("cancelled"):
        _log(logging.WARNING, "generation.cancelled", state, attempts=list(state.get("attempts", [])))
    state["result"] = GenerationResult.failure(state.get("error_code") or "TOTAL_FAILURE")
    return state


def primary_router(state: GenerationState) -> str:
    if state.get("outcome") is not None:
        return "done"
    if state.get("cancelled"):
        return "failed"
    return "fallback"


def fallback_router(state: GenerationState) -> str:
    if state.get("outcome") is not None:
        return "done"
    return "failed"


def build_graph(
    client: ModelClient,
    style: PromptStyle = "chat",
    system_prompt: Optional[str] = None,
) -> CompiledStateGraph:
    graph = StateGraph(GenerationState)
    graph.add_node("prompt", lambda s: prompt_node(s, style, system_prompt))
    graph.add_node("primary", lambda s: primary_node(s, client))
    graph.add_node("fallback", lambda s: fallback_node(s, client))
    graph.add_node("done", done_node)
    graph.add_node("failed", failed_node)
    graph.set_entry_point("prompt")
    graph.add_edge("prompt", "primary")
    graph.add_conditional_edges("primary", primary_router, {"done": "done", "fallback": "fallback", "failed": "failed"})
    graph.add_conditional_edges("fallback", fallback_router, {"done": "done", "failed": "failed"})
    graph.add_edge("done", END)
    graph.add_edge("failed", END)
    return graph.compile()
