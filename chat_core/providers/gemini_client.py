"""Gemini Provider 适配器。

使用 Generative Language REST API 的 generateContent 端点：
- URL: {base_url}/models/{model}:generateContent
- 认证: x-goog-api-key: <api_key>

Prompt 与请求体的对应关系：
- Prompt.system -> systemInstruction
- PromptTurn -> contents[]，role 为 user / model，文本与图片分别作为 text / inlineData part
- 生成参数 -> generationConfig

开启 structured_output 时要求模型返回 JSON {"response": "..."}，
并用 pydantic 做 schema 校验；校验失败与空输出一样视为 MalformedOutputError，
由上层 Responder 统一触发备用模型。
"""

from typing import Any, Dict, List, Optional

import httpx
from pydantic import BaseModel, ValidationError as SchemaError

from chat_core.config.settings import settings
from chat_core.domain.exceptions import (
    ApiError,
    MalformedOutputError,
    NetworkError,
    RateLimitError,
    ValidationError,
)
from chat_core.domain.models import (
    GenerationOutcome,
    GenerationUsage,
    Prompt,
    PromptTurn,
)
from chat_core.providers.registry import ModelConfig, get_provider_config


class ResponsePayload(BaseModel):
    """structured_output 模式下模型必须返回的 JSON 结构。"""

    response: str


RESPONSE_SCHEMA = {
    "type": "OBJECT",
    "properties": {"response": {"type": "STRING", "description": "The AI response."}},
    "required": ["response"],
}


class GeminiClient:
    """Gemini Provider 客户端实现。"""

    name = "gemini"

    def __init__(self, cfg=settings):
        self._settings = cfg

    def generate(self, model_id: str, prompt: Prompt) -> GenerationOutcome:
        api_key = getattr(self._settings, "google_genai_api_key", None)
        if not api_key:
            raise ValidationError(code="MISSING_API_KEY", message="GOOGLE_GENAI_API_KEY not set")
        provider_cfg = get_provider_config(self.name, self._settings)
        model_cfg = provider_cfg.model_for(model_id)
        payload = self._build_payload(prompt, model_cfg)
        try:
            with httpx.Client(timeout=self._settings.http_timeout, trust_env=False) as client:
                resp = client.post(
                    f"{provider_cfg.base_url}/models/{model_id}:generateContent",
                    json=payload,
                    headers={
                        "x-goog-api-key": api_key,
                        "Content-Type": "application/json",
                    },
                )
        except httpx.RequestError as e:
            raise NetworkError(code="NETWORK_ERROR", message=str(e), model=model_id)
        if resp.status_code == 429:
            raise RateLimitError(code="RATE_LIMIT", message="Gemini rate limit", http_status=429, model=model_id)
        if resp.status_code >= 400:
            raise ApiError(code="API_ERROR", message=resp.text, http_status=resp.status_code, model=model_id)
        try:
            data = resp.json()
        except ValueError as e:
            raise MalformedOutputError(code="MALFORMED_OUTPUT", message=f"invalid JSON body: {e}", model=model_id)
        return self._parse_response(data, model_id)

    # ---- 辅助方法 ----

    def _build_payload(self, prompt: Prompt, model_cfg: ModelConfig) -> Dict[str, Any]:
        generation_config: Dict[str, Any] = {
            "temperature": model_cfg.default_temperature,
            "maxOutputTokens": model_cfg.max_output_tokens,
        }
        if getattr(self._settings, "structured_output", False):
            generation_config["responseMimeType"] = "application/json"
            generation_config["responseSchema"] = RESPONSE_SCHEMA
        payload: Dict[str, Any] = {
            "contents": [self._turn_to_payload(t) for t in prompt.turns],
            "generationConfig": generation_config,
        }
        if prompt.system:
            payload["systemInstruction"] = {"parts": [{"text": prompt.system}]}
        return payload

    @staticmethod
    def _turn_to_payload(turn: PromptTurn) -> Dict[str, Any]:
        parts: List[Dict[str, Any]] = []
        if turn.text:
            parts.append({"text": turn.text})
        for image in turn.images:
            parts.append({"inlineData": {"mimeType": image.mime_type, "data": image.data}})
        return {
            "role": "user" if turn.role == "user" else "model",
            "parts": parts,
        }

    def _parse_response(self, data: dict, model_id: str) -> GenerationOutcome:
        block_reason = (data.get("promptFeedback") or {}).get("blockReason")
        if block_reason:
            raise MalformedOutputError(
                code="PROMPT_BLOCKED",
                message=f"prompt blocked: {block_reason}",
                model=model_id,
            )
        candidates = data.get("candidates") or []
        if not candidates:
            raise MalformedOutputError(code="EMPTY_OUTPUT", message="no candidates returned", model=model_id)

        first = candidates[0]
        parts = (first.get("content") or {}).get("parts") or []
        # 只取文本 part；只有 functionCall 等非文本 part 时按空输出处理
        text = "".join(p.get("text", "") for p in parts if isinstance(p, dict)).strip()
        if not text:
            raise MalformedOutputError(
                code="EMPTY_OUTPUT",
                message=f"empty output (finishReason={first.get('finishReason')})",
                model=model_id,
            )
        if getattr(self._settings, "structured_output", False):
            text = self._validate_structured(text, model_id)

        return GenerationOutcome(
            text=text,
            model=model_id,
            usage=self._parse_usage(data.get("usageMetadata")),
            raw=data,
        )

    @staticmethod
    def _validate_structured(text: str, model_id: str) -> str:
        try:
            payload = ResponsePayload.model_validate_json(text)
        except SchemaError as e:
            raise MalformedOutputError(
                code="SCHEMA_VALIDATION_FAILED",
                message=str(e),
                model=model_id,
            )
        if not payload.response.strip():
            raise MalformedOutputError(code="EMPTY_OUTPUT", message="empty response field", model=model_id)
        return payload.response

    @staticmethod
    def _parse_usage(raw: Optional[dict]) -> Optional[GenerationUsage]:
        if not raw:
            return None
        return GenerationUsage(
            prompt_tokens=raw.get("promptTokenCount", 0),
            completion_tokens=raw.get("candidatesTokenCount", 0),
            total_tokens=raw.get("totalTokenCount", 0),
        )
