"""模型客户端抽象接口。

上层 Responder 不直接依赖具体厂商的 HTTP SDK，而是依赖此协议：

- 每个厂商实现一个 ModelClient（如 GeminiClient）。
- 负责：将 Prompt 转成具体 API 请求，并把响应 JSON 解析为 GenerationOutcome。
- 任何失败（网络、API 错误、空输出、schema 校验失败）都以异常形式抛出。

Responder 只通过 model_id 区分主模型和备用模型，同一个客户端实例会被复用两次。
"""

from typing import Protocol

from chat_core.domain.models import GenerationOutcome, Prompt


class ModelClient(Protocol):
    """模型客户端协议。

    实现者需要提供：
    - name: Provider 名称，用于日志/统计。
    - generate(model_id, prompt): 执行一次非流式调用，返回统一的 GenerationOutcome。
    """

    name: str

    def generate(self, model_id: str, prompt: Prompt) -> GenerationOutcome:
        ...
