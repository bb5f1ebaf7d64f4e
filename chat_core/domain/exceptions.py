"""统一业务异常模型。

所有跨模块抛出的业务级错误都应该继承自 BusinessError，
便于在 API 层或 UI 层做统一捕获与用户提示。

模型调用相关的错误都继承自 ModelCallError：对 Responder 来说，
任何 ModelCallError（以及任何其他异常）都意味着“本次尝试失败”。
"""


class BusinessError(Exception):
    """业务异常基类。

    Attributes:
        code: 机器可读错误码（如 "INVALID_REQUEST"）。
        message: 用户可读错误信息。
        http_status: 映射到 HTTP 时可用的状态码，默认 400。
        extra: 其他补充字段（例如 trace_id、model 等）。
    """

    def __init__(self, code: str, message: str, http_status: int = 400, **extra):
        self.code = code
        self.message = message
        self.http_status = http_status
        self.extra = extra
        super().__init__(message)


class InvalidRequestError(BusinessError):
    """请求既没有文本也没有图片，或当前图片无法解析；不会发起任何模型调用。"""

    def __init__(self, message: str = "message and image are both empty", **extra):
        super().__init__(code="INVALID_REQUEST", message=message, http_status=400, **extra)


class ModelCallError(BusinessError):
    """一次模型调用失败的基类。"""


class NetworkError(ModelCallError):
    """网络层错误，例如连接失败、超时等。"""


class ApiError(ModelCallError):
    """第三方 API 返回非 2xx/429 错误时抛出。"""


class RateLimitError(ModelCallError):
    """Provider 限流错误。Responder 不做退避，直接切换备用模型。"""


class MalformedOutputError(ModelCallError):
    """模型返回内容为空、被拦截或不符合输出 schema。"""


class ValidationError(ModelCallError):
    """参数或配置校验失败（如缺少 API Key）。"""


class PrimaryModelFailure(BusinessError):
    """主模型失败。只在流程内部记录，用来触发备用模型，不会抛给调用方。"""


class FallbackModelFailure(BusinessError):
    """主模型失败后，备用模型也失败。"""


class TotalGenerationFailure(BusinessError):
    """两次尝试都失败（或请求被取消）后的终态错误。

    Responder 默认以 GenerationResult(failed=True) 的形式返回该终态，
    只有调用方显式调用 GenerationResult.raise_for_failure() 时才会抛出。
    """
