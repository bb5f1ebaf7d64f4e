"""领域层模型与协议。

包含：
- conversation: ChatTurn 与调用方持有的 ConversationHistory。
- models: GenerationRequest / Prompt / GenerationResult 等统一模型。
- exceptions: 业务异常类型定义。
"""
