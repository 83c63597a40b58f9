"""领域层模型与异常。

包含：
- models: 统一的 ChatMessage / CallResult 模型与预测状态常量。
- exceptions: 业务异常类型定义。
"""
