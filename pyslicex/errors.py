"""
PySliceX 錯誤定義模組。

所有由 PySliceX 本身拋出的異常都繼承自 PySliceXError。
reducer、middleware 或 listener 自行拋出的異常不會被包裝，而是原樣向上傳遞。
"""
from typing import Any, Dict, Optional


class PySliceXError(Exception):
    """所有 PySliceX 異常的基礎類。"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """轉為可記錄的結構化字典。"""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "details": dict(self.details),
        }

    def __str__(self) -> str:
        return self.message


class StoreError(PySliceXError):
    """與 Store 相關的錯誤。"""

    def __init__(self, message: str, operation: str, **kwargs: Any) -> None:
        details = {"operation": operation}
        details.update(kwargs)
        super().__init__(message, details)
        self.operation = operation


class ReentrancyError(StoreError):
    """dispatch 進行中又呼叫了 dispatch 或受保護的 state()。"""


class ActionError(PySliceXError):
    """與 Action 相關的錯誤。"""

    def __init__(self, message: str, action_type: Optional[str], payload: Any = None, **kwargs: Any) -> None:
        details = {"action_type": action_type, "payload": payload}
        details.update(kwargs)
        super().__init__(message, details)
        self.action_type = action_type


class ConfigurationError(PySliceXError):
    """配置相關的錯誤。"""

    def __init__(self, message: str, component: str, config_key: Optional[str] = None, **kwargs: Any) -> None:
        details = {"component": component, "config_key": config_key}
        details.update(kwargs)
        super().__init__(message, details)
        self.component = component
        self.config_key = config_key


class DraftError(PySliceXError):
    """草稿 (draft) 使用錯誤，例如存取已失效的草稿。"""

    def __init__(self, message: str, **kwargs: Any) -> None:
        super().__init__(message, kwargs)
