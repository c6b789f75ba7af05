"""
PySliceX - 以 slice 組合狀態的可預測狀態容器。

主要功能:
- create_slice: 以「直接修改草稿」的寫法定義 slice，並自動生成 action creators
- combine_reducers: 將多個 slice reducer 合併為根 reducer
- compose / 中介軟體: 在 dispatch 與 reducer 之間插入攔截邏輯
- Store: 持有根狀態，提供 state() / dispatch() / register_listener()
"""
import logging

from .errors import (
    PySliceXError, StoreError, ReentrancyError, ActionError,
    ConfigurationError, DraftError
)
from .actions import (
    Action, create_action, create_action_with_type, create_actions,
    is_action_of, get_action_type
)
from .draft import apply_draft, current, is_draft, original
from .reducers import ReducerConfig, combine_reducers, create_reducer, on
from .slice import Slice, SliceCaseBuilder, SliceOptions, create_slice
from .middleware import (
    compose, apply_middleware, BaseMiddleware, LoggerMiddleware,
    ThunkMiddleware, ErrorMiddleware, PerformanceMonitorMiddleware, global_error
)
from .store import Store, StoreApi, create_store, dispatch
from .store_selectors import create_selector
from .immutable_utils import freeze, to_dict

logging.getLogger(__name__).addHandler(logging.NullHandler())

# 匯出所有公開 API
__all__ = [
    # Errors
    "PySliceXError", "StoreError", "ReentrancyError", "ActionError",
    "ConfigurationError", "DraftError",

    # Actions
    "Action", "create_action", "create_action_with_type", "create_actions",
    "is_action_of", "get_action_type",

    # Draft
    "apply_draft", "current", "is_draft", "original",

    # Reducers
    "ReducerConfig", "combine_reducers", "create_reducer", "on",

    # Slice
    "Slice", "SliceCaseBuilder", "SliceOptions", "create_slice",

    # Middleware
    "compose", "apply_middleware", "BaseMiddleware", "LoggerMiddleware",
    "ThunkMiddleware", "ErrorMiddleware", "PerformanceMonitorMiddleware",
    "global_error",

    # Store
    "Store", "StoreApi", "create_store", "dispatch",

    # Selectors
    "create_selector",

    # Immutable Utils
    "freeze", "to_dict",
]
