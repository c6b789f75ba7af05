"""
Reducer 配置與組合。

ReducerConfig 將一個 slice 的初始狀態與 reducer 綁在一起；
combine_reducers 將多個具名的 ReducerConfig 合併為單一根 reducer。
"""
from typing import Any, Callable, Dict, Generic, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict

from .actions import get_action_type
from .errors import ConfigurationError
from .types import S, ReducerFunction, RootState


class ReducerConfig(BaseModel, Generic[S]):
    """
    slice reducer 的配置：初始狀態與 reducer 函數。

    建立後不可修改。呼叫配置本身等同呼叫 reducer，
    state 為 None 時代表尚未初始化，會以 initial_state 代入。
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    initial_state: Any
    reducer: Callable[[Any, Any], Any]

    def __call__(self, state: Optional[S] = None, action: Any = None) -> S:
        if state is None:
            state = self.initial_state
        return self.reducer(state, action)


ReducerLike = Union[ReducerConfig, Mapping[str, Any], ReducerFunction]


def as_reducer_config(key: str, value: ReducerLike) -> ReducerConfig:
    """
    將 reducers 映射中的單一項目正規化為 ReducerConfig。

    接受:
        - ReducerConfig
        - 含 initial_state 與 reducer 鍵的 Mapping
        - 帶有 initial_state 屬性的 reducer 函數（例如 combine_reducers 的結果）
    """
    if isinstance(value, ReducerConfig):
        return value
    if isinstance(value, Mapping):
        if "reducer" not in value or "initial_state" not in value:
            raise ConfigurationError(
                f"Reducer config for '{key}' must define 'initial_state' and 'reducer'",
                component="reducers",
                config_key=key,
            )
        return ReducerConfig(initial_state=value["initial_state"], reducer=value["reducer"])
    if callable(value) and hasattr(value, "initial_state"):
        return ReducerConfig(initial_state=value.initial_state, reducer=value)
    raise ConfigurationError(
        f"Unsupported reducer for '{key}': {type(value).__name__}",
        component="reducers",
        config_key=key,
    )


def combine_reducers(reducers: Mapping[str, ReducerLike]) -> Callable[[Optional[RootState], Any], RootState]:
    """
    將多個 slice reducer 合併為單一根 reducer。

    若本次沒有任何 slice 的子狀態改變（以 `is` 比較），返回原本的根狀態物件，
    讓使用者能以引用比較判斷變更。

    Args:
        reducers: slice 鍵名到 reducer 配置的映射

    Returns:
        根 reducer，附帶 initial_state 屬性（各 slice 初始狀態組成的字典）

    範例:
        >>> root = combine_reducers({"counter": counter_slice.reducer})
        >>> root(None, counter_slice.actions.increment())
        {'counter': {'value': 1}}
    """
    configs: Dict[str, ReducerConfig] = {
        key: as_reducer_config(key, value) for key, value in reducers.items()
    }

    def combination(state: Optional[RootState] = None, action: Any = None) -> RootState:
        if state is None:
            state = {}
        next_state: RootState = {}
        has_changed = False

        for key, config in configs.items():
            previous_for_key = state.get(key)
            next_for_key = config(previous_for_key, action)
            next_state[key] = next_for_key
            has_changed = has_changed or next_for_key is not previous_for_key

        return next_state if has_changed else state

    combination.initial_state = {key: config.initial_state for key, config in configs.items()}  # type: ignore[attr-defined]
    combination.reducers = dict(configs)  # type: ignore[attr-defined]
    return combination


def create_reducer(initial_state: S, *handlers) -> ReducerConfig:
    """
    創建一個手寫風格的 reducer：處理函式直接返回新狀態，不使用草稿。

    Args:
        initial_state: 初始狀態。
        *handlers: 一系列 (action_type, handler_fn) 元組或使用 on 函式創建的處理器。

    Returns:
        ReducerConfig，根據 action 的類型執行對應的處理邏輯。
    """
    action_handlers: Dict[str, Callable[[Any, Any], Any]] = {}

    for handler in handlers:
        if isinstance(handler, tuple) and len(handler) == 2:
            action_type, handler_fn = handler
            action_handlers[action_type] = handler_fn
        elif isinstance(handler, Mapping):
            action_handlers.update(handler)
        else:
            raise ConfigurationError(
                f"Unsupported handler entry: {handler!r}",
                component="create_reducer",
            )

    def reducer(state: S, action: Any = None) -> S:
        handler_fn = action_handlers.get(get_action_type(action))
        if handler_fn is None:
            return state
        return handler_fn(state, action)

    return ReducerConfig(initial_state=initial_state, reducer=reducer)


def on(action_creator_or_type, handler: Callable[[Any, Any], Any]) -> Dict[str, Callable[[Any, Any], Any]]:
    """
    創建一個 action 類型與處理函式的映射。

    Args:
        action_creator_or_type: Action 創建器函式或 Action 類型字串。
        handler: 處理該 Action 的函式，接收 (state, action) 並返回新狀態。
    """
    if callable(action_creator_or_type) and hasattr(action_creator_or_type, 'type'):
        action_type = action_creator_or_type.type
    else:
        action_type = str(action_creator_or_type)

    return {action_type: handler}
