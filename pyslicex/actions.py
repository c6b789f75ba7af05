"""
基於 PySliceX 的 Action 定義模組。

此模組提供 Action 類別以及創建 Action 的功能。
Actions 是描述狀態變更意圖的不可變對象。
"""
from typing import Any, Callable, Dict, Generic, Mapping, NamedTuple, Optional

from .errors import ActionError
from .types import P


class Action(Generic[P]):
    """
    表示一個有類型和可選負載的動作。

    泛型參數:
        P: 負載的類型

    屬性:
        type: 動作的類型字符串
        payload: 動作的負載數據（可選）
    """
    __slots__ = ('type', 'payload')

    def __init__(self, type: str, payload: Optional[P] = None):
        if not isinstance(type, str) or not type:
            raise ActionError("Action type must be a non-empty string", action_type=type, payload=payload)
        super().__setattr__('type', type)
        super().__setattr__('payload', payload)

    def __setattr__(self, name, value):
        raise AttributeError(f"Cannot modify immutable instance attribute '{name}'")

    def __delattr__(self, name):
        raise AttributeError(f"Cannot delete immutable instance attribute '{name}'")

    def __eq__(self, other):
        if not isinstance(other, Action):
            return False
        return self.type == other.type and self.payload == other.payload

    def __hash__(self):
        return hash((self.type, self.payload))

    def __repr__(self):
        return f"Action(type='{self.type}', payload={self.payload!r})"


def get_action_type(action: Any) -> Optional[str]:
    """
    讀取 action 的類型。

    支援 Action、任何帶有 type 屬性的物件，以及含 "type" 鍵的 Mapping。
    其他值（例如 thunk 函數）沒有類型，回傳 None。
    """
    if isinstance(action, Action):
        return action.type
    if isinstance(action, Mapping):
        action_type = action.get("type")
    else:
        action_type = getattr(action, "type", None)
    return action_type if isinstance(action_type, str) else None


def create_action(action_type: str, prepare_fn: Optional[Callable[..., Any]] = None) -> Callable[..., Action[Any]]:
    """
    創建一個 Action 生成器函數。

    Args:
        action_type: Action 的類型標識符
        prepare_fn: 可選的預處理函數，用於在創建 Action 前處理輸入參數

    Returns:
        一個可調用的函數，用於生成指定類型的 Action

    範例:
        >>> increment = create_action("counter/increment")
        >>> increment()  # 返回 Action(type='counter/increment', payload=None)
        >>>
        >>> add = create_action("counter/add", lambda amount: amount)
        >>> add(5)  # 返回 Action(type='counter/add', payload=5)
    """
    if not isinstance(action_type, str) or not action_type:
        raise ActionError("Action type must be a non-empty string", action_type=action_type)

    def action_creator(*args: Any, **kwargs: Any) -> Action[Any]:
        if prepare_fn is not None:
            return Action(action_type, prepare_fn(*args, **kwargs))
        if not args and not kwargs:
            return Action(action_type)
        if len(args) == 1 and not kwargs:
            return Action(action_type, args[0])
        if kwargs and not args:
            return Action(action_type, dict(kwargs))
        raise ActionError(
            f"Action creator '{action_type}' accepts a single payload argument",
            action_type=action_type,
            payload=args,
        )

    # 添加 type 屬性以便於識別
    action_creator.type = action_type  # type: ignore[attr-defined]
    action_creator.__name__ = action_type.rsplit("/", 1)[-1]
    action_creator.__qualname__ = action_creator.__name__

    return action_creator


class ActionCreatorWithType(NamedTuple):
    action_creator: Callable[..., Action[Any]]
    type: str


def create_action_with_type(action_type: str) -> ActionCreatorWithType:
    """創建 Action 生成器，並連同其類型一起返回。"""
    return ActionCreatorWithType(create_action(action_type), action_type)


def create_actions(action_types: Mapping[str, str]) -> Dict[str, Callable[..., Action[Any]]]:
    """
    一次創建多個 Action 生成器。

    Args:
        action_types: 名稱到 Action 類型的映射

    Returns:
        名稱到 Action 生成器的字典
    """
    return {name: create_action(action_type) for name, action_type in action_types.items()}


def is_action_of(action_creator: Callable[..., Action[Any]]) -> Callable[[Any], bool]:
    """
    產生判斷 action 是否由指定生成器建立的謂詞函數。

    範例:
        >>> increment = create_action("counter/increment")
        >>> is_increment = is_action_of(increment)
        >>> is_increment(increment(5))
        True
    """
    expected = getattr(action_creator, "type", None)
    if expected is None:
        expected = get_action_type(action_creator(None))

    def predicate(action: Any) -> bool:
        return get_action_type(action) == expected

    return predicate
