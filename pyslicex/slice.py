"""
Slice：具名、獨立定義的一塊狀態，連同其 reducer 與自動生成的 action creators。

每個 case reducer 以 "<slice 名稱>/<處理器名稱>" 為鍵登錄在路由表中；
slice reducer 依 action.type 查表，找不到時原樣返回狀態，
找到時在草稿上執行處理器並以結構共享的方式提交新狀態。
"""
import inspect
import logging
from types import MappingProxyType
from typing import Any, Callable, Dict, Generic, Iterator, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from .actions import Action, create_action, get_action_type
from .draft import apply_draft
from .errors import ConfigurationError
from .reducers import ReducerConfig
from .types import S, CaseReducer

logger = logging.getLogger(__name__)

ExtraReducers = Union[Mapping[Any, CaseReducer], Callable[["SliceCaseBuilder"], None]]


def _accepts_action(fn: Callable[..., Any]) -> bool:
    """判斷 case reducer 是否接收 action 參數。"""
    try:
        params = list(inspect.signature(fn).parameters.values())
    except (TypeError, ValueError):
        return True
    if any(p.kind == p.VAR_POSITIONAL for p in params):
        return True
    positional = [p for p in params if p.kind in (p.POSITIONAL_ONLY, p.POSITIONAL_OR_KEYWORD)]
    return len(positional) >= 2


def _as_case(fn: CaseReducer) -> Callable[[Any, Any], Any]:
    if _accepts_action(fn):
        return fn
    return lambda draft, action: fn(draft)


class SliceOptions(BaseModel):
    """create_slice 的選項。"""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str
    initial_state: Any
    reducers: Dict[str, Callable[..., Any]] = {}
    extra_reducers: Optional[Any] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("slice name must be a non-empty string")
        return value

    @field_validator("reducers")
    @classmethod
    def validate_reducers(cls, value: Dict[str, Callable[..., Any]]) -> Dict[str, Callable[..., Any]]:
        for key in value:
            if not key:
                raise ValueError("case reducer names must be non-empty")
        return value

    @field_validator("extra_reducers")
    @classmethod
    def validate_extra_reducers(cls, value: Any) -> Any:
        if value is None or callable(value) or isinstance(value, Mapping):
            return value
        raise ValueError("extra_reducers must be a mapping or a builder callback")


class SliceCaseBuilder:
    """
    為 slice 登錄額外 case 的建構器。

    用法:
        ```python
        def extra(builder):
            builder.add_case(reset_all, lambda draft: {"value": 0})
            builder.add_default_case(lambda draft, action: ...)
        ```
    """

    def __init__(self, slice_name: str) -> None:
        self._slice_name = slice_name
        self.cases: Dict[str, Callable[[Any, Any], Any]] = {}
        self.default_case: Optional[Callable[[Any, Any], Any]] = None

    def add_case(self, action_creator_or_type, handler: CaseReducer) -> "SliceCaseBuilder":
        if callable(action_creator_or_type) and hasattr(action_creator_or_type, "type"):
            action_type = action_creator_or_type.type
        else:
            action_type = action_creator_or_type
        if not isinstance(action_type, str) or not action_type:
            raise ConfigurationError(
                f"Invalid action type for extra case: {action_creator_or_type!r}",
                component="slice",
                config_key=self._slice_name,
            )
        self.cases[action_type] = _as_case(handler)
        return self

    def add_default_case(self, handler: CaseReducer) -> "SliceCaseBuilder":
        if self.default_case is not None:
            raise ConfigurationError(
                "A slice may only register one default case",
                component="slice",
                config_key=self._slice_name,
            )
        self.default_case = _as_case(handler)
        return self


class SliceActions(Mapping):
    """slice 的 action creators，可用屬性或索引存取。"""

    __slots__ = ("_creators",)

    def __init__(self, creators: Dict[str, Callable[..., Action[Any]]]) -> None:
        object.__setattr__(self, "_creators", creators)

    def __getitem__(self, name: str) -> Callable[..., Action[Any]]:
        return self._creators[name]

    def __getattr__(self, name: str) -> Callable[..., Action[Any]]:
        if name.startswith("_"):
            raise AttributeError(name)
        try:
            return self._creators[name]
        except KeyError:
            raise AttributeError(name) from None

    def __setattr__(self, name, value):
        raise AttributeError("slice actions are read-only")

    def __iter__(self) -> Iterator[str]:
        return iter(self._creators)

    def __len__(self) -> int:
        return len(self._creators)

    def __repr__(self) -> str:
        return f"SliceActions({list(self._creators)})"


class Slice(Generic[S]):
    """create_slice 的結果。"""

    __slots__ = ("name", "reducer", "actions", "case_reducers")

    def __init__(
        self,
        name: str,
        reducer: ReducerConfig,
        actions: SliceActions,
        case_reducers: Mapping[str, Callable[[Any, Any], Any]],
    ) -> None:
        self.name = name
        self.reducer = reducer
        self.actions = actions
        self.case_reducers = case_reducers

    def get_initial_state(self) -> S:
        return self.reducer.initial_state

    def __repr__(self) -> str:
        return f"Slice(name={self.name!r}, actions={list(self.actions)})"


def create_slice(
    name: Union[str, SliceOptions, None] = None,
    initial_state: Any = None,
    reducers: Optional[Mapping[str, CaseReducer]] = None,
    extra_reducers: Optional[ExtraReducers] = None,
) -> Slice[Any]:
    """
    建立一個 slice。

    Args:
        name: slice 名稱，作為 action 類型的前綴；也可直接傳入 SliceOptions
        initial_state: slice 的初始狀態
        reducers: 處理器名稱到 case reducer 的映射。case reducer 以直接修改草稿的
            方式撰寫，簽名為 (draft) 或 (draft, action)；也可以返回新的狀態取代草稿
        extra_reducers: 額外的 case（回應非本 slice 定義的 action），
            可為 {action 類型或 creator: 處理器} 映射，或接收 SliceCaseBuilder 的回呼

    Returns:
        Slice，含 name、reducer (ReducerConfig) 與 actions

    範例:
        ```python
        counter = create_slice(
            name="counter",
            initial_state={"value": 0},
            reducers={
                "increment": lambda draft: draft.update(value=draft["value"] + 1),
                "increment_by_amount": increment_by_amount,
            },
        )
        store.dispatch(counter.actions.increment())
        store.dispatch(counter.actions.increment_by_amount(5))
        ```
    """
    if isinstance(name, SliceOptions):
        options = name
    else:
        try:
            options = SliceOptions(
                name=name,
                initial_state=initial_state,
                reducers=dict(reducers or {}),
                extra_reducers=extra_reducers,
            )
        except ValidationError as err:
            raise ConfigurationError(
                f"Invalid options for slice {name!r}: {err.errors()[0]['msg']}",
                component="slice",
                config_key=name if isinstance(name, str) else None,
                errors=err.errors(),
            ) from err

    slice_name = options.name
    slice_initial_state = options.initial_state
    action_creators: Dict[str, Callable[..., Action[Any]]] = {}
    case_reducers: Dict[str, Callable[[Any, Any], Any]] = {}

    # 建立 action creators 與路由表
    for key, handler in options.reducers.items():
        action_type = f"{slice_name}/{key}"
        case_reducers[action_type] = _as_case(handler)
        if _accepts_action(handler):
            action_creators[key] = create_action(action_type)
        else:
            action_creators[key] = create_action(action_type, lambda: None)

    builder = SliceCaseBuilder(slice_name)
    extra = options.extra_reducers
    if isinstance(extra, Mapping):
        for action_creator_or_type, handler in extra.items():
            builder.add_case(action_creator_or_type, handler)
    elif extra is not None:
        extra(builder)

    for action_type, handler in builder.cases.items():
        if action_type in case_reducers:
            logger.debug("extra case for %s overrides the case reducer of slice %s", action_type, slice_name)
        case_reducers[action_type] = handler
    default_case = builder.default_case

    def reducer(state: Any = None, action: Any = None) -> Any:
        if state is None:
            state = slice_initial_state
        if action is None:
            return state

        handler = case_reducers.get(get_action_type(action))
        if handler is not None:
            return apply_draft(state, lambda draft: handler(draft, action))

        if default_case is None:
            return state
        next_state = apply_draft(state, lambda draft: default_case(draft, action))
        if next_state is state or next_state == state:
            return state
        return next_state

    reducer.__name__ = f"{slice_name}_reducer"

    return Slice(
        name=slice_name,
        reducer=ReducerConfig(initial_state=slice_initial_state, reducer=reducer),
        actions=SliceActions(action_creators),
        case_reducers=MappingProxyType(case_reducers),
    )
