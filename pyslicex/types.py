"""
PySliceX 共用的類型定義。

集中放置 reducer、middleware、listener 等介面的型別別名與 Protocol，
供其他模組與 .pyi 存根文件引用。
"""
from typing import Any, Callable, Dict, Mapping, Optional, TypeVar, Union

from typing_extensions import Protocol, TypedDict

S = TypeVar("S")  # 狀態類型
P = TypeVar("P")  # 負載類型
T = TypeVar("T")
R = TypeVar("R")
Input = TypeVar("Input")
Output = TypeVar("Output")

# ———— Reducer ————
ReducerFunction = Callable[[Optional[S], Any], S]
CaseReducer = Callable[..., Any]  # (draft) 或 (draft, action)
CaseReducerMap = Mapping[str, CaseReducer]
RootState = Dict[str, Any]

# ———— Dispatch / Middleware ————
DispatchFunction = Callable[[Any], Any]
NextDispatch = DispatchFunction
MiddlewareFunction = Callable[[NextDispatch], DispatchFunction]
GetState = Callable[[], Mapping[str, Any]]
ThunkFunction = Callable[[DispatchFunction, GetState], Any]

# ———— Listener ————
Listener = Callable[[], None]
Unsubscribe = Callable[[], None]

# ———— Selector ————
StateSelector = Callable[[Input], Output]
ResultSelector = Callable[..., R]
MemoizedSelector = Callable[[Any], Any]


class StoreApi(Protocol):
    """middleware 可見的受限 Store 介面。"""

    def state(self) -> Mapping[str, Any]:
        ...

    def dispatch(self, action: Any) -> Any:
        ...


class Middleware(Protocol):
    """middleware 的三層結構：(store_api) -> (next) -> (action) -> Any。"""

    def __call__(self, store_api: StoreApi) -> MiddlewareFunction:
        ...


MiddlewareEntry = Union[Middleware, type]


class ActionContext(TypedDict, total=False):
    """BaseMiddleware.action_context 產生的上下文資料。"""

    action: Any
    prev_state: Any
    next_state: Any
    result: Any
    error: Optional[BaseException]
    started_at: float
