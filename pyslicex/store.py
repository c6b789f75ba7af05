import logging
from typing import Any, Callable, Dict, Generic, Iterable, Mapping, Optional

from immutables import Map
from reactivex import Observable, Subject
from reactivex import operators as ops

from .errors import ReentrancyError, StoreError
from .actions import get_action_type
from .immutable_utils import freeze
from .middleware import apply_middleware
from .reducers import ReducerLike, combine_reducers
from .types import S, DispatchFunction, Listener, MiddlewareEntry, RootState, Unsubscribe

logger = logging.getLogger(__name__)


class StoreApi:
    """
    提供給 middleware 的受限 Store 介面。

    只暴露 state() 與 dispatch()；dispatch 綁定 Store 的公開 dispatch，
    因此由 middleware 發出的 action 會從頭重新進入整條管線。
    """

    __slots__ = ("_state", "_dispatch")

    def __init__(self, state: Callable[[], Map], dispatch: DispatchFunction) -> None:
        self._state = state
        self._dispatch = dispatch

    def state(self) -> Map:
        return self._state()

    def dispatch(self, action: Any) -> Any:
        return self._dispatch(action)


class Store(Generic[S]):
    """
    狀態容器，管理根狀態並在每次 dispatch 後通知 listeners。

    dispatch 流程: middleware 管線 -> base dispatch -> 根 reducer -> 替換狀態 -> 通知 listeners。
    base dispatch 不可重入；reducer 執行期間呼叫 dispatch 或 state() 會拋出 ReentrancyError。
    """

    def __init__(
        self,
        reducer: Callable[[Optional[RootState], Any], RootState],
        initial_state: RootState,
        middleware: Iterable[MiddlewareEntry] = (),
    ) -> None:
        """
        Args:
            reducer: 根 reducer
            initial_state: 初始根狀態
            middleware: 中介軟體列表，第一個為最外層
        """
        self._reducer = reducer
        self._state: RootState = initial_state
        self._listeners: Dict[Listener, None] = {}
        self._is_dispatching = False
        self._snapshot: Optional[Map] = None
        self._snapshot_source: Optional[RootState] = None
        # 狀態流，發出 (old_state, new_state)
        self._state_subject: Subject = Subject()

        middleware = list(middleware)
        # 中介軟體建構期間不允許 dispatch
        self._dispatch: DispatchFunction = self._dispatch_while_constructing
        self._api = StoreApi(state=self.state, dispatch=self.dispatch)
        if middleware:
            self._dispatch = apply_middleware(self._api, middleware, self._base_dispatch)
        else:
            self._dispatch = self._base_dispatch

    @classmethod
    def create(
        cls,
        reducers: Mapping[str, ReducerLike],
        middleware: Optional[Iterable[MiddlewareEntry]] = None,
    ) -> "Store[RootState]":
        """
        由 slice reducer 配置建立 Store。

        Args:
            reducers: slice 鍵名到 reducer 配置的映射
            middleware: 可選的中介軟體列表

        Returns:
            新的 Store，初始狀態由各 slice 的 initial_state 組成
        """
        reducer = combine_reducers(reducers)
        middleware = list(middleware or ())
        logger.debug(
            "creating store with slices %s and %d middleware", list(reducer.initial_state), len(middleware)
        )
        return cls(reducer, dict(reducer.initial_state), middleware)

    def _dispatch_while_constructing(self, action: Any) -> Any:
        raise StoreError(
            "Dispatching while constructing middleware is not allowed",
            operation="dispatch",
            action_type=get_action_type(action),
        )

    @property
    def is_dispatching(self) -> bool:
        return self._is_dispatching

    def state(self) -> Map:
        """
        獲取當前根狀態的快照（第一層不可變）。

        根狀態未改變時返回同一個快照物件。

        Raises:
            ReentrancyError: 在 reducer 執行期間呼叫
        """
        if self._is_dispatching:
            raise ReentrancyError("Cannot read state while dispatching", operation="state")
        if self._snapshot is None or self._snapshot_source is not self._state:
            self._snapshot = freeze(self._state)
            self._snapshot_source = self._state
        return self._snapshot

    def dispatch(self, action: Any) -> Any:
        """
        分發一個動作，經過中介軟體管線後觸發狀態更新。

        Args:
            action: 要分發的 Action

        Returns:
            管線的返回值；沒有中介軟體改變返回值時為傳入的 Action
        """
        return self._dispatch(action)

    def _base_dispatch(self, action: Any) -> Any:
        """
        核心的 dispatch：執行根 reducer、提交新狀態，再通知 listeners。
        """
        if self._is_dispatching:
            raise ReentrancyError(
                "Reducers may not dispatch actions", operation="dispatch", action_type=get_action_type(action)
            )

        old_state = self._state
        try:
            self._is_dispatching = True
            self._state = self._reducer(self._state, action)
        finally:
            self._is_dispatching = False

        logger.debug("dispatched %s (changed=%s)", get_action_type(action), self._state is not old_state)

        for listener in list(self._listeners):
            listener()

        self._state_subject.on_next((old_state, self._state))
        return action

    def register_listener(self, listener: Listener) -> Unsubscribe:
        """
        註冊一個在每次 dispatch 完成後呼叫的 listener。

        Returns:
            取消註冊的函數
        """
        self._listeners[listener] = None
        logger.debug("listener registered (%d total)", len(self._listeners))

        def unregister() -> None:
            if listener in self._listeners:
                del self._listeners[listener]
                logger.debug("listener unregistered (%d total)", len(self._listeners))

        return unregister

    def select(self, selector: Optional[Callable[[Map], Any]] = None) -> Observable:
        """
        選擇狀態的一部分進行觀察。

        Args:
            selector: 一個函數，接收整個狀態並返回希望觀察的部分。

        Returns:
            一個可觀察對象，dispatch 後發送 (舊值, 新值)。
            未提供 selector 時發送根狀態快照，根狀態引用不變時不發送；
            提供 selector 時新值與上一次相等則不發送。
        """
        if selector is None:
            return self._state_subject.pipe(
                ops.distinct_until_changed(lambda pair: pair[1], comparer=lambda a, b: a is b),
                ops.map(lambda pair: (freeze(pair[0]), freeze(pair[1]))),
            )

        return self._state_subject.pipe(
            ops.map(lambda pair: (selector(freeze(pair[0])), selector(freeze(pair[1])))),
            ops.distinct_until_changed(lambda pair: pair[1]),
        )


def create_store(
    reducers: Mapping[str, ReducerLike],
    middleware: Optional[Iterable[MiddlewareEntry]] = None,
) -> Store[RootState]:
    """
    創建一個新的 Store 實例。

    範例:
        ```python
        store = create_store(
            {"counter": counter.reducer, "todos": todos.reducer},
            middleware=[LoggerMiddleware, ThunkMiddleware],
        )
        ```
    """
    return Store.create(reducers, middleware)


def dispatch(store: Store[Any], action: Any) -> Any:
    """將 action 分發到指定的 store。"""
    return store.dispatch(action)
