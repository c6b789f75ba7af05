"""
基於 PySliceX 的中介軟體定義模組。

此模組提供 middleware 的組合函數 compose 與 apply_middleware，
以及各種內建中介軟體，用於在動作分發過程中插入自定義邏輯，
實現日誌記錄、thunk、錯誤回報、性能監控等功能。

middleware 為三層結構: (store_api) -> (next) -> (action) -> Any。
store_api 只提供 state() 與 dispatch()；其中 dispatch 會從頭重新進入整條管線。
"""

import contextlib
import functools
import inspect
import logging
import time
from typing import Any, Callable, Dict, Generator, Iterable, List, Optional

from .actions import Action, create_action, get_action_type
from .errors import ConfigurationError, PySliceXError, ReentrancyError
from .immutable_utils import to_dict
from .types import (
    ActionContext, DispatchFunction, MiddlewareEntry, MiddlewareFunction,
    NextDispatch, StoreApi, ThunkFunction
)

logger = logging.getLogger(__name__)


# ———— Composition ————
def compose(*funcs: Callable[[Any], Any]) -> Callable[[Any], Any]:
    """
    由右至左組合單參數函數。

    compose(f, g, h)(x) 等同 f(g(h(x)))，因此第一個函數位於最外層。
    沒有函數時返回恆等函數；只有一個時原樣返回。
    """
    if not funcs:
        return lambda arg: arg
    if len(funcs) == 1:
        return funcs[0]
    return functools.reduce(lambda outer, inner: lambda arg: outer(inner(arg)), funcs)


def _as_stage(entry: MiddlewareEntry) -> Callable[[StoreApi], MiddlewareFunction]:
    # 類別直接實例化，函數與實例原樣使用
    stage = entry() if inspect.isclass(entry) else entry
    if not callable(stage):
        raise ConfigurationError(
            f"Middleware must be callable, got {type(stage).__name__}",
            component="middleware",
        )
    return stage


def apply_middleware(
    store_api: StoreApi,
    middlewares: Iterable[MiddlewareEntry],
    base_dispatch: DispatchFunction,
) -> DispatchFunction:
    """
    構建中介軟體鏈，將中介軟體按順序包裹在 base_dispatch 外層。

    Args:
        store_api: 提供給中介軟體的受限 Store 介面
        middlewares: 中介軟體列表，第一個為最外層
        base_dispatch: 最內層的 dispatch

    Returns:
        包裹後的 dispatch 方法。
    """
    chain: List[MiddlewareFunction] = []
    for entry in middlewares:
        link = _as_stage(entry)(store_api)
        if not callable(link):
            raise ConfigurationError(
                f"Middleware {entry!r} did not return a callable chain link",
                component="middleware",
            )
        chain.append(link)
    return compose(*chain)(base_dispatch)


# ———— Base Middleware ————
class BaseMiddleware:
    """
    基礎中介類，定義所有中介可能實現的鉤子。

    中介軟體可以介入動作分發的流程，在動作到達 Reducer 前、
    動作處理完成後或出現錯誤時執行自定義邏輯。
    只覆寫鉤子的子類會由預設的 __call__ 轉成管線中的一個階段；
    需要完全控制流程的子類（例如 ThunkMiddleware）則直接覆寫 __call__。
    """

    def on_next(self, action: Any, prev_state: Any) -> None:
        """
        在 action 發送給 reducer 之前調用。

        Args:
            action: 正在 dispatch 的 Action
            prev_state: dispatch 之前的 state 快照
        """
        pass

    def on_complete(self, next_state: Any, action: Any) -> None:
        """
        在 reducer 處理完 action 之後調用。

        Args:
            next_state: dispatch 之後的 state 快照
            action: 剛剛 dispatch 的 Action
        """
        pass

    def on_error(self, error: Exception, action: Any) -> None:
        """
        如果 dispatch 過程中拋出異常，則調用此鉤子。錯誤之後仍會原樣拋出。

        Args:
            error: 拋出的異常
            action: 導致異常的 Action
        """
        pass

    @contextlib.contextmanager
    def action_context(self, action: Any, prev_state: Any) -> Generator[ActionContext, None, None]:
        """
        以上下文管理器處理 action 分發的生命週期。

        進入時呼叫 on_next；離開時若上下文中已設置 next_state 則呼叫 on_complete；
        發生異常時呼叫 on_error 後重新拋出。

        Yields:
            ActionContext: 在上下文內部與外部之間傳遞數據的字典
        """
        context: ActionContext = {
            'action': action,
            'prev_state': prev_state,
            'next_state': None,
            'result': None,
            'error': None,
            'started_at': time.perf_counter(),
        }

        self.on_next(action, prev_state)

        try:
            yield context
        except Exception as err:
            context['error'] = err
            self.on_error(err, action)
            raise

        if context['next_state'] is not None:
            self.on_complete(context['next_state'], action)

    def __call__(self, store_api: StoreApi) -> MiddlewareFunction:
        def middleware(next_dispatch: NextDispatch) -> DispatchFunction:
            def dispatch(action: Any) -> Any:
                with self.action_context(action, store_api.state()) as context:
                    context['result'] = next_dispatch(action)
                    context['next_state'] = store_api.state()
                return context['result']
            return dispatch
        return middleware


# ———— LoggerMiddleware ————
class LoggerMiddleware(BaseMiddleware):
    """
    日誌中介，記錄每個 action 以及發送前和發送後的 state。

    使用場景:
    - 偵錯時需要觀察每次 state 的變化。
    - 確保 action 的執行順序正確。
    """

    def __init__(self, logger: Optional[logging.Logger] = None, level: int = logging.INFO) -> None:
        self.logger = logger or logging.getLogger(__name__)
        self.level = level

    def on_next(self, action: Any, prev_state: Any) -> None:
        action_type = get_action_type(action)
        self.logger.log(self.level, "dispatching %s", action_type)
        if self.logger.isEnabledFor(logging.DEBUG):
            self.logger.debug("state before %s: %s", action_type, to_dict(prev_state))

    def on_complete(self, next_state: Any, action: Any) -> None:
        if self.logger.isEnabledFor(logging.DEBUG):
            self.logger.debug("state after %s: %s", get_action_type(action), to_dict(next_state))

    def on_error(self, error: Exception, action: Any) -> None:
        self.logger.error("error in %s: %s", get_action_type(action), error)


# ———— ThunkMiddleware ————
class ThunkMiddleware(BaseMiddleware):
    """
    支援 dispatch 函數 (thunk)，可以在 thunk 內多次 dispatch。

    thunk 以 thunk(dispatch, get_state) 呼叫，其中 dispatch 會重新進入整條管線。

    範例:
        ```python
        def add_twice(amount):
            def thunk(dispatch, get_state):
                dispatch(counter.actions.increment_by_amount(amount))
                dispatch(counter.actions.increment_by_amount(amount))
                return get_state()["counter"]["value"]
            return thunk

        store.dispatch(add_twice(5))
        ```
    """

    def __call__(self, store_api: StoreApi) -> MiddlewareFunction:
        def middleware(next_dispatch: NextDispatch) -> DispatchFunction:
            def dispatch(action: Any) -> Any:
                if callable(action) and not isinstance(action, Action):
                    thunk: ThunkFunction = action
                    return thunk(store_api.dispatch, store_api.state)
                return next_dispatch(action)
            return dispatch
        return middleware


# ———— ErrorMiddleware ————
global_error = create_action("[Error] GlobalError", lambda info: info)


class ErrorMiddleware(BaseMiddleware):
    """
    捕獲 dispatch 過程中的異常，dispatch 全域錯誤 Action 後原樣重新拋出。

    使用場景:
    - 當需要統一處理所有異常並記錄或上報時。

    重入錯誤不會被回報：在 dispatch 進行中回報只會再次觸發重入錯誤。
    回報本身失敗時只記錄日誌，不會再次回報。
    """

    def __init__(self) -> None:
        self.store_api: Optional[StoreApi] = None
        self._reporting = False

    def __call__(self, store_api: StoreApi) -> MiddlewareFunction:
        self.store_api = store_api
        return super().__call__(store_api)

    def on_error(self, error: Exception, action: Any) -> None:
        if isinstance(error, ReentrancyError) or self.store_api is None or self._reporting:
            return
        error_info = {
            "error": str(error),
            "error_type": error.__class__.__name__,
            "action": get_action_type(action),
            "timestamp": time.time(),
            "details": error.to_dict()["details"] if isinstance(error, PySliceXError) else {},
        }
        self._reporting = True
        try:
            self.store_api.dispatch(global_error(error_info))
        except Exception:
            logger.exception("failed to report error for %s", error_info["action"])
        finally:
            self._reporting = False


# ———— PerformanceMonitorMiddleware ————
class PerformanceMonitorMiddleware(BaseMiddleware):
    """
    性能監控中間件，記錄 action 處理時間。
    """

    def __init__(self, threshold_ms: float = 100, log_all: bool = False) -> None:
        """
        初始化 PerformanceMonitorMiddleware。

        Args:
            threshold_ms: 性能警告閾值，單位為毫秒，預設為 100 毫秒
            log_all: 是否記錄所有 action 的性能指標，預設為 False (只記錄超過閾值的)
        """
        self.threshold_ms = threshold_ms
        self.log_all = log_all
        self.metrics: Dict[str, List[float]] = {}

    @contextlib.contextmanager
    def action_context(self, action: Any, prev_state: Any) -> Generator[ActionContext, None, None]:
        with super().action_context(action, prev_state) as context:
            try:
                yield context
            finally:
                self._record(action, (time.perf_counter() - context['started_at']) * 1000)

    def _record(self, action: Any, elapsed_ms: float) -> None:
        action_type = get_action_type(action) or repr(action)
        self.metrics.setdefault(action_type, []).append(elapsed_ms)
        if elapsed_ms > self.threshold_ms:
            logger.warning(
                "action %s took %.2fms (threshold %sms)", action_type, elapsed_ms, self.threshold_ms
            )
        elif self.log_all:
            logger.debug("action %s took %.2fms", action_type, elapsed_ms)

    def get_metrics(self) -> Dict[str, Dict[str, float]]:
        """
        獲取性能指標統計信息。
        """
        result = {}
        for action_type, times in self.metrics.items():
            if not times:
                continue
            result[action_type] = {
                'avg': sum(times) / len(times),
                'max': max(times),
                'min': min(times),
                'count': len(times),
            }
        return result
