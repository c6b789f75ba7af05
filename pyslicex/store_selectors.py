import time
from typing import Any, Callable, List, Optional, Tuple

from .types import MemoizedSelector


def create_selector(
    *selectors: Callable[[Any], Any],
    result_fn: Optional[Callable[..., Any]] = None,
    deep: bool = False,
    ttl: Optional[float] = None,
    maxsize: int = 128,
) -> MemoizedSelector:
    """
    創建一個複合選擇器，支援記憶化、深淺比較與TTL控制

    Args:
        *selectors: 多個輸入選擇器，這些函數會從 state 中提取對應的值
        result_fn: 處理輸出結果的函數，將多個選擇器的輸出進行處理
        deep: 是否以相等性（==）比較輸入，預設為引用比較
        ttl: 快取有效時間（秒），若超過此時間則重新計算，預設為無限
        maxsize: 緩存的最大條目數，預設為128

    Returns:
        經過快取優化的 selector 函數

    範例:
        >>> select_value = lambda state: state["counter"]["value"]
        >>> doubled = create_selector(select_value, result_fn=lambda v: v * 2)
        >>> doubled(store.state())
    """
    if not selectors:
        raise ValueError("create_selector requires at least one input selector")

    # 如果沒有 result_fn 且只有一個選擇器，直接返回該選擇器
    if result_fn is None and len(selectors) == 1:
        return selectors[0]

    if result_fn is None:
        result_fn = lambda *args: args

    # (時間戳, 輸入, 結果)
    cache: List[Tuple[float, Tuple[Any, ...], Any]] = []
    hits = 0
    misses = 0

    def matches(inputs: Tuple[Any, ...], cached_inputs: Tuple[Any, ...]) -> bool:
        if deep:
            return all(a is b or a == b for a, b in zip(inputs, cached_inputs))
        return all(a is b for a, b in zip(inputs, cached_inputs))

    def selector(state: Any) -> Any:
        nonlocal hits, misses

        inputs = tuple(select(state) for select in selectors)
        now = time.monotonic()

        if ttl is not None:
            # 清除過期項
            cache[:] = [item for item in cache if now - item[0] <= ttl]

        for _, cached_inputs, cached_result in cache:
            if matches(inputs, cached_inputs):
                hits += 1
                return cached_result

        misses += 1
        result = result_fn(*inputs)
        cache.append((now, inputs, result))
        # 維護緩存大小
        while len(cache) > maxsize:
            cache.pop(0)
        return result

    # 添加緩存管理方法
    def cache_info() -> Tuple[int, int, int, int]:
        return (hits, misses, maxsize, len(cache))

    def cache_clear() -> None:
        nonlocal hits, misses
        cache.clear()
        hits = misses = 0

    selector.cache_info = cache_info  # type: ignore[attr-defined]
    selector.cache_clear = cache_clear  # type: ignore[attr-defined]

    return selector
