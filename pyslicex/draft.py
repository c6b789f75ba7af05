"""
基於草稿 (draft) 的結構共享更新。

apply_draft(base, mutate) 讓 mutate 以「直接修改」的寫法操作 base 的草稿，
完成後產生新的狀態值：

- 未被修改的子結構與 base 保持同一個物件引用（結構共享）
- base 本身永遠不會被修改
- 若 mutate 明確返回一個值（非 None 且不是草稿本身），直接以該值作為結果；
  此時草稿必須未被修改，否則拋出 DraftError

草稿為追蹤代理：讀取子容器時建立子草稿，第一次寫入時才沿路徑淺拷貝 (copy-on-write)。
支援一般的 dict、list 與 pydantic BaseModel；其他值視為不可變的原子值。
"""
from collections.abc import MutableMapping, MutableSequence
from typing import Any, Callable, Dict, Iterator, List, Optional, TypeVar

from pydantic import BaseModel

from .errors import DraftError

T = TypeVar("T")


def is_draftable(value: Any) -> bool:
    """判斷值是否能被草稿化。"""
    return type(value) is dict or type(value) is list or isinstance(value, BaseModel)


def is_draft(value: Any) -> bool:
    return isinstance(value, _Draft)


def original(value: Any) -> Any:
    """取得草稿對應的原始值。"""
    if not isinstance(value, _Draft):
        raise DraftError(f"original() expects a draft, got {type(value).__name__}")
    value._assert_live()
    return value._base


class _Scope:
    """一次 apply_draft 呼叫所建立的全部草稿。"""

    __slots__ = ("drafts",)

    def __init__(self) -> None:
        self.drafts: List["_Draft"] = []

    def create(self, base: Any, parent: Optional["_Draft"]) -> "_Draft":
        if type(base) is dict:
            draft: _Draft = DictDraft(base, parent, self)
        elif type(base) is list:
            draft = ListDraft(base, parent, self)
        else:
            draft = ModelDraft(base, parent, self)
        self.drafts.append(draft)
        return draft

    def revoke(self) -> None:
        for draft in self.drafts:
            object.__setattr__(draft, "_revoked", True)
        self.drafts.clear()


class _Draft:
    __slots__ = ("_base", "_copy", "_parent", "_scope", "_modified", "_revoked", "_result", "_finalized")

    def __init__(self, base: Any, parent: Optional["_Draft"], scope: _Scope) -> None:
        object.__setattr__(self, "_base", base)
        object.__setattr__(self, "_copy", None)
        object.__setattr__(self, "_parent", parent)
        object.__setattr__(self, "_scope", scope)
        object.__setattr__(self, "_modified", False)
        object.__setattr__(self, "_revoked", False)
        object.__setattr__(self, "_result", None)
        object.__setattr__(self, "_finalized", False)

    # ———— 子類需實作 ————
    def _shallow_copy(self, base: Any) -> Any:
        raise NotImplementedError

    def _items(self, container: Any) -> Iterator[Any]:
        """迭代容器中 (key, value)。"""
        raise NotImplementedError

    def _build(self, container: Any) -> Any:
        """由已定稿的拷貝建立結果值。"""
        return container

    # ———— 共用邏輯 ————
    def _assert_live(self) -> None:
        if self._revoked:
            raise DraftError(
                f"Cannot use a revoked {type(self).__name__}; drafts are only valid inside the mutation function"
            )

    def _current(self) -> Any:
        return self._copy if self._copy is not None else self._base

    def _prepare_copy(self) -> Any:
        if self._copy is None:
            object.__setattr__(self, "_copy", self._shallow_copy(self._base))
        return self._copy

    def _mark_changed(self) -> None:
        if not self._modified:
            object.__setattr__(self, "_modified", True)
            self._prepare_copy()
            if self._parent is not None:
                self._parent._mark_changed()

    def _wrap(self, key: Any, value: Any) -> Any:
        # 讀到可草稿化的子值時建立子草稿並放入拷貝，後續讀取都拿到同一個草稿
        if isinstance(value, _Draft) or not is_draftable(value):
            return value
        child = self._scope.create(value, self)
        self._prepare_copy()[key] = child
        return child

    def _finalize(self) -> Any:
        if self._finalized:
            return self._result
        if not self._modified:
            result = self._base
        else:
            base_ids = {id(v) for _, v in self._items(self._base)}
            container = self._copy
            for key, value in list(self._items(container)):
                if isinstance(value, _Draft):
                    container[key] = value._finalize()
                elif id(value) not in base_ids:
                    container[key] = _finalize_value(value)
            result = self._build(container)
        object.__setattr__(self, "_result", result)
        object.__setattr__(self, "_finalized", True)
        return result


class DictDraft(_Draft, MutableMapping):
    """dict 的草稿。"""

    __slots__ = ()

    def _shallow_copy(self, base: Dict[Any, Any]) -> Dict[Any, Any]:
        return dict(base)

    def _items(self, container: Dict[Any, Any]) -> Iterator[Any]:
        return iter(container.items())

    def __getitem__(self, key: Any) -> Any:
        self._assert_live()
        return self._wrap(key, self._current()[key])

    def __setitem__(self, key: Any, value: Any) -> None:
        self._assert_live()
        current = self._current()
        if key in current and current[key] is value:
            return
        self._mark_changed()
        self._copy[key] = value

    def __delitem__(self, key: Any) -> None:
        self._assert_live()
        if key not in self._current():
            raise KeyError(key)
        self._mark_changed()
        del self._copy[key]

    def __iter__(self) -> Iterator[Any]:
        self._assert_live()
        return iter(list(self._current()))

    def __len__(self) -> int:
        self._assert_live()
        return len(self._current())

    def __contains__(self, key: object) -> bool:
        self._assert_live()
        return key in self._current()

    def clear(self) -> None:
        self._assert_live()
        if self._current():
            self._mark_changed()
            self._copy.clear()

    def __repr__(self) -> str:
        if self._revoked:
            return "<DictDraft (revoked)>"
        return f"<DictDraft {self._current()!r}>"


class ListDraft(_Draft, MutableSequence):
    """list 的草稿。"""

    __slots__ = ()

    def _shallow_copy(self, base: List[Any]) -> List[Any]:
        return list(base)

    def _items(self, container: List[Any]) -> Iterator[Any]:
        return enumerate(container)

    def __getitem__(self, index: Any) -> Any:
        self._assert_live()
        if isinstance(index, slice):
            return [self[i] for i in range(*index.indices(len(self._current())))]
        current = self._current()
        value = current[index]
        return self._wrap(index % len(current), value)

    def __setitem__(self, index: Any, value: Any) -> None:
        self._assert_live()
        if isinstance(index, slice):
            self._mark_changed()
            self._copy[index] = list(value)
            return
        if self._current()[index] is value:
            return
        self._mark_changed()
        self._copy[index] = value

    def __delitem__(self, index: Any) -> None:
        self._assert_live()
        self._current()[index]  # IndexError
        self._mark_changed()
        del self._copy[index]

    def __len__(self) -> int:
        self._assert_live()
        return len(self._current())

    def insert(self, index: int, value: Any) -> None:
        self._assert_live()
        self._mark_changed()
        self._copy.insert(index, value)

    def clear(self) -> None:
        self._assert_live()
        if self._current():
            self._mark_changed()
            self._copy.clear()

    def sort(self, *, key: Optional[Callable[[Any], Any]] = None, reverse: bool = False) -> None:
        self._assert_live()
        items = [self[i] for i in range(len(self))]
        self._mark_changed()
        self._copy[:] = sorted(items, key=key, reverse=reverse)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, (list, ListDraft)):
            return list(self) == list(other)
        return NotImplemented

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        if self._revoked:
            return "<ListDraft (revoked)>"
        return f"<ListDraft {self._current()!r}>"


class ModelDraft(_Draft):
    """pydantic BaseModel 的草稿，以屬性存取欄位。"""

    __slots__ = ()

    def _fields(self) -> Dict[str, Any]:
        return type(self._base).model_fields

    def _shallow_copy(self, base: BaseModel) -> Dict[str, Any]:
        return {name: getattr(base, name) for name in type(base).model_fields}

    def _items(self, container: Any) -> Iterator[Any]:
        if isinstance(container, BaseModel):
            return ((name, getattr(container, name)) for name in type(container).model_fields)
        return iter(container.items())

    def _build(self, container: Dict[str, Any]) -> BaseModel:
        return self._base.model_copy(update=container)

    def __getattr__(self, name: str) -> Any:
        # 僅在一般屬性查找失敗時呼叫
        if name.startswith("_"):
            raise AttributeError(name)
        self._assert_live()
        if name not in self._fields():
            return getattr(self._base, name)
        if self._copy is not None:
            value = self._copy[name]
        else:
            value = getattr(self._base, name)
        return self._wrap(name, value)

    def __setattr__(self, name: str, value: Any) -> None:
        self._assert_live()
        if name not in self._fields():
            raise AttributeError(f"'{type(self._base).__name__}' has no field '{name}'")
        current = self._copy[name] if self._copy is not None else getattr(self._base, name)
        if current is value:
            return
        self._mark_changed()
        self._copy[name] = value

    def __delattr__(self, name: str) -> None:
        raise DraftError(f"Cannot delete field '{name}' of a model draft")

    def __repr__(self) -> str:
        if self._revoked:
            return "<ModelDraft (revoked)>"
        return f"<ModelDraft {type(self._base).__name__}>"


def _finalize_value(value: Any) -> Any:
    """將新指派的值中嵌入的草稿替換為定稿結果。"""
    if isinstance(value, _Draft):
        return value._finalize()
    if type(value) is dict:
        items = {k: _finalize_value(v) for k, v in value.items()}
        if any(items[k] is not v for k, v in value.items()):
            return items
        return value
    if type(value) in (list, tuple):
        items = [_finalize_value(v) for v in value]
        if any(a is not b for a, b in zip(items, value)):
            return type(value)(items)
        return value
    return value


def apply_draft(base: T, mutate: Callable[[Any], Any]) -> T:
    """
    以草稿執行 mutate，並返回結構共享的新值。

    Args:
        base: 原始值，不會被修改
        mutate: 接收草稿的函數；可直接修改草稿，或返回一個取代值

    Returns:
        新的值；若沒有任何修改則返回 base 本身

    Raises:
        DraftError: mutate 修改了草稿，同時又返回了另一個值
    """
    if not is_draftable(base):
        result = mutate(base)
        return base if result is None else result

    scope = _Scope()
    draft = scope.create(base, None)
    try:
        result = mutate(draft)
        if result is None or result is draft:
            return draft._finalize()
        if draft._modified:
            raise DraftError(
                "The mutation function returned a value and modified its draft; "
                "either modify the draft or return a replacement",
                returned_type=type(result).__name__,
            )
        return _finalize_value(result)
    finally:
        scope.revoke()


def current(value: Any) -> Any:
    """取得草稿目前內容的一般值（不含草稿），用於在 mutate 中記錄或除錯。"""
    if isinstance(value, _Draft):
        value._assert_live()
        items = value._items(value._current())
        if isinstance(value, ModelDraft):
            return value._base.model_copy(update={k: current(v) for k, v in items})
        if isinstance(value, DictDraft):
            return {k: current(v) for k, v in items}
        return [current(v) for _, v in items]
    if type(value) is dict:
        return {k: current(v) for k, v in value.items()}
    if type(value) is list:
        return [current(v) for v in value]
    return value
