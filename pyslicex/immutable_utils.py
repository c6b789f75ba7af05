# pyslicex/immutable_utils.py
from typing import Any, Mapping

from immutables import Map
from pydantic import BaseModel


def freeze(state: Mapping[str, Any]) -> Map:
    """建立根狀態的淺層不可變快照 (僅凍結第一層)"""
    if isinstance(state, Map):
        return state
    return Map(state)


def to_dict(obj: Any) -> Any:
    """將 Map、Pydantic 模型及其巢狀結構轉換為普通字典"""
    if isinstance(obj, Map):
        return {k: to_dict(v) for k, v in obj.items()}
    elif isinstance(obj, BaseModel):
        return {k: to_dict(v) for k, v in obj.model_dump().items()}
    elif isinstance(obj, dict):
        return {k: to_dict(v) for k, v in obj.items()}
    elif isinstance(obj, (list, tuple)):
        return [to_dict(i) for i in obj]
    elif isinstance(obj, frozenset):
        return {to_dict(i) for i in obj}
    return obj
