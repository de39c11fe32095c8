"""Storage contracts shared by the registry and cache clients."""

import json
from typing import Any, Literal, Protocol, runtime_checkable

from .prompt import Prompt

ValueType = Literal["text", "json"]


@runtime_checkable
class PromptStore(Protocol):
    """Read access to prompts, whatever backs them."""

    async def list_prompts(self) -> list[Prompt]:
        ...

    async def get_prompt(self, prompt_id: str) -> Prompt | None:
        ...


@runtime_checkable
class KVNamespace(Protocol):
    """An async key-value store holding one serialized value per key."""

    async def list(self) -> list[str]:
        ...

    async def get(self, key: str, value_type: ValueType = "text") -> Any:
        """Return the value at ``key``, or None when absent.

        With ``value_type="json"`` the stored text is decoded.
        """
        ...

    async def put(self, key: str, value: str) -> None:
        ...

    async def delete(self, key: str) -> None:
        ...


class MemoryKV:
    """Dict-backed KVNamespace for local runs and tests."""

    def __init__(self, data: dict[str, str] | None = None):
        self._data: dict[str, str] = dict(data or {})

    async def list(self) -> list[str]:
        return sorted(self._data)

    async def get(self, key: str, value_type: ValueType = "text") -> Any:
        raw = self._data.get(key)
        if raw is None or value_type == "text":
            return raw
        return json.loads(raw)

    async def put(self, key: str, value: str) -> None:
        if not isinstance(value, str):
            raise TypeError(f"KV values must be str, got {type(value).__name__}")
        self._data[key] = value

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def __len__(self) -> int:
        return len(self._data)

    def __contains__(self, key: str) -> bool:
        return key in self._data
