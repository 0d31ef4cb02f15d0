"""Protocol for key-value stores. Browser local storage, process memory and SQL all fit."""
from typing import Protocol


class KeyValueStore(Protocol):
    """String keys to string values. set() must be durable when it returns."""

    def get(self, key: str) -> str | None:
        ...

    def set(self, key: str, value: str) -> None:
        ...

    def remove(self, key: str) -> None:
        ...
