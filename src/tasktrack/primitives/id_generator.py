import uuid
from typing import Protocol


class IIDGenerator(Protocol):
    """
    Protocol for ID generation strategies.
    Used for entity identifiers and transaction tokens alike.
    """

    def next_id(self) -> str:
        """Generates the next unique identifier."""
        ...


class UUID4Generator(IIDGenerator):
    """
    Default ID generator using UUIDv4.
    """

    def next_id(self) -> str:
        """Returns a string representation of a random UUIDv4."""
        return str(uuid.uuid4())


class SequentialIDGenerator(IIDGenerator):
    """Deterministic ``<prefix>-<n>`` identifiers for tests and fixtures."""

    def __init__(self, prefix: str = "id") -> None:
        self._prefix = prefix
        self._counter = 0

    def next_id(self) -> str:
        self._counter += 1
        return f"{self._prefix}-{self._counter}"
