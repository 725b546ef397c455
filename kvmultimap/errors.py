"""kvmultimap error types."""


class EncodingError(Exception):
    """Raised when a key or value cannot be encoded or decoded.

    Always raised locally, before any command reaches the store.
    """


class StoreError(Exception):
    """Base class for errors raised by a store backend."""


class WrongTypeError(StoreError):
    """Raised when a name holds a structure of another kind.

    Attributes:
        name: The offending structure name.
        expected: The kind the command operates on (``"hash"`` or ``"set"``).
    """

    def __init__(self, name: str, expected: str) -> None:
        self.name = name
        self.expected = expected
        super().__init__(f"{name!r} does not hold a {expected}")


class NoSuchKeyError(StoreError):
    """Raised by ``rename`` when the source name does not exist."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"No such key: {name!r}")
