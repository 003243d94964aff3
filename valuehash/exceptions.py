"""valuehash exception hierarchy.

All custom exceptions inherit from ValueHashError, allowing callers
to catch broad or specific error categories as needed. Exceptions raised
by user-supplied delegates (``__bytes__``, ``marshal_text`` ...) are never
wrapped and reach the caller untouched.
"""


class ValueHashError(Exception):
    """Base exception for all valuehash errors."""

    def __init__(self, message: str = "", type_name: str | None = None) -> None:
        self.type_name = type_name
        super().__init__(message)


class UnsupportedTypeError(ValueHashError):
    """Raised when no encoder can be compiled for a type.

    Deterministic: hashing another value of the same type will fail
    the same way, so retrying is pointless.
    """


class ConfigurationError(ValueHashError):
    """Raised when Options or settings are invalid.

    Examples: unknown accumulator algorithm, malformed options file.
    """


class InvalidTagOptionError(ConfigurationError):
    """Raised when a struct field tag contains an unknown option.

    Surfaces at compile time, to the first call that needs an encoder
    for the offending type.
    """

    def __init__(
        self,
        message: str = "",
        type_name: str | None = None,
        field: str | None = None,
        option: str | None = None,
    ) -> None:
        self.field = field
        self.option = option
        super().__init__(message, type_name)


class DelegateError(ValueHashError):
    """Raised when a delegate returns something that cannot be hashed.

    Examples: ``marshal_text`` returning an int, ``to_json`` returning None.
    """

    def __init__(
        self,
        message: str = "",
        type_name: str | None = None,
        capability: str | None = None,
    ) -> None:
        self.capability = capability
        super().__init__(message, type_name)


class AccumulatorWriteError(ValueHashError):
    """Raised when the underlying accumulator rejects a write.

    The original exception is chained as ``__cause__``.
    """
