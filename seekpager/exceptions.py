from typing import Any


class SeekPagerError(Exception):
    """Base exception for all seekpager errors."""

    def __init__(self, message: str, original_error: Exception | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.original_error = original_error


class InvariantViolation(AssertionError):
    """
    Raised when a broken invariant is detected (e.g. mapping an invalid direction).

    Not a SeekPagerError on purpose: it signals that validation was skipped
    somewhere upstream and must not be caught together with user-facing errors.
    """


# --- Decode errors ---


class CursorDecodeError(SeekPagerError):
    """Raised when a start token cannot be decoded."""

    def __init__(
        self, message: str, token: str | None = None, original_error: Exception | None = None
    ) -> None:
        super().__init__(message, original_error)
        self.token = token


class Base64DecodeError(CursorDecodeError):
    """Raised when a token is not valid URL-safe base64."""

    def __init__(self, token: str, original_error: Exception | None = None) -> None:
        super().__init__("Failed to decode base64 encoded cursor", token, original_error)


class OffsetParseError(CursorDecodeError):
    """Raised when an offset token does not hold a non-negative decimal integer."""

    def __init__(
        self, token: str, raw: str | None = None, original_error: Exception | None = None
    ) -> None:
        msg = "Failed to decode offset cursor value"
        if raw is not None:
            msg += f": {raw!r}"
        super().__init__(msg, token, original_error)
        self.raw = raw


class CursorPayloadError(CursorDecodeError):
    """Raised when a keyset token does not hold a JSON array of cursor elements."""

    def __init__(self, token: str, original_error: Exception | None = None) -> None:
        msg = "Failed to unmarshal json encoded cursor"
        if original_error is not None:
            msg += f": {original_error}"
        super().__init__(msg, token, original_error)


# --- Validation errors ---


class PaginationValidationError(SeekPagerError):
    """Raised when a pager, ordering or cursor is inconsistent."""


class EmptyOrderingError(PaginationValidationError):
    """Raised when pagination is applied without any ordering."""

    def __init__(self) -> None:
        super().__init__("Empty ordering list")


class InvalidDirectionError(PaginationValidationError):
    """Raised when an ordering holds a direction other than ASC or DESC."""

    def __init__(self, column: str, direction: Any) -> None:
        super().__init__(f"Invalid ordering direction '{direction}' for column '{column}'")
        self.column = column
        self.direction = direction


class ForbiddenColumnCharactersError(PaginationValidationError):
    """Raised when an ordering column name contains characters outside the allowed set."""

    def __init__(self, column: str) -> None:
        super().__init__(f"Ordering column name contains forbidden symbols '{column}'")
        self.column = column


class CursorColumnCountMismatchError(PaginationValidationError):
    """Raised when the cursor and the ordering have a different number of columns."""

    def __init__(self, expected: int, actual: int) -> None:
        super().__init__(
            f"Cursor column number mismatch: ordering has {expected}, cursor has {actual}"
        )
        self.expected = expected
        self.actual = actual


class UnexpectedCursorColumnError(PaginationValidationError):
    """Raised when a cursor element names a different column than the ordering at that position."""

    def __init__(self, position: int, column: str, expected: str) -> None:
        super().__init__(
            f"Unexpected cursor column '{column}' at position {position}, expected '{expected}'"
        )
        self.position = position
        self.column = column
        self.expected = expected


class InvalidCursorOperatorError(PaginationValidationError):
    """Raised when a cursor element holds an operator other than '>' or '<'."""

    def __init__(self, position: int, operator: Any) -> None:
        super().__init__(f"Invalid cursor operator '{operator}' at position {position}")
        self.position = position
        self.operator = operator


class UnexpectedCursorOperatorError(PaginationValidationError):
    """Raised when a cursor operator does not match the ordering direction at that position."""

    def __init__(self, position: int, operator: Any, direction: Any) -> None:
        super().__init__(
            f"Unexpected cursor operator '{operator}' at position {position} "
            f"for direction '{direction}'"
        )
        self.position = position
        self.operator = operator
        self.direction = direction


class LookaheadRequiresLimitError(PaginationValidationError):
    """Raised when lookahead is combined with unlimited paging."""

    def __init__(self) -> None:
        super().__init__("Cannot apply lookahead to unlimited paging")


class MissingPagerError(PaginationValidationError):
    """Raised when a pager is required but None was given."""

    def __init__(self) -> None:
        super().__init__("Cursor pager is None")


# --- Lookup errors ---


class OrderingParseError(SeekPagerError):
    """Raised when sort strings from a request cannot be turned into orderings."""


class MalformedOrderingStringError(OrderingParseError):
    """Raised when a sort string is not exactly '<alias> <asc|desc>'."""

    def __init__(self, raw: str) -> None:
        super().__init__(f"Invalid ordering string format '{raw}'")
        self.raw = raw


class UnknownColumnAliasError(OrderingParseError):
    """Raised when a sort alias is not present in the column mapping."""

    def __init__(self, alias: str, suggestion: str | None = None) -> None:
        msg = f"Invalid column alias '{alias}'"
        if suggestion:
            msg += f", did you mean '{suggestion}'?"
        super().__init__(msg)
        self.alias = alias
        self.suggestion = suggestion


class MissingValueExtractorError(SeekPagerError):
    """Raised when no getter is registered for a column met in the ordering."""

    def __init__(self, column: str) -> None:
        super().__init__(f"Cannot find getter for column '{column}' met in ordering")
        self.column = column


class UnsupportedCursorValueError(SeekPagerError):
    """Raised when a getter returns a value a cursor element cannot carry."""

    def __init__(
        self, column: str, value_type: str, original_error: Exception | None = None
    ) -> None:
        super().__init__(
            f"Unsupported cursor value of type '{value_type}' for column '{column}'",
            original_error,
        )
        self.column = column
        self.value_type = value_type
