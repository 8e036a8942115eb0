from .conditions import DNF, Conjunct, Disjunct
from .config import DEFAULT_LIMIT, MAX_LIMIT, NO_LIMIT, PaginationSettings, get_settings
from .cursor import Cursor
from .exceptions import (
    Base64DecodeError,
    CursorColumnCountMismatchError,
    CursorDecodeError,
    CursorPayloadError,
    EmptyOrderingError,
    ForbiddenColumnCharactersError,
    InvalidCursorOperatorError,
    InvalidDirectionError,
    InvariantViolation,
    LookaheadRequiresLimitError,
    MalformedOrderingStringError,
    MissingPagerError,
    MissingValueExtractorError,
    OffsetParseError,
    OrderingParseError,
    PaginationValidationError,
    SeekPagerError,
    UnexpectedCursorColumnError,
    UnexpectedCursorOperatorError,
    UnknownColumnAliasError,
    UnsupportedCursorValueError,
)
from .keyset import CursorElement, Getters, KeysetCursor
from .limits import clamp_limit, normalize_limit, normalize_limit_max
from .offset import OffsetCursor
from .ordering import (
    ColumnMapping,
    Direction,
    Operator,
    OrderBy,
    Orderings,
    direction_to_operator,
    operator_to_direction,
    parse_sort,
)
from .pager import (
    CursorPager,
    RawPagerPayload,
    is_last_page,
    next_page_cursor,
    next_page_offset_cursor,
    trim_result_set,
)
from .pagination import PageResult

__all__ = [
    # Ordering
    "Direction",
    "Operator",
    "OrderBy",
    "Orderings",
    "ColumnMapping",
    "parse_sort",
    "direction_to_operator",
    "operator_to_direction",
    # Limits
    "NO_LIMIT",
    "DEFAULT_LIMIT",
    "MAX_LIMIT",
    "PaginationSettings",
    "get_settings",
    "clamp_limit",
    "normalize_limit",
    "normalize_limit_max",
    # Cursors
    "Cursor",
    "KeysetCursor",
    "CursorElement",
    "Getters",
    "OffsetCursor",
    # Filter rendering
    "DNF",
    "Disjunct",
    "Conjunct",
    # Pager
    "CursorPager",
    "RawPagerPayload",
    "PageResult",
    "is_last_page",
    "trim_result_set",
    "next_page_cursor",
    "next_page_offset_cursor",
    # Exceptions
    "SeekPagerError",
    "InvariantViolation",
    "CursorDecodeError",
    "Base64DecodeError",
    "OffsetParseError",
    "CursorPayloadError",
    "PaginationValidationError",
    "EmptyOrderingError",
    "InvalidDirectionError",
    "ForbiddenColumnCharactersError",
    "CursorColumnCountMismatchError",
    "UnexpectedCursorColumnError",
    "InvalidCursorOperatorError",
    "UnexpectedCursorOperatorError",
    "LookaheadRequiresLimitError",
    "MissingPagerError",
    "OrderingParseError",
    "MalformedOrderingStringError",
    "UnknownColumnAliasError",
    "UnsupportedCursorValueError",
    "MissingValueExtractorError",
]
