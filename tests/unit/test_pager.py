"""
Unit tests for CursorPager and page boundary functions.

These tests verify:
1. Builder calls chain and mutate in place
2. Validation at application time (lookahead vs unlimited, ordering, cursor)
3. paginate() contributes sort, filter and limit in that order
4. is_last_page / trim_result_set / next-token derivation on both cursor variants
5. Decoding pagers from raw payloads
"""

from datetime import datetime, time, timedelta

import pytest
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import select

from seekpager.config import DEFAULT_LIMIT, MAX_LIMIT, NO_LIMIT
from seekpager.exceptions import (
    CursorColumnCountMismatchError,
    CursorDecodeError,
    EmptyOrderingError,
    LookaheadRequiresLimitError,
    MissingPagerError,
    MissingValueExtractorError,
    UnexpectedCursorOperatorError,
    UnsupportedCursorValueError,
)
from seekpager.keyset import CursorElement, KeysetCursor
from seekpager.offset import OffsetCursor
from seekpager.ordering import Direction, Operator, OrderBy
from seekpager.pager import (
    CursorPager,
    RawPagerPayload,
    is_last_page,
    next_page_cursor,
    next_page_offset_cursor,
    trim_result_set,
)

ROW_GETTERS = {"score": lambda row: row["score"], "id": lambda row: row["id"]}


def _rows(n: int) -> list[dict]:
    return [{"id": i, "score": 100 - i} for i in range(1, n + 1)]


def _sql(statement) -> str:
    return " ".join(str(statement.compile(compile_kwargs={"literal_binds": True})).split())


class TestCursorPagerBuilder:
    """Test configuration methods."""

    def test_empty_pager_defaults(self):
        """Test a fresh pager is the zero configuration."""
        pager = CursorPager()
        assert pager.cursor is None
        assert pager.limit == 0
        assert pager.sort == []
        assert not pager.is_lookahead
        assert not pager.is_unlimited

    def test_chaining_returns_same_pager(self):
        """Test builder calls mutate in place and return the pager."""
        pager = CursorPager()
        assert pager.with_limit(5).with_lookahead().with_sort(OrderBy.asc("id")) is pager
        assert pager.limit == 5
        assert pager.is_lookahead

    def test_with_limit_normalizes(self):
        """Test limits are normalized against the system maximum."""
        assert CursorPager().with_limit(0).limit == DEFAULT_LIMIT
        assert CursorPager().with_limit(MAX_LIMIT * 10).limit == MAX_LIMIT
        assert CursorPager().with_limit(7).limit == 7

    def test_with_limit_no_limit_switches_to_unlimited(self):
        """Test the NO_LIMIT sentinel routes to unlimited mode instead of normalization."""
        pager = CursorPager().with_limit(NO_LIMIT)
        assert pager.is_unlimited
        assert pager.limit == NO_LIMIT

    def test_dataset_limit(self):
        """Test lookahead asks for one extra row."""
        assert CursorPager().with_limit(5).dataset_limit == 5
        assert CursorPager().with_limit(5).with_lookahead().dataset_limit == 6

    def test_with_sort_deduplicates(self):
        """Test repeated columns keep the latest entry, moved to the end."""
        pager = CursorPager().with_sort(OrderBy.asc("a"), OrderBy.desc("b"))
        pager.with_sort(OrderBy.desc("a"))
        assert pager.sort == [OrderBy.desc("b"), OrderBy.desc("a")]

    def test_with_substituted_sort_replaces(self):
        """Test substituted sort drops previous orderings."""
        pager = CursorPager().with_sort(OrderBy.asc("a")).with_substituted_sort(OrderBy.asc("c"))
        assert pager.sort == [OrderBy.asc("c")]

    def test_sort_accessor_is_a_copy(self):
        """Test mutating the returned orderings does not change the pager."""
        pager = CursorPager().with_sort(OrderBy.asc("a"))
        pager.sort.append(OrderBy.asc("b"))
        assert pager.sort == [OrderBy.asc("a")]

    def test_with_cursor(self):
        """Test the cursor can be set and cleared."""
        pager = CursorPager().with_cursor(OffsetCursor(4))
        assert pager.cursor == OffsetCursor(4)
        assert pager.with_cursor(None).cursor is None


class TestCursorPagerValidation:
    """Test invariants enforced when the pager is applied."""

    def test_lookahead_with_unlimited_rejected(self, mock_statement):
        """Test lookahead and unlimited mode are mutually exclusive."""
        pager = CursorPager().with_sort(OrderBy.asc("id")).with_unlimited().with_lookahead()
        with pytest.raises(LookaheadRequiresLimitError):
            pager.paginate(mock_statement)

    def test_order_of_builder_calls_irrelevant(self, mock_statement):
        """Test the conflict is detected regardless of call order."""
        pager = CursorPager().with_lookahead().with_limit(NO_LIMIT).with_sort(OrderBy.asc("id"))
        with pytest.raises(LookaheadRequiresLimitError):
            pager.paginate(mock_statement)

    def test_empty_ordering_rejected(self, mock_statement):
        """Test a pager without orderings cannot be applied."""
        with pytest.raises(EmptyOrderingError):
            CursorPager().with_limit(5).paginate(mock_statement)
        mock_statement.order_by.assert_not_called()

    def test_cursor_count_mismatch_rejected(self, mock_statement):
        """Test a cursor built for another ordering is rejected."""
        cursor = KeysetCursor([CursorElement(column="id", value=1, operator=">")])
        pager = CursorPager(cursor).with_sort(OrderBy.desc("score"), OrderBy.asc("id"))
        with pytest.raises(CursorColumnCountMismatchError):
            pager.paginate(mock_statement)

    def test_cursor_operator_inconsistent_rejected(self, mock_statement):
        """Test an ASC ordering with a '<' cursor operator is rejected."""
        cursor = KeysetCursor([CursorElement(column="id", value=1, operator=Operator.LT)])
        pager = CursorPager(cursor).with_sort(OrderBy.asc("id")).with_limit(5)
        with pytest.raises(UnexpectedCursorOperatorError):
            pager.paginate(mock_statement)


class TestPaginate:
    """Test applying the pager to statements."""

    def test_call_order_sort_filter_limit(self, mock_statement):
        """Test sort, then filter, then limit are contributed in that order."""
        cursor = KeysetCursor([CursorElement(column="id", value=1, operator=">")])
        pager = CursorPager(cursor).with_sort(OrderBy.asc("id")).with_limit(5).with_lookahead()

        result = pager.paginate(mock_statement)

        assert result is mock_statement
        assert [call[0] for call in mock_statement.method_calls] == ["order_by", "where", "limit"]
        mock_statement.limit.assert_called_once_with(6)

    def test_unlimited_sets_no_limit(self, mock_statement):
        """Test unlimited pagers never set a row limit."""
        CursorPager().with_sort(OrderBy.asc("id")).with_unlimited().paginate(mock_statement)
        mock_statement.limit.assert_not_called()

    def test_keyset_statement(self, users_table):
        """Test the rendered statement holds ORDER BY, the DNF filter and LIMIT."""
        cursor = KeysetCursor(
            [
                CursorElement(column="score", value=50, operator="<"),
                CursorElement(column="id", value=7, operator=">"),
            ]
        )
        pager = (
            CursorPager(cursor).with_sort(OrderBy.desc("score"), OrderBy.asc("id")).with_limit(3)
        )

        sql = _sql(pager.paginate(select(users_table)))

        assert "WHERE score < 50 OR score = 50 AND id > 7" in sql
        assert "ORDER BY score DESC, id ASC" in sql
        assert sql.endswith("LIMIT 3")

    def test_offset_statement(self, users_table):
        """Test offset pagers skip rows instead of filtering."""
        pager = CursorPager(OffsetCursor(20)).with_sort(OrderBy.asc("id")).with_limit(5)

        sql = _sql(pager.paginate(select(users_table)))

        assert "WHERE" not in sql
        assert "LIMIT 5 OFFSET 20" in sql

    def test_first_page_has_no_filter(self, users_table):
        """Test an empty cursor contributes no WHERE clause."""
        pager = CursorPager(KeysetCursor()).with_sort(OrderBy.asc("id")).with_limit(5)
        assert "WHERE" not in _sql(pager.paginate(select(users_table)))


class TestPageBoundaries:
    """Test is_last_page and trim_result_set."""

    def test_under_full_page_is_last(self):
        """Test limit=3 with 2 rows is the last page."""
        pager = CursorPager().with_limit(3)
        assert is_last_page(pager, _rows(2))
        assert trim_result_set(pager, _rows(2)) == _rows(2)

    def test_full_page_without_lookahead_is_not_last(self):
        """Test limit=2 with 2 rows is ambiguous, so not the last page."""
        assert not is_last_page(CursorPager().with_limit(2), _rows(2))

    def test_lookahead_without_extra_row_is_last(self):
        """Test lookahead limit=2 with 2 rows is the last page."""
        assert is_last_page(CursorPager().with_limit(2).with_lookahead(), _rows(2))

    def test_lookahead_with_extra_row_is_not_last(self):
        """Test lookahead limit=2 with 3 rows has more data."""
        pager = CursorPager().with_limit(2).with_lookahead()
        assert not is_last_page(pager, _rows(3))
        assert trim_result_set(pager, _rows(3)) == _rows(2)

    def test_unlimited_is_always_last(self):
        """Test an unlimited pager returned the whole dataset."""
        assert is_last_page(CursorPager().with_unlimited(), _rows(500))

    def test_none_pager_rejected(self):
        """Test page boundary helpers require a pager."""
        with pytest.raises(MissingPagerError):
            is_last_page(None, [])
        with pytest.raises(MissingPagerError):
            trim_result_set(None, [])


class TestNextPageOffsetCursor:
    """Test next-token derivation for offset pagination."""

    def _pager(self, limit: int, offset: int = 0) -> CursorPager:
        return CursorPager(OffsetCursor(offset)).with_sort(OrderBy.asc("id")).with_limit(limit)

    def test_under_full_page(self):
        """Test limit=3 with 2 rows returns them unchanged with no token."""
        rows, cursor = next_page_offset_cursor(self._pager(3), _rows(2))
        assert rows == _rows(2)
        assert cursor is None

    def test_full_page_without_lookahead(self):
        """Test limit=2 with 2 rows advances the offset by 2."""
        rows, cursor = next_page_offset_cursor(self._pager(2, offset=4), _rows(2))
        assert rows == _rows(2)
        assert cursor == OffsetCursor(6)

    def test_lookahead_without_extra_row(self):
        """Test lookahead limit=2 with 2 rows keeps both rows and ends pagination."""
        rows, cursor = next_page_offset_cursor(self._pager(2).with_lookahead(), _rows(2))
        assert rows == _rows(2)
        assert cursor is None

    def test_lookahead_with_extra_row(self):
        """Test lookahead limit=2 with 3 rows trims to 2 and advances by 2."""
        rows, cursor = next_page_offset_cursor(self._pager(2, offset=10).with_lookahead(), _rows(3))
        assert rows == _rows(2)
        assert cursor == OffsetCursor(12)

    def test_missing_cursor_counts_from_zero(self):
        """Test a pager without cursor starts counting at offset 0."""
        pager = CursorPager().with_sort(OrderBy.asc("id")).with_limit(2)
        _, cursor = next_page_offset_cursor(pager, _rows(2))
        assert cursor == OffsetCursor(2)

    def test_invalid_pager_rejected(self):
        """Test next-token derivation revalidates the pager."""
        with pytest.raises(EmptyOrderingError):
            next_page_offset_cursor(CursorPager().with_limit(2), _rows(2))
        with pytest.raises(MissingPagerError):
            next_page_offset_cursor(None, _rows(2))


class TestNextPageCursor:
    """Test next-token derivation for keyset pagination."""

    def _pager(self, limit: int) -> CursorPager:
        return CursorPager(KeysetCursor()).with_sort(OrderBy.desc("score"), OrderBy.asc("id")).with_limit(limit)

    def test_last_page_has_no_token(self):
        """Test an under-full page returns rows unchanged and no token."""
        rows, cursor = next_page_cursor(self._pager(3), _rows(2), ROW_GETTERS)
        assert rows == _rows(2)
        assert cursor is None

    def test_cursor_built_from_last_row(self):
        """Test one element per ordering column, valued from the last returned row."""
        rows, cursor = next_page_cursor(self._pager(2).with_lookahead(), _rows(3), ROW_GETTERS)

        assert rows == _rows(2)
        assert list(cursor.elements) == [
            CursorElement(column="score", value=98, operator="<"),
            CursorElement(column="id", value=2, operator=">"),
        ]

    def test_next_cursor_validates_against_pager_ordering(self):
        """Test the derived cursor can resume under the same ordering."""
        pager = self._pager(2)
        _, cursor = next_page_cursor(pager, _rows(2), ROW_GETTERS)
        cursor.validate(pager.sort)

    def test_missing_getter(self):
        """Test a sort column without getter fails and names the column."""
        with pytest.raises(MissingValueExtractorError) as exc_info:
            next_page_cursor(self._pager(2), _rows(2), {"score": ROW_GETTERS["score"]})
        assert exc_info.value.column == "id"

    @pytest.mark.parametrize("value", [b"\x00\x01", time(10, 30), timedelta(minutes=5)])
    def test_unsupported_value(self, value):
        """Test a getter returning a value a cursor cannot carry fails with the column named."""
        pager = CursorPager().with_sort(OrderBy.asc("blob")).with_limit(1)

        with pytest.raises(UnsupportedCursorValueError) as exc_info:
            next_page_cursor(pager, [{"blob": value}], {"blob": lambda row: row["blob"]})

        assert exc_info.value.column == "blob"
        assert exc_info.value.value_type == type(value).__name__
        assert isinstance(exc_info.value.__cause__, PydanticValidationError)

    def test_timestamp_value(self):
        """Test datetime row values make a cursor that survives the token round-trip."""
        moment = datetime(2024, 1, 15, 10, 31)
        pager = CursorPager().with_sort(OrderBy.desc("created_at")).with_limit(1)

        _, cursor = next_page_cursor(
            pager, [{"created_at": moment}], {"created_at": lambda row: row["created_at"]}
        )

        assert KeysetCursor.decode(cursor.serialize()) == cursor

    def test_string_direction_accepted(self):
        """Test orderings built with plain direction strings derive operators too."""
        pager = CursorPager().with_sort(OrderBy("id", "DESC")).with_limit(1)
        _, cursor = next_page_cursor(pager, _rows(1), ROW_GETTERS)
        assert cursor.elements[0].operator == "<"

    def test_none_pager_rejected(self):
        """Test next-token derivation requires a pager."""
        with pytest.raises(MissingPagerError):
            next_page_cursor(None, _rows(2), ROW_GETTERS)


class TestDecoding:
    """Test building pagers from raw (limit, token) pairs."""

    def test_decode_keyset(self):
        """Test the token, orderings and normalized limit are applied."""
        cursor = KeysetCursor([CursorElement(column="id", value=9, operator=">")])
        pager = CursorPager.decode_keyset(0, cursor.serialize(), OrderBy.asc("id"))

        assert pager.cursor == cursor
        assert pager.sort == [OrderBy("id", Direction.ASC)]
        assert pager.limit == DEFAULT_LIMIT

    def test_decode_offset(self):
        """Test offset pagers decode the offset token."""
        pager = CursorPager.decode_offset(500, OffsetCursor(30).serialize(), OrderBy.asc("id"))
        assert pager.cursor == OffsetCursor(30)
        assert pager.limit == MAX_LIMIT

    def test_decode_empty_token_is_first_page(self):
        """Test an empty token decodes to an empty cursor."""
        assert CursorPager.decode_keyset(5, "").cursor.is_empty()
        assert CursorPager.decode_offset(5, "").cursor.is_empty()

    def test_decode_no_limit(self):
        """Test NO_LIMIT decodes to an unlimited pager."""
        assert CursorPager.decode_keyset(NO_LIMIT, "", OrderBy.asc("id")).is_unlimited

    def test_decode_bad_token(self):
        """Test undecodable tokens raise a CursorDecodeError."""
        with pytest.raises(CursorDecodeError):
            CursorPager.decode_keyset(5, "%%%")


class TestRawPagerPayload:
    """Test the API payload model."""

    def test_wire_names(self):
        """Test the payload accepts 'limit' and 'startToken'."""
        token = OffsetCursor(8).serialize()
        payload = RawPagerPayload.model_validate({"limit": 4, "startToken": token})

        assert payload.start_token == token
        assert payload.model_dump(by_alias=True) == {"limit": 4, "startToken": token}

    def test_defaults(self):
        """Test an empty payload asks for the first page with the default limit."""
        pager = RawPagerPayload.model_validate({}).decode(OrderBy.asc("id"))
        assert pager.cursor.is_empty()
        assert pager.limit == DEFAULT_LIMIT

    def test_decode_variants(self):
        """Test keyset and offset decoding share the payload shape."""
        payload = RawPagerPayload(limit=3, start_token=OffsetCursor(6).serialize())
        offset_pager = payload.decode_offset(OrderBy.asc("id"))
        assert offset_pager.cursor == OffsetCursor(6)

        keyset_token = KeysetCursor([CursorElement(column="id", value=6, operator=">")]).serialize()
        keyset_pager = RawPagerPayload(limit=3, start_token=keyset_token).decode(OrderBy.asc("id"))
        assert keyset_pager.cursor.elements[0].value == 6
