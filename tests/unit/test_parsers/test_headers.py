"""
Unit tests for header row resolution.
"""

import pytest

from ledgerimport.core.config import ImportConfig
from ledgerimport.core.exceptions import MissingRequiredHeaderError
from ledgerimport.parsers.headers import (
    DateColumnSpec,
    HeaderMap,
    contains_required_headers,
    missing_groups,
    normalize_header,
    resolve_columns,
    resolve_header,
)


@pytest.fixture
def groups():
    return ImportConfig().headers


class TestHeaderMap:
    """Tests for HeaderMap lookups."""

    def test_whitespace_is_removed(self):
        assert normalize_header(" 거래 일시 ") == "거래일시"
        header_map = HeaderMap.from_cells([" 거래 일시 ", "내\n용"])
        assert header_map["거래일시"] == 1
        assert header_map["내용"] == 2

    def test_case_insensitive(self):
        header_map = HeaderMap.from_cells(["Date", "AMOUNT"])
        assert header_map["date"] == 1
        assert header_map.find(["amount"]) == 2

    def test_first_occurrence_wins(self):
        header_map = HeaderMap.from_cells(["내용", "구분", "내용"])
        assert header_map["내용"] == 1
        assert len(header_map) == 2

    def test_empty_cells_skipped(self):
        header_map = HeaderMap.from_cells([None, "", "구분"])
        assert list(header_map) == ["구분"]

    def test_exact_match_before_substring(self):
        header_map = HeaderMap.from_cells(["출금금액", "출금"])
        # "출금" is contained in both, but matches column 2 exactly
        assert header_map.find(["출금"]) == 2

    def test_exact_match_of_later_synonym_beats_substring(self):
        header_map = HeaderMap.from_cells(["출금액(수수료포함)", "출금액"])
        assert header_map.find(["출금(원)", "출금액"]) == 2

    def test_unique_substring(self):
        header_map = HeaderMap.from_cells(["거래일시", "이용금액(원)"])
        assert header_map.find(["금액"]) == 2

    def test_ambiguous_substring_is_absent(self):
        header_map = HeaderMap.from_cells(["원화금액", "외화금액"])
        assert header_map.find(["금액"]) is None
        assert not header_map.has(["금액"])

    def test_is_read_only(self):
        header_map = HeaderMap.from_cells(["구분"])
        with pytest.raises(TypeError):
            header_map["내용"] = 2


class TestDateColumnSpec:
    """Tests for combined/split date column specs."""

    def test_combined(self):
        spec = DateColumnSpec.combined_column(3)
        assert spec.is_combined
        assert not spec.is_split
        assert spec.date_column == 3

    def test_split(self):
        spec = DateColumnSpec.split_columns(1, 2)
        assert spec.is_split
        assert not spec.is_combined
        assert spec.date_column == 1


class TestRequiredHeaders:
    """Tests for the required-columns predicate."""

    def test_combined_layout(self, groups):
        header_map = HeaderMap.from_cells(["거래일시", "구분", "거래금액", "거래구분", "내용"])
        assert contains_required_headers(header_map, groups)

    def test_split_layout_without_type(self, groups):
        header_map = HeaderMap.from_cells(
            ["거래일자", "거래시간", "적요", "출금액", "입금액", "내용"]
        )
        assert contains_required_headers(header_map, groups)

    def test_date_without_time_is_missing(self, groups):
        header_map = HeaderMap.from_cells(["거래일자", "구분", "거래금액", "적요", "내용"])
        assert missing_groups(header_map, groups) == ["date"]

    def test_single_amount_column_requires_type(self, groups):
        header_map = HeaderMap.from_cells(["거래일시", "거래금액", "적요", "내용"])
        assert missing_groups(header_map, groups) == ["type"]

    def test_only_withdrawal_requires_type(self, groups):
        header_map = HeaderMap.from_cells(["거래일시", "출금액", "적요", "내용"])
        assert "type" in missing_groups(header_map, groups)

    def test_missing_category_and_description(self, groups):
        header_map = HeaderMap.from_cells(["거래일시", "구분", "거래금액"])
        assert missing_groups(header_map, groups) == ["category", "description"]


class TestResolveHeader:
    """Tests for header row search."""

    def test_skips_title_rows(self, groups):
        rows = [
            ["신한카드 이용내역", None, None],
            ["고객명: 홍길동"],
            [],
            ["거래일시", "구분", "거래금액", "거래구분", "내용"],
            ["2024-01-01 10:00:00", "출금", "1,000", "이체", "x"],
        ]
        index, header_map = resolve_header(rows, groups)
        assert index == 3
        assert header_map["거래금액"] == 3

    def test_no_header_raises(self, groups):
        rows = [["이름", "금액"], ["홍길동", "1,000"]]
        with pytest.raises(MissingRequiredHeaderError) as exc_info:
            resolve_header(rows, groups)
        assert exc_info.value.code == "MISSING_HEADER"
        assert exc_info.value.is_fatal

    @pytest.mark.parametrize("withdraw_header,deposit_header", [
        ("출금금액(원)", "입금금액(원)"),
        ("출금액", "입금액"),
        ("출금(-)", "입금(+)"),
        ("출금", "입금"),
    ])
    def test_synonyms_resolve_same_columns(self, groups, withdraw_header, deposit_header):
        rows = [["거래일시", withdraw_header, deposit_header, "적요", "내용"]]
        index, header_map = resolve_header(rows, groups)
        columns = resolve_columns(header_map, groups, header_row=index, width=5)
        assert columns.withdraw == 2
        assert columns.deposit == 3
        assert columns.amount is None
        assert columns.dates == DateColumnSpec.combined_column(1)

    def test_ambiguous_amount_fails(self, groups):
        rows = [["거래일시", "구분", "원화금액", "외화금액", "적요", "내용"]]
        with pytest.raises(MissingRequiredHeaderError) as exc_info:
            resolve_header(rows, groups)
        assert "amount" in exc_info.value.missing


class TestResolveColumns:
    """Tests for full column resolution."""

    def test_combined_layout(self, groups):
        header_map = HeaderMap.from_cells(["거래일시", "구분", "거래금액", "거래구분", "내용"])
        columns = resolve_columns(header_map, groups, header_row=2, width=5)
        assert columns.dates.combined == 1
        assert columns.type == 2
        assert columns.amount == 3
        assert columns.category == 4
        assert columns.description == 5
        assert columns.header_row == 2
        assert columns.width == 5

    def test_split_layout(self, groups):
        header_map = HeaderMap.from_cells(
            ["거래일자", "거래시간", "적요", "출금(원)", "입금(원)", "내용"]
        )
        columns = resolve_columns(header_map, groups)
        assert columns.dates == DateColumnSpec.split_columns(1, 2)
        assert columns.category == 3
        assert columns.withdraw == 4
        assert columns.deposit == 5
        assert columns.description == 6

    def test_short_synonyms(self, groups):
        header_map = HeaderMap.from_cells(["일시", "구분", "금액", "적요", "내용"])
        columns = resolve_columns(header_map, groups)
        assert columns.dates.combined == 1
        assert columns.amount == 3

    def test_full_header_wins_over_short_synonym(self, groups):
        header_map = HeaderMap.from_cells(["거래일시", "구분", "거래금액", "잔액", "거래구분", "내용"])
        columns = resolve_columns(header_map, groups)
        assert columns.amount == 3

    def test_several_amount_headers_leave_amount_unset(self, groups):
        header_map = HeaderMap.from_cells(
            ["거래일자", "거래시간", "적요", "출금금액(원)", "입금금액(원)", "내용"]
        )
        columns = resolve_columns(header_map, groups)
        assert columns.amount is None
        assert columns.withdraw == 4
        assert columns.deposit == 5
