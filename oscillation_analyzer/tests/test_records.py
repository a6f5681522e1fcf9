from __future__ import annotations

import io

import numpy as np
import pytest

from oscillation_analyzer.errors import MalformedLine, SourceUnavailable
from oscillation_analyzer.ingest.records import format_record, parse_lines, parse_record, read_records
from oscillation_analyzer.models.records import Record


def test_simple_line_parses_two_fields() -> None:
    rec = parse_record("1.25,3.5", "simple")
    assert rec == Record(position=1.25, primary_value=3.5)
    assert rec.is_extended is False
    assert rec.total_stat_error is None


def test_extended_line_parses_five_fields() -> None:
    rec = parse_record("0.875, 120.0, 11.2, 40.5, 6.3", "extended")
    assert rec is not None
    assert rec.is_extended
    assert rec.as_row() == (0.875, 120.0, 11.2, 40.5, 6.3)


@pytest.mark.parametrize("line", ["", "   ", "\n", "# bin_center,counts", "   # indented comment"])
def test_blank_and_comment_lines_are_skipped_not_errors(line: str) -> None:
    assert parse_record(line, "simple") is None
    assert parse_record(line, "extended") is None


@pytest.mark.parametrize("line", ["1.0,2.0", "1.0,2.0,3.0", "1.0,2.0,3.0,4.0", "1.0"])
def test_extended_with_fewer_than_five_tokens_is_malformed(line: str) -> None:
    with pytest.raises(MalformedLine):
        parse_record(line, "extended")


@pytest.mark.parametrize("line", ["abc,2.0", "1.0,xyz", "1.0,,2.0", "1.0,nan", "inf,1.0"])
def test_non_numeric_required_field_is_malformed(line: str) -> None:
    with pytest.raises(MalformedLine):
        parse_record(line, "simple")


def test_extra_tokens_are_ignored() -> None:
    rec = parse_record("1.0,2.0,99.0,98.0", "simple")
    assert rec == Record(1.0, 2.0)


def test_other_single_char_delimiters() -> None:
    assert parse_record("1.0;2.0", "simple") == Record(1.0, 2.0)
    assert parse_record("1.0\t2.0", "simple") == Record(1.0, 2.0)
    assert parse_record("1.0 2.0", "simple") == Record(1.0, 2.0)


@pytest.mark.parametrize("line", ["1.0|3.0", "1.0:3.0", "1.0/3.0", "1.0 | 3.0", "-1.5e-3@+3.0"])
def test_any_punctuation_character_separates_fields(line: str) -> None:
    rec = parse_record(line, "simple")
    assert rec is not None
    assert rec.primary_value == 3.0


@pytest.mark.parametrize("line", ["1_5,2", "1.0,2_0", "0x10,2", "1.0,Infinity", "1e999,2.0", "1.0,2.0.0"])
def test_python_only_number_forms_are_malformed(line: str) -> None:
    with pytest.raises(MalformedLine):
        parse_record(line, "simple")


def test_unknown_schema_rejected() -> None:
    with pytest.raises(ValueError):
        parse_record("1,2", "wide")


def test_simple_primary_value_round_trips_exactly() -> None:
    rng = np.random.default_rng(7)
    values = np.concatenate([rng.normal(0.0, 1e4, 50), [0.0, -0.0, 1e-300, 123456789.123456789, 0.1]])
    for v in values:
        line = f"1.0,{float(v)!r}"
        first = parse_record(line, "simple")
        again = parse_record(format_record(first, "simple"), "simple")
        assert again.primary_value == first.primary_value == float(v)


def test_malformed_lines_skipped_counted_and_excluded(caplog: pytest.LogCaptureFixture) -> None:
    lines = [
        "# header\n",
        "1.0,10.0,1.0,2.0,0.5\n",
        "2.0,20.0,1.0\n",  # too short
        "\n",
        "3.0,30.0,1.0,2.0,0.5\n",
        "4.0,bad,1.0,2.0,0.5\n",
    ]
    with caplog.at_level("WARNING"):
        src = parse_lines(lines, "extended", label="seg")
    assert [r.primary_value for r in src.records] == [10.0, 30.0]
    assert src.n_skipped == 2
    assert [s.line_no for s in src.skipped] == [3, 6]
    assert any("skipped 2 malformed" in w for w in src.warnings)
    assert "seg: skipped malformed line 3" in caplog.text


def test_read_records_from_path_and_stream(tmp_path) -> None:
    p = tmp_path / "seg.txt"
    p.write_text("# c\n1.0,3.0\n2.0,4.0\n", encoding="utf-8")
    src = read_records(p, "simple")
    assert src.label == "seg.txt"
    assert src.source_path == p.resolve()
    assert [r.as_row()[:2] for r in src.records] == [(1.0, 3.0), (2.0, 4.0)]

    src2 = read_records(io.StringIO("5.0,6.0\n"), "simple", label="mem")
    assert src2.records == (Record(5.0, 6.0),)
    assert src2.source_path is None


def test_read_records_missing_file_raises_source_unavailable(tmp_path) -> None:
    with pytest.raises(SourceUnavailable) as exc:
        read_records(tmp_path / "nope.txt", "simple")
    assert "nope.txt" in str(exc.value)
    assert isinstance(exc.value, OSError)


def test_record_rejects_partial_extended_fields() -> None:
    with pytest.raises(ValueError):
        Record(1.0, 2.0, total_stat_error=1.0)


def test_measured_zero_is_distinct_from_absent_until_output() -> None:
    measured = Record(1.0, 2.0, 0.0, 0.0, 0.0)
    absent = Record(1.0, 2.0)
    assert measured != absent
    assert measured.is_extended and not absent.is_extended
    assert measured.as_row() == absent.as_row()
