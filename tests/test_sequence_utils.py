import logging

import pytest

from utils.sequence_utils import (
    CorpusParseError,
    SequenceDatabase,
    load_database,
    parse_sequence_line,
)


def test_skips_comments_and_blank_lines():
    db = load_database(["# comment", "% other", "@CONVERTED_FROM_TEXT", "", "1[2] -1 2[3] -1 -2 S:5"])
    assert db.size() == 1
    seq = db.get(0)
    assert seq.itemsets == [[1], [2]]
    assert seq.utilities == [[2.0], [3.0]]
    assert seq.exact_utility == 5.0


def test_repeated_item_is_subtracted_from_declared_utility():
    seq = parse_sequence_line("1[2] -1 2[3] 1[4] -1 -2 S:9")
    assert seq.itemsets == [[1], [2]]
    assert seq.utilities == [[2.0], [3.0]]
    assert seq.exact_utility == 5.0


def test_declared_utility_may_come_first():
    seq = parse_sequence_line("S:9 1[2] -1 1[4] -1 -2")
    # the second itemset only held a repeat, so it is not stored
    assert seq.itemsets == [[1]]
    assert seq.exact_utility == 5.0


def test_sutility_token():
    seq = parse_sequence_line("3[1] -1 -2 SUtility:1")
    assert seq.exact_utility == 1.0


def test_itemsets_are_sorted_with_their_utilities():
    seq = parse_sequence_line("5[1] 2[3] -1 -2 S:4")
    assert seq.itemsets == [[2, 5]]
    assert seq.utilities == [[3.0, 1.0]]


def test_missing_declared_utility_uses_item_sum():
    seq = parse_sequence_line("1[2] 4[3] -1 6[1.5] -1 -2")
    assert seq.exact_utility == 6.5


def test_fractional_utilities_are_kept():
    seq = parse_sequence_line("1[0.5] -1 1[0.25] 2[1.25] -1 -2 S:2")
    assert seq.utilities == [[0.5], [1.25]]
    assert seq.exact_utility == pytest.approx(1.75)


def test_max_sequences_stops_loading():
    lines = ["1[1] -1 -2 S:1", "# skipped", "2[1] -1 -2 S:1", "3[1] -1 -2 S:1"]
    db = load_database(lines, max_sequences=2)
    assert db.size() == 2
    assert db.get(1).itemsets == [[2]]


def test_missing_terminator_skips_the_line_with_warning(caplog):
    with caplog.at_level(logging.WARNING):
        seq = parse_sequence_line("1[1] -1 2[1]", line_number=3)
    assert seq is None
    assert "not terminated" in caplog.text


def test_unterminated_lines_never_enter_the_database():
    db = load_database(["1[2] -1 2[3] -1 S:5", "1[1] -1 2[4] -1 -2 S:5"])
    assert db.size() == 1
    assert db.get(0).utilities == [[1.0], [4.0]]


def test_unterminated_lines_do_not_count_toward_max_sequences():
    db = load_database(["1[2] -1 S:2", "2[1] -1 -2 S:1", "3[1] -1 -2 S:1"], max_sequences=1)
    assert db.size() == 1
    assert db.get(0).itemsets == [[2]]


@pytest.mark.parametrize("line", [
    "1[x] -1 -2 S:1",
    "a[1] -1 -2 S:1",
    "1[2 -1 -2 S:1",
    "1 -1 -2 S:1",
    "[3] -1 -2 S:1",
    "1[1] -1 -2 S:abc",
    "1[1] -1 -2 S5",
    "1[1] -1 -2 2[1]",
    "-3 -2 S:1",
    "1_0[2] -1 -2 S:2",
    "1[2_5] -1 -2 S:25",
    "1[2] -1 -2 S:1_000",
    "١[2] -1 -2 S:2",
    "1[２] -1 -2 S:2",
    "1[inf] -1 -2 S:1",
    "1[1] -1 -2 S:nan",
])
def test_malformed_tokens_raise(line):
    with pytest.raises(CorpusParseError):
        parse_sequence_line(line)


def test_parse_error_reports_line_number_and_keeps_no_partial_database():
    db = SequenceDatabase()
    with pytest.raises(CorpusParseError) as excinfo:
        db.load_lines(["1[1] -1 2[2] -1 -2 S:3", "# c", "1[oops] -1 -2 S:1"])
    assert excinfo.value.line_number == 3
    assert "line 3" in str(excinfo.value)
    assert db.size() == 0


def test_load_file(tmp_path):
    path = tmp_path / "db.txt"
    path.write_text("@header\n1[2] -1 2[3] -1 -2 S:5\n1[1] -1 2[4] -1 -2 S:5\n", encoding="utf-8")
    db = load_database(str(path))
    assert db.size() == 2
    assert db.get(1).exact_utility == 5.0


def test_load_file_missing_raises(tmp_path):
    with pytest.raises(OSError):
        load_database(str(tmp_path / "nope.txt"))


def test_stats_and_dump():
    db = load_database(["1[2] -1 2[3] -1 -2 S:5", "1[1] 3[1] -1 -2 S:2"])
    assert db.stats() == {"sequence_count": 2, "mean_size": 1.5}
    dump = str(db)
    assert dump.splitlines()[0] == "0:  (1[2])(2[3])   sequenceUtility: 5"
    assert "(1[1] 3[1])" in dump


def test_empty_database_stats():
    assert SequenceDatabase().stats() == {"sequence_count": 0, "mean_size": 0.0}
