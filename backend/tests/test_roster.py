from types import SimpleNamespace

import pytest

from school_app.results.roster import format_number, parse_number, sort_roster


def _student(student_id, roll_no):
    return SimpleNamespace(id=student_id, roll_no=roll_no)


def test_sort_roster_orders_numeric_rolls_numerically_and_blank_rolls_last():
    students = [
        _student(1, "10"),
        _student(2, None),
        _student(3, "2"),
        _student(4, "b7"),
        _student(5, "A3"),
        _student(6, "  "),
        _student(7, "1"),
    ]
    ordered = [s.id for s in sort_roster(students)]
    assert ordered == [7, 3, 1, 5, 4, 2, 6]


def test_sort_roster_keeps_arrival_order_for_duplicate_rolls():
    students = [_student(9, "4"), _student(3, "4"), _student(5, "4")]
    assert [s.id for s in sort_roster(students)] == [9, 3, 5]


@pytest.mark.parametrize(
    "value, expected",
    [(80.0, "80"), (8.25, "8.25"), (0.0, "0"), (None, ""), (99.5, "99.5")],
)
def test_format_number(value, expected):
    assert format_number(value) == expected


@pytest.mark.parametrize(
    "text, expected",
    [
        ("80", 80.0),
        (" 72.5 ", 72.5),
        ("", None),
        ("   ", None),
        ("abc", None),
        ("nan", None),
        ("inf", None),
        (None, None),
    ],
)
def test_parse_number(text, expected):
    assert parse_number(text) == expected


def test_sort_roster_handles_very_long_numeric_rolls():
    students = [_student(1, "9" * 5000), _student(2, "10"), _student(3, "007"), _student(4, "8" * 5000)]
    assert [s.id for s in sort_roster(students)] == [3, 2, 4, 1]


@pytest.mark.parametrize("text", ["1_000", "٨٠", "８０"])
def test_parse_number_rejects_underscores_and_non_ascii_digits(text):
    assert parse_number(text) is None


def test_parse_number_accepts_exponent_and_sign():
    assert parse_number("-1.5e2") == -150.0
