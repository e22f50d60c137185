import math
from typing import Iterable, List, Optional, Tuple

from school_app import models


def roll_sort_key(roll_no: Optional[str]) -> Tuple:
    """
    Orders roll numbers the way a class register reads:
    digit-only rolls numerically, then other rolls case-insensitively,
    then students without a roll number.
    """
    roll = (roll_no or "").strip()
    if not roll:
        return (2,)
    if roll.isascii() and roll.isdigit():
        # Compared as text: longer significant digits means a larger number
        digits = roll.lstrip("0")
        return (0, len(digits), digits, roll)
    return (1, roll.lower())


def sort_roster(students: Iterable[models.Student]) -> List[models.Student]:
    """Stable sort, so equal roll numbers keep arrival order."""
    return sorted(students, key=lambda student: roll_sort_key(student.roll_no))


def format_number(value: Optional[float]) -> str:
    """Renders a stored number as edit text: 80.0 -> "80", 8.25 -> "8.25"."""
    if value is None:
        return ""
    number = float(value)
    if number.is_integer():
        return str(int(number))
    return repr(number)


def parse_number(text: Optional[str]) -> Optional[float]:
    """Returns the finite number in `text`, or None when it is blank or not numeric."""
    if text is None:
        return None
    text = text.strip()
    if not text:
        return None
    # float() would also accept "1_000" and non-ASCII digits
    if not text.isascii() or "_" in text:
        return None
    try:
        number = float(text)
    except ValueError:
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number
