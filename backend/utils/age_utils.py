from datetime import date


def calculate_age(birth_date: date, on_date: date) -> int:
    """
    Whole years between birth_date and on_date.

    The birthday itself counts: someone born 2008-10-19 is 18 on 2026-10-19
    and 17 the day before.
    """
    years = on_date.year - birth_date.year
    if (on_date.month, on_date.day) < (birth_date.month, birth_date.day):
        years -= 1
    return years
