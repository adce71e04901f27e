BASE_POINTS = 100
MAX_TIME_BONUS = 50


def time_bonus(time_left: int, time_limit: int) -> int:
    """Bonus for answering early: floor(time_left / time_limit * 50).

    time_left is clamped into [0, time_limit] so a late tick can never
    produce a negative bonus or more than the maximum.
    """
    if time_limit <= 0:
        return 0
    remaining = max(0, min(int(time_left), time_limit))
    return (remaining * MAX_TIME_BONUS) // time_limit


def award_points(is_correct: bool, time_left: int, time_limit: int) -> int:
    """Points for a single answer. Wrong or missing answers score 0."""
    if not is_correct:
        return 0
    return BASE_POINTS + time_bonus(time_left, time_limit)
