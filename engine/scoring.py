EXACT_SCORE_POINTS = 3
GOAL_DIFFERENCE_POINTS = 2
CORRECT_WINNER_POINTS = 1

_DESCRIPTIONS = {
    EXACT_SCORE_POINTS: "Exact score!",
    GOAL_DIFFERENCE_POINTS: "Correct winner + goal difference",
    CORRECT_WINNER_POINTS: "Correct winner",
    0: "No points",
}


def _outcome(home: int, away: int) -> int:
    """1 for a home win, -1 for an away win, 0 for a draw."""
    return (home > away) - (home < away)


def get_base_points(
    predicted_home: int, predicted_away: int, actual_home: int, actual_away: int
) -> int:
    if predicted_home == actual_home and predicted_away == actual_away:
        return EXACT_SCORE_POINTS
    # Equal differences imply the same outcome, so draws land here too.
    if predicted_home - predicted_away == actual_home - actual_away:
        return GOAL_DIFFERENCE_POINTS
    if _outcome(predicted_home, predicted_away) == _outcome(actual_home, actual_away):
        return CORRECT_WINNER_POINTS
    return 0


def calculate_points(
    predicted_home: int,
    predicted_away: int,
    actual_home: int,
    actual_away: int,
    multiplier: int = 1,
) -> int:
    """Points a settled prediction earns, scaled by the match multiplier."""
    return get_base_points(predicted_home, predicted_away, actual_home, actual_away) * multiplier


def get_points_description(base_points: int, multiplier: int = 1) -> str:
    description = _DESCRIPTIONS.get(base_points, _DESCRIPTIONS[0])
    if multiplier > 1:
        return f"{description} (×{multiplier})"
    return description
