"""Draft pick order math."""


def team_for_pick(pick_number: int, number_of_teams: int, draft_type: str = "snake") -> int:
    """
    Team index (0-based) on the clock for a 1-based overall pick number.

    Linear drafts repeat 0..N-1 every round. Snake drafts run 0..N-1 in even
    rounds (0-based) and N-1..0 in odd rounds.
    """
    if pick_number < 1:
        raise ValueError(f"pick_number must be >= 1, got {pick_number}")
    if number_of_teams < 1:
        raise ValueError(f"number_of_teams must be >= 1, got {number_of_teams}")

    draft_round = (pick_number - 1) // number_of_teams
    position_in_round = (pick_number - 1) % number_of_teams

    if draft_type == "linear":
        return position_in_round
    if draft_type == "snake":
        if draft_round % 2 == 0:
            return position_in_round
        return number_of_teams - 1 - position_in_round
    raise ValueError(f"Unknown draft type: {draft_type!r}")


def round_for_pick(pick_number: int, number_of_teams: int) -> int:
    """1-based round of an overall pick."""
    return (pick_number - 1) // number_of_teams + 1


def picks_for_team(team_index: int, number_of_teams: int, rounds: int, draft_type: str = "snake"):
    """All overall pick numbers belonging to a team."""
    return [
        pick for pick in range(1, number_of_teams * rounds + 1)
        if team_for_pick(pick, number_of_teams, draft_type) == team_index
    ]
