"""
Standings computed from completed match results.
"""
from typing import Dict, Iterable, List, Optional

from .models import COMPLETED, Match, Standing

DEFAULT_WEIGHTS = {'win_points': 3, 'draw_points': 1, 'loss_points': 0}


def scoring_weights(settings) -> Dict[str, int]:
    """Pull win/draw/loss points out of a TournamentSettings or a plain dict."""
    source = settings.to_dict() if hasattr(settings, 'to_dict') else dict(settings or {})
    weights = dict(DEFAULT_WEIGHTS)
    for key in DEFAULT_WEIGHTS:
        if source.get(key) is not None:
            weights[key] = source[key]
    return weights


def compute_standings(matches: Iterable[Match], weights: Optional[dict] = None,
                      group_name: Optional[str] = None) -> List[Standing]:
    """
    Calculate ranked standings from a set of matches.

    Only completed matches with both teams known count. Ranking: points,
    then goal difference, then goals scored, all descending. Teams equal
    on all three stay in the order they first appear in the match list;
    no further tie-break is applied.
    """
    weights = scoring_weights(weights)
    team_stats: Dict[str, Standing] = {}

    for match in matches:
        if match.status != COMPLETED or not match.team1_id or not match.team2_id:
            continue
        if group_name is not None and match.group_name != group_name:
            continue

        for team_id in (match.team1_id, match.team2_id):
            if team_id not in team_stats:
                team_stats[team_id] = Standing(team_id, group_name=group_name)

        team1 = team_stats[match.team1_id]
        team2 = team_stats[match.team2_id]
        score1 = match.team1_score or 0
        score2 = match.team2_score or 0

        team1.played += 1
        team2.played += 1
        team1.goals_for += score1
        team1.goals_against += score2
        team2.goals_for += score2
        team2.goals_against += score1

        if score1 > score2:
            team1.won += 1
            team2.lost += 1
            team1.points += weights['win_points']
            team2.points += weights['loss_points']
        elif score2 > score1:
            team2.won += 1
            team1.lost += 1
            team2.points += weights['win_points']
            team1.points += weights['loss_points']
        else:
            team1.drawn += 1
            team2.drawn += 1
            team1.points += weights['draw_points']
            team2.points += weights['draw_points']

    sorted_teams = sorted(
        team_stats.values(),
        key=lambda s: (-s.points, -s.goal_difference, -s.goals_for)
    )
    for rank, standing in enumerate(sorted_teams, 1):
        standing.rank = rank
    return sorted_teams


def ranked_team_ids(standings: List[Standing], team_ids: List[str]) -> List[str]:
    """Team ids best first; teams without a standing follow in entry order."""
    ranked = [s.team_id for s in sorted(standings, key=lambda s: s.rank)]
    seen = set(ranked)
    return ranked + [team_id for team_id in team_ids if team_id not in seen]
