"""
Double elimination bracket generation.

In double elimination:
- Teams must lose twice to be eliminated
- Winners Bracket: Teams that haven't lost yet
- Losers Bracket: Teams that have lost once
- Grand Final: Winners bracket champion vs Losers bracket champion

The losers bracket alternates between two kinds of rounds:
- Drop-in rounds: losers of a winners round face the survivors of the
  previous losers round
- Consolidation rounds: losers bracket survivors pair off among themselves

For 8 teams:
- L1: 4 W1 losers pair off -> 2 survivors
- L2: 2 W2 losers vs 2 L1 survivors -> 2 survivors
- L3: 2 L2 survivors pair off -> 1 survivor
- L4: W3 loser vs L3 survivor -> losers champion
"""
import logging
import random
from typing import List, Optional

from .elimination import RoundBuilder, calculate_bracket_size, play_round, seed_slots
from .models import FINALS, LOSERS, WINNERS, Pairing
from .round_robin import validate_team_ids

logger = logging.getLogger(__name__)


def generate_double_elimination_pairings(team_ids: List[str], rng: Optional[random.Random] = None) -> List[List[Pairing]]:
    """
    Generate the winners bracket, losers bracket and grand final.

    Teams are shuffled before seeding. Every later match references the
    matches that feed it, so losers drop into the correct losers round as
    soon as results are recorded. Rounds are numbered per bracket branch;
    branches whose rounds hold only byes are skipped.
    """
    validate_team_ids(team_ids)
    rng = rng or random.Random()

    shuffled = list(team_ids)
    rng.shuffle(shuffled)

    bracket_size = calculate_bracket_size(len(shuffled))
    slots = seed_slots(shuffled, bracket_size)

    winners_rounds = []
    dropped_losers = []
    while len(slots) > 1:
        builder = RoundBuilder(len(winners_rounds) + 1, WINNERS, 'W')
        slots, losers = play_round(slots, builder)
        dropped_losers.append(losers)
        if builder.pairings:
            winners_rounds.append(builder.pairings)
    winners_champion = slots[0]

    losers_rounds = []

    def next_builder():
        return RoundBuilder(len(losers_rounds) + 1, LOSERS, 'L')

    def keep(builder):
        if builder.pairings:
            losers_rounds.append(builder.pairings)

    survivors = dropped_losers[0]
    if len(survivors) > 1:
        builder = next_builder()
        survivors, _ = play_round(survivors, builder)
        keep(builder)

        for drops in dropped_losers[1:]:
            builder = next_builder()
            survivors = [builder.play(drop, survivor)[0] for drop, survivor in zip(drops, survivors)]
            keep(builder)

            if len(survivors) > 1:
                builder = next_builder()
                survivors, _ = play_round(survivors, builder)
                keep(builder)
    losers_champion = survivors[0]

    final_builder = RoundBuilder(1, FINALS, 'F')
    final_builder.play(winners_champion, losers_champion)
    grand_final = final_builder.pairings
    for pairing in grand_final:
        pairing.code = 'GF'

    logger.debug('Double elimination for %d teams: %d winners rounds, %d losers rounds',
                 len(team_ids), len(winners_rounds), len(losers_rounds))
    return winners_rounds + losers_rounds + [grand_final]
