"""
Print the pairings for a YAML team list.

The file holds either a plain list of team names or a mapping of pool
name to team names; pools are flattened in file order.
"""
import argparse
import os
import random
import sys

import yaml

from atsume import config
from atsume.exceptions import AtsumeError
from atsume.models import FORMATS, ROUND_ROBIN, Bye, PendingLoserOf, PendingWinnerOf, Resolved
from atsume.pairing import generate_pairings


def load_team_names(file_path):
    with open(file_path, mode='r', encoding='utf-8') as file:
        data = yaml.safe_load(file)
    if not data:
        return []
    if isinstance(data, dict):
        names = []
        for team_names in data.values():
            names.extend(team_names or [])
        return [str(name) for name in names]
    if isinstance(data, list):
        return [str(name) for name in data]
    raise ValueError(f'{file_path} must contain a list or a mapping of team names')


def describe_slot(slot):
    if isinstance(slot, Resolved):
        return slot.team_id
    if isinstance(slot, PendingWinnerOf):
        return f'Winner {slot.match_code}'
    if isinstance(slot, PendingLoserOf):
        return f'Loser {slot.match_code}'
    if isinstance(slot, Bye):
        return 'BYE'
    return '?'


def format_rounds(rounds):
    lines = []
    for round_pairings in rounds:
        if not round_pairings:
            continue
        first = round_pairings[0]
        header = f'# Round {first.round}'
        if first.bracket:
            header += f' ({first.bracket})'
        if lines:
            lines.append('')
        lines.append(header)
        for pairing in round_pairings:
            lines.append(f'{pairing.code}: {describe_slot(pairing.slot1)} vs {describe_slot(pairing.slot2)}')
    return lines


def build_parser():
    parser = argparse.ArgumentParser(description='Print tournament pairings for a YAML team list.')
    parser.add_argument('teams_file', nargs='?',
                        default=os.path.join(config.DATA_DIR, 'teams.yaml'),
                        help='YAML list of team names, or a mapping of pool to team names')
    parser.add_argument('--format', choices=FORMATS, default=ROUND_ROBIN)
    parser.add_argument('--settings', help='YAML file with tournament setting overrides')
    parser.add_argument('--seed', type=int, help='seed for the random draws')
    parser.add_argument('--swiss-rounds', type=int, help='number of Swiss rounds')
    parser.add_argument('--groups', type=int, help='number of groups for the group stage')
    parser.add_argument('--third-place', action='store_true', help='add a third place match')
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)

    try:
        settings = config.load_settings(args.settings)
        if args.swiss_rounds is not None:
            settings['swiss_rounds'] = args.swiss_rounds
        if args.groups is not None:
            settings['groups'] = args.groups
        if args.third_place:
            settings['has_third_place_match'] = True
        team_names = load_team_names(args.teams_file)
        rounds = generate_pairings(args.format, team_names, settings, rng=random.Random(args.seed))
    except (OSError, ValueError, yaml.YAMLError, AtsumeError) as e:
        print(f'Error: {e}', file=sys.stderr)
        return 1

    for line in format_rounds(rounds):
        print(line)
    return 0


if __name__ == '__main__':
    sys.exit(main())
