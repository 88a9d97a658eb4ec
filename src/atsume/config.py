"""
Runtime configuration for the tournament engine.

Paths and timeouts come from the environment; tournament setting defaults
can be overridden from a YAML file.
"""
import logging
import os

import yaml

from .exceptions import ValidationError

logger = logging.getLogger(__name__)

BASE_DIR = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
DATA_DIR = os.environ.get('ATSUME_DATA_DIR', os.path.join(BASE_DIR, 'data'))
LOCK_TIMEOUT = float(os.environ.get('ATSUME_LOCK_TIMEOUT', '10'))

# Team colors used when teams are generated from an assignment
TEAM_COLORS = [
    '#EF4444',  # Red
    '#3B82F6',  # Blue
    '#10B981',  # Green
    '#F59E0B',  # Amber
    '#8B5CF6',  # Purple
    '#EC4899',  # Pink
    '#06B6D4',  # Cyan
    '#F97316',  # Orange
    '#84CC16',  # Lime
    '#6366F1',  # Indigo
]

# Wider palette for individual competition, one team per participant
INDIVIDUAL_COLORS = [
    '#FF6B6B', '#4ECDC4', '#45B7D1', '#FFA07A', '#98D8C8',
    '#F7DC6F', '#BB8FCE', '#85C1E2', '#F8B739', '#52B788',
    '#F06292', '#7986CB', '#4DD0E1', '#FFB74D', '#81C784',
]


def get_default_settings() -> dict:
    """Return default tournament settings."""
    return {
        'win_points': 3,
        'draw_points': 1,
        'loss_points': 0,
        'has_third_place_match': False,
        'swiss_rounds': None,
        'enable_standings': True,
        'groups': 2,
        'competition_type': 'team',
    }


def load_settings(path: str = None) -> dict:
    """Load tournament settings from YAML, falling back to defaults for missing keys."""
    settings = get_default_settings()
    if not path or not os.path.exists(path):
        return settings
    with open(path, 'r', encoding='utf-8') as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValidationError(f'Invalid settings file {path}: {e}') from e
    if data is None:
        return settings
    if not isinstance(data, dict):
        raise ValidationError(f'Settings file {path} must contain a mapping')
    logger.debug('Loaded settings overrides from %s: %s', path, sorted(data))
    settings.update(data)
    return settings
