"""
Shared pytest fixtures for tournament engine tests.

Running tests:
    pytest tests/
"""
import pytest
import random
import sys
import os

# Add src directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from atsume.lifecycle import TournamentController
from atsume.models import Participant
from atsume.store import YamlStore


@pytest.fixture
def rng():
    """Seeded random generator so shuffles are reproducible."""
    return random.Random(1234)


@pytest.fixture
def store(tmp_path):
    """Empty YAML store in a temporary data directory."""
    return YamlStore(str(tmp_path / "data"), lock_timeout=5)


@pytest.fixture
def controller(store, rng):
    """Tournament controller over the temporary store."""
    return TournamentController(store, rng=rng)


@pytest.fixture
def client(tmp_path, monkeypatch):
    """Flask test client backed by a temporary store."""
    import app as app_module

    data_dir = tmp_path / "api-data"
    monkeypatch.setattr(app_module, '_store', YamlStore(str(data_dir), lock_timeout=5))
    monkeypatch.setattr(app_module, 'SETTINGS_FILE', str(data_dir / "settings.yaml"))
    app_module.app.config['TESTING'] = True
    with app_module.app.test_client() as client:
        yield client


@pytest.fixture
def participants():
    """Eight attending participants with spread skill levels and two genders."""
    return [
        Participant(f"p{i}", display_name=f"Player {i}", skill_level=skill, gender=gender,
                    attendance_status="attending")
        for i, (skill, gender) in enumerate([
            (5, "F"), (5, "M"), (4, "F"), (4, "M"),
            (3, "F"), (3, "M"), (2, "F"), (1, "M"),
        ])
    ]
