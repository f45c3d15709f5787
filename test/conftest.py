import os
import tempfile

# The API reads DATABASE_URL at import time; point it at a throwaway SQLite file first
_DB_DIR = tempfile.mkdtemp(prefix="loot_goblin_tests_")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_DB_DIR, 'test.db')}"
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import pytest

from loot_goblin.engine.actions import start_adventure
from loot_goblin.engine.definitions import get_catalog
from loot_goblin.engine.reducer import apply_action
from loot_goblin.engine.resolver import ScriptedRandom
from loot_goblin.engine.utils import create_adventure


@pytest.fixture(scope="session")
def catalog():
    return get_catalog()


@pytest.fixture
def act(catalog):
    """act(adventure, action, *draws, sampling=None) -> (adventure, events), with scripted draws."""
    def _act(adventure, action, *draws, sampling=None):
        return apply_action(adventure, action, catalog, ScriptedRandom(draws), sampling)
    return _act


@pytest.fixture
def started(act):
    """started(players=["p1"], **settings) -> Started adventure in a fresh camp."""
    def _started(players=None, **settings):
        players = players or ["p1"]
        adventure = create_adventure(players, creator="alice", **settings)
        adventure, _ = act(adventure, start_adventure(players[0]))
        return adventure
    return _started
