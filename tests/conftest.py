import random
import string

import pytest

from pokeguess.catalog import Catalog, CatalogError, Entity
from pokeguess.game import GameConfig, GameView, RoundController

GEN1_HEAD = [
    "bulbasaur", "ivysaur", "venusaur", "charmander", "charmeleon", "charizard",
    "squirtle", "wartortle", "blastoise", "caterpie", "metapod", "butterfree",
    "weedle", "kakuna", "beedrill", "pidgey", "pidgeotto", "pidgeot",
    "rattata", "raticate", "spearow", "fearow", "ekans", "arbok",
    "pikachu", "raichu", "sandshrew", "sandslash", "nidoran-f", "nidorina",
]


def _filler(index):
    letters = string.ascii_lowercase
    return "zz" + letters[index // 26 % 26] + letters[index % 26]


NAMES = GEN1_HEAD + [_filler(i) for i in range(len(GEN1_HEAD), 251)]
NAMES[121] = "mr-mime"

# 19000 days after the epoch, one hour into the UTC day
FIXED_NOW = 19000 * 86400 + 3600.0


class FakeClient:
    """Stands in for PokeApiClient with a canned catalog."""

    def __init__(self, names=None, fail_names=False, fail_entities=False, missing_artwork=()):
        self.names = list(names if names is not None else NAMES)
        self.fail_names = fail_names
        self.fail_entities = fail_entities
        self.missing_artwork = set(missing_artwork)
        self.entity_calls = []
        self.last_entity = None

    def fetch_names(self, limit=251):
        if self.fail_names:
            raise CatalogError("catalog offline")
        return self.names[:limit]

    def fetch_entity(self, identifier):
        self.entity_calls.append(identifier)
        if self.fail_entities:
            raise CatalogError(f"no entry for #{identifier}")
        artwork = None if identifier in self.missing_artwork else f"https://img.test/{identifier}.png"
        self.last_entity = Entity(id=identifier, name=self.names[identifier - 1], artwork=artwork)
        return self.last_entity


class RecordingView(GameView):
    def __init__(self):
        self.messages = []
        self.rounds = []
        self.suggestions = []

    def render_round(self, state, score):
        self.rounds.append((state.phase if state else None, score))

    def render_suggestions(self, names):
        self.suggestions.append(list(names))

    def render_message(self, text):
        self.messages.append(text)

    @property
    def message(self):
        return self.messages[-1] if self.messages else ""


@pytest.fixture
def fake_client():
    return FakeClient()


@pytest.fixture
def catalog(fake_client):
    catalog = Catalog(fake_client)
    catalog.load()
    return catalog


@pytest.fixture
def view():
    return RecordingView()


@pytest.fixture
def controller(fake_client, catalog, view):
    return RoundController(
        fake_client,
        catalog,
        config=GameConfig(generation_limit=151),
        view=view,
        rng=random.Random(1234),
        clock=lambda: FIXED_NOW,
    )
