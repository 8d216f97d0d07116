from __future__ import annotations

import logging
import random
import re
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Sequence

from pokeguess.catalog import Catalog, CatalogError, Entity, PokeApiClient
from pokeguess.game_data import (
    DAY_MILLIS,
    DEFAULT_GENERATION_LIMIT,
    MAX_POKE_LIMIT,
    MAX_SUGGESTIONS,
    MAX_TRIES,
    MESSAGES,
    OUTCOME_LOST,
    OUTCOME_UNRESOLVED,
    OUTCOME_WON,
    PHASE_AWAITING_GUESS,
    PHASE_FAILED,
    PHASE_IDLE,
    PHASE_LOADING,
    PHASE_REVEALED,
)

logger = logging.getLogger(__name__)

_NON_LETTERS = re.compile(r"[^a-z]")


class SkipDisabledError(Exception):
    """Raised when a new random round is requested while daily mode is on."""


def normalize(name: Any) -> str:
    """Lowercase and drop everything outside a-z: "Mr. Mime" -> "mrmime"."""
    return _NON_LETTERS.sub("", str(name).lower())


def display_name(name: str) -> str:
    return name[:1].upper() + name[1:]


def clamp_generation(value: Any) -> int:
    """Coerce a selector value into [1, MAX_POKE_LIMIT]; unusable input means Gen 1."""
    try:
        limit = int(value)
    except OverflowError:
        return MAX_POKE_LIMIT if value > 0 else 1
    except (TypeError, ValueError):
        limit = 0
    if limit == 0:
        limit = DEFAULT_GENERATION_LIMIT
    return min(max(1, limit), MAX_POKE_LIMIT)


def daily_identifier(limit: int, now_millis: Optional[int] = None) -> int:
    """Id of the daily puzzle: days since the epoch (UTC) folded into [1, limit]."""
    if now_millis is None:
        now_millis = int(time.time() * 1000)
    days = now_millis // DAY_MILLIS
    return days % max(1, limit) + 1


def filter_suggestions(
    names: Sequence[str],
    query: str,
    limit: int,
    max_results: int = MAX_SUGGESTIONS,
) -> List[str]:
    q = normalize(query)
    if not q:
        return []
    matches: List[str] = []
    for name in names[: max(0, limit)]:
        if q in normalize(name):
            matches.append(name)
            if len(matches) >= max_results:
                break
    return matches


@dataclass
class GameConfig:
    generation_limit: int = DEFAULT_GENERATION_LIMIT
    daily: bool = False


@dataclass
class RoundState:
    generation: int
    target_id: int
    daily: bool = False
    target_name: str = ""
    artwork: Optional[str] = None
    tries_left: int = MAX_TRIES
    outcome: str = OUTCOME_UNRESOLVED
    phase: str = PHASE_LOADING

    @property
    def has_target(self) -> bool:
        return bool(self.target_name)

    @property
    def revealed(self) -> bool:
        return self.outcome != OUTCOME_UNRESOLVED

    @property
    def accepting_guesses(self) -> bool:
        return self.phase == PHASE_AWAITING_GUESS


class GameView:
    """Rendering hooks driven by the controller. The base view draws nothing."""

    def render_round(self, state: Optional[RoundState], score: int) -> None:
        pass

    def render_suggestions(self, names: Sequence[str]) -> None:
        pass

    def render_message(self, text: str) -> None:
        pass


class RoundController:
    """Owns one player's score, configuration and current round.

    Mutations are serialized by an internal lock which is never held while the
    entity is fetched. Every round start bumps ``_generation``; fetch results
    carrying an older generation are dropped.
    """

    def __init__(
        self,
        client: PokeApiClient,
        catalog: Catalog,
        config: Optional[GameConfig] = None,
        view: Optional[GameView] = None,
        rng: Optional[random.Random] = None,
        clock: Optional[Callable[[], float]] = None,
        max_tries: int = MAX_TRIES,
    ) -> None:
        self.client = client
        self.catalog = catalog
        self.config = config or GameConfig()
        self.view = view or GameView()
        self.rng = rng or random.Random()
        self.clock = clock or time.time
        self.max_tries = max_tries
        self.score = 0
        self.state: Optional[RoundState] = None
        self._generation = 0
        self._notice: Optional[str] = None
        self._lock = threading.Lock()

    @property
    def phase(self) -> str:
        return self.state.phase if self.state is not None else PHASE_IDLE

    @property
    def can_skip(self) -> bool:
        return not self.config.daily

    def choose_target(self) -> int:
        limit = self.config.generation_limit
        if self.config.daily:
            return daily_identifier(limit, int(self.clock() * 1000))
        return self.rng.randint(1, max(1, limit))

    def start(self) -> RoundState:
        state = self.begin_round()
        try:
            entity = self.client.fetch_entity(state.target_id)
        except CatalogError as exc:
            self.fail_round(state.generation, exc)
        else:
            self.complete_round(state.generation, entity)
        return state

    def begin_round(self) -> RoundState:
        with self._lock:
            self._generation += 1
            state = RoundState(
                generation=self._generation,
                target_id=self.choose_target(),
                daily=self.config.daily,
                tries_left=self.max_tries,
            )
            self.state = state
            logger.debug("Round %d started for #%d (daily=%s)", state.generation, state.target_id, state.daily)
            self.view.render_round(state, self.score)
            self.view.render_message(MESSAGES["daily"] if state.daily else MESSAGES["loading"])
        return state

    def _is_current(self, generation: int) -> bool:
        if self.state is None or self.state.generation != generation:
            logger.debug("Dropping result for stale round %d (current %d)", generation, self._generation)
            return False
        return True

    def complete_round(self, generation: int, entity: Entity) -> bool:
        with self._lock:
            if not self._is_current(generation):
                return False
            state = self.state
            state.target_name = entity.name
            state.artwork = entity.artwork
            state.phase = PHASE_AWAITING_GUESS
            self.view.render_round(state, self.score)
            if entity.artwork is None:
                message = MESSAGES["artwork_missing"]
            elif state.daily:
                message = MESSAGES["daily"]
            else:
                message = MESSAGES["guess"]
            if self._notice:
                message = f"{self._notice}. {message}"
                self._notice = None
            self.view.render_message(message)
        return True

    def fail_round(self, generation: int, error: Exception) -> bool:
        with self._lock:
            if not self._is_current(generation):
                return False
            state = self.state
            state.phase = PHASE_FAILED
            self._notice = None
            logger.warning("Could not load #%d: %s", state.target_id, error)
            self.view.render_round(state, self.score)
            self.view.render_message(MESSAGES["artwork_failed"])
        return True

    def submit_guess(self, text: str) -> Optional[RoundState]:
        with self._lock:
            state = self.state
            if state is None or not state.accepting_guesses:
                return state
            if normalize(text) == normalize(state.target_name):
                self._reveal(state, won=True)
                return state

            state.tries_left = max(0, state.tries_left - 1)
            if state.tries_left <= 0:
                self._reveal(state, won=False)
            else:
                unit = "try" if state.tries_left == 1 else "tries"
                self.view.render_round(state, self.score)
                self.view.render_message(MESSAGES["wrong"].format(tries=state.tries_left, unit=unit))
            return state

    def reveal(self, won: bool) -> Optional[RoundState]:
        with self._lock:
            if self.state is not None:
                self._reveal(self.state, won)
            return self.state

    def force_reveal(self) -> Optional[RoundState]:
        return self.reveal(False)

    def _reveal(self, state: RoundState, won: bool) -> bool:
        if not state.has_target or state.revealed:
            return False
        name = display_name(state.target_name)
        if won:
            self.score += 1
            state.outcome = OUTCOME_WON
            message = MESSAGES["won"].format(name=name)
        else:
            state.outcome = OUTCOME_LOST
            message = MESSAGES["lost"].format(name=name)
        state.phase = PHASE_REVEALED
        logger.debug("Round %d revealed #%d as %s", state.generation, state.target_id, state.outcome)
        self.view.render_round(state, self.score)
        self.view.render_message(message)
        return True

    def next_round(self) -> RoundState:
        if not self.can_skip:
            self.view.render_message(MESSAGES["skip_disabled"])
            raise SkipDisabledError(MESSAGES["skip_disabled"])
        return self.start()

    def configure(self, generation_limit: Any = None, daily: Optional[bool] = None) -> RoundState:
        """Apply control changes, then start a fresh round under the new rules."""
        with self._lock:
            if generation_limit is not None:
                self.config.generation_limit = clamp_generation(generation_limit)
                self._notice = MESSAGES["generation"].format(limit=self.config.generation_limit)
            if daily is not None:
                self.config.daily = bool(daily)
        return self.start()

    def set_generation_limit(self, value: Any) -> RoundState:
        return self.configure(generation_limit=value)

    def set_daily(self, enabled: bool) -> RoundState:
        return self.configure(daily=enabled)

    def get_suggestions(self, query: str) -> List[str]:
        names = filter_suggestions(self.catalog.names, query, self.config.generation_limit)
        self.view.render_suggestions(names)
        return names
