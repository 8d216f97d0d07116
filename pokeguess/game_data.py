"""
Static game data: limits, generations, round phases and player-facing messages.
"""

API_BASE_URL = "https://pokeapi.co/api/v2"

# Names are fetched up to Gen 2
MAX_POKE_LIMIT = 251
DEFAULT_GENERATION_LIMIT = 151

GENERATIONS = [
    {"id": 1, "label": "Gen 1", "limit": 151},
    {"id": 2, "label": "Gen 1 + 2", "limit": 251},
]

MAX_TRIES = 6
MAX_SUGGESTIONS = 8
DAY_MILLIS = 86_400_000

# Round phases
PHASE_IDLE = "idle"
PHASE_LOADING = "loading"
PHASE_AWAITING_GUESS = "awaiting_guess"
PHASE_REVEALED = "revealed"
PHASE_FAILED = "failed"

# Round outcomes
OUTCOME_UNRESOLVED = "unresolved"
OUTCOME_WON = "won"
OUTCOME_LOST = "lost"

MESSAGES = {
    "catalog_ready": "Ready, have fun!",
    "catalog_failed": "Could not load Pokémon names. Check your internet connection.",
    "catalog_loading": "Loading Pokémon names...",
    "loading": "Loading Pokémon...",
    "guess": "Guess the Pokémon!",
    "daily": "Daily puzzle, good luck!",
    "artwork_missing": "Artwork not available. Guess by name!",
    "artwork_failed": "Error loading Pokémon artwork.",
    "won": "Correct! It's {name}.",
    "lost": "Out of tries, it's {name}.",
    "wrong": "Nope, {tries} {unit} left.",
    "generation": "Generation set: first {limit} Pokémon",
    "skip_disabled": "Skipping is disabled in daily mode.",
}
