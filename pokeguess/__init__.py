"""Guess-the-silhouette Pokémon game served as a small Flask app."""

__version__ = "0.1.0"
