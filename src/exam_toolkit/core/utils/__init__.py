"""Core utilities: seeded randomness and serialization."""

from .seeded_random import SeededRandom, default_seed
from .serialization import deserialize_pool, load_pool, load_students, to_json

__all__ = [
    "SeededRandom",
    "default_seed",
    "deserialize_pool",
    "load_pool",
    "load_students",
    "to_json",
]
