"""Game Codes — generation and normalization of short join codes.

Invariants:
    - Codes are exactly GAME_CODE_LENGTH chars from [A-Z0-9]
    - Normalization is case-insensitive and strips surrounding whitespace
    - Uniqueness is NOT checked here (storage owns it)

Design Decisions:
    - Injectable Random: deterministic tests without patching the module
    - secrets.SystemRandom by default: codes are join tokens, not guessable sequences
"""

import random
import secrets

from app.core.domain_types import GameCode, GAME_CODE_ALPHABET, GAME_CODE_LENGTH

_system_random = secrets.SystemRandom()


def generate_code(rng: random.Random | None = None) -> GameCode:
    """Generate a candidate join code."""
    rng = rng or _system_random
    return GameCode("".join(
        rng.choice(GAME_CODE_ALPHABET) for _ in range(GAME_CODE_LENGTH)
    ))


def normalize_code(raw: str) -> GameCode:
    """Normalize user-entered codes (' abc123 ' -> 'ABC123')."""
    return GameCode(raw.strip().upper())


def is_valid_code(code: str) -> bool:
    return len(code) == GAME_CODE_LENGTH and all(
        c in GAME_CODE_ALPHABET for c in code
    )
