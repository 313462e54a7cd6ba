from __future__ import annotations

import secrets

from examprep.billing.constants import (
    ACTIVATION_CODE_LENGTH,
    ACTIVATION_CODE_PREFIX,
    CODE_ALPHABET,
    SEASON_PASS_CODE_GROUP_LENGTH,
    SEASON_PASS_CODE_PREFIX,
    SEASON_PASS_CODE_RE,
)


def _random_chars(length: int) -> str:
    return "".join(secrets.choice(CODE_ALPHABET) for _ in range(length))


def normalize_code(raw_code: str) -> str:
    return raw_code.strip().upper()


def is_valid_code_format(code: str) -> bool:
    return SEASON_PASS_CODE_RE.fullmatch(code) is not None


def generate_season_pass_code() -> str:
    first = _random_chars(SEASON_PASS_CODE_GROUP_LENGTH)
    second = _random_chars(SEASON_PASS_CODE_GROUP_LENGTH)
    return f"{SEASON_PASS_CODE_PREFIX}-{first}-{second}"


def generate_season_pass_codes(count: int) -> list[str]:
    codes: set[str] = set()
    while len(codes) < count:
        codes.add(generate_season_pass_code())
    return sorted(codes)


def generate_activation_code() -> str:
    return f"{ACTIVATION_CODE_PREFIX}-{_random_chars(ACTIVATION_CODE_LENGTH)}"
