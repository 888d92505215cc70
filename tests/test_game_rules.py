from __future__ import annotations

import pytest

from charity_lottery.config import BaseConfig, validate_game_config
from charity_lottery.errors import ConfigError
from charity_lottery.services.game_rules import GameRules
from charity_lottery.services.settlement import split_pool


def test_split_stake_matches_percentages():
    split = GameRules().split_stake(100)

    assert split.beneficiary_share == 15
    assert split.house_share == 5
    assert split.pool_share == 80


@pytest.mark.parametrize("stake", [1, 7, 99, 101, 333, 10**18 + 7, 2**80 + 3])
def test_split_stake_loses_no_units(stake):
    split = GameRules().split_stake(stake)

    assert split.beneficiary_share + split.house_share + split.pool_share == stake
    assert split.beneficiary_share == stake * 15 // 100
    assert split.house_share == stake * 5 // 100


def test_split_stake_gives_remainder_to_pool():
    split = GameRules(beneficiary_percent=33, house_percent=33, pool_percent=34).split_stake(10)

    assert (split.beneficiary_share, split.house_share, split.pool_share) == (3, 3, 4)


def test_split_pool_floors_and_reports_remainder():
    assert split_pool(100, 3) == (33, 1)
    assert split_pool(80, 1) == (80, 0)
    assert split_pool(80, 0) == (0, 80)


def _config(**overrides):
    config = {key: getattr(BaseConfig, key) for key in dir(BaseConfig) if key.isupper()}
    config.update(overrides)
    return config


def test_validate_game_config_accepts_defaults():
    validate_game_config(_config())


def test_validate_game_config_rejects_bad_split():
    with pytest.raises(ConfigError, match="100%"):
        validate_game_config(_config(BENEFICIARY_PERCENT=20, HOUSE_PERCENT=5, POOL_PERCENT=80))


@pytest.mark.parametrize(
    "overrides",
    [
        {"NUMBERS_RANGE": 0},
        {"MIN_BET_AMOUNT": 0},
        {"MIN_BET_AMOUNT": 10, "DEFAULT_BET_AMOUNT": 5},
        {"HEARTBEAT_SECONDS": 0},
        {"STREAM_QUEUE_SIZE": 0},
        {"BENEFICIARY_PERCENT": -5, "POOL_PERCENT": 100},
    ],
)
def test_validate_game_config_rejects_invalid_settings(overrides):
    with pytest.raises(ConfigError):
        validate_game_config(_config(**overrides))


def test_create_app_refuses_inconsistent_split(tmp_path):
    from tests.conftest import build_app

    with pytest.raises(ConfigError):
        build_app(tmp_path, POOL_PERCENT=70)


def test_onchain_backend_is_not_available(tmp_path):
    from tests.conftest import build_app

    with pytest.raises(ConfigError, match="onchain"):
        build_app(tmp_path, SETTLEMENT_BACKEND="onchain")


def test_unknown_backend_is_rejected(tmp_path):
    from tests.conftest import build_app

    with pytest.raises(ConfigError, match="Unknown"):
        build_app(tmp_path, SETTLEMENT_BACKEND="carrier-pigeon")
