"""Tests for time-based accrual, derived production and unlock gates."""

import pytest

from config import RESOURCES, TOWN_CAMP_REQUIREMENT
from engine.economy import (
    accrue, check_unlocks, increment_per_period, is_accrual_target, production_rate,
)
from engine.state import GameState

from conftest import T0


def _new_game(**counts) -> GameState:
    gs = GameState.new_game(T0)
    for name, count in counts.items():
        gs.get(name).count = count
    return gs


# --- Accrual targets ---


def test_only_villager_is_an_accrual_target():
    assert is_accrual_target("villager", RESOURCES)
    assert not is_accrual_target("camp", RESOURCES)
    assert not is_accrual_target("town", RESOURCES)


def test_increment_counts_camps_and_towns():
    gs = _new_game(camp=3, town=2)
    assert increment_per_period(gs, "villager", RESOURCES) == 3 * 1 + 2 * 2


def test_production_rate_is_derived_per_second():
    gs = _new_game(camp=4, town=1)
    assert production_rate(gs, "villager", RESOURCES) == 6.0
    gs.get("villager").rate = 2.0
    assert production_rate(gs, "villager", RESOURCES) == 3.0


# --- Accrual ---


def test_one_camp_for_100_seconds_gives_100_villagers():
    gs = _new_game()
    report = accrue(gs, T0 + 100, RESOURCES)
    assert gs.count("villager") == 100
    assert report.gains == {"villager": 100}
    assert gs.count("camp") == 1


def test_producers_are_not_touched_by_accrual():
    gs = _new_game()
    accrue(gs, T0 + 50, RESOURCES)
    assert gs.get("camp").last_updated == T0
    assert gs.get("town").last_updated == T0


def test_split_advances_match_one_advance():
    whole = _new_game(camp=3)
    accrue(whole, T0 + 97.5, RESOURCES)

    split = _new_game(camp=3)
    t = T0
    for step in (0.3, 0.4, 0.9, 2.7, 10.0, 0.2, 33.0, 50.0):
        t += step
        accrue(split, t, RESOURCES)

    assert t == pytest.approx(T0 + 97.5)
    assert split.count("villager") == whole.count("villager") == 97 * 3


def test_fractional_remainder_carries_forward():
    gs = _new_game()
    accrue(gs, T0 + 1.5, RESOURCES)
    assert gs.count("villager") == 1
    # last_updated lands on the consumed boundary, not on now
    assert gs.get("villager").last_updated == T0 + 1.0
    accrue(gs, T0 + 2.0, RESOURCES)
    assert gs.count("villager") == 2


def test_slow_rate_uses_floor_of_elapsed_over_rate():
    gs = _new_game()
    gs.get("villager").rate = 3.0
    for t in range(1, 11):
        accrue(gs, T0 + t, RESOURCES)
    assert gs.count("villager") == 3  # floor(10 / 3)
    assert gs.get("villager").last_updated == T0 + 9.0


def test_clock_going_backwards_is_zero_elapsed():
    gs = _new_game()
    accrue(gs, T0 + 10, RESOURCES)
    report = accrue(gs, T0 + 5, RESOURCES)
    assert report.gains == {}
    assert gs.count("villager") == 10
    assert gs.get("villager").last_updated == T0 + 10


def test_zero_rate_target_is_reported_as_stalled():
    gs = _new_game()
    gs.get("villager").rate = 0.0
    report = accrue(gs, T0 + 100, RESOURCES)
    assert report.stalled == ["villager"]
    assert gs.count("villager") == 0
    assert gs.get("villager").last_updated == T0


def test_no_producers_still_advances_timestamp():
    gs = _new_game(camp=0)
    accrue(gs, T0 + 10, RESOURCES)
    assert gs.count("villager") == 0
    assert gs.get("villager").last_updated == T0 + 10


def test_self_yield_resource_accrues_one_per_period():
    definitions = {
        "flint": {"rate": 2.0, "starting_count": 0, "yield": 1, "produces": {}, "unlock": None},
    }
    gs = GameState.new_game(T0, definitions)
    accrue(gs, T0 + 7, definitions)
    assert gs.count("flint") == 3


# --- Unlock gates ---


def test_town_starts_locked_and_unlocks_at_threshold():
    gs = _new_game(camp=TOWN_CAMP_REQUIREMENT - 1)
    assert not gs.get("town").unlocked
    assert check_unlocks(gs, RESOURCES) == []

    gs.get("camp").count = TOWN_CAMP_REQUIREMENT
    assert check_unlocks(gs, RESOURCES) == ["town"]
    assert gs.get("town").unlocked
    # Announced once
    assert check_unlocks(gs, RESOURCES) == []


def test_unlock_is_never_revoked():
    gs = _new_game(camp=TOWN_CAMP_REQUIREMENT)
    check_unlocks(gs, RESOURCES)
    gs.get("camp").count = 0
    accrue(gs, T0 + 10, RESOURCES)
    check_unlocks(gs, RESOURCES)
    assert gs.get("town").unlocked


def test_accrue_reports_new_unlocks():
    gs = _new_game(camp=TOWN_CAMP_REQUIREMENT)
    report = accrue(gs, T0 + 1, RESOURCES)
    assert report.unlocked == ["town"]
