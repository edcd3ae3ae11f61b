from datetime import timedelta

import pytest

from models.contest_settings import ContestSettings
from models.roll_entry import RollEntry
from services.contest_resolver import (
    ContestResolver,
    RollHighlight,
    closest_first_key,
    distance_to_targets,
    most_recent_key,
    nearest_target,
)
from conftest import START


def make_entry(name, value, minutes=0):
    return RollEntry(name, value, START + timedelta(minutes=minutes))


@pytest.fixture
def resolver():
    return ContestResolver()


def target_settings(*targets, closest=False):
    settings = ContestSettings()
    settings.toggle_target_mode()
    for target in targets:
        settings.add_target_number(target)
    settings.closest_wins = closest
    return settings


def test_distance_and_nearest_target():
    assert distance_to_targets(95, [100, 50]) == 5
    assert nearest_target(75, [100, 50]) == 100
    assert nearest_target(75, [50, 100]) == 50


def test_closest_key_orders_by_distance_then_time():
    key = closest_first_key([100])
    early = make_entry("A", 95, minutes=1)
    late = make_entry("B", 105, minutes=2)

    assert key(early) < key(late)
    assert most_recent_key(late) > most_recent_key(early)


def test_empty_history_has_no_winner(resolver):
    assert resolver.resolve((), ContestSettings()) is None


def test_high_and_low(resolver):
    a = make_entry("A", 10)
    b = make_entry("B", 99)
    c = make_entry("C", 50)
    settings = ContestSettings()

    assert resolver.resolve((a, b, c), settings) is b

    settings.toggle_high_wins()
    assert resolver.resolve((a, b, c), settings) is a


def test_high_tie_goes_to_first_in_history(resolver):
    first = make_entry("A", 99, minutes=0)
    second = make_entry("B", 99, minutes=1)

    assert resolver.resolve((first, second), ContestSettings()) is first


def test_closest_wins_tie_goes_to_earliest_roll(resolver):
    a = make_entry("A", 95, minutes=1)
    b = make_entry("B", 105, minutes=2)
    settings = target_settings(100, closest=True)

    assert resolver.resolve((a, b), settings) is a
    assert resolver.resolve((b, a), settings) is a


def test_closest_wins_picks_smallest_distance_across_targets(resolver):
    a = make_entry("A", 40, minutes=0)
    b = make_entry("B", 98, minutes=1)
    settings = target_settings(10, 100, closest=True)

    assert resolver.resolve((a, b), settings) is b


def test_exact_mode_most_recent_hit_wins(resolver):
    first_hit = make_entry("A", 77, minutes=0)
    miss = make_entry("B", 78, minutes=1)
    second_hit = make_entry("C", 33, minutes=2)
    settings = target_settings(77, 33)

    assert resolver.resolve((first_hit, miss, second_hit), settings) is second_hit


def test_exact_mode_without_hits_has_no_winner(resolver):
    settings = target_settings(77)

    assert resolver.resolve((make_entry("A", 76),), settings) is None


def test_target_mode_without_targets_has_no_winner(resolver):
    settings = ContestSettings()
    settings.toggle_target_mode()

    assert resolver.resolve((make_entry("A", 99),), settings) is None


def test_describe_win_labels(resolver):
    entry = make_entry("A", 95)

    assert resolver.describe_win(entry, ContestSettings()) == "👑 HIGH ROLLER 👑"

    low = ContestSettings()
    low.toggle_high_wins()
    assert resolver.describe_win(entry, low) == "💀 LOW ROLLER 💀"

    assert resolver.describe_win(entry, target_settings(100, closest=True)) == "🎯 CLOSEST TO 100 (Diff: 5) 🎯"
    assert resolver.describe_win(entry, target_settings(95, closest=True)) == "🎯 EXACT MATCH (95) 🎯"
    assert resolver.describe_win(entry, target_settings(95)) == "🎯 WINNER! (95) 🎯"


def test_describe_no_winner(resolver):
    assert resolver.describe_win(None, ContestSettings()) == "Waiting for rolls..."
    assert resolver.describe_win(None, target_settings(5)) == "Waiting for matches..."


def test_classify_roll_in_target_mode(resolver):
    settings = target_settings(100, closest=True)
    hit = make_entry("A", 100)
    near = make_entry("B", 777)

    assert resolver.classify_roll(hit, settings, near) is RollHighlight.TARGET
    assert resolver.classify_roll(near, settings, near) is RollHighlight.WINNER
    assert resolver.classify_roll(near, settings, hit) is RollHighlight.NORMAL


def test_classify_roll_outside_target_mode(resolver):
    settings = ContestSettings()

    assert resolver.classify_roll(make_entry("A", 777), settings, None) is RollHighlight.JACKPOT
    assert resolver.classify_roll(make_entry("A", 69), settings, None) is RollHighlight.FUNNY
    assert resolver.classify_roll(make_entry("A", 68), settings, None) is RollHighlight.NORMAL


def test_classify_roll_target_mode_without_targets_still_shows_funny(resolver):
    settings = ContestSettings()
    settings.toggle_target_mode()

    assert resolver.classify_roll(make_entry("A", 777), settings, None) is RollHighlight.FUNNY
