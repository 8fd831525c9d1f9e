"""Unit tests for offline progress simulation."""

from __future__ import annotations

import pytest
from hypothesis import given
from hypothesis import strategies as st

from conquest.domain import models as dm
from conquest.domain import offline, world_data
from conquest.domain.enums import CityTier
from conquest.factory import create_city_registry, create_resource_store

HOUR = 3600.0


def _simulate(hours: float, stats: dm.AutomationStatistics | None = None, **kwargs):
    kwargs.setdefault("owned_cities", 0)
    kwargs.setdefault("total_cities", 12)
    return offline.simulate_offline_progress(
        hours * HOUR, stats or dm.AutomationStatistics(), **kwargs
    )


def test_efficiency_hours_diminish_after_eight():
    assert offline.efficiency_hours(5) == 5
    assert offline.efficiency_hours(10) == pytest.approx(9.8)
    assert offline.efficiency_hours(30) == pytest.approx(22.4)


def test_ten_hours_away_fights_forty_one_battles():
    assert offline.battles_for_hours(10) == 41
    result = _simulate(10)
    assert result.offline_hours == pytest.approx(10)
    assert result.battles_fought == 41
    assert result.successful_battles == 31
    assert result.failed_battles == 10


def test_exact_products_are_not_floored_down():
    assert offline.battles_for_hours(5) == 21


def test_elapsed_time_is_capped_at_twenty_four_hours():
    assert _simulate(48).battles_fought == _simulate(24).battles_fought == 94


def test_no_time_away_means_no_progress():
    result = _simulate(0)
    assert result.battles_fought == 0
    assert result.resources_gained == dm.ResourceBag()
    assert result.milestones == []


def test_negative_elapsed_time_is_rejected():
    with pytest.raises(ValueError, match="non-negative"):
        offline.simulate_offline_progress(-1, dm.AutomationStatistics(), owned_cities=0, total_cities=1)


def test_resource_deltas_use_average_rewards_and_losses():
    result = _simulate(10)
    assert result.resources_gained == dm.ResourceBag(gold=3100)
    assert result.experience_gained == 1550
    assert result.resources_lost == dm.ResourceBag(troops=31 * 20 + 10 * 55)


def test_conquests_scale_with_victories_and_are_capped():
    assert _simulate(10).cities_conquered == 3
    assert _simulate(10, owned_cities=5).cities_conquered == 1
    assert _simulate(24, owned_cities=11, total_cities=12).cities_conquered == 1


def test_milestones_include_flavor_events():
    result = _simulate(24)
    assert result.battles_fought == 94
    assert any("victories" in milestone for milestone in result.milestones)
    assert any("new cities" in milestone for milestone in result.milestones)
    flavor = [m for m in result.milestones if m in offline.FLAVOR_EVENTS]
    assert len(flavor) == 3
    assert _simulate(24).milestones == result.milestones


@given(
    first=st.floats(min_value=0, max_value=72 * HOUR),
    second=st.floats(min_value=0, max_value=72 * HOUR),
)
def test_battles_are_monotonic_in_elapsed_time(first, second):
    low, high = sorted((first, second))
    stats = dm.AutomationStatistics()
    fewer = offline.simulate_offline_progress(low, stats, owned_cities=0, total_cities=12)
    more = offline.simulate_offline_progress(high, stats, owned_cities=0, total_cities=12)
    assert fewer.battles_fought <= more.battles_fought <= 94


def test_apply_credits_empire_and_conquers_best_cities():
    empire = world_data.default_empire()
    store = create_resource_store(empire)
    registry = create_city_registry(world_data.default_cities())
    stats = dm.AutomationStatistics()
    result = _simulate(10, stats)

    taken = offline.apply_offline_result(result, store, registry, stats)

    assert sorted(taken) == ["pingyuan", "runan", "xiaopei"]
    assert empire.owned_city_ids == set(taken)
    assert all(registry.get_city_by_id(city_id).owner == "player" for city_id in taken)
    assert empire.resources.gold == 1000 + 3100
    assert empire.resources.troops == 0
    assert empire.experience == 1550
    assert empire.level == 6
    assert empire.equipment_tokens == 9
    assert stats.total_battles == 41
    assert stats.victories == 31
    assert stats.cities_conquered == 3
    assert stats.win_streak == stats.loss_streak == 0


def test_tied_victory_counts_round_half_up():
    # 1.5 hours is 6 battles; 6 * 0.75 = 4.5 victories rounds up to 5.
    result = _simulate(1.5)
    assert result.battles_fought == 6
    assert result.successful_battles == 5
    assert result.failed_battles == 1


def test_rewards_average_over_open_city_tiers():
    result = _simulate(10, target_tiers=[CityTier.SMALL, CityTier.MEDIUM])
    assert result.resources_gained == dm.ResourceBag(gold=31 * 125)
    assert result.experience_gained == 1938
    assert _simulate(10).resources_gained == dm.ResourceBag(gold=3100)


def test_equipment_tokens_follow_the_average_drop_chance():
    assert _simulate(10).equipment_tokens_gained == 9
    assert _simulate(0).equipment_tokens_gained == 0
