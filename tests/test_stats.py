import pytest

from endcat.core.enums import PoolType
from endcat.services.stats import (
    compute_stats,
    format_date_range,
    seq_sort_key,
    sort_newest_first,
    top_history,
)
from tests.factories import make_pull, newest_first


def test_mixed_scenario() -> None:
    pulls = newest_first(4, 4, 6, 5, 6, 4)
    stats = compute_stats(pulls)

    assert (stats.s6, stats.s5, stats.s4) == (2, 1, 3)
    assert stats.guarantee == 2
    # Newer 6-star took 2 pulls, the older one 2 pulls from the start of the ledger
    assert stats.min6 == stats.max6 == 2
    assert stats.avg6 == 3


@pytest.mark.parametrize("count", [0, 1, 7, 80])
def test_no_top_rarity_pulls(count: int) -> None:
    stats = compute_stats(newest_first(*[4] * count))
    assert stats.guarantee == count
    assert stats.s6 == stats.avg6 == stats.min6 == stats.max6 == 0


@pytest.mark.parametrize("position", [1, 2, 5])
def test_single_top_rarity_pull_leaves_min_max_at_zero(position: int) -> None:
    rarities = [4] * 6
    rarities[position - 1] = 6
    stats = compute_stats(newest_first(*rarities))

    assert stats.s6 == 1
    assert stats.guarantee == position - 1
    assert stats.min6 == stats.max6 == 0
    assert stats.avg6 == 6


def test_min_and_max_differ() -> None:
    # Costs from newest: 3, 1, then the oldest took 4
    pulls = newest_first(4, 4, 6, 6, 4, 4, 4, 6)
    stats = compute_stats(pulls)
    assert stats.guarantee == 2
    assert stats.min6 == 1
    assert stats.max6 == 4


@pytest.mark.parametrize(
    ("rarities", "expected"),
    [
        ([6, 4, 4, 6, 4], 3),  # 5 / 2 rounds half up
        ([6, 4, 6, 4, 4, 4, 6], 2),  # 7 / 3
        ([6, 6], 1),
    ],
)
def test_average_rounds_half_up(rarities: list[int], expected: int) -> None:
    assert compute_stats(newest_first(*rarities)).avg6 == expected


def test_seq_ids_order_by_length_first() -> None:
    assert seq_sort_key("10") > seq_sort_key("9")
    pulls = [make_pull(seq_id=s) for s in ("9", "100", "11")]
    assert [p.seq_id for p in sort_newest_first(pulls)] == ["100", "11", "9"]


def test_sort_is_stable_for_equal_seq_ids() -> None:
    pulls = [make_pull(seq_id="5", name="a"), make_pull(seq_id="5", name="b")]
    assert [p.name for p in sort_newest_first(pulls)] == ["a", "b"]


def test_top_history_counts_pity_newest_first() -> None:
    pulls = newest_first(4, 6, 4, 4, 6, 4)
    history = top_history(pulls)
    assert [item.count for item in history] == [3, 2]
    assert history[0].name == pulls[1].name


def test_top_history_limit_and_hooks() -> None:
    pulls = newest_first(6, 6, 6)
    history = top_history(
        pulls, limit=2, icon_getter=lambda p: f"icon/{p.seq_id}", featured_checker=lambda p: True
    )
    assert len(history) == 2
    assert history[0].icon == "icon/3"
    assert all(item.featured for item in history)


def test_format_date_range_mixes_seconds_and_milliseconds() -> None:
    pulls = [
        # 2024-01-01 00:00 in UTC+8
        make_pull(pulled_at=1_704_038_400),
        make_pull(pulled_at=1_706_716_800_000, pool_type=PoolType.STANDARD),
        make_pull(pulled_at=0),
    ]
    assert format_date_range(pulls) == "2024.01.01 - 2024.02.01"


def test_format_date_range_single_and_empty() -> None:
    assert format_date_range([make_pull(pulled_at=1_704_038_400)]) == "2024.01.01"
    assert format_date_range([make_pull(pulled_at=0)]) == ""
    assert format_date_range([]) == ""
