import random

from endcat.core.enums import PoolType
from endcat.services.banner import build_banners
from tests.factories import make_pull


def test_banners_are_ordered_and_titled() -> None:
    records = [
        make_pull(4, "1", pool_type=PoolType.STANDARD),
        make_pull(6, "2", pool_type=PoolType.WEAPON, pool_id="w1", pool_name="熔铸申领"),
        make_pull(4, "3", pool_type=PoolType.SPECIAL),
        make_pull(4, "4", pool_type=PoolType.BEGINNER),
    ]

    banners = build_banners(records)

    assert [b.id for b in banners] == ["char-beginner", "char-special", "char-standard", "weapon-w1"]
    assert banners[-1].title == "武器寻访 · 熔铸申领"
    assert all(b.total == 1 for b in banners)


def test_empty_buckets_are_skipped() -> None:
    assert build_banners([]) == []
    banners = build_banners([make_pull(4, "1", pool_type=PoolType.SPECIAL)])
    assert [b.id for b in banners] == ["char-special"]


def test_stats_use_newest_first_order_regardless_of_input() -> None:
    records = [make_pull(rarity, str(6 - i)) for i, rarity in enumerate([4, 4, 6, 5, 6, 4])]
    random.Random(7).shuffle(records)

    (banner,) = build_banners(records)

    assert banner.stats.s6 == 2
    assert banner.guarantee == 2
    assert banner.avg6 == 3
    assert [item.count for item in banner.top] == [2, 2]


def test_summary_exposes_flat_stats() -> None:
    (banner,) = build_banners([make_pull(6, "2"), make_pull(4, "1")])
    dumped = banner.model_dump()
    for key in ("guarantee", "avg6", "min6", "max6"):
        assert dumped[key] == dumped["stats"][key]


def test_hooks_are_applied_to_top_history() -> None:
    records = [make_pull(6, "1", item_id="chr_1")]
    (banner,) = build_banners(
        records,
        icon_getter=lambda r: f"/icons/{r.item_id}.png",
        featured_checker=lambda r: r.item_id == "chr_1",
    )
    assert banner.top[0].icon == "/icons/chr_1.png"
    assert banner.top[0].featured
