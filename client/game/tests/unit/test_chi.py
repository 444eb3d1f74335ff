import pytest

from game.logic.chi import find_chi_candidates
from game.logic.enums import ChiPosition, TileKind
from game.logic.tiles import GoldTile
from game.tests.helpers.snapshots import tile


def gold(kind: str, rank: int) -> GoldTile:
    return GoldTile.model_validate({"type": kind, "value": rank})


def full_suit(kind: str = "WAN") -> list:
    return [tile(kind, r, f"{kind}{r}") for r in range(1, 10)]


class TestChiKinds:
    @pytest.mark.parametrize(
        ("kind", "rank"),
        [("WIND", 2), ("DRAGON", 2), ("FLOWER", 2), ("WIND", 3), ("FLOWER", 5)],
    )
    def test_honor_and_flower_discards_never_form_runs(self, kind, rank):
        hand = [tile(kind, r, f"{kind}{r}") for r in range(1, 4)] + full_suit()
        assert find_chi_candidates(hand, tile(kind, rank, "d")) == []

    def test_other_suit_tiles_are_ignored(self):
        hand = [tile("TIAO", 2, "t2"), tile("TIAO", 4, "t4")]
        assert find_chi_candidates(hand, tile("WAN", 3, "d")) == []


class TestChiPositions:
    def test_all_three_positions_ordered_low_mid_high(self):
        candidates = find_chi_candidates(full_suit(), tile("WAN", 5, "d"))
        assert [c.position for c in candidates] == [ChiPosition.LOW, ChiPosition.MID, ChiPosition.HIGH]
        assert [(c.first.rank, c.second.rank) for c in candidates] == [(3, 4), (4, 6), (6, 7)]

    def test_rank_one_only_high(self):
        candidates = find_chi_candidates(full_suit(), tile("WAN", 1, "d"))
        assert [c.position for c in candidates] == [ChiPosition.HIGH]

    def test_rank_two_has_no_low(self):
        candidates = find_chi_candidates(full_suit(), tile("WAN", 2, "d"))
        assert [c.position for c in candidates] == [ChiPosition.MID, ChiPosition.HIGH]

    def test_rank_eight_has_no_high(self):
        candidates = find_chi_candidates(full_suit(), tile("WAN", 8, "d"))
        assert [c.position for c in candidates] == [ChiPosition.LOW, ChiPosition.MID]

    def test_rank_nine_only_low(self):
        candidates = find_chi_candidates(full_suit(), tile("WAN", 9, "d"))
        assert [c.position for c in candidates] == [ChiPosition.LOW]

    def test_first_instance_in_hand_order_is_chosen(self):
        hand = [tile("BING", 4, "b4-first"), tile("BING", 6, "b6"), tile("BING", 4, "b4-second")]
        (candidate,) = find_chi_candidates(hand, tile("BING", 5, "d"))
        assert candidate.first.instance_id == "b4-first"
        assert candidate.second.instance_id == "b6"

    def test_run_layout(self):
        discard = tile("WAN", 5, "d")
        low, mid, high = find_chi_candidates(full_suit(), discard)
        assert [t.rank for t in low.run(discard)] == [3, 4, 5]
        assert [t.rank for t in mid.run(discard)] == [4, 5, 6]
        assert [t.rank for t in high.run(discard)] == [5, 6, 7]


class TestChiGold:
    def test_scenario_mid_only_with_unrelated_gold(self):
        hand = [tile("WAN", 2, "w2"), tile("WAN", 4, "w4")]
        candidates = find_chi_candidates(hand, tile("WAN", 3, "d"), gold("TIAO", 1))
        assert len(candidates) == 1
        (candidate,) = candidates
        assert (candidate.first.rank, candidate.second.rank, candidate.position) == (2, 4, ChiPosition.MID)

    def test_scenario_gold_rank_suppresses_runs_through_it(self):
        hand = [tile("WAN", 3, "w3"), tile("WAN", 4, "w4"), tile("WAN", 6, "w6"), tile("WAN", 7, "w7")]
        candidates = find_chi_candidates(hand, tile("WAN", 5, "d"), gold("WAN", 4))
        assert [c.position for c in candidates] == [ChiPosition.HIGH]
        assert all(TileKind.WAN == c.first.kind and 4 not in (c.first.rank, c.second.rank) for c in candidates)

    def test_gold_discard_voids_search(self):
        assert find_chi_candidates(full_suit(), tile("WAN", 5, "d"), gold("WAN", 5)) == []

    def test_gold_on_mid_tile_keeps_low_and_high(self):
        without_gold = find_chi_candidates(full_suit(), tile("WAN", 5, "d"))
        with_gold = find_chi_candidates(full_suit(), tile("WAN", 5, "d"), gold("WAN", 6))
        assert [c.position for c in without_gold] == [ChiPosition.LOW, ChiPosition.MID, ChiPosition.HIGH]
        assert [c.position for c in with_gold] == [ChiPosition.LOW]

    def test_gold_in_other_suit_has_no_effect(self):
        plain = find_chi_candidates(full_suit(), tile("WAN", 5, "d"))
        assert find_chi_candidates(full_suit(), tile("WAN", 5, "d"), gold("BING", 4)) == plain

    @pytest.mark.parametrize("rank", range(2, 9))
    def test_mid_present_whenever_neighbours_held(self, rank):
        hand = [tile("TIAO", rank - 1, "lo"), tile("TIAO", rank + 1, "hi")]
        candidates = find_chi_candidates(hand, tile("TIAO", rank, "d"), gold("TIAO", rank))
        # the discard itself is gold here
        assert candidates == []
        candidates = find_chi_candidates(hand, tile("TIAO", rank, "d"), gold("WAN", 1))
        assert [c.position for c in candidates] == [ChiPosition.MID]
