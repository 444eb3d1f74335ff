import pytest

from game.logic.actions import (
    ActionResolver,
    ChoiceRequired,
    CommandIssued,
    ContinuePrompt,
    DiscardReactionPrompt,
    NoActions,
    OpenGoldPrompt,
    ReplaceFlowerPrompt,
    SelfActionPrompt,
)
from game.logic.enums import ActionKind, ChiPosition
from game.logic.exceptions import ActionNotAvailableError, StaleSelectionError
from game.logic.tiles import TileFace
from game.messaging.types import AnGangCommand, ChiCommand, ContinueCommand, DiscardCommand, PassCommand
from game.session.reconciler import StateReconciler
from game.tests.helpers.snapshots import ME, private_snapshot, tile_dict
from game.tests.mocks.transport import RecordingSink

CHI_HAND = [tile_dict("WAN", r, f"w{r}") for r in (3, 4, 6, 7)]
DISCARD_W5 = tile_dict("WAN", 5, "d5")


def make_resolver(**snapshot_kwargs) -> tuple[ActionResolver, StateReconciler, RecordingSink]:
    reconciler = StateReconciler(ME)
    reconciler.on_private_snapshot(private_snapshot(**snapshot_kwargs))
    sink = RecordingSink()
    return ActionResolver(reconciler, sink), reconciler, sink


class TestExposeSetupPhases:
    def test_replace_flower_when_my_turn(self):
        resolver, _, _ = make_resolver(phase="REPLACING_FLOWERS", replacingFlowers=True, currentFlowerPlayerIndex=0)
        assert resolver.expose() == ReplaceFlowerPrompt()
        assert resolver.expose().actions == (ActionKind.REPLACE_FLOWER,)

    def test_no_replace_flower_on_someone_elses_turn(self):
        resolver, _, _ = make_resolver(phase="REPLACING_FLOWERS", replacingFlowers=True, currentFlowerPlayerIndex=2)
        assert resolver.expose() == NoActions()

    def test_open_gold_only_for_dealer(self):
        resolver, _, _ = make_resolver(phase="OPENING_GOLD", waitingOpenGold=True, dealerIndex=0)
        assert resolver.expose() == OpenGoldPrompt()
        resolver, _, _ = make_resolver(phase="OPENING_GOLD", waitingOpenGold=True, dealerIndex=1)
        assert resolver.expose() == NoActions()

    def test_open_gold_needs_waiting_flag(self):
        resolver, _, _ = make_resolver(phase="OPENING_GOLD", waitingOpenGold=False, dealerIndex=0)
        assert resolver.expose() == NoActions()


class TestExposeContinue:
    def test_undecided_player_gets_binary_choice(self):
        resolver, _, _ = make_resolver(phase="CONFIRM_CONTINUE", continueDecisions={ME: None})
        assert resolver.expose() == ContinuePrompt()

    def test_missing_entry_counts_as_undecided(self):
        resolver, _, _ = make_resolver(phase="CONFIRM_CONTINUE", continueDecisions={})
        assert resolver.expose() == ContinuePrompt()

    @pytest.mark.parametrize("decision", [True, False])
    def test_decided_player_waits_whatever_the_capabilities(self, decision):
        resolver, _, _ = make_resolver(
            phase="CONFIRM_CONTINUE",
            continueDecisions={ME: decision},
            actions={"canHu": True, "canPeng": True, "discardedTile": DISCARD_W5},
        )
        assert resolver.expose() == NoActions()

    def test_continue_and_end_send_boolean(self):
        resolver, _, sink = make_resolver(phase="CONFIRM_CONTINUE", continueDecisions={ME: None})
        resolver.continue_game(will_continue=False)
        (command,) = sink.commands
        assert isinstance(command, ContinueCommand)
        assert command.payload() == {"playerId": ME, "continue": False}


class TestExposeSelfActions:
    def test_self_draw_hu_and_pass(self):
        resolver, _, _ = make_resolver(actions={"canHu": True})
        assert resolver.expose().actions == (ActionKind.HU, ActionKind.PASS)

    def test_san_jin_dao_alone_offers_only_pass(self):
        resolver, _, _ = make_resolver(actions={"canSanJinDao": True})
        exposed = resolver.expose()
        assert isinstance(exposed, SelfActionPrompt)
        assert exposed.actions == (ActionKind.PASS,)

    def test_san_jin_dao_with_hu(self):
        resolver, _, _ = make_resolver(actions={"canSanJinDao": True, "canHu": True})
        assert resolver.expose().actions == (ActionKind.HU, ActionKind.PASS)

    def test_an_gang_needs_candidates(self):
        resolver, _, _ = make_resolver(actions={"canAnGang": True, "anGangTiles": []})
        assert resolver.expose().actions == (ActionKind.PASS,)

    def test_self_action_beats_discard_reaction_without_discard(self):
        resolver, _, _ = make_resolver(
            actions={"canHu": True, "canPeng": True, "canAnGang": True, "anGangTiles": [tile_dict("BING", 2, "b2")]},
        )
        exposed = resolver.expose()
        assert isinstance(exposed, SelfActionPrompt)
        assert exposed.actions == (ActionKind.HU, ActionKind.AN_GANG, ActionKind.PASS)


class TestExposeDiscardReactions:
    def test_scenario_chi_peng_pass_then_candidate_prompt(self):
        hand = [tile_dict("WAN", r, f"w{r}") for r in (3, 4, 6, 7)]
        resolver, _, sink = make_resolver(
            hand=hand,
            actions={"canChi": True, "canPeng": True, "discardedTile": DISCARD_W5},
        )
        exposed = resolver.expose()
        assert isinstance(exposed, DiscardReactionPrompt)
        assert exposed.actions == (ActionKind.CHI, ActionKind.PENG, ActionKind.PASS)

        outcome = resolver.select(ActionKind.CHI)
        assert isinstance(outcome, ChoiceRequired)
        assert [c.position for c in outcome.chi_candidates] == [ChiPosition.LOW, ChiPosition.MID, ChiPosition.HIGH]
        assert sink.commands == []

    def test_hu_on_discard_is_a_reaction(self):
        resolver, _, _ = make_resolver(actions={"canHu": True, "discardedTile": DISCARD_W5})
        assert isinstance(resolver.expose(), DiscardReactionPrompt)
        assert resolver.expose().actions == (ActionKind.HU, ActionKind.PASS)

    def test_nothing_enabled_means_nothing_exposed(self):
        resolver, _, _ = make_resolver(actions={"canChi": False, "discardedTile": DISCARD_W5})
        assert resolver.expose() == NoActions()


class TestSelect:
    def test_single_chi_candidate_sends_immediately(self):
        hand = [tile_dict("WAN", 6, "w6"), tile_dict("WAN", 7, "w7")]
        resolver, _, sink = make_resolver(hand=hand, actions={"canChi": True, "discardedTile": DISCARD_W5})
        outcome = resolver.select(ActionKind.CHI)
        assert isinstance(outcome, CommandIssued)
        assert outcome.sent is True
        assert sink.commands == [ChiCommand(player_id=ME, tile_id1="w6", tile_id2="w7")]

    def test_choose_chi_sends_exactly_one_command(self):
        resolver, _, sink = make_resolver(hand=CHI_HAND, actions={"canChi": True, "discardedTile": DISCARD_W5})
        outcome = resolver.select(ActionKind.CHI)
        resolver.choose_chi(outcome.chi_candidates[2])
        assert len(sink.commands) == 1
        assert sink.commands[0].payload() == {"playerId": ME, "tileId1": "w6", "tileId2": "w7"}

    def test_choose_chi_after_hand_changed_is_stale(self):
        resolver, reconciler, sink = make_resolver(
            hand=CHI_HAND, actions={"canChi": True, "discardedTile": DISCARD_W5}
        )
        outcome = resolver.select(ActionKind.CHI)
        reconciler.on_private_snapshot(
            private_snapshot(
                hand=[tile_dict("WAN", r, f"w{r}") for r in (3, 4, 6)],
                actions={"canChi": True, "discardedTile": DISCARD_W5},
            ),
        )
        with pytest.raises(StaleSelectionError):
            resolver.choose_chi(outcome.chi_candidates[2])
        assert sink.commands == []

    def test_choose_chi_after_window_closed_is_stale(self):
        resolver, reconciler, sink = make_resolver(
            hand=CHI_HAND, actions={"canChi": True, "discardedTile": DISCARD_W5}
        )
        outcome = resolver.select(ActionKind.CHI)
        reconciler.on_private_snapshot(private_snapshot(hand=CHI_HAND))
        with pytest.raises(StaleSelectionError):
            resolver.choose_chi(outcome.chi_candidates[0])
        assert sink.commands == []

    def test_single_an_gang_resolves_first_hand_instance(self):
        hand = [tile_dict("BING", 2, f"b2{c}") for c in "abcd"]
        resolver, _, sink = make_resolver(
            hand=hand, actions={"canAnGang": True, "anGangTiles": [tile_dict("BING", 2, "server-copy")]}
        )
        outcome = resolver.select(ActionKind.AN_GANG)
        assert isinstance(outcome, CommandIssued)
        assert sink.commands == [AnGangCommand(player_id=ME, tile_id="b2a")]

    def test_multiple_an_gang_needs_choice(self):
        hand = [tile_dict("BING", 2, f"b2{c}") for c in "abcd"] + [tile_dict("WIND", 1, f"e{c}") for c in "abcd"]
        options = [tile_dict("BING", 2, "x"), tile_dict("WIND", 1, "y")]
        resolver, _, sink = make_resolver(hand=hand, actions={"canAnGang": True, "anGangTiles": options})
        outcome = resolver.select(ActionKind.AN_GANG)
        assert isinstance(outcome, ChoiceRequired)
        assert len(outcome.an_gang_tiles) == 2
        assert sink.commands == []

        resolver.choose_an_gang(outcome.an_gang_tiles[1])
        assert sink.commands == [AnGangCommand(player_id=ME, tile_id="ea")]

    def test_an_gang_choice_without_matching_tile_is_stale(self):
        options = [tile_dict("BING", 2, "x"), tile_dict("WIND", 1, "y")]
        resolver, _, sink = make_resolver(
            hand=[tile_dict("BING", 2, "b2a")], actions={"canAnGang": True, "anGangTiles": options}
        )
        with pytest.raises(StaleSelectionError):
            resolver.choose_an_gang(TileFace.model_validate({"type": "WIND", "value": 1}))
        assert sink.commands == []

    def test_not_exposed_action_raises(self):
        resolver, _, sink = make_resolver(actions={"canPeng": True, "discardedTile": DISCARD_W5})
        with pytest.raises(ActionNotAvailableError):
            resolver.select(ActionKind.HU)
        assert sink.commands == []

    def test_pass_sends_player_id_only(self):
        resolver, _, sink = make_resolver(actions={"canPeng": True, "discardedTile": DISCARD_W5})
        resolver.select(ActionKind.PASS)
        assert sink.commands == [PassCommand(player_id=ME)]
        assert sink.commands[0].payload() == {"playerId": ME}

    def test_dropped_publish_is_reported(self):
        reconciler = StateReconciler(ME)
        reconciler.on_private_snapshot(private_snapshot(actions={"canHu": True}))
        resolver = ActionResolver(reconciler, RecordingSink(accept=False))
        outcome = resolver.select(ActionKind.HU)
        assert outcome.sent is False


class TestDiscard:
    def test_discard_on_my_turn(self):
        resolver, _, sink = make_resolver(hand=CHI_HAND, currentPlayerIndex=0)
        resolver.discard("w4")
        assert sink.commands == [DiscardCommand(player_id=ME, tile_id="w4")]

    def test_discard_out_of_turn_raises(self):
        resolver, _, sink = make_resolver(hand=CHI_HAND, currentPlayerIndex=1)
        with pytest.raises(ActionNotAvailableError):
            resolver.discard("w4")
        assert sink.commands == []

    def test_discard_of_missing_tile_is_stale(self):
        resolver, _, sink = make_resolver(hand=CHI_HAND, currentPlayerIndex=0)
        with pytest.raises(StaleSelectionError):
            resolver.discard("w9")
        assert sink.commands == []
