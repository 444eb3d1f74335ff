"""
Resolve the reconciled view into the actions the local player may take.

expose() maps (phase, capabilities) to one variant of a closed set of
prompts. The gesture methods turn a user choice into exactly one outbound
command, or into a ChoiceRequired outcome when the action is ambiguous
(several runs for chi, several concealed-kong candidates). Nothing is sent
for a choice that no longer matches the current hand.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

import structlog

from game.logic.chi import find_chi_candidates
from game.logic.enums import ActionKind, Phase
from game.logic.exceptions import ActionNotAvailableError, StaleSelectionError
from game.logic.tiles import find_by_id, find_first
from game.messaging.types import (
    AnGangCommand,
    ChiCommand,
    ContinueCommand,
    DiscardCommand,
    GangCommand,
    HuCommand,
    OpenGoldCommand,
    PassCommand,
    PengCommand,
    PlayerCommand,
    ReplaceFlowerCommand,
)

if TYPE_CHECKING:
    from game.logic.tiles import Tile, TileFace
    from game.logic.types import ChiCandidate
    from game.session.reconciler import ReconciledView, StateReconciler

logger = structlog.get_logger()

# Publishes one command; returns False if it was dropped (not connected).
CommandSink = Callable[[PlayerCommand], bool]


@dataclass(frozen=True)
class NoActions:
    @property
    def actions(self) -> tuple[ActionKind, ...]:
        return ()


@dataclass(frozen=True)
class ReplaceFlowerPrompt:
    @property
    def actions(self) -> tuple[ActionKind, ...]:
        return (ActionKind.REPLACE_FLOWER,)


@dataclass(frozen=True)
class OpenGoldPrompt:
    @property
    def actions(self) -> tuple[ActionKind, ...]:
        return (ActionKind.OPEN_GOLD,)


@dataclass(frozen=True)
class ContinuePrompt:
    @property
    def actions(self) -> tuple[ActionKind, ...]:
        return (ActionKind.CONTINUE, ActionKind.END)


@dataclass(frozen=True)
class SelfActionPrompt:
    """Opportunity arising from the local player's own draw."""

    hu: bool
    an_gang_tiles: tuple[Tile, ...]

    @property
    def actions(self) -> tuple[ActionKind, ...]:
        actions: list[ActionKind] = []
        if self.hu:
            actions.append(ActionKind.HU)
        if self.an_gang_tiles:
            actions.append(ActionKind.AN_GANG)
        actions.append(ActionKind.PASS)
        return tuple(actions)


@dataclass(frozen=True)
class DiscardReactionPrompt:
    """Opportunity to claim another player's discard."""

    discarded_tile: Tile | None
    chi: bool
    peng: bool
    gang: bool
    hu: bool

    @property
    def actions(self) -> tuple[ActionKind, ...]:
        flags = (
            (self.chi, ActionKind.CHI),
            (self.peng, ActionKind.PENG),
            (self.gang, ActionKind.GANG),
            (self.hu, ActionKind.HU),
        )
        return (*(kind for enabled, kind in flags if enabled), ActionKind.PASS)


ExposedActions = (
    NoActions | ReplaceFlowerPrompt | OpenGoldPrompt | ContinuePrompt | SelfActionPrompt | DiscardReactionPrompt
)


@dataclass(frozen=True)
class CommandIssued:
    command: PlayerCommand
    sent: bool


@dataclass(frozen=True)
class ChoiceRequired:
    """The action is ambiguous; the user must pick one option before anything is sent."""

    action: ActionKind
    chi_candidates: tuple[ChiCandidate, ...] = ()
    an_gang_tiles: tuple[Tile, ...] = ()


Outcome = CommandIssued | ChoiceRequired


def expose_actions(view: ReconciledView, player_id: str | None) -> ExposedActions:
    """Return the prompt the player should see for the given view."""
    phase = view.phase
    my_index = view.player_index(player_id)

    if phase == Phase.CONFIRM_CONTINUE:
        if view.continue_decision(player_id) is None:
            return ContinuePrompt()
        return NoActions()

    if (
        phase == Phase.REPLACING_FLOWERS
        and view.flag("replacingFlowers")
        and my_index is not None
        and view.int_field("currentFlowerPlayerIndex") == my_index
    ):
        return ReplaceFlowerPrompt()

    if (
        phase == Phase.OPENING_GOLD
        and view.flag("waitingOpenGold")
        and my_index is not None
        and view.int_field("dealerIndex") == my_index
    ):
        return OpenGoldPrompt()

    capabilities = view.capabilities()

    # self-actions take priority whenever no discard is attached
    if capabilities.has_self_action and not capabilities.from_discard:
        return SelfActionPrompt(
            hu=bool(capabilities.can_hu),
            an_gang_tiles=(capabilities.an_gang_tiles or ()) if capabilities.can_an_gang else (),
        )

    if capabilities.has_discard_reaction:
        return DiscardReactionPrompt(
            discarded_tile=capabilities.discarded_tile,
            chi=bool(capabilities.can_chi and capabilities.from_discard),
            peng=bool(capabilities.can_peng),
            gang=bool(capabilities.can_gang),
            hu=bool(capabilities.can_hu),
        )

    return NoActions()


class ActionResolver:
    """Turns user gestures into single commands for one seated player."""

    def __init__(self, reconciler: StateReconciler, sink: CommandSink) -> None:
        self._reconciler = reconciler
        self._sink = sink

    @property
    def _player_id(self) -> str:
        player_id = self._reconciler.player_id
        if player_id is None:
            raise ActionNotAvailableError("no player is seated")
        return player_id

    def expose(self) -> ExposedActions:
        return expose_actions(self._reconciler.view, self._reconciler.player_id)

    def _emit(self, command: PlayerCommand) -> CommandIssued:
        sent = self._sink(command)
        logger.info("command issued", destination=command.destination, sent=sent)
        return CommandIssued(command=command, sent=sent)

    def _require(self, action: ActionKind) -> ExposedActions:
        exposed = self.expose()
        if action not in exposed.actions:
            raise ActionNotAvailableError(f"{action.value} is not available now")
        return exposed

    def select(self, action: ActionKind) -> Outcome:
        """Perform the gesture for one exposed action."""
        exposed = self._require(action)
        player_id = self._player_id

        if action == ActionKind.CHI:
            return self._select_chi()
        if action == ActionKind.AN_GANG and isinstance(exposed, SelfActionPrompt):
            return self._select_an_gang(exposed.an_gang_tiles)

        simple: dict[ActionKind, Callable[[], PlayerCommand]] = {
            ActionKind.PENG: lambda: PengCommand(player_id=player_id),
            ActionKind.GANG: lambda: GangCommand(player_id=player_id),
            ActionKind.HU: lambda: HuCommand(player_id=player_id),
            ActionKind.PASS: lambda: PassCommand(player_id=player_id),
            ActionKind.REPLACE_FLOWER: lambda: ReplaceFlowerCommand(player_id=player_id),
            ActionKind.OPEN_GOLD: lambda: OpenGoldCommand(player_id=player_id),
            ActionKind.CONTINUE: lambda: ContinueCommand(player_id=player_id, will_continue=True),
            ActionKind.END: lambda: ContinueCommand(player_id=player_id, will_continue=False),
        }
        return self._emit(simple[action]())

    def continue_game(self, *, will_continue: bool) -> Outcome:
        return self.select(ActionKind.CONTINUE if will_continue else ActionKind.END)

    def chi_candidates(self) -> list[ChiCandidate]:
        """Runs available for the currently offered discard, ordered LOW, MID, HIGH."""
        discarded = self._reconciler.view.capabilities().discarded_tile
        if discarded is None:
            return []
        view = self._reconciler.view
        return find_chi_candidates(view.hand(), discarded, view.gold_tile())

    def _select_chi(self) -> Outcome:
        candidates = self.chi_candidates()
        if not candidates:
            raise ActionNotAvailableError("no run can be formed with the discarded tile")
        if len(candidates) == 1:
            only = candidates[0]
            return self._emit(
                ChiCommand(player_id=self._player_id, tile_id1=only.first.instance_id, tile_id2=only.second.instance_id),
            )
        return ChoiceRequired(action=ActionKind.CHI, chi_candidates=tuple(candidates))

    def choose_chi(self, candidate: ChiCandidate) -> CommandIssued:
        """Send the run the user picked from a ChoiceRequired prompt."""
        if ActionKind.CHI not in self.expose().actions:
            raise StaleSelectionError("chi is no longer offered")
        chosen = (candidate.first.instance_id, candidate.second.instance_id)
        current = {(c.first.instance_id, c.second.instance_id) for c in self.chi_candidates()}
        if chosen not in current:
            raise StaleSelectionError("chosen run no longer matches the hand")
        return self._emit(ChiCommand(player_id=self._player_id, tile_id1=chosen[0], tile_id2=chosen[1]))

    def _resolve_an_gang(self, tile: TileFace) -> AnGangCommand:
        match = find_first(self._reconciler.view.hand(), tile.kind, tile.rank)
        if match is None:
            raise StaleSelectionError(f"no {tile.kind.value} {tile.rank} left in hand for concealed kong")
        return AnGangCommand(player_id=self._player_id, tile_id=match.instance_id)

    def _select_an_gang(self, options: tuple[Tile, ...]) -> Outcome:
        if len(options) == 1:
            return self._emit(self._resolve_an_gang(options[0]))
        return ChoiceRequired(action=ActionKind.AN_GANG, an_gang_tiles=options)

    def choose_an_gang(self, tile: TileFace) -> CommandIssued:
        """Send the concealed kong the user picked from a ChoiceRequired prompt."""
        exposed = self.expose()
        if not isinstance(exposed, SelfActionPrompt) or not any(tile.matches(t) for t in exposed.an_gang_tiles):
            raise StaleSelectionError("concealed kong is no longer offered for that tile")
        return self._emit(self._resolve_an_gang(tile))

    def discard(self, tile_id: str) -> CommandIssued:
        """Discard a tile from hand on the local player's turn."""
        view = self._reconciler.view
        my_index = view.player_index(self._reconciler.player_id)
        if view.phase != Phase.PLAYING or my_index is None or view.int_field("currentPlayerIndex") != my_index:
            raise ActionNotAvailableError("it is not your turn to discard")
        if find_by_id(view.hand(), tile_id) is None:
            raise StaleSelectionError(f"tile {tile_id} is no longer in hand")
        return self._emit(DiscardCommand(player_id=self._player_id, tile_id=tile_id))
