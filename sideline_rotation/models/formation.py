"""Formation model: assignment of player ids to the named slots of a team mode."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, NamedTuple, Optional

from .player import PlayerRole, PlayerStatus
from .team_mode import GOALIE_SLOT, SlotKind, TeamMode, TeamModeSchema, get_schema, pair_slot_id


EMPTY = ""


@dataclass
class Formation:
    """
    Current slot assignment for a period.

    ``slots`` maps every slot id of the team mode schema to a player id,
    or to an empty string when unassigned.
    """
    team_mode: TeamMode
    slots: Dict[str, str] = field(default_factory=dict)

    def __post_init__(self):
        """Make sure every schema slot exists, in schema order."""
        ordered = {slot_id: EMPTY for slot_id in self.schema.slot_ids}
        for slot_id, player_id in self.slots.items():
            if slot_id not in ordered:
                raise KeyError(f"Slot '{slot_id}' does not exist in team mode {self.team_mode.key}")
            ordered[slot_id] = player_id or EMPTY
        self.slots = ordered

    @classmethod
    def empty(cls, team_mode: TeamMode, goalie_id: str = EMPTY) -> Formation:
        return cls(team_mode, {GOALIE_SLOT: goalie_id})

    @property
    def schema(self) -> TeamModeSchema:
        return get_schema(self.team_mode)

    @property
    def goalie(self) -> str:
        return self.slots[GOALIE_SLOT]

    def get(self, slot_id: str) -> str:
        return self.slots.get(slot_id, EMPTY)

    def has_slot(self, slot_id: str) -> bool:
        return slot_id in self.slots

    def find_slot(self, player_id: str) -> Optional[str]:
        """Return the slot currently holding ``player_id``, if any."""
        if not player_id:
            return None
        for slot_id, assigned in self.slots.items():
            if assigned == player_id:
                return slot_id
        return None

    def assigned_ids(self) -> List[str]:
        """Every non-empty slot value, goalie included (duplicates kept)."""
        return [player_id for player_id in self.slots.values() if player_id]

    def outfield_ids(self) -> List[str]:
        return [self.slots[slot_id] for slot_id in self.schema.outfield_slot_ids if self.slots[slot_id]]

    def field_player_ids(self) -> List[str]:
        return [self.slots[slot_id] for slot_id in self.schema.field_slot_ids if self.slots[slot_id]]

    def substitute_player_ids(self) -> List[str]:
        return [self.slots[slot_id] for slot_id in self.schema.substitute_slot_ids if self.slots[slot_id]]

    def empty_slots(self) -> List[str]:
        return [slot_id for slot_id, player_id in self.slots.items() if not player_id]

    def pair(self, pair_key: str) -> Dict[str, str]:
        """Return ``{"defender": id, "attacker": id}`` for a pair key."""
        return {
            "defender": self.get(pair_slot_id(pair_key, "defender")),
            "attacker": self.get(pair_slot_id(pair_key, "attacker")),
        }

    def set_slot(self, slot_id: str, player_id: str) -> None:
        if slot_id not in self.slots:
            raise KeyError(f"Slot '{slot_id}' does not exist in team mode {self.team_mode.key}")
        self.slots[slot_id] = player_id or EMPTY

    def with_slot(self, slot_id: str, player_id: str) -> Formation:
        """Return a copy with one slot changed."""
        updated = self.copy()
        updated.set_slot(slot_id, player_id)
        return updated

    def copy(self) -> Formation:
        return Formation(self.team_mode, dict(self.slots))

    def to_dict(self) -> Dict[str, Any]:
        """Serialise as nested pairs for paired modes, flat slots otherwise."""
        if not self.schema.is_paired:
            return dict(self.slots)
        data: Dict[str, Any] = {GOALIE_SLOT: self.goalie}
        for pair_key in self.schema.pair_keys:
            data[pair_key] = self.pair(pair_key)
        return data

    @classmethod
    def from_dict(cls, team_mode: TeamMode, data: Dict[str, Any]) -> Formation:
        schema = get_schema(team_mode)
        slots: Dict[str, str] = {}
        for slot_id in schema.slot_ids:
            definition = schema.slot(slot_id)
            if definition.pair_key:
                pair = data.get(definition.pair_key) or {}
                role = slot_id.split(".", 1)[1]
                slots[slot_id] = pair.get(role) or EMPTY
            else:
                slots[slot_id] = data.get(slot_id) or EMPTY
        return cls(team_mode, slots)


class RoleAndStatus(NamedTuple):
    role: Optional[PlayerRole]
    status: Optional[PlayerStatus]
    pair_key: Optional[str]


def initialize_player_role_and_status(player_id: str, formation: Formation) -> RoleAndStatus:
    """
    Derive a player's role, status and pair key from where they sit in the formation.

    In paired modes the pair key is the pair (``leftPair``); in individual
    modes it is the slot id. Players in no slot get all ``None``.
    """
    if player_id and player_id == formation.goalie:
        return RoleAndStatus(PlayerRole.GOALIE, PlayerStatus.GOALIE, None)

    slot_id = formation.find_slot(player_id)
    if slot_id is None:
        return RoleAndStatus(None, None, None)

    definition = formation.schema.slot(slot_id)
    status = PlayerStatus.ON_FIELD if definition.kind == SlotKind.FIELD else PlayerStatus.SUBSTITUTE
    pair_key = definition.pair_key or slot_id
    return RoleAndStatus(definition.role, status, pair_key)
