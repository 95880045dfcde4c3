"""
Rotation queue for the Sideline Rotation engine.

The queue holds the ids of active outfield players in the order they are
scheduled to come off; the front is the next player out. It is backed by an
insertion-ordered dict used as an ordered set, so an id can never appear
twice. Inactive players are parked in a separate list and re-enter at the
end of the queue when reactivated.
"""

import logging
from typing import Callable, Dict, Iterable, List, Optional, Union

logger = logging.getLogger(__name__)

Position = Union[str, int]


class RotationQueue:
    """Ordered set of rotatable player ids, front = next off."""

    def __init__(self, player_ids: Iterable[str] = (), inactive_ids: Iterable[str] = ()):
        self._order: Dict[str, None] = {}
        self._inactive: List[str] = []
        self.initialize(player_ids, inactive_ids)

    def initialize(self, player_ids: Iterable[str], inactive_ids: Iterable[str] = ()) -> None:
        """Reset the queue to ``player_ids`` (duplicates dropped, order kept)."""
        inactive = list(dict.fromkeys(pid for pid in inactive_ids if pid))
        self._order = {pid: None for pid in player_ids if pid and pid not in inactive}
        self._inactive = inactive

    # ---------- Queries ---------- #

    def to_array(self) -> List[str]:
        return list(self._order)

    def inactive_players(self) -> List[str]:
        return list(self._inactive)

    def contains(self, player_id: str) -> bool:
        return player_id in self._order

    def is_inactive(self, player_id: str) -> bool:
        return player_id in self._inactive

    def position_of(self, player_id: str) -> int:
        """Index of ``player_id`` in the queue, or -1."""
        for index, pid in enumerate(self._order):
            if pid == player_id:
                return index
        return -1

    def next_active_player(self, count: int = 1) -> List[str]:
        """The next ``count`` players scheduled to come off."""
        return self.to_array()[:max(0, count)]

    def __len__(self) -> int:
        return len(self._order)

    def __iter__(self):
        return iter(self.to_array())

    def __contains__(self, player_id: str) -> bool:
        return self.contains(player_id)

    # ---------- Mutations ---------- #

    def add_player(self, player_id: str, position: Position = "end") -> None:
        """
        Insert a player permanently, e.g. a former goalie returning to play.

        ``position`` is ``"end"``, ``"start"`` or an index. A player already
        queued is moved to the requested position.
        """
        if not player_id:
            return
        if player_id in self._inactive:
            self._inactive.remove(player_id)
        order = [pid for pid in self._order if pid != player_id]
        if position == "start":
            index = 0
        elif position == "end":
            index = len(order)
        else:
            index = max(0, min(int(position), len(order)))
        order.insert(index, player_id)
        self._order = dict.fromkeys(order)

    def remove_player(self, player_id: str) -> bool:
        """Remove a player permanently (e.g. promoted to goalie)."""
        removed = False
        if player_id in self._order:
            del self._order[player_id]
            removed = True
        if player_id in self._inactive:
            self._inactive.remove(player_id)
            removed = True
        return removed

    def deactivate_player(self, player_id: str) -> None:
        """Park a player outside the queue while they are inactive."""
        if player_id in self._order:
            del self._order[player_id]
        if player_id not in self._inactive:
            self._inactive.append(player_id)
        logger.debug("Deactivated %s, queue now %s", player_id, self.to_array())

    def activate_player(self, player_id: str) -> None:
        """Bring an inactive player back; they re-enter at the end of the queue."""
        if player_id in self._inactive:
            self._inactive.remove(player_id)
        if player_id not in self._order:
            self._order[player_id] = None
        logger.debug("Activated %s, queue now %s", player_id, self.to_array())

    reactivate_player = activate_player

    def rotate_player(self, player_id: str) -> None:
        """Move a player who just came off to the end of the queue."""
        if player_id in self._order:
            del self._order[player_id]
            self._order[player_id] = None

    def move_to_front(self, player_id: str) -> None:
        if player_id in self._order:
            self.add_player(player_id, "start")

    def insert_before(self, player_id: str, before_id: str) -> None:
        """Insert (or move) ``player_id`` directly ahead of ``before_id``."""
        order = [pid for pid in self._order if pid != player_id]
        if before_id in order:
            self.add_player(player_id, order.index(before_id))
        else:
            self.add_player(player_id, "end")

    def reorder_by_positions(self, position_of: Callable[[str], Optional[int]]) -> None:
        """
        Stable reorder by a position key.

        Players for whom ``position_of`` returns None keep their relative order
        after all positioned players.
        """
        order = self.to_array()
        positioned = [pid for pid in order if position_of(pid) is not None]
        unpositioned = [pid for pid in order if position_of(pid) is None]
        positioned.sort(key=position_of)
        self._order = dict.fromkeys(positioned + unpositioned)

    def clone(self) -> "RotationQueue":
        clone = RotationQueue()
        clone._order = dict(self._order)
        clone._inactive = list(self._inactive)
        return clone

    def to_dict(self) -> Dict[str, List[str]]:
        return {"queue": self.to_array(), "inactive": self.inactive_players()}

    def __repr__(self) -> str:
        return f"RotationQueue({self.to_array()!r}, inactive={self._inactive!r})"


PAIR_ORDER = "pairs"
ROLE_GROUP_ORDER = "role_groups"


def build_paired_rotation_queue(formation, ordering_strategy: str = PAIR_ORDER) -> RotationQueue:
    """
    Build a queue from an individual 2-2 formation for paired role rotation.

    ``pairs`` interleaves defender and attacker of each side
    (left pair, right pair, then substitutes); ``role_groups`` lists all
    defenders, then attackers, then substitutes.
    """
    def get(slot_id):
        return formation.get(slot_id) if formation.has_slot(slot_id) else ""

    if ordering_strategy == ROLE_GROUP_ORDER:
        field_order = ["leftDefender", "rightDefender", "leftAttacker", "rightAttacker"]
    elif ordering_strategy == PAIR_ORDER:
        field_order = ["leftDefender", "leftAttacker", "rightDefender", "rightAttacker"]
    else:
        raise ValueError(f"Unknown ordering strategy: {ordering_strategy}")

    ids = [get(slot_id) for slot_id in field_order]
    ids.extend(formation.substitute_player_ids())
    return RotationQueue([pid for pid in ids if pid])
