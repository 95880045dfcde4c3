"""
Formation recommendations biased toward equal time in each role.

Two generators share one interface: the pair generator for paired modes and
the individual generator for every individual mode. Both only suggest a
formation; the validator and the coach's edits stay authoritative.

Ties are broken by squad order: every sort is stable over the players in
the order they were passed in.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Set, Tuple

from ..models.formation import Formation
from ..models.player import Player, PlayerRole
from ..models.team_mode import TeamMode, get_schema, pair_slot_id
from ..utils.constants import (
    FORMATION_1_2_1, FORMATION_2_2, PAIR_KEYS, SUB_PAIR_KEY,
    ROLE_BALANCE_MUST_ATTACK_ABOVE, ROLE_BALANCE_MUST_DEFEND_BELOW,
)

logger = logging.getLogger(__name__)

DEFENDER = "defender"
ATTACKER = "attacker"

Pair = Tuple[Optional[str], Optional[str]]  # (defender_id, attacker_id)


@dataclass
class Recommendation:
    """
    Suggested formation plus the matching rotation order.

    Attributes:
        formation: Suggested slot assignment
        rotation_queue: Player ids, next off first
        next_to_rotate_off: Front of ``rotation_queue`` when someone can rotate
        first_to_rotate_pair: Paired modes only, field pair that goes off first
    """
    formation: Formation
    rotation_queue: List[str] = field(default_factory=list)
    next_to_rotate_off: Optional[str] = None
    first_to_rotate_pair: Optional[str] = None

    def to_dict(self) -> Dict:
        return {
            "formation": self.formation.to_dict(),
            "rotation_queue": list(self.rotation_queue),
            "next_to_rotate_off": self.next_to_rotate_off,
            "first_to_rotate_pair": self.first_to_rotate_pair,
        }


def role_balance_ratio(player: Player) -> float:
    """Defender/attacker time ratio, with one second added to both sides."""
    stats = player.stats
    return (stats.time_as_defender_seconds + 1) / (stats.time_as_attacker_seconds + 1)


def required_role(player: Player) -> Optional[str]:
    """``defender`` or ``attacker`` when the player's balance forces a role."""
    ratio = role_balance_ratio(player)
    if ratio < ROLE_BALANCE_MUST_DEFEND_BELOW:
        return DEFENDER
    if ratio > ROLE_BALANCE_MUST_ATTACK_ABOVE:
        return ATTACKER
    return None


def calculate_role_deficit(player: Player, role: PlayerRole) -> float:
    """Seconds a player is short of an even three-way split for ``role``."""
    stats = player.stats
    total = stats.time_as_defender_seconds + stats.time_as_midfielder_seconds + stats.time_as_attacker_seconds
    if total == 0:
        return 0.0
    return max(0.0, total / 3 - stats.role_time(role))


class RecommendationGenerator(ABC):
    """Common interface for formation recommendation."""

    def __init__(self, team_mode: TeamMode):
        self.team_mode = team_mode
        self.schema = get_schema(team_mode)

    @abstractmethod
    def recommend(self, goalie_id: str, players: Sequence[Player],
                  previous_formation: Optional[Formation] = None,
                  previous_goalie_id: Optional[str] = None) -> Recommendation:
        """Suggest a formation for the next period."""
        pass

    def _outfielders(self, goalie_id: str, players: Sequence[Player]) -> List[Player]:
        return [p for p in players if p.id != goalie_id]


class PairRecommendationGenerator(RecommendationGenerator):
    """Keeps pairs together, swapping roles where role balance allows."""

    def recommend(self, goalie_id: str, players: Sequence[Player],
                  previous_formation: Optional[Formation] = None,
                  previous_goalie_id: Optional[str] = None) -> Recommendation:
        outfielders = self._outfielders(goalie_id, players)
        by_id = {p.id: p for p in outfielders}
        required = {p.id: required_role(p) for p in outfielders}
        used: Set[str] = set()
        pairs: List[Pair] = []

        def can_play(player_id: str, role: str) -> bool:
            return required[player_id] in (None, role)

        def take(defender_id: str, attacker_id: str) -> None:
            pairs.append((defender_id, attacker_id))
            used.update((defender_id, attacker_id))

        previous = previous_formation if previous_formation and previous_formation.schema.is_paired else None

        if previous is not None:
            # Ex-goalie fills in beside the new goalie's old partner
            if previous_goalie_id and previous_goalie_id != goalie_id and previous_goalie_id in by_id:
                partner_id, partner_role = self._partner_of(goalie_id, previous)
                if partner_id in by_id and partner_id != previous_goalie_id:
                    partner_new_role = ATTACKER if partner_role == DEFENDER else DEFENDER
                    ex_goalie_role = DEFENDER if partner_new_role == ATTACKER else ATTACKER
                    if can_play(previous_goalie_id, ex_goalie_role) and can_play(partner_id, partner_new_role):
                        if partner_new_role == DEFENDER:
                            take(partner_id, previous_goalie_id)
                        else:
                            take(previous_goalie_id, partner_id)

            for pair_key in PAIR_KEYS:
                pair = previous.pair(pair_key)
                defender_id, attacker_id = pair["defender"], pair["attacker"]
                if defender_id not in by_id or attacker_id not in by_id:
                    continue
                if defender_id in used or attacker_id in used:
                    continue
                if can_play(defender_id, ATTACKER) and can_play(attacker_id, DEFENDER):
                    take(attacker_id, defender_id)
                elif can_play(defender_id, DEFENDER) and can_play(attacker_id, ATTACKER):
                    take(defender_id, attacker_id)

        remaining = [p for p in outfielders if p.id not in used]
        must_defend = [p.id for p in remaining if required[p.id] == DEFENDER]
        must_attack = [p.id for p in remaining if required[p.id] == ATTACKER]
        flexible = [p.id for p in remaining if required[p.id] is None]

        while must_defend and must_attack:
            take(must_defend.pop(0), must_attack.pop(0))
        while must_defend and flexible:
            take(must_defend.pop(0), flexible.pop(0))
        while must_attack and flexible:
            take(flexible.pop(0), must_attack.pop(0))

        leftover = [p for p in outfielders if p.id not in used]
        if previous is not None:
            self._pair_by_previous_role(leftover, previous, take)
        else:
            self._pair_by_attacker_surplus(leftover, take)

        pairs = (pairs + [(None, None)] * 3)[:3]
        return self._build(goalie_id, pairs, outfielders, used)

    @staticmethod
    def _partner_of(player_id: str, formation: Formation) -> Tuple[Optional[str], Optional[str]]:
        """Return ``(partner_id, partner_role)`` for a player's pair in ``formation``."""
        for pair_key in PAIR_KEYS:
            pair = formation.pair(pair_key)
            if pair["defender"] == player_id:
                return pair["attacker"], ATTACKER
            if pair["attacker"] == player_id:
                return pair["defender"], DEFENDER
        return None, None

    @staticmethod
    def _previous_role(player_id: str, formation: Formation) -> Optional[str]:
        for pair_key in PAIR_KEYS:
            pair = formation.pair(pair_key)
            if pair["defender"] == player_id:
                return DEFENDER
            if pair["attacker"] == player_id:
                return ATTACKER
        return None

    def _pair_by_previous_role(self, leftover: List[Player], previous: Formation, take) -> None:
        """Pair flexible players, each taking the role opposite to last period."""
        wanted = {
            p.id: ATTACKER if self._previous_role(p.id, previous) == DEFENDER else DEFENDER
            for p in leftover
        }
        queue = [p.id for p in leftover]
        while len(queue) >= 2:
            first = queue.pop(0)
            complement = ATTACKER if wanted[first] == DEFENDER else DEFENDER
            partner = next((pid for pid in queue if wanted[pid] == complement), queue[0])
            queue.remove(partner)
            if wanted[first] == DEFENDER:
                take(first, partner)
            else:
                take(partner, first)

    @staticmethod
    def _pair_by_attacker_surplus(leftover: List[Player], take) -> None:
        """Most attack-heavy half defends, the rest attack, paired index by index."""
        ordered = sorted(leftover, key=lambda p: -p.stats.attacker_surplus_seconds)
        half = len(ordered) // 2
        for defender, attacker in zip(ordered[:half], ordered[half:2 * half]):
            take(defender.id, attacker.id)

    def _build(self, goalie_id: str, pairs: List[Pair], outfielders: List[Player],
               used: Set[str]) -> Recommendation:
        total_time = {p.id: p.stats.time_on_field_seconds for p in outfielders}

        def pair_max_time(pair: Pair) -> Optional[int]:
            defender_id, attacker_id = pair
            if not defender_id or not attacker_id:
                return None
            return max(total_time.get(defender_id, 0), total_time.get(attacker_id, 0))

        def most_time_index(candidates: List[Pair]) -> int:
            best_index, best_time = 0, 0
            for index, pair in enumerate(candidates):
                pair_time = pair_max_time(pair)
                if pair_time is not None and pair_time > best_time:
                    best_index, best_time = index, pair_time
            return best_index

        sub_index = most_time_index(pairs)
        sub_pair = pairs[sub_index]
        field_pairs = [pair for index, pair in enumerate(pairs) if index != sub_index]
        first_index = most_time_index(field_pairs)
        first_pair_key = "leftPair" if first_index == 0 else "rightPair"

        formation = Formation.empty(self.team_mode, goalie_id)
        for pair_key, (defender_id, attacker_id) in zip(("leftPair", "rightPair", SUB_PAIR_KEY),
                                                        field_pairs + [sub_pair]):
            formation.set_slot(pair_slot_id(pair_key, "defender"), defender_id or "")
            formation.set_slot(pair_slot_id(pair_key, "attacker"), attacker_id or "")

        ordered_pairs = [field_pairs[first_index], field_pairs[1 - first_index], sub_pair]
        queue = [pid for pair in ordered_pairs for pid in pair if pid]
        queue.extend(p.id for p in outfielders if p.id not in used)

        return Recommendation(
            formation=formation,
            rotation_queue=queue,
            next_to_rotate_off=queue[0] if queue else None,
            first_to_rotate_pair=first_pair_key,
        )


class IndividualRecommendationGenerator(RecommendationGenerator):
    """Puts the players with least outfield time on the field."""

    def recommend(self, goalie_id: str, players: Sequence[Player],
                  previous_formation: Optional[Formation] = None,
                  previous_goalie_id: Optional[str] = None) -> Recommendation:
        outfielders = self._outfielders(goalie_id, players)
        active = [p for p in outfielders if not p.is_inactive]
        inactive = [p for p in outfielders if p.is_inactive]
        field_slots = self.schema.field_slot_ids
        formation = Formation.empty(self.team_mode, goalie_id)

        by_time = sorted(active, key=lambda p: p.stats.time_on_field_seconds)

        if len(active) <= len(field_slots):
            for slot_id, player in zip(field_slots, by_time):
                formation.set_slot(slot_id, player.id)
            self._fill_substitutes(formation, [], inactive)
            queue = [p.id for p in sorted(by_time, key=lambda p: -p.stats.time_on_field_seconds)]
            logger.debug("Only %s active outfield players for %s field slots", len(active), len(field_slots))
            return Recommendation(formation, queue, None)

        on_field = by_time[:len(field_slots)]
        substitutes = by_time[len(field_slots):]

        if self.team_mode.formation == FORMATION_2_2:
            self._assign_2_2(formation, on_field)
        elif self.team_mode.formation == FORMATION_1_2_1:
            self._assign_1_2_1(formation, on_field)
        else:
            self._assign_by_role_time(formation, on_field)

        self._fill_substitutes(formation, substitutes, inactive)

        field_order = sorted(on_field, key=lambda p: -p.stats.time_on_field_seconds)
        queue = [p.id for p in field_order] + [p.id for p in substitutes]
        return Recommendation(formation, queue, field_order[0].id if field_order else None)

    def _assign_2_2(self, formation: Formation, on_field: List[Player]) -> None:
        """Most attack-heavy players defend."""
        ordered = sorted(on_field, key=lambda p: -p.stats.attacker_surplus_seconds)
        slots = ["leftDefender", "rightDefender", "leftAttacker", "rightAttacker"]
        for slot_id, player in zip(slots, ordered):
            formation.set_slot(slot_id, player.id)

    def _assign_1_2_1(self, formation: Formation, on_field: List[Player]) -> None:
        used: Set[str] = set()

        def best(role: PlayerRole) -> Optional[Player]:
            candidates = [p for p in on_field if p.id not in used]
            if not candidates:
                return None
            choice = sorted(candidates, key=lambda p: -calculate_role_deficit(p, role))[0]
            used.add(choice.id)
            return choice

        defender = best(PlayerRole.DEFENDER)
        attacker = best(PlayerRole.ATTACKER)
        left = best(PlayerRole.MIDFIELDER)
        right = best(PlayerRole.MIDFIELDER)
        for slot_id, player in (("defender", defender), ("attacker", attacker), ("left", left), ("right", right)):
            if player is not None:
                formation.set_slot(slot_id, player.id)

    def _assign_by_role_time(self, formation: Formation, on_field: List[Player]) -> None:
        """Each role slot gets the remaining player with least time in that role."""
        remaining = list(on_field)
        for role in (PlayerRole.DEFENDER, PlayerRole.MIDFIELDER, PlayerRole.ATTACKER):
            for definition in self.schema.slots:
                if definition.slot_id not in self.schema.field_slot_ids or definition.role != role:
                    continue
                if not remaining:
                    return
                remaining.sort(key=lambda p: p.stats.role_time(role))
                formation.set_slot(definition.slot_id, remaining.pop(0).id)

    def _fill_substitutes(self, formation: Formation, substitutes: List[Player],
                          inactive: List[Player]) -> None:
        """Active substitutes first, inactive players in the bottom slots."""
        ordered = [p.id for p in substitutes] + [p.id for p in inactive]
        for slot_id, player_id in zip(self.schema.substitute_slot_ids, ordered):
            formation.set_slot(slot_id, player_id)


def get_recommendation_generator(team_mode: TeamMode) -> RecommendationGenerator:
    """Pick the generator for a team mode."""
    if team_mode.is_paired:
        return PairRecommendationGenerator(team_mode)
    return IndividualRecommendationGenerator(team_mode)
