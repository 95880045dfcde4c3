"""Team mode schemas and team configuration for the Sideline Rotation engine.

A team mode is the combination of field format, tactical shape, squad size
and substitution type. Each mode owns a slot schema expressed as data, so
consumers iterate slot definitions instead of branching per mode.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from functools import lru_cache
from typing import Any, Dict, List, Optional, Tuple

from .player import PlayerRole
from ..exceptions import InvalidTeamConfigError
from ..utils.time_utils import coerce_seconds
from ..utils.constants import (
    FORMAT_5V5, FORMAT_CONFIGS, FORMATION_2_2, FORMATION_LAYOUTS, GOALIE_COUNT,
    MIN_SQUAD_SIZE, DEFAULT_MAX_SQUAD_SIZE, MAX_SQUAD_SIZE_BY_FORMAT,
    PAIR_KEYS, FIELD_PAIR_KEYS, PAIRS_SQUAD_SIZE, PAIRED_ROLE_STRATEGY_SQUAD_SIZES,
)

logger = logging.getLogger(__name__)

GOALIE_SLOT = "goalie"


class SubstitutionType(Enum):
    """How players rotate on and off."""
    INDIVIDUAL = "individual"
    PAIRS = "pairs"


class PairedRoleStrategy(Enum):
    """Whether a rotating pair keeps or swaps defender/attacker roles."""
    KEEP_THROUGHOUT_PERIOD = "keep_throughout_period"
    SWAP_EVERY_ROTATION = "swap_every_rotation"


class SlotKind(Enum):
    GOALIE = "goalie"
    FIELD = "field"
    SUBSTITUTE = "substitute"


@dataclass(frozen=True)
class SlotDefinition:
    """A single named slot in a formation."""
    slot_id: str
    role: PlayerRole
    kind: SlotKind
    pair_key: Optional[str] = None


@dataclass(frozen=True)
class TeamMode:
    """Hashable key selecting a slot schema."""
    substitution_type: SubstitutionType
    squad_size: int
    formation: str = FORMATION_2_2
    format: str = FORMAT_5V5

    @property
    def is_paired(self) -> bool:
        return self.substitution_type == SubstitutionType.PAIRS

    @property
    def key(self) -> str:
        """Short identifier such as ``pairs_7`` or ``individual_6``."""
        base = f"{self.substitution_type.value}_{self.squad_size}"
        if self.format != FORMAT_5V5 or self.formation != FORMATION_2_2:
            base = f"{base}_{self.format}_{self.formation}"
        return base


INDIVIDUAL_5 = TeamMode(SubstitutionType.INDIVIDUAL, 5)
INDIVIDUAL_6 = TeamMode(SubstitutionType.INDIVIDUAL, 6)
PAIRS_7 = TeamMode(SubstitutionType.PAIRS, 7)
INDIVIDUAL_7 = TeamMode(SubstitutionType.INDIVIDUAL, 7)
INDIVIDUAL_8 = TeamMode(SubstitutionType.INDIVIDUAL, 8)


@dataclass(frozen=True)
class TeamModeSchema:
    """Slot layout for a team mode."""
    team_mode: TeamMode
    slots: Tuple[SlotDefinition, ...]

    @property
    def is_paired(self) -> bool:
        return self.team_mode.is_paired

    @property
    def slot_ids(self) -> List[str]:
        return [slot.slot_id for slot in self.slots]

    @property
    def outfield_slot_ids(self) -> List[str]:
        return [slot.slot_id for slot in self.slots if slot.kind != SlotKind.GOALIE]

    @property
    def field_slot_ids(self) -> List[str]:
        return [slot.slot_id for slot in self.slots if slot.kind == SlotKind.FIELD]

    @property
    def substitute_slot_ids(self) -> List[str]:
        return [slot.slot_id for slot in self.slots if slot.kind == SlotKind.SUBSTITUTE]

    @property
    def pair_keys(self) -> List[str]:
        keys: List[str] = []
        for slot in self.slots:
            if slot.pair_key and slot.pair_key not in keys:
                keys.append(slot.pair_key)
        return keys

    @property
    def supports_inactive_players(self) -> bool:
        # At least one substitute must stay active
        return not self.is_paired and len(self.substitute_slot_ids) >= 2

    @property
    def max_inactive_count(self) -> int:
        return len(self.substitute_slot_ids) - 1 if self.supports_inactive_players else 0

    @property
    def bottom_substitute_slot(self) -> Optional[str]:
        subs = self.substitute_slot_ids
        return subs[-1] if subs else None

    @property
    def validation_message(self) -> str:
        outfield = len(self.outfield_slot_ids)
        return f"Please complete the team formation with 1 goalie and {outfield} unique outfield players."

    def slot(self, slot_id: str) -> Optional[SlotDefinition]:
        for slot in self.slots:
            if slot.slot_id == slot_id:
                return slot
        return None

    def pair_slot_ids(self, pair_key: str) -> Tuple[str, str]:
        """Return ``(defender_slot, attacker_slot)`` for a pair."""
        return f"{pair_key}.defender", f"{pair_key}.attacker"


def pair_slot_id(pair_key: str, role: str) -> str:
    return f"{pair_key}.{role}"


@lru_cache(maxsize=None)
def get_schema(team_mode: TeamMode) -> TeamModeSchema:
    """Build (and cache) the slot schema for a team mode."""
    slots: List[SlotDefinition] = [SlotDefinition(GOALIE_SLOT, PlayerRole.GOALIE, SlotKind.GOALIE)]

    if team_mode.is_paired:
        for pair_key in PAIR_KEYS:
            kind = SlotKind.FIELD if pair_key in FIELD_PAIR_KEYS else SlotKind.SUBSTITUTE
            slots.append(SlotDefinition(pair_slot_id(pair_key, "defender"), PlayerRole.DEFENDER, kind, pair_key))
            slots.append(SlotDefinition(pair_slot_id(pair_key, "attacker"), PlayerRole.ATTACKER, kind, pair_key))
        return TeamModeSchema(team_mode, tuple(slots))

    layout = FORMATION_LAYOUTS.get(team_mode.formation)
    if layout is None:
        raise InvalidTeamConfigError(f"Unknown formation: {team_mode.formation}")

    for slot_id, role in layout:
        slots.append(SlotDefinition(slot_id, PlayerRole(role), SlotKind.FIELD))

    substitute_count = max(0, team_mode.squad_size - GOALIE_COUNT - len(layout))
    for index in range(substitute_count):
        slots.append(SlotDefinition(f"substitute_{index + 1}", PlayerRole.SUBSTITUTE, SlotKind.SUBSTITUTE))

    return TeamModeSchema(team_mode, tuple(slots))


# ---------- Format / squad size helpers ---------- #

def get_minimum_players_for_format(format: str) -> int:
    """Goalie plus field players, never below the global minimum."""
    config = FORMAT_CONFIGS.get(format)
    if not config:
        return MIN_SQUAD_SIZE
    return max(MIN_SQUAD_SIZE, config["field_players"] + GOALIE_COUNT)


def get_maximum_players_for_format(format: str) -> int:
    return max(MIN_SQUAD_SIZE, MAX_SQUAD_SIZE_BY_FORMAT.get(format, DEFAULT_MAX_SQUAD_SIZE))


def is_squad_size_in_range(format: str, squad_size: int) -> bool:
    return get_minimum_players_for_format(format) <= squad_size <= get_maximum_players_for_format(format)


def get_valid_formations(format: str) -> List[str]:
    config = FORMAT_CONFIGS.get(format)
    if not config:
        return [FORMATION_2_2]
    return list(config["formations"])


def pairs_available(format: str, squad_size: int, formation: str) -> bool:
    return format == FORMAT_5V5 and formation == FORMATION_2_2 and squad_size == PAIRS_SQUAD_SIZE


def get_available_substitution_types(format: str, squad_size: int,
                                     formation: str = FORMATION_2_2) -> List[SubstitutionType]:
    types = [SubstitutionType.INDIVIDUAL]
    if pairs_available(format, squad_size, formation):
        types.append(SubstitutionType.PAIRS)
    return types


def can_use_paired_role_strategy(config: "TeamConfig") -> bool:
    """Paired role strategy applies to 5v5 2-2 with 7 or 9 players and individual subs."""
    return (
        config.format == FORMAT_5V5
        and config.formation == FORMATION_2_2
        and config.squad_size in PAIRED_ROLE_STRATEGY_SQUAD_SIZES
        and config.substitution_type == SubstitutionType.INDIVIDUAL
    )


def resolve_team_mode(format: str, squad_size: int,
                      substitution_type: SubstitutionType = SubstitutionType.INDIVIDUAL,
                      formation: Optional[str] = None) -> Optional[TeamMode]:
    """
    Determine the team mode for a configuration.

    Returns None when the squad size is outside the supported range, so that
    dependent configuration is disabled instead of failing.
    """
    if format not in FORMAT_CONFIGS or not is_squad_size_in_range(format, squad_size):
        return None

    valid_formations = get_valid_formations(format)
    shape = formation if formation in valid_formations else FORMAT_CONFIGS[format]["default_formation"]

    if substitution_type == SubstitutionType.PAIRS and not pairs_available(format, squad_size, shape):
        substitution_type = SubstitutionType.INDIVIDUAL

    return TeamMode(substitution_type, squad_size, shape, format)


# ---------- Team configuration ---------- #

@dataclass(frozen=True)
class TeamConfig:
    """Per-match team configuration."""
    format: str = FORMAT_5V5
    squad_size: int = 7
    formation: str = FORMATION_2_2
    substitution_type: SubstitutionType = SubstitutionType.INDIVIDUAL
    paired_role_strategy: Optional[PairedRoleStrategy] = None

    @classmethod
    def create(cls, format: str = FORMAT_5V5, squad_size: int = 7,
               formation: Optional[str] = None,
               substitution_type: SubstitutionType = SubstitutionType.INDIVIDUAL,
               paired_role_strategy: Optional[PairedRoleStrategy] = None) -> "TeamConfig":
        """Create a configuration, re-deriving incompatible choices."""
        if format not in FORMAT_CONFIGS:
            logger.warning("Unknown format %r, falling back to %s", format, FORMAT_5V5)
            format = FORMAT_5V5

        valid_formations = get_valid_formations(format)
        if formation not in valid_formations:
            formation = FORMAT_CONFIGS[format]["default_formation"]

        if substitution_type not in get_available_substitution_types(format, squad_size, formation):
            substitution_type = SubstitutionType.INDIVIDUAL

        config = cls(format, squad_size, formation, substitution_type, paired_role_strategy)
        if not can_use_paired_role_strategy(config):
            return replace(config, paired_role_strategy=None)
        return replace(
            config,
            paired_role_strategy=paired_role_strategy or PairedRoleStrategy.KEEP_THROUGHOUT_PERIOD,
        )

    @property
    def team_mode(self) -> Optional[TeamMode]:
        return resolve_team_mode(self.format, self.squad_size, self.substitution_type, self.formation)

    @property
    def schema(self) -> Optional[TeamModeSchema]:
        mode = self.team_mode
        return get_schema(mode) if mode else None

    def with_updates(self, **changes: Any) -> "TeamConfig":
        """Return a new configuration with ``changes`` applied and re-derived."""
        values = {
            "format": self.format,
            "squad_size": self.squad_size,
            "formation": self.formation,
            "substitution_type": self.substitution_type,
            "paired_role_strategy": self.paired_role_strategy,
        }
        values.update(changes)
        return TeamConfig.create(**values)

    def for_squad_size(self, squad_size: int) -> "TeamConfig":
        return self.with_updates(squad_size=squad_size)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "format": self.format,
            "squad_size": self.squad_size,
            "formation": self.formation,
            "substitution_type": self.substitution_type.value,
            "paired_role_strategy": self.paired_role_strategy.value if self.paired_role_strategy else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TeamConfig":
        strategy = data.get("paired_role_strategy")
        try:
            substitution_type = SubstitutionType(data.get("substitution_type") or SubstitutionType.INDIVIDUAL.value)
        except ValueError:
            logger.warning("Unknown substitution type %r", data.get("substitution_type"))
            substitution_type = SubstitutionType.INDIVIDUAL
        try:
            paired_role_strategy = PairedRoleStrategy(strategy) if strategy else None
        except ValueError:
            logger.warning("Unknown paired role strategy %r", strategy)
            paired_role_strategy = None
        return cls.create(
            format=data.get("format", FORMAT_5V5),
            squad_size=coerce_seconds(data.get("squad_size", 7), 0, "squad size"),
            formation=data.get("formation"),
            substitution_type=substitution_type,
            paired_role_strategy=paired_role_strategy,
        )


def create_default_team_config(squad_size: int, format: str = FORMAT_5V5) -> TeamConfig:
    return TeamConfig.create(format=format, squad_size=squad_size)


def validate_team_config(config: TeamConfig) -> bool:
    """
    Validate a team configuration.

    Raises:
        InvalidTeamConfigError: If format, squad size or formation is invalid
    """
    if config.format not in FORMAT_CONFIGS:
        raise InvalidTeamConfigError(
            f"Invalid format: {config.format}. Must be one of: {', '.join(FORMAT_CONFIGS)}"
        )
    minimum = get_minimum_players_for_format(config.format)
    maximum = get_maximum_players_for_format(config.format)
    if not minimum <= config.squad_size <= maximum:
        raise InvalidTeamConfigError(
            f"Invalid squad size: {config.squad_size}. Must be between {minimum} and {maximum} "
            f"players for {config.format}"
        )
    valid_formations = get_valid_formations(config.format)
    if config.formation not in valid_formations:
        raise InvalidTeamConfigError(
            f"Formation {config.formation} not valid for {config.format}. "
            f"Valid formations: {', '.join(valid_formations)}"
        )
    return True


@dataclass
class TeamConfigState:
    """What the configuration screen may offer for the current squad size."""
    format: str
    squad_size: int
    sections_enabled: bool
    available_formations: List[str] = field(default_factory=list)
    available_substitution_types: List[SubstitutionType] = field(default_factory=list)
    paired_role_strategy_applicable: bool = False
    team_config: Optional[TeamConfig] = None


def derive_configuration_state(format: str, squad_size: int,
                               previous: Optional[TeamConfig] = None) -> TeamConfigState:
    """
    Recompute the configuration options for a squad size.

    Previous choices are carried over only while they remain compatible;
    an out-of-range squad size disables the dependent sections.
    """
    if not is_squad_size_in_range(format, squad_size):
        return TeamConfigState(format=format, squad_size=squad_size, sections_enabled=False)

    if previous is not None:
        config = previous.with_updates(format=format, squad_size=squad_size)
    else:
        config = create_default_team_config(squad_size, format)

    return TeamConfigState(
        format=format,
        squad_size=squad_size,
        sections_enabled=True,
        available_formations=get_valid_formations(format),
        available_substitution_types=get_available_substitution_types(format, squad_size, config.formation),
        paired_role_strategy_applicable=can_use_paired_role_strategy(config),
        team_config=config,
    )
