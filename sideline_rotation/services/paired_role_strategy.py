"""Paired role strategy: keep or swap defender/attacker roles when a pair re-enters."""

import logging
from dataclasses import replace
from typing import Optional, Tuple

from ..models.team_mode import PairedRoleStrategy, TeamConfig, can_use_paired_role_strategy

logger = logging.getLogger(__name__)

DEFAULT_PAIRED_ROLE_STRATEGY = PairedRoleStrategy.KEEP_THROUGHOUT_PERIOD

__all__ = [
    "PairedRoleStrategy", "DEFAULT_PAIRED_ROLE_STRATEGY", "can_use_paired_role_strategy",
    "normalize_paired_role_strategy", "roles_for_reentry", "is_paired_rotation_active",
]


def normalize_paired_role_strategy(config: TeamConfig) -> TeamConfig:
    """Drop the strategy where it does not apply, default it where it does."""
    if not can_use_paired_role_strategy(config):
        if config.paired_role_strategy is not None:
            logger.debug("Dropping paired role strategy for %s", config)
        return replace(config, paired_role_strategy=None)
    return replace(config, paired_role_strategy=config.paired_role_strategy or DEFAULT_PAIRED_ROLE_STRATEGY)


def roles_for_reentry(strategy: Optional[PairedRoleStrategy],
                      previous_defender_id: str, previous_attacker_id: str) -> Tuple[str, str]:
    """
    Return ``(defender_id, attacker_id)`` for a pair coming back on.

    ``SWAP_EVERY_ROTATION`` flips the roles of the previous stint; anything
    else keeps them.
    """
    if strategy == PairedRoleStrategy.SWAP_EVERY_ROTATION:
        return previous_attacker_id, previous_defender_id
    return previous_defender_id, previous_attacker_id


def is_paired_rotation_active(config: TeamConfig, substitution_count: int) -> bool:
    """Pairs rotate together only when the strategy applies and two players go at once."""
    return can_use_paired_role_strategy(config) and substitution_count == 2
