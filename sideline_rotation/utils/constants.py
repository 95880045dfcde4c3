"""
Constants for the Sideline Rotation engine.

This module contains configuration constants used throughout the application:
field formats, tactical shapes, squad size limits and role balance thresholds.
"""

# Application metadata
APP_TITLE = "Sideline Rotation"

# Field formats
FORMAT_5V5 = "5v5"
FORMAT_7V7 = "7v7"
FORMATS = [FORMAT_5V5, FORMAT_7V7]

# Tactical shapes
FORMATION_2_2 = "2-2"
FORMATION_1_2_1 = "1-2-1"
FORMATION_2_2_2 = "2-2-2"
FORMATION_2_3_1 = "2-3-1"

# Squad size limits
GOALIE_COUNT = 1
MIN_SQUAD_SIZE = 5
DEFAULT_MAX_SQUAD_SIZE = 15
MAX_SQUAD_SIZE_BY_FORMAT = {
    FORMAT_5V5: 11,
    FORMAT_7V7: 15,
}

# Per-format metadata; formations listed in preference order (first = default)
FORMAT_CONFIGS = {
    FORMAT_5V5: {
        "label": "5v5",
        "field_players": 4,
        "default_formation": FORMATION_2_2,
        "formations": [FORMATION_2_2, FORMATION_1_2_1],
    },
    FORMAT_7V7: {
        "label": "7v7",
        "field_players": 6,
        "default_formation": FORMATION_2_2_2,
        "formations": [FORMATION_2_2_2, FORMATION_2_3_1],
    },
}

# Outfield slot layouts per tactical shape: (slot id, role)
FORMATION_LAYOUTS = {
    FORMATION_2_2: [
        ("leftDefender", "defender"),
        ("rightDefender", "defender"),
        ("leftAttacker", "attacker"),
        ("rightAttacker", "attacker"),
    ],
    FORMATION_1_2_1: [
        ("defender", "defender"),
        ("left", "midfielder"),
        ("right", "midfielder"),
        ("attacker", "attacker"),
    ],
    FORMATION_2_2_2: [
        ("leftDefender", "defender"),
        ("rightDefender", "defender"),
        ("leftMidfielder", "midfielder"),
        ("rightMidfielder", "midfielder"),
        ("leftAttacker", "attacker"),
        ("rightAttacker", "attacker"),
    ],
    FORMATION_2_3_1: [
        ("leftDefender", "defender"),
        ("rightDefender", "defender"),
        ("leftMidfielder", "midfielder"),
        ("centerMidfielder", "midfielder"),
        ("rightMidfielder", "midfielder"),
        ("attacker", "attacker"),
    ],
}

# Pair mode layout (5v5, 2-2, seven players)
PAIR_KEYS = ["leftPair", "rightPair", "subPair"]
FIELD_PAIR_KEYS = ["leftPair", "rightPair"]
SUB_PAIR_KEY = "subPair"
PAIRS_SQUAD_SIZE = 7

# Squad sizes where pair-based role strategy applies (5v5 2-2, individual subs)
PAIRED_ROLE_STRATEGY_SQUAD_SIZES = (7, 9)

# Role balance thresholds: defender/attacker time ratio
ROLE_BALANCE_MUST_DEFEND_BELOW = 0.8
ROLE_BALANCE_MUST_ATTACK_ABOVE = 1.25

# Role points (per match)
ROLE_POINTS_TOTAL = 3

# Match timing defaults
DEFAULT_PERIOD_COUNT = 3
PERIOD_OPTIONS = [1, 2, 3, 4]
DURATION_OPTIONS_MIN = [10, 15, 20, 25, 30]
DEFAULT_PERIOD_DURATION_MIN = 15
