"""Tests for formation recommendations."""

from sideline_rotation.models import Formation, INDIVIDUAL_5, INDIVIDUAL_6, PAIRS_7, Player
from sideline_rotation.services.recommendation_service import (
    IndividualRecommendationGenerator, PairRecommendationGenerator, calculate_role_deficit,
    get_recommendation_generator, required_role,
)
from sideline_rotation.models import PlayerRole


def make_player(player_id: str, defender: int = 0, attacker: int = 0, midfielder: int = 0) -> Player:
    player = Player(id=player_id, name=player_id.upper())
    player.stats.time_as_defender_seconds = defender
    player.stats.time_as_attacker_seconds = attacker
    player.stats.time_as_midfielder_seconds = midfielder
    player.stats.time_on_field_seconds = defender + attacker + midfielder
    return player


def pairs_of(formation: Formation):
    return [(formation.pair(key)["defender"], formation.pair(key)["attacker"])
            for key in ("leftPair", "rightPair", "subPair")]


def test_generator_selection():
    assert isinstance(get_recommendation_generator(PAIRS_7), PairRecommendationGenerator)
    assert isinstance(get_recommendation_generator(INDIVIDUAL_6), IndividualRecommendationGenerator)


def test_required_role_thresholds():
    assert required_role(make_player("a", defender=0, attacker=100)) == "defender"
    assert required_role(make_player("b", defender=100, attacker=0)) == "attacker"
    assert required_role(make_player("c", defender=100, attacker=100)) is None


def test_role_deficit():
    player = make_player("a", defender=300, attacker=0, midfielder=0)
    assert calculate_role_deficit(player, PlayerRole.ATTACKER) == 100
    assert calculate_role_deficit(player, PlayerRole.DEFENDER) == 0
    assert calculate_role_deficit(make_player("b"), PlayerRole.DEFENDER) == 0


def test_individual_least_time_plays_and_attack_heavy_defends():
    players = [
        make_player("p1"),
        make_player("p2", defender=150, attacker=150),
        make_player("p3", attacker=100),
        make_player("p4", defender=200),
        make_player("p5"),
        make_player("p6", defender=200, attacker=200),
    ]

    recommendation = IndividualRecommendationGenerator(INDIVIDUAL_6).recommend("p1", players)
    formation = recommendation.formation

    assert formation.goalie == "p1"
    assert formation.get("leftDefender") == "p3"
    assert formation.get("rightDefender") == "p5"
    assert formation.get("leftAttacker") == "p2"
    assert formation.get("rightAttacker") == "p4"
    assert formation.get("substitute_1") == "p6"
    assert recommendation.rotation_queue == ["p2", "p4", "p3", "p5", "p6"]
    assert recommendation.next_to_rotate_off == "p2"


def test_individual_without_substitutes_has_no_next_off():
    players = [make_player("p1"), make_player("p2", defender=60), make_player("p3"),
               make_player("p4", attacker=30), make_player("p5")]

    recommendation = IndividualRecommendationGenerator(INDIVIDUAL_5).recommend("p1", players)

    assert sorted(recommendation.formation.field_player_ids()) == ["p2", "p3", "p4", "p5"]
    assert recommendation.next_to_rotate_off is None
    assert recommendation.rotation_queue[0] == "p2"


def test_pairs_without_history_split_by_attacker_surplus():
    players = [make_player(f"p{i}") for i in range(1, 8)]

    recommendation = PairRecommendationGenerator(PAIRS_7).recommend("p7", players)

    assert pairs_of(recommendation.formation) == [("p2", "p5"), ("p3", "p6"), ("p1", "p4")]
    assert recommendation.first_to_rotate_pair == "leftPair"
    assert recommendation.rotation_queue == ["p2", "p5", "p3", "p6", "p1", "p4"]
    assert recommendation.next_to_rotate_off == "p2"


def test_pairs_keep_partners_and_swap_roles():
    previous = Formation.from_dict(PAIRS_7, {
        "goalie": "p7",
        "leftPair": {"defender": "p1", "attacker": "p2"},
        "rightPair": {"defender": "p3", "attacker": "p4"},
        "subPair": {"defender": "p5", "attacker": "p6"},
    })
    players = [
        make_player("p1", 100, 100), make_player("p2", 100, 100),
        make_player("p3", 100, 100), make_player("p4", 100, 100),
        make_player("p5", 50, 50), make_player("p6", 50, 50),
        make_player("p7"),
    ]

    recommendation = PairRecommendationGenerator(PAIRS_7).recommend("p7", players, previous, "p7")

    assert pairs_of(recommendation.formation) == [("p4", "p3"), ("p6", "p5"), ("p2", "p1")]
    assert recommendation.first_to_rotate_pair == "leftPair"


def test_pairs_ex_goalie_joins_new_goalies_partner():
    previous = Formation.from_dict(PAIRS_7, {
        "goalie": "p7",
        "leftPair": {"defender": "p1", "attacker": "p2"},
        "rightPair": {"defender": "p3", "attacker": "p4"},
        "subPair": {"defender": "p5", "attacker": "p6"},
    })
    players = [make_player(f"p{i}") for i in range(1, 8)]

    recommendation = PairRecommendationGenerator(PAIRS_7).recommend("p3", players, previous, "p7")
    formation = recommendation.formation

    assert formation.goalie == "p3"
    assert ("p4", "p7") in pairs_of(formation)
    assert sorted(formation.outfield_ids()) == ["p1", "p2", "p4", "p5", "p6", "p7"]


def test_forced_roles_are_respected():
    players = [
        make_player("p1", defender=0, attacker=300),
        make_player("p2", defender=300, attacker=0),
        make_player("p3", 100, 100), make_player("p4", 100, 100),
        make_player("p5", 100, 100), make_player("p6", 100, 100),
        make_player("p7"),
    ]

    recommendation = PairRecommendationGenerator(PAIRS_7).recommend("p7", players)

    assert ("p1", "p2") in pairs_of(recommendation.formation)
