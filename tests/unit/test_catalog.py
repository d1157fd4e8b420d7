"""Unit tests for catalog loading and validation (lifequest/gamification/catalog.py)"""
import json
import pytest
from pydantic import ValidationError as SchemaValidationError

from tests.factories import make_node, make_tree

from lifequest.exceptions import (
    CatalogEntryNotFoundError,
    CatalogError,
    InconsistentSkillTreeError,
    SkillTreeCycleError,
)
from lifequest.gamification import skills
from lifequest.gamification.catalog import (
    MISSION_LIBRARY,
    REWARD_LIBRARY,
    SKILL_TREE_LIBRARY,
    Catalog,
    build_default_catalog,
    load_catalog,
)
from lifequest.models.mission import Mission, MissionCategory, MissionDifficulty, MissionRequirements
from lifequest.models.reward import Reward, RewardType
from lifequest.models.skill import SkillNode, SkillTree


class TestBuiltInCatalog:
    """Test the built-in libraries"""

    def test_default_catalog_is_valid(self):
        """Every built-in tree is consistent and acyclic"""
        catalog = build_default_catalog()

        assert len(catalog.missions) == len(MISSION_LIBRARY)
        assert len(catalog.skill_trees) == len(SKILL_TREE_LIBRARY)
        assert len(catalog.rewards) == len(REWARD_LIBRARY)
        for tree in catalog.skill_trees:
            skills.validate_skill_tree(tree)

    def test_mission_skill_requirements_exist(self):
        """Mission required_skills name real skill nodes"""
        catalog = build_default_catalog()
        node_ids = catalog.skill_node_ids()
        for mission in catalog.missions:
            assert set(mission.requirements.required_skills) <= node_ids

    def test_lookups(self):
        """get_* return None, the strict lookups raise"""
        catalog = build_default_catalog()

        assert catalog.get_mission("mission_001").title == "Safe Driver Challenge"
        assert catalog.get_mission("nope") is None
        assert catalog.get_reward("reward_003").coins_cost == 100
        assert catalog.skill_tree("skill_tree_001").get_node("defensive_driving").xp_cost == 50

        with pytest.raises(CatalogEntryNotFoundError):
            catalog.mission("nope")
        with pytest.raises(CatalogEntryNotFoundError):
            catalog.skill_tree("nope")


class TestCatalogValidation:
    """Test structural checks"""

    def test_duplicate_ids_rejected(self):
        """Duplicate reward ids fail model validation"""
        reward = Reward(id="r", type=RewardType.BADGE, title="R")
        with pytest.raises(SchemaValidationError):
            Catalog(rewards=[reward, reward])

    def test_unknown_mission_skill_rejected(self):
        """A mission requiring a skill no tree defines is refused at construction"""
        with pytest.raises(CatalogError):
            Catalog(missions=[
                Mission(
                    id="m",
                    category=MissionCategory.HEALTH,
                    title="M",
                    difficulty=MissionDifficulty.EASY,
                    requirements=MissionRequirements(required_skills=["ghost_skill"]),
                ),
            ])

    def test_unknown_previous_mission_rejected(self):
        """A mission requiring an unknown mission is refused at construction"""
        with pytest.raises(CatalogError):
            Catalog(missions=[
                Mission(
                    id="m",
                    category=MissionCategory.HEALTH,
                    title="M",
                    difficulty=MissionDifficulty.EASY,
                    requirements=MissionRequirements(previous_missions=["ghost_mission"]),
                ),
            ])

    def test_cyclic_tree_rejected_at_construction(self):
        """A two-node requirement loop never becomes a Catalog"""
        tree = make_tree(
            make_node("a", required_skills=["b"]),
            make_node("b", required_skills=["a"]),
        )
        with pytest.raises(SkillTreeCycleError):
            Catalog(skill_trees=[tree])

    def test_children_mismatch_rejected_at_construction(self):
        """children pointers must mirror required_skills"""
        tree = SkillTree(
            id="t",
            category=MissionCategory.HEALTH,
            title="T",
            nodes=[
                SkillNode(id="a", title="A", children=["b"]),
                SkillNode(id="b", title="B"),
            ],
        )
        with pytest.raises(InconsistentSkillTreeError):
            Catalog(skill_trees=[tree])

    def test_check_references_is_repeatable(self, test_catalog):
        """Re-running the checks on a valid catalog returns it unchanged"""
        assert test_catalog.check_references() is test_catalog


class TestLoadCatalog:
    """Test JSON catalog files"""

    def test_round_trip_default_catalog(self, tmp_path):
        """A dumped catalog loads back identically"""
        catalog = build_default_catalog()
        path = tmp_path / "catalog.json"
        path.write_text(catalog.model_dump_json(), encoding="utf-8")

        loaded = load_catalog(path)

        assert [m.id for m in loaded.missions] == [m.id for m in catalog.missions]
        assert loaded.get_reward("reward_004").partner_offer.discount_percentage == 20

    def test_cyclic_tree_refused(self, tmp_path):
        """Cycles are caught at load time"""
        document = {
            "skill_trees": [{
                "id": "loop",
                "category": "health",
                "title": "Loop",
                "nodes": [
                    {"id": "a", "title": "A", "children": ["b"], "requirements": {"required_skills": ["b"]}},
                    {"id": "b", "title": "B", "children": ["a"], "requirements": {"required_skills": ["a"]}},
                ],
            }],
        }
        path = tmp_path / "catalog.json"
        path.write_text(json.dumps(document), encoding="utf-8")

        with pytest.raises(SkillTreeCycleError):
            load_catalog(path)

    def test_schema_errors_propagate(self, tmp_path):
        """Malformed entries fail pydantic validation"""
        path = tmp_path / "catalog.json"
        path.write_text(json.dumps({"rewards": [{"id": "r", "type": "badge", "title": "R", "coins_cost": -1}]}))

        with pytest.raises(SchemaValidationError):
            load_catalog(path)
