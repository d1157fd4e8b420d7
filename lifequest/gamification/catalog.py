"""
Catalog - Missions, Skill Trees and Rewards

Static content the engine consumes. A Catalog is immutable once built and
is validated on construction: duplicate ids fail pydantic validation, and
check_references() runs before the instance is returned, so every skill
tree is a consistent, acyclic graph (see skills.validate_skill_tree) and
mission requirements name real missions and skill nodes. Structural
failures raise CatalogError subclasses unchanged.
"""

import logging
from pathlib import Path
from typing import Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, model_validator

from lifequest.exceptions import CatalogEntryNotFoundError, CatalogError
from lifequest.gamification.skills import validate_skill_tree
from lifequest.models.mission import (
    Mission,
    MissionCategory,
    MissionDifficulty,
    MissionRequirements,
)
from lifequest.models.reward import BadgeRarity, PartnerOffer, Reward, RewardType
from lifequest.models.skill import SkillNode, SkillRequirements, SkillTree

logger = logging.getLogger(__name__)


class Catalog(BaseModel):
    """All static gamification content, indexed by id"""
    model_config = ConfigDict(frozen=True)

    missions: List[Mission] = Field(default_factory=list)
    skill_trees: List[SkillTree] = Field(default_factory=list)
    rewards: List[Reward] = Field(default_factory=list)

    _missions_by_id: Dict[str, Mission] = PrivateAttr(default_factory=dict)
    _trees_by_id: Dict[str, SkillTree] = PrivateAttr(default_factory=dict)
    _rewards_by_id: Dict[str, Reward] = PrivateAttr(default_factory=dict)

    @model_validator(mode="after")
    def _validate_structure(self) -> "Catalog":
        for label, entries in (
            ("mission", self.missions),
            ("skill tree", self.skill_trees),
            ("reward", self.rewards),
        ):
            seen = set()
            for entry in entries:
                if entry.id in seen:
                    raise ValueError(f"Duplicate {label} id: {entry.id}")
                seen.add(entry.id)
        return self.check_references()

    def model_post_init(self, __context) -> None:
        self._missions_by_id = {m.id: m for m in self.missions}
        self._trees_by_id = {t.id: t for t in self.skill_trees}
        self._rewards_by_id = {r.id: r for r in self.rewards}

    # Lookups returning None

    def get_mission(self, mission_id: str) -> Optional[Mission]:
        return self._missions_by_id.get(mission_id)

    def get_skill_tree(self, tree_id: str) -> Optional[SkillTree]:
        return self._trees_by_id.get(tree_id)

    def get_reward(self, reward_id: str) -> Optional[Reward]:
        return self._rewards_by_id.get(reward_id)

    # Lookups raising on unknown ids (malformed references)

    def mission(self, mission_id: str) -> Mission:
        mission = self.get_mission(mission_id)
        if mission is None:
            raise CatalogEntryNotFoundError(
                message=f"Mission '{mission_id}' is not in the catalog",
                entry_type="mission",
                entry_id=mission_id,
            )
        return mission

    def skill_tree(self, tree_id: str) -> SkillTree:
        tree = self.get_skill_tree(tree_id)
        if tree is None:
            raise CatalogEntryNotFoundError(
                message=f"Skill tree '{tree_id}' is not in the catalog",
                entry_type="skill_tree",
                entry_id=tree_id,
            )
        return tree

    def skill_node_ids(self) -> set:
        return {node.id for tree in self.skill_trees for node in tree.nodes}

    def check_references(self) -> "Catalog":
        """
        Structural checks that need the whole catalog

        Raises:
            CatalogError: a skill tree is inconsistent or cyclic, or a mission
                references an unknown mission or skill
        """
        for tree in self.skill_trees:
            validate_skill_tree(tree)

        node_ids = self.skill_node_ids()
        mission_ids = {m.id for m in self.missions}
        for mission in self.missions:
            for skill_id in mission.requirements.required_skills:
                if skill_id not in node_ids:
                    raise CatalogError(
                        message=f"Mission '{mission.id}' requires unknown skill '{skill_id}'",
                        context={"mission_id": mission.id, "skill_id": skill_id},
                    )
            for prior_id in mission.requirements.previous_missions:
                if prior_id not in mission_ids:
                    raise CatalogError(
                        message=f"Mission '{mission.id}' requires unknown mission '{prior_id}'",
                        context={"mission_id": mission.id, "previous_mission": prior_id},
                    )

        logger.debug(
            f"Catalog validated: {len(self.missions)} missions, "
            f"{len(self.skill_trees)} skill trees, {len(self.rewards)} rewards"
        )
        return self


def load_catalog(path: Union[str, Path]) -> Catalog:
    """
    Load and validate a catalog from a JSON file

    Args:
        path: JSON document with "missions", "skill_trees" and "rewards" arrays

    Raises:
        pydantic.ValidationError: the document does not match the catalog schema
        CatalogError: the catalog is structurally invalid
    """
    path = Path(path)
    catalog = Catalog.model_validate_json(path.read_text(encoding="utf-8"))
    logger.info(f"Loaded catalog from {path}")
    return catalog


# ============================================
# Built-in Catalog
# ============================================

MISSION_LIBRARY: List[Mission] = [
    Mission(
        id="mission_001",
        category=MissionCategory.SAFE_DRIVING,
        title="Safe Driver Challenge",
        description="Complete 7 consecutive days of safe driving without any violations or accidents.",
        difficulty=MissionDifficulty.MEDIUM,
        xp_reward=75,
        coin_reward=15,
        lifescore_impact=15,
        requirements=MissionRequirements(min_level=2),
        duration_days=7,
    ),
    Mission(
        id="mission_002",
        category=MissionCategory.HEALTH,
        title="Daily Health Check",
        description="Log your daily health metrics including steps, heart rate, and sleep quality.",
        difficulty=MissionDifficulty.EASY,
        xp_reward=25,
        coin_reward=5,
        lifescore_impact=10,
        requirements=MissionRequirements(min_level=1),
        duration_days=1,
    ),
    Mission(
        id="mission_003",
        category=MissionCategory.FINANCIAL_GUARDIAN,
        title="Financial Health Assessment",
        description="Complete a comprehensive financial health assessment and create a protection plan.",
        difficulty=MissionDifficulty.HARD,
        xp_reward=100,
        coin_reward=25,
        lifescore_impact=25,
        requirements=MissionRequirements(
            min_level=3,
            required_skills=["budget_planning", "expense_tracking"],
        ),
        is_collaborative=True,
        max_participants=4,
        duration_days=14,
    ),
    Mission(
        id="mission_004",
        category=MissionCategory.FAMILY_PROTECTION,
        title="Family Safety Plan",
        description="Create a comprehensive family safety and emergency plan with your loved ones.",
        difficulty=MissionDifficulty.MEDIUM,
        xp_reward=60,
        coin_reward=15,
        lifescore_impact=20,
        requirements=MissionRequirements(min_level=2, previous_missions=["mission_001"]),
        is_collaborative=True,
        max_participants=6,
        duration_days=10,
    ),
    Mission(
        id="mission_005",
        category=MissionCategory.LIFESTYLE,
        title="Wellness Journey",
        description="Embark on a 30-day wellness journey focusing on physical and mental health.",
        difficulty=MissionDifficulty.EXPERT,
        xp_reward=150,
        coin_reward=40,
        lifescore_impact=35,
        requirements=MissionRequirements(
            min_level=5,
            required_skills=["stress_management", "meal_preparation"],
        ),
        duration_days=30,
    ),
]


def _node(node_id, title, description, xp_cost, min_level, required=None, children=None, lifescore_impact=0):
    return SkillNode(
        id=node_id,
        title=title,
        description=description,
        xp_cost=xp_cost,
        requirements=SkillRequirements(min_level=min_level, required_skills=required or []),
        children=children or [],
        lifescore_impact=lifescore_impact,
    )


SKILL_TREE_LIBRARY: List[SkillTree] = [
    SkillTree(
        id="skill_tree_001",
        category=MissionCategory.SAFE_DRIVING,
        title="Safe Driving Mastery",
        description="Master the art of safe driving through progressive skill development.",
        nodes=[
            _node("defensive_driving", "Defensive Driving",
                  "Learn to anticipate and avoid potential hazards on the road.",
                  50, 2, children=["speed_control", "distance_keeping"], lifescore_impact=10),
            _node("speed_control", "Speed Control",
                  "Master maintaining appropriate speeds for different road conditions.",
                  30, 1, ["defensive_driving"], ["weather_adaptation"], lifescore_impact=5),
            _node("distance_keeping", "Safe Distance",
                  "Learn to maintain safe following distances in all conditions.",
                  30, 1, ["defensive_driving"], ["emergency_braking"], lifescore_impact=5),
            _node("weather_adaptation", "Weather Adaptation",
                  "Adapt driving techniques for various weather conditions.",
                  40, 3, ["speed_control"], lifescore_impact=8),
            _node("emergency_braking", "Emergency Braking",
                  "Master emergency braking techniques and collision avoidance.",
                  40, 3, ["distance_keeping"], lifescore_impact=8),
        ],
    ),
    SkillTree(
        id="skill_tree_002",
        category=MissionCategory.HEALTH,
        title="Health & Wellness",
        description="Develop comprehensive health and wellness skills for better life protection.",
        nodes=[
            _node("fitness_tracking", "Fitness Tracking",
                  "Track your daily physical activity and fitness metrics.",
                  25, 1, children=["nutrition_planning", "sleep_optimization"], lifescore_impact=5),
            _node("nutrition_planning", "Nutrition Planning",
                  "Plan balanced meals that support your health goals.",
                  35, 2, ["fitness_tracking"], ["meal_preparation"], lifescore_impact=8),
            _node("sleep_optimization", "Sleep Optimization",
                  "Build habits for consistent, restorative sleep.",
                  35, 2, ["fitness_tracking"], ["stress_management"], lifescore_impact=8),
            _node("meal_preparation", "Meal Preparation",
                  "Prepare healthy meals ahead of time.",
                  45, 3, ["nutrition_planning"], lifescore_impact=10),
            _node("stress_management", "Stress Management",
                  "Learn techniques to manage everyday stress.",
                  45, 3, ["sleep_optimization"], lifescore_impact=10),
        ],
    ),
    SkillTree(
        id="skill_tree_003",
        category=MissionCategory.FINANCIAL_GUARDIAN,
        title="Financial Protection",
        description="Build financial resilience and protect your family's future.",
        nodes=[
            _node("budget_planning", "Budget Planning",
                  "Create and stick to a monthly budget.",
                  40, 2, children=["expense_tracking", "savings_strategy"], lifescore_impact=8),
            _node("expense_tracking", "Expense Tracking",
                  "Track where your money goes every month.",
                  30, 1, ["budget_planning"], ["financial_analysis"], lifescore_impact=5),
            _node("savings_strategy", "Savings Strategy",
                  "Set up automatic savings toward your goals.",
                  35, 2, ["budget_planning"], ["investment_basics"], lifescore_impact=8),
            _node("financial_analysis", "Financial Analysis",
                  "Analyze your finances to spot risks and opportunities.",
                  50, 4, ["expense_tracking"], lifescore_impact=12),
            _node("investment_basics", "Investment Basics",
                  "Understand the fundamentals of long-term investing.",
                  60, 5, ["savings_strategy"], lifescore_impact=12),
        ],
    ),
]


REWARD_LIBRARY: List[Reward] = [
    Reward(
        id="reward_001",
        type=RewardType.BADGE,
        title="Safe Driver",
        description="Earned for completing 7 days of safe driving",
        badge_rarity=BadgeRarity.RARE,
    ),
    Reward(
        id="reward_002",
        type=RewardType.BADGE,
        title="Health Champion",
        description="Earned for maintaining 30 days of health tracking",
        badge_rarity=BadgeRarity.EPIC,
    ),
    Reward(
        id="reward_003",
        type=RewardType.COIN_BOOST,
        title="XP Multiplier",
        description="Double XP for the next 7 days",
        coins_cost=100,
        badge_rarity=BadgeRarity.COMMON,
    ),
    Reward(
        id="reward_004",
        type=RewardType.PARTNER_OFFER,
        title="Fitness Center Discount",
        description="20% discount at partner fitness centers",
        coins_cost=50,
        badge_rarity=BadgeRarity.RARE,
        partner_offer=PartnerOffer(
            partner_name="FitLife Centers",
            discount_percentage=20,
            category="fitness",
        ),
    ),
    Reward(
        id="reward_005",
        type=RewardType.STREAK_BONUS,
        title="Streak Master",
        description="Maintained a 30-day activity streak",
        badge_rarity=BadgeRarity.LEGENDARY,
    ),
    Reward(
        id="reward_006",
        type=RewardType.ACHIEVEMENT,
        title="Level 10 Master",
        description="Reached level 10",
        badge_rarity=BadgeRarity.EPIC,
    ),
]


def build_default_catalog() -> Catalog:
    """Validated catalog from the built-in libraries"""
    return Catalog(
        missions=MISSION_LIBRARY,
        skill_trees=SKILL_TREE_LIBRARY,
        rewards=REWARD_LIBRARY,
    )
