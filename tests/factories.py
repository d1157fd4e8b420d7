"""Record and catalog builders shared by the test suite"""
from datetime import datetime, timezone

from lifequest.models.mission import MissionCategory, UserMission
from lifequest.models.progression import ProgressionState
from lifequest.models.reward import UserReward
from lifequest.models.skill import SkillNode, SkillRequirements, SkillTree, UserSkill

NOW = datetime(2024, 1, 15, 10, 0, 0, tzinfo=timezone.utc)


def make_state(user_id="user_001", **fields):
    """ProgressionState with the given fields"""
    return ProgressionState(user_id=user_id, **fields)


def make_node(node_id, xp_cost=0, **requirements):
    return SkillNode(
        id=node_id,
        title=node_id.replace("_", " ").title(),
        xp_cost=xp_cost,
        requirements=SkillRequirements(**requirements),
    )


def make_tree(*nodes, tree_id="tree_test", category=MissionCategory.SAFE_DRIVING):
    """Skill tree with children pointers derived from required_skills"""
    children = {node.id: [] for node in nodes}
    for node in nodes:
        for parent in node.requirements.required_skills:
            children.setdefault(parent, []).append(node.id)
    return SkillTree(
        id=tree_id,
        category=category,
        title="Test Tree",
        nodes=[node.model_copy(update={"children": children[node.id]}) for node in nodes],
    )


def make_user_mission(mission_id, user_id="user_001", now=NOW, **fields):
    return UserMission(
        id=UserMission.key_for(user_id, mission_id),
        user_id=user_id,
        mission_id=mission_id,
        started_at=now,
        updated_at=now,
        **fields,
    )


def make_user_skill(node_id, tree_id="tree_test", user_id="user_001", unlocked=True, **fields):
    fields.setdefault("progress", 100 if unlocked else 0)
    return UserSkill(
        user_id=user_id,
        tree_id=tree_id,
        node_id=node_id,
        unlocked=unlocked,
        **fields,
    )


def make_user_reward(reward_id, user_id="user_001", **fields):
    fields.setdefault("earned_at", NOW)
    return UserReward(
        id=UserReward.key_for(user_id, reward_id),
        user_id=user_id,
        reward_id=reward_id,
        **fields,
    )
