"""
Skill Tree Resolver

Decides which skill nodes a user can unlock and performs the unlock.

Gating is local: a node lists its own requirements (level, XP, LifeScore,
completed missions and prerequisite skills). Because a prerequisite must
already be unlocked, the tree is enforced one unlock at a time and no
graph walk happens per call. Catalog-load validation (validate_skill_tree)
guarantees the prerequisite graph is acyclic and that the informational
`children` pointers mirror `required_skills`.

Requirement names reported back to callers:
- min_level, required_skills, missions_completed, xp_required, lifescore_threshold
"""

from datetime import datetime, timezone
from typing import Collection, Dict, List, Mapping, Optional
import logging

from lifequest.exceptions import (
    CatalogEntryNotFoundError,
    InconsistentSkillTreeError,
    SkillTreeCycleError,
)
from lifequest.gamification.outcomes import Rejection, SkillOutcome
from lifequest.gamification.progression import apply_lifescore, apply_xp
from lifequest.models.progression import MAX_PROGRESS, ProgressionState
from lifequest.models.skill import SkillNode, SkillTree, UserSkill

logger = logging.getLogger(__name__)

UserSkills = Mapping[str, UserSkill]  # node_id -> UserSkill, one tree


def unlocked_node_ids(user_skills: UserSkills) -> set:
    return {node_id for node_id, skill in user_skills.items() if skill.unlocked}


def check_skill_requirements(
    node: SkillNode,
    user_skills: UserSkills,
    state: ProgressionState,
    completed_missions: Collection[str] = (),
) -> List[str]:
    """
    List the requirements of `node` the user does not meet

    Returns:
        Names of unmet requirements, empty when the node may be unlocked
        (ignoring whether it is already unlocked and whether XP is affordable)
    """
    req = node.requirements
    unmet = []
    unlocked = unlocked_node_ids(user_skills)

    if req.min_level is not None and state.level < req.min_level:
        unmet.append("min_level")

    if any(skill_id not in unlocked for skill_id in req.required_skills):
        unmet.append("required_skills")

    if any(mission_id not in completed_missions for mission_id in req.missions_completed):
        unmet.append("missions_completed")

    if req.xp_required is not None and state.xp < req.xp_required:
        unmet.append("xp_required")

    if req.lifescore_threshold is not None and state.lifescore < req.lifescore_threshold:
        unmet.append("lifescore_threshold")

    return unmet


def is_unlocked(user_skills: UserSkills, node_id: str) -> bool:
    skill = user_skills.get(node_id)
    return bool(skill and skill.unlocked)


def get_unlockable(
    tree: SkillTree,
    user_skills: UserSkills,
    state: ProgressionState,
    completed_missions: Collection[str] = (),
) -> List[SkillNode]:
    """Nodes not yet unlocked whose requirements all hold, in tree order"""
    return [
        node for node in tree.nodes
        if not is_unlocked(user_skills, node.id)
        and not check_skill_requirements(node, user_skills, state, completed_missions)
    ]


def unlock(
    tree: SkillTree,
    user_skills: UserSkills,
    state: ProgressionState,
    node_id: str,
    user_id: Optional[str] = None,
    completed_missions: Collection[str] = (),
    now: Optional[datetime] = None,
) -> SkillOutcome:
    """
    Unlock a skill node, spending its XP cost

    Checks, in order: already unlocked, tree still offered, requirements,
    XP affordability.
    On success the XP cost is deducted, then the node's xp_bonus and
    lifescore_impact are applied, and the UserSkill is returned unlocked
    with progress 100.

    Raises:
        CatalogEntryNotFoundError: node_id is not part of the tree
    """
    node = tree.get_node(node_id)
    if node is None:
        raise CatalogEntryNotFoundError(
            message=f"Skill node '{node_id}' is not in tree '{tree.id}'",
            entry_type="skill_node",
            entry_id=node_id,
            user_id=user_id or state.user_id,
            operation="unlock_skill",
        )

    user_id = user_id or state.user_id

    if is_unlocked(user_skills, node_id):
        logger.info(f"User {user_id} tried to unlock '{node_id}' again: already unlocked")
        return SkillOutcome.rejected(
            state,
            Rejection.ALREADY_UNLOCKED,
            detail=f"Skill '{node_id}' is already unlocked",
            user_skill=user_skills.get(node_id),
        )

    if not tree.is_active:
        return SkillOutcome.rejected(
            state,
            Rejection.NOT_FOUND,
            detail=f"Skill tree '{tree.id}' is not currently offered",
        )

    unmet = check_skill_requirements(node, user_skills, state, completed_missions)
    if unmet:
        logger.info(f"User {user_id} cannot unlock '{node_id}': unmet {unmet}")
        return SkillOutcome.rejected(
            state,
            Rejection.REQUIREMENTS_NOT_MET,
            detail=f"Requirements not met: {', '.join(unmet)}",
            unmet_requirements=tuple(unmet),
        )

    if node.xp_cost > state.xp:
        logger.info(f"User {user_id} cannot afford '{node_id}': costs {node.xp_cost} XP, has {state.xp}")
        return SkillOutcome.rejected(
            state,
            Rejection.INSUFFICIENT_XP,
            detail=f"Skill '{node_id}' costs {node.xp_cost} XP, only {state.xp} available",
        )

    new_state = apply_xp(state, -node.xp_cost).state
    if node.xp_bonus:
        new_state = apply_xp(new_state, node.xp_bonus).state
    if node.lifescore_impact:
        new_state = apply_lifescore(new_state, node.lifescore_impact).state

    now = now or datetime.now(timezone.utc)
    user_skill = UserSkill(
        user_id=user_id,
        tree_id=tree.id,
        node_id=node_id,
        unlocked=True,
        progress=MAX_PROGRESS,
        unlocked_at=now,
        updated_at=now,
    )

    logger.info(
        f"User {user_id} unlocked skill '{node_id}' in '{tree.id}' "
        f"for {node.xp_cost} XP (+{node.lifescore_impact} LifeScore)"
    )

    return SkillOutcome(
        state=new_state,
        previous_state=state,
        user_skill=user_skill,
        xp_spent=node.xp_cost,
    )


def update_skill_progress(
    user_skill: UserSkill,
    state: ProgressionState,
    progress: int,
    now: Optional[datetime] = None,
) -> SkillOutcome:
    """Set practice progress on an unlocked skill, clamped to [0, 100]"""
    if not user_skill.unlocked:
        return SkillOutcome.rejected(
            state,
            Rejection.REQUIREMENTS_NOT_MET,
            detail=f"Skill '{user_skill.node_id}' is locked",
            user_skill=user_skill,
        )

    updated = user_skill.model_copy(update={
        "progress": min(max(progress, 0), MAX_PROGRESS),
        "updated_at": now or datetime.now(timezone.utc),
    })
    return SkillOutcome(state=state, previous_state=state, user_skill=updated)


def get_prerequisite_chain(tree: SkillTree, node_id: str) -> List[str]:
    """
    All skills that must be unlocked before `node_id`, nearest first

    Each node is visited at most once, so this terminates even on a
    catalog that slipped past validation with a cycle.
    """
    chain: List[str] = []
    seen = {node_id}
    frontier = [node_id]

    while frontier:
        current = tree.get_node(frontier.pop(0))
        if current is None:
            continue
        for required in current.requirements.required_skills:
            if required not in seen:
                seen.add(required)
                chain.append(required)
                frontier.append(required)

    return chain


def get_tree_progress(tree: SkillTree, user_skills: UserSkills) -> Dict[str, object]:
    """
    Summarize one tree for a user

    Returns:
        {
            'tree_id': str,
            'unlocked_nodes': list[str],
            'locked_nodes': list[str],
            'progress_percent': int  # mean node progress over the whole tree
        }
    """
    unlocked = [node.id for node in tree.nodes if is_unlocked(user_skills, node.id)]
    locked = [node.id for node in tree.nodes if node.id not in unlocked]

    total = sum(user_skills[node.id].progress for node in tree.nodes if node.id in user_skills)
    max_total = len(tree.nodes) * 100

    return {
        "tree_id": tree.id,
        "unlocked_nodes": unlocked,
        "locked_nodes": locked,
        "progress_percent": total * 100 // max_total if max_total else 0,
    }


def get_skill_stats(trees: Collection[SkillTree], skills_by_tree: Mapping[str, UserSkills]) -> Dict[str, object]:
    """Unlock counts across trees plus per-category unlocked percentage"""
    unlocked_total = 0
    node_total = 0
    category_progress: Dict[str, int] = {}

    for tree in trees:
        user_skills = skills_by_tree.get(tree.id, {})
        unlocked = sum(1 for node in tree.nodes if is_unlocked(user_skills, node.id))
        unlocked_total += unlocked
        node_total += len(tree.nodes)
        category_progress[tree.category.value] = unlocked * 100 // len(tree.nodes) if tree.nodes else 0

    return {
        "total_skills": node_total,
        "unlocked_skills": unlocked_total,
        "locked_skills": node_total - unlocked_total,
        "category_progress": category_progress,
    }


# ============================================
# Catalog Validation
# ============================================

def validate_skill_tree(tree: SkillTree) -> None:
    """
    Check a tree at catalog-load time

    - every required skill and child names a node of the same tree
    - `children` mirrors `required_skills`: C in P.children iff P in C.required_skills
    - the required_skills graph is acyclic

    Raises:
        InconsistentSkillTreeError, SkillTreeCycleError
    """
    nodes = {node.id: node for node in tree.nodes}
    if len(nodes) != len(tree.nodes):
        raise InconsistentSkillTreeError(
            message=f"Skill tree '{tree.id}' has duplicate node ids",
            tree_id=tree.id,
        )

    for node in tree.nodes:
        for ref in list(node.requirements.required_skills) + list(node.children):
            if ref not in nodes:
                raise InconsistentSkillTreeError(
                    message=f"Node '{node.id}' in tree '{tree.id}' references unknown node '{ref}'",
                    tree_id=tree.id,
                    node_id=node.id,
                )

    for node in tree.nodes:
        for child_id in node.children:
            if node.id not in nodes[child_id].requirements.required_skills:
                raise InconsistentSkillTreeError(
                    message=f"'{child_id}' is a child of '{node.id}' but does not require it",
                    tree_id=tree.id,
                    node_id=child_id,
                )
        for parent_id in node.requirements.required_skills:
            if node.id not in nodes[parent_id].children:
                raise InconsistentSkillTreeError(
                    message=f"'{node.id}' requires '{parent_id}' but is not listed among its children",
                    tree_id=tree.id,
                    node_id=node.id,
                )

    cycle = _find_cycle(nodes)
    if cycle:
        raise SkillTreeCycleError(
            message=f"Skill tree '{tree.id}' has a prerequisite cycle: {' -> '.join(cycle)}",
            tree_id=tree.id,
            cycle=cycle,
        )


def _find_cycle(nodes: Mapping[str, SkillNode]) -> List[str]:
    """Iterative three-colour DFS over required_skills; returns one cycle or []"""
    WHITE, GREY, BLACK = 0, 1, 2
    colour = {node_id: WHITE for node_id in nodes}

    for root in nodes:
        if colour[root] != WHITE:
            continue
        path = [root]
        stack = [iter(nodes[root].requirements.required_skills)]
        colour[root] = GREY

        while stack:
            nxt = next(stack[-1], None)
            if nxt is None:
                stack.pop()
                colour[path.pop()] = BLACK
                continue
            if colour[nxt] == GREY:
                return path[path.index(nxt):] + [nxt]
            if colour[nxt] == WHITE:
                colour[nxt] = GREY
                path.append(nxt)
                stack.append(iter(nodes[nxt].requirements.required_skills))

    return []
