"""Skill tree models for gamification"""
from pydantic import BaseModel, ConfigDict, Field, PrivateAttr
from typing import Dict, Optional
from datetime import datetime

from lifequest.models.mission import MissionCategory
from lifequest.models.progression import MAX_PROGRESS


class SkillRequirements(BaseModel):
    """
    Unlock conditions for a skill node.

    Every field is optional; an unset (None / empty) field imposes no
    condition. required_skills is the source of truth for gating, the
    node's position in the tree is informational only.
    """
    model_config = ConfigDict(frozen=True)

    min_level: Optional[int] = Field(default=None, ge=1)
    required_skills: list[str] = Field(default_factory=list)
    missions_completed: list[str] = Field(default_factory=list)
    xp_required: Optional[int] = Field(default=None, ge=0)
    lifescore_threshold: Optional[int] = Field(default=None, ge=0, le=1000)


class SkillNode(BaseModel):
    """Unlockable node of a skill tree"""
    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    description: str = ""
    xp_cost: int = Field(default=0, ge=0)
    requirements: SkillRequirements = Field(default_factory=SkillRequirements)
    children: list[str] = Field(default_factory=list)
    # Applied on unlock, after xp_cost is deducted
    xp_bonus: int = Field(default=0, ge=0)
    lifescore_impact: int = 0


class SkillTree(BaseModel):
    """Skill tree catalog entry"""
    model_config = ConfigDict(frozen=True)

    id: str
    category: MissionCategory
    title: str
    description: str = ""
    nodes: list[SkillNode] = Field(default_factory=list)
    is_active: bool = True

    _nodes_by_id: Dict[str, SkillNode] = PrivateAttr(default_factory=dict)

    def model_post_init(self, __context) -> None:
        # First occurrence wins; duplicate ids are reported by validate_skill_tree
        for node in self.nodes:
            self._nodes_by_id.setdefault(node.id, node)

    def get_node(self, node_id: str) -> Optional[SkillNode]:
        return self._nodes_by_id.get(node_id)


class UserSkill(BaseModel):
    """A user's state for one skill node, keyed by (tree_id, node_id)"""
    model_config = ConfigDict(frozen=True)

    user_id: str
    tree_id: str
    node_id: str
    unlocked: bool = False
    progress: int = Field(default=0, ge=0, le=MAX_PROGRESS)
    unlocked_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def key(self) -> tuple[str, str]:
        return (self.tree_id, self.node_id)
