"""
GamificationService - Per-user gamification facade

Queries and commands over one user's progression, missions, skills and
rewards. Every command runs inside that user's critical section:

    lock(user) -> load -> pure operation -> save on success -> unlock

so two concurrent commands for the same user can never both read the old
state and both apply rewards. The state and the record it belongs to go to
the repository in a single save_progress call, a compare-and-swap on
ProgressionState.version that also catches writers outside this process. A
failed write leaves neither behind. Rejected operations write nothing.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import replace
from typing import Any, Dict, List, Optional

from lifequest.db.repository import ProgressionRepository
from lifequest.exceptions import CatalogEntryNotFoundError, ValidationError
from lifequest.gamification import missions, rewards, skills
from lifequest.gamification.catalog import Catalog
from lifequest.gamification.outcomes import (
    MissionOutcome,
    Outcome,
    RewardOutcome,
    SkillOutcome,
)
from lifequest.gamification.progression import (
    apply_streak,
    calculate_level_from_xp,
    get_lifescore_label,
    reset,
)
from lifequest.models.mission import Mission, UserMission, UserMissionStatus
from lifequest.models.progression import ProgressionState
from lifequest.models.reward import RewardContext, UserReward
from lifequest.models.skill import UserSkill
from lifequest.monitoring.prometheus_metrics import PrometheusMetrics, metrics, track_operation

logger = logging.getLogger(__name__)


class GamificationService:
    """
    Service for gamification features.

    Responsibilities:
    - Loading and saving a user's records through the repository
    - Serializing commands per user
    - Mission lifecycle, skill unlocks, reward redemption
    - Streak tracking and progress summaries
    """

    def __init__(
        self,
        repository: ProgressionRepository,
        catalog: Catalog,
        metrics_collector: Optional[PrometheusMetrics] = None,
    ):
        """
        Initialize GamificationService.

        Args:
            repository: Storage for progression records
            catalog: Validated missions, skill trees and rewards
            metrics_collector: Prometheus metrics (defaults to the global instance)
        """
        self.repository = repository
        self.catalog = catalog
        self.metrics = metrics_collector or metrics
        self._locks: Dict[str, asyncio.Lock] = {}
        self._lock_users: Dict[str, int] = {}
        logger.debug("GamificationService initialized")

    @asynccontextmanager
    async def _user_lock(self, user_id: str):
        """
        Hold the user's critical section

        A lock lives only while some command holds or awaits it, so the
        lock table never outgrows the number of users with work in flight.
        """
        if not user_id:
            raise ValidationError(message="User id must not be empty", field="user_id", value=user_id)

        lock = self._locks.setdefault(user_id, asyncio.Lock())
        self._lock_users[user_id] = self._lock_users.get(user_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[user_id] -= 1
            if self._lock_users[user_id] == 0:
                del self._lock_users[user_id]
                del self._locks[user_id]

    async def _save(self, outcome: Outcome, **records) -> Outcome:
        """Store the outcome's state and records in one write, against the version it was derived from"""
        stored = await self.repository.save_progress(
            outcome.state,
            expected_version=outcome.previous_state.version,
            **records,
        )
        return replace(outcome, state=stored)

    async def _unlocked_skill_ids(self, user_id: str) -> set:
        user_skills = await self.repository.get_user_skills(user_id)
        return {node_id for (_, node_id), skill in user_skills.items() if skill.unlocked}

    async def _tree_skills(self, user_id: str, tree_id: str) -> Dict[str, UserSkill]:
        user_skills = await self.repository.get_user_skills(user_id)
        return {node_id: skill for (t_id, node_id), skill in user_skills.items() if t_id == tree_id}

    # ==========================================
    # Queries
    # ==========================================

    async def get_state(self, user_id: str) -> ProgressionState:
        return await self.repository.load_state(user_id)

    async def get_missions(
        self,
        user_id: str,
        status: Optional[UserMissionStatus] = None
    ) -> List[UserMission]:
        """User's mission records, optionally filtered by status, in catalog order"""
        user_missions = await self.repository.get_user_missions(user_id)
        order = {m.id: i for i, m in enumerate(self.catalog.missions)}
        records = sorted(user_missions.values(), key=lambda r: order.get(r.mission_id, len(order)))
        if status is not None:
            records = [r for r in records if r.status == status]
        return records

    async def get_available_missions(self, user_id: str) -> List[Mission]:
        state = await self.repository.load_state(user_id)
        user_missions = await self.repository.get_user_missions(user_id)
        unlocked = await self._unlocked_skill_ids(user_id)
        return list(missions.list_available(self.catalog, state, user_missions, unlocked))

    async def get_skill_overview(self, user_id: str) -> List[Dict[str, Any]]:
        """
        Per-tree skill status

        Returns:
            [
                {
                    'tree_id': str,
                    'title': str,
                    'unlocked_nodes': list[str],
                    'unlockable_nodes': list[str],
                    'locked_nodes': list[str],  # neither unlocked nor unlockable
                    'progress_percent': int
                },
                ...
            ]
        """
        state = await self.repository.load_state(user_id)
        user_missions = await self.repository.get_user_missions(user_id)
        completed = missions.completed_mission_ids(user_missions)

        overview = []
        for tree in self.catalog.skill_trees:
            if not tree.is_active:
                continue
            tree_skills = await self._tree_skills(user_id, tree.id)
            progress = skills.get_tree_progress(tree, tree_skills)
            unlockable = [n.id for n in skills.get_unlockable(tree, tree_skills, state, completed)]
            overview.append({
                "tree_id": tree.id,
                "title": tree.title,
                "unlocked_nodes": progress["unlocked_nodes"],
                "unlockable_nodes": unlockable,
                "locked_nodes": [n for n in progress["locked_nodes"] if n not in unlockable],
                "progress_percent": progress["progress_percent"],
            })
        return overview

    async def get_rewards(self, user_id: str) -> List[UserReward]:
        """Owned rewards, oldest first"""
        ledger = await self.repository.get_user_rewards(user_id)
        return sorted(ledger.values(), key=lambda r: r.earned_at)

    async def get_progress_summary(self, user_id: str) -> Dict[str, Any]:
        """
        Dashboard numbers for one user

        Returns:
            {
                'state': dict,
                'level': {...},  # see calculate_level_from_xp
                'lifescore_label': str,
                'missions': {...},  # see missions.get_mission_stats
                'skills': {...},  # see skills.get_skill_stats
                'rewards': {...}  # see rewards.get_reward_stats
            }
        """
        state = await self.repository.load_state(user_id)
        user_missions = await self.repository.get_user_missions(user_id)
        ledger = await self.repository.get_user_rewards(user_id)

        skills_by_tree = {}
        for tree in self.catalog.skill_trees:
            skills_by_tree[tree.id] = await self._tree_skills(user_id, tree.id)

        return {
            "state": state.model_dump(mode="json"),
            "level": calculate_level_from_xp(state.xp),
            "lifescore_label": get_lifescore_label(state.lifescore),
            "missions": missions.get_mission_stats(user_missions),
            "skills": skills.get_skill_stats(self.catalog.skill_trees, skills_by_tree),
            "rewards": rewards.get_reward_stats(self.catalog, ledger),
        }

    # ==========================================
    # Mission Commands
    # ==========================================

    async def start_mission(self, user_id: str, mission_id: str) -> MissionOutcome:
        with track_operation("start_mission", self.metrics):
            async with self._user_lock(user_id):
                state = await self.repository.load_state(user_id)
                user_missions = await self.repository.get_user_missions(user_id)
                unlocked = await self._unlocked_skill_ids(user_id)

                outcome = missions.start(
                    self.catalog, user_missions, mission_id, user_id,
                    state=state, unlocked_skills=unlocked,
                )
                if outcome.ok:
                    outcome = await self._save(outcome, user_mission=outcome.user_mission)

                self.metrics.record_outcome("start_mission", outcome)
                return outcome

    async def update_mission_progress(self, user_id: str, mission_id: str, progress: int) -> MissionOutcome:
        """Progress of 100 completes the mission and applies its rewards"""
        with track_operation("update_mission_progress", self.metrics):
            async with self._user_lock(user_id):
                state = await self.repository.load_state(user_id)
                user_missions = await self.repository.get_user_missions(user_id)

                outcome = missions.update_progress(
                    self.catalog, user_missions.get(mission_id), state, progress
                )
                if outcome.ok:
                    outcome = await self._save(outcome, user_mission=outcome.user_mission)

                self.metrics.record_outcome("update_mission_progress", outcome)
                return outcome

    async def complete_mission(self, user_id: str, mission_id: str) -> MissionOutcome:
        with track_operation("complete_mission", self.metrics):
            async with self._user_lock(user_id):
                state = await self.repository.load_state(user_id)
                user_missions = await self.repository.get_user_missions(user_id)

                outcome = missions.complete(self.catalog, user_missions.get(mission_id), state)
                if outcome.ok:
                    outcome = await self._save(outcome, user_mission=outcome.user_mission)

                self.metrics.record_outcome("complete_mission", outcome)
                return outcome

    async def abandon_mission(self, user_id: str, mission_id: str) -> MissionOutcome:
        with track_operation("abandon_mission", self.metrics):
            async with self._user_lock(user_id):
                state = await self.repository.load_state(user_id)
                user_missions = await self.repository.get_user_missions(user_id)

                _, outcome = missions.abandon(user_missions, mission_id, state)
                if outcome.ok:
                    outcome = await self._save(outcome, removed_mission_id=mission_id)

                self.metrics.record_outcome("abandon_mission", outcome)
                return outcome

    # ==========================================
    # Skill Commands
    # ==========================================

    async def unlock_skill(self, user_id: str, tree_id: str, node_id: str) -> SkillOutcome:
        with track_operation("unlock_skill", self.metrics):
            tree = self.catalog.skill_tree(tree_id)
            async with self._user_lock(user_id):
                state = await self.repository.load_state(user_id)
                tree_skills = await self._tree_skills(user_id, tree_id)
                user_missions = await self.repository.get_user_missions(user_id)

                outcome = skills.unlock(
                    tree, tree_skills, state, node_id, user_id,
                    completed_missions=missions.completed_mission_ids(user_missions),
                )
                if outcome.ok:
                    outcome = await self._save(outcome, user_skill=outcome.user_skill)

                self.metrics.record_outcome("unlock_skill", outcome)
                return outcome

    async def update_skill_progress(self, user_id: str, tree_id: str, node_id: str, progress: int) -> SkillOutcome:
        with track_operation("update_skill_progress", self.metrics):
            tree = self.catalog.skill_tree(tree_id)
            if tree.get_node(node_id) is None:
                raise CatalogEntryNotFoundError(
                    message=f"Skill node '{node_id}' is not in tree '{tree_id}'",
                    entry_type="skill_node",
                    entry_id=node_id,
                    user_id=user_id,
                    operation="update_skill_progress",
                )

            async with self._user_lock(user_id):
                state = await self.repository.load_state(user_id)
                tree_skills = await self._tree_skills(user_id, tree_id)
                user_skill = tree_skills.get(node_id) or UserSkill(
                    user_id=user_id, tree_id=tree_id, node_id=node_id
                )

                outcome = skills.update_skill_progress(user_skill, state, progress)
                if outcome.ok:
                    await self.repository.save_user_skill(outcome.user_skill)

                self.metrics.record_outcome("update_skill_progress", outcome)
                return outcome

    # ==========================================
    # Reward Commands
    # ==========================================

    async def redeem_reward(self, user_id: str, reward_id: str) -> RewardOutcome:
        with track_operation("redeem_reward", self.metrics):
            async with self._user_lock(user_id):
                state = await self.repository.load_state(user_id)
                ledger = await self.repository.get_user_rewards(user_id)

                outcome = rewards.redeem(self.catalog, ledger, state, reward_id, user_id)
                if outcome.ok:
                    outcome = await self._save(outcome, user_reward=outcome.user_reward)

                self.metrics.record_outcome("redeem_reward", outcome)
                return outcome

    async def earn_reward(
        self,
        user_id: str,
        reward_id: str,
        context: Optional[RewardContext] = None
    ) -> RewardOutcome:
        with track_operation("earn_reward", self.metrics):
            async with self._user_lock(user_id):
                state = await self.repository.load_state(user_id)
                ledger = await self.repository.get_user_rewards(user_id)

                outcome = rewards.earn(self.catalog, ledger, state, reward_id, user_id, context=context)
                if outcome.ok:
                    outcome = await self._save(outcome, user_reward=outcome.user_reward)

                self.metrics.record_outcome("earn_reward", outcome)
                return outcome

    # ==========================================
    # Streak and Reset
    # ==========================================

    async def record_activity(self, user_id: str, active: bool = True) -> Outcome:
        """Advance the streak for an active day, or step it down for a missed one"""
        with track_operation("record_activity", self.metrics):
            async with self._user_lock(user_id):
                state = await self.repository.load_state(user_id)
                update = apply_streak(state, increment=active)

                outcome = await self._save(Outcome(state=update.state, previous_state=state))
                logger.debug(f"User {user_id} streak {state.streak_days} -> {outcome.state.streak_days}")

                self.metrics.record_outcome("record_activity", outcome)
                return outcome

    async def reset_user(self, user_id: str) -> ProgressionState:
        """Wipe missions, skills and rewards and start progression over"""
        with track_operation("reset_user", self.metrics):
            async with self._user_lock(user_id):
                state = await self.repository.load_state(user_id)
                stored = await self.repository.reset_user(user_id, reset(state).state)
                logger.info(f"Gamification reset for user {user_id}")
                return stored
