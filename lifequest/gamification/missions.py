"""
Mission Lifecycle

Per (user, mission) state machine:

    (no record) --start--> ACTIVE --complete--> COMPLETED (terminal)
                             |
                             +--abandon--> (no record)

Reaching 100% progress completes the mission in the same call, so an
ACTIVE record never sits at 100%. Completion freezes the catalog's current
rewards on the record and applies them exactly once; a second complete is
rejected with ALREADY_COMPLETED and changes nothing.

`user_missions` is always a mapping of mission_id -> UserMission for one user.
"""

from datetime import datetime, timezone
from typing import Collection, Dict, Iterator, List, Mapping, Optional, Tuple
import logging

from lifequest.gamification.catalog import Catalog
from lifequest.gamification.outcomes import MissionOutcome, Rejection
from lifequest.gamification.progression import apply_rewards
from lifequest.models.mission import (
    Mission,
    MissionCategory,
    MissionDifficulty,
    UserMission,
    UserMissionStatus,
)
from lifequest.models.progression import MAX_PROGRESS, ProgressionState

logger = logging.getLogger(__name__)

UserMissions = Mapping[str, UserMission]


def completed_mission_ids(user_missions: UserMissions) -> set:
    return {
        mission_id for mission_id, record in user_missions.items()
        if record.status == UserMissionStatus.COMPLETED
    }


def check_mission_requirements(
    mission: Mission,
    state: ProgressionState,
    user_missions: UserMissions,
    unlocked_skills: Collection[str] = (),
) -> List[str]:
    """
    Names of unmet start requirements for a solo mission

    Collaborative missions always return []: their requirements describe
    the group and are not enforced per user.
    """
    if mission.is_collaborative:
        return []

    req = mission.requirements
    unmet = []

    if req.min_level is not None and state.level < req.min_level:
        unmet.append("min_level")

    completed = completed_mission_ids(user_missions)
    if any(prior not in completed for prior in req.previous_missions):
        unmet.append("previous_missions")

    if any(skill_id not in unlocked_skills for skill_id in req.required_skills):
        unmet.append("required_skills")

    return unmet


def list_available(
    catalog: Catalog,
    state: ProgressionState,
    user_missions: UserMissions,
    unlocked_skills: Collection[str] = (),
) -> Iterator[Mission]:
    """
    Lazily yield startable missions in catalog order

    A mission is available when it is active in the catalog, the user holds
    no record for it (abandoned missions have none), and its requirements
    are met.
    """
    for mission in catalog.missions:
        if not mission.is_active or mission.id in user_missions:
            continue
        if check_mission_requirements(mission, state, user_missions, unlocked_skills):
            continue
        yield mission


def start(
    catalog: Catalog,
    user_missions: UserMissions,
    mission_id: str,
    user_id: str,
    state: Optional[ProgressionState] = None,
    unlocked_skills: Collection[str] = (),
    now: Optional[datetime] = None,
) -> MissionOutcome:
    """
    Start a mission

    Starting is free: the progression state is returned unchanged. Solo
    mission requirements are enforced only when `state` is given.

    Raises:
        CatalogEntryNotFoundError: mission_id is not in the catalog
    """
    mission = catalog.mission(mission_id)
    check_requirements = state is not None
    if state is None:
        state = ProgressionState(user_id=user_id)

    existing = user_missions.get(mission_id)
    if existing is not None:
        logger.info(f"User {user_id} cannot start '{mission_id}': already {existing.status.value}")
        return MissionOutcome.rejected(
            state,
            Rejection.ALREADY_ACTIVE_OR_COMPLETED,
            detail=f"Mission '{mission_id}' is already {existing.status.value}",
            user_mission=existing,
        )

    if not mission.is_active:
        return MissionOutcome.rejected(
            state,
            Rejection.NOT_FOUND,
            detail=f"Mission '{mission_id}' is not currently offered",
        )

    unmet: List[str] = []
    if check_requirements:
        unmet = check_mission_requirements(mission, state, user_missions, unlocked_skills)
    if unmet:
        logger.info(f"User {user_id} cannot start '{mission_id}': unmet {unmet}")
        return MissionOutcome.rejected(
            state,
            Rejection.REQUIREMENTS_NOT_MET,
            detail=f"Requirements not met: {', '.join(unmet)}",
            unmet_requirements=tuple(unmet),
        )

    now = now or datetime.now(timezone.utc)
    user_mission = UserMission(
        id=UserMission.key_for(user_id, mission_id),
        user_id=user_id,
        mission_id=mission_id,
        status=UserMissionStatus.ACTIVE,
        progress=0,
        started_at=now,
        updated_at=now,
    )

    logger.info(f"User {user_id} started mission '{mission_id}'")
    return MissionOutcome(state=state, previous_state=state, user_mission=user_mission)


def update_progress(
    catalog: Catalog,
    user_mission: Optional[UserMission],
    state: ProgressionState,
    progress: int,
    now: Optional[datetime] = None,
) -> MissionOutcome:
    """
    Record progress on an active mission, clamped to [0, 100]

    Progress of 100 completes the mission (and applies its rewards) in the
    same call.
    """
    rejection = _not_active(user_mission, state)
    if rejection is not None:
        return rejection

    progress = min(max(progress, 0), MAX_PROGRESS)
    if progress >= MAX_PROGRESS:
        return complete(catalog, user_mission, state, now=now)

    updated = user_mission.model_copy(update={
        "progress": progress,
        "updated_at": now or datetime.now(timezone.utc),
    })
    logger.debug(f"User {user_mission.user_id} mission '{user_mission.mission_id}' at {progress}%")
    return MissionOutcome(state=state, previous_state=state, user_mission=updated)


def complete(
    catalog: Catalog,
    user_mission: Optional[UserMission],
    state: ProgressionState,
    now: Optional[datetime] = None,
) -> MissionOutcome:
    """
    Complete an active mission and apply its rewards

    XP, LifeScore and coins are applied in that order using the catalog's
    current values, which are frozen on the returned record.

    Returns:
        MissionOutcome with the new state, the completed record and the
        frozen reward amounts; ALREADY_COMPLETED or NOT_ACTIVE otherwise
    """
    rejection = _not_active(user_mission, state)
    if rejection is not None:
        return rejection

    mission = catalog.mission(user_mission.mission_id)
    update = apply_rewards(
        state,
        xp=mission.xp_reward,
        lifescore=mission.lifescore_impact,
        coins=mission.coin_reward,
    )

    now = now or datetime.now(timezone.utc)
    completed = user_mission.model_copy(update={
        "status": UserMissionStatus.COMPLETED,
        "progress": MAX_PROGRESS,
        "completed_at": now,
        "updated_at": now,
        "xp_earned": mission.xp_reward,
        "lifescore_change": mission.lifescore_impact,
        "coins_earned": mission.coin_reward,
    })

    logger.info(
        f"User {user_mission.user_id} completed mission '{mission.id}': "
        f"+{mission.xp_reward} XP, {update.lifescore_delta:+d} LifeScore, +{mission.coin_reward} coins"
    )

    return MissionOutcome(
        state=update.state,
        previous_state=state,
        user_mission=completed,
        xp_earned=mission.xp_reward,
        lifescore_change=mission.lifescore_impact,
        coins_earned=mission.coin_reward,
        completed=True,
    )


def abandon(
    user_missions: UserMissions,
    mission_id: str,
    state: ProgressionState,
) -> Tuple[Dict[str, UserMission], MissionOutcome]:
    """
    Drop an active mission, deleting its record

    Returns:
        (remaining user missions, outcome). Completed missions cannot be
        abandoned.
    """
    record = user_missions.get(mission_id)
    rejection = _not_active(record, state)
    if rejection is not None:
        return dict(user_missions), rejection

    remaining = {key: value for key, value in user_missions.items() if key != mission_id}
    logger.info(f"User {record.user_id} abandoned mission '{mission_id}'")
    return remaining, MissionOutcome(state=state, previous_state=state, user_mission=record)


def _not_active(user_mission: Optional[UserMission], state: ProgressionState) -> Optional[MissionOutcome]:
    if user_mission is None:
        return MissionOutcome.rejected(state, Rejection.NOT_ACTIVE, detail="Mission has not been started")

    if user_mission.status == UserMissionStatus.COMPLETED:
        logger.info(
            f"User {user_mission.user_id} mission '{user_mission.mission_id}' is already completed"
        )
        return MissionOutcome.rejected(
            state,
            Rejection.ALREADY_COMPLETED,
            detail=f"Mission '{user_mission.mission_id}' is already completed",
            user_mission=user_mission,
        )

    if user_mission.status != UserMissionStatus.ACTIVE:
        return MissionOutcome.rejected(
            state,
            Rejection.NOT_ACTIVE,
            detail=f"Mission '{user_mission.mission_id}' is not active",
            user_mission=user_mission,
        )

    return None


# ============================================
# Catalog queries
# ============================================

def filter_missions(
    catalog: Catalog,
    category: Optional[MissionCategory] = None,
    difficulty: Optional[MissionDifficulty] = None,
    collaborative: Optional[bool] = None,
) -> List[Mission]:
    """
    Filter active catalog missions by criteria

    Args:
        category: Filter by mission category
        difficulty: Filter by difficulty level
        collaborative: True for group missions only, False for solo only
    """
    filtered = [m for m in catalog.missions if m.is_active]

    if category:
        filtered = [m for m in filtered if m.category == category]

    if difficulty:
        filtered = [m for m in filtered if m.difficulty == difficulty]

    if collaborative is not None:
        filtered = [m for m in filtered if m.is_collaborative == collaborative]

    return filtered


def search_missions(catalog: Catalog, query: str) -> List[Mission]:
    """Case-insensitive match on title or description"""
    needle = query.strip().lower()
    if not needle:
        return [m for m in catalog.missions if m.is_active]

    return [
        m for m in catalog.missions
        if m.is_active and (needle in m.title.lower() or needle in m.description.lower())
    ]


def get_mission_stats(user_missions: UserMissions) -> Dict[str, int]:
    """
    Aggregate a user's mission records

    Returns:
        {
            'total_started': int,
            'active': int,
            'completed': int,
            'completion_rate': int (0-100),
            'total_xp_earned': int,
            'total_coins_earned': int,
            'total_lifescore_change': int
        }
    """
    records = list(user_missions.values())
    completed = [r for r in records if r.status == UserMissionStatus.COMPLETED]

    return {
        "total_started": len(records),
        "active": sum(1 for r in records if r.status == UserMissionStatus.ACTIVE),
        "completed": len(completed),
        "completion_rate": len(completed) * 100 // len(records) if records else 0,
        "total_xp_earned": sum(r.xp_earned for r in completed),
        "total_coins_earned": sum(r.coins_earned for r in completed),
        "total_lifescore_change": sum(r.lifescore_change for r in completed),
    }
