"""Unit tests for Pydantic models"""
import pytest
from datetime import datetime, timezone
from pydantic import ValidationError

from lifequest.models.mission import Mission, MissionCategory, MissionDifficulty, UserMission
from lifequest.models.progression import ProgressionState, level_for_xp
from lifequest.models.reward import PartnerOffer, Reward, RewardType, UserReward
from lifequest.models.skill import SkillRequirements, UserSkill


class TestProgressionState:
    """Test ProgressionState model"""

    def test_defaults(self):
        state = ProgressionState(user_id="user_001")
        assert state.xp == 0
        assert state.level == 1
        assert state.lifescore == 0
        assert state.coins == 0
        assert state.streak_days == 0
        assert state.version == 0

    def test_level_is_derived(self):
        """Level always follows xp"""
        assert ProgressionState(user_id="u", xp=250).level == 3
        assert ProgressionState(user_id="u", xp=99).level == 1
        assert level_for_xp(-10) == 1

    def test_level_is_serialized(self):
        data = ProgressionState(user_id="u", xp=300).model_dump()
        assert data["level"] == 4

    def test_serialized_level_is_ignored_on_input(self):
        """A stale stored level cannot override xp"""
        state = ProgressionState.model_validate({"user_id": "u", "xp": 300, "level": 99})
        assert state.level == 4

    @pytest.mark.parametrize("field,value", [
        ("xp", -1), ("coins", -1), ("streak_days", -1), ("lifescore", -1), ("lifescore", 1001),
    ])
    def test_out_of_range_rejected(self, field, value):
        with pytest.raises(ValidationError):
            ProgressionState(user_id="u", **{field: value})

    def test_empty_user_id_rejected(self):
        with pytest.raises(ValidationError):
            ProgressionState(user_id="")

    def test_frozen(self):
        state = ProgressionState(user_id="u")
        with pytest.raises(ValidationError):
            state.xp = 10

    def test_touched_sets_updated_at(self):
        state = ProgressionState(user_id="u").touched(xp=5)
        assert state.xp == 5
        assert state.updated_at is not None


class TestCatalogModels:
    """Test catalog entry models"""

    def test_mission_parses_enums(self):
        mission = Mission(id="m", category="health", title="M", difficulty="epic")
        assert mission.category == MissionCategory.HEALTH
        assert mission.difficulty == MissionDifficulty.EPIC
        assert mission.requirements.min_level is None
        assert mission.is_active is True

    def test_mission_negative_reward_rejected(self):
        with pytest.raises(ValidationError):
            Mission(id="m", category="health", title="M", difficulty="easy", xp_reward=-1)

    def test_skill_requirements_optional(self):
        req = SkillRequirements()
        assert req.required_skills == []
        assert req.xp_required is None

    def test_reward_purchasable(self):
        assert Reward(id="r", type=RewardType.COIN_BOOST, title="R", coins_cost=10).is_purchasable
        assert not Reward(id="r", type=RewardType.BADGE, title="R").is_purchasable

    def test_partner_offer_discount_range(self):
        with pytest.raises(ValidationError):
            PartnerOffer(discount_percentage=150)


class TestUserRecords:
    """Test per-user record models"""

    def test_record_keys(self):
        assert UserMission.key_for("u", "m") == "u_m"
        assert UserReward.key_for("u", "r") == "u_r"
        assert UserSkill(user_id="u", tree_id="t", node_id="n").key == ("t", "n")

    def test_user_mission_progress_bounds(self):
        now = datetime.now(timezone.utc)
        with pytest.raises(ValidationError):
            UserMission(id="x", user_id="u", mission_id="m", progress=101, started_at=now, updated_at=now)
