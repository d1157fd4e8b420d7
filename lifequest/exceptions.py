"""
Standardized exception hierarchy for lifequest
Provides rich context, consistent logging, and user-friendly error messages

Business-rule rejections (double completion, insufficient coins, ...) are NOT
exceptions: they are returned as Rejection codes on operation outcomes
(see lifequest.gamification.outcomes). The classes below cover genuinely
exceptional input: malformed catalogs, unknown catalog references, storage
conflicts and bad configuration.
"""

from datetime import datetime, timezone
from typing import Optional, Dict, Any, List
from uuid import uuid4
import logging

logger = logging.getLogger(__name__)


class LifeQuestError(Exception):
    """
    Base exception for all lifequest errors

    Each error gets a request id and a UTC timestamp, keeps structured
    context for the logs and a separate message that is safe to show in the
    app. It is logged once, at the class's `log_level`, when it is created.

    Subclasses set `default_user_message` for their family and may lower
    `log_level` when the caller is expected to recover (a retry after a
    version conflict, for instance).

    Example:
        raise CatalogEntryNotFoundError(
            message="Skill node 'night_driving' is not in tree 'skill_tree_001'",
            entry_type="skill_node",
            entry_id="night_driving",
            user_id="user_001",
            operation="unlock_skill",
        )
    """

    default_user_message = "An error occurred. Please try again."
    log_level = logging.ERROR

    def __init__(
        self,
        message: str,
        user_id: Optional[str] = None,
        request_id: Optional[str] = None,
        operation: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
        user_message: Optional[str] = None
    ):
        super().__init__(message)
        self.message = message
        self.user_id = user_id
        self.request_id = request_id or str(uuid4())
        self.operation = operation
        self.context = context or {}
        self.cause = cause
        self.user_message = user_message or self.default_user_message
        self.timestamp = datetime.now(timezone.utc)

        self._log_error()

    def _log_error(self) -> None:
        # 'message' and 'context' would clash with LogRecord attributes
        log_data = {
            "error_type": self.__class__.__name__,
            "error_message": self.message,
            "request_id": self.request_id,
            "user_id": self.user_id,
            "operation": self.operation,
            "error_context": self.context,
            "timestamp": self.timestamp.isoformat()
        }
        if self.cause:
            log_data["cause"] = str(self.cause)

        logger.log(
            self.log_level,
            f"{self.__class__.__name__} during {self.operation or 'unknown operation'}: {self.message}",
            extra=log_data,
            exc_info=self.cause,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for callers that report errors as data"""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "user_message": self.user_message,
            "operation": self.operation,
            "request_id": self.request_id,
            "timestamp": self.timestamp.isoformat()
        }


# ==========================================
# Validation Errors (Caller Input)
# ==========================================

class ValidationError(LifeQuestError):
    """
    Raised when caller input fails validation

    Example:
        raise ValidationError(
            message="User id must not be empty",
            field="user_id",
            value=""
        )
    """

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Optional[Any] = None,
        **kwargs
    ):
        self.field = field
        self.value = value
        super().__init__(
            message=message,
            user_message=f"Invalid {field}: {message}" if field else message,
            context={"field": field, "value": value},
            **kwargs
        )


# ==========================================
# Catalog Errors
# ==========================================

class CatalogError(LifeQuestError):
    """
    Base class for malformed catalog data

    Catalogs (missions, skill trees, rewards) are static data; any of these
    errors means the catalog itself must be fixed, not the user request.
    """

    default_user_message = "This content is temporarily unavailable."


class CatalogEntryNotFoundError(CatalogError):
    """A mission, skill tree or skill node id is not in the catalog"""

    def __init__(
        self,
        message: str,
        entry_type: Optional[str] = None,
        entry_id: Optional[str] = None,
        **kwargs
    ):
        self.entry_type = entry_type
        self.entry_id = entry_id
        super().__init__(
            message=message,
            user_message=f"{(entry_type or 'Entry').replace('_', ' ').capitalize()} not found.",
            context={"entry_type": entry_type, "entry_id": entry_id},
            **kwargs
        )


class SkillTreeCycleError(CatalogError):
    """A skill tree's required_skills graph contains a cycle"""

    def __init__(
        self,
        message: str,
        tree_id: Optional[str] = None,
        cycle: Optional[List[str]] = None,
        **kwargs
    ):
        self.tree_id = tree_id
        self.cycle = cycle or []
        super().__init__(
            message=message,
            context={"tree_id": tree_id, "cycle": self.cycle},
            **kwargs
        )


class InconsistentSkillTreeError(CatalogError):
    """A skill tree's children pointers disagree with its required_skills, or reference unknown nodes"""

    def __init__(
        self,
        message: str,
        tree_id: Optional[str] = None,
        node_id: Optional[str] = None,
        **kwargs
    ):
        self.tree_id = tree_id
        self.node_id = node_id
        super().__init__(
            message=message,
            context={"tree_id": tree_id, "node_id": node_id},
            **kwargs
        )


# ==========================================
# Storage Errors
# ==========================================

class StorageError(LifeQuestError):
    """
    Base class for storage-related errors
    """
    pass


class RecordNotFoundError(StorageError):
    """Requested stored record does not exist"""

    def __init__(
        self,
        message: str,
        record_type: Optional[str] = None,
        record_id: Optional[str] = None,
        **kwargs
    ):
        self.record_type = record_type
        self.record_id = record_id
        super().__init__(
            message=message,
            user_message=f"{record_type or 'Record'} not found.",
            context={"record_type": record_type, "record_id": record_id},
            **kwargs
        )


class ConcurrentModificationError(StorageError):
    """A progression state was saved against a stale version"""

    log_level = logging.WARNING

    def __init__(
        self,
        message: str,
        expected_version: Optional[int] = None,
        actual_version: Optional[int] = None,
        **kwargs
    ):
        self.expected_version = expected_version
        self.actual_version = actual_version
        super().__init__(
            message=message,
            user_message="Your progress changed while we were saving. Please try again.",
            context={"expected_version": expected_version, "actual_version": actual_version},
            **kwargs
        )


# ==========================================
# Configuration Errors
# ==========================================

class ConfigurationError(LifeQuestError):
    """System configuration is invalid or missing"""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        **kwargs
    ):
        self.config_key = config_key
        super().__init__(
            message=message,
            user_message="The system is not properly configured. Please contact support.",
            context={"config_key": config_key},
            **kwargs
        )
