# ============================================================================
# PROCESS GROUP MODEL
# ============================================================================
# STATUS: Core model - Process group identity and runtime state
# PURPOSE: Track one worker process slot: identity, conditions, removal flags
# CREATED: 06 OCT 2026
# EXPORTS: ProcessGroupID, ProcessGroupCondition, ProcessGroupStatus
# DEPENDENCIES: pydantic
# ============================================================================
"""
Process Group Model

ProcessGroupStatus tracks the runtime state of a single process group.

Key concept:
- ProcessCounts in the cluster spec = DESIRED (how many per class)
- ProcessGroupStatus = OBSERVED (one record per allocated slot)

Records live in the cluster's status document as an ordered list.
Sub-reconcilers mutate them in place and persist the whole list with a
single optimistic write.
"""

import re
from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from core.contracts import ProcessClass, ProcessGroupConditionType
from core.errors import InvalidProcessGroupIDError

_PROCESS_GROUP_ID_PATTERN = re.compile(
    r"^(?:(?P<prefix>.+)-)?(?P<process_class>[a-z_]+)-(?P<index>\d+)$"
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ProcessGroupID(BaseModel):
    """
    Composite process group identity: (process_class, index).

    String form is "<class>-<index>", or "<prefix>-<class>-<index>" when
    the cluster declares a process group ID prefix.
    """

    process_class: ProcessClass
    index: int = Field(..., ge=1)
    prefix: Optional[str] = Field(default=None, max_length=128)

    model_config = {"frozen": True}

    def __str__(self) -> str:
        if self.prefix:
            return f"{self.prefix}-{self.process_class.value}-{self.index}"
        return f"{self.process_class.value}-{self.index}"

    @classmethod
    def parse(cls, value: str) -> "ProcessGroupID":
        """
        Parse a process group ID string.

        Raises:
            InvalidProcessGroupIDError: if the string is not a valid ID
        """
        match = _PROCESS_GROUP_ID_PATTERN.match(value or "")
        if match is None:
            raise InvalidProcessGroupIDError(value)

        try:
            process_class = ProcessClass(match.group("process_class"))
        except ValueError:
            raise InvalidProcessGroupIDError(value) from None

        index = int(match.group("index"))
        if index < 1:
            raise InvalidProcessGroupIDError(value)

        return cls(
            process_class=process_class,
            index=index,
            prefix=match.group("prefix"),
        )


class ProcessGroupCondition(BaseModel):
    """A condition observed on a process group, with the time it was first seen."""

    type: ProcessGroupConditionType
    timestamp: datetime = Field(default_factory=_utcnow)


class ProcessGroupStatus(BaseModel):
    """
    Runtime state of one process group.

    Lifecycle:
        1. Created by the allocator with no conditions, both flags false
        2. Conditions added/removed as observation changes
        3. marked_for_removal set when the group is decommissioned
        4. excluded set once the database confirms it holds no data
        5. Dropped from the status list once the process is confirmed gone
    """

    process_group_id: str = Field(..., max_length=253)
    process_class: ProcessClass
    addresses: List[str] = Field(default_factory=list)
    conditions: List[ProcessGroupCondition] = Field(default_factory=list)
    marked_for_removal: bool = False
    excluded: bool = False

    @field_validator("conditions")
    @classmethod
    def normalize_conditions(cls, v: List[ProcessGroupCondition]) -> List[ProcessGroupCondition]:
        """One condition per type, earliest timestamp wins; synthetic Ready is dropped."""
        earliest = {}
        for condition in v:
            if condition.type.is_synthetic():
                continue
            seen = earliest.get(condition.type)
            if seen is None or condition.timestamp < seen.timestamp:
                earliest[condition.type] = condition
        return [c for c in v if earliest.get(c.type) is c]

    @classmethod
    def new(cls, process_group_id: ProcessGroupID) -> "ProcessGroupStatus":
        """Create a fresh record for a newly allocated identity."""
        return cls(
            process_group_id=str(process_group_id),
            process_class=process_group_id.process_class,
        )

    @property
    def id(self) -> ProcessGroupID:
        """Parsed identity. Raises InvalidProcessGroupIDError if corrupt."""
        return ProcessGroupID.parse(self.process_group_id)

    @property
    def condition_types(self) -> List[ProcessGroupConditionType]:
        return [condition.type for condition in self.conditions]

    def has_condition(self, condition_type: ProcessGroupConditionType) -> bool:
        return any(c.type == condition_type for c in self.conditions)

    def get_condition(
        self,
        condition_type: ProcessGroupConditionType,
    ) -> Optional[ProcessGroupCondition]:
        for condition in self.conditions:
            if condition.type == condition_type:
                return condition
        return None

    def condition_age(
        self,
        condition_type: ProcessGroupConditionType,
        now: Optional[datetime] = None,
    ) -> Optional[float]:
        """Seconds since the condition was first observed, or None if absent."""
        condition = self.get_condition(condition_type)
        if condition is None:
            return None
        return ((now or _utcnow()) - condition.timestamp).total_seconds()

    def update_condition(
        self,
        condition_type: ProcessGroupConditionType,
        present: bool,
        now: Optional[datetime] = None,
    ) -> bool:
        """
        Add or remove a condition.

        Re-asserting a present condition keeps its original timestamp.

        Returns:
            True if the condition set changed
        """
        if condition_type.is_synthetic():
            raise ValueError(f"{condition_type.value} cannot be set on a process group")

        existing = self.get_condition(condition_type)
        if present:
            if existing is not None:
                return False
            self.conditions.append(
                ProcessGroupCondition(type=condition_type, timestamp=now or _utcnow())
            )
            return True

        if existing is None:
            return False
        self.conditions = [c for c in self.conditions if c.type != condition_type]
        return True

    def mark_for_removal(self) -> bool:
        """Mark the group for decommissioning. Returns True if it changed."""
        if self.marked_for_removal:
            return False
        self.marked_for_removal = True
        return True

    def mark_excluded(self) -> bool:
        """Record that the database confirmed the group is safe to remove."""
        if not self.marked_for_removal:
            raise ValueError(
                f"Cannot exclude {self.process_group_id}: not marked for removal"
            )
        if self.excluded:
            return False
        self.excluded = True
        return True


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = ["ProcessGroupID", "ProcessGroupCondition", "ProcessGroupStatus"]
