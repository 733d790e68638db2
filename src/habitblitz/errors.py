"""Failure conditions surfaced by the completion engine."""

from __future__ import annotations

from typing import Any


class HabitBlitzError(Exception):
    """Base class for every condition raised by the core."""


class DuplicateCompletion(HabitBlitzError):
    """The entity was already completed on this calendar day."""

    def __init__(self, entity: str, entity_id: Any, date_key: str) -> None:
        self.entity = entity
        self.entity_id = entity_id
        self.date_key = date_key
        super().__init__(f"You already completed this {entity} today ({date_key})")


class CompletionConflict(DuplicateCompletion):
    """Storage found the date already present while appending (lost race)."""


class OperationInProgress(HabitBlitzError):
    """Another completion for the same entity is still running."""

    def __init__(self, entity: str, entity_id: Any) -> None:
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"A completion for {entity} {entity_id} is already in progress")


class EntityNotFound(HabitBlitzError, LookupError):
    """Referenced habit or challenge does not exist for this user."""

    def __init__(self, entity: str, entity_id: Any) -> None:
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity.capitalize()} {entity_id} not found")


class ConversionFailure(HabitBlitzError):
    """Turning a finished challenge into a habit failed."""

    def __init__(self, challenge_id: Any, reason: str) -> None:
        self.challenge_id = challenge_id
        self.reason = reason
        super().__init__(f"Could not convert challenge {challenge_id} to a habit: {reason}")


class ValidationError(HabitBlitzError, ValueError):
    """Entity data is malformed or not in a state that accepts completions."""


__all__ = [
    "CompletionConflict",
    "ConversionFailure",
    "DuplicateCompletion",
    "EntityNotFound",
    "HabitBlitzError",
    "OperationInProgress",
    "ValidationError",
]
