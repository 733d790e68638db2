"""Import of documents exported from the hosted document database.

Older challenge documents predate ``completionDates``: they carry only a
``daysCompleted`` list of day numbers and no lifecycle flags. They are
upgraded here before becoming rows.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timedelta, tzinfo
from pathlib import Path
from typing import Any, Mapping, Optional

from ..domain.repositories import ChallengeRepository, HabitRepository
from ..errors import ValidationError
from ..logging_config import get_logger
from ..models import Challenge, Habit
from .dates import local_date_key, parse_completion_record, to_local_naive
from .streaks import challenge_day_streak, habit_counters, is_challenge_complete

logger = get_logger(__name__)

DEFAULT_TOTAL_DAYS = 21


@dataclass(slots=True)
class ImportSummary:
    """Counts returned after importing an export payload."""

    habits: int = 0
    challenges: int = 0
    skipped: list[str] = field(default_factory=list)


def migrate_challenge_record(
    doc: Mapping[str, Any],
    *,
    now: Optional[datetime] = None,
    total_days: int = DEFAULT_TOTAL_DAYS,
) -> dict:
    """Return a copy of ``doc`` upgraded to the current challenge shape."""

    updated = dict(doc)

    if updated.get("completionDates") is None:
        updated["completionDates"] = []
        days_completed = updated.get("daysCompleted") or []
        if days_completed:
            start = parse_completion_record(updated.get("createdAt"))
            if start is None:
                start = to_local_naive(now or datetime.now()) - timedelta(days=len(days_completed))
            # Best guess: the recorded days were consecutive from the start.
            updated["completionDates"] = [
                local_date_key(start + timedelta(days=index))
                for index in range(len(days_completed))
            ]

    if updated.get("isArchived") is None:
        updated["isArchived"] = False

    if updated.get("isCompleted") is None:
        current_day = _as_int(updated.get("currentDay"), default=1)
        updated["isCompleted"] = current_day > _as_int(updated.get("totalDays"), default=total_days)

    return updated


def _as_int(value: Any, *, default: int) -> int:
    if value is None or isinstance(value, bool):
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _positive_int(doc: Mapping[str, Any], key: str, default: int) -> int:
    raw = doc.get(key, default)
    if isinstance(raw, bool):
        raise ValidationError(f"{key} must be a positive integer, got {raw!r}")
    try:
        value = int(raw)
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"{key} must be a positive integer, got {raw!r}") from exc
    if value < 1:
        raise ValidationError(f"{key} must be a positive integer, got {value}")
    return value


def _created_at(doc: Mapping[str, Any], now: datetime, tz: Optional[tzinfo]) -> datetime:
    parsed = parse_completion_record(doc.get("createdAt"), tz)
    return parsed if parsed is not None else to_local_naive(now, tz)


def _name(doc: Mapping[str, Any]) -> str:
    name = str(doc.get("name") or "").strip()
    if not name:
        raise ValidationError("document has no name")
    return name


def habit_from_document(
    doc: Mapping[str, Any],
    *,
    user_id: str,
    now: Optional[datetime] = None,
    tz: Optional[tzinfo] = None,
) -> Habit:
    """Build an unsaved Habit with recomputed counters from an exported document."""

    now = now or datetime.now()
    weekly_goal = _positive_int(doc, "weeklyGoal", 3)
    created_at = _created_at(doc, now, tz)
    history = list(doc.get("completionDates") or [])
    completed, streak = habit_counters(history, weekly_goal, created_at, now=now, tz=tz)
    return Habit(
        user_id=user_id,
        name=_name(doc),
        icon=str(doc.get("icon") or "✨"),
        category=str(doc.get("category") or ""),
        color=str(doc.get("color") or "purple"),
        weekly_goal=weekly_goal,
        completion_dates=history,
        completed=completed,
        current_streak=streak,
        converted_from_challenge=bool(doc.get("convertedFromChallenge", False)),
        created_at=created_at,
    )


def challenge_from_document(
    doc: Mapping[str, Any],
    *,
    user_id: str,
    now: Optional[datetime] = None,
    tz: Optional[tzinfo] = None,
    total_days: int = DEFAULT_TOTAL_DAYS,
) -> Challenge:
    """Build an unsaved Challenge from an exported (possibly legacy) document."""

    now = now or datetime.now()
    doc = migrate_challenge_record(doc, now=now, total_days=total_days)
    total_days = _positive_int(doc, "totalDays", total_days)
    created_at = _created_at(doc, now, tz)
    history = list(doc.get("completionDates") or [])
    finished = bool(doc.get("isCompleted")) or is_challenge_complete(
        history, total_days, now=now, created_at=created_at, tz=tz
    )
    return Challenge(
        user_id=user_id,
        name=_name(doc),
        icon=str(doc.get("icon") or "⚡"),
        category=str(doc.get("category") or ""),
        color=str(doc.get("color") or "purple"),
        reward=str(doc.get("reward") or ""),
        total_days=total_days,
        completion_dates=history,
        current_streak=challenge_day_streak(history, now=now, created_at=created_at, tz=tz),
        is_completed=finished,
        is_active=bool(doc.get("isActive", True)) and not finished,
        is_archived=bool(doc.get("isArchived")),
        created_at=created_at,
    )


def import_documents(
    habit_repo: HabitRepository,
    challenge_repo: ChallengeRepository,
    payload: Mapping[str, Any],
    *,
    user_id: str,
    now: Optional[datetime] = None,
    tz: Optional[tzinfo] = None,
    total_days: int = DEFAULT_TOTAL_DAYS,
) -> ImportSummary:
    """Import ``{"habits": [...], "challenges": [...]}`` for one user.

    Challenges go first so converted habits can be re-linked to the new
    challenge ids. Challenges without ``totalDays`` get ``total_days``.
    Malformed documents are skipped and listed in the summary.
    """

    now = now or datetime.now()
    summary = ImportSummary()
    challenge_ids: dict[str, int] = {}

    for doc in payload.get("challenges") or []:
        doc_id = str(doc.get("id", ""))
        try:
            challenge = challenge_from_document(
                doc, user_id=user_id, now=now, tz=tz, total_days=total_days
            )
        except ValidationError as exc:
            logger.warning(
                "Skipping challenge document", extra={"doc_id": doc_id, "error": str(exc)}
            )
            summary.skipped.append(f"challenge:{doc_id}")
            continue
        saved = challenge_repo.create(challenge, user_id=user_id)
        if doc_id and saved.id is not None:
            challenge_ids[doc_id] = saved.id
        summary.challenges += 1

    for doc in payload.get("habits") or []:
        doc_id = str(doc.get("id", ""))
        try:
            habit = habit_from_document(doc, user_id=user_id, now=now, tz=tz)
        except ValidationError as exc:
            logger.warning(
                "Skipping habit document", extra={"doc_id": doc_id, "error": str(exc)}
            )
            summary.skipped.append(f"habit:{doc_id}")
            continue
        origin = doc.get("originalChallengeId")
        if origin is not None:
            habit.original_challenge_id = challenge_ids.get(str(origin))
        habit_repo.create(habit, user_id=user_id)
        summary.habits += 1

    logger.info(
        "Imported documents",
        extra={
            "user_id": user_id,
            "habits": summary.habits,
            "challenges": summary.challenges,
            "skipped": len(summary.skipped),
        },
    )
    return summary


def load_export(path: Path) -> dict:
    """Read a JSON export file from disk."""

    with Path(path).open("r", encoding="utf-8") as handle:
        data = json.load(handle)
    if not isinstance(data, dict):
        raise ValidationError("export file must contain a JSON object")
    return data


__all__ = [
    "ImportSummary",
    "challenge_from_document",
    "habit_from_document",
    "import_documents",
    "load_export",
    "migrate_challenge_record",
]
