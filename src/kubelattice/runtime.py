"""Translate reconcile errors into requeue decisions and status conditions."""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from kubelattice.core.models import (
    InvalidBackendRefError,
    NotFoundError,
    RequeueNeededAfter,
    ValidationError,
)

logger = logging.getLogger(__name__)

CONDITION_ACCEPTED = "Accepted"

REASON_UNSUPPORTED_VALUE = "UnsupportedValue"
REASON_BACKEND_NOT_FOUND = "BackendNotFound"
REASON_NO_MATCHING_PARENT = "NoMatchingParent"
REASON_TARGET_NOT_FOUND = "TargetNotFound"


@dataclass
class ReconcileResult:
    requeue: bool = False
    requeue_after: float | None = None
    error: Exception | None = None


def handle_reconcile_error(err: Exception | None) -> ReconcileResult:
    """
    Decide how the reconciler reacts to the outcome of one pass.

    RequeueNeededAfter is not an error: it only delays the next attempt.
    A missing object is retried and still reported. Everything else is
    surfaced to the caller without an explicit requeue.
    """
    if err is None:
        return ReconcileResult()
    if isinstance(err, RequeueNeededAfter):
        logger.debug("Requeue after %ss: %s", err.duration, err.reason)
        return ReconcileResult(requeue=True, requeue_after=err.duration)
    if isinstance(err, NotFoundError):
        return ReconcileResult(requeue=True, error=err)
    return ReconcileResult(error=err)


def _now() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def condition_for_error(err: Exception, generation: int | None = None) -> dict[str, Any] | None:
    """Accepted=False condition for a validation or not-found error, None for anything else."""
    if isinstance(err, ValidationError):
        reason = REASON_UNSUPPORTED_VALUE
    elif isinstance(err, InvalidBackendRefError):
        reason = REASON_BACKEND_NOT_FOUND
    elif isinstance(err, NotFoundError):
        if err.kind == "Gateway":
            reason = REASON_NO_MATCHING_PARENT
        elif err.kind in ("Service", "ServiceImport"):
            reason = REASON_BACKEND_NOT_FOUND
        else:
            reason = REASON_TARGET_NOT_FOUND
    else:
        return None

    condition = {
        "type": CONDITION_ACCEPTED,
        "status": "False",
        "reason": reason,
        "message": str(err),
        "lastTransitionTime": _now(),
    }
    if generation is not None:
        condition["observedGeneration"] = generation
    return condition


def set_condition(conditions: list[dict[str, Any]], new: dict[str, Any]) -> list[dict[str, Any]]:
    """
    Replace the condition of the same type, or append it.

    lastTransitionTime only moves when the status changes.
    """
    updated = []
    found = False
    for condition in conditions:
        if condition.get("type") != new.get("type"):
            updated.append(condition)
            continue
        found = True
        merged = dict(new)
        if condition.get("status") == new.get("status") and condition.get("lastTransitionTime"):
            merged["lastTransitionTime"] = condition["lastTransitionTime"]
        elif not merged.get("lastTransitionTime"):
            merged["lastTransitionTime"] = _now()
        updated.append(merged)
    if not found:
        appended = dict(new)
        appended.setdefault("lastTransitionTime", _now())
        updated.append(appended)
    return updated
