"""
Prospect pipeline: stage transitions, derived timestamps and the activity trail.

A prospect update that changes the stage records a STAGE_CHANGED activity and
stamps the milestone timestamp for the new stage if it has never been set.
The field update, the activity insert and the timestamp stamp commit together.
"""

from datetime import datetime
from typing import Any, Dict, FrozenSet, Mapping, Optional

from . import dao
from .config import get_system_user_id, stage_transitions_enforced
from .db import transaction
from .errors import IllegalTransitionError, NotFoundError, ValidationError
from .schema import (
    ActivityType,
    DERIVED_TIMESTAMP_FIELDS,
    Prospect,
    ProspectStage,
    TERMINAL_STAGES,
    utcnow,
    values_of,
)
from ..util.logging import logger

# New stage -> timestamp field stamped on first arrival
STAMPING_TABLE: Dict[str, str] = {
    ProspectStage.WARMING.value: 'warming_started_at',
    ProspectStage.FIRST_TOUCH_SENT.value: 'first_touch_sent_at',
    ProspectStage.VIDEO_SENT.value: 'video_sent_at',
    ProspectStage.CALL_BOOKED.value: 'call_booked_at',
    ProspectStage.WON.value: 'closed_at',
    ProspectStage.LOST.value: 'closed_at',
}


def _build_default_transition_table() -> Dict[str, FrozenSet[str]]:
    all_stages = frozenset(values_of(ProspectStage))
    table = {}
    for stage in ProspectStage:
        if stage in TERMINAL_STAGES:
            table[stage.value] = frozenset({stage.value})
        else:
            table[stage.value] = all_stages
    return table


# Terminal stages are absorbing; only consulted when STAGE_TRANSITIONS_ENFORCED is on
DEFAULT_TRANSITION_TABLE = _build_default_transition_table()


def _stage_value(stage: Any) -> str:
    if isinstance(stage, ProspectStage):
        return stage.value
    if stage not in values_of(ProspectStage):
        raise ValidationError(f"stage must be one of: {values_of(ProspectStage)}", field="stage")
    return stage


def is_legal_transition(from_stage: str, to_stage: str,
                        table: Optional[Mapping[str, FrozenSet[str]]] = None) -> bool:
    """Check a stage change against a transition table (same-stage is always legal)."""
    if from_stage == to_stage:
        return True
    table = table if table is not None else DEFAULT_TRANSITION_TABLE
    return to_stage in table.get(from_stage, frozenset())


def derived_timestamps_for(prospect: Prospect, new_stage: str, now: datetime) -> Dict[str, datetime]:
    """Timestamp fields to stamp when `prospect` enters `new_stage`.

    Only fields that are still null are returned, so stamping is idempotent.
    """
    field = STAMPING_TABLE.get(new_stage)
    if field is None or getattr(prospect, field) is not None:
        return {}
    return {field: now}


def apply_prospect_update(prospect_id: int, patch: Dict[str, Any],
                          acting_user_id: Optional[str] = None,
                          transition_table: Optional[Mapping[str, FrozenSet[str]]] = None) -> Prospect:
    """Apply a partial update to a prospect, reacting to stage changes.

    Raises NotFoundError (no writes) when the prospect does not exist and
    ValidationError for derived timestamp fields in the patch or, when
    enforcement is enabled, for an illegal stage change.
    """
    patch = dict(patch)

    derived_in_patch = [name for name in DERIVED_TIMESTAMP_FIELDS if name in patch]
    if derived_in_patch:
        raise ValidationError(f"{derived_in_patch[0]} is set by the pipeline and cannot be updated",
                              field=derived_in_patch[0])

    if 'stage' in patch and patch['stage'] is not None:
        patch['stage'] = _stage_value(patch['stage'])
    else:
        patch.pop('stage', None)

    transition = None
    with transaction() as conn:
        current = dao.get_prospect(prospect_id, conn=conn)
        if current is None:
            raise NotFoundError("Prospect", prospect_id)

        new_stage = patch.get('stage')
        stage_changed = new_stage is not None and new_stage != current.stage

        if stage_changed and stage_transitions_enforced():
            if not is_legal_transition(current.stage, new_stage, transition_table):
                raise IllegalTransitionError(current.stage, new_stage)

        updated = dao.update_prospect(prospect_id, patch, conn=conn)

        if stage_changed:
            actor = acting_user_id.strip() if acting_user_id and acting_user_id.strip() else None
            if actor is None:
                actor = get_system_user_id()
                logger.warning(
                    f"Stage change on prospect {prospect_id} without caller identity; attributing to '{actor}'"
                )

            dao.create_activity(
                prospect_id=prospect_id,
                user_id=actor,
                type=ActivityType.STAGE_CHANGED.value,
                details={"fromStage": current.stage, "toStage": new_stage},
                conn=conn
            )

            stamps = derived_timestamps_for(updated, new_stage, utcnow())
            if stamps:
                updated = dao.update_prospect(prospect_id, stamps, conn=conn)

            transition = (current.stage, new_stage, actor, sorted(stamps))

    if transition:
        from_stage, to_stage, actor, stamped = transition
        logger.log_stage_transition(prospect_id, from_stage, to_stage, actor, stamped)
    else:
        logger.log_entity_write("prospect", "update", prospect_id)

    return updated
