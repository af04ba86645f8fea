"""Step processing — the approval state machine.

Per step:   pending → approved | rejected | skipped   (terminal once left)
Per flow:   pending → approved   (last level approved or skipped)
            pending → rejected   (any level rejected; later levels never activate)

plan_transition() decides what an action does without touching any state.
apply_transition() performs it on an in-memory workflow, re-checking that
the step is still pending and current so a racing second action fails
instead of applying twice. The PostgreSQL repository performs the same
transition in SQL with the same compare-and-swap guard.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from ..exceptions import ConflictError, InvalidTransitionError, NotFoundError
from ..models import (
    ApprovalWorkflow, ClaimStatus, StepAction, StepStatus, WorkflowStatus,
)


@dataclass(frozen=True)
class StepTransition:
    """Everything that changes when one step is acted on."""
    workflow_id: int
    claim_id: int
    step_id: int
    level: int
    action: StepAction
    step_status: StepStatus
    comments: Optional[str]
    acted_by: str
    acted_at: datetime
    next_step_id: Optional[int]
    workflow_status: WorkflowStatus
    current_level: int
    claim_status: Optional[ClaimStatus]
    approved_by: Optional[str]

    @property
    def completes_workflow(self) -> bool:
        return self.workflow_status != WorkflowStatus.PENDING


def parse_action(action) -> StepAction:
    if isinstance(action, StepAction):
        return action
    try:
        return StepAction(str(action).strip().lower())
    except ValueError:
        raise InvalidTransitionError(
            f"Unknown action '{action}'. Allowed: approve, reject, skip")


def check_actionable(workflow: ApprovalWorkflow, step_id, action: StepAction):
    """Raise unless action may be taken on step_id right now. Returns the step."""
    step = workflow.step_by_id(step_id)
    if step is None:
        raise NotFoundError(f'Approval step {step_id} not found')

    if action == StepAction.SKIP:
        if step.level <= 1:
            raise InvalidTransitionError(
                'Level 1 cannot be skipped; the first approver must decide',
                details={'step_id': step_id, 'level': step.level})
        if not step.can_skip:
            raise InvalidTransitionError(
                f'Level {step.level} does not allow skipping',
                details={'step_id': step_id, 'level': step.level})

    if step.status != StepStatus.PENDING:
        raise InvalidTransitionError(
            f'Approval step {step_id} is already {step.status.value}',
            details={'step_id': step_id, 'status': step.status.value})

    if not step.is_current_step or workflow.status != WorkflowStatus.PENDING:
        raise InvalidTransitionError(
            f'Approval step {step_id} (level {step.level}) is not the current step',
            details={'step_id': step_id, 'current_level': workflow.current_level})

    return step


def plan_transition(workflow: ApprovalWorkflow, step_id, action, comments: Optional[str],
                    acted_by: str, now: Optional[datetime] = None) -> StepTransition:
    """Work out the effects of action on step_id. Raises if the action is not allowed."""
    action = parse_action(action)
    step = check_actionable(workflow, step_id, action)
    acted_at = now or datetime.now(timezone.utc)

    next_step_id = None
    claim_status = None
    approved_by = None

    if action == StepAction.REJECT:
        workflow_status = WorkflowStatus.REJECTED
        current_level = step.level
        claim_status = ClaimStatus.REJECTED
    elif step.level < workflow.total_levels:
        next_step = workflow.step_at_level(step.level + 1)
        if next_step is None:
            raise InvalidTransitionError(
                f'Workflow {workflow.id} has no step for level {step.level + 1}')
        next_step_id = next_step.id
        workflow_status = WorkflowStatus.PENDING
        current_level = step.level + 1
    else:
        workflow_status = WorkflowStatus.APPROVED
        current_level = workflow.total_levels + 1
        claim_status = ClaimStatus.APPROVED
        approved_by = acted_by

    return StepTransition(
        workflow_id=workflow.id,
        claim_id=workflow.claim_id,
        step_id=step.id,
        level=step.level,
        action=action,
        step_status=action.resulting_status,
        comments=comments,
        acted_by=acted_by,
        acted_at=acted_at,
        next_step_id=next_step_id,
        workflow_status=workflow_status,
        current_level=current_level,
        claim_status=claim_status,
        approved_by=approved_by,
    )


def apply_transition(workflow: ApprovalWorkflow, transition: StepTransition) -> ApprovalWorkflow:
    """Mutate workflow in place. Caller must hold the workflow's lock."""
    step = workflow.step_by_id(transition.step_id)
    if step is None:
        raise NotFoundError(f'Approval step {transition.step_id} not found')
    if step.status != StepStatus.PENDING or not step.is_current_step:
        raise ConflictError(
            f'Approval step {transition.step_id} was already processed',
            details={'step_id': transition.step_id, 'status': step.status.value})

    step.status = transition.step_status
    step.is_current_step = False
    step.comments = transition.comments
    step.acted_by = transition.acted_by
    step.acted_at = transition.acted_at

    if transition.next_step_id is not None:
        workflow.step_by_id(transition.next_step_id).is_current_step = True

    workflow.status = transition.workflow_status
    workflow.current_level = transition.current_level
    if transition.completes_workflow:
        workflow.completed_at = transition.acted_at

    return workflow
