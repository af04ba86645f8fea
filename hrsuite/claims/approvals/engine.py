"""ClaimApprovalEngine — core orchestrator for multi-level claim approval.

All approval state changes flow through this class. Routes and services
never modify workflows or steps directly.
"""

import logging
from typing import List, Optional

from . import hooks
from .instantiator import WorkflowInstantiator
from .rule_matcher import match_rule
from .step_processor import plan_transition
from ..exceptions import ClaimApprovalError, NotFoundError
from ..models import ApprovalStep, ApprovalWorkflow, Claim, WorkflowStatus
from hrsuite.core.utils.logging_config import LogContext

logger = logging.getLogger('hrsuite.claims.approvals.engine')


class ClaimApprovalEngine:

    def __init__(self, rule_repo, workflow_repo, directory):
        self._rule_repo = rule_repo
        self._workflow_repo = workflow_repo
        self._instantiator = WorkflowInstantiator(directory)

    # ════════════════════════════════════════════
    # Workflow creation
    # ════════════════════════════════════════════

    def start_workflow(self, claim: Claim) -> Optional[ApprovalWorkflow]:
        """Match a rule for a stored claim and create its workflow.

        Returns None when no rule applies; the claim then has no approval
        chain and keeps its plain pending status.
        """
        rule = match_rule(claim, self._rule_repo.list_rules(active_only=True))
        if rule is None:
            logger.info(f'No approval rule matches claim {claim.id}; no workflow created')
            return None

        workflow = self._workflow_repo.create(self._instantiator.create_workflow(claim, rule))

        with LogContext(logger, claim_id=claim.id, workflow_id=workflow.id):
            logger.info(f"Workflow created from rule '{rule.name}' with "
                        f"{workflow.total_levels} level(s)")

        hooks.fire(hooks.WORKFLOW_CREATED, {
            'workflow_id': workflow.id, 'claim_id': claim.id,
            'rule_name': workflow.rule_name, 'total_levels': workflow.total_levels,
            'current_approver': workflow.current_step.approver_name,
        })
        return workflow

    # ════════════════════════════════════════════
    # Step processing
    # ════════════════════════════════════════════

    def decide(self, step_id, action, comments, approver) -> ApprovalWorkflow:
        """Apply approve/reject/skip to a step. Raises on any refused action.

        Returns the workflow as stored after the transition.
        """
        step = self._workflow_repo.get_step(step_id)
        if step is None:
            raise NotFoundError(f'Approval step {step_id} not found')
        workflow = self._workflow_repo.get_by_id(step.workflow_id)
        if workflow is None:
            raise NotFoundError(f'Approval workflow {step.workflow_id} not found')

        transition = plan_transition(workflow, step_id, action, comments or None, approver)
        self._workflow_repo.apply_transition(transition)

        with LogContext(logger, claim_id=transition.claim_id, workflow_id=transition.workflow_id):
            logger.info(f'Step {step_id} (level {transition.level}) '
                        f'{transition.step_status.value} by {approver}')

        payload = {
            'workflow_id': transition.workflow_id, 'claim_id': transition.claim_id,
            'step_id': transition.step_id, 'level': transition.level,
            'action': transition.action.value, 'acted_by': approver,
            'comments': transition.comments,
        }
        hooks.fire(hooks.STEP_PROCESSED, payload)

        if transition.workflow_status == WorkflowStatus.REJECTED:
            hooks.fire(hooks.REJECTED, payload)
        elif transition.workflow_status == WorkflowStatus.APPROVED:
            hooks.fire(hooks.APPROVED, {**payload, 'approved_by': transition.approved_by})
        else:
            hooks.fire(hooks.STEP_ADVANCED, {**payload, 'current_level': transition.current_level})

        return self._workflow_repo.get_by_id(transition.workflow_id)

    def process_step(self, step_id, action, comments, approver) -> bool:
        """Like decide(), but reports refusal as False for callers that retry by hand."""
        try:
            self.decide(step_id, action, comments, approver)
            return True
        except ClaimApprovalError as e:
            logger.warning(f'Step {step_id} {action} by {approver} refused: {e}')
            return False

    # ════════════════════════════════════════════
    # Queries (read-only)
    # ════════════════════════════════════════════

    def pending_steps_for_approver(self, approver_name: str) -> List[ApprovalStep]:
        return self._workflow_repo.get_pending_steps_for_approver(approver_name)

    def workflow_for_claim(self, claim_id) -> Optional[ApprovalWorkflow]:
        return self._workflow_repo.get_by_claim(claim_id)

    def all_workflows(self, status: Optional[WorkflowStatus] = None) -> List[ApprovalWorkflow]:
        return self._workflow_repo.list_workflows(status)

    def all_steps(self) -> List[ApprovalStep]:
        return self._workflow_repo.list_steps()
