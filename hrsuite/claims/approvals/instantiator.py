"""Workflow instantiation — turns a matched rule into a live workflow.

Approver names for role-based levels are resolved once, here, from the
employee directory. Later changes to an employee's manager or a
department's head do not touch workflows that already exist.
"""

import logging
from datetime import datetime, timezone

from ..models import (
    ApprovalLevel, ApprovalRule, ApprovalStep, ApprovalWorkflow, ApproverType,
    Claim, StepStatus, WorkflowStatus,
)
from .validation import validate_rule

logger = logging.getLogger('hrsuite.claims.approvals.instantiator')

DIRECT_MANAGER_PLACEHOLDER = 'Direct Manager'
DEPARTMENT_HEAD_PLACEHOLDER = 'Department Head'


class WorkflowInstantiator:
    """Builds unsaved ApprovalWorkflow instances; persistence is the caller's job."""

    def __init__(self, directory):
        self._directory = directory

    def resolve_approver(self, level: ApprovalLevel, claim: Claim) -> str:
        """Display name of whoever acts on this level for this claim."""
        if level.approver_type == ApproverType.DIRECT_MANAGER:
            name = self._directory.get_manager_name(claim.employee_id)
            if not name:
                logger.info(f'No manager on record for employee {claim.employee_id}, '
                            f'using placeholder')
            return name or DIRECT_MANAGER_PLACEHOLDER

        if level.approver_type == ApproverType.DEPARTMENT_HEAD:
            department = claim.department or self._directory.get_department(claim.employee_id)
            name = self._directory.get_department_head_name(department) if department else None
            if not name:
                logger.info(f'No department head on record for {department!r}, using placeholder')
            return name or DEPARTMENT_HEAD_PLACEHOLDER

        return level.approver_name

    def create_workflow(self, claim: Claim, rule: ApprovalRule) -> ApprovalWorkflow:
        """Build the workflow for claim from rule: one pending step per level, level 1 current."""
        validate_rule(rule)

        steps = [
            ApprovalStep(
                claim_id=claim.id,
                level=level.level,
                approver_type=level.approver_type,
                approver_name=self.resolve_approver(level, claim),
                status=StepStatus.PENDING,
                is_current_step=(level.level == 1),
                can_skip=level.can_skip,
                is_required=level.is_required,
            )
            for level in rule.approval_chain
        ]

        return ApprovalWorkflow(
            claim_id=claim.id,
            rule_id=rule.id,
            rule_name=rule.name,
            current_level=1,
            total_levels=len(steps),
            status=WorkflowStatus.PENDING,
            steps=steps,
            created_at=datetime.now(timezone.utc),
        )
