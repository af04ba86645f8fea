"""Claims service — the operations the claims screens and API call.

Wires the claim store, the rule store and the approval engine together.
Submitting a claim stores it and then starts its approval workflow; rule
changes never touch workflows that already exist.
"""

import logging
from typing import Any, Dict, List, Optional

from hrsuite.config import config
from .approvals.engine import ClaimApprovalEngine
from .approvals.validation import validate_rule
from .exceptions import NotFoundError
from .models import (
    ApprovalRule, ApprovalStep, ApprovalWorkflow, Claim, ClaimStats, ClaimStatus,
    WorkflowStatus, parse_enum,
)
from .repositories import (
    ClaimRepository, RuleRepository, WorkflowRepository, EmployeeDirectory,
    MemoryStore, InMemoryClaimRepository, InMemoryRuleRepository,
    InMemoryWorkflowRepository, InMemoryEmployeeDirectory,
)
from .repositories.memory import DEMO_EMPLOYEES, DEMO_DEPARTMENT_HEADS, DEMO_RULES

logger = logging.getLogger('hrsuite.claims.services')


class ClaimService:

    def __init__(self, claim_repo, rule_repo, workflow_repo, directory,
                 default_currency: str = 'USD'):
        self._claim_repo = claim_repo
        self._rule_repo = rule_repo
        self._directory = directory
        self._default_currency = default_currency
        self.engine = ClaimApprovalEngine(rule_repo, workflow_repo, directory)

    # ── Claims ──

    def submit_claim(self, claim_data: Dict[str, Any]) -> Claim:
        """Store a new pending claim and start its approval workflow if a rule matches."""
        claim = Claim.from_dict({**claim_data, 'status': ClaimStatus.PENDING,
                                 'approved_by': None, 'id': None},
                                default_currency=self._default_currency)
        if not claim.department:
            claim.department = self._directory.get_department(claim.employee_id)

        claim = self._claim_repo.create(claim)
        logger.info(f'Claim {claim.id} submitted by {claim.employee_name} '
                    f'({claim.claim_type.value}, {claim.amount} {claim.currency})')

        self.engine.start_workflow(claim)
        return claim

    def get_claim(self, claim_id) -> Claim:
        claim = self._claim_repo.get_by_id(claim_id)
        if claim is None:
            raise NotFoundError(f'Claim {claim_id} not found')
        return claim

    def list_claims(self, status=None) -> List[Claim]:
        if status:
            status = parse_enum(ClaimStatus, status, 'status')
        return self._claim_repo.list_claims(status)

    def update_claim(self, claim_id, changes: Dict[str, Any]) -> Claim:
        """Manual edit. Does not re-run matching or touch an existing workflow.

        Only the fields named in changes are written back.
        """
        claim = self.get_claim(claim_id)
        claim.apply_changes(changes)
        fields = {key: getattr(claim, key) for key in changes if key in Claim.EDITABLE_FIELDS}
        if not self._claim_repo.update_fields(claim_id, fields):
            raise NotFoundError(f'Claim {claim_id} not found')
        return self.get_claim(claim_id)

    def delete_claim(self, claim_id) -> bool:
        if not self._claim_repo.delete(claim_id):
            raise NotFoundError(f'Claim {claim_id} not found')
        logger.info(f'Claim {claim_id} deleted')
        return True

    def get_claim_stats(self) -> ClaimStats:
        return self._claim_repo.get_stats()

    # ── Approval workflows ──

    def get_claim_approval_steps(self) -> List[ApprovalStep]:
        return self.engine.all_steps()

    def get_claim_approval_workflows(self, status=None) -> List[ApprovalWorkflow]:
        if status:
            status = parse_enum(WorkflowStatus, status, 'status')
        return self.engine.all_workflows(status)

    def get_workflow_for_claim(self, claim_id) -> Optional[ApprovalWorkflow]:
        return self.engine.workflow_for_claim(claim_id)

    def get_pending_claim_approvals_by_approver(self, approver_name: str) -> List[ApprovalStep]:
        return self.engine.pending_steps_for_approver(approver_name)

    def process_claim_approval_step(self, step_id, action, comments, approver) -> bool:
        return self.engine.process_step(step_id, action, comments, approver)

    def decide_claim_approval_step(self, step_id, action, comments, approver) -> ApprovalWorkflow:
        return self.engine.decide(step_id, action, comments, approver)

    # ── Approval rules ──

    def get_claim_approval_rules(self) -> List[ApprovalRule]:
        return self._rule_repo.list_rules()

    def get_claim_approval_rule(self, rule_id) -> ApprovalRule:
        rule = self._rule_repo.get_by_id(rule_id)
        if rule is None:
            raise NotFoundError(f'Approval rule {rule_id} not found')
        return rule

    def create_claim_approval_rule(self, rule_data: Dict[str, Any]) -> ApprovalRule:
        rule = validate_rule(ApprovalRule.from_dict({**rule_data, 'id': None}))
        created = self._rule_repo.create(rule)
        logger.info(f"Approval rule '{created.name}' (#{created.id}) created")
        return created

    def update_claim_approval_rule(self, rule_id, rule_data: Dict[str, Any]) -> ApprovalRule:
        """Partial update: fields absent from rule_data keep their current values."""
        current = self.get_claim_approval_rule(rule_id)
        merged = {**current.to_dict(), **rule_data, 'id': rule_id}
        if 'conditions' in rule_data:
            merged['conditions'] = {**current.conditions.to_dict(), **(rule_data['conditions'] or {})}
        rule = validate_rule(ApprovalRule.from_dict(merged))
        if not self._rule_repo.update(rule):
            raise NotFoundError(f'Approval rule {rule_id} not found')
        logger.info(f"Approval rule '{rule.name}' (#{rule_id}) updated")
        return self.get_claim_approval_rule(rule_id)

    def delete_claim_approval_rule(self, rule_id) -> bool:
        if not self._rule_repo.delete(rule_id):
            raise NotFoundError(f'Approval rule {rule_id} not found')
        logger.info(f'Approval rule #{rule_id} deleted')
        return True


def build_claim_service(app_config=None) -> ClaimService:
    """Create the service for the configured store backend."""
    app_config = app_config or config
    if app_config.uses_memory_store:
        store = MemoryStore()
        service = ClaimService(
            InMemoryClaimRepository(store), InMemoryRuleRepository(store),
            InMemoryWorkflowRepository(store),
            InMemoryEmployeeDirectory(DEMO_EMPLOYEES, DEMO_DEPARTMENT_HEADS),
            default_currency=app_config.DEFAULT_CURRENCY,
        )
        for rule_data in DEMO_RULES:
            service.create_claim_approval_rule(rule_data)
        logger.info('Claims service using in-memory store with demo rules')
        return service

    return ClaimService(
        ClaimRepository(), RuleRepository(), WorkflowRepository(), EmployeeDirectory(),
        default_currency=app_config.DEFAULT_CURRENCY,
    )
