"""In-memory claims store for local development and tests.

Enable for the running app with CLAIMS_STORE=memory. Implements the same
repository methods as the PostgreSQL repositories.

All three repositories share one MemoryStore so a step transition can
update the workflow and its claim as a single unit. Every workflow has its
own lock; transitions on different workflows never wait on each other.
Reads return deep copies, so callers never see (or cause) a half-applied
change.
"""

import copy
import itertools
import threading
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional

from ..approvals.step_processor import apply_transition
from ..exceptions import ConflictError, NotFoundError
from ..models import (
    ApprovalRule, ApprovalStep, ApprovalWorkflow, Claim, ClaimStats, ClaimStatus,
    WorkflowStatus,
)


def _now():
    return datetime.now(timezone.utc)


class MemoryStore:
    """Shared state behind the in-memory repositories."""

    def __init__(self):
        self.lock = threading.RLock()
        self.claims: Dict[int, Claim] = {}
        self.rules: Dict[int, ApprovalRule] = {}  # insertion order is store order
        self.workflows: Dict[int, ApprovalWorkflow] = {}
        self.workflow_by_claim: Dict[int, int] = {}
        self.workflow_by_step: Dict[int, int] = {}
        self._workflow_locks: Dict[int, threading.Lock] = {}
        self._ids = {name: itertools.count(1) for name in ('claim', 'rule', 'workflow', 'step')}

    def next_id(self, kind: str) -> int:
        with self.lock:
            return next(self._ids[kind])

    def workflow_lock(self, workflow_id: int) -> threading.Lock:
        with self.lock:
            return self._workflow_locks.setdefault(workflow_id, threading.Lock())


class InMemoryClaimRepository:

    def __init__(self, store: MemoryStore):
        self._store = store

    def create(self, claim: Claim) -> Claim:
        stored = copy.deepcopy(claim)
        stored.id = self._store.next_id('claim')
        stored.created_at = stored.updated_at = _now()
        if stored.submission_date is None:
            stored.submission_date = stored.created_at.date()
        with self._store.lock:
            self._store.claims[stored.id] = stored
        return copy.deepcopy(stored)

    def get_by_id(self, claim_id) -> Optional[Claim]:
        with self._store.lock:
            claim = self._store.claims.get(claim_id)
            return copy.deepcopy(claim) if claim else None

    def list_claims(self, status: Optional[ClaimStatus] = None) -> List[Claim]:
        with self._store.lock:
            claims = [c for c in self._store.claims.values()
                      if status is None or c.status == status]
            return copy.deepcopy(claims)

    def update_fields(self, claim_id, fields: Dict[str, Any]) -> bool:
        with self._store.lock:
            stored = self._store.claims.get(claim_id)
            if stored is None:
                return False
            for key, value in fields.items():
                if key in Claim.EDITABLE_FIELDS:
                    setattr(stored, key, copy.deepcopy(value))
            stored.updated_at = _now()
            return True

    def delete(self, claim_id) -> bool:
        with self._store.lock:
            return self._store.claims.pop(claim_id, None) is not None

    def get_stats(self) -> ClaimStats:
        stats = ClaimStats()
        with self._store.lock:
            for claim in self._store.claims.values():
                stats.total += 1
                setattr(stats, claim.status.value, getattr(stats, claim.status.value) + 1)
                if claim.status == ClaimStatus.APPROVED:
                    stats.total_approved_amount += Decimal(claim.amount)
        return stats


class InMemoryRuleRepository:

    def __init__(self, store: MemoryStore):
        self._store = store

    def list_rules(self, active_only: bool = False) -> List[ApprovalRule]:
        with self._store.lock:
            rules = [r for r in self._store.rules.values() if r.is_active or not active_only]
            return copy.deepcopy(rules)

    def get_by_id(self, rule_id) -> Optional[ApprovalRule]:
        with self._store.lock:
            rule = self._store.rules.get(rule_id)
            return copy.deepcopy(rule) if rule else None

    def create(self, rule: ApprovalRule) -> ApprovalRule:
        stored = copy.deepcopy(rule)
        stored.id = self._store.next_id('rule')
        stored.created_at = stored.updated_at = _now()
        with self._store.lock:
            self._store.rules[stored.id] = stored
        return copy.deepcopy(stored)

    def update(self, rule: ApprovalRule) -> bool:
        with self._store.lock:
            if rule.id not in self._store.rules:
                return False
            stored = copy.deepcopy(rule)
            stored.updated_at = _now()
            self._store.rules[rule.id] = stored
            return True

    def delete(self, rule_id) -> bool:
        with self._store.lock:
            return self._store.rules.pop(rule_id, None) is not None


class InMemoryWorkflowRepository:

    def __init__(self, store: MemoryStore):
        self._store = store

    def create(self, workflow: ApprovalWorkflow) -> ApprovalWorkflow:
        """Store workflow and its steps together. One workflow per claim."""
        stored = copy.deepcopy(workflow)
        with self._store.lock:
            if stored.claim_id in self._store.workflow_by_claim:
                raise ConflictError(f'Claim {stored.claim_id} already has an approval workflow',
                                    details={'claim_id': stored.claim_id})
            stored.id = self._store.next_id('workflow')
            stored.created_at = stored.created_at or _now()
            for step in stored.steps:
                step.id = self._store.next_id('step')
                step.workflow_id = stored.id
                step.claim_id = stored.claim_id
                self._store.workflow_by_step[step.id] = stored.id
            self._store.workflows[stored.id] = stored
            self._store.workflow_by_claim[stored.claim_id] = stored.id
            return copy.deepcopy(stored)

    def get_by_id(self, workflow_id) -> Optional[ApprovalWorkflow]:
        with self._store.lock:
            workflow = self._store.workflows.get(workflow_id)
            return copy.deepcopy(workflow) if workflow else None

    def get_by_claim(self, claim_id) -> Optional[ApprovalWorkflow]:
        with self._store.lock:
            workflow_id = self._store.workflow_by_claim.get(claim_id)
            return self.get_by_id(workflow_id) if workflow_id is not None else None

    def list_workflows(self, status: Optional[WorkflowStatus] = None) -> List[ApprovalWorkflow]:
        with self._store.lock:
            workflows = [w for w in self._store.workflows.values()
                         if status is None or w.status == status]
            return copy.deepcopy(workflows)

    def get_step(self, step_id) -> Optional[ApprovalStep]:
        with self._store.lock:
            workflow_id = self._store.workflow_by_step.get(step_id)
            if workflow_id is None:
                return None
            return copy.deepcopy(self._store.workflows[workflow_id].step_by_id(step_id))

    def list_steps(self) -> List[ApprovalStep]:
        with self._store.lock:
            return copy.deepcopy([s for w in self._store.workflows.values() for s in w.steps])

    def get_pending_steps_for_approver(self, approver_name: str) -> List[ApprovalStep]:
        with self._store.lock:
            return copy.deepcopy([
                s for w in self._store.workflows.values() for s in w.steps
                if s.is_current_step and s.approver_name == approver_name
            ])

    def apply_transition(self, transition):
        """Apply a planned step transition and its claim update atomically."""
        with self._store.workflow_lock(transition.workflow_id):
            with self._store.lock:
                workflow = self._store.workflows.get(transition.workflow_id)
                if workflow is None:
                    raise NotFoundError(f'Approval workflow {transition.workflow_id} not found')
                # Work on a copy so a failed check leaves the stored workflow untouched
                updated = apply_transition(copy.deepcopy(workflow), transition)
                self._store.workflows[workflow.id] = updated

                claim = self._store.claims.get(transition.claim_id)
                if claim is not None and transition.claim_status is not None:
                    claim.status = transition.claim_status
                    claim.approved_by = transition.approved_by
                    claim.updated_at = transition.acted_at


class InMemoryEmployeeDirectory:
    """Employee lookups backed by plain dicts.

    employees: {employee_id: {'name': ..., 'department': ..., 'manager_id': ...}}
    department_heads: {department: employee_id}
    """

    def __init__(self, employees: Optional[dict] = None, department_heads: Optional[dict] = None):
        self._employees = {k: dict(v) for k, v in (employees or {}).items()}
        self._department_heads = dict(department_heads or {})

    def _name_of(self, employee_id) -> Optional[str]:
        employee = self._employees.get(str(employee_id)) if employee_id is not None else None
        return employee.get('name') if employee else None

    def get_department(self, employee_id) -> Optional[str]:
        employee = self._employees.get(str(employee_id))
        return employee.get('department') if employee else None

    def get_manager_name(self, employee_id) -> Optional[str]:
        employee = self._employees.get(str(employee_id))
        return self._name_of(employee.get('manager_id')) if employee else None

    def get_department_head_name(self, department) -> Optional[str]:
        return self._name_of(self._department_heads.get(department))

    def set_manager(self, employee_id, manager_id):
        self._employees[str(employee_id)]['manager_id'] = str(manager_id)


# Sample data for CLAIMS_STORE=memory
DEMO_EMPLOYEES = {
    '1': {'name': 'John Doe', 'department': 'Engineering', 'manager_id': '3'},
    '2': {'name': 'Jane Smith', 'department': 'Marketing', 'manager_id': '4'},
    '3': {'name': 'Engineering Head', 'department': 'Engineering', 'manager_id': None},
    '4': {'name': 'Marketing Head', 'department': 'Marketing', 'manager_id': None},
}

DEMO_DEPARTMENT_HEADS = {'Engineering': '3', 'Marketing': '4'}

DEMO_RULES = [
    {
        'name': 'Standard Travel Claims',
        'claim_types': ['travel'],
        'conditions': {'min_amount': 0, 'max_amount': 1000},
        'approval_chain': [
            {'level': 1, 'approver_type': 'direct-manager', 'is_required': True, 'can_skip': False},
            {'level': 2, 'approver_type': 'finance', 'approver_name': 'Finance Manager',
             'is_required': True, 'can_skip': False},
        ],
        'is_active': True,
    },
]
