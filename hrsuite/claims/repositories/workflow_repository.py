"""Repository for claim_approval_workflows and claim_approval_steps tables.

A workflow and its steps are always written together in one transaction.
Step transitions lock the workflow row and update the step only while it
is still pending and current, so two racing approvals cannot both apply.
"""

import copy
import logging
from typing import Optional, List

from hrsuite.core.base_repository import BaseRepository
from ..exceptions import ConflictError
from ..models import (
    ApprovalStep, ApprovalWorkflow, ApproverType, StepStatus, WorkflowStatus,
)

logger = logging.getLogger('hrsuite.claims.repositories.workflows')

_WORKFLOW_COLUMNS = '''
    id, claim_id, rule_id, rule_name, current_level, total_levels, status,
    created_at, completed_at
'''

_STEP_COLUMNS = '''
    id, workflow_id, claim_id, level, approver_type, approver_name, status,
    is_current_step, can_skip, is_required, comments, acted_by, acted_at
'''


def _row_to_step(row) -> ApprovalStep:
    return ApprovalStep(
        id=row['id'],
        workflow_id=row['workflow_id'],
        claim_id=row['claim_id'],
        level=row['level'],
        approver_type=ApproverType(row['approver_type']),
        approver_name=row['approver_name'],
        status=StepStatus(row['status']),
        is_current_step=row['is_current_step'],
        can_skip=row['can_skip'],
        is_required=row['is_required'],
        comments=row.get('comments'),
        acted_by=row.get('acted_by'),
        acted_at=row.get('acted_at'),
    )


def _row_to_workflow(row, steps) -> ApprovalWorkflow:
    return ApprovalWorkflow(
        id=row['id'],
        claim_id=row['claim_id'],
        rule_id=row.get('rule_id'),
        rule_name=row['rule_name'],
        current_level=row['current_level'],
        total_levels=row['total_levels'],
        status=WorkflowStatus(row['status']),
        steps=steps,
        created_at=row.get('created_at'),
        completed_at=row.get('completed_at'),
    )


class WorkflowRepository(BaseRepository):

    # ── Writes ──

    def create(self, workflow: ApprovalWorkflow) -> ApprovalWorkflow:
        """Insert workflow + steps atomically. Raises ConflictError if the claim has one."""
        stored = copy.deepcopy(workflow)

        def _work(cursor):
            cursor.execute(f'''
                INSERT INTO claim_approval_workflows
                    (claim_id, rule_id, rule_name, current_level, total_levels, status)
                VALUES (%s, %s, %s, %s, %s, %s)
                ON CONFLICT (claim_id) DO NOTHING
                RETURNING {_WORKFLOW_COLUMNS}
            ''', (
                stored.claim_id, stored.rule_id, stored.rule_name,
                stored.current_level, stored.total_levels, stored.status.value,
            ))
            row = cursor.fetchone()
            if row is None:
                raise ConflictError(f'Claim {stored.claim_id} already has an approval workflow',
                                    details={'claim_id': stored.claim_id})
            stored.id = row['id']
            stored.created_at = row['created_at']

            for step in stored.steps:
                cursor.execute('''
                    INSERT INTO claim_approval_steps
                        (workflow_id, claim_id, level, approver_type, approver_name,
                         status, is_current_step, can_skip, is_required)
                    VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s)
                    RETURNING id
                ''', (
                    stored.id, stored.claim_id, step.level, step.approver_type.value,
                    step.approver_name, step.status.value, step.is_current_step,
                    step.can_skip, step.is_required,
                ))
                step.id = cursor.fetchone()['id']
                step.workflow_id = stored.id
                step.claim_id = stored.claim_id
            return stored

        return self.execute_many(_work)

    def apply_transition(self, transition):
        """Apply a planned step transition and its claim update in one transaction."""
        def _work(cursor):
            cursor.execute('''
                SELECT id FROM claim_approval_workflows
                WHERE id = %s AND status = 'pending'
                FOR UPDATE
            ''', (transition.workflow_id,))
            if cursor.fetchone() is None:
                raise ConflictError(
                    f'Approval workflow {transition.workflow_id} is no longer pending',
                    details={'workflow_id': transition.workflow_id})

            cursor.execute('''
                UPDATE claim_approval_steps
                SET status = %s, is_current_step = FALSE, comments = %s,
                    acted_by = %s, acted_at = %s
                WHERE id = %s AND workflow_id = %s
                AND status = 'pending' AND is_current_step = TRUE
            ''', (
                transition.step_status.value, transition.comments,
                transition.acted_by, transition.acted_at,
                transition.step_id, transition.workflow_id,
            ))
            if cursor.rowcount == 0:
                raise ConflictError(
                    f'Approval step {transition.step_id} was already processed',
                    details={'step_id': transition.step_id})

            if transition.next_step_id is not None:
                cursor.execute('''
                    UPDATE claim_approval_steps SET is_current_step = TRUE
                    WHERE id = %s AND status = 'pending'
                ''', (transition.next_step_id,))

            cursor.execute('''
                UPDATE claim_approval_workflows
                SET status = %s, current_level = %s,
                    completed_at = %s, updated_at = NOW()
                WHERE id = %s
            ''', (
                transition.workflow_status.value, transition.current_level,
                transition.acted_at if transition.completes_workflow else None,
                transition.workflow_id,
            ))

            if transition.claim_status is not None:
                cursor.execute('''
                    UPDATE claims SET status = %s, approved_by = %s, updated_at = NOW()
                    WHERE id = %s
                ''', (transition.claim_status.value, transition.approved_by,
                      transition.claim_id))
            return True

        return self.execute_many(_work)

    # ── Reads ──

    def _load(self, where, params=()) -> List[ApprovalWorkflow]:
        """Load workflows matching where, each with its steps, in one transaction."""
        def _work(cursor):
            cursor.execute(
                f'SELECT {_WORKFLOW_COLUMNS} FROM claim_approval_workflows {where} ORDER BY id',
                params)
            rows = cursor.fetchall()
            if not rows:
                return []
            ids = [r['id'] for r in rows]
            cursor.execute(f'''
                SELECT {_STEP_COLUMNS} FROM claim_approval_steps
                WHERE workflow_id = ANY(%s)
                ORDER BY workflow_id, level
            ''', (ids,))
            steps_by_workflow = {}
            for step_row in cursor.fetchall():
                steps_by_workflow.setdefault(step_row['workflow_id'], []).append(
                    _row_to_step(step_row))
            return [_row_to_workflow(r, steps_by_workflow.get(r['id'], [])) for r in rows]

        return self.execute_many(_work)

    def get_by_id(self, workflow_id) -> Optional[ApprovalWorkflow]:
        found = self._load('WHERE id = %s', (workflow_id,))
        return found[0] if found else None

    def get_by_claim(self, claim_id) -> Optional[ApprovalWorkflow]:
        found = self._load('WHERE claim_id = %s', (claim_id,))
        return found[0] if found else None

    def list_workflows(self, status: Optional[WorkflowStatus] = None) -> List[ApprovalWorkflow]:
        if status is not None:
            return self._load('WHERE status = %s', (status.value,))
        return self._load('')

    def get_step(self, step_id) -> Optional[ApprovalStep]:
        row = self.query_one(
            f'SELECT {_STEP_COLUMNS} FROM claim_approval_steps WHERE id = %s', (step_id,))
        return _row_to_step(row) if row else None

    def list_steps(self) -> List[ApprovalStep]:
        rows = self.query_all(
            f'SELECT {_STEP_COLUMNS} FROM claim_approval_steps ORDER BY workflow_id, level')
        return [_row_to_step(r) for r in rows]

    def get_pending_steps_for_approver(self, approver_name: str) -> List[ApprovalStep]:
        rows = self.query_all(f'''
            SELECT {_STEP_COLUMNS} FROM claim_approval_steps
            WHERE is_current_step = TRUE AND approver_name = %s
            ORDER BY workflow_id
        ''', (approver_name,))
        return [_row_to_step(r) for r in rows]
