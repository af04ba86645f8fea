"""Repository for the claim_approval_rules table.

Rules are returned in store order (id ascending), which is the order the
matcher tries them in.
"""

import json
import logging
from typing import Optional, List

from hrsuite.core.base_repository import BaseRepository
from ..models import ApprovalRule

logger = logging.getLogger('hrsuite.claims.repositories.rules')

_COLUMNS = '''
    id, name, description, claim_types, conditions, approval_chain, is_active,
    created_at, updated_at
'''


def _rule_params(rule: ApprovalRule) -> tuple:
    data = rule.to_dict()
    return (
        rule.name, rule.description,
        json.dumps(data['claim_types']),
        json.dumps(data['conditions']),
        json.dumps(data['approval_chain']),
        rule.is_active,
    )


class RuleRepository(BaseRepository):

    def list_rules(self, active_only: bool = False) -> List[ApprovalRule]:
        if active_only:
            rows = self.query_all(
                f'SELECT {_COLUMNS} FROM claim_approval_rules WHERE is_active = TRUE ORDER BY id')
        else:
            rows = self.query_all(f'SELECT {_COLUMNS} FROM claim_approval_rules ORDER BY id')
        return [ApprovalRule.from_dict(r) for r in rows]

    def get_by_id(self, rule_id) -> Optional[ApprovalRule]:
        row = self.query_one(
            f'SELECT {_COLUMNS} FROM claim_approval_rules WHERE id = %s', (rule_id,))
        return ApprovalRule.from_dict(row) if row else None

    def create(self, rule: ApprovalRule) -> ApprovalRule:
        row = self.execute(f'''
            INSERT INTO claim_approval_rules
                (name, description, claim_types, conditions, approval_chain, is_active)
            VALUES (%s, %s, %s::jsonb, %s::jsonb, %s::jsonb, %s)
            RETURNING {_COLUMNS}
        ''', _rule_params(rule), returning=True)
        logger.info(f"Created claim approval rule '{rule.name}' (#{row['id']})")
        return ApprovalRule.from_dict(row)

    def update(self, rule: ApprovalRule) -> bool:
        return self.execute('''
            UPDATE claim_approval_rules
            SET name = %s, description = %s, claim_types = %s::jsonb,
                conditions = %s::jsonb, approval_chain = %s::jsonb, is_active = %s,
                updated_at = NOW()
            WHERE id = %s
        ''', _rule_params(rule) + (rule.id,)) > 0

    def delete(self, rule_id) -> bool:
        return self.execute(
            'DELETE FROM claim_approval_rules WHERE id = %s', (rule_id,)) > 0
