"""Claim Repository - Data access for expense claims.

Handles all database operations for the claims table.
"""
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Optional, List

from hrsuite.core.base_repository import BaseRepository
from ..models import Claim, ClaimStats, ClaimStatus

_COLUMNS = '''
    id, employee_name, employee_id, claim_type, amount, currency, category,
    urgency, description, submission_date, status, approved_by, receipt_url,
    department, created_at, updated_at
'''


def _column_value(value):
    return value.value if isinstance(value, Enum) else value


class ClaimRepository(BaseRepository):
    """Repository for claim data access operations."""

    def create(self, claim: Claim) -> Claim:
        row = self.execute(f'''
            INSERT INTO claims (employee_name, employee_id, claim_type, amount, currency,
                category, urgency, description, submission_date, status, approved_by,
                receipt_url, department)
            VALUES (%s, %s, %s, %s, %s, %s, %s, %s, COALESCE(%s, CURRENT_DATE), %s, %s, %s, %s)
            RETURNING {_COLUMNS}
        ''', (
            claim.employee_name, claim.employee_id, claim.claim_type.value, claim.amount,
            claim.currency, claim.category, claim.urgency.value, claim.description,
            claim.submission_date, claim.status.value, claim.approved_by,
            claim.receipt_url, claim.department,
        ), returning=True)
        return Claim.from_dict(row)

    def get_by_id(self, claim_id) -> Optional[Claim]:
        row = self.query_one(f'SELECT {_COLUMNS} FROM claims WHERE id = %s', (claim_id,))
        return Claim.from_dict(row) if row else None

    def list_claims(self, status: Optional[ClaimStatus] = None) -> List[Claim]:
        if status is not None:
            rows = self.query_all(
                f'SELECT {_COLUMNS} FROM claims WHERE status = %s ORDER BY id', (status.value,))
        else:
            rows = self.query_all(f'SELECT {_COLUMNS} FROM claims ORDER BY id')
        return [Claim.from_dict(r) for r in rows]

    def update_fields(self, claim_id, fields: Dict[str, Any]) -> bool:
        """Write only the given editable columns; other columns keep their stored values."""
        columns = [c for c in fields if c in Claim.EDITABLE_FIELDS]
        if not columns:
            return self.get_by_id(claim_id) is not None
        assignments = ', '.join(f'{c} = %s' for c in columns)
        params = [_column_value(fields[c]) for c in columns]
        return self.execute(
            f'UPDATE claims SET {assignments}, updated_at = NOW() WHERE id = %s',
            (*params, claim_id)) > 0

    def delete(self, claim_id) -> bool:
        return self.execute('DELETE FROM claims WHERE id = %s', (claim_id,)) > 0

    def get_stats(self) -> ClaimStats:
        row = self.query_one('''
            SELECT
                COUNT(*) as total,
                COUNT(*) FILTER (WHERE status = 'pending') as pending,
                COUNT(*) FILTER (WHERE status = 'processing') as processing,
                COUNT(*) FILTER (WHERE status = 'approved') as approved,
                COUNT(*) FILTER (WHERE status = 'rejected') as rejected,
                COALESCE(SUM(amount) FILTER (WHERE status = 'approved'), 0) as total_approved_amount
            FROM claims
        ''')
        row = row or {}
        return ClaimStats(
            total=row.get('total', 0),
            pending=row.get('pending', 0),
            processing=row.get('processing', 0),
            approved=row.get('approved', 0),
            rejected=row.get('rejected', 0),
            total_approved_amount=Decimal(str(row.get('total_approved_amount', 0))),
        )
