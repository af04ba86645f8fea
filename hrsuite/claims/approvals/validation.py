"""Approval rule validation.

A rule must be fully usable before it reaches the store: a rule with no
claim types or an empty chain could never produce a valid workflow.
"""

from ..exceptions import ValidationError
from ..models import ApprovalRule, NAMED_APPROVER_TYPES


def validate_rule(rule: ApprovalRule) -> ApprovalRule:
    """Raise ValidationError if the rule definition is incomplete. Returns the rule."""
    if not rule.name:
        raise ValidationError('Rule name is required', details={'field': 'name'})

    if not rule.claim_types:
        raise ValidationError('Rule must apply to at least one claim type',
                              details={'field': 'claim_types'})

    if not rule.approval_chain:
        raise ValidationError('Approval chain must have at least one level',
                              details={'field': 'approval_chain'})

    for position, level in enumerate(rule.approval_chain, start=1):
        if level.level != position:
            raise ValidationError(
                f'Approval levels must be numbered 1..{len(rule.approval_chain)} '
                f'without gaps (found level {level.level} at position {position})',
                details={'field': 'approval_chain', 'position': position})
        if level.approver_type in NAMED_APPROVER_TYPES and not level.approver_name:
            raise ValidationError(
                f'Level {level.level}: approver_name is required for '
                f'{level.approver_type.value} approvers',
                details={'field': 'approver_name', 'level': level.level})

    cond = rule.conditions
    if cond.min_amount is not None and cond.max_amount is not None \
            and cond.min_amount > cond.max_amount:
        raise ValidationError('min_amount cannot exceed max_amount',
                              details={'field': 'conditions'})

    return rule
