"""Rule matching — picks the approval rule that governs a claim.

Rules are tried in store order and the first match wins. There is no
priority or specificity ranking; reordering rules changes which one wins.
"""

import logging
from typing import Iterable, Optional

from .condition_eval import ConditionEvaluator
from ..models import ApprovalRule, Claim

logger = logging.getLogger('hrsuite.claims.approvals.matcher')


def claim_context(claim: Claim) -> dict:
    """Flatten the claim attributes rules can test into a condition context."""
    return {
        'claim_type': claim.claim_type.value,
        'amount': claim.amount,
        'department': claim.department,
        'category': claim.category,
        'urgency': claim.urgency.value,
    }


def rule_conditions(rule: ApprovalRule) -> dict:
    """Translate a rule into ConditionEvaluator conditions.

    Absent amount bounds and empty sets add no condition.
    """
    cond = rule.conditions
    conditions = {'claim_type_in': [t.value for t in rule.claim_types]}
    if cond.min_amount is not None:
        conditions['amount_gte'] = cond.min_amount
    if cond.max_amount is not None:
        conditions['amount_lte'] = cond.max_amount
    if cond.departments:
        conditions['department_in'] = list(cond.departments)
    if cond.categories:
        conditions['category_in'] = list(cond.categories)
    if cond.urgency_levels:
        conditions['urgency_in'] = [u.value for u in cond.urgency_levels]
    return conditions


def match_rule(claim: Claim, rules: Iterable[ApprovalRule]) -> Optional[ApprovalRule]:
    """Return the first active rule whose conditions the claim satisfies, or None."""
    context = claim_context(claim)
    for rule in rules:
        if not rule.is_active:
            continue
        if ConditionEvaluator.evaluate(rule_conditions(rule), context):
            logger.debug(f"Claim {claim.id} matched rule '{rule.name}' (#{rule.id})")
            return rule
    logger.debug(f'No approval rule matches claim {claim.id} ({context["claim_type"]})')
    return None
