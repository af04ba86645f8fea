"""Condition evaluator for rule conditions against a claim context dict.

Example:
    conditions = {"amount_gte": 100, "amount_lte": 1000, "claim_type_in": ["travel"]}
    context = {"amount": 450.75, "claim_type": "travel"}
    ConditionEvaluator.evaluate(conditions, context) → True

Operators (key suffix):
    _gte, _lte   — numeric bound (exact, via Decimal)
    _in          — membership in list

Keys without one of these suffixes never match. All conditions are AND'd together.
"""

import logging
from decimal import Decimal, InvalidOperation

logger = logging.getLogger('hrsuite.claims.approvals.conditions')

_OPERATORS = [
    ('_gte', 'gte'),
    ('_lte', 'lte'),
    ('_in', 'in'),
]


class ConditionEvaluator:

    @staticmethod
    def evaluate(conditions: dict, context: dict) -> bool:
        """Evaluate all conditions against context. Returns True if ALL match."""
        if not conditions:
            return True

        for key, expected in conditions.items():
            if not ConditionEvaluator._check(key, expected, context):
                logger.debug(f'Condition {key}={expected!r} not met')
                return False
        return True

    @staticmethod
    def _check(key: str, expected, context: dict) -> bool:
        field, op = ConditionEvaluator._parse_key(key)
        actual = context.get(field)

        if op == 'in':
            if not isinstance(expected, (list, tuple, set, frozenset)):
                return False
            return actual in expected
        if op in ('gte', 'lte'):
            a = _to_number(actual)
            e = _to_number(expected)
            if a is None or e is None:
                return False
            return a >= e if op == 'gte' else a <= e
        logger.warning(f'Unsupported condition key {key!r}')
        return False

    @staticmethod
    def _parse_key(key: str) -> tuple:
        """Parse 'amount_gte' into ('amount', 'gte'). Returns (key, None) for anything else."""
        for suffix, op_name in _OPERATORS:
            if key.endswith(suffix):
                field = key[:-len(suffix)]
                if field:
                    return field, op_name
        return key, None


def _to_number(value):
    if value is None or isinstance(value, bool):
        return None
    try:
        number = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None
    return number if number.is_finite() else None
