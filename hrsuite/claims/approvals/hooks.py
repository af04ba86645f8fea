"""Simple in-process callback registry for claim approval events.

Usage:
    from hrsuite.claims.approvals import hooks

    hooks.on(hooks.APPROVED, my_handler)
    hooks.fire(hooks.APPROVED, {'claim_id': 12, 'workflow_id': 4})

Events:
    claim_approval.workflow_created — workflow + steps stored for a claim
    claim_approval.step_processed   — a step was approved, rejected or skipped
    claim_approval.step_advanced    — the next level became current
    claim_approval.approved         — final level done, claim approved
    claim_approval.rejected         — rejected at any level, claim rejected
"""

import logging

logger = logging.getLogger('hrsuite.claims.approvals.hooks')

WORKFLOW_CREATED = 'claim_approval.workflow_created'
STEP_PROCESSED = 'claim_approval.step_processed'
STEP_ADVANCED = 'claim_approval.step_advanced'
APPROVED = 'claim_approval.approved'
REJECTED = 'claim_approval.rejected'

_registry: dict[str, list] = {}


def on(event_type: str, callback):
    """Register a callback for an event type."""
    _registry.setdefault(event_type, []).append(callback)
    logger.debug(f'Registered hook for {event_type}: {getattr(callback, "__name__", callback)}')


def fire(event_type: str, payload: dict):
    """Call all registered callbacks for event_type. Handler errors are logged, never raised."""
    for cb in list(_registry.get(event_type, [])):
        try:
            cb(payload)
        except Exception as e:
            logger.error(f'Hook error for {event_type} in {getattr(cb, "__name__", cb)}: {e}',
                         exc_info=True)


def clear(event_type: str = None):
    """Clear hooks. If event_type given, clear only that type. Used in tests."""
    if event_type:
        _registry.pop(event_type, None)
    else:
        _registry.clear()
