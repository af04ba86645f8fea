"""API routes for claims and the claim approval engine.

Approver identity is taken from the request body/query string as given;
it is not checked against any login.
"""

from functools import wraps

from flask import current_app, jsonify, request

from . import claims_bp
from .exceptions import (
    ClaimApprovalError, ConflictError, InvalidTransitionError, NotFoundError, ValidationError,
)
from hrsuite.core.utils.api_helpers import error_response, get_json_or_error, safe_error_response


def _service():
    """The ClaimService built by create_app() for this app."""
    return current_app.extensions['claims_service']


def _claims_api(f):
    """Map claims errors to JSON responses: 400 / 404 / 409, anything else 500."""
    @wraps(f)
    def decorated(*args, **kwargs):
        try:
            return f(*args, **kwargs)
        except NotFoundError as e:
            return error_response(str(e), 404)
        except ConflictError as e:
            return error_response(str(e), 409)
        except (InvalidTransitionError, ValidationError) as e:
            return error_response(str(e), 400)
        except ClaimApprovalError as e:
            return error_response(str(e), 400)
        except Exception as e:
            return safe_error_response(e)
    return decorated


# ════════════════════════════════════════════
# Claims
# ════════════════════════════════════════════

@claims_bp.route('/api/claims', methods=['POST'])
@_claims_api
def api_submit_claim():
    """Submit a claim; starts its approval workflow when a rule matches."""
    data, error = get_json_or_error()
    if error:
        return error
    claim = _service().submit_claim(data)
    workflow = _service().get_workflow_for_claim(claim.id)
    return jsonify({
        'success': True,
        'claim': claim.to_dict(),
        'workflow': workflow.to_dict() if workflow else None,
    }), 201


@claims_bp.route('/api/claims', methods=['GET'])
@_claims_api
def api_list_claims():
    claims = _service().list_claims(status=request.args.get('status'))
    return jsonify({'claims': [c.to_dict() for c in claims]})


@claims_bp.route('/api/claims/stats', methods=['GET'])
@_claims_api
def api_claim_stats():
    return jsonify(_service().get_claim_stats().to_dict())


@claims_bp.route('/api/claims/<int:claim_id>', methods=['GET'])
@_claims_api
def api_get_claim(claim_id):
    return jsonify(_service().get_claim(claim_id).to_dict())


@claims_bp.route('/api/claims/<int:claim_id>', methods=['PUT'])
@_claims_api
def api_update_claim(claim_id):
    """Manual edit of a claim (including its status)."""
    data, error = get_json_or_error()
    if error:
        return error
    claim = _service().update_claim(claim_id, data)
    return jsonify({'success': True, 'claim': claim.to_dict()})


@claims_bp.route('/api/claims/<int:claim_id>', methods=['DELETE'])
@_claims_api
def api_delete_claim(claim_id):
    _service().delete_claim(claim_id)
    return jsonify({'success': True})


@claims_bp.route('/api/claims/<int:claim_id>/workflow', methods=['GET'])
@_claims_api
def api_claim_workflow(claim_id):
    workflow = _service().get_workflow_for_claim(claim_id)
    if workflow is None:
        return error_response(f'Claim {claim_id} has no approval workflow', 404)
    return jsonify(workflow.to_dict())


# ════════════════════════════════════════════
# Workflows & steps
# ════════════════════════════════════════════

@claims_bp.route('/api/workflows', methods=['GET'])
@_claims_api
def api_list_workflows():
    workflows = _service().get_claim_approval_workflows(status=request.args.get('status'))
    return jsonify({'workflows': [w.to_dict() for w in workflows]})


@claims_bp.route('/api/steps', methods=['GET'])
@_claims_api
def api_list_steps():
    return jsonify({'steps': [s.to_dict() for s in _service().get_claim_approval_steps()]})


@claims_bp.route('/api/steps/pending', methods=['GET'])
@_claims_api
def api_pending_steps():
    """Current steps waiting on the given approver."""
    approver = (request.args.get('approver') or '').strip()
    if not approver:
        return error_response('approver is required', 400)
    steps = _service().get_pending_claim_approvals_by_approver(approver)
    return jsonify({'approver': approver, 'steps': [s.to_dict() for s in steps]})


@claims_bp.route('/api/steps/<int:step_id>/process', methods=['POST'])
@_claims_api
def api_process_step(step_id):
    """Approve, reject or skip a step."""
    data, error = get_json_or_error()
    if error:
        return error
    action = (data.get('action') or '').strip().lower()
    approver = (data.get('approver') or '').strip()
    comments = data.get('comments')

    if action not in ('approve', 'reject', 'skip'):
        return error_response('action must be one of approve, reject, skip', 400)
    if not approver:
        return error_response('approver is required', 400)

    workflow = _service().decide_claim_approval_step(step_id, action, comments, approver)
    return jsonify({'success': True, 'workflow': workflow.to_dict()})


# ════════════════════════════════════════════
# Approval rules
# ════════════════════════════════════════════

@claims_bp.route('/api/rules', methods=['GET'])
@_claims_api
def api_list_rules():
    return jsonify({'rules': [r.to_dict() for r in _service().get_claim_approval_rules()]})


@claims_bp.route('/api/rules', methods=['POST'])
@_claims_api
def api_create_rule():
    data, error = get_json_or_error()
    if error:
        return error
    rule = _service().create_claim_approval_rule(data)
    return jsonify({'success': True, 'rule': rule.to_dict()}), 201


@claims_bp.route('/api/rules/<int:rule_id>', methods=['GET'])
@_claims_api
def api_get_rule(rule_id):
    return jsonify(_service().get_claim_approval_rule(rule_id).to_dict())


@claims_bp.route('/api/rules/<int:rule_id>', methods=['PUT'])
@_claims_api
def api_update_rule(rule_id):
    data, error = get_json_or_error()
    if error:
        return error
    rule = _service().update_claim_approval_rule(rule_id, data)
    return jsonify({'success': True, 'rule': rule.to_dict()})


@claims_bp.route('/api/rules/<int:rule_id>', methods=['DELETE'])
@_claims_api
def api_delete_rule(rule_id):
    _service().delete_claim_approval_rule(rule_id)
    return jsonify({'success': True})
