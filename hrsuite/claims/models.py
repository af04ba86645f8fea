"""
Claims Data Models

Data classes representing claims, approval rules and live approval
workflows. These are used for internal data transfer between the engine,
the repositories and the routes, not ORM models.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Optional, List, Dict, Any

from .exceptions import ValidationError


class ClaimType(Enum):
    TRAVEL = "travel"
    MEDICAL = "medical"
    EQUIPMENT = "equipment"
    TRAINING = "training"
    MEAL = "meal"
    OTHER = "other"


class Urgency(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ClaimStatus(Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    APPROVED = "approved"
    REJECTED = "rejected"


class ApproverType(Enum):
    """Who approves a level of an approval chain."""
    DIRECT_MANAGER = "direct-manager"
    DEPARTMENT_HEAD = "department-head"
    FINANCE = "finance"
    HR = "hr"
    SPECIFIC_PERSON = "specific-person"


# Approver types whose approver_name is the actual approver
NAMED_APPROVER_TYPES = frozenset({
    ApproverType.FINANCE, ApproverType.HR, ApproverType.SPECIFIC_PERSON,
})


class WorkflowStatus(Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class StepStatus(Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    SKIPPED = "skipped"


class StepAction(Enum):
    APPROVE = "approve"
    REJECT = "reject"
    SKIP = "skip"

    @property
    def resulting_status(self) -> StepStatus:
        return _ACTION_RESULTS[self]


_ACTION_RESULTS = {
    StepAction.APPROVE: StepStatus.APPROVED,
    StepAction.REJECT: StepStatus.REJECTED,
    StepAction.SKIP: StepStatus.SKIPPED,
}


# ============== Parsing helpers ==============

def parse_enum(enum_cls, value, field_name: str):
    """Coerce value (enum member or its string value) into enum_cls."""
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).strip().lower())
    except ValueError:
        allowed = ', '.join(m.value for m in enum_cls)
        raise ValidationError(
            f"Invalid {field_name} '{value}'. Allowed: {allowed}",
            details={'field': field_name},
        )


def parse_amount(value, field_name: str = 'amount', optional: bool = False) -> Optional[Decimal]:
    """Parse a money amount into Decimal. Amounts may not be negative."""
    if value is None or value == '':
        if optional:
            return None
        raise ValidationError(f'{field_name} is required', details={'field': field_name})
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError(f"Invalid {field_name} '{value}'", details={'field': field_name})
    if not amount.is_finite() or amount < 0:
        raise ValidationError(f'{field_name} must be a non-negative number',
                              details={'field': field_name})
    return amount


def parse_bool(value, field_name: str, default: bool) -> bool:
    """Accept a real boolean only; None means the default."""
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    raise ValidationError(f'{field_name} must be true or false', details={'field': field_name})


def _parse_level(value, position: int) -> int:
    if value is None:
        return position
    if isinstance(value, bool):
        raise ValidationError(f"Invalid level '{value}'", details={'field': 'level'})
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid level '{value}'", details={'field': 'level'})


def _parse_date(value) -> Optional[date]:
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        raise ValidationError(f"Invalid date '{value}'", details={'field': 'submission_date'})


def _parse_datetime(value) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value))


def _iso(value):
    return value.isoformat() if value is not None else None


def _money(value):
    return float(value) if value is not None else None


def _str_list(values) -> List[str]:
    return [str(v).strip() for v in (values or []) if str(v).strip()]


# ============== Claims ==============

@dataclass
class Claim:
    """
    An employee-submitted reimbursement request.
    Maps to the claims table.
    """
    id: Optional[int] = None
    employee_name: str = ""
    employee_id: str = ""
    claim_type: ClaimType = ClaimType.OTHER
    amount: Decimal = Decimal("0.00")
    currency: str = "USD"
    category: str = ""
    urgency: Urgency = Urgency.MEDIUM
    description: str = ""
    submission_date: Optional[date] = None
    status: ClaimStatus = ClaimStatus.PENDING
    approved_by: Optional[str] = None
    receipt_url: Optional[str] = None

    # Employee's department, snapshotted at submission
    department: Optional[str] = None

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    # Fields a caller may set on creation or edit
    EDITABLE_FIELDS = (
        'employee_name', 'employee_id', 'claim_type', 'amount', 'currency',
        'category', 'urgency', 'description', 'submission_date', 'status',
        'approved_by', 'receipt_url', 'department',
    )

    @classmethod
    def from_dict(cls, data: Dict[str, Any], default_currency: str = 'USD') -> 'Claim':
        """Build a claim from request/row data, validating required fields."""
        employee_name = str(data.get('employee_name') or '').strip()
        employee_id = str(data.get('employee_id') or '').strip()
        if not employee_name or not employee_id:
            raise ValidationError('employee_name and employee_id are required')
        if data.get('claim_type') in (None, ''):
            raise ValidationError('claim_type is required', details={'field': 'claim_type'})

        return cls(
            id=data.get('id'),
            employee_name=employee_name,
            employee_id=employee_id,
            claim_type=parse_enum(ClaimType, data['claim_type'], 'claim_type'),
            amount=parse_amount(data.get('amount')),
            currency=str(data.get('currency') or default_currency).upper(),
            category=str(data.get('category') or ''),
            urgency=parse_enum(Urgency, data.get('urgency') or Urgency.MEDIUM, 'urgency'),
            description=str(data.get('description') or ''),
            submission_date=_parse_date(data.get('submission_date')),
            status=parse_enum(ClaimStatus, data.get('status') or ClaimStatus.PENDING, 'status'),
            approved_by=data.get('approved_by'),
            receipt_url=data.get('receipt_url'),
            department=data.get('department') or None,
            created_at=_parse_datetime(data.get('created_at')),
            updated_at=_parse_datetime(data.get('updated_at')),
        )

    def apply_changes(self, changes: Dict[str, Any]):
        """Apply a partial manual edit in place, validating each field."""
        for key, value in changes.items():
            if key not in self.EDITABLE_FIELDS:
                continue
            if key == 'claim_type':
                value = parse_enum(ClaimType, value, key)
            elif key == 'urgency':
                value = parse_enum(Urgency, value, key)
            elif key == 'status':
                value = parse_enum(ClaimStatus, value, key)
            elif key == 'amount':
                value = parse_amount(value)
            elif key == 'submission_date':
                value = _parse_date(value)
            elif key == 'currency':
                value = str(value or self.currency).upper()
            elif key in ('employee_name', 'employee_id') and not str(value or '').strip():
                raise ValidationError(f'{key} cannot be empty', details={'field': key})
            setattr(self, key, value)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'employee_name': self.employee_name,
            'employee_id': self.employee_id,
            'claim_type': self.claim_type.value,
            'amount': _money(self.amount),
            'currency': self.currency,
            'category': self.category,
            'urgency': self.urgency.value,
            'description': self.description,
            'submission_date': _iso(self.submission_date),
            'status': self.status.value,
            'approved_by': self.approved_by,
            'receipt_url': self.receipt_url,
            'department': self.department,
            'created_at': _iso(self.created_at),
            'updated_at': _iso(self.updated_at),
        }


# ============== Approval rules (templates) ==============

@dataclass
class RuleConditions:
    """Applicability conditions of a rule. Empty/None means unconstrained."""
    min_amount: Optional[Decimal] = None
    max_amount: Optional[Decimal] = None
    departments: List[str] = field(default_factory=list)
    categories: List[str] = field(default_factory=list)
    urgency_levels: List[Urgency] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'RuleConditions':
        data = data or {}
        return cls(
            min_amount=parse_amount(data.get('min_amount'), 'min_amount', optional=True),
            max_amount=parse_amount(data.get('max_amount'), 'max_amount', optional=True),
            departments=_str_list(data.get('departments')),
            categories=_str_list(data.get('categories')),
            urgency_levels=[parse_enum(Urgency, u, 'urgency_levels')
                            for u in (data.get('urgency_levels') or [])],
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'min_amount': _money(self.min_amount),
            'max_amount': _money(self.max_amount),
            'departments': list(self.departments),
            'categories': list(self.categories),
            'urgency_levels': [u.value for u in self.urgency_levels],
        }


@dataclass
class ApprovalLevel:
    """One level of an approval chain template."""
    level: int = 1
    approver_type: ApproverType = ApproverType.DIRECT_MANAGER
    approver_name: Optional[str] = None
    is_required: bool = True
    can_skip: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any], position: int) -> 'ApprovalLevel':
        name = data.get('approver_name')
        return cls(
            level=_parse_level(data.get('level'), position),
            approver_type=parse_enum(ApproverType, data.get('approver_type'), 'approver_type'),
            approver_name=str(name).strip() if name else None,
            is_required=parse_bool(data.get('is_required'), 'is_required', True),
            can_skip=parse_bool(data.get('can_skip'), 'can_skip', False),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'level': self.level,
            'approver_type': self.approver_type.value,
            'approver_name': self.approver_name,
            'is_required': self.is_required,
            'can_skip': self.can_skip,
        }


@dataclass
class ApprovalRule:
    """
    A named policy mapping claim attributes to an approval chain.
    Maps to the claim_approval_rules table.
    """
    id: Optional[int] = None
    name: str = ""
    description: Optional[str] = None
    claim_types: List[ClaimType] = field(default_factory=list)
    conditions: RuleConditions = field(default_factory=RuleConditions)
    approval_chain: List[ApprovalLevel] = field(default_factory=list)
    is_active: bool = True

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ApprovalRule':
        return cls(
            id=data.get('id'),
            name=str(data.get('name') or '').strip(),
            description=data.get('description'),
            claim_types=[parse_enum(ClaimType, t, 'claim_types')
                         for t in (data.get('claim_types') or [])],
            conditions=RuleConditions.from_dict(data.get('conditions')),
            approval_chain=[ApprovalLevel.from_dict(level, position)
                            for position, level in enumerate(data.get('approval_chain') or [], start=1)],
            is_active=parse_bool(data.get('is_active'), 'is_active', True),
            created_at=_parse_datetime(data.get('created_at')),
            updated_at=_parse_datetime(data.get('updated_at')),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'description': self.description,
            'claim_types': [t.value for t in self.claim_types],
            'conditions': self.conditions.to_dict(),
            'approval_chain': [level.to_dict() for level in self.approval_chain],
            'is_active': self.is_active,
            'created_at': _iso(self.created_at),
            'updated_at': _iso(self.updated_at),
        }


# ============== Live workflows ==============

@dataclass
class ApprovalStep:
    """
    One level's live instance within a workflow.
    Maps to the claim_approval_steps table.
    """
    id: Optional[int] = None
    workflow_id: Optional[int] = None
    claim_id: Optional[int] = None
    level: int = 1
    approver_type: ApproverType = ApproverType.DIRECT_MANAGER
    approver_name: str = ""  # resolved at instantiation, never re-resolved
    status: StepStatus = StepStatus.PENDING
    is_current_step: bool = False
    can_skip: bool = False
    is_required: bool = True
    comments: Optional[str] = None
    acted_by: Optional[str] = None
    acted_at: Optional[datetime] = None

    @property
    def is_terminal(self) -> bool:
        return self.status != StepStatus.PENDING

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'workflow_id': self.workflow_id,
            'claim_id': self.claim_id,
            'level': self.level,
            'approver_type': self.approver_type.value,
            'approver_name': self.approver_name,
            'status': self.status.value,
            'is_current_step': self.is_current_step,
            'can_skip': self.can_skip,
            'is_required': self.is_required,
            'comments': self.comments,
            'acted_by': self.acted_by,
            'acted_at': _iso(self.acted_at),
        }


@dataclass
class ApprovalWorkflow:
    """
    The live, per-claim instantiation of a matched rule's chain.
    Maps to the claim_approval_workflows table; owns its steps.
    """
    id: Optional[int] = None
    claim_id: Optional[int] = None
    rule_id: Optional[int] = None
    rule_name: str = ""  # copied from the rule at instantiation
    current_level: int = 1
    total_levels: int = 0
    status: WorkflowStatus = WorkflowStatus.PENDING
    steps: List[ApprovalStep] = field(default_factory=list)

    created_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    @property
    def current_step(self) -> Optional[ApprovalStep]:
        return next((s for s in self.steps if s.is_current_step), None)

    def step_by_id(self, step_id) -> Optional[ApprovalStep]:
        return next((s for s in self.steps if s.id == step_id), None)

    def step_at_level(self, level: int) -> Optional[ApprovalStep]:
        return next((s for s in self.steps if s.level == level), None)

    def to_dict(self, include_steps: bool = True) -> Dict[str, Any]:
        result = {
            'id': self.id,
            'claim_id': self.claim_id,
            'rule_id': self.rule_id,
            'rule_name': self.rule_name,
            'current_level': self.current_level,
            'total_levels': self.total_levels,
            'status': self.status.value,
            'created_at': _iso(self.created_at),
            'completed_at': _iso(self.completed_at),
        }
        if include_steps:
            result['steps'] = [s.to_dict() for s in self.steps]
        return result


@dataclass
class ClaimStats:
    """Counts per claim status plus the total approved amount."""
    total: int = 0
    pending: int = 0
    processing: int = 0
    approved: int = 0
    rejected: int = 0
    total_approved_amount: Decimal = Decimal("0.00")

    def to_dict(self) -> Dict[str, Any]:
        return {
            'total': self.total,
            'pending': self.pending,
            'processing': self.processing,
            'approved': self.approved,
            'rejected': self.rejected,
            'total_approved_amount': _money(self.total_approved_amount),
        }
