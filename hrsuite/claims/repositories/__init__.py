"""Claims repositories (PostgreSQL and in-memory)."""
from .claim_repository import ClaimRepository
from .rule_repository import RuleRepository
from .workflow_repository import WorkflowRepository
from .employee_directory import EmployeeDirectory
from .memory import (
    MemoryStore, InMemoryClaimRepository, InMemoryRuleRepository,
    InMemoryWorkflowRepository, InMemoryEmployeeDirectory,
)

__all__ = [
    'ClaimRepository', 'RuleRepository', 'WorkflowRepository', 'EmployeeDirectory',
    'MemoryStore', 'InMemoryClaimRepository', 'InMemoryRuleRepository',
    'InMemoryWorkflowRepository', 'InMemoryEmployeeDirectory',
]
