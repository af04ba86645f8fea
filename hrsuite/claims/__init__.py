"""Claims module.

Features:
- Expense claim submission and management
- Approval rules (claim type, amount, department, category, urgency)
- Multi-level approval workflows per claim
"""
from flask import Blueprint

claims_bp = Blueprint('claims', __name__)

from . import routes  # noqa: E402, F401
