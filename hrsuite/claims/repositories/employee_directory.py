"""Employee Directory - lookups used to resolve role-based approvers.

Reads the employees and departments tables. Returns None when nothing is
on record; callers decide on placeholders.
"""
from typing import Optional

from hrsuite.core.base_repository import BaseRepository


class EmployeeDirectory(BaseRepository):
    """Read-only employee/department lookups."""

    def get_department(self, employee_id) -> Optional[str]:
        row = self.query_one(
            'SELECT department FROM employees WHERE id = %s', (str(employee_id),))
        return row['department'] if row else None

    def get_manager_name(self, employee_id) -> Optional[str]:
        row = self.query_one('''
            SELECT m.name
            FROM employees e
            JOIN employees m ON m.id = e.manager_id
            WHERE e.id = %s AND m.is_active = TRUE
        ''', (str(employee_id),))
        return row['name'] if row else None

    def get_department_head_name(self, department) -> Optional[str]:
        row = self.query_one('''
            SELECT h.name
            FROM departments d
            JOIN employees h ON h.id = d.head_employee_id
            WHERE d.name = %s AND h.is_active = TRUE
        ''', (department,))
        return row['name'] if row else None
