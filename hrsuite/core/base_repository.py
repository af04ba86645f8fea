"""Shared connection handling for the PostgreSQL claims repositories.

ClaimRepository, RuleRepository, WorkflowRepository and EmployeeDirectory
inherit from BaseRepository. Each helper borrows a pooled connection,
runs its SQL through a RealDictCursor and hands the connection back.

Usage:
    class ClaimRepository(BaseRepository):
        def get_by_id(self, claim_id):
            return self.query_one('SELECT * FROM claims WHERE id = %s', (claim_id,))

    class WorkflowRepository(BaseRepository):
        def apply_transition(self, transition):
            def _work(cursor):
                cursor.execute('SELECT ... FROM claim_approval_steps WHERE id = %s FOR UPDATE', ...)
                cursor.execute('UPDATE claim_approval_steps SET ...')
                cursor.execute('UPDATE claims SET status = %s ...')
            return self.execute_many(_work)
"""

from hrsuite.database import get_db, get_cursor, release_db, dict_from_row


class BaseRepository:

    def query_one(self, sql, params=None):
        """Single row as a dict (claim, rule, workflow header), or None."""
        conn = get_db()
        try:
            cursor = get_cursor(conn)
            cursor.execute(sql, params or ())
            row = cursor.fetchone()
            return dict_from_row(row) if row else None
        finally:
            release_db(conn)

    def query_all(self, sql, params=None):
        """Execute a SELECT and return all rows as list of dicts."""
        conn = get_db()
        try:
            cursor = get_cursor(conn)
            cursor.execute(sql, params or ())
            return [dict_from_row(r) for r in cursor.fetchall()]
        finally:
            release_db(conn)

    def execute(self, sql, params=None, returning=False):
        """Run one INSERT/UPDATE/DELETE and commit it.

        Returns:
            the RETURNING row as a dict if returning=True, else the rowcount
            (repositories report "not found" when it is 0)
        """
        conn = get_db()
        try:
            cursor = get_cursor(conn)
            cursor.execute(sql, params or ())
            if returning:
                result = cursor.fetchone()
                conn.commit()
                return dict_from_row(result) if result else None
            conn.commit()
            return cursor.rowcount
        except Exception:
            conn.rollback()
            raise
        finally:
            release_db(conn)

    def execute_many(self, callback):
        """Run several statements as one transaction.

        Used where a workflow and its steps, or a step transition and its
        claim status, must land together.

        Args:
            callback: receives the cursor. Everything it executes is
                      committed on return and rolled back if it raises.

        Returns:
            Whatever callback returns
        """
        conn = get_db()
        try:
            conn.autocommit = False
            cursor = get_cursor(conn)
            result = callback(cursor)
            conn.commit()
            return result
        except Exception:
            conn.rollback()
            raise
        finally:
            release_db(conn)
