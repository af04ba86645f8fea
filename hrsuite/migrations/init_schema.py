"""Database schema initialization.

Contains the CREATE TABLE and CREATE INDEX statements for the claims
approval tables and the employee directory they read from.

Called by database.init_db().
"""


def create_schema(conn, cursor):
    """Create all claims tables and indexes. Idempotent.

    Args:
        conn: Database connection (committed by the caller's transaction)
        cursor: Database cursor from get_cursor(conn)
    """
    cursor.execute('''
        CREATE TABLE IF NOT EXISTS employees (
            id TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            email TEXT,
            department TEXT,
            manager_id TEXT REFERENCES employees(id) ON DELETE SET NULL,
            is_active BOOLEAN DEFAULT TRUE,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
    ''')

    cursor.execute('''
        CREATE TABLE IF NOT EXISTS departments (
            name TEXT PRIMARY KEY,
            head_employee_id TEXT REFERENCES employees(id) ON DELETE SET NULL
        )
    ''')

    cursor.execute('''
        CREATE TABLE IF NOT EXISTS claims (
            id SERIAL PRIMARY KEY,
            employee_name TEXT NOT NULL,
            employee_id TEXT NOT NULL,
            claim_type TEXT NOT NULL,
            amount NUMERIC(15,2) NOT NULL CHECK (amount >= 0),
            currency TEXT DEFAULT 'USD',
            category TEXT DEFAULT '',
            urgency TEXT DEFAULT 'medium'
                CHECK (urgency IN ('low', 'medium', 'high')),
            description TEXT DEFAULT '',
            submission_date DATE DEFAULT CURRENT_DATE,
            status TEXT DEFAULT 'pending'
                CHECK (status IN ('pending', 'processing', 'approved', 'rejected')),
            approved_by TEXT,
            receipt_url TEXT,
            department TEXT,
            created_at TIMESTAMPTZ DEFAULT NOW(),
            updated_at TIMESTAMPTZ DEFAULT NOW()
        )
    ''')
    cursor.execute('CREATE INDEX IF NOT EXISTS idx_claims_status ON claims(status)')
    cursor.execute('CREATE INDEX IF NOT EXISTS idx_claims_employee ON claims(employee_id)')

    cursor.execute('''
        CREATE TABLE IF NOT EXISTS claim_approval_rules (
            id SERIAL PRIMARY KEY,
            name TEXT NOT NULL,
            description TEXT,
            claim_types JSONB NOT NULL DEFAULT '[]',
            conditions JSONB NOT NULL DEFAULT '{}',
            approval_chain JSONB NOT NULL DEFAULT '[]',
            is_active BOOLEAN DEFAULT TRUE,
            created_at TIMESTAMPTZ DEFAULT NOW(),
            updated_at TIMESTAMPTZ DEFAULT NOW()
        )
    ''')

    # Workflows keep claim_id as a plain back-reference: deleting a claim
    # leaves its approval history in place.
    cursor.execute('''
        CREATE TABLE IF NOT EXISTS claim_approval_workflows (
            id SERIAL PRIMARY KEY,
            claim_id INTEGER NOT NULL UNIQUE,
            rule_id INTEGER REFERENCES claim_approval_rules(id) ON DELETE SET NULL,
            rule_name TEXT NOT NULL,
            current_level INTEGER NOT NULL DEFAULT 1,
            total_levels INTEGER NOT NULL CHECK (total_levels > 0),
            status TEXT NOT NULL DEFAULT 'pending'
                CHECK (status IN ('pending', 'approved', 'rejected')),
            created_at TIMESTAMPTZ DEFAULT NOW(),
            updated_at TIMESTAMPTZ DEFAULT NOW(),
            completed_at TIMESTAMPTZ
        )
    ''')
    cursor.execute('CREATE INDEX IF NOT EXISTS idx_claim_workflows_status ON claim_approval_workflows(status)')

    cursor.execute('''
        CREATE TABLE IF NOT EXISTS claim_approval_steps (
            id SERIAL PRIMARY KEY,
            workflow_id INTEGER NOT NULL REFERENCES claim_approval_workflows(id) ON DELETE RESTRICT,
            claim_id INTEGER NOT NULL,
            level INTEGER NOT NULL CHECK (level > 0),
            approver_type TEXT NOT NULL
                CHECK (approver_type IN ('direct-manager', 'department-head', 'finance', 'hr', 'specific-person')),
            approver_name TEXT NOT NULL,
            status TEXT NOT NULL DEFAULT 'pending'
                CHECK (status IN ('pending', 'approved', 'rejected', 'skipped')),
            is_current_step BOOLEAN NOT NULL DEFAULT FALSE,
            can_skip BOOLEAN NOT NULL DEFAULT FALSE,
            is_required BOOLEAN NOT NULL DEFAULT TRUE,
            comments TEXT,
            acted_by TEXT,
            acted_at TIMESTAMPTZ,
            UNIQUE (workflow_id, level)
        )
    ''')
    cursor.execute('CREATE INDEX IF NOT EXISTS idx_claim_steps_workflow ON claim_approval_steps(workflow_id)')
    # At most one current step per workflow
    cursor.execute('''
        CREATE UNIQUE INDEX IF NOT EXISTS idx_claim_steps_one_current
        ON claim_approval_steps(workflow_id) WHERE is_current_step
    ''')
    cursor.execute('''
        CREATE INDEX IF NOT EXISTS idx_claim_steps_pending_approver
        ON claim_approval_steps(approver_name) WHERE is_current_step
    ''')
