"""
HR Suite Configuration

Environment variables and settings for the application.
Following pattern from the connector config modules: a dataclass with
typed defaults and a from_env() loader.
"""

import os
from dataclasses import dataclass
from typing import Optional


STORE_POSTGRES = 'postgres'
STORE_MEMORY = 'memory'


@dataclass
class HRSuiteConfig:
    """Application configuration settings."""

    # Database
    DATABASE_URL: Optional[str] = None
    DB_POOL_MIN_CONN: int = 2
    DB_POOL_MAX_CONN: int = 8

    # Claims store backend: 'postgres' or 'memory' (local development)
    CLAIMS_STORE: str = STORE_POSTGRES
    DEFAULT_CURRENCY: str = 'USD'

    # Logging
    LOG_LEVEL: str = 'INFO'
    LOG_JSON: bool = False

    # Flask
    SECRET_KEY: Optional[str] = None
    DEBUG: bool = False

    @classmethod
    def from_env(cls) -> 'HRSuiteConfig':
        """Load configuration from environment variables."""
        debug = os.environ.get('FLASK_DEBUG', 'false').lower() == 'true'
        secret_key = os.environ.get('FLASK_SECRET_KEY', os.environ.get('SECRET_KEY'))
        if not secret_key and debug:
            secret_key = 'dev-secret-key-for-local-only'

        return cls(
            DATABASE_URL=os.environ.get('DATABASE_URL'),
            DB_POOL_MIN_CONN=int(os.environ.get('DB_POOL_MIN_CONN', '2')),
            DB_POOL_MAX_CONN=int(os.environ.get('DB_POOL_MAX_CONN', '8')),
            CLAIMS_STORE=os.environ.get('CLAIMS_STORE', STORE_POSTGRES).lower(),
            DEFAULT_CURRENCY=os.environ.get('CLAIMS_DEFAULT_CURRENCY', 'USD').upper(),
            LOG_LEVEL=os.environ.get('LOG_LEVEL', 'INFO'),
            LOG_JSON=os.environ.get('PRODUCTION', '').lower() == 'true',
            SECRET_KEY=secret_key,
            DEBUG=debug,
        )

    @property
    def uses_memory_store(self) -> bool:
        return self.CLAIMS_STORE == STORE_MEMORY


config = HRSuiteConfig.from_env()
