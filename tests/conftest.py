import os

# Settings are read on first use; client-only test modules still need the required values.
os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///./test_linkup.db")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
