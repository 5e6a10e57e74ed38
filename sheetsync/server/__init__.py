"""Remote content service (FastAPI + PostgreSQL)."""
