"""Create the LabDash ``users`` and ``lab_parameters`` tables without alembic.

Handy for a fresh SQLite file during local development; run it with
``python -m labdash.create_tables`` or directly from the repository root.
Production schemas go through ``alembic upgrade head`` instead.
"""
import sys
from pathlib import Path

from dotenv import load_dotenv

ROOT_DIR = Path(__file__).resolve().parent.parent
if str(ROOT_DIR) not in sys.path:
    sys.path.append(str(ROOT_DIR))

ENV_PATH = ROOT_DIR / "labdash" / ".env"
if ENV_PATH.exists():
    load_dotenv(ENV_PATH, override=False)

from labdash.db.session import DATABASE_URL
from labdash.models import init_db

if __name__ == "__main__":
    print(f"Creating LabDash tables on {DATABASE_URL.split('@')[-1]}...")
    init_db()
    print("users, lab_parameters ready.")
