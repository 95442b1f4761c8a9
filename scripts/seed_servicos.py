"""Create the tables and load the clinic's default service catalog.

Usage (from the backend folder):
    python scripts/seed_servicos.py

Nothing is inserted when the services table already has rows.
"""

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from app.db.session import SessionLocal, create_db
from app.db.seed import seed_servicos


def main():
    create_db()
    db = SessionLocal()
    try:
        inseridos = seed_servicos(db)
        print(f'SEED_OK {len(inseridos)} serviços inseridos')
    finally:
        db.close()


if __name__ == "__main__":
    main()
