import sys
import os

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from bazaar.core.config import settings
from bazaar.db.init_db import init_db
from bazaar.db.seed import seed_fixtures
from bazaar.db.session import SessionLocal, engine

def seed(path=None):
    path = path or settings.FIXTURES_PATH
    print(f"Seeding marketplace data from {path}...")
    init_db(engine)
    db = SessionLocal()
    try:
        if seed_fixtures(db, path):
            print("Marketplace data seeded successfully.")
        else:
            print("Store already has users; nothing seeded.")
    except Exception as e:
        db.rollback()
        print(f"Error seeding data: {e}")
    finally:
        db.close()

if __name__ == "__main__":
    seed(sys.argv[1] if len(sys.argv) > 1 else None)
