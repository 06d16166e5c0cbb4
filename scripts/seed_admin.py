import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from bazaar.core.config import settings
from bazaar.core.security import hash_password
from bazaar.db.init_db import init_db
from bazaar.db.models.user_model import User
from bazaar.db.session import SessionLocal, engine

def seed_admin_user(username: str, password: str):
    init_db(engine)
    db = SessionLocal()
    try:
        user = db.query(User).filter(User.username == username).first()

        if user:
            print(f"User {username} found. Updating password and granting admin...")
            user.password_hash = hash_password(password)
            user.is_admin = True
            user.can_login = True
            user.ban_expiry = None
            db.commit()
            print("User updated successfully.")
        else:
            print(f"User {username} not found. Creating new admin user...")
            new_user = User(
                username=username,
                password_hash=hash_password(password),
                is_admin=True,
                can_login=True,
                balance=settings.STARTING_BALANCE
            )
            db.add(new_user)
            db.commit()
            print("Admin user created successfully.")

    except Exception as e:
        db.rollback()
        print(f"Error seeding admin: {e}")
    finally:
        db.close()

if __name__ == "__main__":
    if len(sys.argv) != 3:
        print("usage: python scripts/seed_admin.py <username> <password>")
        sys.exit(1)
    seed_admin_user(sys.argv[1], sys.argv[2])
