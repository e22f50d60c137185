# create_admin.py
import argparse
import getpass

from school_app.db import Base, SessionLocal, engine
from school_app.models import User, UserRole
from school_app.core.security import get_password_hash


def create_first_admin(email: str, password: str) -> bool:
    print("Connecting to the database...")
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        existing_user = db.query(User).filter(User.email == email.lower()).first()
        if existing_user:
            print(f"User with email '{email}' already exists. Aborting.")
            return False

        print("Creating new admin user...")
        admin_user = User(
            email=email.lower(),
            hashed_password=get_password_hash(password),
            role=UserRole.admin
        )
        db.add(admin_user)
        db.commit()
    finally:
        db.close()

    print(f"Admin user '{email}' created successfully!")
    return True


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create the first school portal admin account.")
    parser.add_argument("email")
    args = parser.parse_args()
    create_first_admin(args.email, getpass.getpass("Admin password: "))
