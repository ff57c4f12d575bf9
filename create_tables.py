# create_tables.py
import sys

from taskhub.database import Base, engine, SessionLocal
from taskhub.models import User, UserRole

def create_tables(reset: bool = False):
    """Create all tables"""
    try:
        if reset:
            Base.metadata.drop_all(bind=engine)
            print("🗑️  Existing tables dropped")

        # Create all tables
        Base.metadata.create_all(bind=engine)
        print("✅ All tables created successfully!")

        # Create default admin user
        create_default_admin()

    except Exception as e:
        print(f"❌ Error creating tables: {e}")
        raise

def create_default_admin():
    """Create a default admin user"""
    db = SessionLocal()
    try:
        admin = db.query(User).filter(User.email == "admin@admin.com").first()
        if admin is None:
            db.add(User(name="System Administrator", email="admin@admin.com", role=UserRole.ADMIN.value))
            db.commit()
            print("✅ Default admin user created!")
            print("   Email: admin@admin.com")
        else:
            print("ℹ️  Admin user already exists")
    finally:
        db.close()

if __name__ == "__main__":
    create_tables(reset="--reset" in sys.argv)
