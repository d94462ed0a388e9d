# scripts/init_database.py

"""
Database initialization script.
Creates the CRM tables (operators, venues, contacts, contact_venues) and the
``import_jobs`` table, then optionally seeds a default operator.
"""

import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app import app
from crm_app.models import Operator, db


def create_default_operator():
    """Create a placeholder operator so venue imports have something to reference"""
    create_default = os.environ.get("CREATE_DEFAULT_OPERATOR", "true").lower() == "true"

    if not create_default:
        print("Skipping default operator creation (CREATE_DEFAULT_OPERATOR=false)")
        return None

    existing = Operator.query.filter_by(name="Independent").first()
    if existing:
        print("Default operator already exists")
        return existing

    operator = Operator(name="Independent", description="Venues without a parent operator")
    db.session.add(operator)
    db.session.commit()
    return operator


def init_database():
    """Initialize database with all default data"""
    with app.app_context():
        print("Creating database tables...")
        db.create_all()
        print("Database tables created (including import_jobs)")

        print("Creating default operator...")
        operator = create_default_operator()
        if operator:
            print(f"Default operator ready: {operator.name}")

        print("\nDatabase initialization complete!")
        print("\nNext steps:")
        print("  1. Seed sample data: python scripts/seed_database.py")
        print("  2. Download a template: flask importer template --kind venues")
        print("  3. Import a file: flask importer run --kind venues --file venues.csv --inline")


if __name__ == "__main__":
    init_database()
