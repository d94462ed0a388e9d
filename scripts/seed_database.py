# scripts/seed_database.py
"""
Database seeding script.
Populates operators, venues and contacts with sample data so the importer has
reference names to resolve against during development.
"""

import argparse
import os
import random
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from faker import Faker

from app import app
from crm_app.models import (
    Contact,
    ContactVenue,
    ImportJob,
    Operator,
    Venue,
    VenueStage,
    VenueStatus,
    VenueType,
    compute_initials,
    db,
)

fake = Faker()

OPERATOR_NAMES = ["Live Nation", "AEG Presents", "Oak View Group", "ASM Global", "Independent"]

# Statistics tracking
stats = {
    "operators": 0,
    "venues": 0,
    "contacts": 0,
}


def clear_database():
    """Clear all seeded data from the database"""
    print("Clearing existing data...")
    try:
        # Delete in reverse order of dependencies
        ContactVenue.query.delete()
        Contact.query.delete()
        Venue.query.delete()
        Operator.query.delete()
        ImportJob.query.delete()
        db.session.commit()
        print("Database cleared")
    except Exception as exc:
        db.session.rollback()
        print(f"Error clearing database: {exc}")
        sys.exit(1)


def seed_operators(dry_run=False):
    """Create the well-known operators"""
    print("\nSeeding operators...")
    operators = []
    for name in OPERATOR_NAMES:
        if dry_run:
            print(f"  [DRY RUN] Would create operator: {name}")
            continue
        operator = Operator.query.filter_by(name=name).first()
        if operator:
            print(f"  Operator '{name}' already exists, skipping")
        else:
            operator = Operator(name=name, website=fake.url())
            db.session.add(operator)
            stats["operators"] += 1
        operators.append(operator)
    if not dry_run:
        db.session.commit()
    return operators


def seed_venues(operators, count, dry_run=False):
    """Create venues spread across the pipeline stages"""
    print(f"\nSeeding {count} venues...")
    venues = []
    for _ in range(count):
        name = f"{fake.city()} {random.choice(['Arena', 'Amphitheater', 'Hall', 'Stadium', 'Club'])}"
        if dry_run:
            print(f"  [DRY RUN] Would create venue: {name}")
            continue
        venue = Venue(
            name=name,
            address=fake.street_address(),
            city=fake.city(),
            state=fake.state_abbr(),
            venue_type=random.choice(list(VenueType)),
            capacity=random.randint(500, 70000),
            stage=random.choice(list(VenueStage)),
            status=random.choice(list(VenueStatus)),
            deal_value=round(random.uniform(10000, 2000000), 2),
            operator=random.choice(operators) if operators else None,
        )
        db.session.add(venue)
        venues.append(venue)
        stats["venues"] += 1
    if not dry_run:
        db.session.commit()
    return venues


def seed_contacts(venues, per_venue, dry_run=False):
    """Create contacts and link them to venues, one primary per venue"""
    print(f"\nSeeding {per_venue} contacts per venue...")
    for venue in venues:
        for index in range(per_venue):
            name = fake.name()
            if dry_run:
                print(f"  [DRY RUN] Would create contact: {name}")
                continue
            contact = Contact(
                name=name,
                email=fake.unique.email(),
                phone=fake.phone_number()[:50],
                role=random.choice(["Booker", "General Manager", "Marketing Director", "Promoter"]),
                is_primary=index == 0,
                avatar=compute_initials(name),
            )
            contact.venue_links.append(ContactVenue(venue=venue))
            db.session.add(contact)
            stats["contacts"] += 1
    if not dry_run:
        db.session.commit()


def seed_database(clear=False, venue_count=20, contacts_per_venue=2, dry_run=False):
    """Main function to seed the database"""
    print("=" * 60)
    print("Database Seeding Script")
    print("=" * 60)

    if dry_run:
        print("\nDRY RUN MODE - No changes will be made to the database\n")

    with app.app_context():
        if clear and not dry_run:
            clear_database()

        operators = seed_operators(dry_run)
        venues = seed_venues(operators, venue_count, dry_run)
        seed_contacts(venues, contacts_per_venue, dry_run)

        print("\n" + "=" * 60)
        print("Seeding Summary")
        print("=" * 60)
        print(f"Operators: {stats['operators']}")
        print(f"Venues: {stats['venues']}")
        print(f"Contacts: {stats['contacts']}")

        print("\nSeeding completed successfully!")


def main():
    """Command-line interface"""
    parser = argparse.ArgumentParser(description="Seed the database with sample CRM data")
    parser.add_argument("--clear", action="store_true", help="Clear existing data before seeding")
    parser.add_argument("--venues", type=int, default=20, help="Number of venues to create (default: 20)")
    parser.add_argument(
        "--contacts-per-venue",
        type=int,
        default=2,
        help="Contacts linked to each venue (default: 2)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would be created without actually creating",
    )

    args = parser.parse_args()
    seed_database(
        clear=args.clear,
        venue_count=args.venues,
        contacts_per_venue=args.contacts_per_venue,
        dry_run=args.dry_run,
    )


if __name__ == "__main__":
    main()
