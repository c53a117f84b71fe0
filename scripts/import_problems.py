"""
CSV Import Script for seeding CrowdSolve problems (safe to rerun)
Usage:
python scripts/import_problems.py data/seed_problems.csv

Columns: title, description, category, author_email, author_name (optional)
Rows failing submission validation are skipped. A problem with the same
title and author already present is left untouched.
"""

import sys
import csv
import secrets
from pathlib import Path
from sqlalchemy.exc import SQLAlchemyError

sys.path.insert(0, str(Path(__file__).parent.parent))

from app import create_app
from app.auth_utils import hash_password
from app.config import DevelopmentConfig
from app.extensions import db
from app.models import Category, Problem, Profile
from app.validation import validate_problem


def _author(email, display_name):
    """Find or create the seed author; seeded accounts get an unguessable password"""
    email = email.strip().lower()
    profile = Profile.query.filter_by(email=email).first()
    if profile is None:
        profile = Profile(
            email=email,
            password_hash=hash_password(secrets.token_urlsafe(24)),
            display_name=display_name or None,
        )
        db.session.add(profile)
        db.session.flush()
    return profile


def import_problems(csv_path: str):
    """Import problems from CSV file"""
    app = create_app(DevelopmentConfig)

    with app.app_context():
        csv_file = Path(csv_path)
        if not csv_file.exists():
            print(f"Error: File not found: {csv_path}")
            sys.exit(1)

        imported = 0
        existing = 0
        skipped = 0

        with open(csv_file, 'r', encoding='utf-8') as f:
            reader = csv.DictReader(f)

            # Verify required columns exist
            required = {'title', 'description', 'category', 'author_email'}
            if not required.issubset(set(reader.fieldnames or [])):
                print(f"Error: Missing required columns: {required}")
                sys.exit(1)

            for line_no, row in enumerate(reader, start=2):
                is_valid, errors = validate_problem(row['title'], row['description'], row['category'])
                if not is_valid or not row['author_email'].strip():
                    print(f"Skipping line {line_no}: {errors or 'missing author_email'}")
                    skipped += 1
                    continue

                author = _author(row['author_email'], (row.get('author_name') or '').strip())
                title = row['title'].strip()

                if Problem.query.filter_by(user_id=author.id, title=title).first():
                    existing += 1
                    continue

                db.session.add(Problem(
                    user_id=author.id,
                    title=title,
                    description=row['description'].strip(),
                    category=Category(row['category'].strip()),
                ))
                imported += 1

            # Commit all at once
            try:
                db.session.commit()
            except SQLAlchemyError as e:
                db.session.rollback()
                print(f"Error: {e}")
                sys.exit(1)

        print(f"Imported {imported} new problems, {existing} already present ({skipped} skipped)")


def main():
    """Parse command-line arguments and run import"""
    if len(sys.argv) < 2:
        print("Usage: python scripts/import_problems.py <file.csv>")
        sys.exit(1)

    import_problems(sys.argv[1])


if __name__ == '__main__':
    main()
