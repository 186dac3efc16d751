"""
Database initialization and maintenance utilities.

Use this script to:
1. Initialize a fresh database
2. Show statistics
3. Repair cached card vote counts
"""

from app import create_app
from models import db, Card, Participant, Retrospective, User, Vote
from votes import reconcile_vote_counts


def init_database():
    """Initialize a fresh database."""
    app = create_app()

    with app.app_context():
        # Create all tables
        db.create_all()
        print("✓ Database initialized successfully!")
        print(f"✓ Database location: {app.config['SQLALCHEMY_DATABASE_URI']}")


def reconcile(retrospective_id: str = None):
    """Recompute card vote counts from the vote rows."""
    app = create_app()

    with app.app_context():
        corrected = reconcile_vote_counts(retrospective_id)
        print(f"✓ Reconciled vote counts, {corrected} card(s) corrected.")


def clear_database():
    """Clear all data from database (WARNING: This cannot be undone!)."""
    app = create_app()

    with app.app_context():
        response = input("⚠️  This will delete ALL retrospectives! Type 'yes' to confirm: ")
        if response.lower() == 'yes':
            db.drop_all()
            db.create_all()
            print("✓ Database cleared!")
        else:
            print("✗ Cancelled.")


def show_statistics():
    """Display database statistics."""
    app = create_app()

    with app.app_context():
        retro_count = Retrospective.query.count()
        active_count = Retrospective.query.filter_by(is_active=True).count()

        print("\n" + "="*50)
        print("DATABASE STATISTICS")
        print("="*50)
        print(f"Moderators: {User.query.count()}")
        print(f"Retrospectives: {retro_count} ({active_count} active)")
        print(f"Participants: {Participant.query.count()}")
        print(f"Cards: {Card.query.count()}")
        print(f"Votes: {Vote.query.count()}")
        print("="*50 + "\n")


if __name__ == '__main__':
    import sys

    if len(sys.argv) > 1:
        command = sys.argv[1]

        if command == 'init':
            init_database()
        elif command == 'reconcile':
            reconcile(sys.argv[2] if len(sys.argv) > 2 else None)
        elif command == 'clear':
            clear_database()
        elif command == 'stats':
            show_statistics()
        else:
            print("Usage:")
            print("  python init_db.py init              - Initialize database")
            print("  python init_db.py stats             - Show database statistics")
            print("  python init_db.py reconcile [id]    - Repair card vote counts")
            print("  python init_db.py clear             - Clear all data (WARNING!)")
    else:
        print("Database Utilities")
        print("-" * 50)
        init_database()
        show_statistics()
