"""Management script for database setup and subscription lookups"""

import click
from flask.cli import FlaskGroup

from billing_sync import create_app
from billing_sync.extensions import db
from billing_sync.services import get_current_subscription

app = create_app()
cli = FlaskGroup(create_app=lambda: app)


@cli.command("init-db")
def init_db():
    """Initialize the database"""
    with app.app_context():
        db.create_all()
        print("✅ Database initialized successfully!")


@cli.command("drop-db")
def drop_db():
    """Drop all database tables"""
    confirmation = input("⚠️  Are you sure you want to drop all tables? (yes/no): ").lower()

    if confirmation == 'yes':
        with app.app_context():
            db.drop_all()
            print("✅ Database dropped successfully!")
    else:
        print("❌ Operation cancelled.")


@cli.command("subscription-status")
@click.argument("user_id")
def subscription_status(user_id):
    """Show the subscription that currently grants a user access"""
    with app.app_context():
        subscription = get_current_subscription(user_id)
        if subscription is None:
            print(f"User {user_id} has no active subscription")
            return

        details = subscription.to_dict()
        print(f"Subscription: {details['stripe_subscription_id']}")
        print(f"Status:       {details['status']}")
        print(f"Price:        {details['stripe_price_id']}")
        if details["current_period_end"]:
            print(f"Period ends:  {details['current_period_end']}")
        if details["trial_end"]:
            print(f"Trial ends:   {details['trial_end']}")
        if details["cancel_at_period_end"]:
            print("Cancels at period end")


if __name__ == "__main__":
    cli()
