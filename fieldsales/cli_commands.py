"""
Flask CLI commands for database and user management.

Commands:
- flask init-db: Create all tables
- flask create-user: Create an executive or admin user
- flask seed-users: Create the default 1001 / admin accounts
"""

import click
from fieldsales import database
from fieldsales.exceptions import ValidationError
from fieldsales.models import UserRole
from fieldsales.services.auth_service import create_user, seed_default_users


def init_cli_commands(app):
    """Register CLI commands with Flask app."""

    @app.cli.command('init-db')
    def init_db_command():
        """Create all database tables."""
        database.create_all()
        click.echo(click.style('Database tables created.', fg='green'))

    @app.cli.command('create-user')
    @click.option('--username', prompt=True, help='Login id (e.g. 1001)')
    @click.option('--name', prompt=True, help='Display name')
    @click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
    @click.option('--role', type=click.Choice([role.value for role in UserRole]),
                  default=UserRole.EXECUTIVE.value, show_default=True)
    def create_user_command(username, name, password, role):
        """Create a new executive or admin user."""
        db_session = database.get_session()
        try:
            user = create_user(db_session, username, password, name, role)
            db_session.commit()
        except ValidationError as e:
            db_session.rollback()
            raise click.ClickException(e.message)

        click.echo(click.style(f'User created: {user.username} ({user.role}), id {user.id}', fg='green'))

    @app.cli.command('seed-users')
    def seed_users_command():
        """Create the default executive and admin accounts."""
        created = seed_default_users(database.get_session())
        if not created:
            click.echo('Default users already exist.')
        for user in created:
            click.echo(click.style(f'Created {user.username} ({user.role})', fg='green'))
