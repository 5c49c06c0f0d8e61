"""
Flask CLI commands.

Commands:
- flask init-db: Create all tables
- flask valid-promotions --total 25.00: Print the promotions applicable right now
"""

import click
from taproom.database import get_session, create_all
from taproom.exceptions import TaproomError


def init_cli_commands(app):
    """Register CLI commands with Flask app."""

    @app.cli.command('init-db')
    def init_db_command():
        """Create every table of the data model."""
        create_all()
        click.echo(click.style('✅ Database tables created', fg='green'))

    @app.cli.command('valid-promotions')
    @click.option('--total', required=True, help='Order total to evaluate')
    def valid_promotions(total):
        """Rank the promotions applicable to an order total."""
        from taproom.services.promotion_service import get_valid_promotions

        try:
            ranked = get_valid_promotions(get_session(), total)
        except TaproomError as e:
            click.echo(click.style(f'❌ {e.message}', fg='red'))
            return

        if not ranked:
            click.echo('No promotions apply.')
            return

        for position, entry in enumerate(ranked, start=1):
            promotion = entry['promotion']
            click.echo(
                f"{position}. [{promotion.id}] {promotion.name} "
                f"({promotion.type.value}) -> {entry['calculated_discount']}"
            )
