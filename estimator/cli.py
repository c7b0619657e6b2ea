import logging
from datetime import timedelta

import click
from flask import current_app
from flask.cli import AppGroup

from estimator import db
from estimator.ai.cache import DatabasePricingCache


def _db_cache() -> DatabasePricingCache:
    return DatabasePricingCache(
        db.session, max_age=timedelta(days=current_app.config['AI_CACHE_TTL_DAYS'])
    )


ai_cache_cli = AppGroup('ai-cache', help='AI pricing cache maintenance.')


@ai_cache_cli.command('purge')
def purge_command() -> None:
    """Delete cached research older than AI_CACHE_TTL_DAYS."""
    removed = _db_cache().purge_expired()
    logging.info("ai-cache purge removed=%s", removed)
    click.echo(f"Removed {removed} expired entries")


@ai_cache_cli.command('stats')
def stats_command() -> None:
    click.echo(f"{_db_cache().count()} cached entries")
