"""CLI entry point."""

import logging
from dataclasses import dataclass
from typing import Callable, Optional

import click
import yaml

from .config import Config
from .dates import default_range, parse_date
from .errors import PartialBatchFailure, StoreUnavailableError, ValidationError
from .scanning.scanner import Scanner
from .storage.database import ContentStore
from .storage.models import BlockSignature, SearchCriteria

logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@dataclass
class AppContext:
    """Objects shared by every command, built once per invocation."""

    config: Config
    store_factory: Callable[[], ContentStore]

    @classmethod
    def from_config(cls, config: Config) -> "AppContext":
        def make_store() -> ContentStore:
            return ContentStore(
                config.database_path,
                posts_table=config.posts_table,
                signature=BlockSignature.for_block(config.block_name),
                read_only=config.read_only,
            )

        return cls(config=config, store_factory=make_store)


def _validate_date(ctx: click.Context, param: click.Parameter, value: Optional[str]):
    if value is None:
        return None
    try:
        return parse_date(value)
    except ValidationError as e:
        raise click.BadParameter(str(e)) from e


@click.group()
@click.option("--config", "-c", default="config.yaml", help="Config file path")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(config: str, verbose: bool) -> None:
    """Find posts that embed the Stylized Anchor Link block."""
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)


def _app(ctx: click.Context) -> AppContext:
    """Build the AppContext once, after the command's own options are checked."""
    root = ctx.find_root()
    if isinstance(root.obj, AppContext):
        return root.obj
    try:
        cfg = Config.from_yaml(root.params["config"])
    except (ValueError, OSError, yaml.YAMLError) as e:
        raise click.ClickException(f"Configuration error: {e}") from e
    root.obj = AppContext.from_config(cfg)
    return root.obj


@cli.command()
@click.option(
    "--date-after",
    callback=_validate_date,
    help="Find posts published on or after this date (YYYY-MM-DD). Default is 30 days ago.",
)
@click.option(
    "--date-before",
    callback=_validate_date,
    help="Find posts published on or before this date (YYYY-MM-DD). Default is today.",
)
@click.option(
    "--batch-size",
    type=click.IntRange(min=1),
    default=None,
    help="Number of posts to fetch per batch. Default is 5000.",
)
@click.option(
    "--limit",
    type=click.IntRange(min=0),
    default=0,
    show_default=True,
    help="Maximum number of posts to return (0 = no limit).",
)
@click.pass_context
def search(
    ctx: click.Context,
    date_after,
    date_before,
    batch_size: Optional[int],
    limit: int,
) -> None:
    """Search published posts for the block within a date range."""
    if date_after and date_before and date_after > date_before:
        raise click.UsageError(
            f"date-after ({date_after.isoformat()}) is later than "
            f"date-before ({date_before.isoformat()})."
        )
    app = _app(ctx)
    cfg = app.config

    default_after, default_before = default_range(lookback_days=cfg.lookback_days)
    try:
        criteria = SearchCriteria(
            date_after=date_after or default_after,
            date_before=date_before or default_before,
            batch_size=batch_size or cfg.batch_size,
            limit=limit,
        )
    except ValidationError as e:
        raise click.UsageError(str(e)) from e

    logger.info(
        f"Searching for posts with {cfg.block_name} blocks between "
        f"{criteria.date_after.isoformat()} and {criteria.date_before.isoformat()}..."
    )

    try:
        with app.store_factory() as store:
            result = Scanner(store, batch_retries=cfg.batch_retries).scan(criteria)
    except (StoreUnavailableError, PartialBatchFailure) as e:
        raise click.ClickException(str(e)) from e

    if result.is_empty:
        click.echo(
            f"No posts containing {cfg.block_name} blocks were found "
            "in the specified date range.",
            err=True,
        )
        return

    for post_id in result.post_ids:
        click.echo(post_id)

    click.echo(
        f"Success: found {len(result.post_ids)} posts with {cfg.block_name} blocks "
        f"in {result.elapsed_seconds:.2f} seconds.",
        err=True,
    )


@cli.command()
@click.pass_context
def capabilities(ctx: click.Context) -> None:
    """Show which scan strategy the configured database supports."""
    app = _app(ctx)
    try:
        with app.store_factory() as store:
            caps = Scanner(store).probe()
    except StoreUnavailableError as e:
        raise click.ClickException(str(e)) from e

    click.echo(f"Database:         {app.config.database_path}")
    click.echo(f"Posts table:      {app.config.posts_table}")
    click.echo(f"Temporary tables: {'yes' if caps.staging else 'no'}")
    click.echo(f"Strategy:         {'staged' if caps.staging else 'direct'}")


if __name__ == "__main__":
    cli()
