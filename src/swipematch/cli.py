"""Typer CLI for operating the matching engine."""

from __future__ import annotations

import json
from contextlib import contextmanager
from dataclasses import asdict, is_dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Iterator, List, Optional

import typer
from pydantic import BaseModel

from .config import load_yaml
from .container import MatchingContainer, create_container
from .errors import InputError, MatchingError
from .loading import EntityLoadError, EntityLoader
from .logging import bind_context, configure_logging
from .schemas import CandidateFilters
from .schemas.config import load_config
from .storage import init_schema

app = typer.Typer(help="Company/agent swipe matching CLI.")


@app.callback()
def main_options(
    ctx: typer.Context,
    config: Optional[Path] = typer.Option(None, exists=True, readable=True, dir_okay=False, help="YAML config path."),
    database_url: Optional[str] = typer.Option(None, envvar="SWIPEMATCH_DATABASE_URL", help="SQLAlchemy database URL."),
    log_level: str = typer.Option("WARNING", help="Log level for structured logging."),
) -> None:
    """Load configuration and build the container shared by all commands."""
    raw: dict[str, Any] = {}
    if config:
        try:
            raw = load_yaml(config)
        except ValueError as exc:
            raise typer.BadParameter(str(exc), param_name="config") from exc

    settings = load_config(raw).to_settings()
    if database_url:
        settings.setdefault("database", {})["url"] = database_url

    configure_logging(log_level)
    bind_context(command=ctx.invoked_subcommand)
    ctx.obj = create_container(settings=settings)


@app.command("init-db")
def init_db(ctx: typer.Context) -> None:
    """Create all tables."""
    container: MatchingContainer = ctx.obj
    init_schema(container.engine())
    typer.echo("Schema created.")


@app.command("load-entities")
def load_entities(
    ctx: typer.Context,
    entities: Path = typer.Option(..., exists=True, readable=True, dir_okay=False, help="Entities JSONL path."),
) -> None:
    """Insert or update entities from a JSON lines file."""
    container: MatchingContainer = ctx.obj
    loader = EntityLoader(container.profile_store())
    try:
        loaded = loader.load(entities)
    except EntityLoadError as exc:
        for message in exc.errors:
            typer.echo(message, err=True)
        typer.echo(f"Loaded {len(exc.partial)} entities with {len(exc.errors)} error(s).")
        raise typer.Exit(code=2)
    typer.echo(f"Loaded {len(loaded)} entities.")


@app.command()
def candidates(
    ctx: typer.Context,
    requester: int = typer.Argument(..., help="Requesting entity id."),
    limit: int = typer.Option(10, min=1, max=100, help="Maximum number of candidates."),
    country: Optional[str] = typer.Option(None, help="Country filter."),
    industry: Optional[List[str]] = typer.Option(None, help="Industry/specialization tag (repeatable)."),
    language: Optional[List[str]] = typer.Option(None, help="Language (repeatable)."),
    experience_min: Optional[int] = typer.Option(None, min=0),
    experience_max: Optional[int] = typer.Option(None, min=0),
    reputation_min: Optional[float] = typer.Option(None, min=0.0, max=5.0),
) -> None:
    """Print the next candidates for REQUESTER."""
    with _service_errors():
        filters = CandidateFilters(
            country=country,
            industries=industry or [],
            languages=language or [],
            experience_min=experience_min,
            experience_max=experience_max,
            reputation_min=reputation_min,
        )
        results = ctx.obj.service().next_candidates(requester, filters, limit)
    _echo_json(
        [
            {"entity": item.entity.model_dump(mode="json"), "score": item.score}
            for item in results
        ]
    )


@app.command()
def decide(
    ctx: typer.Context,
    actor: int = typer.Argument(..., help="Deciding entity id."),
    target: int = typer.Argument(..., help="Target entity id."),
    action: str = typer.Argument(..., help="'like' or 'pass'."),
) -> None:
    """Record a like or pass from ACTOR on TARGET."""
    with _service_errors():
        outcome = ctx.obj.service().decide(actor, target, action.lower())
    _echo_json(outcome)


@app.command()
def matches(
    ctx: typer.Context,
    entity: int = typer.Argument(...),
    status: str = typer.Option("matched", help="Match status to list."),
    limit: int = typer.Option(50, min=1, max=100),
) -> None:
    """List matches of ENTITY with each partner's profile."""
    with _service_errors():
        found = ctx.obj.service().match_summaries(entity, status, limit)
    _echo_json(found)


@app.command()
def history(
    ctx: typer.Context,
    entity: int = typer.Argument(...),
    limit: int = typer.Option(50, min=1, max=100),
) -> None:
    """Show decisions made by ENTITY, newest first."""
    with _service_errors():
        decisions = ctx.obj.service().swipe_history(entity, limit)
    _echo_json(decisions)


@app.command()
def compatibility(
    ctx: typer.Context,
    entity: int = typer.Argument(...),
    other: int = typer.Argument(...),
) -> None:
    """Show the compatibility breakdown between two entities."""
    with _service_errors():
        report = ctx.obj.service().compatibility(entity, other)
    _echo_json(report)


@app.command()
def stats(ctx: typer.Context, entity: int = typer.Argument(...)) -> None:
    """Show swipe and match counts for ENTITY."""
    with _service_errors():
        result = ctx.obj.service().stats(entity)
    _echo_json(result)


@contextmanager
def _service_errors() -> Iterator[None]:
    try:
        yield
    except InputError as exc:
        typer.echo(f"{exc.code}: {exc}", err=True)
        raise typer.Exit(code=2)
    except ValueError as exc:
        typer.echo(f"INVALID_INPUT: {exc}", err=True)
        raise typer.Exit(code=2)
    except MatchingError as exc:
        typer.echo(f"{exc.code}: {exc}", err=True)
        raise typer.Exit(code=1)


def _echo_json(payload: Any) -> None:
    typer.echo(json.dumps(payload, default=_json_default, ensure_ascii=False, indent=2))


def _json_default(value):  # type: ignore[override]
    if is_dataclass(value) and not isinstance(value, type):
        return asdict(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
