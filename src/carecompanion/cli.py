"""CareCompanion CLI - care schedule from the terminal."""

import json
import logging
import sys
from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

import click

from .adapters.care_api import ApiError, AuthenticationError, CareApiAdapter
from .adapters.event_bus import InMemoryEventBus
from .config import Config, Tokens, load_config
from .core.calendar import CalendarEvent, EventFilters
from .core.classify import ItemType
from .core.materialize import EditScope, VirtualTaskError
from .core.medications import DoseStatus
from .core.schedule import ScheduleItem, ViewMode, relative_label
from .core.tasks import to_iso
from .workflows import (
    ScheduleLoader,
    complete_task,
    delete_task,
    edit_task,
    find_item,
    load_calendar,
    log_dose,
    occurrence_from_id,
    occurrence_from_item,
)


def _fail(e: Exception) -> None:
    click.echo(f"Error: {e}", err=True)
    sys.exit(1)


def _now(config: Config) -> datetime:
    return datetime.now(ZoneInfo(config.timezone))


def _item_json(item: ScheduleItem) -> dict:
    return {
        "id": item.id,
        "type": item.type.value,
        "title": item.title,
        "time": item.time.isoformat() if item.time else None,
        "status": item.status,
        "is_social_visit": item.is_social_visit,
        "kind": item.kind,
        "is_virtual": item.is_virtual,
        "assigned_to": item.assigned_to or None,
    }


def _event_json(event: CalendarEvent) -> dict:
    return {
        "id": event.id,
        "type": event.type.value,
        "title": event.title,
        "start": event.start.isoformat(),
        "end": event.end.isoformat() if event.end else None,
        "color": event.color,
        "kind": event.kind,
        "status": event.status,
        "is_virtual": event.is_virtual,
    }


_TYPE_MARKERS = {ItemType.MEDICATION: "Rx", ItemType.APPOINTMENT: "Ap", ItemType.TASK: "  "}


@click.group()
@click.version_option(package_name="carecompanion")
@click.option("-v", "--verbose", is_flag=True, help="Log HTTP requests and decisions")
@click.pass_context
def main(ctx, verbose: bool):
    """CareCompanion - care coordination CLI."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    ctx.ensure_object(dict)
    ctx.obj["bus"] = InMemoryEventBus()


def _loader(ctx, view_mode: ViewMode = ViewMode.TODAY) -> ScheduleLoader:
    config = load_config()
    return ScheduleLoader(CareApiAdapter(config), config, bus=ctx.obj["bus"], view_mode=view_mode)


@main.command()
@click.option("--token", prompt=True, hide_input=True, help="Session token from the sign-in page")
def auth(token: str):
    """Store the session token issued at sign-in."""
    token = token.strip()
    if not token:
        _fail(AuthenticationError("No token provided"))
    Tokens(access_token=token).save()
    click.echo("Token saved.")


@main.command()
@click.option(
    "--view",
    type=click.Choice([m.value for m in ViewMode]),
    default=ViewMode.TODAY.value,
    show_default=True,
    help="Which items to show",
)
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def schedule(ctx, view: str, as_json: bool):
    """Show the care schedule grouped by urgency."""
    loader = _loader(ctx, ViewMode(view))
    if not loader.refresh():
        _fail(loader.error)

    groups = loader.groups()
    if as_json:
        click.echo(
            json.dumps(
                {g.bucket.value: [_item_json(i) for i in g.items] for g in groups},
                indent=2,
            )
        )
        return

    if not groups:
        click.echo("Nothing scheduled.")
        return

    now = _now(loader.config)
    for group in groups:
        click.echo(f"### {group.title} ({len(group.items)})")
        for item in group.items:
            when = item.time.strftime("%a %H:%M") if item.time else "anytime"
            rel = ""
            if item.time and item.due_date and not item.is_completed:
                rel = f" [{relative_label(item.time, now)}]"
            who = f" ({item.assigned_to})" if item.assigned_to else ""
            kind = f" [{item.kind}]" if item.kind else ""
            click.echo(f"  {_TYPE_MARKERS[item.type]} {when:10} {item.title}{kind}{who}{rel}  <{item.id}>")
        click.echo()


@main.command()
@click.option("--days", type=int, default=None, help="Number of days to show (default from config)")
@click.option("--no-medications", is_flag=True, help="Hide medication doses")
@click.option("--no-tasks", is_flag=True, help="Hide tasks")
@click.option("--no-medical", is_flag=True, help="Hide medical appointments")
@click.option("--no-social", is_flag=True, help="Hide social visits")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def calendar(days, no_medications, no_tasks, no_medical, no_social, as_json: bool):
    """Show calendar events for the coming days."""
    config = load_config()
    days = days or config.calendar_days
    start = _now(config).date()
    end = start + timedelta(days=max(days, 1) - 1)
    filters = EventFilters(
        medications=not no_medications,
        tasks=not no_tasks,
        medical_appointments=not no_medical,
        social_visits=not no_social,
    )
    try:
        events = load_calendar(CareApiAdapter(config), config, start, end, filters)
    except (ApiError, AuthenticationError) as e:
        _fail(e)

    if as_json:
        click.echo(json.dumps([_event_json(e) for e in events], indent=2))
        return

    if not events:
        click.echo("No events.")
        return

    current_date: date | None = None
    for event in events:
        event_date = event.start.date()
        if event_date != current_date:
            if current_date is not None:
                click.echo()
            click.echo(f"### {event_date.strftime('%A, %B %d')}")
            current_date = event_date
        kind = f" [{event.kind}]" if event.kind else ""
        click.echo(f"  {event.format_time():6} {_TYPE_MARKERS[event.type]} {event.title}{kind}")


def _lookup_occurrence(ctx, item_id: str):
    """Find the task behind an id shown by `schedule`, falling back to the bare id."""
    loader = _loader(ctx, ViewMode.ALL)
    if not loader.refresh():
        _fail(loader.error)
    loader.close()
    item = find_item(loader.items, item_id)
    if item and item.task_id:
        return occurrence_from_item(item)
    bare = item_id.removeprefix("task-")
    return occurrence_from_id(bare, ZoneInfo(loader.config.timezone))


@main.command()
@click.argument("item_id")
@click.option("--notes", default=None, help="Completion notes")
@click.pass_context
def complete(ctx, item_id: str, notes: str | None):
    """Complete a single task occurrence."""
    occurrence = _lookup_occurrence(ctx, item_id)
    try:
        task = complete_task(CareApiAdapter(), occurrence, notes or "Completed via CLI", ctx.obj["bus"])
    except (ApiError, AuthenticationError, VirtualTaskError) as e:
        _fail(e)
    click.echo(f"Completed: {task.title or task.id}")


@main.command()
@click.argument("item_id")
@click.option(
    "--scope",
    type=click.Choice([s.value for s in EditScope]),
    default=EditScope.OCCURRENCE.value,
    show_default=True,
    help="Edit only this occurrence or the whole series",
)
@click.option("--title", default=None)
@click.option("--description", default=None)
@click.option("--priority", type=click.Choice(["low", "medium", "high"]), default=None)
@click.option("--due", "due", default=None, help="New due date/time (ISO 8601)")
@click.pass_context
def edit(ctx, item_id: str, scope: str, title, description, priority, due):
    """Edit a task occurrence or its series."""
    updates = {}
    if title is not None:
        updates["title"] = title
    if description is not None:
        updates["description"] = description
    if priority is not None:
        updates["priority"] = priority.upper()
    if due is not None:
        try:
            updates["dueDate"] = to_iso(datetime.fromisoformat(due))
        except ValueError:
            _fail(click.BadParameter(f"Not an ISO date/time: {due}"))
    if not updates:
        _fail(click.UsageError("Nothing to change. Pass --title, --description, --priority or --due."))

    occurrence = _lookup_occurrence(ctx, item_id)
    try:
        task = edit_task(CareApiAdapter(), occurrence, EditScope(scope), updates, ctx.obj["bus"])
    except (ApiError, AuthenticationError, VirtualTaskError) as e:
        _fail(e)
    click.echo(f"Updated {scope}: {task.title or task.id}")


@main.command()
@click.argument("item_id")
@click.confirmation_option(prompt="Delete this occurrence?")
@click.pass_context
def delete(ctx, item_id: str):
    """Delete a single task occurrence."""
    occurrence = _lookup_occurrence(ctx, item_id)
    try:
        deleted = delete_task(CareApiAdapter(), occurrence, ctx.obj["bus"])
    except (ApiError, AuthenticationError, VirtualTaskError) as e:
        _fail(e)
    click.echo(f"Deleted {deleted}")


@main.command()
@click.argument("item_id")
@click.option(
    "--status",
    type=click.Choice([s.value for s in DoseStatus if s != DoseStatus.PENDING]),
    required=True,
)
@click.option("--notes", default=None)
@click.pass_context
def dose(ctx, item_id: str, status: str, notes: str | None):
    """Log a scheduled medication dose from today's schedule."""
    loader = _loader(ctx, ViewMode.TODAY)
    if not loader.refresh():
        _fail(loader.error)
    loader.close()

    item = find_item(loader.items, item_id)
    if item is None or item.type != ItemType.MEDICATION:
        _fail(click.BadParameter(f"No medication dose {item_id} on today's schedule"))
    try:
        log_dose(loader.repo, item, DoseStatus(status), notes, ctx.obj["bus"])
    except (ApiError, AuthenticationError) as e:
        _fail(e)
    click.echo(f"Logged {item.title} as {status}")
