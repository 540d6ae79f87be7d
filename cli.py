#!/usr/bin/env python3
"""Calendar Manager CLI."""
from __future__ import annotations

import argparse
import logging
import sys
from datetime import datetime, timedelta
from typing import Iterable, List, Optional
from zoneinfo import ZoneInfo

from calendar_manager.auth import AuthenticationError
from calendar_manager.auth.oauth_flow import OAuthFlow
from calendar_manager.calendar import (
    CalendarError,
    JsonFileAliasStore,
    RawEvent,
    alias_for_calendar,
    build_event_body,
    create_calendar,
    create_event,
    delete_calendar,
    delete_event,
    fetch_events,
    format_event,
    list_aliases,
    list_calendars,
    load_account,
    move_event,
    remove_alias,
    resolve_calendar_id,
    search_events,
    set_alias,
    show_event,
    update_event,
)
from calendar_manager.calendar.events import local_midnight
from calendar_manager.config import (
    VALID_ACCOUNTS,
    ConfigError,
    Settings,
    load_settings,
)
from calendar_manager.sync import SyncService


EPILOG = """\
examples:
  # Create all-day free event in specific calendar
  calendar-manager create business --title "Messe" --start 2026-01-30 --end 2026-02-01 --calendar messen --free

  # Set alias for easier calendar access
  calendar-manager alias set messen "c_abc123@group.calendar.google.com"

  # Search and delete
  calendar-manager search business "Messe" --calendar messen
  calendar-manager delete business abc123 --calendar messen

  # Move event between calendars
  calendar-manager move business eventId123 --from primary --to messen
"""

RESPONSE_MARKERS = {"accepted": "✅", "declined": "❌"}


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="calendar-manager",
        description="Multi-account Google Calendar CLI.",
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show debug logging.",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    def account_parser(name: str, help_text: str) -> argparse.ArgumentParser:
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("account", choices=VALID_ACCOUNTS)
        return sub

    def add_calendar_option(sub: argparse.ArgumentParser) -> None:
        sub.add_argument(
            "--calendar",
            help="Calendar ID or alias (default: primary).",
        )

    account_parser("auth", "Authenticate an account in the browser.")
    account_parser("list", "List all calendars of an account.")

    calendar_parser = subparsers.add_parser("calendar", help="Create or delete calendars.")
    calendar_sub = calendar_parser.add_subparsers(dest="calendar_command", required=True)
    cal_create = calendar_sub.add_parser("create", help="Create a calendar.")
    cal_create.add_argument("account", choices=VALID_ACCOUNTS)
    cal_create.add_argument("name")
    cal_create.add_argument("description", nargs="?", default="")
    cal_delete = calendar_sub.add_parser("delete", help="Delete a calendar.")
    cal_delete.add_argument("account", choices=VALID_ACCOUNTS)
    cal_delete.add_argument("calendar", help="Calendar ID or alias.")

    alias_parser = subparsers.add_parser("alias", help="Manage calendar aliases.")
    alias_sub = alias_parser.add_subparsers(dest="alias_command", required=True)
    alias_sub.add_parser("list", help="Show all aliases.")
    alias_set = alias_sub.add_parser("set", help="Set alias for a calendar ID.")
    alias_set.add_argument("name")
    alias_set.add_argument("calendar_id")
    alias_remove = alias_sub.add_parser("remove", help="Remove an alias.")
    alias_remove.add_argument("name")

    account_parser("today", "Show today's events.")
    account_parser("week", "Show the next seven days.")

    search_parser = account_parser("search", "Search events by text.")
    search_parser.add_argument("query")
    add_calendar_option(search_parser)
    search_parser.add_argument("--from", dest="date_from", help="YYYY-MM-DD")
    search_parser.add_argument("--to", dest="date_to", help="YYYY-MM-DD")
    search_parser.add_argument("--limit", type=int, default=20)

    sync_parser = subparsers.add_parser(
        "sync",
        help="Export events to calendar-index/ (four weeks either side of today).",
    )
    sync_parser.add_argument("account", choices=VALID_ACCOUNTS + ("all",))
    sync_parser.add_argument("--from", dest="date_from", help="YYYY-MM-DD")
    sync_parser.add_argument("--to", dest="date_to", help="YYYY-MM-DD")

    create_parser = account_parser("create", "Create an event.")
    create_parser.add_argument("--title", required=True)
    create_parser.add_argument("--start", required=True, help="YYYY-MM-DD[THH:MM]")
    create_parser.add_argument(
        "--end",
        help="YYYY-MM-DD[THH:MM] (default: same day / one hour later)",
    )
    add_calendar_option(create_parser)
    create_parser.add_argument("--description", default="")
    create_parser.add_argument("--location", default="")
    create_parser.add_argument("--free", action="store_true", help="Show as free.")
    create_parser.add_argument("--allday", action="store_true", help="Force all-day event.")

    update_parser = account_parser("update", "Update an event.")
    update_parser.add_argument("event_id")
    add_calendar_option(update_parser)
    update_parser.add_argument("--title")
    update_parser.add_argument("--description")
    update_parser.add_argument("--location")
    availability = update_parser.add_mutually_exclusive_group()
    availability.add_argument("--free", dest="free", action="store_true", default=None)
    availability.add_argument("--busy", dest="free", action="store_false")
    update_parser.add_argument(
        "--attendees",
        help="Comma separated addresses to invite (sends invitations).",
    )

    delete_parser = account_parser("delete", "Delete an event.")
    delete_parser.add_argument("event_id")
    add_calendar_option(delete_parser)

    move_parser = account_parser("move", "Move an event to another calendar.")
    move_parser.add_argument("event_id")
    move_parser.add_argument("--from", dest="from_calendar", required=True)
    move_parser.add_argument("--to", dest="to_calendar", required=True)

    show_parser = account_parser("show", "Show event details including attendees.")
    show_parser.add_argument("event_id")
    add_calendar_option(show_parser)

    return parser


# ============================================================================
# Output helpers
# ============================================================================


def _print_events(events: Iterable[RawEvent], tz: ZoneInfo) -> None:
    current_date = ""
    for event in events:
        e = format_event(event, tz)
        if e.date_formatted != current_date:
            current_date = e.date_formatted
            print(f"\n  {current_date}:")
        print(f"    ⏰ {e.time} | {e.summary}")
        if e.location:
            print(f"       📍 {e.location}")


def _print_event_details(event: RawEvent, tz: ZoneInfo) -> None:
    print("\n📅 Event Details:\n")
    print(f"  Title: {event.get('summary') or 'No title'}")
    print(f"  ID: {event.get('id')}")

    start = event.get("start") or {}
    end = event.get("end") or {}
    if start.get("dateTime"):
        for label, boundary in (("Start", start), ("End", end)):
            moment = datetime.fromisoformat(boundary["dateTime"].replace("Z", "+00:00"))
            print(f"  {label}: {moment.astimezone(tz):%d.%m.%Y, %H:%M:%S}")
    elif start.get("date"):
        print(f"  Date: {start['date']} (all-day)")

    if event.get("location"):
        print(f"  Location: {event['location']}")
    if event.get("description"):
        print(f"  Description: {event['description']}")

    organizer = event.get("organizer")
    if organizer:
        print(f"\n  Organizer: {organizer.get('displayName', '')} <{organizer.get('email')}>")

    attendees = event.get("attendees") or []
    if attendees:
        print("\n  Attendees:")
        for attendee in attendees:
            marker = RESPONSE_MARKERS.get(attendee.get("responseStatus"), "⏳")
            print(f"    {marker} {attendee.get('displayName', '')} <{attendee.get('email')}>")

    print(f"\n  Link: {event.get('htmlLink') or 'N/A'}")


# ============================================================================
# Commands
# ============================================================================


def _cmd_auth(settings: Settings, account: str) -> int:
    flow = OAuthFlow(settings, account)

    def show_url(url: str) -> None:
        print(f"\n🔐 Authenticating: {account.upper()}\n")
        print("🔗 Open this URL in your browser:\n")
        print(url)
        print(f"\n⏳ Waiting for authorization on {flow.redirect_uri} ...")

    flow.run(on_url=show_url)
    print(f"✅ Token saved for {account} to {settings.token_path(account)}")
    return 0


def _cmd_list(settings: Settings, aliases: JsonFileAliasStore, account: str) -> int:
    config = load_account(settings, account)
    mapping = list_aliases(aliases)

    print(f"\n📅 Calendars for {account.upper()}:\n")
    for idx, cal in enumerate(list_calendars(config), 1):
        alias = alias_for_calendar(cal.id, mapping)
        alias_str = f" [alias: {alias}]" if alias else ""
        print(f"{idx}. {cal.summary}{alias_str}")
        print(f"   ID: {cal.id}")
    return 0


def _cmd_calendar(settings: Settings, aliases: JsonFileAliasStore, args) -> int:
    config = load_account(settings, args.account)
    if args.calendar_command == "create":
        cal = create_calendar(
            config, args.name, args.description, time_zone=settings.timezone
        )
        print(f"✅ Calendar created: {cal.summary}")
        print(f"   ID: {cal.id}")
        return 0

    delete_calendar(config, resolve_calendar_id(args.calendar, aliases))
    print(f"✅ Calendar deleted: {args.calendar}")
    return 0


def _cmd_alias(aliases: JsonFileAliasStore, args) -> int:
    if args.alias_command == "set":
        set_alias(args.name, args.calendar_id, aliases)
        print(f"✅ Alias set: {args.name} → {args.calendar_id}")
        return 0

    if args.alias_command == "remove":
        if remove_alias(args.name, aliases):
            print(f"✅ Alias removed: {args.name}")
        else:
            print(f"Alias not found: {args.name}")
        return 0

    mapping = list_aliases(aliases)
    print("\n📋 Calendar Aliases:\n")
    if not mapping:
        print("  No aliases configured.")
        print("  Use: calendar-manager alias set <name> <calendar-id>")
    for alias, calendar_id in mapping.items():
        print(f"  {alias} → {calendar_id}")
    return 0


def _cmd_window(
    settings: Settings,
    aliases: JsonFileAliasStore,
    account: str,
    days: int,
    label: str,
) -> int:
    tz = ZoneInfo(settings.timezone)
    config = load_account(settings, account)
    start = local_midnight(datetime.now(tz).date(), tz)
    events = fetch_events(config, start, start + timedelta(days=days), aliases=aliases)

    print(f"\n📅 {label} ({account.upper()}):\n")
    if not events:
        print("  Keine Termine.")
        return 0
    _print_events(events, tz)
    return 0


def _cmd_search(settings: Settings, aliases: JsonFileAliasStore, args) -> int:
    tz = ZoneInfo(settings.timezone)
    config = load_account(settings, args.account)
    events = search_events(
        config,
        aliases,
        args.query,
        tz,
        calendar=args.calendar,
        date_from=args.date_from,
        date_to=args.date_to,
        limit=args.limit,
    )

    print(f'\n🔍 Search results for "{args.query}":\n')
    if not events:
        print("  No events found.")
        return 0
    for event in events:
        e = format_event(event, tz)
        print(f"  {e.date_formatted} | {e.time} | {e.summary}")
        print(f"    ID: {e.id}")
        if e.location:
            print(f"    📍 {e.location}")
    return 0


def _cmd_sync(settings: Settings, aliases: JsonFileAliasStore, args) -> int:
    service = SyncService(settings, aliases)
    if args.account == "all":
        combined = service.sync_all()
        print(
            f"\n✅ Combined calendar ({', '.join(combined.accounts) or 'no accounts'}, "
            f"{len(combined.all_events)} events) → {settings.combined_path}"
        )
        return 0

    document = service.sync_account(
        args.account, date_from=args.date_from, date_to=args.date_to
    )
    print(
        f"✅ Synced {document.total_events} events for {args.account} → "
        f"{settings.sync_path(args.account)}"
    )
    return 0


def _cmd_create(settings: Settings, aliases: JsonFileAliasStore, args) -> int:
    config = load_account(settings, args.account)
    body = build_event_body(
        title=args.title,
        start=args.start,
        end=args.end,
        tz=ZoneInfo(settings.timezone),
        description=args.description,
        location=args.location,
        free=args.free,
        all_day=args.allday,
    )
    created = create_event(config, aliases, body, calendar=args.calendar)
    print(f"✅ Event created in {args.account}: {created.get('htmlLink')}")
    return 0


def _cmd_update(settings: Settings, aliases: JsonFileAliasStore, args) -> int:
    config = load_account(settings, args.account)
    updated = update_event(
        config,
        aliases,
        args.event_id,
        calendar=args.calendar,
        title=args.title,
        description=args.description,
        location=args.location,
        free=args.free,
        attendees=args.attendees,
    )
    print(f"✅ Event updated: {updated.get('htmlLink')}")
    if args.attendees:
        print(f"📧 Invitations sent to: {args.attendees}")
    return 0


def _cmd_delete(settings: Settings, aliases: JsonFileAliasStore, args) -> int:
    config = load_account(settings, args.account)
    delete_event(config, aliases, args.event_id, calendar=args.calendar)
    print(f"✅ Event deleted: {args.event_id}")
    return 0


def _cmd_move(settings: Settings, aliases: JsonFileAliasStore, args) -> int:
    config = load_account(settings, args.account)
    moved = move_event(
        config, aliases, args.event_id, args.from_calendar, args.to_calendar
    )
    print(f"✅ Event moved to {args.to_calendar}: {moved.get('htmlLink')}")
    return 0


def _cmd_show(settings: Settings, aliases: JsonFileAliasStore, args) -> int:
    config = load_account(settings, args.account)
    event = show_event(config, aliases, args.event_id, calendar=args.calendar)
    _print_event_details(event, ZoneInfo(settings.timezone))
    return 0


def _dispatch(args, settings: Settings) -> int:
    aliases = JsonFileAliasStore(settings.calendars_config_path)

    if args.command == "auth":
        return _cmd_auth(settings, args.account)
    if args.command == "list":
        return _cmd_list(settings, aliases, args.account)
    if args.command == "calendar":
        return _cmd_calendar(settings, aliases, args)
    if args.command == "alias":
        return _cmd_alias(aliases, args)
    if args.command == "today":
        today = datetime.now(ZoneInfo(settings.timezone))
        return _cmd_window(settings, aliases, args.account, 1, f"Heute ({today:%d.%m.%Y})")
    if args.command == "week":
        return _cmd_window(settings, aliases, args.account, 7, "Diese Woche")
    if args.command == "search":
        return _cmd_search(settings, aliases, args)
    if args.command == "sync":
        return _cmd_sync(settings, aliases, args)
    if args.command == "create":
        return _cmd_create(settings, aliases, args)
    if args.command == "update":
        return _cmd_update(settings, aliases, args)
    if args.command == "delete":
        return _cmd_delete(settings, aliases, args)
    if args.command == "move":
        return _cmd_move(settings, aliases, args)
    if args.command == "show":
        return _cmd_show(settings, aliases, args)

    raise ValueError(f"Unknown command: {args.command}")


def main(argv: Optional[List[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        settings = load_settings()
        return _dispatch(args, settings)
    except ConfigError as exc:
        print(f"❌ Configuration error: {exc}", file=sys.stderr)
        return 1
    except AuthenticationError as exc:
        print(f"❌ {exc}", file=sys.stderr)
        return 1
    except CalendarError as exc:
        logging.getLogger(__name__).debug("Calendar API failure", exc_info=True)
        print(f"❌ {exc}", file=sys.stderr)
        return 1
    except ValueError as exc:
        print(f"❌ Invalid input: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
