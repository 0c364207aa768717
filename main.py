#!/usr/bin/env python3
"""
SmartCane companion - command-line shell.

Signs in against the Supabase project configured in the environment, keeps the
session in the local store, keeps saved places, and reads out obstacle
warnings.
"""

import argparse
import asyncio
import getpass
import logging
import sys
from typing import Dict, List, Optional
from uuid import UUID

# Configure logging
logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s", stream=sys.stderr
)

EXIT_OK = 0
EXIT_AUTH_ERROR = 1
EXIT_NOT_CONFIGURED = 2


class PrintSpeaker:
    """Speaker that writes utterances to stdout (pipe into a TTS tool if wanted)."""

    def speak(self, text: str) -> None:
        print(f"🔊 {text}")


def parse_assignments(items: Optional[List[str]]) -> Dict[str, str]:
    """Parse `key=value` pairs from --set."""
    out: Dict[str, str] = {}
    for item in items or []:
        key, sep, value = item.partition("=")
        if not sep or not key.strip():
            raise ValueError(f"Expected key=value, got {item!r}")
        out[key.strip()] = value.strip()
    return out


def _print_status(controller) -> None:
    if controller.is_authenticated:
        name = controller.username or "(no username)"
        print(f"✅ Signed in as {controller.email} [{name}]")
    else:
        print("❌ Not signed in")
    if controller.error_message:
        print(f"⚠️ {controller.error_message}")


async def run_command(args: argparse.Namespace) -> int:
    from smartcane.auth.config import load_identity_config
    from smartcane.auth.controller import SessionController
    from smartcane.auth.errors import IdentityServiceError
    from smartcane.auth.supabase_client import SupabaseIdentityService, create_supabase_client
    from smartcane.settings import SettingsError, load_settings, save_settings
    from smartcane.storage.aliases import AliasStore
    from smartcane.storage.kv import JsonFileKeyValueStore

    cfg = load_identity_config()
    store = JsonFileKeyValueStore(cfg.store_path)

    if args.command == "settings":
        settings = load_settings(store)
        try:
            updates = parse_assignments(args.set)
            if updates:
                settings = settings.with_updates(updates)
                save_settings(store, settings)
        except (ValueError, SettingsError) as e:
            print(f"❌ {e}", file=sys.stderr)
            return EXIT_AUTH_ERROR
        for name, value in settings.model_dump().items():
            print(f"{name} = {value}")
        return EXIT_OK

    if args.command == "places":
        from smartcane.locations.store import LocationError, SavedPlaces

        places = SavedPlaces(store)
        try:
            if args.add:
                if args.lat is None or args.lon is None:
                    raise LocationError("--add needs --lat and --lon")
                loc = places.add_location(
                    args.add,
                    args.lat,
                    args.lon,
                    address=args.address or "",
                    category=args.category or "Other",
                    notes=args.notes or "",
                )
                print(f"✅ Saved {loc.name} ({loc.id})")
                return EXIT_OK
            if args.delete:
                if not places.delete_location(UUID(args.delete)):
                    raise LocationError(f"Unknown saved location: {args.delete}")
                print(f"🗑️ Deleted {args.delete}")
                return EXIT_OK
        except ValueError as e:
            print(f"❌ {e}", file=sys.stderr)
            return EXIT_AUTH_ERROR

        found = places.search_locations(args.search or "")
        if args.category:
            found = [loc for loc in found if loc.category == args.category]
        for loc in found:
            print(f"{loc.id}  {loc.category:<9} {loc.name}  {loc.address}".rstrip())
        return EXIT_OK

    if args.command == "signal":
        from smartcane.obstacles.announcements import VoiceFeedback
        from smartcane.obstacles.signals import SignalAnnouncer

        announcer = SignalAnnouncer(VoiceFeedback(PrintSpeaker(), load_settings(store)))
        frames = args.frames or [line for line in sys.stdin.read().splitlines() if line.strip()]
        for frame in frames:
            announcer.receive(frame)
        return EXIT_OK

    try:
        client = create_supabase_client(cfg, store)
    except IdentityServiceError as e:
        print(f"❌ {e.message}", file=sys.stderr)
        return EXIT_NOT_CONFIGURED

    controller = SessionController(SupabaseIdentityService(client), AliasStore(store))
    await controller.restore_session()

    if args.command == "status":
        _print_status(controller)
        return EXIT_OK

    if args.command == "signout":
        await controller.sign_out()
        _print_status(controller)
        return EXIT_AUTH_ERROR if controller.last_error else EXIT_OK

    if args.command in ("signup", "signin"):
        password = args.password if args.password is not None else getpass.getpass("Password: ")
        if args.command == "signup":
            await controller.sign_up(email=args.email, username=args.username, password=password)
        else:
            await controller.sign_in(email=args.email, username=args.username, password=password)
        _print_status(controller)
        return EXIT_AUTH_ERROR if controller.last_error else EXIT_OK

    if args.command == "obstacles":
        from smartcane.obstacles.announcements import ObstacleAnnouncer, VoiceFeedback
        from smartcane.obstacles.repository import SupabaseObstacleLogRepository
        from smartcane.obstacles.service import ObstacleLogService

        if not controller.is_authenticated:
            print("❌ Sign in first: `python main.py signin`", file=sys.stderr)
            return EXIT_AUTH_ERROR

        voice = VoiceFeedback(PrintSpeaker(), load_settings(store))
        service = ObstacleLogService(SupabaseObstacleLogRepository(client), ObstacleAnnouncer(voice))
        await service.refresh(args.device)
        for _ in range(max(0, args.polls)):
            await asyncio.sleep(args.interval)
            await service.refresh(args.device)

        for log in service.logs:
            when = log.display_date.strftime("%Y-%m-%d %H:%M") if log.display_date else "-"
            dist = f"{log.distance_cm} cm" if log.distance_cm is not None else "?"
            print(f"{when}  {log.device_display_name:<12} {log.obstacle_type:<16} {dist}")
        return EXIT_OK

    raise ValueError(f"unknown command: {args.command}")


def build_parser() -> argparse.ArgumentParser:
    from smartcane.locations.models import LOCATION_CATEGORIES

    parser = argparse.ArgumentParser(
        description="SmartCane companion: account session, settings, saved places and obstacle warnings",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Create an account (username is optional)
  python main.py signup --email alice@example.com --username alice

  # Sign in with the username remembered from a previous sign-in
  python main.py signin --username alice

  # Watch for new obstacle logs from one cane
  python main.py obstacles --device cane-001 --polls 10

  # Save a place and find it again
  python main.py places --add "Home" --lat 43.65 --lon -79.38 --category Home
  python main.py places --search home

  # Read out raw sensor frames
  python main.py signal F:120 L:40 STOP
        """,
    )
    sub = parser.add_subparsers(dest="command", required=True)

    for name, help_text in (("signup", "Create an account"), ("signin", "Sign in")):
        p = sub.add_parser(name, help=help_text)
        p.add_argument("--email", default="", help="Account e-mail")
        p.add_argument("--username", default="", help="Username (or e-mail) to sign in with")
        p.add_argument("--password", help="Password (prompted if omitted)")

    sub.add_parser("signout", help="Sign out and forget the remembered username")
    sub.add_parser("status", help="Show the restored session, if any")

    p = sub.add_parser("obstacles", help="List obstacle logs and announce new ones")
    p.add_argument("--device", help="Only logs reported by this device id")
    p.add_argument("--polls", type=int, default=0, help="Extra refreshes after the first load (default: 0)")
    p.add_argument("--interval", type=float, default=5.0, help="Seconds between refreshes (default: 5)")

    p = sub.add_parser("settings", help="Show or change app settings")
    p.add_argument("--set", action="append", metavar="KEY=VALUE", help="e.g. --set voice_feedback_enabled=false")

    p = sub.add_parser("places", help="List, search, add or delete saved locations")
    p.add_argument("--search", help="Match name, address or notes")
    p.add_argument("--category", choices=LOCATION_CATEGORIES, help="Only this category (or the new place's category)")
    p.add_argument("--add", metavar="NAME", help="Save a new place")
    p.add_argument("--lat", type=float, help="Latitude of the new place")
    p.add_argument("--lon", type=float, help="Longitude of the new place")
    p.add_argument("--address", help="Address of the new place")
    p.add_argument("--notes", help="Notes for the new place")
    p.add_argument("--delete", metavar="ID", help="Delete the place with this id")

    p = sub.add_parser("signal", help="Speak the warning for raw cane sensor frames")
    p.add_argument("frames", nargs="*", help="Frames such as F:120 or STOP (read from stdin if omitted)")

    return parser


def main():
    """CLI entry point."""
    args = build_parser().parse_args()
    try:
        sys.exit(asyncio.run(run_command(args)))
    except KeyboardInterrupt:
        print("\n⚠️ Interrupted by user")
        sys.exit(130)


if __name__ == "__main__":
    main()
