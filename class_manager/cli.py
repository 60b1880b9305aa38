#!/usr/bin/env python3
"""
Command-line interface for the classroom tools.

Usage:
    python -m class_manager.cli [command] [options]

Commands:
    init          Initialize the database
    seed          Load demo students and conduct scores
    student       Student management commands
    import        Import students from CSV
    settings      Show or change classroom settings
    seating       Arrange, show, swap or reset the seating chart
    conduct       Weekly conduct scoring
    backup        Export or restore a JSON backup
    sync          Push to or pull from the cloud endpoint
    log           Show or clear the activity log
    dashboard     Start the web dashboard
"""

import argparse
import json

from class_manager.activity_log import get_logs, clear_logs
from class_manager.backup import export_backup_file, import_backup_file
from class_manager.cloud_sync import upload_to_cloud, download_from_cloud
from class_manager.conduct import (
    set_score, set_note, apply_behavior, fill_default_scores, apply_class_bonus,
    week_label, week_records, semester_summary, rank_distribution
)
from class_manager.config import SEATING_ROWS, SEATING_COLS
from class_manager.errors import SeatingError
from class_manager.models import init_db
from class_manager.repositories import SettingsRepository
from class_manager.roster import (
    add_student, update_student, remove_student, list_students, import_students_csv,
    seed_demo_data
)
from class_manager.seating import (
    auto_arrange, load_seating, swap_seats, reset_seating, render_seating_text
)
from class_manager.settings import get_settings, set_setting, parse_setting_value


def parse_seat(text: str) -> tuple[int, int]:
    """Parse 'row,col' (1-based, as printed on the chart) into a 0-based position."""
    try:
        row, col = (int(part) for part in text.split(","))
    except ValueError:
        raise argparse.ArgumentTypeError(f"Seat must look like ROW,COL: {text!r}")
    return row - 1, col - 1


def cmd_init(args):
    """Initialize the database."""
    print("Initializing database...")
    init_db()
    print("Database initialized successfully.")


def cmd_seed(args):
    """Load demo data."""
    count = seed_demo_data(weeks=args.weeks, seed=args.seed)
    print(f"Seeded {count} demo students.")


def cmd_student(args):
    """Student management commands."""
    if args.action == "list":
        students = list_students(args.search)
        print(f"\n{'ID':<10} {'Name':<30} {'Gender':<8} {'Rank':<6} {'Talkative':<10}")
        print("-" * 68)
        for s in students:
            talkative = "yes" if s["is_talkative"] else "-"
            print(f"{s['id']:<10} {s['name']:<30} {s['gender']:<8} {s['rank']:<6} {talkative:<10}")
        print(f"\nTotal: {len(students)} students")

    elif args.action == "add":
        if not args.name:
            print("Error: --name required")
            return
        try:
            student = add_student(
                args.name, args.gender or "male", args.rank or "pass",
                is_talkative=args.talkative, student_id=args.student_id
            )
        except ValueError as e:
            print(f"Error: {e}")
            return
        print(f"Added student: {student.name} (ID: {student.id})")

    elif args.action == "update":
        if not args.student_id:
            print("Error: --student-id required")
            return
        fields = {k: v for k, v in (("name", args.name), ("gender", args.gender), ("rank", args.rank))
                  if v is not None}
        if args.talkative or args.quiet:
            fields["is_talkative"] = args.talkative
        if not fields:
            print("Error: nothing to update")
            return
        try:
            student = update_student(args.student_id, **fields)
        except ValueError as e:
            print(f"Error: {e}")
            return
        print(f"Updated student: {student.name} (ID: {student.id})")

    elif args.action == "remove":
        if not args.student_id:
            print("Error: --student-id required")
            return
        if remove_student(args.student_id):
            print(f"Removed student {args.student_id}")


def cmd_settings(args):
    """Settings commands."""
    if args.action == "show":
        settings = get_settings()
        if args.key:
            for part in args.key.split("."):
                if not isinstance(settings, dict) or part not in settings:
                    print(f"Error: Unknown setting: {args.key}")
                    return
                settings = settings[part]
        print(json.dumps(settings, indent=2, ensure_ascii=False))

    elif args.action == "set":
        if not args.key or args.value is None:
            print("Error: key and value required")
            return
        try:
            set_setting(args.key, parse_setting_value(args.value))
        except ValueError as e:
            print(f"Error: {e}")
            return
        print(f"Set {args.key} = {args.value}")


def cmd_import(args):
    """Import data from files."""
    count = import_students_csv(args.file)
    print(f"Imported {count} students.")


def cmd_seating(args):
    """Seating chart commands."""
    rows = SEATING_ROWS if args.rows is None else args.rows
    cols = SEATING_COLS if args.cols is None else args.cols
    names = {s["id"]: s["name"] for s in list_students()}

    if args.action == "arrange":
        try:
            result = auto_arrange(rows, cols, seed=args.seed)
        except SeatingError as e:
            print(f"Error: {e}")
            return
        print(render_seating_text(result.seats, names, cols))
        if result.unmet:
            print("\nUnmet placement goals:")
            for item in result.unmet:
                print(f"  - {item.kind} ({item.scope} {item.index + 1}): {item.detail}")

    elif args.action == "show":
        seats = load_seating(rows, cols)
        print(render_seating_text(seats, names, cols))

    elif args.action == "swap":
        if not args.first or not args.second:
            print("Error: --from and --to required")
            return
        try:
            seats = swap_seats(args.first, args.second, rows, cols)
        except ValueError as e:
            print(f"Error: {e}")
            return
        print(render_seating_text(seats, names, cols))

    elif args.action == "reset":
        reset_seating(rows, cols)
        print("Seating chart cleared.")


def cmd_conduct(args):
    """Conduct scoring commands."""
    try:
        if args.action == "score":
            if not args.student_id or args.value is None:
                print("Error: --student-id and --value required")
                return
            record = set_score(args.student_id, args.week, args.value)
            if args.note:
                record = set_note(args.student_id, args.week, args.note)
            print(f"{args.student_id} week {args.week}: {record['score']}")

        elif args.action == "tag":
            if not args.student_id or not args.item:
                print("Error: --student-id and --item required")
                return
            record = apply_behavior(args.student_id, args.week, args.item, add=not args.remove)
            print(f"{args.student_id} week {args.week}: {record['score']}")

        elif args.action == "fill":
            count = fill_default_scores(args.week)
            print(f"Filled default score for {count} students.")

        elif args.action == "bonus":
            if args.value is None or not args.reason:
                print("Error: --value and --reason required")
                return
            count = apply_class_bonus(args.week, args.value, args.reason)
            print(f"Added {args.value} points for {count} students.")

        elif args.action == "week":
            print(f"\n=== {week_label(args.week)} ===")
            for r in week_records(args.week):
                tags = ", ".join(r["violations"] + r["positive_behaviors"])
                print(f"  {r['student_id']:<10} {r['score']:>3}  {r['rank']:<5} {tags}")

        elif args.action == "semester":
            start, end = args.start_week, args.end_week
            if args.student_id:
                summary = semester_summary(args.student_id, start, end)
                if not summary["weeks"]:
                    print(f"No conduct records for {args.student_id} in weeks {start}-{end}")
                    return
                print(f"\n=== {args.student_id}: weeks {start}-{end} ===")
                print(f"Average score: {summary['average_score']:.1f}")
                print(f"Average points: {summary['average_points']:.2f}")
                print(f"Semester rank: {summary['rank']}")
            else:
                print(f"\n=== Rank distribution, weeks {start}-{end} ===")
                for rank, count in rank_distribution(start, end).items():
                    print(f"  {rank}: {count}")
    except ValueError as e:
        print(f"Error: {e}")


def cmd_backup(args):
    """Backup commands."""
    if args.action == "export":
        export_backup_file(args.file)
    elif args.action == "import":
        try:
            counts = import_backup_file(args.file)
        except (OSError, ValueError) as e:
            print(f"Error: {e}")
            return
        print(f"Restored {counts['students']} students, {counts['conduct']} conduct records.")


def cmd_sync(args):
    """Cloud sync commands."""
    if args.action == "set-url":
        if not args.url:
            print("Error: url required")
            return
        SettingsRepository().set_cloud_url(args.url)
        print("Cloud sync URL saved.")
    elif args.action == "push":
        ok = upload_to_cloud(args.url)
        print("Upload complete." if ok else "Upload failed.")
    elif args.action == "pull":
        ok = download_from_cloud(args.url)
        print("Download complete." if ok else "Download failed.")


def cmd_log(args):
    """Activity log commands."""
    if args.action == "show":
        for entry in get_logs(args.limit):
            print(f"[{entry['timestamp']}] {entry['action']}: {entry['details']}")
    elif args.action == "clear":
        count = clear_logs()
        print(f"Cleared {count} log entries.")


def cmd_dashboard(args):
    """Start the web dashboard."""
    from class_manager.dashboard import run_dashboard
    run_dashboard(
        host=args.host,
        port=args.port,
        debug=args.debug
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Classroom roster, seating and conduct tools",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Init command
    subparsers.add_parser("init", help="Initialize the database")

    # Seed command
    seed_parser = subparsers.add_parser("seed", help="Load demo data (replaces the roster)")
    seed_parser.add_argument("--weeks", type=int, default=4, help="Weeks of conduct to generate")
    seed_parser.add_argument("--seed", type=int, help="Random seed")

    # Student command
    student_parser = subparsers.add_parser("student", help="Student management")
    student_parser.add_argument("action", choices=["list", "add", "update", "remove"], help="Action to perform")
    student_parser.add_argument("--name", help="Student name (for add or update)")
    student_parser.add_argument("--gender", help="male or female (add defaults to male)")
    student_parser.add_argument("--rank", help="good, fair, pass or fail (add defaults to pass)")
    student_parser.add_argument("--talkative", action="store_true", help="Mark as talkative")
    student_parser.add_argument("--quiet", action="store_true", help="Clear the talkative flag (for update)")
    student_parser.add_argument("--student-id", help="Student ID")
    student_parser.add_argument("--search", help="Search term (for list)")

    # Settings command
    settings_parser = subparsers.add_parser("settings", help="Classroom settings")
    settings_parser.add_argument("action", choices=["show", "set"])
    settings_parser.add_argument("key", nargs="?", help="Dotted key, e.g. thresholds.good")
    settings_parser.add_argument("value", nargs="?", help="New value, JSON or plain text (for set)")

    # Import command
    import_parser = subparsers.add_parser("import", help="Import students from CSV")
    import_parser.add_argument("type", choices=["students"], help="Import type")
    import_parser.add_argument("file", help="File to import")

    # Seating command
    seating_parser = subparsers.add_parser("seating", help="Seating chart")
    seating_parser.add_argument("action", choices=["arrange", "show", "swap", "reset"])
    seating_parser.add_argument("--rows", type=int, help=f"Grid rows (default {SEATING_ROWS})")
    seating_parser.add_argument("--cols", type=int, help=f"Grid columns (default {SEATING_COLS})")
    seating_parser.add_argument("--seed", type=int, help="Random seed (for arrange)")
    seating_parser.add_argument("--from", dest="first", type=parse_seat, help="ROW,COL (for swap)")
    seating_parser.add_argument("--to", dest="second", type=parse_seat, help="ROW,COL (for swap)")

    # Conduct command
    conduct_parser = subparsers.add_parser("conduct", help="Weekly conduct scoring")
    conduct_parser.add_argument("action",
        choices=["score", "tag", "fill", "bonus", "week", "semester"],
        help="Action to perform")
    conduct_parser.add_argument("--week", type=int, default=1, help="Week number")
    conduct_parser.add_argument("--student-id", help="Student ID")
    conduct_parser.add_argument("--value", type=int, help="Score (for score) or points (for bonus)")
    conduct_parser.add_argument("--note", help="Teacher's note (for score)")
    conduct_parser.add_argument("--item", help="Behavior item ID, e.g. v1 or p2 (for tag)")
    conduct_parser.add_argument("--remove", action="store_true", help="Remove the tag instead of adding it")
    conduct_parser.add_argument("--reason", help="Reason (for bonus)")
    conduct_parser.add_argument("--start-week", type=int, default=1, help="First week (for semester)")
    conduct_parser.add_argument("--end-week", type=int, default=18, help="Last week (for semester)")

    # Backup command
    backup_parser = subparsers.add_parser("backup", help="JSON backup")
    backup_parser.add_argument("action", choices=["export", "import"])
    backup_parser.add_argument("file", help="Backup file path")

    # Sync command
    sync_parser = subparsers.add_parser("sync", help="Cloud sync")
    sync_parser.add_argument("action", choices=["push", "pull", "set-url"])
    sync_parser.add_argument("url", nargs="?", help="Endpoint URL (overrides the stored one)")

    # Log command
    log_parser = subparsers.add_parser("log", help="Activity log")
    log_parser.add_argument("action", choices=["show", "clear"])
    log_parser.add_argument("--limit", type=int, default=20, help="Entries to show")

    # Dashboard command
    dash_parser = subparsers.add_parser("dashboard", help="Start web dashboard")
    dash_parser.add_argument("--host", default="127.0.0.1", help="Host to bind to")
    dash_parser.add_argument("--port", type=int, default=5000, help="Port to run on")
    dash_parser.add_argument("--debug", action="store_true", help="Run in debug mode")

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return

    # Route to appropriate command
    commands = {
        "init": cmd_init,
        "seed": cmd_seed,
        "student": cmd_student,
        "settings": cmd_settings,
        "import": cmd_import,
        "seating": cmd_seating,
        "conduct": cmd_conduct,
        "backup": cmd_backup,
        "sync": cmd_sync,
        "log": cmd_log,
        "dashboard": cmd_dashboard
    }

    if args.command in commands:
        commands[args.command](args)
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
