"""
Main entry point for the Vardiya station roster.
Provides both CLI and web server interfaces.
"""

import argparse
import logging
import sys

from data_loader import (
    generate_sample_data, load_schedule_config, load_schedule_state
)
from entities import DEFAULT_CONFIG
from schedule_export import export_csv, export_excel
from solver import generate_schedule, personnel_sort_key
from summary import process_yearly_schedule, task_spread
from validation import validate_schedule

DEFAULT_DB_PATH = "vardiya.db"


def load_inputs(use_sample_data: bool, db_path: str, view: str = "published"):
    """Load state and configuration from sample data or the database"""
    if use_sample_data:
        print("Loading sample data...")
        return generate_sample_data(), DEFAULT_CONFIG

    print(f"Loading data from database: {db_path}")
    try:
        return load_schedule_state(db_path, view), load_schedule_config(db_path)
    except Exception as e:
        print(f"Error loading database: {e}")
        print("Using sample data instead...")
        return generate_sample_data(), DEFAULT_CONFIG


def run_cli_planning(use_sample_data: bool = False, db_path: str = DEFAULT_DB_PATH, view: str = "published"):
    """
    Generate the schedule from the command line and print its summary.

    Args:
        use_sample_data: If True, use generated sample data instead of database
        db_path: Path to SQLite database
        view: Stored state to plan ('published' or 'draft')
    """
    print("=" * 60)
    print("VARDIYA STATION ROSTER")
    print("=" * 60)
    print()

    state, config = load_inputs(use_sample_data, db_path, view)
    print(f"  - Loaded {len(state.personnel)} personnel")
    print(f"  - Loaded {sum(len(d) for d in state.leaves.values())} leave days")
    print(f"  - Loaded {len(state.reinforcements)} reinforcement days")
    print()

    print(f"Generating schedule from {config.start_date} for {config.months} months...")
    days = generate_schedule(state, config)
    print(f"\n✓ Generated {len(days)} days")

    # Validate
    print("\nValidating schedule...")
    validation_result = validate_schedule(days, state, config)
    validation_result.print_report()

    # Print summary
    yearly = process_yearly_schedule(days, state.personnel, config)

    print("\n" + "=" * 60)
    print("YEARLY SUMMARY")
    print("=" * 60)
    for personnel, entry in sorted(yearly.yearly_summary.items(), key=lambda item: personnel_sort_key(item[0])):
        critical = entry.count_in(config.critical_stations)
        print(f"  {personnel}: {entry.total} tasks ({critical} critical)")
    print(f"\n  Spread (max - min): {task_spread(yearly.yearly_summary, state.personnel)}")

    print("\n" + "=" * 60)
    print("TASKS BY MONTH")
    print("=" * 60)
    for month in yearly.months:
        totals = ", ".join(
            f"{p}={month.summary[p].total}" for p in state.personnel
        )
        print(f"  {month.label}: {totals}")

    print("\n" + "=" * 60)
    return 0 if validation_result.is_valid else 1


def run_export(export_format: str, output: str, use_sample_data: bool = False,
               db_path: str = DEFAULT_DB_PATH, view: str = "published"):
    """Write the flattened schedule to a CSV or Excel file"""
    state, config = load_inputs(use_sample_data, db_path, view)
    days = generate_schedule(state, config)

    if export_format == "csv":
        with open(output, "w", encoding="utf-8", newline="") as f:
            f.write(export_csv(days))
    else:
        with open(output, "wb") as f:
            f.write(export_excel(days).getvalue())

    print(f"✓ Exported {len(days)} days to {output}")
    return 0


def start_web_server(host: str = "0.0.0.0", port: int = 5000, db_path: str = DEFAULT_DB_PATH, debug: bool = False):
    """
    Start Flask web server with REST API.

    Args:
        host: Host to bind to
        port: Port to bind to
        db_path: Path to SQLite database
        debug: Enable debug mode (WARNING: Only use in development!)
    """
    import os
    from web_api import create_app

    print("=" * 60)
    print("VARDIYA WEB SERVER")
    print("=" * 60)
    print(f"Starting web server on http://{host}:{port}")
    print(f"Database: {db_path}")
    if debug:
        print("⚠️  WARNING: Debug mode enabled - DO NOT use in production!")
    print()

    # Check if database exists, if not initialize it
    if not os.path.exists(db_path):
        print(f"ℹ️  No database found at {db_path}")
        print("   Initializing new database with default structure...")
        print()
        try:
            from db_init import initialize_database
            initialize_database(db_path, with_sample_data=False)
            print()
        except Exception as e:
            print(f"⚠️  Error initializing database: {e}")
            print("   The application may not work correctly.")
            print()

    app = create_app(db_path)
    app.run(host=host, port=port, debug=debug)


def main():
    """Main entry point with argument parsing"""
    parser = argparse.ArgumentParser(
        description="Vardiya - station roster portal"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging"
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # Database initialization command
    init_parser = subparsers.add_parser("init-db", help="Initialize database schema")
    init_parser.add_argument(
        "--db",
        type=str,
        default=DEFAULT_DB_PATH,
        help=f"Path to SQLite database (default: {DEFAULT_DB_PATH})"
    )
    init_parser.add_argument(
        "--with-sample-data",
        action="store_true",
        help="Include the reference team"
    )

    # CLI planning command
    plan_parser = subparsers.add_parser("plan", help="Generate the schedule and print its summary")
    plan_parser.add_argument(
        "--sample-data",
        action="store_true",
        help="Use generated sample data instead of database"
    )
    plan_parser.add_argument(
        "--db",
        type=str,
        default=DEFAULT_DB_PATH,
        help=f"Path to SQLite database (default: {DEFAULT_DB_PATH})"
    )
    plan_parser.add_argument(
        "--view",
        choices=["published", "draft"],
        default="published",
        help="Stored state to plan (default: published)"
    )

    # Export command
    export_parser = subparsers.add_parser("export", help="Export the schedule to a file")
    export_parser.add_argument(
        "--format",
        choices=["csv", "excel"],
        default="csv",
        help="Output format (default: csv)"
    )
    export_parser.add_argument(
        "--output",
        type=str,
        required=True,
        help="Output file path"
    )
    export_parser.add_argument(
        "--sample-data",
        action="store_true",
        help="Use generated sample data instead of database"
    )
    export_parser.add_argument(
        "--db",
        type=str,
        default=DEFAULT_DB_PATH,
        help=f"Path to SQLite database (default: {DEFAULT_DB_PATH})"
    )
    export_parser.add_argument(
        "--view",
        choices=["published", "draft"],
        default="published",
        help="Stored state to export (default: published)"
    )

    # Web server command
    server_parser = subparsers.add_parser("serve", help="Start web server")
    server_parser.add_argument(
        "--host",
        type=str,
        default="0.0.0.0",
        help="Host to bind to (default: 0.0.0.0)"
    )
    server_parser.add_argument(
        "--port",
        type=int,
        default=5000,
        help="Port to bind to (default: 5000)"
    )
    server_parser.add_argument(
        "--db",
        type=str,
        default=DEFAULT_DB_PATH,
        help=f"Path to SQLite database (default: {DEFAULT_DB_PATH})"
    )
    server_parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug mode (WARNING: Only for development!)"
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )

    if args.command == "init-db":
        from db_init import initialize_database
        initialize_database(args.db, with_sample_data=args.with_sample_data)
        return 0

    elif args.command == "plan":
        return run_cli_planning(args.sample_data, args.db, args.view)

    elif args.command == "export":
        return run_export(args.format, args.output, args.sample_data, args.db, args.view)

    elif args.command == "serve":
        start_web_server(args.host, args.port, args.db, args.debug)
        return 0

    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
