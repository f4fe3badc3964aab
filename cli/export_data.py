"""
CLI for signing in to the CSF API and exporting filtered feedback data.

The session record is kept in a storage directory (default ~/.csf style path
from config), so every shell using the same directory shares one session:
signing out in one shell signs out the others, which `status --watch`
reports as it happens.

Filters are given either as a dashboard URL query (--query) or as flags;
flags are applied on top of the query with the same cascading rules as the
dashboard controls.

Usage:
    python -m cli.export_data login --username alice
    python -m cli.export_data status
    python -m cli.export_data status --watch
    python -m cli.export_data export --region Central --time-period by_year --year 2024
    python -m cli.export_data export --query "region=Central&timePeriod=today" --all-pages --output feedback.csv
    python -m cli.export_data logout

Run `python -m cli.export_data --help` for full options.
"""

import argparse
import getpass
import sys
import time
from pathlib import Path
from typing import Callable, Optional

import requests

from api_client import AuthenticatedClient, Endpoints, PaginatedFetchController
from auth import FileStorage, RouteGuard, SessionProvider, SessionStore
from config import DashboardConfig, get_dashboard_config, load_dashboard_config
from core.errors import AuthenticationError, FetchError, InvalidSelectionError, UnauthorizedError
from core.logging_config import get_logger, setup_logging
from dash_app.data.rows import rows_to_frame
from filters import FilterStateSynchronizer, LocationFilter, TimePeriodSelector, TIME_PERIODS

logger = get_logger(__name__)


def _open_store(config: DashboardConfig, storage_dir: Optional[Path]) -> SessionStore:
    directory = Path(storage_dir) if storage_dir else config.storage.path
    return SessionStore(FileStorage(directory), key=config.storage.session_key)


def _make_client(
    config: DashboardConfig,
    store: Optional[SessionStore] = None,
    on_unauthorized: Optional[Callable[[], None]] = None,
    http: Optional[requests.Session] = None,
) -> AuthenticatedClient:
    return AuthenticatedClient(
        Endpoints.from_config(config.api),
        token_provider=store.token if store else None,
        timeout=config.api.request_timeout_seconds,
        login_timeout=config.api.login_timeout_seconds,
        on_unauthorized=on_unauthorized,
        http=http,
    )


def login(
    username: str,
    password: str,
    storage_dir: Optional[Path] = None,
    config: Optional[DashboardConfig] = None,
    http: Optional[requests.Session] = None,
) -> tuple[bool, str]:
    """
    Sign in and persist the session.

    Returns:
        Tuple of (success, message)
    """
    config = config or get_dashboard_config()
    store = _open_store(config, storage_dir)

    try:
        session = _make_client(config, http=http).login(username, password)
    except AuthenticationError as e:
        return False, str(e)

    with SessionProvider(store, login_path=config.routes.login) as context:
        context.login(session)

    if not store.has_session():
        return True, f"Signed in as {session.user.username} (storage unavailable, session not saved)"
    return True, f"Signed in as {session.user.username}"


def logout(storage_dir: Optional[Path] = None, config: Optional[DashboardConfig] = None) -> tuple[bool, str]:
    """Clear the persisted session."""
    config = config or get_dashboard_config()
    store = _open_store(config, storage_dir)
    with SessionProvider(store, login_path=config.routes.login) as context:
        context.logout()
    return True, "Signed out"


def _describe_user(user) -> str:
    scope = f"region {user.region}" if user.is_region_scoped else "national"
    return f"{user.username} ({scope})"


def status(storage_dir: Optional[Path] = None, config: Optional[DashboardConfig] = None) -> tuple[bool, str]:
    """Report whether a valid session is persisted."""
    config = config or get_dashboard_config()
    store = _open_store(config, storage_dir)
    with SessionProvider(store, login_path=config.routes.login) as context:
        if context.is_authenticated:
            return True, f"Signed in as {_describe_user(context.user)}"
    return False, "Not signed in"


def watch_session(
    storage_dir: Optional[Path] = None,
    config: Optional[DashboardConfig] = None,
    interval: float = 2.0,
    max_polls: Optional[int] = None,
    sleep: Callable[[float], None] = time.sleep,
    echo: Callable[[str], None] = print,
) -> tuple[bool, str]:
    """
    Print a line whenever another process signs in or out.

    Args:
        interval: Seconds between polls of the storage directory
        max_polls: Stop after this many polls (None runs until interrupted)
        sleep: Sleep function (injectable for tests)
        echo: Output function (injectable for tests)
    """
    config = config or get_dashboard_config()
    store = _open_store(config, storage_dir)

    def report(context) -> None:
        if context.is_authenticated:
            echo(f"Signed in as {_describe_user(context.user)}")
        else:
            echo("Signed out")

    polls = 0
    with SessionProvider(store, login_path=config.routes.login) as context:
        report(context)
        context.subscribe(report)
        try:
            while max_polls is None or polls < max_polls:
                sleep(interval)
                store.storage.poll()
                polls += 1
        except KeyboardInterrupt:
            pass
    return True, f"Stopped watching after {polls} polls"


# Flag → setter, in the order the cascade requires
_LOCATION_FLAGS = (
    ("region", "set_region"),
    ("district", "set_district"),
    ("facility", "set_facility"),
)
_TIME_FLAGS = (
    ("time_period", "select_mode"),
    ("year", "set_year"),
    ("month", "set_month"),
    ("quarter", "set_quarter"),
    ("date", "set_date"),
)


def export_data(
    query: str = "",
    filters: Optional[dict] = None,
    page: int = 1,
    all_pages: bool = False,
    output: Optional[Path] = None,
    storage_dir: Optional[Path] = None,
    config: Optional[DashboardConfig] = None,
    http: Optional[requests.Session] = None,
) -> tuple[bool, str, dict]:
    """
    Export feedback rows for a filter to CSV.

    Args:
        query: Dashboard URL query string to start from
        filters: Flag overrides keyed region/district/facility/time_period/
                 year/month/quarter/date (None values are skipped)
        page: Page to export when all_pages is False
        all_pages: Walk every page of the filter
        output: CSV path; stdout when None
        storage_dir: Session storage directory (default from config)
        config: Dashboard config (default: config/dashboard.toml)
        http: requests.Session to use (injectable for tests)

    Returns:
        Tuple of (success, message, stats)
    """
    config = config or get_dashboard_config()
    filters = filters or {}
    store = _open_store(config, storage_dir)
    redirects = []
    stats = {}

    with SessionProvider(store, navigate=redirects.append, login_path=config.routes.login) as context:
        guard = RouteGuard(context, store, redirects.append)
        guard.mount()
        if not guard.allows_render:
            return False, "Not signed in. Run: python -m cli.export_data login", stats

        user = context.user
        location = LocationFilter(user, restrict_to_user_region=config.filters.restrict_to_user_region)
        time_period = TimePeriodSelector(first_year=config.filters.first_year)
        sync = FilterStateSynchronizer(location, time_period, query=query)
        sync.hydrate()

        try:
            for name, setter in _LOCATION_FLAGS:
                if filters.get(name) is not None:
                    getattr(location, setter)(filters[name])
            for name, setter in _TIME_FLAGS:
                if filters.get(name) is not None:
                    getattr(time_period, setter)(filters[name])
        except InvalidSelectionError as e:
            return False, f"Invalid filter: {e}", stats

        state = sync.current
        stats["filters"] = state.describe()
        stats["query"] = sync.query
        logger.info(f"Exporting {state.describe()}")

        client = _make_client(config, store, on_unauthorized=context.logout, http=http)
        controller = PaginatedFetchController(client, user=user)
        controller.set_filters(state)

        rows = []
        pages = 0
        try:
            if all_pages:
                for page_rows in controller.iter_pages():
                    rows.extend(page_rows)
                    pages += 1
            else:
                if not controller.load(page):
                    return False, f"Failed to load page {page}: {controller.error}", stats
                rows = controller.rows
                pages = 1
        except UnauthorizedError:
            return False, "Session expired. Sign in again.", stats
        except FetchError as e:
            return False, f"Failed to load data: {e}", stats
        finally:
            guard.unmount()
            sync.close()

    df = rows_to_frame(rows)
    stats.update({"rows": len(df), "pages": pages, "total_pages": controller.cursor.total_pages})

    if output:
        df.to_csv(output, index=False)
        destination = str(output)
    else:
        df.to_csv(sys.stdout, index=False)
        destination = "stdout"

    return True, f"Exported {len(df)} rows from {pages} page(s) to {destination}", stats


def main(argv: Optional[list[str]] = None) -> int:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Sign in to the CSF API and export filtered feedback data",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Sign in (prompts for the password)
    python -m cli.export_data login --username alice

    # Export page 1 for a region and year
    python -m cli.export_data export --region Central --time-period by_year --year 2024

    # Export every page of a dashboard URL's filter to a file
    python -m cli.export_data export --query "region=Central&timePeriod=by_quarter_year&year=2024&quarter=2" \\
        --all-pages --output feedback.csv

    # Follow sign-ins and sign-outs made in other shells
    python -m cli.export_data status --watch
        """
    )

    parser.add_argument(
        "--storage-dir",
        type=str,
        default=None,
        help="Directory holding the session record (default: [storage] directory in config)"
    )

    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to a dashboard TOML config (default: config/dashboard.toml)"
    )

    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose logging"
    )

    parser.add_argument(
        "--log-file",
        type=str,
        default=None,
        help="Also append log records to this file"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    login_parser = subparsers.add_parser("login", help="Sign in and save the session")
    login_parser.add_argument("--username", "-u", type=str, required=True, help="Username")

    subparsers.add_parser("logout", help="Clear the saved session")

    status_parser = subparsers.add_parser("status", help="Show the signed-in user")
    status_parser.add_argument(
        "--watch",
        action="store_true",
        help="Keep running and report sign-ins/outs from other shells"
    )
    status_parser.add_argument(
        "--interval",
        type=float,
        default=2.0,
        help="Seconds between checks with --watch (default: 2)"
    )

    export_parser = subparsers.add_parser("export", help="Export feedback rows to CSV")
    export_parser.add_argument("--query", type=str, default="", help="Dashboard URL query string")
    export_parser.add_argument("--region", type=str, default=None, help="Region name")
    export_parser.add_argument("--district", type=str, default=None, help="District name")
    export_parser.add_argument("--facility", type=str, default=None, help="Facility name")
    export_parser.add_argument(
        "--time-period",
        type=str,
        choices=[value for value, _ in TIME_PERIODS],
        default=None,
        help="Time period mode"
    )
    export_parser.add_argument("--year", type=int, default=None, help="Year (year modes)")
    export_parser.add_argument("--month", type=str, default=None, help="Month 1-12 (needs a year)")
    export_parser.add_argument("--quarter", type=str, default=None, help="Quarter 1-4 or Q1-Q4 (needs a year)")
    export_parser.add_argument("--date", type=str, default=None, help="Single day, YYYY-MM-DD")
    export_parser.add_argument("--page", type=int, default=1, help="Page to export (default: 1)")
    export_parser.add_argument("--all-pages", action="store_true", help="Export every page")
    export_parser.add_argument("--output", "-o", type=str, default=None, help="CSV file (default: stdout)")

    args = parser.parse_args(argv)

    # Configure logging
    import logging
    log_level = logging.DEBUG if args.verbose else logging.INFO
    setup_logging(level=log_level, log_file=args.log_file)

    config = load_dashboard_config(Path(args.config)) if args.config else get_dashboard_config()
    errors = config.validate()
    if errors:
        for error in errors:
            print(f"[FAILED] Config: {error}", file=sys.stderr)
        return 1

    storage_dir = Path(args.storage_dir) if args.storage_dir else None

    if args.command == "login":
        password = getpass.getpass("Password: ")
        success, message = login(args.username, password, storage_dir=storage_dir, config=config)
    elif args.command == "logout":
        success, message = logout(storage_dir=storage_dir, config=config)
    elif args.command == "status":
        if args.watch:
            success, message = watch_session(storage_dir=storage_dir, config=config, interval=args.interval)
        else:
            success, message = status(storage_dir=storage_dir, config=config)
    else:
        success, message, _stats = export_data(
            query=args.query,
            filters={
                "region": args.region,
                "district": args.district,
                "facility": args.facility,
                "time_period": args.time_period,
                "year": args.year,
                "month": args.month,
                "quarter": args.quarter,
                "date": args.date,
            },
            page=args.page,
            all_pages=args.all_pages,
            output=Path(args.output) if args.output else None,
            storage_dir=storage_dir,
            config=config,
        )

    if success:
        print(f"\n[OK] {message}", file=sys.stderr)
        return 0
    else:
        print(f"\n[FAILED] {message}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
