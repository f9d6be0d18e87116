"""CLI entry point and argument parsing"""

import sys
import argparse
from rich.console import Console
import settings
from utils.logging_setup import configure_logging
from cli.cli_app import SessionCLI


console = Console()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Waystation authentication session daemon")
    parser.add_argument("--debug", "-d", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser("run", help="Run the session daemon")
    run_parser.add_argument(
        "--login",
        action="store_true",
        help="Start the login flow if no session was restored"
    )

    open_parser = subparsers.add_parser("open-url", help="Forward deep link(s) to the running daemon")
    open_parser.add_argument("urls", nargs="+", help="Deep link URL(s); only the first is processed")

    subparsers.add_parser("status", help="Show the running daemon's session")
    subparsers.add_parser("login", help="Start the login flow in the running daemon")
    subparsers.add_parser("logout", help="Log out of the running daemon's session")
    subparsers.add_parser("refresh", help="Refresh the running daemon's session now")

    return parser


def main(argv=None):
    """Entry point for the CLI"""
    args = build_parser().parse_args(argv)

    configure_logging(settings.LOG_LEVEL, debug=args.debug, log_file=settings.LOG_FILE)

    try:
        cli = SessionCLI(debug=args.debug, console=console)

        if args.command == "run":
            cli.run(login=args.login)
            return

        if args.command == "open-url":
            ok = cli.open_url(args.urls)
        elif args.command == "status":
            ok = cli.show_status()
        elif args.command == "login":
            ok = cli.login()
        elif args.command == "logout":
            ok = cli.logout()
        else:
            ok = cli.refresh()
        cli.close()

        if not ok:
            sys.exit(1)

    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user[/yellow]")
        console.print("Goodbye!")
    except Exception as e:
        console.print(f"\n[red]Fatal error:[/red] {e}")
        if args.debug:
            import traceback
            traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    main()
