"""Entry point for ``python -m src``."""

import argparse
import sys


def run_api() -> None:
    """Start the FastAPI application with uvicorn."""
    import uvicorn

    from src.settings import settings

    print("🌐 Starting WhutMovie API...")
    uvicorn.run(
        "src.api.main:app",
        host=settings.api.host,
        port=settings.api.port,
        reload=settings.api.reload,
    )


def init_db(drop: bool, seed: bool) -> int:
    """Create tables and optionally seed initial data."""
    from src.scripts.init_database import main as init_main

    argv = []
    if drop:
        argv.append("--drop")
    if seed:
        argv.append("--seed")
    return init_main(argv)


def main() -> None:
    """Main CLI."""
    parser = argparse.ArgumentParser(
        description="WhutMovie - curated movie recommendation lists",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m src                       # API (default)
  python -m src api                   # API
  python -m src init-db --seed        # Create tables, seed admin + genres
        """,
    )

    subparsers = parser.add_subparsers(dest="command", help="Command")
    subparsers.add_parser("api", help="Run the FastAPI app")
    init_parser = subparsers.add_parser("init-db", help="Create tables")
    init_parser.add_argument("--drop", action="store_true")
    init_parser.add_argument("--seed", action="store_true")

    args = parser.parse_args()

    try:
        if args.command in (None, "api"):
            run_api()
        elif args.command == "init-db":
            sys.exit(init_db(args.drop, args.seed))
    except KeyboardInterrupt:
        print("\n⚠️  Interrupted")
        sys.exit(130)


if __name__ == "__main__":
    main()
