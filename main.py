"""
Entry point for the WeLeap rent and Leap calculators.

Usage:
    python main.py            # launches the web app at localhost:5000
    python main.py --cli      # runs the rent tool in the terminal
    python main.py --no-debug # web app without the Flask debugger
"""

import argparse


def main() -> None:
    parser = argparse.ArgumentParser(
        description="How Much Rent Can I Afford / Leap calculators",
    )
    parser.add_argument(
        "--cli",
        action="store_true",
        help="Run the rent tool in terminal mode instead of launching the web app",
    )
    parser.add_argument(
        "--no-debug",
        action="store_true",
        help="Disable the Flask debugger and reloader",
    )
    args = parser.parse_args()

    if args.cli:
        from cli import run_cli
        run_cli()
    else:
        from app import run_web
        run_web(debug=not args.no_debug)


if __name__ == "__main__":
    main()
