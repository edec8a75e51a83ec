# Area: Shared
"""
doublesix_sync.cli — Command-line interface
===========================================

Provides CLI entry point for running the sync client.

Usage:
    python -m doublesix_sync --config config.json --autoplay          # New game vs autoplay
    python -m doublesix_sync --config config.json --opponent bob      # New game vs a human
    python -m doublesix_sync --game-id g-42 --action roll             # One action on a game

Credentials can come from the config file, a .env file or the
environment (DOUBLESIX_API_URL, DOUBLESIX_USERNAME, DOUBLESIX_PASSWORD).
"""

import argparse
import sys

from ._client_config import REQUIRED_CONFIG_KEYS, load_config
from .runner import ACTIONS, GameRunner


def parse_args(argv=None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Double Six sync client - play or watch a game from the terminal",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m doublesix_sync --config config.json --autoplay
  python -m doublesix_sync --config config.json --opponent bob --winning-score 50
  python -m doublesix_sync --config config.json --game-id g-42 --action end
        """,
    )

    parser.add_argument(
        "--config",
        type=str,
        help="Path to JSON config file",
    )

    target = parser.add_mutually_exclusive_group()
    target.add_argument(
        "--game-id",
        type=str,
        help="Load an existing game",
    )
    target.add_argument(
        "--opponent",
        type=str,
        help="Create a game against this human player",
    )
    target.add_argument(
        "--autoplay",
        action="store_true",
        help="Create a game against a new autoplay opponent",
    )

    parser.add_argument(
        "--winning-score",
        type=int,
        help="Target score for a new game (default from config, 100)",
    )

    parser.add_argument(
        "--action",
        choices=ACTIONS,
        help="Perform one action, wait for its timers, then exit",
    )

    return parser.parse_args(argv)


def main(argv=None) -> int:
    """Main CLI entry point."""
    args = parse_args(argv)
    config = load_config(args.config)

    missing = [k for k in REQUIRED_CONFIG_KEYS if not config.get(k)]
    if missing:
        print(f"Error: Missing required config: {', '.join(missing)}", file=sys.stderr)
        print("Set via config file or environment variables.", file=sys.stderr)
        return 1

    runner = GameRunner(config=config)
    return runner.run(
        game_id=args.game_id,
        opponent=args.opponent,
        autoplay=args.autoplay,
        winning_score=args.winning_score,
        action=args.action,
    )
