"""
NavCaddy - Conversational Golf Caddy

CLI entry point for talking to the decision engine and reviewing
miss patterns.
"""

import argparse
import asyncio
import logging
import sys

from navcaddy.models.routing import (
    ConfirmationRequired,
    Navigate,
    NoNavigation,
    PrerequisiteMissing,
    RoutingResult,
)
from navcaddy.orchestrator import NavCaddyEngine
from navcaddy.utils.storage import JsonShotStorage
import config.settings as settings


def setup_logging(log_level: str = "INFO"):
    """Configure logging for the entire application."""
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format=settings.LOG_FORMAT,
        handlers=[
            logging.StreamHandler(sys.stdout),
            logging.FileHandler("navcaddy.log")
        ]
    )


def format_result(result: RoutingResult) -> str:
    """Human-readable line for a routing outcome."""
    if isinstance(result, Navigate):
        params = ", ".join(f"{k}={v}" for k, v in result.target.parameters.items())
        suffix = f" ({params})" if params else ""
        return f"→ {result.target.module.value}/{result.target.screen}{suffix}"
    if isinstance(result, NoNavigation):
        return f"Bones: {result.response}"
    if isinstance(result, PrerequisiteMissing):
        return f"Bones: {result.message}"
    if isinstance(result, ConfirmationRequired):
        return f"Bones: {result.message} (yes/no)"
    raise TypeError(f"Unknown routing result: {type(result).__name__}")


async def run_conversation(engine: NavCaddyEngine) -> None:
    """Read utterances from stdin until EOF or 'quit'."""
    loop = asyncio.get_running_loop()
    while True:
        print("You: ", end="", flush=True)
        line = await loop.run_in_executor(None, sys.stdin.readline)
        if not line:
            break
        utterance = line.strip()
        if utterance.lower() in ("quit", "exit"):
            break

        result = await engine.handle_input(utterance)
        print(format_result(result))


async def run_pattern_report(engine: NavCaddyEngine, output_dir: str, window_days: int) -> str:
    """Print pattern statistics and export the pattern table."""
    store = engine.pattern_store
    removed = await store.enforce_retention_policy()
    statistics = await store.get_statistics(window_days)

    print(f"Shots analyzed: {statistics.total_shots}")
    print(f"Misses: {statistics.total_misses}")
    if statistics.most_common_direction:
        print(f"Most common miss: {statistics.most_common_direction.value}")
    print(f"Patterns found: {statistics.patterns_found} "
          f"(average confidence {statistics.average_confidence:.0%})")
    if removed:
        print(f"Removed {removed} shots past the retention window")

    return await store.export_pattern_table(output_dir)


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="NavCaddy - Conversational Golf Caddy",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Talk to the caddy
  python main.py --bag-configured

  # Review miss patterns from the last 30 days
  python main.py --patterns

  # Use a different shot history file
  python main.py --patterns --shot-history data/practice_shots.json

Note: Set GOOGLE_API_KEY environment variable before running.
        """
    )

    parser.add_argument(
        "--patterns",
        action="store_true",
        help="Print miss-pattern statistics and export the pattern table, then exit"
    )

    parser.add_argument(
        "--window-days",
        type=int,
        default=settings.PATTERN_WINDOW_DAYS,
        help=f"Days of shots to analyze (default: {settings.PATTERN_WINDOW_DAYS})"
    )

    parser.add_argument(
        "--shot-history",
        default=str(settings.SHOT_HISTORY_PATH),
        help=f"Shot history JSON (default: {settings.SHOT_HISTORY_PATH})"
    )

    parser.add_argument(
        "--output-dir",
        default=str(settings.OUTPUT_ROOT),
        help=f"Directory for pattern tables (default: {settings.OUTPUT_ROOT})"
    )

    parser.add_argument(
        "--bag-configured",
        action="store_true",
        help="Treat the bag as configured (club and shot intents)"
    )

    parser.add_argument(
        "--recovery-data",
        action="store_true",
        help="Treat recovery data as available (recovery intents)"
    )

    parser.add_argument(
        "--log-level",
        default=settings.LOG_LEVEL,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help=f"Logging level (default: {settings.LOG_LEVEL})"
    )

    args = parser.parse_args()

    # Setup logging
    setup_logging(args.log_level)
    logger = logging.getLogger(__name__)

    # Validate API key
    if not settings.GOOGLE_API_KEY:
        logger.error(
            "GOOGLE_API_KEY environment variable not set. "
            "Please set it before running NavCaddy."
        )
        sys.exit(1)

    # Print banner
    print("=" * 60)
    print("NavCaddy - Conversational Golf Caddy")
    print("=" * 60)
    print(f"Shot history: {args.shot_history}")
    print(f"Bag configured: {args.bag_configured}")
    print(f"Recovery data: {args.recovery_data}")
    print("=" * 60)
    print()

    try:
        engine = NavCaddyEngine(
            api_key=settings.GOOGLE_API_KEY,
            shot_repository=JsonShotStorage(
                args.shot_history,
                retention_days=settings.SHOT_RETENTION_DAYS
            ),
            bag_configured=args.bag_configured,
            recovery_data_available=args.recovery_data
        )

        if args.patterns:
            output_path = asyncio.run(
                run_pattern_report(engine, args.output_dir, args.window_days)
            )
            print()
            print(f"Pattern table: {output_path}")
        else:
            print("Ask me anything about your round. Type 'quit' to leave.")
            asyncio.run(run_conversation(engine))

        logger.info("NavCaddy finished")
        sys.exit(0)

    except KeyboardInterrupt:
        logger.warning("Interrupted by user")
        print("\n⚠️  Interrupted")
        sys.exit(1)

    except Exception as e:
        logger.error(f"NavCaddy failed: {e}", exc_info=True)
        print(f"\n❌ NavCaddy failed: {e}")
        print("Check navcaddy.log for details")
        sys.exit(1)


if __name__ == "__main__":
    main()


# Design Rationale and Trade-offs:
#
# 1. Why a thin demo CLI?
#    - The engine is an in-process library; the CLI only exercises it
#    - Trade-off: No persistence of session state between runs
#
# 2. Why validate GOOGLE_API_KEY at startup?
#    - Fail fast instead of on the first utterance
#    - Trade-off: --patterns also requires a key, though it never calls Gemini
