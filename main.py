#!/usr/bin/env python3
"""Time Poem: a keyword's past, present and future, told by Gemini.

This CLI drives one keyword session through the same intents a UI would
emit (submit, navigate, translate, compose) and prints the result as
markdown.

Commands:
    explore     Run a session for a keyword and render it
    status      Show the effective configuration

Examples:
    python main.py explore "AI"                       # Past, present and future
    python main.py explore "AI" --until past          # Past search only
    python main.py explore "Tesla" --lang en --poem   # English, with share card
    python main.py explore "AI" --poem --image-out card.png --output ai.md
    python main.py status

Environment:
    GEMINI_API_KEY: Required for all model calls
    See config.py for all configuration options
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from config import Config
from observability.logging import setup_logging

UNTIL_PHASES = ("past", "present", "future")


def cmd_explore(args: argparse.Namespace, config: Config) -> int:
    """Run a keyword session and render it.

    Args:
        args: Parsed command line arguments
        config: Application configuration

    Returns:
        Exit code (0 for success, 2 if a requested stage failed)
    """
    from controller import SessionController
    from presenter import render_snapshot
    from timeline import Job, Phase

    logger = logging.getLogger(__name__)

    async def explore():
        controller = SessionController(config)
        state = await controller.submit(args.keyword)
        logger.info("Past ready | items=%d", len(state.news_items))

        if args.translate:
            await asyncio.gather(*(controller.translate_item(item.id) for item in state.news_items))

        if args.until in ("present", "future"):
            state = await controller.navigate(Phase.PRESENT)
        if args.until == "future" and state.is_enabled(Phase.FUTURE):
            state = await controller.navigate(Phase.FUTURE)
        if args.poem and state.future_prediction is not None:
            await controller.compose_poem()

        usage = controller.pipeline.gateway.usage
        logger.info("Session done | usage=%s", json.dumps(usage.to_dict()))
        return controller.snapshot()

    state = asyncio.run(explore())

    image_path = None
    artifact = state.poetic_artifact
    if args.image_out and artifact is not None and not artifact.is_fallback_image:
        path = Path(args.image_out)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(artifact.image_data)
        image_path = str(path)

    if args.json:
        output = json.dumps(state.to_dict(), indent=2, ensure_ascii=False)
    else:
        output = render_snapshot(state, days=config.search_window_days, image_path=image_path)

    if args.output:
        output_path = Path(args.output)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(output, encoding="utf-8")
        print(f"Saved: {output_path}")
    else:
        print(output)

    wanted = {
        "present": [Job.PRESENT_ANALYSIS],
        "future": [Job.PRESENT_ANALYSIS, Job.FUTURE_PREDICTION],
    }.get(args.until, [])
    failed = [job.value for job in wanted if state.error_for(job)]
    if failed:
        print(f"Stage failed: {', '.join(failed)}", file=sys.stderr)
        return 2
    return 0


def cmd_status(args: argparse.Namespace, config: Config) -> int:
    """Display the effective configuration.

    Args:
        args: Parsed command line arguments
        config: Application configuration

    Returns:
        Exit code (0 for success)
    """
    status = {
        "config": {
            "language": config.language,
            "search_model": config.search_model,
            "reasoning_model": config.reasoning_model,
            "image_model": config.image_model,
            "news_item_count": config.news_item_count,
            "search_window_days": config.search_window_days,
            "request_timeout_seconds": config.request_timeout_seconds,
            "image_aspect_ratio": config.image_aspect_ratio,
            "enable_logfire": config.enable_logfire,
            "api_key_set": bool(config.gemini_api_key),
        },
        "validation": config.validate() or "ok",
    }

    print(json.dumps(status, indent=2))
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point.

    Args:
        argv: Command line arguments (default: sys.argv[1:])

    Returns:
        Exit code
    """
    parser = argparse.ArgumentParser(
        description="Time Poem: a keyword's past, present and future",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # explore command
    explore_parser = subparsers.add_parser("explore", help="Explore a keyword")
    explore_parser.add_argument("keyword", help="Keyword to explore")
    explore_parser.add_argument(
        "--lang",
        choices=["zh", "en"],
        help="Output language (default: zh)",
    )
    explore_parser.add_argument(
        "--until",
        choices=UNTIL_PHASES,
        default="future",
        help="Last phase to visit (default: future)",
    )
    explore_parser.add_argument(
        "--poem",
        action="store_true",
        help="Compose the poem + image share card",
    )
    explore_parser.add_argument(
        "--translate",
        action="store_true",
        help="Translate every news item into the output language",
    )
    explore_parser.add_argument(
        "--json",
        action="store_true",
        help="Print the session snapshot as JSON instead of markdown",
    )
    explore_parser.add_argument(
        "--output",
        help="Write the rendering to this path instead of stdout",
    )
    explore_parser.add_argument(
        "--image-out",
        help="Save the generated share card image to this path",
    )

    # status command
    subparsers.add_parser("status", help="Show configuration")

    args = parser.parse_args(argv)

    config = Config.load()
    if getattr(args, "lang", None):
        config.language = args.lang

    setup_logging(config, verbose=args.verbose)

    if config.enable_logfire:
        from observability.tracing import setup_tracing
        setup_tracing(config)

    if args.command == "explore":
        error = config.validate()
        if error:
            print(f"Configuration error: {error}", file=sys.stderr)
            return 1

    commands = {
        "explore": cmd_explore,
        "status": cmd_status,
    }

    if args.command in commands:
        try:
            return commands[args.command](args, config)
        except KeyboardInterrupt:
            logging.getLogger(__name__).info("Stopped by user (Ctrl+C)")
            return 130
        except Exception as e:
            logging.getLogger(__name__).error("Command failed | cmd=%s error=%s", args.command, e, exc_info=True)
            print(f"Error: {e}", file=sys.stderr)
            return 1
    else:
        parser.print_help()
        return 0


if __name__ == "__main__":
    sys.exit(main())
