#!/usr/bin/env python3
"""
Keyword Bot - Main Entry Point
==============================

Command-line interface for running the bot.

Usage:
    python main.py                     # Start webhook server
    python main.py --check             # Validate config and keyword file
    python main.py --list-rules        # Print keyword rules
    python main.py --test "hello" GID  # Route a message without sending
    python main.py --help              # Show help
"""

import sys
import argparse
from pathlib import Path
from typing import Optional

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent))

from core.config import load_config, Config
from core.logging import setup_logging, get_logger
from core.exceptions import KeywordBotError
from modules.base import InboundEvent
from modules.keyword import format_rule_listing
from rules.store import RuleStore

logger = get_logger("main")


def parse_args(argv: Optional[list] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Keyword Bot - group chat keyword auto-replies",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py                          Start the webhook server
  python main.py --port 9000              Start on port 9000
  python main.py --check                  Validate configuration
  python main.py --list-rules             Show keyword rules
  python main.py --test "hi there" 12345  Route a message as group 12345
        """
    )

    mode_group = parser.add_mutually_exclusive_group()
    mode_group.add_argument(
        "--check",
        action="store_true",
        help="Load configuration and keyword file, then exit"
    )
    mode_group.add_argument(
        "--list-rules",
        action="store_true",
        help="Print keyword rules the way /listmessages does"
    )
    mode_group.add_argument(
        "--test",
        nargs="+",
        metavar=("TEXT", "GROUP_ID"),
        help="Route a user message and print the replies instead of sending them"
    )

    parser.add_argument(
        "--config",
        type=str,
        metavar="PATH",
        help="Path to configuration file"
    )
    parser.add_argument(
        "--host",
        type=str,
        help="Host to bind (default: from config)"
    )
    parser.add_argument(
        "--port",
        type=int,
        help="Port to listen on (default: PORT env, config, or 8080)"
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug mode"
    )

    return parser.parse_args(argv)


class ConsoleSender:
    """Prints outbound messages instead of posting them."""

    def send_message(self, group_id: str, message: str) -> None:
        print(f"[{group_id}] {message}")


def run_check(config: Config) -> int:
    store = RuleStore(config.keyword_config_file, persist_in_background=False)
    store.load()

    print("\n" + "=" * 50)
    print("Keyword Bot - Configuration Check")
    print("=" * 50 + "\n")
    print(f"  Listen: {config.host}:{config.port}")
    print(f"  Access token: {'✓ Set' if config.access_token else '✗ Not set'}")
    print(f"  Keyword file: {config.keyword_config_file or '(not configured)'}")
    print(f"  Keyword rules: {len(store)}")
    print(f"  Conversation groups: {', '.join(config.conversation_groups) or '(none)'}")
    print(f"  Management groups: {', '.join(config.management_groups) or '(none)'}")
    print()
    return 0


def run_list_rules(config: Config) -> int:
    store = RuleStore(config.keyword_config_file, persist_in_background=False)
    store.load()
    print(format_rule_listing(store.get_all_rules()))
    return 0


def run_test_message(config: Config, text: str, group_id: Optional[str]) -> int:
    from web.app import build_router

    store = RuleStore(config.keyword_config_file, persist_in_background=False)
    store.load()

    if group_id is None:
        groups = list(config.conversation_groups) or list(config.management_groups)
        group_id = groups[0] if groups else ""

    router = build_router(config, store, sender=ConsoleSender())
    router.process_callback(InboundEvent(group_id=group_id, text=text, sender_type="user"))
    return 0


def main(argv: Optional[list] = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    try:
        config = load_config(args.config)

        setup_logging(
            log_dir=config.log_dir or None,
            log_level="DEBUG" if args.debug or config.debug else config.log_level,
            console_output=True
        )

        if args.check:
            return run_check(config)
        if args.list_rules:
            return run_list_rules(config)
        if args.test:
            group_id = args.test[1] if len(args.test) > 1 else None
            return run_test_message(config, args.test[0], group_id)

        from web.app import run_app
        run_app(config=config, host=args.host, port=args.port, debug=args.debug)
        return 0

    except KeywordBotError as e:
        print(f"\nError: {e}")
        return 1
    except KeyboardInterrupt:
        print("\nInterrupted")
        return 0


if __name__ == "__main__":
    sys.exit(main())
