#!/usr/bin/env python3
"""
Interactive terminal chat with the AI mentor.

Runs a full chat session (mentor questions, insight recording, streamed
replies) against the configured Gemini key, or on fallback responses when
no key is set.

Usage:
    # Chat with the default settings
    python scripts/mentor_chat_cli.py

    # Start on a topic with mentor mode off
    python scripts/mentor_chat_cli.py --topic "photosynthesis" --no-mentor-mode

    # Just check the provider connection
    python scripts/mentor_chat_cli.py --test-connection

Commands inside the chat:
    /clear    reset the conversation
    /mentor   toggle mentor mode
    /stats    show message counts
    /export   print the transcript
    /quit     exit
"""

import sys
import os
import argparse
import json

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from agents.chat_session import create_chat_session
from schedulers.task_scheduler import TaskScheduler
from services.chat_renderer import ConsoleRenderer
from services.local_store import open_store
import logging

# Set up logging
logging.basicConfig(
    level=logging.WARNING,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

logger = logging.getLogger(__name__)


def run_chat(topic: str = None, mentor_mode: bool = None, store_path: str = None):
    """Run the read-submit loop until /quit or EOF."""
    tasks = TaskScheduler()
    store = open_store(store_path)
    session = create_chat_session(tasks, store, renderer=ConsoleRenderer())

    if mentor_mode is not None and mentor_mode != session.mentor_mode:
        session.toggle_mentor_mode(mentor_mode)

    tasks.start()
    session.open()
    if topic:
        session.set_current_topic(topic)

    try:
        while True:
            try:
                line = input("> ")
            except EOFError:
                break

            command = line.strip().lower()
            if command in ("/quit", "/exit"):
                break
            elif command == "/clear":
                session.clear()
            elif command == "/mentor":
                session.toggle_mentor_mode(not session.mentor_mode)
            elif command == "/stats":
                print(json.dumps(session.get_chat_stats(), indent=2))
            elif command == "/export":
                print(session.export_chat_history())
            else:
                session.submit(line)
    except KeyboardInterrupt:
        print()
    finally:
        session.shutdown()
        tasks.shutdown()


def test_connection() -> bool:
    """Send a short prompt and report whether the provider answered."""
    tasks = TaskScheduler()
    session = create_chat_session(tasks, open_store())
    ok = session.mentor.test_connection()

    if ok:
        print(f"✓ Connected to {session.mentor.client.model}")
    else:
        print(f"✗ Connection failed: {session.mentor.last_error}")
    return ok


def main():
    parser = argparse.ArgumentParser(
        description='Chat with the AI mentor in the terminal',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__
    )

    parser.add_argument('--topic', help='Topic to start the conversation on')
    parser.add_argument(
        '--mentor-mode',
        dest='mentor_mode',
        action='store_true',
        default=None,
        help='Turn mentor mode on'
    )
    parser.add_argument(
        '--no-mentor-mode',
        dest='mentor_mode',
        action='store_false',
        help='Turn mentor mode off'
    )
    parser.add_argument('--store', help='Path to the local store JSON file')
    parser.add_argument(
        '--test-connection',
        action='store_true',
        help='Check the provider connection and exit'
    )

    args = parser.parse_args()

    if args.test_connection:
        sys.exit(0 if test_connection() else 1)

    run_chat(topic=args.topic, mentor_mode=args.mentor_mode, store_path=args.store)


if __name__ == '__main__':
    main()
