"""
Display hooks for the chat session.

ChatSession drives one of these instead of touching any UI directly. The
base class ignores everything; ConsoleRenderer writes to a terminal.
"""

from typing import List, Optional, TextIO
import sys

from models.chat import ChatMessage, Sender


class ChatRenderer:
    def on_open(self) -> None:
        pass

    def on_close(self) -> None:
        pass

    def show_message(self, message: ChatMessage) -> None:
        pass

    def show_typing(self) -> None:
        pass

    def hide_typing(self) -> None:
        pass

    def begin_stream(self) -> None:
        pass

    def stream_chunk(self, chunk: str) -> None:
        pass

    def end_stream(self, message: Optional[ChatMessage]) -> None:
        """message is None when the reveal was cancelled by a clear"""
        pass

    def reset(self, messages: List[ChatMessage]) -> None:
        pass


class ConsoleRenderer(ChatRenderer):
    """Terminal rendering for scripts/mentor_chat_cli.py"""

    def __init__(self, out: TextIO = sys.stdout):
        self.out = out

    def on_open(self) -> None:
        self._line("[chat opened]")

    def on_close(self) -> None:
        self._line("[chat closed]")

    def show_message(self, message: ChatMessage) -> None:
        # Student input is already on screen
        if message.sender == Sender.ASSISTANT:
            self._line(f"AI Mentor: {message.text}")

    def show_typing(self) -> None:
        self.out.write("AI Mentor is typing...")
        self.out.flush()

    def hide_typing(self) -> None:
        self.out.write("\r" + " " * 24 + "\r")
        self.out.flush()

    def begin_stream(self) -> None:
        self.out.write("AI Mentor: ")
        self.out.flush()

    def stream_chunk(self, chunk: str) -> None:
        self.out.write(chunk)
        self.out.flush()

    def end_stream(self, message: Optional[ChatMessage]) -> None:
        self._line("" if message else " [cancelled]")

    def reset(self, messages: List[ChatMessage]) -> None:
        for message in messages:
            self.show_message(message)

    def _line(self, text: str) -> None:
        self.out.write(text + "\n")
        self.out.flush()
