"""Interactive chat loop (prompt_toolkit-based).

Kept apart from the CLI so the loop can be driven in tests through a
``PromptSession`` wired to a pipe input.
"""

from __future__ import annotations

from collections.abc import Callable

from prompt_toolkit import PromptSession
from prompt_toolkit.completion import WordCompleter
from prompt_toolkit.styles import Style

from .advisory import AdvisoryGateway
from .ledger import LedgerStore
from .logging_setup import get_logger

EXIT_COMMAND = "/exit"
RESET_COMMAND = "/reset"

_logger = get_logger("personal_ledger.term_ui")


def run_chat(
    gateway: AdvisoryGateway,
    store: LedgerStore,
    *,
    session: PromptSession | None = None,
    echo: Callable[[str], None] = print,
    message: str = "you> ",
) -> int:
    """Run the chat loop until ``/exit``, Ctrl+D or Ctrl+C.

    Each question is answered against the ledger snapshot current at the time
    it is asked. ``/reset`` starts a fresh conversation. Returns the number of
    questions sent.
    """

    completer = WordCompleter([EXIT_COMMAND, RESET_COMMAND], sentence=True)
    style = Style.from_dict({"prompt": "bold"})
    sess: PromptSession = session if session is not None else PromptSession()

    conversation = gateway.init_conversation()
    echo(f"Chatting about {len(store)} transactions. Type {EXIT_COMMAND} to quit.")
    asked = 0
    while True:
        try:
            line = sess.prompt(message, completer=completer, style=style)
        except (EOFError, KeyboardInterrupt):
            break
        text = line.strip()
        if not text:
            continue
        if text == EXIT_COMMAND:
            break
        if text == RESET_COMMAND:
            conversation = gateway.init_conversation()
            _logger.info("chat:reset session=%s", conversation.session_id)
            echo("Conversation reset.")
            continue
        reply = gateway.chat(conversation, text, store.snapshot())
        asked += 1
        echo(f"fin-ai> {reply}")
    _logger.info("chat:ended session=%s questions=%d", conversation.session_id, asked)
    return asked


__all__ = ["EXIT_COMMAND", "RESET_COMMAND", "run_chat"]
