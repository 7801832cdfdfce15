"""
Interactive CLI adapter for convoflow.

Architectural role:
- Exposes terminal interaction over the same `ChatOrchestrator` used by HTTP.
- Owns the in-process conversation history, as a UI would.

Request lifecycle (per user turn, CLI):
1. Read one line from stdin.
2. Handle local control commands (`exit`/`quit`, `empty chat`/`clear chat`).
3. Forward the text to `ChatOrchestrator.handle` with the current history.
4. Print streamed chunks as they arrive, or the complete reply text.
5. Append the user turn and the assistant answer to the history.

Input validation behavior:
- Blank input is ignored and does not reach the orchestrator.

Error handling strategy:
- Failed replies print the fallback apology; the turn is not added to history.
- EOF and keyboard interrupts end the loop without traceback output.
"""

from dotenv import load_dotenv

load_dotenv()

import asyncio
import sys

from convoflow.common.logging_setup import setup_logging
from convoflow.core.engine import REPLY_FAILED, REPLY_STREAM, ChatOrchestrator
from convoflow.core.routing_types import ChatTurn, InboundRequest


# =========================================================
# UTF-8 SAFE STDOUT
# Configures best-effort UTF-8 console output without failing startup.
# =========================================================

if hasattr(sys.stdout, "reconfigure"):
    try:
        sys.stdout.reconfigure(encoding="utf-8", errors="ignore")
    except (AttributeError, ValueError, OSError):
        pass


EXIT_COMMANDS = ("exit", "quit")
CLEAR_COMMANDS = ("empty chat", "clear chat")


async def run_turn(orchestrator: ChatOrchestrator, message: str, history: list[ChatTurn]) -> str | None:
    """
    Handle one user turn and print the reply.

    Returns:
        Assistant text to record in history, or `None` when the turn failed.
    """
    reply = await orchestrator.handle(
        InboundRequest(message=message, conversation_history=tuple(history))
    )

    if reply.kind == REPLY_FAILED:
        print(reply.envelope["error"])
        return None

    if reply.kind == REPLY_STREAM:
        parts: list[str] = []
        try:
            async for chunk in reply.chunks:
                parts.append(chunk)
                print(chunk, end="", flush=True)
        finally:
            await reply.aclose()
        print()
        return "".join(parts)

    print(reply.text)
    return reply.text


# =========================================================
# MAIN APPLICATION LOOP
# =========================================================

def main(orchestrator: ChatOrchestrator | None = None) -> None:
    """Run the interactive terminal session."""
    setup_logging()
    orchestrator = orchestrator if orchestrator is not None else ChatOrchestrator()
    history: list[ChatTurn] = []

    print("convoflow chat started. (Type 'exit' to quit)\n")
    print("-" * 60)

    while True:

        try:
            message = input("You: ").strip()

        except EOFError:
            print("\nSession ended.")
            break

        except KeyboardInterrupt:
            print("\nInterrupted.")
            break

        if not message:
            continue

        if message.lower() in EXIT_COMMANDS:
            print("Shutting down.")
            break

        if message.lower() in CLEAR_COMMANDS:
            history.clear()
            print("Chat cleared.")
            continue

        print("\nAssistant:\n")

        answer = asyncio.run(run_turn(orchestrator, message, history))
        if answer is not None:
            history.append(ChatTurn(role="user", content=message))
            history.append(ChatTurn(role="assistant", content=answer))

        print("\n" + "-" * 60 + "\n")


if __name__ == "__main__":
    main()
