"""Terminal front-end for the resume assistant chat widget."""

from __future__ import annotations

import argparse
import asyncio
import os

from resume_assistant.config import load_config
from resume_assistant.widget import ChatApiClient, ChatWidget, Message, Role


class TerminalView:
    """Prints each new message; the terminal scrolls on its own."""

    def scroll_to_latest(self, message: Message) -> None:
        who = "you" if message.role is Role.USER else "assistant"
        stamp = message.created_at.astimezone().strftime("%H:%M")
        print(f"[{stamp}] {who}: {message.content}")


async def run(proxy_url: str, timeout: float) -> None:
    async with ChatApiClient(proxy_url, timeout=timeout) as api:
        widget = ChatWidget(api)
        widget.subscribe(TerminalView().scroll_to_latest)

        print("Welcome to Resume Assistant. Try asking:")
        for i, q in enumerate(widget.suggestions, 1):
            print(f"  {i}. {q}")

        try:
            while True:
                line = await asyncio.to_thread(input, "> ")
                if line.strip().lower() in {"exit", "quit"}:
                    break
                if line.strip().isdigit() and widget.suggestions:
                    idx = int(line.strip()) - 1
                    if 0 <= idx < len(widget.suggestions):
                        await widget.choose_suggestion(widget.suggestions[idx])
                        continue
                widget.set_input(line)
                await widget.submit()
        except (EOFError, KeyboardInterrupt):
            pass
        finally:
            widget.close()


def main() -> None:
    cfg = load_config(os.environ.get("RESUME_ASSISTANT_CONFIG"))
    client_cfg = cfg.get("client", {})
    parser = argparse.ArgumentParser(description="Chat with the resume assistant from a terminal.")
    parser.add_argument(
        "--url",
        type=str,
        default=client_cfg.get("proxy_url", "http://127.0.0.1:8000"),
        help="Base URL of the chat proxy (default: http://127.0.0.1:8000)",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=float(client_cfg.get("timeout", 30.0)),
        help="Seconds to wait for a reply (default: 30)",
    )
    args = parser.parse_args()
    asyncio.run(run(args.url, args.timeout))


if __name__ == "__main__":
    main()
