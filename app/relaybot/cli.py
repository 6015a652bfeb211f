"""Interactive console -- talk to the text backend without Discord."""

from __future__ import annotations

import asyncio
import getpass

from prompt_toolkit import PromptSession
from prompt_toolkit.formatted_text import HTML
from prompt_toolkit.history import FileHistory
from rich.console import Console
from rich.markdown import Markdown

from .agent.prompt import DEFAULT_PERSONA, select_persona
from .agent.strategies import GenerationRequest, GenerationStrategy, build_strategy
from .config.settings import cfg
from .errors import MissingInputError
from .messaging.formatting import chunk_message
from .state.history import ConversationHistoryStore, HistoryEntry

console = Console()

CONSOLE_CONVERSATION = "console"


async def exchange(
    strategy: GenerationStrategy,
    history: ConversationHistoryStore,
    username: str,
    text: str,
) -> list[str]:
    """Run one turn through *strategy* and return the reply chunks."""
    request = GenerationRequest(
        prompt=text,
        username=username,
        user_id=username,
        conversation_id=CONSOLE_CONVERSATION,
        persona=select_persona(username, cfg.alt_persona_users),
        history=history.get(CONSOLE_CONVERSATION),
    )
    try:
        strategy.validate(request)
    except MissingInputError as exc:
        return [exc.guidance]
    reply = await strategy.generate(request)
    history.append(CONSOLE_CONVERSATION, HistoryEntry(username, text))
    history.append(CONSOLE_CONVERSATION, HistoryEntry(DEFAULT_PERSONA.name, reply.text, from_bot=True))
    return chunk_message(reply.text)


async def _main() -> None:
    if cfg.problems:
        for problem in cfg.problems:
            console.print(f"[red]Configuration error:[/red] {problem}")
        return
    if cfg.generation_mode != "text":
        console.print(f"[red]The console only supports GENERATION_MODE=text (got {cfg.generation_mode!r}).[/red]")
        return

    cfg.ensure_dirs()
    username = getpass.getuser()
    strategy = build_strategy(cfg)
    history = ConversationHistoryStore()
    console.print(
        f"[bold green]relaybot[/bold green] console ({cfg.text_model})\n"
        "Type [bold]/quit[/bold] to exit, [bold]/new[/bold] to forget the conversation.\n"
    )

    prompt_session: PromptSession[str] = PromptSession(
        history=FileHistory(str(cfg.data_dir / ".cli_history"))
    )

    try:
        while True:
            try:
                user_input = await asyncio.to_thread(prompt_session.prompt, HTML("<b>you &gt;</b> "))
            except (EOFError, KeyboardInterrupt):
                break

            text = user_input.strip()
            if not text:
                continue
            if text.lower() in ("/quit", "/exit"):
                break
            if text.lower() == "/new":
                history = ConversationHistoryStore()
                console.print("[dim]-- new conversation --[/dim]")
                continue

            console.print()
            try:
                with console.status(DEFAULT_PERSONA.waiting):
                    chunks = await exchange(strategy, history, username, text)
            except Exception as exc:
                console.print(f"[red]{DEFAULT_PERSONA.apology(username)}[/red] [dim]({exc})[/dim]")
                continue
            for chunk in chunks:
                console.print(Markdown(chunk))
            console.print()
    finally:
        await strategy.close()
        console.print("[dim]Goodbye.[/dim]")


def main() -> None:
    try:
        asyncio.run(_main())
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
