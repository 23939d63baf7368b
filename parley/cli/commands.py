"""CLI commands for parley."""

import asyncio
import json

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from parley import __logo__, __version__

app = typer.Typer(
    name="parley",
    help=f"{__logo__} parley - conversational agent core",
    no_args_is_help=True,
)

console = Console()

CHAT_HELP = """\
Commands:
  \\q                        quit
  \\h                        ask for help
  \\r JSON                   send a raw payload (e.g. {"special": "yes"})
  \\c N                      pick choice N
  \\a TYPE QUESTION          an app asks a question (e.g. \\a Number how many?)
  \\p IDENTITY PROGRAM_JSON  a remote principal asks to run a program
  \\t PROGRAM_JSON           run a program directly
  \\n MESSAGE                an app sends a notification
  \\e ERROR                  an app reports an error
  \\d [KIND]                 configure a device, or discover devices
anything else is parsed as a command\
"""


def version_callback(value: bool):
    if value:
        console.print(f"{__logo__} parley v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None, "--version", "-v", callback=version_callback, is_eager=True
    ),
):
    """parley - conversational agent core."""
    pass


# ============================================================================
# Onboard
# ============================================================================


@app.command()
def onboard():
    """Initialize parley configuration."""
    from parley.config.loader import get_config_path, save_config
    from parley.config.schema import Config

    from parley.utils.helpers import get_policy_path

    config_path = get_config_path()
    if config_path.exists() and not typer.confirm(f"{config_path} exists. Replace it?"):
        raise typer.Exit()

    config = Config()
    save_config(config, config_path)
    policy_path = get_policy_path(config.policy.store_path)

    console.print(f"[green]✓[/green] Wrote {config_path}")
    console.print(f"[green]✓[/green] Permission rules will be kept in {policy_path}")
    console.print(f"\n{__logo__} Set [cyan]owner.identity[/cyan] in the config, then run [cyan]parley chat[/cyan].")


# ============================================================================
# Chat
# ============================================================================


def _create_loop(config, channel):
    from parley.agent.loop import ConversationLoop
    from parley.platform.base import Platform
    from parley.platform.memory import (
        CounterTelemetry,
        LoggingMessenger,
        MemoryAppRegistry,
        MemoryContacts,
        MemoryDeviceManager,
        PayloadParser,
        SimpleFormatter,
    )
    from parley.policy.store import MemoryPolicyStore
    from parley.utils.helpers import get_policy_path

    store_path = get_policy_path(config.policy.store_path) if config.policy.persist else None
    contacts = MemoryContacts()
    if config.owner.identity and config.owner.display_name:
        contacts.add(config.owner.identity, config.owner.display_name)

    platform = Platform(
        parser=PayloadParser(),
        contacts=contacts,
        apps=MemoryAppRegistry(),
        permissions=MemoryPolicyStore(store_path),
        stats=CounterTelemetry(),
        formatter=SimpleFormatter(),
        devices=MemoryDeviceManager(),
        messaging=LoggingMessenger(),
    )
    return ConversationLoop(
        platform,
        channel,
        assistant_name=config.assistant.name,
        show_welcome=config.assistant.show_welcome,
    )


def _report(future: asyncio.Future) -> None:
    if future.cancelled() or future.exception() is not None:
        return
    result = future.result()
    if result is not None:
        console.print(f"[dim]result: {escape(repr(result))}[/dim]")


def _dispatch_line(loop, line: str) -> asyncio.Future | None:
    from parley.program.serialization import program_from_json
    from parley.program.types import Type

    if not line.startswith("\\"):
        return loop.handle_command(line)

    cmd, _, rest = line[1:].partition(" ")
    rest = rest.strip()
    if cmd == "h":
        return loop.handle_parsed_command({"special": "help"})
    if cmd == "r":
        return loop.handle_parsed_command(rest)
    if cmd == "c":
        return loop.handle_parsed_command({"answer": {"type": "Choice", "value": int(rest)}})
    if cmd == "a":
        type_name, _, question = rest.partition(" ")
        return loop.ask_question(None, None, Type.from_string(type_name), question)
    if cmd == "p":
        identity, _, program = rest.partition(" ")
        return loop.ask_for_permission(identity, identity, program_from_json(program))
    if cmd == "t":
        return loop.run_program(program_from_json(rest))
    if cmd == "n":
        return loop.notify(None, None, None, rest)
    if cmd == "e":
        return loop.notify_error(None, None, rest)
    if cmd == "d":
        return loop.interactive_configure(rest or None)

    console.print(CHAT_HELP)
    return None


@app.command()
def chat():
    """Talk to the assistant from the terminal."""
    from parley.channels.console import ConsoleChannel
    from parley.config.loader import load_config
    from parley.errors import ParleyError
    from parley.utils.helpers import setup_logging

    config = load_config()
    setup_logging(config.logging.level)
    loop = _create_loop(config, ConsoleChannel(console))

    console.print(f"{__logo__} Interactive mode (\\q to exit, \\? for commands)\n")

    async def run_interactive():
        loop.start()
        while True:
            try:
                line = await asyncio.to_thread(console.input, "[bold blue]You:[/bold blue] ")
            except (KeyboardInterrupt, EOFError):
                break
            line = line.strip()
            if not line:
                continue
            if line == "\\q":
                break
            try:
                future = _dispatch_line(loop, line)
            except (ParleyError, ValueError, json.JSONDecodeError) as e:
                console.print(f"[red]{escape(str(e))}[/red]")
                continue
            if future is not None:
                future.add_done_callback(_report)
            # give the loop a chance to run before the next prompt
            await asyncio.sleep(0.05)
        loop.stop()
        console.print("\nGoodbye!")

    asyncio.run(run_interactive())


# ============================================================================
# Policy
# ============================================================================


policy_app = typer.Typer(help="Inspect granted permissions")
app.add_typer(policy_app, name="policy")


@policy_app.command("list")
def policy_list():
    """List granted permission rules."""
    from parley.config.loader import load_config
    from parley.policy.store import MemoryPolicyStore
    from parley.utils.helpers import get_policy_path

    config = load_config()
    store = MemoryPolicyStore(get_policy_path(config.policy.store_path))

    permissions = store.permissions
    if not permissions:
        console.print("No permissions granted.")
        return

    table = Table(title="Permissions")
    table.add_column("Principal", style="cyan")
    table.add_column("Description")
    table.add_column("Granted")

    for stored in permissions:
        principal = stored.rule.principal
        who = "anyone" if principal is None else (principal.display or principal.value)
        table.add_row(who, stored.description, stored.created_at.strftime("%Y-%m-%d %H:%M"))

    console.print(table)


if __name__ == "__main__":
    app()
