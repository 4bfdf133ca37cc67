"""Project management CLI."""

import asyncio
import sys

import click
from tabulate import tabulate

from agentflow import __version__
from agentflow.core.exceptions import AgentflowError
from agentflow.schemas.agent import AgentEvent, AgentInput, RunContext

EXIT_COMMANDS = ("exit", "quit")


@click.group()
@click.version_option(version=__version__, prog_name="agentflow")
def cli():
    """agentflow management CLI."""
    pass


def _build_service():
    from agentflow.core.logging_config import setup_logging
    from agentflow.services.agent import build_agent_service
    from agentflow.services.runs import LoggingSink

    setup_logging()
    return build_agent_service(sink=LoggingSink())


def _echo_event(event: AgentEvent, *, show_thinking: bool) -> None:
    if event.type == "token":
        click.echo(event.data["token"], nl=False)
    elif event.type == "thinking" and show_thinking:
        click.secho(event.data["text"], fg="bright_black", err=True)
    elif event.type == "done":
        click.echo()
        click.secho(f"[{event.data['tokenCount']} tokens]", fg="bright_black", err=True)
    elif event.type == "error":
        click.secho(f"Error ({event.data['kind']}): {event.data['message']}", fg="red", err=True)


# === Agent Commands ===
@cli.group("agents")
def agents_cli():
    """Agent commands."""
    pass


@agents_cli.command("list")
def agents_list():
    """Show all registered agents."""
    from agentflow.agents.registry import AgentRegistry, register_builtin_agents

    registry = register_builtin_agents(AgentRegistry())
    rows = [
        [info.id, info.name, info.category, "yes" if info.multi_step else "no"]
        for info in registry.list_info()
    ]
    click.echo(tabulate(rows, headers=["ID", "Name", "Category", "Multi-step"]))


@agents_cli.command("run")
@click.argument("agent_name")
@click.argument("prompt", required=False, default="")
@click.option("--provider", default=None, help="Provider id")
@click.option("--model", default=None, help="Model id")
@click.option("--temperature", default=None, type=float, help="Sampling temperature")
@click.option("--max-tokens", default=None, type=int, help="Maximum tokens to generate")
@click.option("--quiet", is_flag=True, help="Hide thinking status lines")
def agents_run(
    agent_name: str,
    prompt: str,
    provider: str | None,
    model: str | None,
    temperature: float | None,
    max_tokens: int | None,
    quiet: bool,
):
    """Run an agent once and stream its output.

    PROMPT defaults to standard input when omitted.
    """
    if not prompt and not sys.stdin.isatty():
        prompt = sys.stdin.read()

    agent_input = AgentInput(
        prompt=prompt,
        context=RunContext(
            provider_id=provider,
            model_id=model,
            temperature=temperature,
            max_tokens=max_tokens,
        ),
    )

    async def run() -> bool:
        service = _build_service()
        try:
            run_id = service.runs.start(agent_name, agent_input)
            succeeded = False
            async for event in service.runs.events(run_id):
                _echo_event(event, show_thinking=not quiet)
                succeeded = event.type == "done"
            return succeeded
        finally:
            await service.shutdown()

    try:
        succeeded = asyncio.run(run())
    except AgentflowError as e:
        raise click.ClickException(str(e)) from e
    except KeyboardInterrupt:
        click.secho("\nCancelled", fg="yellow", err=True)
        sys.exit(130)

    if not succeeded:
        sys.exit(1)


@agents_cli.command("chat")
@click.argument("agent_name", default="chat")
@click.option("--provider", default=None, help="Provider id")
@click.option("--model", default=None, help="Model id")
@click.option("--quiet", is_flag=True, help="Hide thinking status lines")
def agents_chat(agent_name: str, provider: str | None, model: str | None, quiet: bool):
    """Chat with an agent in a session that keeps history."""

    async def chat() -> None:
        service = _build_service()
        try:
            overrides = {"model_id": model} if model else None
            session = service.sessions.create_agent_session(agent_name, provider, overrides)
            click.secho(
                f"Session {session.session_id} with {agent_name}. Type 'exit' to quit.",
                fg="green",
            )
            while True:
                prompt = await asyncio.to_thread(click.prompt, "you", prompt_suffix="> ")
                if prompt.strip().lower() in EXIT_COMMANDS:
                    break
                async for event in service.sessions.stream(
                    session.session_id, AgentInput(prompt=prompt)
                ):
                    _echo_event(event, show_thinking=not quiet)
        finally:
            await service.shutdown()

    try:
        asyncio.run(chat())
    except AgentflowError as e:
        raise click.ClickException(str(e)) from e
    except (KeyboardInterrupt, click.Abort):
        click.echo()


# === Server Commands ===
@cli.group("server")
def server_cli():
    """Server commands."""
    pass


@server_cli.command("run")
@click.option("--host", default="0.0.0.0", help="Host to bind to")
@click.option("--port", default=8000, type=int, help="Port to bind to")
@click.option("--reload", is_flag=True, help="Enable auto-reload")
def server_run(host: str, port: int, reload: bool):
    """Run the development server."""
    import uvicorn

    uvicorn.run(
        "agentflow.api.main:app",
        host=host,
        port=port,
        reload=reload,
    )


@server_cli.command("routes")
def server_routes():
    """Show all registered routes."""
    from agentflow.api.main import app

    routes = []
    for route in app.routes:
        if hasattr(route, "methods"):
            for method in route.methods - {"HEAD", "OPTIONS"}:
                routes.append([method, route.path, getattr(route, "name", "-")])
        elif route.path.startswith("/ws"):
            routes.append(["WS", route.path, getattr(route, "name", "-")])

    click.echo(tabulate(routes, headers=["Method", "Path", "Name"]))


def main():
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
