"""Command line interface: run the A2A server or try the agent locally."""

import asyncio

import click

from reviewer import __version__
from reviewer.agent import InjectedDemo, ReviewedStory, UserInput, create_chat_model
from reviewer.engine import AgentInvocation
from reviewer.server import build_autonomy
from reviewer.settings import llm_settings

DEFAULT_TOPIC = "Tell me a story about caterpillars"


@click.group()
@click.version_option(version=__version__, prog_name="reviewer")
def cli() -> None:
    """Story writing and review agent exposed over A2A."""
    pass


@cli.command()
@click.option("--host", default=None, help="Host to bind to (defaults to A2A_HOST)")
@click.option("--port", type=int, default=None, help="Port to listen on (defaults to A2A_PORT)")
def serve(host: str | None, port: int | None) -> None:
    """Run the A2A JSON-RPC server."""
    from reviewer.__main__ import serve as run_server

    run_server(host=host, port=port)


@cli.command()
@click.argument("topic", default=DEFAULT_TOPIC)
def demo(topic: str) -> None:
    """Write a story about TOPIC, review it and print both."""
    reviewed_story = asyncio.run(_write_and_review(topic))
    click.echo(reviewed_story.get_content())


@cli.command()
def animal() -> None:
    """Ask the chat model to invent an animal."""
    llm = create_chat_model(llm_settings.writer_temperature)
    invented = asyncio.run(InjectedDemo(llm).invent_animal())
    click.echo(invented.model_dump_json(indent=2))


async def _write_and_review(topic: str) -> ReviewedStory:
    invocation = AgentInvocation.create(build_autonomy(), ReviewedStory)
    return await invocation.invoke(UserInput(content=topic))


if __name__ == "__main__":
    cli()
