"""Command-line interface for the Bitcoin Intel API."""

import sys
import json
import asyncio
from typing import Optional
import click
import structlog

from btc_intel_api.app.runtime import build_runtime
from btc_intel_api.config.settings import APISettings
from btc_intel_api.utils.logging import setup_logging

logger = structlog.get_logger(__name__)


@click.group()
@click.option('--env-file', '-e', type=click.Path(exists=True),
              help='Path to environment file')
@click.option('--log-level', '-l', default='INFO',
              type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR']),
              help='Logging level')
@click.pass_context
def cli(ctx, env_file: Optional[str], log_level: str):
    """Bitcoin Intel CLI."""
    ctx.ensure_object(dict)

    try:
        if env_file:
            settings = APISettings(_env_file=env_file)
        else:
            settings = APISettings()

        settings.log_level = log_level
        ctx.obj['settings'] = settings

    except Exception as e:
        click.echo(f"Error loading configuration: {e}", err=True)
        sys.exit(1)


@cli.command()
@click.option('--host', '-h', default=None, help='Bind host (default: from settings)')
@click.option('--port', '-p', type=int, default=None, help='Bind port (default: from settings)')
@click.pass_context
def serve(ctx, host: Optional[str], port: Optional[int]):
    """Run the HTTP service."""
    import uvicorn

    from btc_intel_api.app.main import create_app

    settings = ctx.obj['settings']
    app = create_app(build_runtime(settings=settings))

    uvicorn.run(
        app,
        host=host or settings.host,
        port=port or settings.port,
        log_level=settings.log_level.lower()
    )


async def _invoke(settings: APISettings, key: str, payload: dict):
    runtime = build_runtime(settings=settings)
    try:
        return await runtime.registry.invoke(key, payload)
    finally:
        await runtime.aclose()


@cli.command()
@click.argument('key')
@click.option('--input', '-i', 'input_json', default='{}',
              help='Entrypoint input as a JSON object')
@click.pass_context
def query(ctx, key: str, input_json: str):
    """Invoke one entrypoint and print its envelope."""
    settings = ctx.obj['settings']
    setup_logging(settings, stream=sys.stderr)

    try:
        payload = json.loads(input_json)
    except ValueError as e:
        click.echo(f"Invalid --input JSON: {e}", err=True)
        sys.exit(2)
    if not isinstance(payload, dict):
        click.echo("--input must be a JSON object", err=True)
        sys.exit(2)

    status_code, envelope = asyncio.run(_invoke(settings, key, payload))
    click.echo(json.dumps(envelope.to_dict(), indent=2))

    if status_code != 200:
        sys.exit(1)


@cli.command()
@click.pass_context
def entrypoints(ctx):
    """List registered entrypoints with their prices."""
    settings = ctx.obj['settings']
    runtime = build_runtime(settings=settings)

    click.echo("Entrypoints")
    click.echo("=" * 40)
    for entrypoint in runtime.registry.list():
        price = "free" if entrypoint.price == 0 else str(entrypoint.price)
        click.echo(f"{entrypoint.key:<24} {price:>8}  {entrypoint.description}")

    asyncio.run(runtime.aclose())


if __name__ == '__main__':
    cli()
