"""Click-based CLI for starting tail sessions."""

from __future__ import annotations

import logging
from dataclasses import dataclass

import click

from client.config import TailConfig, load_tail_config, save_tail_config
from client.sdk import GlobalUser, Target
from live_tail.errors import TailError
from live_tail.runner import TailSession


@dataclass
class CLIState:
    settings: TailConfig

    def ensure_user(self) -> GlobalUser:
        try:
            return self.settings.user()
        except ValueError as exc:
            message = (
                "No credentials configured. Set LIVE_TAIL_API_TOKEN (or LIVE_TAIL_EMAIL and "
                "LIVE_TAIL_API_KEY) or run 'live-tail configure'."
            )
            raise click.UsageError(message) from exc


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


@click.group()
@click.option("--api-url", help="Override the Workers API base URL for this invocation.")
@click.option("--api-token", help="Override the API token for this invocation.")
@click.option("--verbose", "-v", is_flag=True, help="Emit debug logging to stderr.")
@click.pass_context
def app(ctx: click.Context, api_url: str | None, api_token: str | None, verbose: bool) -> None:
    """Stream live logs from a deployed Worker."""

    _configure_logging(verbose)
    config = load_tail_config()
    ctx.obj = CLIState(settings=config.merged(api_base_url=api_url, api_token=api_token))


@app.command()
@click.option("--api-token", help="API token with Workers tail permissions.")
@click.option("--email", help="Account email, used together with --api-key.")
@click.option("--api-key", help="Global API key, used together with --email.")
@click.option("--account-id", help="Default account identifier.")
@click.option("--cloudflared", help="Path to the cloudflared executable.")
@click.pass_obj
def configure(
    state: CLIState,
    api_token: str | None,
    email: str | None,
    api_key: str | None,
    account_id: str | None,
    cloudflared: str | None,
) -> None:
    """Persist default settings under ~/.live-tail/config.toml."""

    config = state.settings.merged(
        api_token=api_token,
        email=email,
        api_key=api_key,
        account_id=account_id,
        cloudflared=cloudflared,
    )
    path = save_tail_config(config)
    click.echo(f"Saved configuration to {path}.")


@app.command()
@click.argument("name")
@click.option("--account-id", help="Account that owns the Worker script.")
@click.option("--port", type=int, help="Local port for the log server.")
@click.option("--metrics-port", type=int, help="Local port for the tunnel metrics endpoint.")
@click.pass_obj
def tail(
    state: CLIState,
    name: str,
    account_id: str | None,
    port: int | None,
    metrics_port: int | None,
) -> None:
    """Print logs emitted by the Worker NAME until interrupted (Ctrl-C)."""

    settings = state.settings.merged(
        account_id=account_id,
        log_port=port,
        metrics_port=metrics_port,
    )
    if not settings.account_id:
        raise click.UsageError(
            "No account configured. Pass --account-id or set LIVE_TAIL_ACCOUNT_ID."
        )
    user = state.ensure_user()
    target = Target(account_id=settings.account_id, name=name)
    session = TailSession.from_config(settings)
    click.echo(f"Tailing {name}; press Ctrl-C to stop.", err=True)
    try:
        session.start(target, user)
    except TailError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo("Tail session closed.", err=True)


def main() -> None:
    """Entry point for console_scripts."""

    app(standalone_mode=True)
