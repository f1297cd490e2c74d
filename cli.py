"""CLI entry point for api-tester-relay."""

import sys
from datetime import datetime

from rich.console import Console

from app import create_app
from core.config import CONFIG_FILE, ENV_ENVIRONMENT, ENV_PORT, load_config, save_environment
from ui.dashboard import Dashboard
from ui.log_utils import CLI_LOG_FILE, clear_logs, write_cli_log

console = Console()

ENVIRONMENTS = ("development", "production")


def main():
    """Main CLI entry point."""
    # Handle CLI arguments
    if len(sys.argv) > 1:
        arg = sys.argv[1]

        if arg == "--config":
            console.print(f"[bold]Config:[/bold] {CONFIG_FILE}")
            console.print(f"[bold]Log:[/bold] {CLI_LOG_FILE}")
            return

        if arg == "--env":
            _switch_environment(sys.argv[2] if len(sys.argv) > 2 else None)
            return

        if arg in ("--help", "-h"):
            _print_help()
            return

        console.print(f"[red][ERROR][/red] Unknown argument: {arg}")
        _print_help()
        sys.exit(2)

    config = load_config()

    if not config.security.verify_tls:
        console.print("[yellow]Warning:[/yellow] upstream TLS certificates are not verified")

    # Clear previous logs and start dashboard
    clear_logs()
    dashboard = Dashboard(config)

    import uvicorn

    app = create_app(config, dashboard)

    # Run with dashboard
    uvicorn_config = uvicorn.Config(
        app,
        host=config.server.host,
        port=config.server.port,
        log_level="warning",
    )
    server = uvicorn.Server(uvicorn_config)

    dashboard.start()
    start_time = datetime.now()
    write_cli_log(
        "STARTUP",
        "Relay started",
        port=config.server.port,
        environment=config.server.environment,
    )
    try:
        server.run()
    finally:
        duration = datetime.now() - start_time
        write_cli_log("SHUTDOWN", "Relay stopped", duration=str(duration))
        dashboard.stop()


def _switch_environment(environment: str | None) -> None:
    """Persist the deployment environment in the config file."""
    if environment not in ENVIRONMENTS:
        console.print('[red][ERROR][/red] Invalid environment. Use "development" or "production"')
        sys.exit(1)

    config = save_environment(environment)
    console.print(f"[green]Switched to {environment} environment[/green]")
    console.print(f"[dim]Server will use:[/dim] http://{config.server_ip}:{config.server.port}")
    console.print(f"[dim]Blocked hosts:[/dim] {', '.join(sorted(config.blocked_hosts))}")


def _print_help():
    """Print help message."""
    help_text = f"""
[bold cyan]API Tester Relay[/bold cyan]

Forwards browser API-testing requests to third-party URLs, bypassing CORS.

[bold]Usage:[/bold]
    api-tester-relay                          Start with live dashboard
    api-tester-relay --env development        Block localhost, allow local dev origins
    api-tester-relay --env production         Block the internal host, allow any origin
    api-tester-relay --config                 Show config locations
    api-tester-relay --help                   Show this help

[bold]Environment overrides:[/bold]
    {ENV_ENVIRONMENT}=development|production
    {ENV_PORT}=3001
"""
    console.print(help_text)


if __name__ == "__main__":
    main()
