"""Real-time CLI dashboard for relay monitoring."""

from datetime import datetime
from threading import Lock

from rich.console import Console
from rich.layout import Layout
from rich.live import Live
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from core.config import Config
from ui.log_utils import write_cli_log, write_relay_log

console = Console()


class RelayInfo:
    """Info about a single relay call."""

    def __init__(
        self,
        route: str,
        method: str,
        target: str,
        status: int,
        elapsed_ms: int,
        timestamp: datetime,
    ):
        self.route = route
        self.method = method
        self.target = target[:70] + "..." if len(target) > 70 else target
        self.status = status
        self.elapsed_ms = elapsed_ms
        self.timestamp = timestamp


class Dashboard:
    """Real-time dashboard showing recent relay calls and failures."""

    def __init__(self, config: Config, *, write_files: bool = True):
        self.config = config
        self._write_files = write_files
        self._lock = Lock()
        self._recent: list[RelayInfo] = []
        self._max_recent = 10
        self._counts = {"relayed": 0, "rejected": 0, "failed": 0}
        self._errors: list[str] = []
        self._live: Live | None = None

    def start(self) -> "Dashboard":
        """Start the live dashboard."""
        self._live = Live(
            self._build_layout(),
            console=console,
            refresh_per_second=4,
            screen=False,
        )
        self._live.start()
        return self

    def stop(self) -> None:
        """Stop the live dashboard."""
        if self._live:
            self._live.stop()

    @property
    def counts(self) -> dict[str, int]:
        with self._lock:
            return dict(self._counts)

    def log_relay(
        self,
        route: str,
        method: str,
        target: str,
        status: int,
        elapsed_ms: int,
        *,
        headers: dict[str, str] | None = None,
    ) -> None:
        """Log a completed relay call (any upstream status)."""
        with self._lock:
            self._counts["relayed"] += 1
            info = RelayInfo(route, method, target, status, elapsed_ms, datetime.now())
            self._recent.insert(0, info)
            self._recent = self._recent[: self._max_recent]
            self._refresh()

            if self._write_files:
                write_relay_log(route, method, target, status, elapsed_ms, headers or {})
                write_cli_log(
                    "RELAY",
                    f"{method} {target}",
                    route=route,
                    status=status,
                    latency_ms=elapsed_ms,
                )

    def log_rejected(self, route: str, code: str, message: str) -> None:
        """Log a request refused before any outbound call."""
        with self._lock:
            self._counts["rejected"] += 1
            self._push_error(f"{route} {code}: {message}")
            self._refresh()
            if self._write_files:
                write_cli_log("REJECTED", message[:200], route=route, code=code)

    def log_error(self, route: str, status: int, message: str) -> None:
        """Log a failed relay call."""
        with self._lock:
            self._counts["failed"] += 1
            self._push_error(f"{route} {status}: {message}")
            self._refresh()
            if self._write_files:
                write_cli_log("ERROR", message[:200], route=route, status=status)

    def _push_error(self, line: str) -> None:
        truncated = line[:80] + "..." if len(line) > 80 else line
        self._errors.insert(0, truncated)
        self._errors = self._errors[:3]

    def _refresh(self) -> None:
        """Refresh the display."""
        if self._live:
            self._live.update(self._build_layout())

    def _build_layout(self) -> Layout:
        """Build the dashboard layout."""
        layout = Layout()

        layout.split_column(
            Layout(name="header", size=3),
            Layout(name="body"),
            Layout(name="footer", size=5),
        )

        layout["header"].update(self._build_header())
        layout["body"].update(self._build_recent_panel())
        layout["footer"].update(self._build_footer())

        return layout

    def _build_header(self) -> Panel:
        """Build header with stats."""
        stats = Text()
        stats.append("API Tester Relay", style="bold cyan")
        stats.append("  |  ")
        stats.append(f"Relayed: {self._counts['relayed']}", style="green")
        stats.append("  |  ")
        stats.append(f"Rejected: {self._counts['rejected']}", style="yellow")
        stats.append("  |  ")
        stats.append(f"Failed: {self._counts['failed']}", style="red")
        stats.append("  |  ")
        stats.append(
            f"{self.config.server.environment} @ {self.config.server_ip}:{self.config.server.port}",
            style="dim",
        )

        return Panel(stats, style="cyan")

    def _build_recent_panel(self) -> Panel:
        """Build the recent relay calls table."""
        if self._recent:
            table = Table(show_header=True, header_style="bold", expand=True, box=None)
            table.add_column("Time", style="dim", width=8)
            table.add_column("Route", width=8)
            table.add_column("Method", width=7)
            table.add_column("Status", width=6)
            table.add_column("ms", justify="right", width=7)
            table.add_column("Target", ratio=1)

            for call in self._recent:
                status_style = "green" if call.status < 400 else "yellow" if call.status < 500 else "red"
                table.add_row(
                    call.timestamp.strftime("%H:%M:%S"),
                    call.route,
                    call.method,
                    Text(str(call.status), style=status_style),
                    str(call.elapsed_ms),
                    call.target,
                )

            content = table
        else:
            content = Text("Waiting for relay requests...", style="dim")

        return Panel(content, title="[green]Recent relays[/green]", border_style="green")

    def _build_footer(self) -> Panel:
        """Build footer with errors and usage."""
        if self._errors:
            error_text = Text()
            for err in self._errors:
                error_text.append("! ", style="red bold")
                error_text.append(err + "\n", style="red")
            content = error_text
        else:
            base = f"http://{self.config.server_ip}:{self.config.server.port}"
            content = Text(
                f"{base}/proxy?url=<target_url>\n{base}/api/wrapper\n{base}/health",
                style="dim",
            )

        return Panel(content, title="[dim]Status[/dim]", border_style="dim")
