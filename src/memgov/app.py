"""memgov - Live Textual dashboard for the governor."""

from queue import Empty, Queue

from textual.app import App, ComposeResult
from textual.containers import Container, Horizontal
from textual.widgets import DataTable, Footer, Static

from memgov.config import GovernorConfig
from memgov.enforcer import Enforcer
from memgov.governor import Governor
from memgov.models import CycleReport, Decision, DesiredState
from memgov.sampler import ProcessSampler


def format_bytes(size: int) -> str:
    """Format bytes as human-readable string."""
    for unit in ["B", "K", "M", "G", "T"]:
        if size < 1024:
            return f"{size:5.1f}{unit}" if unit != "B" else f"{size:5d}{unit}"
        size = size / 1024
    return f"{size:.1f}P"


def budget_bar(used: int, budget: int, width: int = 20) -> str:
    """Render managed VSZ against the budget as a markup bar."""
    if budget <= 0:
        filled = width if used > 0 else 0
    else:
        filled = min(width, int(used * width / budget))
    color = "red" if used > budget else "green"
    bar = f"[{color}]█[/{color}]" * filled + "[dim]░[/dim]" * (width - filled)
    # Escaped bracket for the bar container
    return f"\\[{bar}]"


class BudgetHeader(Static):
    """Header widget showing the budget and managed/unmanaged totals."""

    DEFAULT_CSS = """
    BudgetHeader {
        height: auto;
        min-height: 4;
        padding: 1;
        background: $surface;
    }
    """

    def __init__(self, *args, **kwargs) -> None:
        """Initialize BudgetHeader."""
        super().__init__(*args, **kwargs)
        self._report: CycleReport | None = None

    def compose(self) -> ComposeResult:
        """Compose the header layout."""
        yield Horizontal(
            Static(self._get_managed_info(), id="managed-info"),
            Static(self._get_unmanaged_info(), id="unmanaged-info"),
        )

    def update_report(self, report: CycleReport) -> None:
        """Update the header from a cycle report."""
        self._report = report
        self._refresh_display()

    def _refresh_display(self) -> None:
        try:
            self.query_one("#managed-info", Static).update(self._get_managed_info())
            self.query_one("#unmanaged-info", Static).update(self._get_unmanaged_info())
        except Exception:
            pass  # Widget not mounted yet

    def _get_managed_info(self) -> str:
        report = self._report
        if report is None:
            return "Waiting for first scan..."
        plan = report.plan
        return (
            f"Root: {report.root_pid}\n"
            f"VSZ{budget_bar(plan.managed.vms, report.budget)} "
            f"{format_bytes(plan.managed.vms)}/{format_bytes(report.budget)}\n"
            f"Managed: {plan.managed.count} "
            f"(Running {plan.running_count}, Stopped {plan.stopped_count})"
        )

    def _get_unmanaged_info(self) -> str:
        report = self._report
        if report is None:
            return ""
        unmanaged = report.plan.unmanaged
        return (
            f"Unmanaged: {unmanaged.count}\n"
            f"VSZ {format_bytes(unmanaged.vms)}  RSS {format_bytes(unmanaged.rss)}\n"
            f"Signals this scan: {len(report.signals)}"
        )


class AdmissionTable(Container):
    """Container for the admission order table."""

    DEFAULT_CSS = """
    AdmissionTable {
        height: 1fr;
        border: solid $primary;
    }
    """

    def __init__(self, *args, **kwargs) -> None:
        """Initialize AdmissionTable."""
        super().__init__(*args, **kwargs)
        self._order: list[int] = []

    @property
    def order(self) -> list[int]:
        """PIDs currently shown, top to bottom."""
        return list(self._order)

    def compose(self) -> ComposeResult:
        """Compose the admission table."""
        yield DataTable(id="admission-table")

    def on_mount(self) -> None:
        """Initialize the data table when mounted."""
        table = self.query_one("#admission-table", DataTable)
        table.cursor_type = "row"

        table.add_column("#", key="position", width=4)
        table.add_column("START", key="start", width=14)
        table.add_column("PID", key="pid", width=8)
        table.add_column("S", key="state", width=3)
        table.add_column("WANT", key="want", width=8)
        table.add_column("VSZ", key="vsz", width=8)
        table.add_column("RSS", key="rss", width=8)
        table.add_column("CUM", key="cum", width=8)
        table.add_column("Command", key="command")

    def update_decisions(self, decisions: tuple[Decision, ...]) -> None:
        """
        Update the table with a new admission order.

        When the order is unchanged, cells are updated in place; otherwise
        the rows are rebuilt so they follow the admission order.
        """
        table = self.query_one("#admission-table", DataTable)
        new_order = [d.record.pid for d in decisions]

        if new_order == self._order:
            for position, decision in enumerate(decisions):
                self._update_row(table, position, decision)
        else:
            table.clear()
            for position, decision in enumerate(decisions):
                self._add_row(table, position, decision)

        self._order = new_order

    @staticmethod
    def _cells(position: int, decision: Decision) -> dict[str, str]:
        record = decision.record
        want = decision.desired.value
        if decision.desired is DesiredState.SUSPEND:
            want = f"[yellow]{want}[/yellow]"
        return {
            "position": str(position),
            "start": f"{record.start_time:.2f}",
            "pid": str(record.pid),
            "state": record.state.value,
            "want": want,
            "vsz": format_bytes(record.vms),
            "rss": format_bytes(record.rss),
            "cum": format_bytes(decision.cumulative_vms),
            "command": record.comm,
        }

    def _update_row(self, table: DataTable, position: int, decision: Decision) -> None:
        try:
            row_key = str(decision.record.pid)
            for column, value in self._cells(position, decision).items():
                table.update_cell(row_key, column, value)
        except Exception:
            pass  # Row may have been removed

    def _add_row(self, table: DataTable, position: int, decision: Decision) -> None:
        try:
            table.add_row(*self._cells(position, decision).values(), key=str(decision.record.pid))
        except Exception:
            pass  # Row may already exist


class GovernorApp(App):
    """Dashboard that runs the governor and shows each cycle."""

    TITLE = "memgov"
    SUB_TITLE = "Process Tree Memory Governor"

    CSS = """
    Screen {
        layout: vertical;
    }

    #budget-header {
        dock: top;
        height: auto;
        min-height: 5;
    }

    Horizontal {
        height: auto;
    }

    #managed-info {
        width: 1fr;
        padding-right: 2;
    }

    #unmanaged-info {
        width: 1fr;
        padding-left: 2;
    }
    """

    BINDINGS = [
        ("q", "quit", "Quit"),
    ]

    def __init__(
        self,
        config: GovernorConfig,
        sampler: ProcessSampler | None = None,
        enforcer: Enforcer | None = None,
    ) -> None:
        """Initialize the GovernorApp."""
        super().__init__()
        self._update_queue: Queue[CycleReport] = Queue()
        self._governor = Governor(
            config,
            sampler=sampler,
            enforcer=enforcer,
            update_queue=self._update_queue,
        )
        self.sub_title = f"Root {config.root_pid}, budget {config.vsz_limit_mb}M"

    @property
    def governor(self) -> Governor:
        return self._governor

    def compose(self) -> ComposeResult:
        """Compose the application layout."""
        yield BudgetHeader(id="budget-header")
        yield AdmissionTable()
        yield Footer()

    def on_mount(self) -> None:
        """Start the governor when the app is mounted."""
        self._governor.start()
        self.set_interval(0.25, self._check_for_updates)

    def on_unmount(self) -> None:
        """Stop the governor thread when the app goes away."""
        self._governor.stop()

    def _check_for_updates(self) -> None:
        """Show the most recent report, or exit once the governor is done."""
        try:
            report = None
            while True:
                try:
                    report = self._update_queue.get_nowait()
                except Empty:
                    break

            if report is not None:
                self._update_ui(report)
            elif self._governor.finished:
                self.exit()
        except Exception:
            pass  # The dashboard must never take the governor down

    def _update_ui(self, report: CycleReport) -> None:
        """Update the UI with a new cycle report."""
        try:
            self.query_one("#budget-header", BudgetHeader).update_report(report)
        except Exception:
            pass

        try:
            self.query_one(AdmissionTable).update_decisions(report.plan.decisions)
        except Exception:
            pass

    def action_quit(self) -> None:
        """Handle quit action with graceful cleanup."""
        self._governor.stop()
        if not self._governor.finished:
            self._governor.release()
        self.exit()
