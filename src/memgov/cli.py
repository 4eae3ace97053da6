"""memgov command-line entry point."""

import logging

import typer

from memgov.config import DEFAULT_CHECK_INTERVAL, DEFAULT_VSZ_LIMIT_MB, GovernorConfig, parse_duration
from memgov.exceptions import ConfigError
from memgov.governor import Governor

LOG_FORMAT = "%(asctime)s.%(msecs)03d %(filename)s:%(lineno)d: %(message)s"
LOG_DATEFMT = "%Y/%m/%d %H:%M:%S"

app = typer.Typer(
    name="memgov",
    help="Keep the memory of compiler and linker processes in a process tree under a budget.",
    add_completion=False,
)


def _interval(value: str) -> float:
    try:
        return parse_duration(value)
    except ConfigError as exc:
        raise typer.BadParameter(str(exc)) from exc


def configure_logging(level: str, dashboard: bool = False) -> None:
    """Set up root logging for a CLI run."""
    if dashboard:
        # Plain stream output would draw over the TUI
        from textual.logging import TextualHandler

        logging.basicConfig(level=level, handlers=[TextualHandler()])
    else:
        logging.basicConfig(level=level, format=LOG_FORMAT, datefmt=LOG_DATEFMT)


@app.command()
def main(
    pid: int = typer.Option(
        ..., "--pid", envvar="MEMGOV_PID", help="PID of top-level process in process tree to track"
    ),
    vsz_limit_mb: int = typer.Option(
        DEFAULT_VSZ_LIMIT_MB,
        "--vsz-limit-mb",
        envvar="MEMGOV_VSZ_LIMIT_MB",
        help="VSZ limit of non-stopped filtered processes",
    ),
    check_interval: str = typer.Option(
        f"{int(DEFAULT_CHECK_INTERVAL * 1000)}ms",
        "--check-interval",
        envvar="MEMGOV_CHECK_INTERVAL",
        help="Interval between consecutive process scans (e.g. 250ms, 1s)",
    ),
    dashboard: bool = typer.Option(
        False, "--dashboard/--no-dashboard", help="Show a live dashboard instead of log lines"
    ),
    log_level: str = typer.Option("INFO", "--log-level", help="Logging level"),
) -> None:
    """Suspend and resume whitelisted processes under PID to stay within the VSZ limit."""
    level = log_level.upper()
    if not isinstance(logging.getLevelName(level), int):
        raise typer.BadParameter(f"unknown log level: {log_level}", param_hint="--log-level")
    try:
        config = GovernorConfig.from_megabytes(
            root_pid=pid,
            vsz_limit_mb=vsz_limit_mb,
            check_interval=_interval(check_interval),
        )
    except ConfigError as exc:
        raise typer.BadParameter(str(exc)) from exc

    configure_logging(level, dashboard=dashboard)

    if dashboard:
        from memgov.app import GovernorApp

        GovernorApp(config).run()
    else:
        governor = Governor(config)
        try:
            governor.run()
        except KeyboardInterrupt:
            governor.release()


def run() -> None:
    """Console script entry point."""
    app()


if __name__ == "__main__":
    run()
