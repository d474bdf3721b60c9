from collections.abc import Callable, Generator
from pathlib import Path

import pytest
from rich.console import Console

from nebula_desktop.cli import CLIContext, create_app
from nebula_desktop.config import Config
from nebula_desktop.supervisor import Supervisor


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        if Path(item.path).is_relative_to(Path(__file__).parent):
            item.add_marker(pytest.mark.integration)


@pytest.fixture
def console() -> Console:
    return Console(
        width=100,
        force_terminal=True,
        highlight=False,
        color_system=None,
        legacy_windows=False,
    )


@pytest.fixture
def cli_env(supervisor: Supervisor) -> Generator[Supervisor]:
    """Route every CLI command to the fake-backed supervisor."""
    CLIContext.set_current(
        CLIContext(
            config=Config.from_dict({}),
            supervisor_factory=lambda _config: supervisor,
        )
    )
    yield supervisor
    CLIContext.reset()


@pytest.fixture
def nebula_cli_with_exit_code(console: Console) -> Callable[..., int]:
    """Create CLI app for testing that returns the exit code."""
    app = create_app(console=console, error_console=console)

    def _run(*args: str) -> int:
        try:
            app(args)
        except SystemExit as e:
            return e.code if isinstance(e.code, int) else 1
        else:
            return 0

    return _run
