"""Progress feedback for CLI commands.

Workspace-backed commands clone repositories and can take a while; a
transient Rich spinner shows that work is happening and disappears when done.
"""

from collections.abc import Generator
from contextlib import contextmanager

from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn


@contextmanager
def spinner(description: str, quiet_mode: bool = False) -> Generator[None, None, None]:
    """Show a transient spinner on stderr while the block runs.

    Args:
        description: Text shown next to the spinner.
        quiet_mode: If True, show nothing.
    """
    if quiet_mode:
        yield
        return
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=Console(stderr=True),
        transient=True,
    ) as progress:
        progress.add_task(description, total=None)
        yield
