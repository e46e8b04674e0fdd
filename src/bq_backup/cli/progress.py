"""Progress display for the per-project worker pool."""

import contextlib

from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TimeElapsedColumn,
)

from .. import __logger__


class RichProgress:
    """Shows one transient progress bar per project while its tables export."""

    @contextlib.contextmanager
    def track(self, project: str, total: int):
        progress = Progress(
            SpinnerColumn(),
            "[progress.description]{task.description}",
            BarColumn(bar_width=30),
            MofNCompleteColumn(),
            TimeElapsedColumn(),
            console=__logger__.cons,
            transient=True,
        )
        task_id = progress.add_task(
            f"Backing up tables for project {project}", total=total
        )

        def advance(completed, total, job):
            progress.update(task_id, completed=completed)

        with progress:
            yield advance
