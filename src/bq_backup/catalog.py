"""Catalog reader: the list of projects backed up by a run."""

import logging
from pathlib import Path

logger = logging.getLogger(__name__)


def parse_projects(text: str) -> list[str]:
    """Return project ids from newline-delimited text.

    Blank lines and lines starting with '#' are ignored, duplicates are
    dropped while keeping the first occurrence.
    """
    projects = []
    seen = set()
    for line in text.splitlines():
        project = line.strip()
        if not project or project.startswith("#"):
            continue
        if project in seen:
            logger.warning("Project %s listed more than once, ignoring duplicate", project)
            continue
        seen.add(project)
        projects.append(project)
    return projects


def read_project_file(path: Path | str) -> list[str]:
    """Read the project list file.

    Raises:
        OSError: If the file cannot be read
    """
    path = Path(path)
    logger.debug("Reading project list from %s", path)
    projects = parse_projects(path.read_text(encoding="utf-8"))
    logger.debug("Found %d project(s)", len(projects))
    return projects
