"""Detached launch of the import job for an accepted batch."""

from __future__ import annotations

import subprocess
from dataclasses import dataclass, field
from logging import getLogger
from pathlib import Path
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

log = getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ImportJobHandle:
    """What the caller learns about a launched job: its pid, or why there is none."""

    batch_id: int
    pid: int | None = None
    launched: bool = False
    error: str | None = None


@runtime_checkable
class ImportJobTrigger(Protocol):
    def launch(self, batch_id: int) -> ImportJobHandle: ...


def _spawn_detached(args: Sequence[str]) -> subprocess.Popen[bytes]:
    return subprocess.Popen(  # noqa: S603
        list(args),
        stdin=subprocess.DEVNULL,
        stdout=subprocess.DEVNULL,
        stderr=subprocess.DEVNULL,
        start_new_session=True,
    )


@dataclass(slots=True)
class ImportJobLauncher:
    """Start ``command site_root site_url batch_id`` and return without waiting.

    An empty command disables the job. If the last element of the command looks like
    a script path (it has a suffix) and that file is missing, the launch is skipped.
    """

    command: Sequence[str]
    site_root: Path
    site_url: str
    spawn: Callable[[Sequence[str]], subprocess.Popen[bytes]] = field(default=_spawn_detached)

    def launch(self, batch_id: int) -> ImportJobHandle:
        if not self.command:
            log.warning("No import command configured; batch %s awaits manual import", batch_id)
            return ImportJobHandle(batch_id=batch_id, error="no import command configured")

        script = self._script_path()
        if script is not None and not script.exists():
            log.warning("Import script %s not found; batch %s was not imported", script, batch_id)
            return ImportJobHandle(batch_id=batch_id, error=f"import script {script} not found")

        args = [*self.command, str(self.site_root), self.site_url, str(batch_id)]
        try:
            process = self.spawn(args)
        except OSError as exc:
            log.exception("Could not launch import job for batch %s", batch_id)
            return ImportJobHandle(batch_id=batch_id, error=str(exc))

        log.info("Background process ID: %s (batch %s)", process.pid, batch_id)
        return ImportJobHandle(batch_id=batch_id, pid=process.pid, launched=True)

    def _script_path(self) -> Path | None:
        if len(self.command) < 2:  # noqa: PLR2004
            return None
        candidate = Path(self.command[-1])
        return candidate if candidate.suffix else None
