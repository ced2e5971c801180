"""
Parallel compilation of notes with an external command.

A `CompilationEnvironment` is a one-shot job: a directory, the units to
compile in it, a command template and a worker count. Each unit runs its own
subprocess with the directory as working directory; the working directory of
this process is never changed, so several environments can compile at once.

A unit succeeds iff its process exits with status 0. Units that fail to
render, spawn or finish in time are reported as failed and never retried.
"""

from __future__ import annotations

import logging
import queue
import shlex
import subprocess
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Iterable

from .config import DEFAULT_COMMAND
from .errors import CompilationStateError, InvalidInputError, NotFoundError, TexshelfError
from .models import Compilable, MasterNote, Note, unit_name
from .templates import TemplateRegistry

logger = logging.getLogger(__name__)

DEFAULT_THREAD_COUNT = 4


class CompileState(Enum):
    IDLE = "idle"
    RUNNING = "running"
    DONE = "done"


@dataclass
class CompileResult:
    """Outcome of one compilation environment."""

    path: Path
    compiled: list[Compilable] = field(default_factory=list)
    failed: list[Compilable] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed


def render_command(unit: Compilable, command: str, templates: TemplateRegistry) -> str:
    """Render the command line that compiles `unit`."""
    if not isinstance(unit, (Note, MasterNote)):
        raise InvalidInputError(f"Cannot compile {unit!r}")
    return templates.render_command(command, unit.file_name)


class CompilationEnvironment:
    """Compile a batch of units found in one directory.

    Args:
        path: Directory holding the units' files; used as the working
            directory of every spawned process.
        units: Notes and master notes to compile.
        command: Command template, rendered with ``{{ note }}`` set to the
            unit's file name.
        thread_count: Number of worker threads.
        templates: Registry used to render the command.
        timeout: Seconds a single process may run before it counts as failed.
    """

    def __init__(
        self,
        path: Path,
        units: Iterable[Compilable] = (),
        command: str = DEFAULT_COMMAND,
        thread_count: int = DEFAULT_THREAD_COUNT,
        templates: TemplateRegistry | None = None,
        timeout: float | None = None,
    ):
        if thread_count < 1:
            raise InvalidInputError(f"Thread count must be at least 1, got {thread_count}")

        self.path = Path(path)
        self.units: list[Compilable] = list(units)
        self.command = command
        self.thread_count = thread_count
        self.templates = templates or TemplateRegistry()
        self.timeout = timeout
        self.state = CompileState.IDLE
        self._lock = threading.Lock()

    def push(self, *units: Compilable) -> None:
        with self._lock:
            if self.state is not CompileState.IDLE:
                raise CompilationStateError("Cannot add units to an environment that already compiled")
            self.units.extend(units)

    def _run(self, unit: Compilable) -> bool:
        name = unit_name(unit)
        try:
            args = shlex.split(render_command(unit, self.command, self.templates))
        except (TexshelfError, ValueError) as e:
            logger.warning("Cannot build the command for '%s': %s", name, e)
            return False

        if not args:
            logger.warning("Empty command for '%s'", name)
            return False

        logger.debug("Compiling '%s': %s", name, " ".join(args))
        try:
            completed = subprocess.run(
                args,
                cwd=self.path,
                stdin=subprocess.DEVNULL,
                capture_output=True,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired:
            logger.warning("Compiling '%s' timed out after %ss", name, self.timeout)
            return False
        except OSError as e:
            logger.warning("Cannot run '%s' for '%s': %s", args[0], name, e)
            return False

        if completed.returncode != 0:
            logger.warning("Compiling '%s' exited with status %d", name, completed.returncode)
            output = completed.stdout.decode("utf-8", errors="replace").strip()
            if output:
                logger.debug("Output of '%s':\n%s", name, output[-2000:])
            return False

        return True

    def compile(self) -> CompileResult:
        """Run every unit and return which ones compiled.

        Raises:
            CompilationStateError: the environment has already been used.
            NotFoundError: the directory does not exist.
        """
        with self._lock:
            if self.state is not CompileState.IDLE:
                raise CompilationStateError(f"Environment for {self.path} has already compiled")
            if not self.path.is_dir():
                raise NotFoundError(f"Cannot compile in missing directory {self.path}")
            self.state = CompileState.RUNNING
            units = list(self.units)

        result = CompileResult(self.path)
        work: queue.LifoQueue[Compilable] = queue.LifoQueue()
        for unit in units:
            work.put(unit)

        def worker() -> None:
            while True:
                try:
                    unit = work.get_nowait()
                except queue.Empty:
                    return
                succeeded = self._run(unit)
                with self._lock:
                    (result.compiled if succeeded else result.failed).append(unit)

        threads = [
            threading.Thread(target=worker, name=f"texshelf-compile-{i}")
            for i in range(self.thread_count)
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        with self._lock:
            self.state = CompileState.DONE
        logger.info(
            "Compiled %d of %d units in %s",
            len(result.compiled),
            len(units),
            self.path,
        )
        return result


def compile_all(environments: Iterable[CompilationEnvironment]) -> list[CompileResult]:
    """Compile several environments concurrently, in input order."""
    environments = list(environments)
    if not environments:
        return []

    with ThreadPoolExecutor(
        max_workers=len(environments),
        thread_name_prefix="texshelf-env-",
    ) as executor:
        return list(executor.map(lambda env: env.compile(), environments))
