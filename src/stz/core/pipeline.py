"""Concurrent process pipelines.

A Pipeline starts all of its stages at once, connects each stage's
stdout to the next stage's stdin and waits for every one of them. The
pipeline fails if any stage fails, not only the last one.
"""

import logging
import shlex
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import IO, Any, Callable, Optional

from ..__util__ import PipelineError

logger = logging.getLogger(__name__)

# Seconds to wait for a terminated stage before killing it
TERMINATE_TIMEOUT = 5


@dataclass
class Stage:
    """One process in a pipeline."""

    name: str
    argv: list[str]
    process: Optional[subprocess.Popen] = field(default=None, repr=False)

    @property
    def returncode(self) -> Optional[int]:
        if self.process is None:
            return None
        return self.process.returncode

    def describe(self) -> str:
        return shlex.join(self.argv)


@dataclass
class PipelineResult:
    """Exit statuses of all stages plus any captured output."""

    statuses: list[tuple[str, int]]
    lines: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return all(rc == 0 for _, rc in self.statuses)

    @property
    def first_failure(self) -> Optional[tuple[str, int]]:
        for name, rc in self.statuses:
            if rc != 0:
                return name, rc
        return None


class Pipeline:
    """An ordered chain of stages with optional file source and sink.

    Args:
        stages: Stages in data flow order
        source: File fed to the first stage's stdin
        sink: File receiving the last stage's stdout (created/truncated)
        capture: Capture the last stage's stdout as text lines instead
    """

    def __init__(
        self,
        stages: list[Stage],
        source: Optional[Path | str] = None,
        sink: Optional[Path | str] = None,
        capture: bool = False,
    ) -> None:
        if not stages:
            raise ValueError("A pipeline needs at least one stage")
        if sink is not None and capture:
            raise ValueError("sink and capture are mutually exclusive")
        self.stages = stages
        self.source = Path(source) if source is not None else None
        self.sink = Path(sink) if sink is not None else None
        self.capture = capture

    def describe(self) -> str:
        """Shell-like rendering of the whole pipeline for logs."""
        text = " | ".join(stage.describe() for stage in self.stages)
        if self.source is not None:
            text += f" < {shlex.quote(str(self.source))}"
        if self.sink is not None:
            text += f" > {shlex.quote(str(self.sink))}"
        return text

    def run(self, on_line: Optional[Callable[[str], None]] = None) -> PipelineResult:
        """Run all stages concurrently and wait for every one of them.

        Args:
            on_line: Called with each captured output line as it arrives

        Returns:
            PipelineResult with the exit status of every stage

        Raises:
            PipelineError: If a stage cannot be started
        """
        logger.debug("Running pipeline: %s", self.describe())

        src: Optional[IO[bytes]] = None
        dst: Optional[IO[bytes]] = None
        lines: list[str] = []

        try:
            if self.source is not None:
                src = open(self.source, "rb")
            if self.sink is not None:
                dst = open(self.sink, "wb")

            self._spawn(src, dst)

            # The children hold their own copies of the file descriptors
            for f in (src, dst):
                if f is not None:
                    f.close()

            last = self.stages[-1].process
            if self.capture and last is not None and last.stdout is not None:
                for raw in last.stdout:
                    line = raw.decode("utf-8", errors="replace").rstrip("\n")
                    lines.append(line)
                    if on_line is not None:
                        on_line(line)
                last.stdout.close()

            statuses = []
            for stage in self.stages:
                assert stage.process is not None
                statuses.append((stage.name, stage.process.wait()))
        except BaseException:
            self._terminate()
            raise
        finally:
            for f in (src, dst):
                if f is not None and not f.closed:
                    f.close()

        for name, rc in statuses:
            logger.debug("Stage %s exited with %d", name, rc)

        return PipelineResult(statuses=statuses, lines=lines)

    def check(self, on_line: Optional[Callable[[str], None]] = None) -> PipelineResult:
        """Run and raise PipelineError for the first failed stage."""
        result = self.run(on_line=on_line)
        failure = result.first_failure
        if failure is not None:
            name, rc = failure
            logger.error(
                "Pipeline failed with return codes: %s",
                ", ".join(f"{n}={c}" for n, c in result.statuses),
            )
            raise PipelineError(name, rc)
        return result

    def _spawn(self, src: Optional[IO[bytes]], dst: Optional[IO[bytes]]) -> None:
        """Start every stage, wiring stdout to the next stdin."""
        upstream: Any = src if src is not None else subprocess.DEVNULL
        count = len(self.stages)

        for i, stage in enumerate(self.stages):
            is_last = i == count - 1
            if not is_last:
                stdout: Any = subprocess.PIPE
            elif dst is not None:
                stdout = dst
            elif self.capture:
                stdout = subprocess.PIPE
            else:
                stdout = None

            try:
                stage.process = subprocess.Popen(
                    stage.argv, stdin=upstream, stdout=stdout
                )
            except OSError as e:
                raise PipelineError(
                    stage.name, 127, f"Cannot start stage '{stage.name}': {e}"
                ) from e

            # Leave the read end to the child only, so a consumer that exits
            # early delivers SIGPIPE to its producer
            if i > 0:
                previous = self.stages[i - 1].process
                if previous is not None and previous.stdout is not None:
                    previous.stdout.close()

            upstream = stage.process.stdout

    def _terminate(self) -> None:
        """Stop every stage that is still running and reap it."""
        for stage in self.stages:
            proc = stage.process
            if proc is None:
                continue
            if proc.poll() is None:
                logger.debug("Terminating stage %s", stage.name)
                proc.terminate()
        for stage in self.stages:
            proc = stage.process
            if proc is None:
                continue
            for pipe in (proc.stdout, proc.stdin):
                if pipe is not None and not pipe.closed:
                    pipe.close()
            try:
                proc.wait(timeout=TERMINATE_TIMEOUT)
            except subprocess.TimeoutExpired:
                proc.kill()
                proc.wait()
