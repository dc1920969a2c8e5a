"""
Progress reporting for long sweeps.

Uses a host feedback object when one is supplied (``setProgress``,
``pushInfo`` and ``isCanceled``, as exposed by QGIS processing feedback),
otherwise a tqdm bar in the terminal.

Usage:
    from skyview.progress import get_progress_iterator, ProgressReporter

    for band in get_progress_iterator(bands, desc="SVF bands"):
        process(band)

    progress = ProgressReporter(total=len(bands), desc="SVF")
    for band in bands:
        process(band)
        progress.update(1)
    progress.close()
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from typing import Any, TypeVar

from tqdm import tqdm

T = TypeVar("T")


class ProgressReporter:
    """
    Progress reporter backed by host feedback or tqdm.

    Args:
        total: Total number of steps (required for percentage calculation).
        desc: Description shown in progress bar.
        feedback: Optional host feedback object. If provided, progress is
                  reported as a percentage through ``setProgress``.
        disable: If True, disable all progress output.
    """

    def __init__(
        self,
        total: int,
        desc: str = "",
        feedback: Any = None,
        disable: bool = False,
    ):
        self.total = total
        self.desc = desc
        self.current = 0
        self.disable = disable
        self._closed = False

        self._feedback = None
        self._tqdm_bar = None

        if disable:
            return

        if feedback is not None:
            self._feedback = feedback
            if self.desc:
                self._feedback.pushInfo(f"Starting: {self.desc}")
            return

        self._tqdm_bar = tqdm(total=total, desc=desc)

    def update(self, n: int = 1) -> None:
        """Update progress by n steps."""
        if self._closed:
            return

        self.current += n

        if self.disable:
            return

        if self._feedback is not None:
            percent = min(100, int(100 * self.current / self.total)) if self.total > 0 else 0
            self._feedback.setProgress(percent)
        elif self._tqdm_bar is not None:
            self._tqdm_bar.update(n)

    def set_description(self, desc: str) -> None:
        """Update the progress description."""
        self.desc = desc
        if self._feedback is not None:
            self._feedback.pushInfo(desc)
        elif self._tqdm_bar is not None:
            self._tqdm_bar.set_description(desc)

    def is_cancelled(self) -> bool:
        """Check if the host requested cancellation."""
        if self._feedback is not None:
            return bool(self._feedback.isCanceled())
        return False

    def close(self) -> None:
        """Close the progress bar."""
        if self._closed:
            return
        self._closed = True

        if self._tqdm_bar is not None:
            self._tqdm_bar.close()


class _ProgressIterator(Iterator[T]):
    """Iterator wrapper that reports progress."""

    def __init__(self, iterable: Iterable[T], reporter: ProgressReporter):
        self._iterator = iter(iterable)
        self._reporter = reporter

    def __iter__(self) -> _ProgressIterator[T]:
        return self

    def __next__(self) -> T:
        try:
            item = next(self._iterator)
            self._reporter.update(1)
            return item
        except StopIteration:
            self._reporter.close()
            raise


def get_progress_iterator(
    iterable: Iterable[T],
    desc: str = "",
    total: int | None = None,
    feedback: Any = None,
    disable: bool = False,
) -> Iterator[T]:
    """
    Wrap an iterable with progress reporting.

    Args:
        iterable: The iterable to wrap.
        desc: Description for the progress bar.
        total: Total number of items (computed from len() if not provided).
        feedback: Optional host feedback object.
        disable: If True, disable progress output entirely.

    Returns:
        Iterator that reports progress as items are consumed.
    """
    if total is None:
        try:
            total = len(iterable)  # type: ignore
        except TypeError:
            total = 0

    reporter = ProgressReporter(total=total, desc=desc, feedback=feedback, disable=disable)
    return _ProgressIterator(iterable, reporter)
