"""Chain-of-responsibility executor for import handlers.

Each top-level DataSource is one branch. A branch walks the handler chain
in order; every handler returns one of:

    Continue(source)   hand a (possibly new) source to the next handler
    Expand(children)   run each child through the whole chain from the top
    Done(results)      end the branch successfully (use ctx.done(...))

Returning None is the same as Continue with the unchanged source. A
handler that raises ends its branch (or sub-branch) with a PipelineError.
Errors of expanded children are attributed to the top-level result.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Sequence, Union

from scan_loader.errors import NestingDepthError
from scan_loader.schemas.data_source import (
    DataSource,
    DataSourceArena,
    get_data_source_name,
)
from scan_loader.schemas.results import (
    ImportResult,
    PipelineError,
    PipelineResult,
    PipelineResultError,
    PipelineResultSuccess,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Continue:
    source: DataSource


@dataclass(frozen=True)
class Expand:
    children: tuple[DataSource, ...]


@dataclass(frozen=True)
class Done:
    results: tuple[ImportResult, ...] = ()


HandlerOutcome = Union[Continue, Expand, Done, None]


@dataclass(frozen=True)
class HandlerContext:
    arena: DataSourceArena
    depth: int = 0
    extra: Any = None

    def done(self, results: ImportResult | Sequence[ImportResult] | None = None) -> Done:
        if results is None:
            return Done()
        if isinstance(results, ImportResult):
            return Done((results,))
        return Done(tuple(results))


Handler = Callable[
    [DataSource, HandlerContext], Union[HandlerOutcome, Awaitable[HandlerOutcome]]
]


@dataclass
class _BranchOutput:
    results: list[ImportResult] = field(default_factory=list)
    errors: list[PipelineError] = field(default_factory=list)

    def merge(self, other: _BranchOutput) -> None:
        self.results.extend(other.results)
        self.errors.extend(other.errors)


def _error_message(exc: BaseException) -> str:
    return str(exc) or type(exc).__name__


class Pipeline:
    def __init__(
        self,
        handlers: Sequence[Handler],
        arena: DataSourceArena,
        max_depth: int = 8,
    ) -> None:
        self.handlers = tuple(handlers)
        self.arena = arena
        self.max_depth = max_depth

    async def run(self, source: DataSource, extra: Any = None) -> PipelineResult:
        start = time.time()
        name = get_data_source_name(source)
        logger.info("pipeline: start %s (id=%d)", name, source.id)

        output = await self._execute(source, 0, extra)

        elapsed = time.time() - start
        if output.errors:
            logger.warning(
                "pipeline: %s failed in %.2fs - %d errors, %d results",
                name,
                elapsed,
                len(output.errors),
                len(output.results),
            )
            return PipelineResultError(
                data_source=source, errors=output.errors, data=output.results
            )

        logger.info(
            "pipeline: %s complete in %.2fs - %d results", name, elapsed, len(output.results)
        )
        return PipelineResultSuccess(data_source=source, data=output.results)

    async def run_all(
        self, sources: Sequence[DataSource], extra: Any = None
    ) -> list[PipelineResult]:
        """Run every source as its own branch and wait for all of them."""
        return list(await asyncio.gather(*(self.run(source, extra) for source in sources)))

    async def _execute(self, source: DataSource, depth: int, extra: Any) -> _BranchOutput:
        if depth > self.max_depth:
            exc = NestingDepthError(
                f"Archives are nested more than {self.max_depth} levels deep"
            )
            return _BranchOutput(errors=[self._to_error(exc, source)])

        ctx = HandlerContext(arena=self.arena, depth=depth, extra=extra)
        current = source

        for handler in self.handlers:
            try:
                outcome = handler(current, ctx)
                if inspect.isawaitable(outcome):
                    outcome = await outcome
            except Exception as exc:
                logger.debug(
                    "pipeline: %s raised in %s",
                    getattr(handler, "__name__", repr(handler)),
                    get_data_source_name(current),
                    exc_info=True,
                )
                return _BranchOutput(errors=[self._to_error(exc, current)])

            if outcome is None:
                continue
            if isinstance(outcome, Continue):
                current = outcome.source
                continue
            if isinstance(outcome, Done):
                return _BranchOutput(results=list(outcome.results))
            if isinstance(outcome, Expand):
                return await self._expand(outcome.children, depth, extra)

            exc = TypeError(
                f"Handler {getattr(handler, '__name__', handler)!r} returned {outcome!r}"
            )
            return _BranchOutput(errors=[self._to_error(exc, current)])

        return _BranchOutput()

    async def _expand(
        self, children: Sequence[DataSource], depth: int, extra: Any
    ) -> _BranchOutput:
        logger.debug("pipeline: expanding %d children at depth %d", len(children), depth)
        merged = _BranchOutput()
        outputs = await asyncio.gather(
            *(self._execute(child, depth + 1, extra) for child in children)
        )
        for output in outputs:
            merged.merge(output)
        return merged

    def _to_error(self, exc: BaseException, source: DataSource) -> PipelineError:
        return PipelineError(
            cause=exc,
            message=_error_message(exc),
            input_data_stack_trace=self.arena.stack_trace(source),
        )
