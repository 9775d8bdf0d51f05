"""Validation request state machine.

    idle -> extracting -> {extraction_failed | extraction_complete}
         -> building_context -> invoking -> {invoke_failed | parse_failed | complete}

Any non-terminal stage can move to ``cancelled``. Requests without a
document skip the extraction stages. Failures outside the state machine
(missing configuration, rejected input, storage errors) leave the stage
where it was and are recorded in ``error``.
"""

import asyncio
from contextlib import contextmanager
from typing import Any, Iterator, Optional
from uuid import uuid4

from hazmat_common import HazmatKBError, get_logger, request_context
from hazmat_contracts import TERMINAL_STAGES, PipelineStage

logger = get_logger(__name__)


class ValidationRequest:
    """One pipeline run: its stage history and the task doing the work.

    Example:
        >>> request = pipeline.start_validation(shipment)
        >>> request.cancel()
        >>> request.stage
        <PipelineStage.CANCELLED: 'cancelled'>
    """

    def __init__(self, kind: str):
        self.id = uuid4().hex[:12]
        self.kind = kind
        self.history: list[PipelineStage] = [PipelineStage.IDLE]
        self.error: Optional[HazmatKBError] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def stage(self) -> PipelineStage:
        return self.history[-1]

    @property
    def terminal(self) -> bool:
        return self.stage in TERMINAL_STAGES

    @property
    def finished(self) -> bool:
        return self._task is not None and self._task.done()

    def advance(self, stage: PipelineStage) -> None:
        """Move to ``stage``.

        Raises:
            RuntimeError: If the request already reached a terminal stage
        """
        if self.terminal:
            raise RuntimeError(
                f"Request {self.id} already finished ({self.stage.value}), "
                f"cannot move to {stage.value}"
            )
        self.history.append(stage)
        logger.info("pipeline_stage", request_id=self.id, kind=self.kind, stage=stage.value)

    def fail(self, stage: PipelineStage, error: HazmatKBError) -> None:
        self.error = error
        self.advance(stage)

    @contextmanager
    def tracking(self) -> Iterator["ValidationRequest"]:
        """Record cancellation and errors raised inside the block.

        Events logged inside the block carry the request id.
        """
        try:
            with request_context(self.id, self.kind):
                yield self
        except asyncio.CancelledError:
            if not self.terminal:
                self.advance(PipelineStage.CANCELLED)
            raise
        except HazmatKBError as e:
            if self.error is None:
                self.error = e
            logger.error(
                "pipeline_failed",
                request_id=self.id,
                kind=self.kind,
                stage=self.stage.value,
                category=e.category,
                error=str(e),
            )
            raise

    def attach(self, task: asyncio.Task) -> None:
        if self._task is not None:
            raise RuntimeError(f"Request {self.id} is already running")
        self._task = task

    def cancel(self) -> bool:
        """Cancel the underlying work.

        Returns:
            True if a cancellation was requested, False if already finished
        """
        if self._task is None or self._task.done():
            return False
        logger.info("pipeline_cancel_requested", request_id=self.id, stage=self.stage.value)
        return self._task.cancel()

    async def result(self) -> Any:
        """Wait for the outcome.

        Raises:
            asyncio.CancelledError: If the request was cancelled
            HazmatKBError: Whatever ended the request
        """
        if self._task is None:
            raise RuntimeError(f"Request {self.id} was never started")
        return await self._task
