"""Tool executor — validated, retried and time-boxed tool dispatch.

No exception escapes ``execute``, ``execute_with_timeout`` or
``execute_batch``: every outcome comes back as a ToolResult.
"""
import asyncio
import logging
import os
import time
from typing import Any, Dict, List, Optional, Set

from ..config import DEFAULT_EXECUTOR_CONFIG, ExecutorConfig
from ..errors import OrchestratorError
from .models import (
    ERROR_EXECUTION,
    ERROR_LOOKUP,
    ERROR_TIMEOUT,
    ERROR_VALIDATION,
    ToolCallRequest,
    ToolCallResponse,
    ToolContext,
    ToolResult,
)
from .registry import ToolRegistry

logger = logging.getLogger(__name__)


class ToolExecutor:
    def __init__(
        self,
        registry: ToolRegistry,
        config: Optional[ExecutorConfig] = None,
        **overrides: Any,
    ):
        self.registry = registry
        self.config = (config or DEFAULT_EXECUTOR_CONFIG).merged(overrides)
        # Timed-out executions still running (see execute_with_timeout)
        self._background: Set[asyncio.Task] = set()

    async def execute(
        self,
        name: str,
        params: Dict[str, Any],
        working_directory: Optional[str] = None,
    ) -> ToolResult:
        tool = self.registry.get(name)
        if not tool:
            logger.warning(f"Unknown tool: {name}")
            return ToolResult.fail(f"Tool not found: {name}", attempts=0, error_type=ERROR_LOOKUP)

        try:
            validation = tool.validate_parameters(params)
        except Exception as e:
            logger.error(f"Tool {name} parameter validation raised: {e}", exc_info=True)
            return ToolResult.fail(
                f"Parameter validation failed: {e}", attempts=0, error_type=ERROR_VALIDATION,
            )
        if not validation.valid:
            return ToolResult.fail(
                f"Parameter validation failed: {', '.join(validation.errors)}",
                attempts=0,
                error_type=ERROR_VALIDATION,
            )

        cwd = working_directory or os.getcwd()
        max_attempts = self.config.max_retries + 1
        last_error: Optional[str] = None
        last_extra: Dict[str, Any] = {}
        attempts = 0

        while attempts < max_attempts:
            attempts += 1
            context = ToolContext(params=dict(params), working_directory=cwd)
            t0 = time.monotonic()
            try:
                result = await tool.execute(context)
                if not isinstance(result, ToolResult):
                    raise TypeError(f"Tool {name} returned {type(result).__name__}, expected ToolResult")
            except Exception as e:
                last_error = str(e) or type(e).__name__
                last_extra = dict(e.extra) if isinstance(e, OrchestratorError) else {}
                logger.warning(f"Tool {name} attempt {attempts}/{max_attempts} failed: {last_error}")
                if attempts < max_attempts:
                    await asyncio.sleep(self.config.retry_delay_ms / 1000)
                continue

            elapsed_ms = int((time.monotonic() - t0) * 1000)
            logger.info(f"Tool {name} [{tool.category or '-'}]: {elapsed_ms}ms -> {'ok' if result.success else 'failed'}")
            metadata = dict(result.metadata or {})
            metadata.update(execution_time_ms=elapsed_ms, attempts=attempts)
            return ToolResult(
                success=result.success,
                data=result.data,
                error=result.error,
                metadata=metadata,
            )

        logger.error(f"Tool {name} gave up after {attempts} attempts: {last_error}")
        # details carried by an OrchestratorError raised on the final attempt
        metadata = dict(last_extra, attempts=attempts, error_type=ERROR_EXECUTION)
        return ToolResult(success=False, error=last_error or "Unknown error", metadata=metadata)

    async def execute_with_timeout(
        self,
        name: str,
        params: Dict[str, Any],
        timeout_ms: Optional[int] = None,
        working_directory: Optional[str] = None,
    ) -> ToolResult:
        """Race ``execute`` against a deadline.

        On timeout the execution is left running unless the executor was
        configured with ``cancel_on_timeout``; its eventual result is dropped.
        """
        timeout_ms = self.config.timeout_ms if timeout_ms is None else timeout_ms
        task = asyncio.create_task(self.execute(name, params, working_directory))
        done, _ = await asyncio.wait({task}, timeout=timeout_ms / 1000)
        if task in done:
            return task.result()

        if self.config.cancel_on_timeout:
            task.cancel()
            logger.warning(f"Tool {name} timed out after {timeout_ms}ms, cancelled")
        else:
            self._background.add(task)
            task.add_done_callback(self._background.discard)
            logger.warning(f"Tool {name} timed out after {timeout_ms}ms, left running in background")
        return ToolResult.fail(
            f"Tool execution timeout after {timeout_ms}ms", timeout_ms=timeout_ms, error_type=ERROR_TIMEOUT,
        )

    async def execute_batch(self, requests: List[ToolCallRequest]) -> List[ToolCallResponse]:
        """Run every request concurrently; responses keep the request order."""
        limit = self.config.max_concurrency
        semaphore = asyncio.Semaphore(limit) if limit else None

        async def _one(request: ToolCallRequest) -> ToolCallResponse:
            try:
                if semaphore is None:
                    result = await self.execute(request.name, request.arguments)
                else:
                    async with semaphore:
                        result = await self.execute(request.name, request.arguments)
            except Exception as e:
                logger.error(f"Batch request {request.id} ({request.name}) failed: {e}", exc_info=True)
                result = ToolResult.fail(str(e) or type(e).__name__, error_type=ERROR_EXECUTION)
            return ToolCallResponse(id=request.id, name=request.name, result=result)

        if requests:
            logger.info(f"Executing batch of {len(requests)} tool calls")
        return list(await asyncio.gather(*(_one(r) for r in requests)))

    @property
    def pending_background(self) -> int:
        """Number of timed-out executions still running."""
        return len(self._background)

    async def drain(self) -> None:
        """Wait for timed-out executions that are still running."""
        if self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)
