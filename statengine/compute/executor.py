from __future__ import annotations

import asyncio
import contextvars
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Optional

from statengine.compute.cancellation import CancellationToken
from statengine.compute.registry import ProcedureRegistry, default_registry
from statengine.core.config import get_settings
from statengine.core.exceptions import StatisticalEngineException
from statengine.core.logging import LogContext, get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class ExecutionResult:
    procedure: str
    result: Any = None
    error: Optional[StatisticalEngineException] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict[str, Any]:
        payload: Any
        if isinstance(self.result, list):
            payload = [r.to_dict() for r in self.result]
        elif self.result is not None:
            payload = self.result.to_dict()
        else:
            payload = None
        return {
            "procedure": self.procedure,
            "ok": self.ok,
            "result": payload,
            "error": self.error.to_dict() if self.error else None,
        }


class AnalysisExecutor:
    """
    Runs procedures and plans of independent procedures.

    A plan is a list of ``{"procedure": name, "params": {...}}`` steps. Steps
    run on a thread pool; results come back in plan order. Engine errors are
    recorded on the step's ExecutionResult, any other exception propagates.
    """

    def __init__(
        self,
        *,
        registry: Optional[ProcedureRegistry] = None,
        max_workers: Optional[int] = None,
    ) -> None:
        self._registry = registry or default_registry()
        self._max_workers = max_workers or get_settings().max_workers

    def run_procedure(
        self,
        procedure: str,
        params: Optional[dict[str, Any]] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> ExecutionResult:
        context = LogContext(component="AnalysisExecutor", operation="run_procedure")
        params = dict(params or {})
        method = self._registry.get(procedure)

        try:
            if cancel_token is not None:
                cancel_token.raise_if_cancelled()
                params["cancel_token"] = cancel_token
            result = method(**params)
        except StatisticalEngineException as e:
            logger.warning(
                "Procedure rejected",
                context=context,
                procedure=procedure,
                error_code=e.error_code.value,
            )
            return ExecutionResult(procedure=procedure, error=e)

        return ExecutionResult(procedure=procedure, result=result)

    def run_plan(
        self,
        plan: list[dict[str, Any]],
        cancel_token: Optional[CancellationToken] = None,
        timeout_seconds: Optional[float] = None,
    ) -> list[ExecutionResult]:
        context = LogContext(component="AnalysisExecutor", operation="run_plan")
        steps = self._parse_plan(plan)
        if timeout_seconds is None:
            timeout_seconds = get_settings().computation_timeout_seconds
        token = cancel_token
        if token is None and timeout_seconds is not None:
            token = CancellationToken(timeout_seconds=timeout_seconds)

        with ThreadPoolExecutor(max_workers=self._max_workers) as pool:
            futures = [
                pool.submit(contextvars.copy_context().run, self.run_procedure, name, params, token)
                for name, params in steps
            ]
            results = [f.result() for f in futures]

        failed = sum(1 for r in results if not r.ok)
        logger.info("Plan executed", context=context, steps=len(results), failed=failed)
        return results

    async def run_plan_async(
        self,
        plan: list[dict[str, Any]],
        cancel_token: Optional[CancellationToken] = None,
        timeout_seconds: Optional[float] = None,
    ) -> list[ExecutionResult]:
        return await asyncio.to_thread(self.run_plan, plan, cancel_token, timeout_seconds)

    async def run_procedure_async(
        self,
        procedure: str,
        params: Optional[dict[str, Any]] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> ExecutionResult:
        return await asyncio.to_thread(self.run_procedure, procedure, params, cancel_token)

    def _parse_plan(self, plan: list[dict[str, Any]]) -> list[tuple[str, dict[str, Any]]]:
        steps = []
        for step in plan:
            name = str(step.get("procedure"))
            self._registry.get(name)
            steps.append((name, dict(step.get("params") or {})))
        return steps
