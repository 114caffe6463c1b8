"""Executor: walk a plan with a bounded worker pool, committing each result to the state store."""

import threading
import time
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Set, Tuple
from .results import ApplyResult, NodeResult, NodeStatus, overall_status
from ..plan.models import ActionType, Plan, PlannedAction
from ..providers.base import ProviderPort
from ..resources.references import MissingOutputError, resolve_properties, resolve_references
from ..state.models import ResourceState, ResourceStatus
from ..state.store import StateStore
from ..utils.errors import ProviderError, ProviderTimeoutError, ResourceNotFoundError, StateStoreError
from ..utils.logging import get_logger

logger = get_logger("execution.executor")

CANCELLED_REASON = "cancelled"

# Scheduler poll interval while a call has not started or a timed-out call holds a worker.
POLL_INTERVAL = 0.05


@dataclass
class _Outcome:
    outputs: Dict[str, Any] = field(default_factory=dict)
    error: Optional[ProviderError] = None
    duration: float = 0.0


@dataclass
class _CallTimer:
    """Set by the worker thread when the provider call actually begins."""
    started_at: Optional[float] = None

    def start(self) -> float:
        self.started_at = time.monotonic()
        return self.started_at


@dataclass
class _Run:
    """Mutable bookkeeping for one apply. Only the scheduler thread touches it."""
    plan: Plan
    pending: List[int]
    results: Dict[int, NodeResult] = field(default_factory=dict)
    outputs: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    in_flight: Dict[Future, Tuple[int, _CallTimer]] = field(default_factory=dict)
    abandoned: Set[Future] = field(default_factory=set)
    fatal: Optional[StateStoreError] = None


class Executor:
    """
    Applies a plan against a provider.

    A scheduler thread dispatches every action whose prerequisites have all
    been applied to a bounded worker pool, so independent branches run in
    parallel. Workers commit to the state store before reporting back, so a
    dependency's commit is visible before any dependent's provider call.
    """

    def __init__(
        self,
        provider: ProviderPort,
        state_store: StateStore,
        max_workers: int = 4,
        provider_timeout: Optional[float] = None,
        cancel_event: Optional[threading.Event] = None,
    ):
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self.provider = provider
        self.state_store = state_store
        self.max_workers = max_workers
        self.provider_timeout = provider_timeout
        self._cancel = cancel_event or threading.Event()

    def cancel(self) -> None:
        """Stop dispatching new actions. In-flight provider calls finish and are committed."""
        self._cancel.set()

    @property
    def cancelled(self) -> bool:
        return self._cancel.is_set()

    def apply(self, plan: Plan, stack_outputs: Optional[Dict[str, Any]] = None) -> ApplyResult:
        """
        Execute a plan.

        Args:
            plan: Plan to execute
            stack_outputs: Declared stack outputs to resolve once the apply finishes

        Returns:
            ApplyResult listing every action's terminal status

        Raises:
            StateStoreError: If state could not be persisted (fatal; dispatch stops)
        """
        started_at = datetime.now(timezone.utc)
        run = _Run(plan=plan, pending=[a.index for a in plan.actions])
        for action in plan.actions:
            state = action.prior_state
            if state is not None and state.status != ResourceStatus.DELETED and action.name not in run.outputs:
                run.outputs[action.name] = dict(state.outputs)

        logger.info(f"Applying plan with {len(plan)} actions (max_workers={self.max_workers})")
        pool = ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="converge-worker")
        try:
            while True:
                if not self._stopped(run):
                    self._dispatch_ready(run, pool)
                if not run.in_flight:
                    stalled = self._stalled(run)
                    if run.pending and stalled and not self._stopped(run):
                        # Every worker is still held by a timed-out call.
                        wait(stalled, timeout=POLL_INTERVAL, return_when=FIRST_COMPLETED)
                        continue
                    break
                done, _ = wait(list(run.in_flight), timeout=self._next_timeout(run), return_when=FIRST_COMPLETED)
                for future in done:
                    index, _ = run.in_flight.pop(future)
                    self._collect(run, index, future)
                self._expire(run)
        finally:
            # Timed-out provider calls cannot be interrupted; do not block on them.
            pool.shutdown(wait=not self._stalled(run))

        if run.fatal is not None:
            logger.error(f"Apply aborted: {run.fatal}")
            raise run.fatal

        for index in list(run.pending):
            self._skip(run, index, CANCELLED_REASON)

        results = [run.results[a.index] for a in plan.actions]
        resolved, unresolved = resolve_stack_outputs(stack_outputs or {}, run.outputs)
        result = ApplyResult(
            status=overall_status(results),
            results=results,
            outputs=resolved,
            unresolved_outputs=unresolved,
            cancelled=self.cancelled,
            started_at=started_at,
            finished_at=datetime.now(timezone.utc),
        )
        logger.info(f"Apply finished: {result.status.value} ({result.summary()})")
        return result

    def _stopped(self, run: _Run) -> bool:
        return self._cancel.is_set() or run.fatal is not None

    def _dispatch_ready(self, run: _Run, pool: ThreadPoolExecutor) -> None:
        """One pass in plan order: skip blocked actions, settle NoOps, submit ready actions."""
        actions = run.plan.actions
        for index in list(run.pending):
            action = actions[index]
            prereqs = [run.results.get(i) for i in action.waits_for]

            blocked = next((r for r in prereqs if r is not None and r.status != NodeStatus.APPLIED), None)
            if blocked is not None:
                self._skip(run, index, f"dependency '{blocked.name}' {blocked.status.value.lower()}")
                continue
            if any(r is None for r in prereqs):
                continue

            if action.action == ActionType.NO_OP:
                run.pending.remove(index)
                try:
                    self._refresh_dependencies(action)
                except StateStoreError as e:
                    run.fatal = run.fatal or e
                    run.results[index] = self._failed_result(action, e, 0.0)
                    return
                run.results[index] = NodeResult(
                    index=index,
                    name=action.name,
                    kind=action.kind,
                    action=action.action,
                    status=NodeStatus.APPLIED,
                    outputs=dict(run.outputs.get(action.name, {})),
                )
                continue

            if len(run.in_flight) + len(self._stalled(run)) >= self.max_workers:
                continue

            properties: Dict[str, Any] = {}
            if action.action in (ActionType.CREATE, ActionType.UPDATE):
                try:
                    properties = resolve_properties(action.spec.properties, run.outputs)
                except MissingOutputError as e:
                    self._skip(run, index, str(e))
                    continue

            run.pending.remove(index)
            timer = _CallTimer()
            logger.info(f"Dispatching {action.label}")
            future = pool.submit(self._execute, action, properties, timer)
            run.in_flight[future] = (index, timer)

    @staticmethod
    def _stalled(run: _Run) -> List[Future]:
        """Timed-out calls whose worker thread is still busy."""
        return [f for f in run.abandoned if not f.done()]

    def _deadline(self, timer: _CallTimer) -> Optional[float]:
        if not self.provider_timeout or timer.started_at is None:
            return None
        return timer.started_at + self.provider_timeout

    def _next_timeout(self, run: _Run) -> Optional[float]:
        if not self.provider_timeout:
            return None
        timers = [timer for _, timer in run.in_flight.values()]
        deadlines = [self._deadline(timer) for timer in timers if timer.started_at is not None]
        wait_for = max(0.0, min(deadlines) - time.monotonic()) if deadlines else None
        if any(timer.started_at is None for timer in timers):
            wait_for = POLL_INTERVAL if wait_for is None else min(wait_for, POLL_INTERVAL)
        return wait_for

    def _expire(self, run: _Run) -> None:
        now = time.monotonic()
        for future, (index, timer) in list(run.in_flight.items()):
            deadline = self._deadline(timer)
            if deadline is None or now < deadline or future.done():
                continue
            del run.in_flight[future]
            run.abandoned.add(future)
            action = run.plan.actions[index]
            error = ProviderTimeoutError(f"{action.label} exceeded {self.provider_timeout}s deadline")
            logger.error(f"Timed out: {action.label}")
            run.results[index] = self._failed_result(action, error, self.provider_timeout or 0.0)

    def _collect(self, run: _Run, index: int, future: Future) -> None:
        action = run.plan.actions[index]
        exc = future.exception()
        if isinstance(exc, StateStoreError):
            run.fatal = run.fatal or exc
            run.results[index] = self._failed_result(action, exc, 0.0)
            return
        if exc is not None:
            logger.error(f"Unexpected error executing {action.label}: {exc}", exc_info=exc)
            run.results[index] = self._failed_result(action, exc, 0.0)
            return

        outcome: _Outcome = future.result()
        if outcome.error is not None:
            logger.error(f"Failed: {action.label}: {outcome.error}")
            run.results[index] = self._failed_result(action, outcome.error, outcome.duration)
            return

        if action.action == ActionType.DELETE:
            run.outputs.pop(action.name, None)
        else:
            run.outputs[action.name] = dict(outcome.outputs)
        logger.info(f"Applied: {action.label} in {outcome.duration:.2f}s")
        run.results[index] = NodeResult(
            index=index,
            name=action.name,
            kind=action.kind,
            action=action.action,
            status=NodeStatus.APPLIED,
            outputs=dict(outcome.outputs),
            duration_seconds=outcome.duration,
        )

    def _skip(self, run: _Run, index: int, reason: str) -> None:
        action = run.plan.actions[index]
        run.pending.remove(index)
        logger.warning(f"Skipped: {action.label} ({reason})")
        run.results[index] = NodeResult(
            index=index,
            name=action.name,
            kind=action.kind,
            action=action.action,
            status=NodeStatus.SKIPPED,
            skipped_reason=reason,
        )

    @staticmethod
    def _failed_result(action: PlannedAction, error: BaseException, duration: float) -> NodeResult:
        return NodeResult(
            index=action.index,
            name=action.name,
            kind=action.kind,
            action=action.action,
            status=NodeStatus.FAILED,
            error=str(error),
            error_type=type(error).__name__,
            duration_seconds=duration,
        )

    def _refresh_dependencies(self, action: PlannedAction) -> None:
        """Record a changed dependency list for a NoOp without calling the provider."""
        prior = action.prior_state
        if prior is None or action.spec is None:
            return
        dependencies = action.spec.dependencies
        if sorted(prior.dependencies) == sorted(dependencies):
            return
        logger.debug(f"Refreshing dependencies of {action.name}: {dependencies}")
        self.state_store.commit(prior.model_copy(update={"dependencies": list(dependencies)}))

    def _execute(self, action: PlannedAction, properties: Dict[str, Any], timer: _CallTimer) -> _Outcome:
        """Worker: call the provider, then commit. StateStoreError propagates to the scheduler."""
        start = timer.start()
        outcome = _Outcome()
        try:
            outcome.outputs = self._call_provider(action, properties)
        except ProviderError as e:
            outcome.error = e
        except Exception as e:
            outcome.error = ProviderError(f"{type(e).__name__}: {e}")
        outcome.duration = time.monotonic() - start
        self._commit(action, outcome)
        return outcome

    def _call_provider(self, action: PlannedAction, properties: Dict[str, Any]) -> Dict[str, Any]:
        prior = action.prior_state

        if action.action == ActionType.CREATE:
            outputs = self.provider.create(action.kind, properties)
            if "id" not in outputs:
                raise ProviderError(f"Provider returned no 'id' output for {action.label}")
            return dict(outputs)

        if action.action == ActionType.UPDATE:
            outputs = dict(prior.outputs)
            outputs.update(self.provider.update(action.kind, prior.resource_id, properties) or {})
            return outputs

        if action.action == ActionType.DELETE:
            if prior is None or not prior.resource_id:
                return {}
            try:
                self.provider.delete(action.kind, prior.resource_id)
            except ResourceNotFoundError:
                logger.warning(f"{action.label}: resource {prior.resource_id} already gone")
            return {}

        raise ProviderError(f"Unsupported action: {action.action}")

    def _commit(self, action: PlannedAction, outcome: _Outcome) -> None:
        prior = action.prior_state
        now = datetime.now(timezone.utc)

        if outcome.error is not None:
            # Nothing was created, so a failed Create leaves no entry behind.
            if action.action == ActionType.CREATE or prior is None:
                return
            failed = prior.model_copy(update={"status": ResourceStatus.FAILED, "error": str(outcome.error)})
            self.state_store.commit(failed)
            return

        if action.action == ActionType.DELETE:
            self.state_store.remove(action.name)
            return

        spec = action.spec
        self.state_store.commit(ResourceState(
            name=spec.name,
            kind=spec.kind,
            properties=spec.properties,
            outputs=outcome.outputs,
            resource_id=str(outcome.outputs.get("id", prior.resource_id if prior else "")),
            dependencies=spec.dependencies,
            status=ResourceStatus.APPLIED,
            applied_at=now,
        ))


def resolve_stack_outputs(
    declared: Dict[str, Any],
    outputs: Dict[str, Dict[str, Any]]
) -> Tuple[Dict[str, Any], List[str]]:
    """Resolve declared stack outputs; unresolvable ones map to None and are listed."""
    resolved: Dict[str, Any] = {}
    unresolved: List[str] = []
    for key, value in declared.items():
        try:
            resolved[key] = resolve_references(value, outputs)
        except MissingOutputError:
            resolved[key] = None
            unresolved.append(key)
    return resolved, unresolved
