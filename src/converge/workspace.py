"""Workspace: wires configuration, state store, provider and executor for one session."""

import threading
from pathlib import Path
from typing import Any, Dict, Iterable, Optional
from .config import EngineConfig
from .execution.executor import Executor
from .execution.refresh import refresh_snapshot
from .execution.results import ApplyResult
from .graph.dependency_graph import DependencyGraph
from .plan.engine import plan as compute_plan, plan_destroy
from .plan.models import Plan
from .providers.base import ProviderPort
from .providers.registry import create_provider
from .resources.models import ResourceSpec
from .state.models import StateSnapshot
from .state.store import FileStateStore, StateStore
from .utils.logging import get_logger

logger = get_logger("workspace")


class Workspace:
    """One state store and one provider, shared by plan and apply."""
    
    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        state_store: Optional[StateStore] = None,
        provider: Optional[ProviderPort] = None,
    ):
        self.config = config or EngineConfig()
        self.state_store = state_store or FileStateStore(Path(self.config.state_path))
        self._provider = provider
    
    @property
    def provider(self) -> ProviderPort:
        if self._provider is None:
            self._provider = create_provider(self.config.provider_name, self.config.provider_options)
        return self._provider
    
    def snapshot(self, refresh: bool = False, prune: bool = False) -> StateSnapshot:
        """
        Load state, optionally dropping entries whose resources have vanished.
        
        Args:
            refresh: Read every applied resource from the provider first
            prune: Also remove vanished entries from the state store
        """
        snapshot = self.state_store.load()
        if not refresh:
            return snapshot
        snapshot, missing = refresh_snapshot(snapshot, self.provider)
        if prune:
            for name in missing:
                self.state_store.remove(name)
        return snapshot
    
    def plan(self, specs: Iterable[ResourceSpec], refresh: bool = False, prune: bool = False) -> Plan:
        """Validate the declared resources and plan them against stored state."""
        graph = DependencyGraph.build(specs)
        return compute_plan(graph, self.snapshot(refresh=refresh, prune=prune))
    
    def plan_destroy(self, refresh: bool = False, prune: bool = False) -> Plan:
        """Plan deletion of every stored resource."""
        return plan_destroy(self.snapshot(refresh=refresh, prune=prune))
    
    def executor(self, cancel_event: Optional[threading.Event] = None) -> Executor:
        return Executor(
            provider=self.provider,
            state_store=self.state_store,
            max_workers=self.config.max_workers,
            provider_timeout=self.config.provider_timeout_seconds,
            cancel_event=cancel_event,
        )
    
    def apply(
        self,
        specs: Iterable[ResourceSpec],
        stack_outputs: Optional[Dict[str, Any]] = None,
        refresh: bool = False,
        cancel_event: Optional[threading.Event] = None,
    ) -> ApplyResult:
        """Plan and execute in one step."""
        execution_plan = self.plan(specs, refresh=refresh, prune=refresh)
        return self.executor(cancel_event).apply(execution_plan, stack_outputs=stack_outputs)
    
    def destroy(self, cancel_event: Optional[threading.Event] = None) -> ApplyResult:
        """Delete everything in state, dependents first."""
        return self.executor(cancel_event).apply(self.plan_destroy())

