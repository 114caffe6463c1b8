"""Refresh stored state against the provider before planning."""

from typing import List, Tuple
from ..providers.base import ProviderPort
from ..state.models import ResourceStatus, StateSnapshot
from ..utils.errors import PlanError, ProviderError, ResourceNotFoundError
from ..utils.logging import get_logger

logger = get_logger("execution.refresh")


def refresh_snapshot(snapshot: StateSnapshot, provider: ProviderPort) -> Tuple[StateSnapshot, List[str]]:
    """
    Drop entries whose resources no longer exist so they are planned for re-creation.
    
    Args:
        snapshot: State snapshot to refresh
        provider: Provider to read live resources from
        
    Returns:
        Tuple of (refreshed snapshot, names of entries that vanished)
        
    Raises:
        PlanError: If a resource cannot be read for any reason other than not existing
    """
    missing: List[str] = []
    for name in snapshot:
        state = snapshot[name]
        if state.status != ResourceStatus.APPLIED or not state.resource_id:
            continue
        try:
            provider.read(state.kind, state.resource_id)
        except ResourceNotFoundError:
            logger.warning(f"{state.kind.value} '{name}' ({state.resource_id}) no longer exists")
            missing.append(name)
        except ProviderError as e:
            raise PlanError(f"Could not refresh {state.kind.value} '{name}': {e}", resource=name) from e
    
    if missing:
        logger.info(f"Refresh dropped {len(missing)} vanished resources: {', '.join(missing)}")
    return snapshot.without(missing), missing
