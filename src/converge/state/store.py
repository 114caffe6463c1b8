"""State stores: durable last-applied resource state keyed by logical name."""

import json
import os
import tempfile
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Optional
from pydantic import ValidationError as PydanticValidationError
from .models import ResourceState, StateSnapshot
from ..utils.errors import StateStoreError
from ..utils.logging import get_logger

logger = get_logger("state.store")


class StateStore(ABC):
    """
    Abstract state store.
    
    Commits are atomic per logical name. Commits for distinct names may run
    concurrently; commits for the same name are serialized.
    """
    
    def __init__(self):
        self._locks: Dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()
    
    def _lock_for(self, name: str) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(name)
            if lock is None:
                lock = threading.Lock()
                self._locks[name] = lock
            return lock
    
    def commit(self, state: ResourceState) -> None:
        """Persist the state of one resource."""
        with self._lock_for(state.name):
            self._write(state)
        logger.debug(f"Committed state for {state.name} ({state.status.value})")
    
    def remove(self, name: str) -> None:
        """Remove the state of one resource (no-op if absent)."""
        with self._lock_for(name):
            self._delete(name)
        logger.debug(f"Removed state for {name}")
    
    def get(self, name: str) -> Optional[ResourceState]:
        """Read the state of one resource."""
        with self._lock_for(name):
            return self._read(name)
    
    @abstractmethod
    def load(self) -> StateSnapshot:
        """Load a snapshot of all stored resources."""
        pass
    
    @abstractmethod
    def _write(self, state: ResourceState) -> None:
        pass
    
    @abstractmethod
    def _delete(self, name: str) -> None:
        pass
    
    @abstractmethod
    def _read(self, name: str) -> Optional[ResourceState]:
        pass


class InMemoryStateStore(StateStore):
    """Process-local state store for dry runs and tests."""
    
    def __init__(self, states: Optional[Dict[str, ResourceState]] = None):
        super().__init__()
        self._states: Dict[str, ResourceState] = {}
        for state in (states or {}).values():
            self._states[state.name] = state.model_copy(deep=True)
    
    def load(self) -> StateSnapshot:
        return StateSnapshot(dict(self._states))
    
    def _write(self, state: ResourceState) -> None:
        self._states[state.name] = state.model_copy(deep=True)
    
    def _delete(self, name: str) -> None:
        self._states.pop(name, None)
    
    def _read(self, name: str) -> Optional[ResourceState]:
        state = self._states.get(name)
        return state.model_copy(deep=True) if state else None


class FileStateStore(StateStore):
    """
    Durable state store: one JSON document per logical name.
    
    Layout: ``<root>/resources/<name>.json``. Each commit writes a temp file
    in the same directory and renames it over the target, so a reader never
    observes a partially written document.
    """
    
    def __init__(self, root: Path):
        super().__init__()
        self.root = Path(root)
        self.resources_dir = self.root / "resources"
    
    def _path(self, name: str) -> Path:
        return self.resources_dir / f"{name}.json"
    
    def load(self) -> StateSnapshot:
        if not self.resources_dir.exists():
            logger.debug(f"No state directory at {self.resources_dir}, starting empty")
            return StateSnapshot()
        
        states = {}
        try:
            paths = sorted(self.resources_dir.glob("*.json"))
        except OSError as e:
            raise StateStoreError(f"Failed to list state directory {self.resources_dir}: {e}")
        
        for path in paths:
            state = self._parse(path)
            states[state.name] = state
        
        logger.info(f"Loaded state for {len(states)} resources from {self.root}")
        return StateSnapshot(states)
    
    def _parse(self, path: Path) -> ResourceState:
        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
            return ResourceState(**data)
        except json.JSONDecodeError as e:
            raise StateStoreError(f"Corrupt state file {path}: {e}")
        except PydanticValidationError as e:
            raise StateStoreError(f"Invalid state document {path}: {e}")
        except OSError as e:
            raise StateStoreError(f"Failed to read state file {path}: {e}")
    
    def _write(self, state: ResourceState) -> None:
        target = self._path(state.name)
        try:
            self.resources_dir.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.resources_dir, prefix=f".{state.name}.", suffix=".tmp")
            try:
                with os.fdopen(fd, 'w', encoding='utf-8') as f:
                    json.dump(state.model_dump(mode="json"), f, indent=2, sort_keys=True)
                    f.flush()
                    os.fsync(f.fileno())
                os.replace(tmp_name, target)
            except BaseException:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise
        except OSError as e:
            raise StateStoreError(f"Failed to write state for {state.name}: {e}")
    
    def _delete(self, name: str) -> None:
        try:
            self._path(name).unlink(missing_ok=True)
        except OSError as e:
            raise StateStoreError(f"Failed to remove state for {name}: {e}")
    
    def _read(self, name: str) -> Optional[ResourceState]:
        path = self._path(name)
        if not path.exists():
            return None
        return self._parse(path)
