"""Local simulated cloud provider (no network, optional JSON persistence)."""

import json
import threading
import time
import uuid
from pathlib import Path
from typing import Any, Dict, Iterable, Optional, Set, Tuple
from .base import ProviderPort
from ..resources.kinds import ResourceKind
from ..utils.errors import ProviderError, ResourceNotFoundError
from ..utils.logging import get_logger

logger = get_logger("providers.local")

DEFAULT_REGION = "us-east-1"
DEFAULT_ACCOUNT_ID = "123456789012"


class LocalCloudProvider(ProviderPort):
    """
    Simulated cloud that hands out AWS-shaped identifiers.
    
    Resources live in memory and, when ``path`` is given, are persisted to a
    JSON file after every mutation so separate processes see the same cloud.
    ``fail_on`` injects failures for rehearsal: a set of (operation, kind)
    pairs such as ("create", "Network").
    """
    
    name = "local"
    
    def __init__(
        self,
        path: Optional[Path] = None,
        region: str = DEFAULT_REGION,
        account_id: str = DEFAULT_ACCOUNT_ID,
        fail_on: Optional[Iterable[Tuple[str, str]]] = None,
        latency_seconds: float = 0.0,
    ):
        self.path = Path(path) if path else None
        self.region = region
        self.account_id = str(account_id)
        self.fail_on: Set[Tuple[str, str]] = {(op, ResourceKind(kind).value) for op, kind in (fail_on or [])}
        self.latency_seconds = latency_seconds
        self._lock = threading.Lock()
        self._resources: Dict[str, Dict[str, Any]] = self._load()
    
    def _load(self) -> Dict[str, Dict[str, Any]]:
        if not self.path or not self.path.exists():
            return {}
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ProviderError(f"Could not load local cloud from {self.path}: {e}")
        return data.get("resources", {})
    
    def _save(self) -> None:
        if not self.path:
            return
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, 'w', encoding='utf-8') as f:
                json.dump({"resources": self._resources}, f, indent=2, sort_keys=True)
        except OSError as e:
            raise ProviderError(f"Could not persist local cloud to {self.path}: {e}")
    
    def _maybe_fail(self, operation: str, kind: ResourceKind) -> None:
        if self.latency_seconds:
            time.sleep(self.latency_seconds)
        if (operation, ResourceKind(kind).value) in self.fail_on:
            raise ProviderError(f"Injected failure: {operation} {ResourceKind(kind).value}")
    
    def create(self, kind: ResourceKind, properties: Dict[str, Any]) -> Dict[str, Any]:
        kind = ResourceKind(kind)
        self._maybe_fail("create", kind)
        outputs = self._outputs_for(kind, properties)
        with self._lock:
            self._resources[outputs["id"]] = {
                "kind": kind.value,
                "properties": properties,
                "outputs": outputs,
            }
            self._save()
        logger.debug(f"Created {kind.value} {outputs['id']}")
        return dict(outputs)
    
    def read(self, kind: ResourceKind, resource_id: str) -> Dict[str, Any]:
        kind = ResourceKind(kind)
        self._maybe_fail("read", kind)
        with self._lock:
            record = self._resources.get(resource_id)
        if record is None or record["kind"] != kind.value:
            raise ResourceNotFoundError(f"{kind.value} {resource_id} not found")
        return dict(record["properties"])
    
    def update(self, kind: ResourceKind, resource_id: str, properties: Dict[str, Any]) -> Dict[str, Any]:
        kind = ResourceKind(kind)
        self._maybe_fail("update", kind)
        with self._lock:
            record = self._resources.get(resource_id)
            if record is None or record["kind"] != kind.value:
                raise ResourceNotFoundError(f"{kind.value} {resource_id} not found")
            record["properties"] = properties
            self._save()
            outputs = dict(record["outputs"])
        logger.debug(f"Updated {kind.value} {resource_id}")
        return outputs
    
    def delete(self, kind: ResourceKind, resource_id: str) -> None:
        kind = ResourceKind(kind)
        self._maybe_fail("delete", kind)
        with self._lock:
            record = self._resources.get(resource_id)
            if record is None or record["kind"] != kind.value:
                raise ResourceNotFoundError(f"{kind.value} {resource_id} not found")
            del self._resources[resource_id]
            self._save()
        logger.debug(f"Deleted {kind.value} {resource_id}")
    
    def resource_count(self) -> int:
        with self._lock:
            return len(self._resources)
    
    def _arn(self, service: str, resource: str, regional: bool = True) -> str:
        region = self.region if regional else ""
        return f"arn:aws:{service}:{region}:{self.account_id}:{resource}"
    
    def _outputs_for(self, kind: ResourceKind, properties: Dict[str, Any]) -> Dict[str, Any]:
        suffix = uuid.uuid4().hex[:8]
        
        if kind == ResourceKind.NETWORK:
            vpc_id = f"vpc-{suffix}"
            azs = int(properties.get("max_azs", 2))
            tiers = [s.get("subnet_type", "private").lower() for s in properties.get("subnet_configuration", [])] or ["public", "private"]
            outputs = {"id": vpc_id, "vpc_id": vpc_id, "cidr": properties.get("cidr")}
            for tier in tiers:
                outputs[f"{tier}_subnet_ids"] = [f"subnet-{uuid.uuid4().hex[:8]}" for _ in range(azs)]
            return outputs
        
        if kind == ResourceKind.ROLE:
            role_name = properties.get("role_name") or f"role-{suffix}"
            return {"id": role_name, "role_name": role_name, "arn": self._arn("iam", f"role/{role_name}", regional=False)}
        
        if kind == ResourceKind.CLUSTER:
            cluster_name = properties.get("cluster_name") or f"cluster-{suffix}"
            return {
                "id": cluster_name,
                "name": cluster_name,
                "arn": self._arn("eks", f"cluster/{cluster_name}"),
                "endpoint": f"https://{suffix.upper()}.gr7.{self.region}.eks.amazonaws.com",
                "security_group_id": f"sg-{suffix}",
            }
        
        if kind == ResourceKind.NODE_GROUP:
            group_name = properties.get("node_group_name") or f"nodes-{suffix}"
            return {
                "id": group_name,
                "name": group_name,
                "arn": self._arn("autoscaling", f"autoScalingGroup:{uuid.uuid4()}:autoScalingGroupName/{group_name}"),
            }
        
        if kind == ResourceKind.QUEUE:
            queue_name = properties.get("queue_name") or f"queue-{suffix}"
            url = f"https://sqs.{self.region}.amazonaws.com/{self.account_id}/{queue_name}"
            return {"id": url, "url": url, "name": queue_name, "arn": self._arn("sqs", queue_name)}
        
        if kind == ResourceKind.TOPIC:
            topic_name = properties.get("topic_name") or f"topic-{suffix}"
            arn = self._arn("sns", topic_name)
            return {"id": arn, "arn": arn, "name": topic_name}
        
        if kind == ResourceKind.SUBSCRIPTION:
            topic_arn = properties.get("topic_arn", self._arn("sns", "unknown"))
            arn = f"{topic_arn}:{uuid.uuid4()}"
            return {"id": arn, "arn": arn}
        
        raise ProviderError(f"Unsupported resource kind: {kind}")
