"""Project context data models — the record handed to the assistant process."""
from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any, Optional

SCHEMA_VERSION = 1

SECRET_MARKERS = ("SECRET", "KEY", "TOKEN")


def find_secret_names(variables: dict[str, Any]) -> list[str]:
    """Names of vars that look like credentials. Values are never returned."""
    return [key for key in variables
            if any(marker in str(key).upper() for marker in SECRET_MARKERS)]


def _list(value: Any) -> list:
    return list(value) if isinstance(value, list) else []


@dataclass
class Bindings:
    """Resource bindings grouped by category; always fully populated."""
    kv_namespaces: list[dict] = field(default_factory=list)
    durable_objects: list[dict] = field(default_factory=list)
    r2_buckets: list[dict] = field(default_factory=list)
    d1_databases: list[dict] = field(default_factory=list)
    queues: dict[str, list[dict]] = field(
        default_factory=lambda: {"producers": [], "consumers": []}
    )
    services: list[dict] = field(default_factory=list)
    analytics_engine_datasets: list[dict] = field(default_factory=list)
    ai: Optional[dict] = None
    browser: Optional[dict] = None
    vectorize: list[dict] = field(default_factory=list)
    hyperdrive: list[dict] = field(default_factory=list)
    workflows: list[dict] = field(default_factory=list)
    mtls_certificates: list[dict] = field(default_factory=list)
    dispatch_namespaces: list[dict] = field(default_factory=list)
    vars: dict[str, Any] = field(default_factory=dict)
    secrets: list[str] = field(default_factory=list)

    @classmethod
    def from_config(cls, config: Optional[dict[str, Any]]) -> "Bindings":
        """Classify the bindings of a normalized config (``None`` gives an empty record)."""
        config = config or {}
        durable = config.get("durable_objects") or {}
        queues = config.get("queues") or {}
        variables = dict(config.get("vars") or {})
        return cls(
            kv_namespaces=_list(config.get("kv_namespaces")),
            durable_objects=_list(durable.get("bindings")),
            r2_buckets=_list(config.get("r2_buckets")),
            d1_databases=_list(config.get("d1_databases")),
            queues={
                "producers": _list(queues.get("producers")),
                "consumers": _list(queues.get("consumers")),
            },
            services=_list(config.get("services")),
            analytics_engine_datasets=_list(config.get("analytics_engine_datasets")),
            ai=config.get("ai"),
            browser=config.get("browser"),
            vectorize=_list(config.get("vectorize")),
            hyperdrive=_list(config.get("hyperdrive")),
            workflows=_list(config.get("workflows")),
            mtls_certificates=_list(config.get("mtls_certificates")),
            dispatch_namespaces=_list(config.get("dispatch_namespaces")),
            vars=variables,
            secrets=find_secret_names(variables),
        )

    def to_dict(self) -> dict:
        d = {f.name: getattr(self, f.name) for f in fields(self)}
        for optional in ("ai", "browser"):
            if d[optional] is None:
                del d[optional]
        return d

    @classmethod
    def from_dict(cls, d: dict) -> "Bindings":
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in d.items() if k in known})


# Python attribute -> key in the context file
_WIRE_KEYS = {
    "project_root": "projectRoot",
    "config_files": "configFiles",
    "config_path": "configPath",
    "wrangler_config": "wranglerConfig",
    "raw_config": "rawConfig",
    "workers_runtime": "workersRuntime",
    "environment": "environment",
    "account_id": "accountId",
    "worker_name": "workerName",
    "schema_version": "schemaVersion",
}


@dataclass
class ProjectContext:
    """Snapshot of the host project, serialized once per launch."""
    project_root: str
    config_files: list[str] = field(default_factory=list)
    bindings: Bindings = field(default_factory=Bindings)
    wrangler_config: Optional[dict[str, Any]] = None
    raw_config: Optional[dict[str, Any]] = None
    config_path: Optional[str] = None
    workers_runtime: Optional[str] = None
    environment: Optional[str] = None
    account_id: Optional[str] = None
    worker_name: Optional[str] = None
    schema_version: int = SCHEMA_VERSION

    def to_dict(self) -> dict:
        d = {}
        for attr, key in _WIRE_KEYS.items():
            value = getattr(self, attr)
            if value is not None:
                d[key] = value
        d["bindings"] = self.bindings.to_dict()
        return d

    @classmethod
    def from_dict(cls, d: dict) -> "ProjectContext":
        values = {attr: d[key] for attr, key in _WIRE_KEYS.items() if key in d}
        values["bindings"] = Bindings.from_dict(d.get("bindings") or {})
        return cls(**values)
