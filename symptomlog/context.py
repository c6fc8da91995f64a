"""Process-wide collaborators, built once at startup and handed to every request."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from symptomlog.auth.gate import AuthGate, IdentityVerifier, JwtIdentityVerifier
from symptomlog.db.session import make_engine
from symptomlog.services.clock import MonotonicClock
from symptomlog.services.history import HistoryStore
from symptomlog.services.rules import RuleEngine, default_engine
from symptomlog.settings import Settings
from symptomlog.storage.kv import InMemoryKeyValueStore, KeyValueStore
from symptomlog.storage.sql import SqlKeyValueStore


@dataclass
class ServiceContext:
    settings: Settings
    auth_gate: AuthGate
    history: HistoryStore
    rules: RuleEngine
    clock: MonotonicClock = field(default_factory=MonotonicClock)

    def close(self) -> None:
        self.history.kv.close()


def build_kv_store(settings: Settings) -> KeyValueStore:
    if settings.storage_backend == "sql":
        return SqlKeyValueStore(make_engine(settings.database_url, echo=settings.sql_echo))
    return InMemoryKeyValueStore()


def build_context(
    settings: Settings,
    kv: Optional[KeyValueStore] = None,
    verifier: Optional[IdentityVerifier] = None,
    clock: Optional[MonotonicClock] = None,
) -> ServiceContext:
    return ServiceContext(
        settings=settings,
        auth_gate=AuthGate(verifier or JwtIdentityVerifier(settings.jwt_secret, settings.jwt_algorithm)),
        history=HistoryStore(kv if kv is not None else build_kv_store(settings)),
        rules=default_engine(),
        clock=clock or MonotonicClock(),
    )
