"""Wiring: config -> store, tools, conversation factory and session."""

from __future__ import annotations

import logging
from typing import Callable

from orchestria.chat.log import MessageLog
from orchestria.chat.session import SessionManager
from orchestria.config import OrchestriaConfig
from orchestria.errors import SessionUnavailable
from orchestria.llm.conversation import Conversation
from orchestria.llm.providers.base import Provider
from orchestria.llm.providers.openai_compat import OpenAICompatProvider
from orchestria.prompts.system import build_system_prompt
from orchestria.store.adapter import StoreAdapter
from orchestria.store.base import DomainStore
from orchestria.store.http import HttpStore
from orchestria.store.memory import MemoryStore
from orchestria.tools.domain import build_registry
from orchestria.tools.registry import ToolRegistry

logger = logging.getLogger(__name__)


def build_store(cfg: OrchestriaConfig) -> DomainStore:
    if cfg.store.backend == "http":
        return HttpStore(cfg.store.api_url, timeout=cfg.store.timeout_seconds)
    return MemoryStore.with_demo_data()


def build_provider(cfg: OrchestriaConfig) -> Provider:
    """
    Create the configured provider.

    Raises ``SessionUnavailable`` when the API key env var is empty.  The
    key is read on every call so one exported later is picked up.
    """
    api_key = cfg.api_key()
    if not api_key:
        raise SessionUnavailable(f"{cfg.llm.api_key_env} is not set")
    return OpenAICompatProvider(
        url=cfg.llm.api_base,
        model=cfg.llm.model,
        api_key=api_key,
        timeout=float(cfg.llm.timeout_seconds),
        max_retries=cfg.llm.max_retries,
        temperature=cfg.llm.temperature,
        max_output=cfg.llm.max_output_tokens,
    )


def conversation_factory(
    cfg: OrchestriaConfig,
    registry: ToolRegistry,
    provider_factory: Callable[[OrchestriaConfig], Provider] = build_provider,
) -> Callable[[], Conversation]:
    def factory() -> Conversation:
        provider = provider_factory(cfg)
        return Conversation(
            provider,
            system_prompt=build_system_prompt(tools=registry.list()),
            tools=registry.to_openai_schema(),
            timeout=float(cfg.llm.timeout_seconds),
        )

    return factory


def build_session(
    cfg: OrchestriaConfig,
    store: DomainStore,
    provider_factory: Callable[[OrchestriaConfig], Provider] = build_provider,
) -> SessionManager:
    """Assemble a ready-to-use session over *store*."""
    adapter = StoreAdapter(store)
    registry = build_registry(adapter, tool_timeout=cfg.chat.tool_timeout)
    return SessionManager(
        conversation_factory(cfg, registry, provider_factory),
        adapter,
        registry,
        log=MessageLog(greeting=cfg.chat.greeting),
        turn_timeout=cfg.chat.turn_timeout,
        max_tool_rounds=cfg.chat.max_tool_rounds,
        context_max_items=cfg.chat.context_max_items,
    )
