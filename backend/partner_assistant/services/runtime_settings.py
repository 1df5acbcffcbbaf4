"""User-adjustable supervisor settings held for the lifetime of the process."""

import logging
from typing import Optional

from partner_assistant.config import AppConfig, config
from partner_assistant.models import RoutingPolicy, SettingsResponse, SettingsUpdate

logger = logging.getLogger(__name__)


class RuntimeSettings:
    """
    Routing policy, synthesis toggle and supervisor workflow override.

    ``version`` increases on every effective change; supervisors compare it
    against the version their client cache was built under and drop the
    cache when it moved.
    """

    def __init__(self, app_config: Optional[AppConfig] = None):
        app_config = app_config or config
        supervisor = app_config.get_supervisor_config()
        self.routing_policy = RoutingPolicy(supervisor["strategy"])
        self.synthesis_enabled = bool(supervisor["synthesis_enabled"])
        self.supervisor_workflow_id: Optional[str] = app_config.get_supervisor_workflow_id()
        self.version = 0

    def update(self, changes: SettingsUpdate) -> bool:
        """Apply a partial update. Returns True when anything changed."""
        changed = False
        if changes.supervisor_strategy is not None and changes.supervisor_strategy != self.routing_policy:
            self.routing_policy = changes.supervisor_strategy
            changed = True
        if changes.synthesis_enabled is not None and changes.synthesis_enabled != self.synthesis_enabled:
            self.synthesis_enabled = changes.synthesis_enabled
            changed = True
        if changes.supervisor_workflow_id is not None:
            workflow_id = changes.supervisor_workflow_id.strip() or None
            if workflow_id != self.supervisor_workflow_id:
                self.supervisor_workflow_id = workflow_id
                changed = True

        if changed:
            self.version += 1
            logger.info(
                f"[SETTINGS] strategy={self.routing_policy.value}, "
                f"synthesis={self.synthesis_enabled}, version={self.version}"
            )
        return changed

    def snapshot(self) -> SettingsResponse:
        return SettingsResponse(
            supervisor_strategy=self.routing_policy,
            synthesis_enabled=self.synthesis_enabled,
            supervisor_workflow_id=self.supervisor_workflow_id,
            version=self.version,
        )


# Singleton instance
_runtime_settings: Optional[RuntimeSettings] = None


def get_runtime_settings() -> RuntimeSettings:
    global _runtime_settings
    if _runtime_settings is None:
        _runtime_settings = RuntimeSettings()
    return _runtime_settings
