"""
Recovery models — the contract between a deploy attempt, the binding
remediator and the recovery manager.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

# Action tags after which a redeploy is worth attempting
RETRYABLE_ACTIONS = frozenset({
    "created_and_configured",
    "database_selected_and_configured",
    "binding_updated",
})

NON_RETRYABLE_ACTIONS = frozenset({
    "cancelled",
    "creation_failed",
    "selection_failed",
    "no_databases_available",
    "manual",
    "not_d1_error",
})

RESTORE_DESCRIPTOR = "restore-wrangler-config"


class DeployConfig(BaseModel):
    """Where and how a deploy attempt runs."""

    environment: str | None = None
    config_path: str = "wrangler.toml"
    cwd: str | None = None


class RemediationResult(BaseModel):
    """What the wrapped deployment tool did about a binding error."""

    handled: bool
    action: str | None = None
    reason: str | None = None
    database_name: str | None = None
    database_id: str | None = None
    binding_name: str | None = None
    backup_path: str | None = None
    error: str | None = None


class RecoveryOutcome(BaseModel):
    """The recovery manager's verdict on one failed deploy."""

    model_config = ConfigDict(frozen=True)

    handled: bool
    retry: bool = False
    action: str | None = None
    message: str | None = None
    database_name: str | None = None
    database_id: str | None = None


class RollbackAction(BaseModel):
    """A compensating step recorded after a descriptor mutation."""

    model_config = ConfigDict(frozen=True)

    type: str
    backup_path: str
    description: str
    target_path: str | None = None
