"""
Deployment binding recovery — retry a deploy once after repairing a
binding error.

    deploy ──ok──▶ done
       │
     error ──▶ remediator.handle_binding_error()
                 ├─ not a binding error  → original error propagates
                 ├─ handled, retryable   → deploy once more (a 2nd failure is fatal)
                 └─ handled, not retry   → DeploymentError(remediation message)

Retry eligibility is decided only by the action tag, see
``should_retry_after_recovery``. When the remediator backed up the
descriptor, a ``RollbackAction`` is prepended to the rollback list, so
the list is always most-recent-first and ``rollback()`` consumes it
LIFO. The list is guarded by the manager's lock.
"""

from __future__ import annotations

import logging
import shutil
import threading
from abc import ABC, abstractmethod
from collections.abc import Callable
from pathlib import Path
from typing import TypeVar

from svcforge.core.errors import DeploymentError
from svcforge.core.models.recovery import (
    RESTORE_DESCRIPTOR,
    RETRYABLE_ACTIONS,
    DeployConfig,
    RecoveryOutcome,
    RemediationResult,
    RollbackAction,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class BindingRemediator(ABC):
    """The deployment tool's binding-error classifier and fixer."""

    @abstractmethod
    def handle_binding_error(self, error: BaseException, config: DeployConfig) -> RemediationResult:
        """Inspect ``error`` and repair the descriptor if possible.

        Returns ``handled=False`` for errors outside its class.
        """


class BindingRecoveryManager:
    """Coordinate remediation, retry and rollback for one service.

    Args:
        remediator:       Classifies and repairs binding errors.
        rollback_actions: Shared list to record into (most recent first).
                          A fresh list is used when omitted.
    """

    def __init__(
        self,
        remediator: BindingRemediator,
        rollback_actions: list[RollbackAction] | None = None,
    ):
        self.remediator = remediator
        self._rollback_actions = rollback_actions if rollback_actions is not None else []
        self._lock = threading.Lock()

    @property
    def rollback_actions(self) -> list[RollbackAction]:
        with self._lock:
            return list(self._rollback_actions)

    # ── Classification ──────────────────────────────────────────

    @staticmethod
    def should_retry_after_recovery(action: str | None) -> bool:
        return action in RETRYABLE_ACTIONS

    @staticmethod
    def get_recovery_message(result: RemediationResult) -> str:
        messages = {
            "created_and_configured": f"Created D1 database '{result.database_name}' and updated configuration",
            "database_selected_and_configured": (
                f"Selected existing database '{result.database_name}' and updated configuration"
            ),
            "binding_updated": "Updated D1 database binding configuration",
            "cancelled": "Binding error recovery was cancelled",
            "creation_failed": f"Failed to create D1 database: {result.error}",
            "selection_failed": f"Failed to update database selection: {result.error}",
            "no_databases_available": "No D1 databases available in account",
            "manual": "Binding error needs to be resolved manually",
            "not_d1_error": "Error is not related to D1 database bindings",
        }
        return messages.get(result.action or "", f"Binding recovery completed with action: {result.action}")

    # ── Recovery ────────────────────────────────────────────────

    def handle_binding_error(self, error: BaseException, config: DeployConfig | None = None) -> RecoveryOutcome:
        """Hand ``error`` to the remediator and decide whether to retry.

        Never raises: a failing remediator is reported as handled,
        not retryable.
        """
        config = config or DeployConfig()
        try:
            result = self.remediator.handle_binding_error(error, config)
        except Exception as e:
            logger.warning("Binding error recovery failed: %s", e)
            return RecoveryOutcome(handled=True, retry=False, message=f"Binding error recovery failed: {e}")

        if not result.handled:
            return RecoveryOutcome(handled=False, retry=False)

        logger.info("Binding error recovery: %s", result.action)
        if result.backup_path:
            logger.info("Descriptor backup: %s", result.backup_path)
            self._record_backup(result.backup_path, config)

        return RecoveryOutcome(
            handled=True,
            retry=self.should_retry_after_recovery(result.action),
            action=result.action,
            message=self.get_recovery_message(result),
            database_name=result.database_name,
            database_id=result.database_id,
        )

    def _record_backup(self, backup_path: str, config: DeployConfig) -> None:
        target = Path(config.config_path)
        if config.cwd and not target.is_absolute():
            target = Path(config.cwd) / target
        action = RollbackAction(
            type=RESTORE_DESCRIPTOR,
            backup_path=backup_path,
            description=f"Restore {target.name} backup after binding recovery",
            target_path=str(target),
        )
        with self._lock:
            self._rollback_actions.insert(0, action)

    def deploy_with_recovery(self, deploy: Callable[[], T], config: DeployConfig | None = None) -> T:
        """Run ``deploy``; on a binding error, remediate and retry at most once.

        Raises:
            DeploymentError: the retry failed too, or the error was
                handled but not retryable.
            Exception: the original error, when it was not a binding error.
        """
        try:
            return deploy()
        except Exception as error:
            outcome = self.handle_binding_error(error, config)

            if not outcome.handled:
                raise

            if not outcome.retry:
                raise DeploymentError(f"Deployment failed: {outcome.message or error}") from error

            logger.info("Retrying deployment after binding recovery (%s)", outcome.action)

        try:
            result = deploy()
        except Exception as retry_error:
            logger.error("Deployment failed even after binding recovery: %s", retry_error)
            raise DeploymentError(
                f"Deployment failed after binding recovery: {retry_error}",
                stderr=getattr(retry_error, "stderr", ""),
                returncode=getattr(retry_error, "returncode", None),
            ) from retry_error

        logger.info("Deployed after binding recovery")
        return result

    # ── Rollback ────────────────────────────────────────────────

    def rollback(self) -> list[RollbackAction]:
        """Restore every recorded backup, most recent first.

        Returns:
            The actions that were applied. Actions whose backup is gone
            are dropped with a warning. Actions whose restore fails stay
            recorded, in their original order, for a later rollback.
        """
        with self._lock:
            pending = list(self._rollback_actions)
            self._rollback_actions.clear()

        applied: list[RollbackAction] = []
        failed: list[RollbackAction] = []
        for action in pending:
            if action.type != RESTORE_DESCRIPTOR:
                logger.warning("Unknown rollback action type %s, skipping", action.type)
                continue
            backup = Path(action.backup_path)
            if not backup.is_file():
                logger.warning("Backup %s is missing, cannot restore", backup)
                continue
            target = Path(action.target_path) if action.target_path else _original_path(backup)
            try:
                shutil.copy2(backup, target)
            except OSError as e:
                logger.error("Cannot restore %s from %s: %s", target, backup, e)
                failed.append(action)
                continue
            logger.info("Restored %s from %s", target, backup)
            applied.append(action)

        if failed:
            with self._lock:
                self._rollback_actions[:0] = failed
        return applied

    def get_statistics(self) -> dict:
        with self._lock:
            restores = [a for a in self._rollback_actions if a.type == RESTORE_DESCRIPTOR]
        return {
            "total_recoveries": len(restores),
            "has_backups": bool(restores),
            "latest_backup": restores[0].backup_path if restores else None,
        }


def _original_path(backup: Path) -> Path:
    """``wrangler.toml.backup.<stamp>`` → ``wrangler.toml``."""
    name, sep, _ = backup.name.partition(".backup.")
    return backup.with_name(name) if sep else backup
