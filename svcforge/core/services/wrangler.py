"""
Wrangler — the wrapped deployment tool.

``WranglerCli`` shells out to ``wrangler`` (or ``npx wrangler`` when it
is not on PATH). ``WranglerD1Remediator`` is the non-interactive
binding-error fixer the recovery manager calls when a deploy fails on
a D1 binding:

    database exists          → rebind it                 (binding_updated)
    missing, auto_create     → create and bind it        (created_and_configured)
    missing, select_existing → bind the only database    (database_selected_and_configured)
    otherwise                → manual / *_failed / no_databases_available

Every descriptor change is preceded by a timestamped backup.
"""

from __future__ import annotations

import json
import logging
import re
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path

from svcforge.core.errors import DeploymentError
from svcforge.core.models.recovery import DeployConfig, RemediationResult
from svcforge.core.services.binding_recovery import BindingRemediator
from svcforge.core.services.descriptor import (
    DescriptorParser,
    TomlDescriptorParser,
    backup_descriptor,
    write_descriptor,
)
from svcforge.core.services.generators.wrangler_toml import D1_BINDING

logger = logging.getLogger(__name__)

_DB_NAME_PATTERNS = (
    re.compile(r"Couldn't find a D1 DB with the name or binding '([^']+)'"),
    re.compile(r"Database '([^']+)' not found"),
    re.compile(r"Unknown database: (\S+)"),
    re.compile(r"D1 database (\S+) does not exist"),
    re.compile(r"Missing D1 database: (\S+)"),
)
_BINDING_RE = re.compile(r"binding '([^']+)'")
_DATABASE_ID_RE = re.compile(r"""["']?database_id["']?\s*[=:]\s*["']([^"']+)["']""")


# ═══════════════════════════════════════════════════════════════════
#  CLI runner
# ═══════════════════════════════════════════════════════════════════


class WranglerCli:
    """Thin subprocess wrapper around the wrangler CLI.

    Args:
        cwd:     Service directory (where wrangler.toml lives).
        timeout: Per-command timeout in seconds.
    """

    def __init__(self, cwd: str | Path = ".", timeout: int = 300):
        self.cwd = Path(cwd)
        self.timeout = timeout

    @staticmethod
    def command() -> list[str]:
        if shutil.which("wrangler"):
            return ["wrangler"]
        return ["npx", "--yes", "wrangler"]

    def run(self, *args: str) -> subprocess.CompletedProcess[str]:
        """Run ``wrangler <args>``.

        Raises:
            DeploymentError: the binary is missing or the command timed out.
        """
        cmd = [*self.command(), *args]
        logger.debug("Running: %s (cwd=%s)", " ".join(cmd), self.cwd)
        try:
            return subprocess.run(
                cmd,
                cwd=str(self.cwd),
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except FileNotFoundError as e:
            raise DeploymentError(f"wrangler not available: {e}") from e
        except subprocess.TimeoutExpired as e:
            raise DeploymentError(f"wrangler {' '.join(args)} timed out after {self.timeout}s") from e

    def _check(self, result: subprocess.CompletedProcess[str], what: str) -> str:
        if result.returncode != 0:
            stderr = (result.stderr or result.stdout or "").strip()
            raise DeploymentError(f"{what} failed: {stderr}", stderr=stderr, returncode=result.returncode)
        return result.stdout

    def deploy(self, environment: str | None = None, config_path: str = "wrangler.toml") -> str:
        """``wrangler deploy``; returns stdout.

        Raises:
            DeploymentError: non-zero exit, carrying wrangler's stderr.
        """
        args = ["deploy", "--config", config_path]
        if environment:
            args += ["--env", environment]
        return self._check(self.run(*args), "wrangler deploy")

    def list_d1_databases(self) -> list[dict[str, str]]:
        """Databases in the account as ``{"name", "id"}`` dicts."""
        stdout = self._check(self.run("d1", "list", "--json"), "wrangler d1 list")
        try:
            entries = json.loads(stdout or "[]")
        except json.JSONDecodeError as e:
            raise DeploymentError(f"Unexpected output from wrangler d1 list: {e}") from e
        return [
            {"name": str(entry.get("name", "")), "id": str(entry.get("uuid") or entry.get("id") or "")}
            for entry in entries
            if isinstance(entry, dict)
        ]

    def create_d1_database(self, name: str) -> str:
        """Create a database and return its id."""
        stdout = self._check(self.run("d1", "create", name), f"wrangler d1 create {name}")
        match = _DATABASE_ID_RE.search(stdout)
        if not match:
            raise DeploymentError(f"Created D1 database {name} but could not read its id")
        return match.group(1)


# ═══════════════════════════════════════════════════════════════════
#  D1 binding remediator
# ═══════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class D1ErrorAnalysis:
    is_d1_error: bool = False
    error_type: str | None = None
    database_name: str | None = None
    binding_name: str | None = None
    can_recover: bool = False
    suggestion: str | None = None


def extract_database_name(message: str) -> str | None:
    for pattern in _DB_NAME_PATTERNS:
        match = pattern.search(message)
        if match:
            return match.group(1)
    return None


def analyze_d1_error(message: str) -> D1ErrorAnalysis:
    """Classify a wrangler error message."""
    lower = message.lower()
    if "d1" not in lower and "database" not in lower:
        return D1ErrorAnalysis()

    if "couldn't find" in lower or "not found" in lower:
        error_type, can_recover = "database_not_found", True
        suggestion = "Create the database or update the binding configuration"
    elif "binding" in lower:
        error_type, can_recover = "binding_configuration_error", True
        suggestion = "Update the D1 binding configuration in wrangler.toml"
    elif "permission" in lower or "access" in lower:
        error_type, can_recover = "permission_error", False
        suggestion = "Check Cloudflare account permissions for D1 databases"
    else:
        error_type, can_recover, suggestion = None, False, None

    binding = _BINDING_RE.search(message)
    return D1ErrorAnalysis(
        is_d1_error=True,
        error_type=error_type,
        database_name=extract_database_name(message),
        binding_name=binding.group(1) if binding else None,
        can_recover=can_recover,
        suggestion=suggestion,
    )


def error_text(error: BaseException | str) -> str:
    """Message plus captured stderr, when the error carries one."""
    if isinstance(error, str):
        return error
    stderr = getattr(error, "stderr", "") or ""
    message = str(error)
    return f"{message}\n{stderr}" if stderr and stderr not in message else message


class WranglerD1Remediator(BindingRemediator):
    """Repair D1 binding errors without prompting.

    Args:
        cli:             Runner used for ``d1 list`` / ``d1 create``.
        auto_create:     Create a missing database.
        select_existing: Bind the account's only database when the named
                         one is missing and creation is off.
        parser:          Descriptor parser (TOML by default).
    """

    def __init__(
        self,
        cli: WranglerCli,
        auto_create: bool = True,
        select_existing: bool = False,
        parser: DescriptorParser | None = None,
    ):
        self.cli = cli
        self.auto_create = auto_create
        self.select_existing = select_existing
        self.parser = parser or TomlDescriptorParser()

    def handle_binding_error(self, error: BaseException, config: DeployConfig) -> RemediationResult:
        analysis = analyze_d1_error(error_text(error))
        if not analysis.is_d1_error:
            return RemediationResult(handled=False, reason="Not a D1 error")
        if not analysis.can_recover:
            return RemediationResult(handled=False, reason="Cannot recover from this D1 error type")

        logger.info(
            "D1 binding error (%s), database=%s: %s",
            analysis.error_type,
            analysis.database_name or "unknown",
            analysis.suggestion,
        )
        name = analysis.database_name
        if not name:
            return RemediationResult(handled=True, action="manual", reason="Could not extract database name from error")

        config_path = self._config_path(config)
        binding = analysis.binding_name if analysis.binding_name and analysis.binding_name != name else None

        try:
            databases = self.cli.list_d1_databases()
        except DeploymentError as e:
            return RemediationResult(handled=True, action="selection_failed", database_name=name, error=str(e))

        existing = next((db for db in databases if name in (db["name"], db["id"])), None)
        if existing:
            return self._bind(config_path, binding, existing, "binding_updated", "selection_failed")

        if self.auto_create:
            try:
                database_id = self.cli.create_d1_database(name)
            except DeploymentError as e:
                return RemediationResult(handled=True, action="creation_failed", database_name=name, error=str(e))
            created = {"name": name, "id": database_id}
            return self._bind(config_path, binding, created, "created_and_configured", "creation_failed")

        if self.select_existing:
            if not databases:
                return RemediationResult(handled=True, action="no_databases_available", database_name=name)
            if len(databases) == 1:
                return self._bind(
                    config_path, binding, databases[0], "database_selected_and_configured", "selection_failed"
                )

        return RemediationResult(
            handled=True,
            action="manual",
            database_name=name,
            reason=f"Database {name} does not exist; create it with `wrangler d1 create {name}`",
        )

    @staticmethod
    def _config_path(config: DeployConfig) -> Path:
        path = Path(config.config_path)
        if config.cwd and not path.is_absolute():
            path = Path(config.cwd) / path
        return path

    def _bind(
        self,
        config_path: Path,
        binding: str | None,
        database: dict[str, str],
        action: str,
        failure_action: str,
    ) -> RemediationResult:
        try:
            backup, binding_name = self.update_d1_binding(config_path, binding, database["name"], database["id"])
        except (OSError, ValueError) as e:
            return RemediationResult(
                handled=True, action=failure_action, database_name=database["name"], error=str(e)
            )
        return RemediationResult(
            handled=True,
            action=action,
            database_name=database["name"],
            database_id=database["id"],
            binding_name=binding_name,
            backup_path=str(backup),
        )

    def update_d1_binding(
        self,
        config_path: str | Path,
        binding: str | None,
        database_name: str,
        database_id: str,
    ) -> tuple[Path, str]:
        """Point a ``[[d1_databases]]`` block at ``database_name``.

        Rebinds the block named ``binding`` (or the only / first D1 block
        when no binding is given); appends a new block when none match.

        Returns:
            (backup path, binding name used)
        """
        path = Path(config_path)
        sections = self.parser.parse(path.read_text(encoding="utf-8"))
        data = dict(sections.raw)
        blocks = [dict(b) for b in sections.d1_databases]

        target = None
        if binding:
            target = next((b for b in blocks if b.get("binding") == binding), None)
        elif blocks:
            target = next((b for b in blocks if b.get("database_name") == database_name), blocks[0])

        if target is None:
            target = {"binding": binding or D1_BINDING}
            blocks.append(target)
        target["database_name"] = database_name
        target["database_id"] = database_id
        data["d1_databases"] = blocks

        backup = backup_descriptor(path)
        write_descriptor(path, data, self.parser)
        logger.info("Bound %s → %s (%s); backup at %s", target["binding"], database_name, database_id, backup)
        return backup, str(target["binding"])
