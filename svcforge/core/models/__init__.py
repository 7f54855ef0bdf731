"""
Domain models — Pydantic types and frozen results for svcforge.

All models are re-exported here for convenient access:

    from svcforge.core.models import GenerationContext, ExecutionResult, ValidationIssue
"""

from svcforge.core.models.context import (
    ConfirmedValues,
    CoreInputs,
    GenerationContext,
    SiteConfig,
    normalize_context,
)
from svcforge.core.models.execution import ExecutionResult, GeneratorOutcome
from svcforge.core.models.recovery import (
    DeployConfig,
    RecoveryOutcome,
    RemediationResult,
    RollbackAction,
)
from svcforge.core.models.template import GeneratedFile, WriteResult, WrittenFileRecord
from svcforge.core.models.validation import (
    AutoFixResult,
    Severity,
    ValidationIssue,
    ValidationResult,
)

__all__ = [
    "AutoFixResult",
    # context.py
    "ConfirmedValues",
    "CoreInputs",
    # recovery.py
    "DeployConfig",
    # execution.py
    "ExecutionResult",
    # template.py
    "GeneratedFile",
    "GenerationContext",
    "GeneratorOutcome",
    "RecoveryOutcome",
    "RemediationResult",
    "RollbackAction",
    # validation.py
    "Severity",
    "SiteConfig",
    "ValidationIssue",
    "ValidationResult",
    "WriteResult",
    "WrittenFileRecord",
    "normalize_context",
]
