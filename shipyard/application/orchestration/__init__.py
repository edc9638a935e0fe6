"""
Application Orchestration Package

Architectural Intent:
- Runs the fixed stage sequence of a pipeline and its post-run phases
"""

from shipyard.application.orchestration.deployment_orchestrator import (
    DeploymentOrchestrator,
    OrchestrationError,
)
from shipyard.application.orchestration.post_run import (
    PostRunPhase,
    CleanupPhase,
    SuccessReport,
    FailureDiagnostics,
)

__all__ = [
    "DeploymentOrchestrator",
    "OrchestrationError",
    "PostRunPhase",
    "CleanupPhase",
    "SuccessReport",
    "FailureDiagnostics",
]
