"""
Application Orchestration Package

Architectural Intent:
- Contains workflow orchestration components
- DAG-based execution for the per-host deploy workflow
- Host session acquisition shared by every fleet use case
"""

from harp.application.orchestration.dag_orchestrator import (
    DAGOrchestrator,
    WorkflowStep,
    OrchestrationError,
)
from harp.application.orchestration.host_sessions import HostSessionFactory

__all__ = ["DAGOrchestrator", "WorkflowStep", "OrchestrationError", "HostSessionFactory"]
