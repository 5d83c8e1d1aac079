"""repodoctor: static health checks for JavaScript/TypeScript repositories."""

from .detector import detect_project
from .models import (
    Diagnostic,
    DoctorOptions,
    DoctorResult,
    ProjectInfo,
    RuleResult,
    WorkspaceInfo,
)
from .orchestrator import Doctor, diagnose

__all__ = [
    "Diagnostic",
    "Doctor",
    "DoctorOptions",
    "DoctorResult",
    "ProjectInfo",
    "RuleResult",
    "WorkspaceInfo",
    "detect_project",
    "diagnose",
]
