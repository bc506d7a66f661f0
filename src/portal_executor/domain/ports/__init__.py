"""
Domain Ports

Port interfaces defining contracts between layers.
"""

from .isolation_port import IIsolationPort
from .lifecycle_port import ILifecyclePort
from .workspace_port import IWorkspacePort

__all__ = [
    "IIsolationPort",
    "ILifecyclePort",
    "IWorkspacePort",
]
