"""HyprArch installer (two-mode, step-driven).

Core design goals:
- Every question asked before the first destructive command
- Steps that detect already-satisfied work and skip it
- Secrets only ever travel on stdin
- Centralized logging with a persisted run record
"""

__all__ = []
