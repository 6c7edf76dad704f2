"""
Run recording: JSONL event logs, metadata and engine snapshots.
"""

from .run_recorder import RunRecorder

__all__ = ['RunRecorder']
