"""
Run recorder that saves game events and snapshots to files.
"""

import json
import logging
from datetime import datetime
from pathlib import Path
from threading import Lock
from typing import Any, Dict, Iterable, List, Optional

from ..core.events import GameEvent

logger = logging.getLogger(__name__)


class RunRecorder:
    """Records a game to ``<runs_dir>/<run_name>/``."""

    def __init__(self, runs_dir: str = "runs"):
        self.runs_dir = Path(runs_dir)
        self.runs_dir.mkdir(parents=True, exist_ok=True)
        self.current_run_dir: Optional[Path] = None
        self.events_file: Optional[Path] = None
        self.metadata_file: Optional[Path] = None
        self.snapshot_file: Optional[Path] = None
        self._lock = Lock()
        self._event_count = 0

    def create_run(self, run_name: Optional[str] = None) -> str:
        """
        Create a new run directory.

        Args:
            run_name: Optional custom run name. If None, generates timestamp-based name.

        Returns:
            The run name (directory name)
        """
        if run_name is None:
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            run_name = f"run_{timestamp}"

        self.current_run_dir = self.runs_dir / run_name
        self.current_run_dir.mkdir(exist_ok=True)

        self.events_file = self.current_run_dir / "events.jsonl"
        self.metadata_file = self.current_run_dir / "metadata.json"
        self.snapshot_file = self.current_run_dir / "snapshot.json"
        self._event_count = 0

        logger.info("Recording run to %s", self.current_run_dir)
        return run_name

    def record_event(self, event: GameEvent) -> None:
        """Append one game event to events.jsonl."""
        if not self.events_file:
            return

        with self._lock:
            line = {"sequence": self._event_count, **event.to_dict()}
            self._event_count += 1
            with open(self.events_file, 'a') as f:
                f.write(json.dumps(line) + '\n')

    def record_events(self, events: Iterable[GameEvent]) -> int:
        count = 0
        for event in events:
            self.record_event(event)
            count += 1
        return count

    def save_metadata(self, metadata: Dict[str, Any]) -> None:
        if not self.metadata_file:
            return

        with self._lock:
            with open(self.metadata_file, 'w') as f:
                json.dump(metadata, f, indent=2)

    def save_snapshot(self, snapshot: Dict[str, Any]) -> Optional[Path]:
        """Write an engine snapshot, replacing the previous one."""
        if not self.snapshot_file:
            return None

        with self._lock:
            with open(self.snapshot_file, 'w') as f:
                json.dump(snapshot, f)
        return self.snapshot_file

    def load_snapshot(self, run_name: Optional[str] = None) -> Dict[str, Any]:
        """
        Load a snapshot from the current run or a named one.

        Raises:
            FileNotFoundError: if no snapshot was saved
        """
        path = self.runs_dir / run_name / "snapshot.json" if run_name else self.snapshot_file
        if path is None or not path.exists():
            raise FileNotFoundError(f"No snapshot found at {path}")
        with open(path, 'r') as f:
            return json.load(f)

    def read_events(self) -> List[Dict[str, Any]]:
        if not self.events_file or not self.events_file.exists():
            return []
        with open(self.events_file, 'r') as f:
            return [json.loads(line) for line in f if line.strip()]

    def get_run_path(self) -> Optional[Path]:
        """Get the current run directory path."""
        return self.current_run_dir
