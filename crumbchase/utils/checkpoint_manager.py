"""Q-table checkpoint management for the seeker agent."""

import json
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Dict, Any

from ..domain.qlearning import QLearningAgent


class CheckpointManager:
    """Saves and restores agent exports as JSON files in one directory."""

    def __init__(self, checkpoints_dir: str = "training_checkpoints"):
        self.checkpoints_dir = Path(checkpoints_dir)
        self.checkpoints_dir.mkdir(parents=True, exist_ok=True)

    def _path_for(self, name: str) -> Path:
        return self.checkpoints_dir / f"{name}.json"

    def save(self, name: str, agent: QLearningAgent) -> str:
        """Write the agent's export under ``name`` and return the file path."""
        checkpoint = {
            "name": name,
            "timestamp": datetime.now().isoformat(),
            "stats": agent.get_stats(),
            "agent": agent.export_table(),
        }
        checkpoint_file = self._path_for(name)
        with open(checkpoint_file, 'w') as f:
            json.dump(checkpoint, f, indent=2)
        return str(checkpoint_file)

    def load(self, name: str) -> Optional[Dict[str, Any]]:
        """Return the stored agent export, or None if it is missing or unreadable."""
        checkpoint_file = self._path_for(name)
        if not checkpoint_file.exists():
            return None

        try:
            with open(checkpoint_file, 'r') as f:
                data = json.load(f)
            return data["agent"]
        except (json.JSONDecodeError, KeyError, TypeError, OSError) as e:
            print(f"Error loading checkpoint {name}: {e}")
            return None

    def list_checkpoints(self) -> List[str]:
        """Checkpoint names, oldest first."""
        files = sorted(self.checkpoints_dir.glob("*.json"), key=lambda p: (p.stat().st_mtime, p.name))
        return [p.stem for p in files]

    def delete(self, name: str) -> bool:
        checkpoint_file = self._path_for(name)
        try:
            checkpoint_file.unlink()
        except FileNotFoundError:
            return False
        return True
