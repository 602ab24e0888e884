"""Application controller connecting the Qt UI to the simulation and learner."""

from typing import Optional
from PySide6.QtCore import QObject, QTimer, Signal

from ..domain.simulation import Simulation
from ..domain.qlearning import QLearningAgent
from ..domain.types import GameConfig, QLearningConfig, TrainingConfig, Snapshot
from ..utils.checkpoint_manager import CheckpointManager
from ..utils.rng import SeededRNG
from .fsm import SessionState
from .training import TrainingManager, EpisodeSummary

FRAME_INTERVAL_MS = 16  # ~60 Hz
FRAME_DT = 1 / 60


class GameController(QObject):
    """
    Owns the simulation and runs it from a 60 Hz timer.

    Signals:
        frame_ready: Emitted with a fresh Snapshot after every frame
        mode_changed: Emitted when the session state changes
        episode_completed: Emitted with an EpisodeSummary in agent modes
        message: Emitted with a short status line
    """

    frame_ready = Signal(object)  # Snapshot
    mode_changed = Signal(object)  # SessionState
    episode_completed = Signal(object)  # EpisodeSummary
    message = Signal(str)

    def __init__(self, seed: Optional[int] = None, config: Optional[GameConfig] = None,
                 checkpoints_dir: str = "training_checkpoints"):
        super().__init__()

        self._rng = SeededRNG(seed)
        self._simulation = Simulation(config or GameConfig(), self._rng)
        self._agent = QLearningAgent(QLearningConfig(), self._rng)
        self._training = TrainingManager(
            self._simulation, self._agent, TrainingConfig(),
            CheckpointManager(checkpoints_dir)
        )

        self._simulation.on_caught = self._on_caught
        self._simulation.on_level_complete = self._on_level_complete
        self._training.on_episode_end = self._on_episode_end

        self._timer = QTimer()
        self._timer.timeout.connect(self._on_timer_tick)
        self._timer.setInterval(FRAME_INTERVAL_MS)

    # Properties

    @property
    def simulation(self) -> Simulation:
        return self._simulation

    @property
    def training(self) -> TrainingManager:
        return self._training

    @property
    def mode(self) -> SessionState:
        return self._training.mode

    def snapshot(self) -> Snapshot:
        return self._simulation.snapshot()

    # Lifecycle

    def start(self):
        self._timer.start()

    def stop(self):
        self._timer.stop()

    def cleanup(self):
        """Stop the frame timer before Qt tears down."""
        if self._timer.isActive():
            self._timer.stop()

    # Human input

    def set_wish(self, dx: int, dy: int):
        if self._training.fsm.is_human():
            self._simulation.set_wish(dx, dy)

    def stop_seeker(self):
        if self._training.fsm.is_human():
            self._simulation.stop()

    def restart(self):
        """Restart from level 1 (a fresh episode in agent modes)."""
        if self._training.fsm.is_agent_driven():
            self._training.start_episode()
        else:
            self._simulation.reset(1)
        self.message.emit("Restarted")
        self.frame_ready.emit(self.snapshot())

    # Session control

    def set_mode(self, mode: SessionState) -> bool:
        if not self._training.set_mode(mode):
            return False
        self.mode_changed.emit(self.mode)
        self.frame_ready.emit(self.snapshot())
        return True

    def toggle_pause(self):
        if self._training.fsm.is_paused():
            changed = self._training.resume()
        else:
            changed = self._training.pause()
        if changed:
            self.mode_changed.emit(self.mode)

    def set_speed(self, speed: int):
        self._training.set_speed(speed)

    def save_agent(self, name: str):
        path = self._training.save(name)
        self.message.emit(f"Saved agent to {path}")

    def load_agent(self, name: str) -> bool:
        if self._training.load(name):
            self.message.emit(f"Loaded agent '{name}'")
            return True
        self.message.emit(f"Could not load agent '{name}'")
        return False

    def reset_agent(self):
        self._training.reset_agent()
        self.message.emit("Agent reset")

    def get_statistics(self) -> dict:
        stats = self._training.get_stats()
        game = self._simulation.get_stats()
        stats.update({
            "level": game.level,
            "survival_time": game.survival_time,
            "obstacle_count": game.obstacle_count,
            "hunter_speed": game.hunter_speed,
            "hunter_count": game.hunter_count,
        })
        return stats

    # Frame loop

    def _on_timer_tick(self):
        fsm = self._training.fsm
        if fsm.is_human():
            self._simulation.tick(FRAME_DT)
        elif fsm.is_agent_driven():
            self._training.update()
        self.frame_ready.emit(self.snapshot())

    # Simulation callbacks

    def _on_caught(self, level: int, survival_time: float):
        if self._training.fsm.is_human():
            self.message.emit(f"Caught on level {level} after {survival_time:.1f}s - press R to restart")

    def _on_level_complete(self, level: int, hunter_count: int):
        if self._training.fsm.is_human():
            self.message.emit(f"Level {level}: {hunter_count} hunter(s)")

    def _on_episode_end(self, summary: EpisodeSummary):
        self.episode_completed.emit(summary)
