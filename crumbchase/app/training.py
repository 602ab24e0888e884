"""Training manager: runs the Q-Learning agent against the simulation."""

from collections import deque
from dataclasses import dataclass, field
from typing import Any, Callable, Deque, Dict, Optional, Tuple

from ..domain.qlearning import QLearningAgent, RECENT_WINDOW
from ..domain.simulation import Simulation
from ..domain.types import Observation, TrainingConfig
from ..utils.checkpoint_manager import CheckpointManager
from .fsm import SessionStateMachine, SessionState

OUTCOME_GOAL = "goal"
OUTCOME_CAUGHT = "caught"
OUTCOME_TIMEOUT = "timeout"

DEFAULT_CHECKPOINT = "crumbchase_agent"


@dataclass
class EpisodeSummary:
    """How one episode went."""
    number: int
    reward: float
    steps: int
    outcome: str
    epsilon: float
    info: Dict[str, Any] = field(default_factory=dict)


@dataclass
class TrainingReport:
    """Aggregate result of a headless training run."""
    episodes: int = 0
    wins: int = 0
    catches: int = 0
    timeouts: int = 0
    total_reward: float = 0.0
    total_steps: int = 0
    final_epsilon: float = 0.0
    q_table_size: int = 0
    recent_rewards: Deque[float] = field(default_factory=lambda: deque(maxlen=RECENT_WINDOW))
    recent_wins: Deque[int] = field(default_factory=lambda: deque(maxlen=RECENT_WINDOW))

    def record(self, summary: EpisodeSummary):
        self.episodes += 1
        self.total_reward += summary.reward
        self.total_steps += summary.steps
        won = summary.outcome == OUTCOME_GOAL
        if won:
            self.wins += 1
        elif summary.outcome == OUTCOME_CAUGHT:
            self.catches += 1
        else:
            self.timeouts += 1
        self.recent_rewards.append(summary.reward)
        self.recent_wins.append(1 if won else 0)

    @property
    def win_rate(self) -> float:
        return self.wins / self.episodes if self.episodes > 0 else 0.0

    @property
    def recent_win_rate(self) -> float:
        return sum(self.recent_wins) / len(self.recent_wins) if self.recent_wins else 0.0

    @property
    def average_reward(self) -> float:
        return self.total_reward / self.episodes if self.episodes > 0 else 0.0

    @property
    def recent_average_reward(self) -> float:
        return sum(self.recent_rewards) / len(self.recent_rewards) if self.recent_rewards else 0.0

    @property
    def average_steps(self) -> float:
        return self.total_steps / self.episodes if self.episodes > 0 else 0.0


class TrainingManager:
    """
    Drives the simulation with the agent in AI_PLAY or TRAINING mode.

    The simulation itself has no step ceiling; episodes that run for
    ``max_steps_per_episode`` steps are ended here as timeouts. Episodes
    restart automatically while the agent is in control.
    """

    def __init__(self, simulation: Simulation, agent: Optional[QLearningAgent] = None,
                 config: Optional[TrainingConfig] = None,
                 checkpoint_manager: Optional[CheckpointManager] = None):
        self.simulation = simulation
        self.agent = agent or QLearningAgent(rng=simulation.rng)
        self.config = config or TrainingConfig()
        self.checkpoint_manager = checkpoint_manager
        self.fsm = SessionStateMachine()

        self.speed = 1
        self.steps_per_frame = self.config.steps_per_frame
        self.observation: Optional[Observation] = None
        self.episode_reward = 0.0
        self.episode_steps = 0
        self.episode_count = 0
        self.last_episode: Optional[EpisodeSummary] = None

        self.on_episode_end: Optional[Callable[[EpisodeSummary], None]] = None

    @property
    def mode(self) -> SessionState:
        return self.fsm.current_state

    def set_mode(self, mode: SessionState) -> bool:
        """Switch who controls the seeker; restarts the game either way."""
        if mode == SessionState.PAUSED:
            return self.pause()
        if mode != self.fsm.current_state and not self.fsm.transition(mode):
            return False

        if mode == SessionState.HUMAN:
            self.simulation.reset(1)
            self.observation = None
            self.episode_reward = 0.0
            self.episode_steps = 0
        else:
            self.start_episode()
        return True

    def set_speed(self, speed: int):
        """Run ``speed`` agent steps per frame."""
        self.speed = max(1, int(speed))
        self.steps_per_frame = self.speed

    def pause(self) -> bool:
        return self.fsm.pause()

    def resume(self) -> bool:
        return self.fsm.resume()

    def start_episode(self):
        self.observation = self.simulation.reset(1)
        self.episode_reward = 0.0
        self.episode_steps = 0

    def step(self) -> Tuple[bool, Dict[str, Any]]:
        """One agent step. Returns (episode_done, info)."""
        if not self.fsm.is_agent_driven() or self.observation is None:
            return False, {}

        training = self.fsm.is_training()
        obs = self.observation
        action = self.agent.act(obs) if training else self.agent.best_action(obs)
        result = self.simulation.step(action, self.config.dt)

        if training:
            self.agent.learn(obs, action, result.reward, result.observation, result.done)

        self.observation = result.observation
        self.episode_reward += result.reward
        self.episode_steps += 1

        info = dict(result.info)
        if result.done or self.episode_steps >= self.config.max_steps_per_episode:
            if result.info.get("level_complete"):
                info["outcome"] = OUTCOME_GOAL
            elif result.info.get("caught"):
                info["outcome"] = OUTCOME_CAUGHT
            else:
                info["outcome"] = OUTCOME_TIMEOUT
            self.end_episode(info)
            return True, info

        return False, info

    def end_episode(self, info: Dict[str, Any]):
        """Record the finished episode and start the next one."""
        if self.fsm.is_training():
            self.agent.end_episode(self.episode_reward)

        self.episode_count += 1
        summary = EpisodeSummary(
            number=self.episode_count,
            reward=self.episode_reward,
            steps=self.episode_steps,
            outcome=info.get("outcome", OUTCOME_TIMEOUT),
            epsilon=self.agent.epsilon,
            info=info,
        )
        self.last_episode = summary

        if self.on_episode_end:
            self.on_episode_end(summary)

        if self.fsm.is_agent_driven():
            self.start_episode()

    def update(self) -> int:
        """Per-frame hook. Returns how many episodes finished."""
        if self.fsm.is_human() or self.fsm.is_paused():
            return 0

        finished = 0
        for _ in range(self.steps_per_frame):
            done, _info = self.step()
            if done:
                finished += 1
        return finished

    def get_stats(self) -> Dict[str, Any]:
        stats = {
            "mode": self.mode.name,
            "speed": self.speed,
            "episode_reward": self.episode_reward,
            "episode_steps": self.episode_steps,
        }
        stats.update(self.agent.get_stats())
        return stats

    # Persistence

    def _checkpoints(self) -> CheckpointManager:
        if self.checkpoint_manager is None:
            self.checkpoint_manager = CheckpointManager()
        return self.checkpoint_manager

    def save(self, name: str = DEFAULT_CHECKPOINT) -> str:
        return self._checkpoints().save(name, self.agent)

    def load(self, name: str = DEFAULT_CHECKPOINT) -> bool:
        """Restore the agent from a checkpoint; False leaves it unchanged."""
        data = self._checkpoints().load(name)
        if data is None:
            return False
        return self.agent.import_table(data)

    def reset_agent(self):
        """Clear all learning."""
        self.agent.reset()
        if self.fsm.is_agent_driven():
            self.start_episode()

    # Headless

    def run_headless(self, episodes: int, verbose: bool = True) -> TrainingReport:
        """Train for ``episodes`` full episodes as fast as possible."""
        report = TrainingReport()
        self.set_mode(SessionState.TRAINING)

        while report.episodes < episodes:
            done, _info = self.step()
            if not done:
                continue
            report.record(self.last_episode)

            if verbose and report.episodes % self.config.report_interval == 0:
                print(f"📈 Episode {report.episodes}/{episodes} | "
                      f"Avg Reward: {report.recent_average_reward:.1f} | "
                      f"Win Rate: {report.recent_win_rate:.1%} | "
                      f"Epsilon: {self.agent.epsilon:.3f} | "
                      f"Q-States: {len(self.agent.q_table)} | "
                      f"Avg Steps: {report.average_steps:.0f}")

        report.final_epsilon = self.agent.epsilon
        report.q_table_size = len(self.agent.q_table)
        return report
