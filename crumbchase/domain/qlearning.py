"""Tabular Q-Learning agent for the seeker."""

import math
from collections import deque
from typing import Any, Dict, List, Optional

import numpy as np

from .types import Observation, QLearningConfig
from ..utils.rng import SeededRNG

# Nearest-hunter distance thresholds (normalized) for the danger tiers
DANGER_CLOSE = 0.08
DANGER_NEAR = 0.2
SAFE_TIER = 2

# A hunter counts as "blocking" when it lies roughly along the goal heading
BLOCKING_ALIGNMENT = 0.3
BLOCKING_DISTANCE_RATIO = 1.5

RECENT_WINDOW = 100

HYPERPARAMETERS = ("learning_rate", "discount_factor", "epsilon", "epsilon_decay", "epsilon_min")


def direction_octant(dx: float, dy: float) -> int:
    """Bucket a direction into one of 8 octants."""
    return int(round((math.atan2(dy, dx) + math.pi) / (math.pi / 4))) % 8


def danger_tier(dist_to_hunter: float) -> int:
    if dist_to_hunter < DANGER_CLOSE:
        return 0
    if dist_to_hunter < DANGER_NEAR:
        return 1
    return SAFE_TIER


class QLearningAgent:
    """
    Q-Learning agent over a discretized view of the observation.

    The table maps a small composite state key to a numpy vector of action
    values that is created lazily, with a little random noise so unvisited
    actions do not tie.
    """

    def __init__(self, config: Optional[QLearningConfig] = None, rng: Optional[SeededRNG] = None):
        self.config = config or QLearningConfig()
        self.rng = rng or SeededRNG()
        self.num_actions = self.config.num_actions
        self.learning_rate = self.config.learning_rate
        self.discount_factor = self.config.discount_factor
        self.epsilon = self.config.epsilon
        self.epsilon_decay = self.config.epsilon_decay
        self.epsilon_min = self.config.epsilon_min

        self.q_table: Dict[str, np.ndarray] = {}
        self.episodes = 0
        self.total_reward = 0.0
        self.best_reward = -math.inf
        self.recent_rewards: deque = deque(maxlen=RECENT_WINDOW)

    def reset(self):
        """Forget everything learned and restore the configured hyperparameters."""
        self.learning_rate = self.config.learning_rate
        self.discount_factor = self.config.discount_factor
        self.epsilon = self.config.epsilon
        self.epsilon_decay = self.config.epsilon_decay
        self.epsilon_min = self.config.epsilon_min
        self.q_table.clear()
        self.episodes = 0
        self.total_reward = 0.0
        self.best_reward = -math.inf
        self.recent_rewards.clear()

    # State discretization

    def state_key(self, obs: Observation) -> str:
        goal_dir = direction_octant(obs.dir_to_goal_x, obs.dir_to_goal_y)
        tier = danger_tier(obs.dist_to_hunter)
        hunter_dir = 0
        if tier < SAFE_TIER:
            hunter_dir = direction_octant(obs.dir_to_hunter_x, obs.dir_to_hunter_y)

        alignment = (obs.dir_to_goal_x * obs.dir_to_hunter_x
                     + obs.dir_to_goal_y * obs.dir_to_hunter_y)
        blocking = int(alignment > BLOCKING_ALIGNMENT
                       and obs.dist_to_hunter < obs.dist_to_goal * BLOCKING_DISTANCE_RATIO)

        mask = ((obs.obstacle_up << 3) | (obs.obstacle_down << 2)
                | (obs.obstacle_left << 1) | obs.obstacle_right)

        return f"{goal_dir},{tier},{hunter_dir},{blocking},{mask}"

    # Table access

    def get_q(self, key: str) -> np.ndarray:
        """Action values for a key; created on first access."""
        q = self.q_table.get(key)
        if q is None:
            noise = self.config.init_noise
            q = np.array([self.rng.random() * noise for _ in range(self.num_actions)],
                         dtype=np.float64)
            self.q_table[key] = q
        return q

    def best_action(self, obs: Observation) -> int:
        """Greedy action; ties go to the lowest index."""
        return int(np.argmax(self.get_q(self.state_key(obs))))

    def act(self, obs: Observation) -> int:
        """Epsilon-greedy action selection."""
        if self.rng.random() < self.epsilon:
            return self.rng.randint(0, self.num_actions - 1)
        return self.best_action(obs)

    def learn(self, obs: Observation, action: int, reward: float,
              next_obs: Observation, done: bool):
        """One temporal-difference update."""
        q = self.get_q(self.state_key(obs))
        if done:
            target = reward
        else:
            next_q = self.get_q(self.state_key(next_obs))
            target = reward + self.discount_factor * float(np.max(next_q))
        q[action] += self.learning_rate * (target - q[action])

    def end_episode(self, total_reward: float):
        """Record an episode's return and decay epsilon."""
        self.episodes += 1
        self.total_reward += total_reward
        self.best_reward = max(self.best_reward, total_reward)
        self.recent_rewards.append(total_reward)
        self.epsilon = max(self.epsilon_min, self.epsilon * self.epsilon_decay)

    def get_stats(self) -> Dict[str, Any]:
        recent = list(self.recent_rewards)
        return {
            "episodes": self.episodes,
            "epsilon": self.epsilon,
            "avg_reward": self.total_reward / self.episodes if self.episodes else 0.0,
            "recent_avg_reward": sum(recent) / len(recent) if recent else 0.0,
            "best_reward": self.best_reward if self.episodes else 0.0,
            "q_table_size": len(self.q_table),
        }

    # Persistence

    def export_table(self) -> Dict[str, Any]:
        """Plain-data copy of hyperparameters, statistics and the table."""
        return {
            "learning_rate": self.learning_rate,
            "discount_factor": self.discount_factor,
            "epsilon": self.epsilon,
            "epsilon_decay": self.epsilon_decay,
            "epsilon_min": self.epsilon_min,
            "num_actions": self.num_actions,
            "episodes": self.episodes,
            "total_reward": self.total_reward,
            "best_reward": self.best_reward if self.episodes else None,
            "recent_rewards": list(self.recent_rewards),
            "q_table": {key: q.tolist() for key, q in self.q_table.items()},
        }

    def import_table(self, data: Dict[str, Any]) -> bool:
        """
        Load an exported payload. Missing hyperparameters keep their current
        values. Returns False and leaves the agent untouched when the payload
        is malformed.
        """
        try:
            params = {}
            for name in HYPERPARAMETERS:
                if name in data:
                    params[name] = float(data[name])

            table = None
            if "q_table" in data:
                table = {}
                for key, values in data["q_table"].items():
                    q = np.array(values, dtype=np.float64)
                    if q.shape != (self.num_actions,) or np.isnan(q).any():
                        raise ValueError(f"Bad Q-values for state {key!r}")
                    table[str(key)] = q

            episodes = int(data.get("episodes", self.episodes))
            total_reward = float(data.get("total_reward", self.total_reward))
            best_reward = self.best_reward
            if "best_reward" in data:
                best = data["best_reward"]
                best_reward = -math.inf if best is None else float(best)
            recent: List[float] = list(self.recent_rewards)
            if "recent_rewards" in data:
                recent = [float(r) for r in data["recent_rewards"]]
        except (TypeError, ValueError, KeyError, AttributeError):
            return False

        for name, value in params.items():
            setattr(self, name, value)
        if table is not None:
            self.q_table = table
        self.episodes = episodes
        self.total_reward = total_reward
        self.best_reward = best_reward
        self.recent_rewards = deque(recent[-RECENT_WINDOW:], maxlen=RECENT_WINDOW)
        return True
