#!/usr/bin/env python3
"""
Headless training script for the Crumb Chase seeker agent.
Runs the real simulation without a window, reports progress and analyzes the
learned Q-table.
"""

import sys
import argparse
from collections import Counter
from typing import Dict

from crumbchase.app.training import TrainingManager, TrainingReport
from crumbchase.domain.qlearning import QLearningAgent
from crumbchase.domain.simulation import Simulation
from crumbchase.domain.types import GameConfig, QLearningConfig, TrainingConfig, ACTION_NAMES
from crumbchase.utils.checkpoint_manager import CheckpointManager
from crumbchase.utils.rng import SeededRNG

GOAL_DIR_NAMES = ['←', '↖', '↑', '↗', '→', '↘', '↓', '↙']
DANGER_NAMES = ['DANGER', 'caution', 'safe']


def analyze_agent(agent: QLearningAgent):
    """Summarize the table by goal direction and danger tier."""
    print("\n🔍 Q-Table Analysis")
    print("=" * 50)

    by_goal: Dict[int, list] = {}
    by_danger: Dict[int, list] = {}
    for key, q in agent.q_table.items():
        goal_dir, tier = (int(part) for part in key.split(",")[:2])
        best = int(q.argmax())
        by_goal.setdefault(goal_dir, []).append((float(q.max()), best))
        by_danger.setdefault(tier, []).append((float(q.max()), best))

    def describe(entries):
        avg_q = sum(value for value, _ in entries) / len(entries)
        action, count = Counter(best for _, best in entries).most_common(1)[0]
        return f"{len(entries)} states, avgQ={avg_q:.2f}, most common: {ACTION_NAMES[action]} ({count})"

    print("By goal direction:")
    for octant in sorted(by_goal):
        print(f"   {GOAL_DIR_NAMES[octant]} ({octant}): {describe(by_goal[octant])}")

    print("By hunter danger:")
    for tier in sorted(by_danger):
        print(f"   {DANGER_NAMES[tier]}: {describe(by_danger[tier])}")


def print_summary(report: TrainingReport):
    print(f"\n🎉 Training completed!")
    print(f"   Total episodes: {report.episodes}")
    print(f"   Wins: {report.wins} ({report.win_rate:.1%})")
    print(f"   Caught: {report.catches}")
    print(f"   Timeouts: {report.timeouts}")
    print(f"   Avg reward (last 100): {report.recent_average_reward:.1f}")
    print(f"   Win rate (last 100): {report.recent_win_rate:.1%}")
    print(f"   Final epsilon: {report.final_epsilon:.3f}")
    print(f"   Q-table size: {report.q_table_size}")
    print(f"   Avg steps/episode: {report.average_steps:.0f}")


def main():
    parser = argparse.ArgumentParser(description="Headless Q-Learning training for Crumb Chase")
    parser.add_argument("--episodes", type=int, default=500, help="Number of episodes to train")
    parser.add_argument("--seed", type=int, default=None, help="Seed for the random source")
    parser.add_argument("--max-steps", type=int, default=2000, help="Step limit per episode")
    parser.add_argument("--dt", type=float, default=1 / 60, help="Simulated seconds per step")
    parser.add_argument("--save", type=str, help="Checkpoint name to save the agent under")
    parser.add_argument("--load", type=str, help="Checkpoint name to continue from")
    parser.add_argument("--checkpoint-dir", type=str, default="training_checkpoints",
                        help="Directory for checkpoints")
    parser.add_argument("--quiet", action="store_true", help="Only print the summary")

    args = parser.parse_args()

    if args.episodes < 1 or args.max_steps < 1 or args.dt <= 0:
        parser.error("--episodes and --max-steps must be positive and --dt greater than 0")

    print("🧠 Crumb Chase Headless Training")
    print("=" * 50)

    rng = SeededRNG(args.seed)
    simulation = Simulation(GameConfig(), rng)
    agent = QLearningAgent(QLearningConfig(), rng)
    training_config = TrainingConfig(max_steps_per_episode=args.max_steps, dt=args.dt)
    checkpoints = CheckpointManager(args.checkpoint_dir)
    manager = TrainingManager(simulation, agent, training_config, checkpoints)

    if args.load:
        print(f"📂 Loading checkpoint: {args.load}")
        if manager.load(args.load):
            print(f"✅ Checkpoint loaded: {agent.episodes} episodes, epsilon {agent.epsilon:.3f}")
        else:
            print("❌ Failed to load checkpoint. Starting fresh.")

    print(f"\n⚙️  Training Configuration:")
    print(f"   Episodes: {args.episodes}")
    print(f"   Seed: {args.seed}")
    print(f"   Max steps/episode: {args.max_steps}")
    print(f"   dt: {args.dt:.4f}s")
    print(f"   Learning rate: {agent.learning_rate}")
    print(f"   Epsilon: {agent.epsilon} → {agent.epsilon_min}")

    print(f"\n🚀 Starting training...")
    try:
        report = manager.run_headless(args.episodes, verbose=not args.quiet)
    except KeyboardInterrupt:
        print(f"\n⏹️  Training interrupted by user")
        return 1

    print_summary(report)
    if not args.quiet:
        analyze_agent(agent)

    if args.save:
        path = manager.save(args.save)
        print(f"\n✅ Checkpoint saved: {args.save} -> {path}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
