import json

import pytest

from crumbchase.domain.qlearning import QLearningAgent
from crumbchase.domain.types import QLearningConfig
from crumbchase.utils.checkpoint_manager import CheckpointManager
from crumbchase.utils.rng import SeededRNG


@pytest.fixture
def manager(tmp_path):
    return CheckpointManager(str(tmp_path / "nested" / "checkpoints"))


@pytest.fixture
def agent():
    agent = QLearningAgent(QLearningConfig(), SeededRNG(3))
    agent.get_q("0,2,0,0,0")[1] = 2.5
    agent.end_episode(10.0)
    return agent


def test_creates_directory(manager):
    assert manager.checkpoints_dir.is_dir()


def test_save_writes_metadata(manager, agent):
    path = manager.save("first", agent)
    with open(path) as f:
        data = json.load(f)
    assert data["name"] == "first"
    assert "timestamp" in data
    assert data["stats"]["episodes"] == 1
    assert data["agent"]["q_table"]["0,2,0,0,0"][1] == 2.5


def test_load_returns_agent_export(manager, agent):
    manager.save("first", agent)
    data = manager.load("first")
    assert data == json.loads(json.dumps(agent.export_table()))

    restored = QLearningAgent(QLearningConfig(), SeededRNG(4))
    assert restored.import_table(data)
    assert restored.get_stats() == agent.get_stats()


def test_load_missing_returns_none(manager):
    assert manager.load("nothing") is None


def test_load_corrupt_returns_none(manager, capsys):
    (manager.checkpoints_dir / "broken.json").write_text("{not json")
    assert manager.load("broken") is None
    assert "broken" in capsys.readouterr().out


def test_load_without_agent_section_returns_none(manager):
    (manager.checkpoints_dir / "empty.json").write_text("{}")
    assert manager.load("empty") is None


def test_list_and_delete(manager, agent):
    assert manager.list_checkpoints() == []
    manager.save("a", agent)
    manager.save("b", agent)
    assert sorted(manager.list_checkpoints()) == ["a", "b"]

    assert manager.delete("a")
    assert not manager.delete("a")
    assert manager.list_checkpoints() == ["b"]
