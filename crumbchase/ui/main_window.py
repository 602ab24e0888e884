"""Main window for the Crumb Chase game and trainer."""

from PySide6.QtWidgets import (
    QMainWindow, QVBoxLayout, QHBoxLayout, QWidget, QPushButton,
    QLabel, QComboBox, QStatusBar, QGroupBox, QLineEdit, QFormLayout
)
from PySide6.QtCore import Qt
from PySide6.QtGui import QKeyEvent, QCloseEvent

from ..app.controller import GameController
from ..app.fsm import SessionState
from ..app.training import EpisodeSummary, DEFAULT_CHECKPOINT
from .game_view import GameView

SPEEDS = (1, 2, 5, 10, 50)

MODE_LABELS = (
    ("Human", SessionState.HUMAN),
    ("AI Play", SessionState.AI_PLAY),
    ("Train", SessionState.TRAINING),
)

DIRECTION_KEYS = {
    Qt.Key_Left: (-1, 0), Qt.Key_A: (-1, 0),
    Qt.Key_Right: (1, 0), Qt.Key_D: (1, 0),
    Qt.Key_Up: (0, -1), Qt.Key_W: (0, -1),
    Qt.Key_Down: (0, 1), Qt.Key_S: (0, 1),
}


class MainWindow(QMainWindow):
    """Main application window: game view on the left, controls and stats on the right."""

    def __init__(self, controller: GameController):
        super().__init__()
        self.controller = controller

        self.setWindowTitle("Crumb Chase")
        self.setMinimumSize(1100, 600)
        self.setFocusPolicy(Qt.StrongFocus)

        self._create_ui()
        self._setup_connections()
        self.game_view.set_snapshot(self.controller.snapshot())
        self._update_statistics_display()

    def _create_ui(self):
        central_widget = QWidget()
        self.setCentralWidget(central_widget)
        main_layout = QHBoxLayout(central_widget)

        self.game_view = GameView()
        main_layout.addWidget(self.game_view, 3)

        side_layout = QVBoxLayout()
        side_layout.addWidget(self._create_controls())
        side_layout.addWidget(self._create_statistics_panel())
        side_layout.addStretch()
        main_layout.addLayout(side_layout, 1)

        self.status_bar = QStatusBar()
        self.setStatusBar(self.status_bar)
        self.status_bar.showMessage(self.controller.training.fsm.get_state_description())

    def _create_controls(self) -> QGroupBox:
        group = QGroupBox("Session")
        layout = QVBoxLayout(group)

        form = QFormLayout()
        self.mode_combo = QComboBox()
        for label, _mode in MODE_LABELS:
            self.mode_combo.addItem(label)
        form.addRow("Mode:", self.mode_combo)

        self.speed_combo = QComboBox()
        for speed in SPEEDS:
            self.speed_combo.addItem(f"{speed}x", speed)
        form.addRow("Speed:", self.speed_combo)

        self.checkpoint_edit = QLineEdit(DEFAULT_CHECKPOINT)
        form.addRow("Checkpoint:", self.checkpoint_edit)
        layout.addLayout(form)

        buttons = QHBoxLayout()
        self.pause_btn = QPushButton("Pause")
        self.save_btn = QPushButton("Save")
        self.load_btn = QPushButton("Load")
        self.reset_agent_btn = QPushButton("Reset Agent")
        for btn in (self.pause_btn, self.save_btn, self.load_btn, self.reset_agent_btn):
            btn.setFocusPolicy(Qt.NoFocus)
            buttons.addWidget(btn)
        layout.addLayout(buttons)

        for widget in (self.mode_combo, self.speed_combo):
            widget.setFocusPolicy(Qt.NoFocus)

        return group

    def _create_statistics_panel(self) -> QGroupBox:
        group = QGroupBox("Statistics")
        layout = QFormLayout(group)
        self.stat_labels = {}
        for key, label in (
            ("level", "Level"),
            ("survival_time", "Survival"),
            ("obstacle_count", "Crumbs"),
            ("hunter_count", "Hunters"),
            ("hunter_speed", "Hunter speed"),
            ("episodes", "Episodes"),
            ("epsilon", "Epsilon"),
            ("recent_avg_reward", "Avg reward (100)"),
            ("best_reward", "Best reward"),
            ("q_table_size", "Q-States"),
        ):
            value = QLabel("-")
            value.setAlignment(Qt.AlignRight)
            layout.addRow(f"{label}:", value)
            self.stat_labels[key] = value

        self.last_episode_label = QLabel("-")
        layout.addRow("Last episode:", self.last_episode_label)
        return group

    def _setup_connections(self):
        self.controller.frame_ready.connect(self._on_frame_ready)
        self.controller.mode_changed.connect(self._on_mode_changed)
        self.controller.episode_completed.connect(self._on_episode_completed)
        self.controller.message.connect(self.status_bar.showMessage)

        self.mode_combo.currentIndexChanged.connect(self._on_mode_selected)
        self.speed_combo.currentIndexChanged.connect(
            lambda _i: self.controller.set_speed(self.speed_combo.currentData())
        )
        self.pause_btn.clicked.connect(self.controller.toggle_pause)
        self.save_btn.clicked.connect(
            lambda: self.controller.save_agent(self.checkpoint_edit.text() or DEFAULT_CHECKPOINT)
        )
        self.load_btn.clicked.connect(
            lambda: self.controller.load_agent(self.checkpoint_edit.text() or DEFAULT_CHECKPOINT)
        )
        self.reset_agent_btn.clicked.connect(self.controller.reset_agent)

    # Slots

    def _on_mode_selected(self, index: int):
        _label, mode = MODE_LABELS[index]
        self.controller.set_mode(mode)

    def _on_frame_ready(self, snapshot):
        self.game_view.set_snapshot(snapshot)
        self._update_statistics_display()

    def _on_mode_changed(self, mode: SessionState):
        self.pause_btn.setText("Resume" if mode == SessionState.PAUSED else "Pause")
        self.status_bar.showMessage(self.controller.training.fsm.get_state_description())

    def _on_episode_completed(self, summary: EpisodeSummary):
        self.last_episode_label.setText(
            f"#{summary.number} {summary.outcome} ({summary.reward:.1f}, {summary.steps} steps)"
        )

    def _update_statistics_display(self):
        stats = self.controller.get_statistics()
        for key, label in self.stat_labels.items():
            value = stats.get(key)
            if isinstance(value, float):
                label.setText(f"{value:.2f}")
            else:
                label.setText(str(value))

    # Keyboard

    def keyPressEvent(self, event: QKeyEvent):
        key = event.key()
        if key in DIRECTION_KEYS:
            self.controller.set_wish(*DIRECTION_KEYS[key])
        elif key == Qt.Key_Space:
            self.controller.stop_seeker()
        elif key == Qt.Key_R:
            self.controller.restart()
        elif key == Qt.Key_P:
            self.controller.toggle_pause()
        elif key == Qt.Key_Shift:
            self.game_view.set_show_paths(True)
        else:
            super().keyPressEvent(event)

    def keyReleaseEvent(self, event: QKeyEvent):
        if event.key() == Qt.Key_Shift:
            self.game_view.set_show_paths(False)
        else:
            super().keyReleaseEvent(event)

    def closeEvent(self, event: QCloseEvent):
        self.controller.cleanup()
        event.accept()
