"""Widget that paints a simulation snapshot."""

from typing import Optional
from PySide6.QtWidgets import QWidget
from PySide6.QtGui import QPainter, QColor, QPen, QBrush, QPaintEvent
from PySide6.QtCore import Qt, QRectF, QPointF

from ..domain.types import Snapshot, SimState

BACKGROUND_COLOR = QColor(12, 12, 16)
GRID_LINE_COLOR = QColor(255, 255, 255, 10)
CRUMB_COLOR = QColor(214, 170, 96)
GOAL_COLOR = QColor(5, 5, 5)
GOAL_RIM_COLOR = QColor(255, 255, 255, 215)
SEEKER_COLOR = QColor(190, 190, 200)
HUNTER_COLOR = QColor(235, 140, 60)
PATH_COLOR = QColor(122, 162, 255, 190)
EYE_COLOR = QColor(0, 0, 0, 220)


class GameView(QWidget):
    """Paints obstacles, the goal, the seeker and the hunters."""

    def __init__(self, parent: Optional[QWidget] = None):
        super().__init__(parent)
        self.snapshot: Optional[Snapshot] = None
        self.show_paths = False
        self.setFocusPolicy(Qt.NoFocus)
        self.setMinimumSize(400, 250)

    def set_snapshot(self, snapshot: Snapshot):
        self.snapshot = snapshot
        self.update()

    def set_show_paths(self, show: bool):
        self.show_paths = show
        self.update()

    def _scale(self) -> float:
        """Pixels on screen per simulation pixel, keeping the aspect ratio."""
        snap = self.snapshot
        world_w = snap.cols * snap.tile
        world_h = snap.rows * snap.tile
        return min(self.width() / world_w, self.height() / world_h)

    def paintEvent(self, event: QPaintEvent):
        painter = QPainter(self)
        painter.setRenderHint(QPainter.Antialiasing)
        painter.fillRect(self.rect(), BACKGROUND_COLOR)

        snap = self.snapshot
        if snap is None:
            painter.end()
            return

        s = self._scale()
        painter.scale(s, s)
        tile = snap.tile

        self._draw_grid(painter, snap)
        self._draw_crumbs(painter, snap)

        # Goal hole
        painter.setPen(QPen(GOAL_RIM_COLOR, 1.5))
        painter.setBrush(QBrush(GOAL_COLOR))
        for c, r in snap.goal_cells:
            painter.drawRect(QRectF(c * tile, r * tile, tile, tile))

        if self.show_paths:
            self._draw_paths(painter, snap)

        self._draw_seeker(painter, snap)
        for hunter in snap.hunters:
            self._draw_body(painter, hunter.x, hunter.y, hunter.radius, HUNTER_COLOR)

        if snap.state == SimState.TERMINATED:
            painter.resetTransform()
            painter.fillRect(self.rect(), QColor(0, 0, 0, 120))
            painter.setPen(QColor(255, 255, 255))
            painter.drawText(self.rect(), Qt.AlignCenter, "Caught! Press R to restart")

        painter.end()

    def _draw_grid(self, painter: QPainter, snap: Snapshot):
        painter.setPen(QPen(GRID_LINE_COLOR, 1))
        width = snap.cols * snap.tile
        height = snap.rows * snap.tile
        for c in range(snap.cols + 1):
            painter.drawLine(QPointF(c * snap.tile, 0), QPointF(c * snap.tile, height))
        for r in range(snap.rows + 1):
            painter.drawLine(QPointF(0, r * snap.tile), QPointF(width, r * snap.tile))

    def _draw_crumbs(self, painter: QPainter, snap: Snapshot):
        painter.setPen(Qt.NoPen)
        tile = snap.tile
        strongest = max(1.0, float(snap.obstacles.max()) if snap.obstacles.size else 1.0)
        for k in snap.obstacles.nonzero()[0]:
            r, c = divmod(int(k), snap.cols)
            color = QColor(CRUMB_COLOR)
            color.setAlpha(int(110 + 145 * min(1.0, snap.obstacles[k] / strongest)))
            painter.setBrush(QBrush(color))
            painter.drawRoundedRect(QRectF(c * tile + 1, r * tile + 1, tile - 2, tile - 2), 3, 3)

    def _draw_paths(self, painter: QPainter, snap: Snapshot):
        tile = snap.tile
        painter.setBrush(Qt.NoBrush)
        painter.setPen(QPen(PATH_COLOR, 2))
        for hunter in snap.hunters:
            prev = QPointF(hunter.x, hunter.y)
            for c, r in hunter.path:
                point = QPointF((c + 0.5) * tile, (r + 0.5) * tile)
                painter.drawLine(prev, point)
                prev = point

    def _draw_seeker(self, painter: QPainter, snap: Snapshot):
        seeker = snap.seeker
        self._draw_body(painter, seeker.x, seeker.y, seeker.radius, SEEKER_COLOR)

        # Eyes look where it is heading
        r = seeker.radius
        look_x = seeker.dir_x * r * 0.15
        look_y = seeker.dir_y * r * 0.15
        painter.setPen(Qt.NoPen)
        painter.setBrush(QBrush(EYE_COLOR))
        for side in (-1, 1):
            center = QPointF(seeker.x + side * r * 0.38 + look_x, seeker.y - r * 0.36 + look_y)
            painter.drawEllipse(center, r * 0.22, r * 0.22)

    def _draw_body(self, painter: QPainter, x: float, y: float, radius: float, color: QColor):
        painter.setPen(QPen(color.darker(160), 1))
        painter.setBrush(QBrush(color))
        painter.drawEllipse(QPointF(x, y), radius, radius)
