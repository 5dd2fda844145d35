"""Sandbox canvas: QPainter rendering of the reference/perturbed pendulums."""

import math

from PyQt6.QtCore import Qt, QPointF
from PyQt6.QtGui import QPainter, QPen, QBrush, QColor, QPolygonF
from PyQt6.QtWidgets import QWidget

from simulation import positions, velocities

REFERENCE_COLOR = QColor(255, 255, 255)
PERTURBED_COLOR = QColor(239, 68, 68)
BACKGROUND_COLOR = QColor(10, 10, 11)


class SandboxCanvas(QWidget):
    """Draws the latest RenderSnapshot handed over by the simulation loop."""

    def __init__(self, parent=None):
        super().__init__(parent)
        self.snapshot = None
        self.show_velocity = True
        self.setMinimumSize(400, 400)

    def set_snapshot(self, snapshot):
        self.snapshot = snapshot
        self.update()

    def clear(self):
        self.snapshot = None
        self.update()

    def _scale(self):
        params = self.snapshot.params
        w, h = self.width(), self.height()
        total_length = params.l1 + params.l2
        return min(w, h) * 0.55 / max(total_length, 1.0)

    def _to_pixel(self, x, y):
        """Convert physics coords (y down) to pixel coords."""
        scale = self._scale()
        cx = self.width() / 2
        cy = self.height() / 2.5
        return cx + x * scale, cy + y * scale

    def _draw_arrow(self, painter, x0, y0, x1, y1, color):
        """Draw a single arrow from (x0,y0) to (x1,y1) in pixel coords."""
        dx, dy = x1 - x0, y1 - y0
        length = math.hypot(dx, dy)
        if length < 2:
            return
        pen = QPen(color)
        pen.setWidthF(2.0)
        painter.setPen(pen)
        painter.drawLine(QPointF(x0, y0), QPointF(x1, y1))

        head_size = min(8, length * 0.35)
        angle = math.atan2(dy, dx)
        for sign in [1, -1]:
            a = angle + math.pi - sign * math.radians(30)
            hx = x1 + head_size * math.cos(a)
            hy = y1 + head_size * math.sin(a)
            painter.drawLine(QPointF(x1, y1), QPointF(hx, hy))

    def _draw_trace(self, painter, trace, color, width, alpha):
        if len(trace) < 2:
            return
        trace_color = QColor(color)
        trace_color.setAlpha(alpha)
        pen = QPen(trace_color)
        pen.setWidthF(width)
        painter.setPen(pen)
        points = QPolygonF([QPointF(*self._to_pixel(x, y)) for x, y in trace])
        painter.drawPolyline(points)

    def _draw_system(self, painter, state, color):
        params = self.snapshot.params
        x1, y1, x2, y2 = positions(state, params)
        pivot_px = self._to_pixel(0, 0)
        bob1_px = self._to_pixel(x1, y1)
        bob2_px = self._to_pixel(x2, y2)

        # Rods
        arm_pen = QPen(color)
        arm_pen.setWidthF(3.0)
        painter.setPen(arm_pen)
        painter.drawLine(QPointF(*pivot_px), QPointF(*bob1_px))
        painter.drawLine(QPointF(*bob1_px), QPointF(*bob2_px))

        # Bobs
        painter.setPen(Qt.PenStyle.NoPen)
        painter.setBrush(QBrush(color))
        painter.drawEllipse(QPointF(*bob1_px), 6, 6)
        painter.drawEllipse(QPointF(*bob2_px), 10, 10)

        if self.show_velocity:
            vx1, vy1, vx2, vy2 = velocities(state, params)
            arrow_scale = 2.0 * self._scale()
            bx1, by1 = bob1_px
            bx2, by2 = bob2_px
            self._draw_arrow(painter, bx1, by1,
                             bx1 + vx1 * arrow_scale, by1 + vy1 * arrow_scale,
                             color)
            self._draw_arrow(painter, bx2, by2,
                             bx2 + vx2 * arrow_scale, by2 + vy2 * arrow_scale,
                             color)

    def paintEvent(self, event):
        painter = QPainter(self)
        painter.setRenderHint(QPainter.RenderHint.Antialiasing)
        painter.fillRect(self.rect(), BACKGROUND_COLOR)

        snap = self.snapshot
        if snap is None or not snap.valid:
            painter.end()
            return

        self._draw_trace(painter, snap.perturbed_trace, PERTURBED_COLOR, 3.0, 128)
        self._draw_trace(painter, snap.reference_trace, REFERENCE_COLOR, 1.0, 77)

        # Perturbed first so the reference is drawn on top
        self._draw_system(painter, snap.perturbed, PERTURBED_COLOR)
        self._draw_system(painter, snap.reference, REFERENCE_COLOR)

        painter.end()
