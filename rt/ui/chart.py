"""Lap-time line chart: one series per runner, lap number on x, lap duration on y."""

from PySide6.QtCharts import QCategoryAxis, QChart, QChartView, QLineSeries, QValueAxis
from PySide6.QtCore import Qt
from PySide6.QtGui import QColor, QFont, QPainter, QPen

from rt.core.stats import lap_series
from rt.ui.theme import CHART_COLORS
from rt.util import format_time_axis

# Candidate y-axis steps in ms. The first one giving at most _MAX_Y_TICKS ticks is used, which keeps every
# M:SS label distinct.
_Y_STEPS = [1000, 2000, 5000, 10000, 15000, 30000, 60000, 120000, 300000, 600000]
_MAX_Y_TICKS = 8


def _y_step(max_ms):
    for step in _Y_STEPS:
        if max_ms / step <= _MAX_Y_TICKS:
            return step
    return _Y_STEPS[-1]


class LapChartView(QChartView):

    def __init__(self, parent=None):
        super().__init__(parent)
        self.setRenderHint(QPainter.Antialiasing)
        self.setMinimumHeight(260)

    def refresh(self, runners, theme, font_family, runner_id=None):
        """Rebuild the chart from scratch for the given runners and filter."""
        points = lap_series(runners, runner_id)
        names = {r.id: r.name for r in runners}

        chart = QChart()
        chart.setBackgroundBrush(QColor(theme["panel_bg"]))
        chart.setTitleBrush(QColor(theme["text"]))
        chart.legend().setLabelColor(QColor(theme["text"]))
        chart.legend().setAlignment(Qt.AlignBottom)
        chart.legend().setFont(QFont(font_family, 9))

        if not points:
            chart.setTitle("No splits recorded yet")
            self.setChart(chart)
            return

        series_by_runner = {}
        max_lap = 0
        for point in points:
            for rid, lap_ms in point.values.items():
                if rid not in series_by_runner:
                    s = QLineSeries()
                    s.setName(names.get(rid, f"Runner {rid}"))
                    color = QColor(CHART_COLORS[len(series_by_runner) % len(CHART_COLORS)])
                    s.setPen(QPen(color, 2))
                    s.setPointsVisible(True)
                    series_by_runner[rid] = s
                # Missing laps are left out of the series, never drawn as zero
                series_by_runner[rid].append(point.lap, lap_ms)
                max_lap = max(max_lap, lap_ms)

        x_axis = QValueAxis()
        x_axis.setRange(1, max(len(points), 2))
        x_axis.setTickCount(min(max(len(points), 2), 12))
        x_axis.setLabelFormat("%d")
        x_axis.setTitleText("Lap")

        step = _y_step(max_lap)
        top = (max_lap // step + 1) * step
        y_axis = QCategoryAxis()
        y_axis.setLabelsPosition(QCategoryAxis.AxisLabelsPositionOnValue)
        y_axis.setRange(0, top)
        for tick in range(0, top + 1, step):
            y_axis.append(format_time_axis(tick), tick)
        y_axis.setTitleText("Lap time")

        for axis in (x_axis, y_axis):
            axis.setLabelsColor(QColor(theme["muted_text"]))
            axis.setTitleBrush(QColor(theme["muted_text"]))
            axis.setLabelsFont(QFont(font_family, 9))
            axis.setGridLineColor(QColor(theme["separator"]))
        chart.addAxis(x_axis, Qt.AlignBottom)
        chart.addAxis(y_axis, Qt.AlignLeft)

        for s in series_by_runner.values():
            chart.addSeries(s)
            s.attachAxis(x_axis)
            s.attachAxis(y_axis)

        self.setChart(chart)
