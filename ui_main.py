from __future__ import annotations
from typing import List, Optional, Sequence

from PySide6.QtCharts import QCategoryAxis, QChart, QChartView, QLineSeries, QValueAxis
from PySide6.QtCore import Qt
from PySide6.QtGui import QColor, QPainter, QPen
from PySide6.QtWidgets import (
    QComboBox,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QMainWindow,
    QPushButton,
    QVBoxLayout,
    QWidget,
)

from model import HISTORICAL, METRICS, ChartPoint, metric_display_name
from series import plot_series


# -----------------------
# Styling
# -----------------------
BASE_FONT = 14
TITLE_FONT = 24
MINITITLE_FONT = 14

ACTUAL_COLOR = "#8884d8"
FORECAST_COLOR = "#82ca9d"

DARK_QSS = f"""
QMainWindow, QWidget {{
  background-color: #000000;
  color: #ffffff;
  font-family: Segoe UI;
  font-size: {BASE_FONT}px;
}}

QLabel#Title {{
  font-size: {TITLE_FONT}px;
  font-weight: 700;
}}

QLabel#MiniTitle {{
  font-size: {MINITITLE_FONT}px;
  font-weight: 700;
}}

QLabel#Subtle {{ color: #d8d8d8; }}
QLabel#Error {{ color: #ff5c5c; }}

QLineEdit, QComboBox {{
  background-color: #000000;
  border: 1px solid #ffffff;
  border-radius: 0px;
  padding: 6px 8px;
}}

QPushButton#AnalyzeBtn {{
  background-color: #000000;
  border: 1px solid #ffffff;
  border-radius: 0px;
  padding: 8px 14px;
}}
QPushButton#AnalyzeBtn:hover {{ background-color: #101010; }}
QPushButton#AnalyzeBtn:pressed {{ background-color: #151515; }}
QPushButton#AnalyzeBtn:disabled {{ color: #777777; border-color: #777777; }}

QWidget#Card {{
  background-color: #000000;
  border: 1px solid #ffffff;
  border-radius: 0px;
}}
"""


def _line(name: str, color: str, dashed: bool = False, opacity: float = 1.0) -> QLineSeries:
    s = QLineSeries()
    s.setName(name)
    c = QColor(color)
    c.setAlphaF(opacity)
    pen = QPen(c, 2)
    if dashed:
        pen.setStyle(Qt.DashLine)
    s.setPen(pen)
    return s


# -----------------------
# Main Window
# -----------------------
class MainWindow(QMainWindow):
    def __init__(self):
        super().__init__()
        self.setWindowTitle("League of Legends Match Analyzer")
        self.resize(1100, 640)

        root = QWidget()
        self.setCentralWidget(root)

        title = QLabel("League of Legends Match Analyzer")
        title.setObjectName("Title")
        title.setAlignment(Qt.AlignCenter)

        self.name_input = QLineEdit()
        self.name_input.setPlaceholderText("Summoner Name")
        self.tag_input = QLineEdit()
        self.tag_input.setPlaceholderText("Player Tag")

        self.analyze_btn = QPushButton("Analyze Matches")
        self.analyze_btn.setObjectName("AnalyzeBtn")
        self.analyze_btn.clicked.connect(lambda: self.on_analyze())
        self.tag_input.returnPressed.connect(lambda: self.on_analyze())

        form = QHBoxLayout()
        form.addStretch(1)
        form.addWidget(self.name_input)
        form.addWidget(self.tag_input)
        form.addWidget(self.analyze_btn)
        form.addStretch(1)

        self.status = QLabel("")
        self.status.setObjectName("Subtle")
        self.status.setAlignment(Qt.AlignCenter)

        self.error = QLabel("")
        self.error.setObjectName("Error")
        self.error.setAlignment(Qt.AlignCenter)
        self.error.hide()

        # Chart card
        self.chart_card = QWidget()
        self.chart_card.setObjectName("Card")
        c_outer = QVBoxLayout(self.chart_card)
        c_outer.setContentsMargins(14, 10, 14, 12)
        c_outer.setSpacing(8)

        c_title = QLabel("Metric Analysis with Predictions")
        c_title.setObjectName("MiniTitle")
        c_outer.addWidget(c_title)

        self.metric_box = QComboBox()
        for metric in METRICS:
            self.metric_box.addItem(metric_display_name(metric), metric)
        c_outer.addWidget(self.metric_box)

        self.chart = QChart()
        self.chart.setTheme(QChart.ChartThemeDark)
        self.chart.legend().setAlignment(Qt.AlignBottom)
        self.chart_view = QChartView(self.chart)
        self.chart_view.setRenderHint(QPainter.Antialiasing)
        c_outer.addWidget(self.chart_view, 1)
        self.chart_card.hide()

        layout = QVBoxLayout(root)
        layout.setContentsMargins(14, 10, 14, 14)
        layout.setSpacing(6)
        layout.addWidget(title)
        layout.addLayout(form)
        layout.addWidget(self.status)
        layout.addWidget(self.error)
        layout.addWidget(self.chart_card, 1)

        self._analyze_callback = None

    def apply_theme(self):
        self.setStyleSheet(DARK_QSS)

    # -------------------
    # Callbacks
    # -------------------
    def set_analyze_callback(self, fn):
        self._analyze_callback = fn

    def set_metric_callback(self, fn):
        self.metric_box.currentIndexChanged.connect(lambda _i: fn(self.metric_box.currentData()))

    def on_analyze(self):
        if self._analyze_callback:
            self._analyze_callback(self.name_input.text(), self.tag_input.text())

    # -------------------
    # UI setters
    # -------------------
    def set_status(self, text: str):
        self.status.setText(text)

    def set_error(self, message: Optional[str]):
        self.error.setText(message or "")
        self.error.setVisible(bool(message))

    def set_loading(self, loading: bool):
        self.analyze_btn.setEnabled(not loading)
        self.analyze_btn.setText("Analyzing..." if loading else "Analyze Matches")

    def set_selected_metric(self, metric: str):
        idx = self.metric_box.findData(metric)
        if idx >= 0:
            self.metric_box.blockSignals(True)
            self.metric_box.setCurrentIndex(idx)
            self.metric_box.blockSignals(False)

    def set_chart(self, points: Sequence[ChartPoint], metric: str, show_forecast: bool):
        self.chart.removeAllSeries()
        for axis in self.chart.axes():
            self.chart.removeAxis(axis)

        has_history = any(p.kind == HISTORICAL for p in points)
        self.chart_card.setVisible(has_history)
        if not points:
            return

        xy = plot_series(points)
        lines = [("actual", _line("Actual Data", ACTUAL_COLOR))]
        if show_forecast:
            lines += [
                ("predicted", _line("Prediction", FORECAST_COLOR, dashed=True)),
                ("upper", _line("Upper Confidence", FORECAST_COLOR, dashed=True, opacity=0.3)),
                ("lower", _line("Lower Confidence", FORECAST_COLOR, dashed=True, opacity=0.3)),
            ]

        values: List[float] = []
        series: List[QLineSeries] = []
        for key, s in lines:
            for x, y in xy[key]:
                s.append(x, y)
                values.append(y)
            series.append(s)

        x_axis = QCategoryAxis()
        x_axis.setLabelsPosition(QCategoryAxis.AxisLabelsPositionOnValue)
        # QCategoryAxis needs unique labels; same-day games share a date
        seen = set()
        for p in points:
            label = p.label or str(p.index)
            while label in seen:
                label += " "
            seen.add(label)
            x_axis.append(label, p.index)
        x_axis.setRange(points[0].index, points[-1].index)

        y_axis = QValueAxis()
        y_axis.setTitleText(metric_display_name(metric))
        if values:
            lo, hi = min(values), max(values)
            pad = (hi - lo) * 0.1 or 1.0
            y_axis.setRange(lo - pad, hi + pad)

        self.chart.addAxis(x_axis, Qt.AlignBottom)
        self.chart.addAxis(y_axis, Qt.AlignLeft)
        for s in series:
            self.chart.addSeries(s)
            s.attachAxis(x_axis)
            s.attachAxis(y_axis)
