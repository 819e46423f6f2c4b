"""Theme colors and stylesheet generation."""

THEMES = {
    "Track Light": {
        "bg": "#F8FAFC",
        "panel_bg": "#FFFFFF",
        "text": "#1E293B",
        "muted_text": "#64748B",
        "button_bg": "#E2E8F0",
        "button_text": "#1E293B",
        "button_active": "#CBD5E1",
        "border": 1,
        "separator": "#CBD5E1",
        "running_text": "#16A34A",
        "finished_bg": "#F1F5F9",
        "best_lap": "#7C3AED",
        "pace_on": "#DCFCE7",
        "pace_off": "#FEE2E2",
        "finish_row": "#FEF3C7",
        "podium": ["#CA8A04", "#64748B", "#C2410C"],
    },
    "Stadium Dark": {
        "bg": "#0F172A",
        "panel_bg": "#1E293B",
        "text": "#E2E8F0",
        "muted_text": "#94A3B8",
        "button_bg": "#334155",
        "button_text": "#F1F5F9",
        "button_active": "#475569",
        "border": 1,
        "separator": "#475569",
        "running_text": "#4ADE80",
        "finished_bg": "#172033",
        "best_lap": "#C4B5FD",
        "pace_on": "#14532D",
        "pace_off": "#7F1D1D",
        "finish_row": "#713F12",
        "podium": ["#FACC15", "#CBD5E1", "#FB923C"],
    },
}

DEFAULT_THEME = "Track Light"

FONTS = ["Segoe UI", "Calibri", "Arial", "Verdana"]

# Line colors for the lap chart, cycled per runner.
CHART_COLORS = ["#2563EB", "#DB2777", "#EA580C", "#16A34A", "#9333EA", "#0891B2"]


def get_theme(name):
    return THEMES.get(name, THEMES[DEFAULT_THEME])


def podium_color(theme, rank):
    colors = theme["podium"]
    if 1 <= rank <= len(colors):
        return colors[rank - 1]
    return theme["muted_text"]


def build_stylesheet(theme_name):
    """Build a Qt stylesheet string from a theme name."""
    t = get_theme(theme_name)
    return (
        f"QMainWindow, QDialog, QWidget {{ background-color: {t['bg']}; }}"
        f"QLabel {{ color: {t['text']}; background: transparent; }}"
        f"QPushButton {{"
        f"  color: {t['button_text']};"
        f"  background-color: {t['button_bg']};"
        f"  border: {t['border']}px solid rgba(128,128,128,0.4);"
        f"  padding: 4px 8px;"
        f"}}"
        f"QPushButton:hover, QPushButton:pressed {{"
        f"  background-color: {t['button_active']};"
        f"}}"
        f"QPushButton:disabled {{ color: {t['muted_text']}; }}"
        f"QLineEdit, QComboBox, QSpinBox {{"
        f"  color: {t['button_text']};"
        f"  background-color: {t['button_bg']};"
        f"  border: {t['border']}px solid rgba(128,128,128,0.4);"
        f"  padding: 3px 5px;"
        f"}}"
        f"QLineEdit:disabled {{ background: transparent; border: none; }}"
        f"QComboBox QAbstractItemView {{"
        f"  color: {t['button_text']};"
        f"  background-color: {t['button_bg']};"
        f"  selection-background-color: {t['button_active']};"
        f"}}"
        f"QTableWidget, QTextBrowser, QListWidget {{"
        f"  color: {t['text']};"
        f"  background-color: {t['panel_bg']};"
        f"  border: 1px solid {t['separator']};"
        f"}}"
        f"QHeaderView::section {{"
        f"  color: {t['muted_text']};"
        f"  background-color: {t['bg']};"
        f"  border: none;"
        f"  padding: 4px;"
        f"}}"
        f"QListWidget::item {{ padding: 8px 12px; }}"
        f"QListWidget::item:selected {{"
        f"  background-color: {t['button_active']};"
        f"  color: {t['button_text']};"
        f"}}"
        f"QStatusBar {{ color: {t['muted_text']}; }}"
        f"QToolTip {{"
        f"  background-color: {t['bg']};"
        f"  color: {t['text']};"
        f"  border: 1px solid {t['separator']};"
        f"  padding: 4px 8px;"
        f"}}"
    )
