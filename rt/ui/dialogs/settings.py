"""Configuration dialog for Race Timer, tabbed sidebar layout."""

from PySide6.QtCore import Qt, QUrl
from PySide6.QtGui import QDesktopServices, QFont
from PySide6.QtWidgets import (
    QComboBox,
    QDialog,
    QFrame,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QListWidget,
    QPushButton,
    QSpinBox,
    QStackedWidget,
    QVBoxLayout,
    QWidget,
)
from rt.common.setup import PATHS
from rt.core.analysis import API_KEY_ENV, DEFAULT_MODEL
from rt.ui.theme import DEFAULT_THEME, FONTS, THEMES

# Simple tabbed settings dialog with a left sidebar for different categories. Opens from the gear button in the
# main window header.
class ConfigDialog(QDialog):

    def __init__(self, parent, cfg):
        super().__init__(parent)
        self.setWindowTitle("Settings")
        self.setModal(True)

        # Output attributes, read by MainWindow after dialog closes
        self.chosen_theme = cfg.get("theme", DEFAULT_THEME)
        self.chosen_font = cfg.get("font", "Segoe UI")
        self.chosen_confirm_delete = cfg.get("confirm_delete", True)
        self.chosen_confirm_reset = cfg.get("confirm_reset", True)
        self.chosen_tick_ms = cfg.get("tick_ms", 10)
        self.chosen_analysis_api_key = cfg.get("analysis_api_key", "")
        self.chosen_analysis_model = cfg.get("analysis_model", DEFAULT_MODEL)
        self.settings_changed = False

        # --- Layout ---
        outer = QVBoxLayout(self)

        body = QHBoxLayout()

        # Left sidebar
        self._tab_list = QListWidget()
        self._tab_list.setFixedWidth(140)
        self._tab_list.setFont(QFont(self.chosen_font, 12))
        self._tab_list.addItem("General")
        self._tab_list.addItem("Analysis")
        self._tab_list.addItem("Appearance")
        self._tab_list.setCurrentRow(0)
        self._tab_list.currentRowChanged.connect(self._on_tab_changed)
        body.addWidget(self._tab_list)

        # Right content
        self._stack = QStackedWidget()
        self._stack.addWidget(self._build_general_page(cfg))
        self._stack.addWidget(self._build_analysis_page(cfg))
        self._stack.addWidget(self._build_appearance_page(cfg))
        body.addWidget(self._stack, 1)

        outer.addLayout(body, 1)

        btn_row = QHBoxLayout()
        btn_row.addStretch()
        cancel_btn = QPushButton("Cancel")
        cancel_btn.setFont(QFont(self.chosen_font, 12))
        cancel_btn.clicked.connect(self.reject)
        apply_btn = QPushButton("Apply")
        apply_btn.setFont(QFont(self.chosen_font, 12))
        apply_btn.clicked.connect(self._apply)
        btn_row.addWidget(cancel_btn)
        btn_row.addWidget(apply_btn)
        outer.addLayout(btn_row)

    def _on_tab_changed(self, index):
        self._stack.setCurrentIndex(index)

    # Label + control pair used by every settings row
    def _settings_row(self, lay, text, control, tooltip):
        row = QHBoxLayout()
        lbl = QLabel(text)
        lbl.setFont(QFont(self.chosen_font, 12, QFont.Bold))
        lbl.setToolTip(tooltip)
        control.setMinimumWidth(230)
        control.setToolTip(tooltip)
        row.addWidget(lbl)
        row.addWidget(control)
        lay.addLayout(row)

    @staticmethod
    def _yes_no(value):
        box = QComboBox()
        box.addItems(["Yes", "No"])
        box.setCurrentText("Yes" if value else "No")
        return box

    @staticmethod
    def _separator():
        sep = QFrame()
        sep.setFrameShape(QFrame.HLine)
        sep.setFrameShadow(QFrame.Sunken)
        return sep

    def _folder_button(self, text, path):
        btn = QPushButton(text)
        btn.setFont(QFont(self.chosen_font, 11))
        btn.clicked.connect(
            lambda: QDesktopServices.openUrl(QUrl.fromLocalFile(str(path))))
        return btn

    # ------------------------------------------------------------------ #
    #  General page                                                        #
    # ------------------------------------------------------------------ #

    def _build_general_page(self, cfg):
        page = QWidget()
        lay = QVBoxLayout(page)
        lay.setSpacing(12)

        self._confirm_delete = self._yes_no(cfg.get("confirm_delete", True))
        self._settings_row(lay, "Confirm Delete:", self._confirm_delete,
                           "Whether to ask before removing a runner, deleting a split, or deleting every runner.")

        self._confirm_reset = self._yes_no(cfg.get("confirm_reset", True))
        self._settings_row(lay, "Confirm Reset:", self._confirm_reset,
                           "Whether to ask before resetting the clock and clearing all splits.")

        self._tick_ms = QSpinBox()
        self._tick_ms.setRange(10, 1000)
        self._tick_ms.setSingleStep(10)
        self._tick_ms.setValue(cfg.get("tick_ms", 10))
        self._tick_ms.setSuffix(" ms")
        self._settings_row(lay, "Clock Refresh:", self._tick_ms,
                           "How often the clock display updates while running. Recorded times are not affected.")

        lay.addWidget(self._separator())

        btn_row = QHBoxLayout()
        btn_row.addWidget(self._folder_button("Open Exports Folder", PATHS.exports))
        btn_row.addStretch()
        btn_row.addWidget(self._folder_button("Open Completed Races", PATHS.races))
        lay.addLayout(btn_row)

        lay.addStretch()
        return page

    # ------------------------------------------------------------------ #
    #  Analysis page                                                       #
    # ------------------------------------------------------------------ #

    def _build_analysis_page(self, cfg):
        page = QWidget()
        lay = QVBoxLayout(page)
        lay.setSpacing(12)

        self._api_key = QLineEdit(cfg.get("analysis_api_key", ""))
        self._api_key.setEchoMode(QLineEdit.Password)
        self._api_key.setPlaceholderText(f"or set {API_KEY_ENV}")
        self._settings_row(lay, "API Key:", self._api_key,
                           f"Key for the Gemini API. Leave empty to use the {API_KEY_ENV} environment variable.")

        self._model = QLineEdit(cfg.get("analysis_model", DEFAULT_MODEL))
        self._model.setPlaceholderText(DEFAULT_MODEL)
        self._settings_row(lay, "Model:", self._model,
                           "Model name used for race analysis.")

        note = QLabel("The race summary (names and lap times) is sent to the analysis service "
                      "only when you press Analyze.")
        note.setWordWrap(True)
        note.setFont(QFont(self.chosen_font, 10))
        note.setStyleSheet("color: #888888;")
        lay.addWidget(note)

        lay.addStretch()
        return page

    # ------------------------------------------------------------------ #
    #  Appearance page                                                     #
    # ------------------------------------------------------------------ #

    def _build_appearance_page(self, cfg):
        page = QWidget()
        lay = QVBoxLayout(page)
        lay.setSpacing(8)

        self._theme = QComboBox()
        self._theme.addItems(list(THEMES))
        self._theme.setCurrentText(cfg.get("theme", DEFAULT_THEME))
        self._settings_row(lay, "Program Theme:", self._theme, "Color scheme of the program.")

        self._font = QComboBox()
        for fn in FONTS:
            display = f"{fn} (Default)" if fn == "Segoe UI" else fn
            self._font.addItem(display, fn)
        idx = self._font.findData(cfg.get("font", "Segoe UI"))
        if idx >= 0:
            self._font.setCurrentIndex(idx)
        self._font.currentIndexChanged.connect(self._refresh_preview)
        self._theme.currentTextChanged.connect(self._refresh_preview)
        self._settings_row(lay, "Program Font:", self._font, "Font used by all text in the program.")

        # Live preview of the clock in the chosen theme/font
        self._preview = QLabel("01:23.45")
        self._preview.setObjectName("preview")
        self._preview.setAlignment(Qt.AlignCenter)
        self._preview.setMinimumHeight(70)
        lay.addWidget(self._preview)

        lay.addStretch()
        self._refresh_preview()
        return page

    def _refresh_preview(self):
        t = THEMES.get(self._theme.currentText(), THEMES[DEFAULT_THEME])
        font = QFont(self._font.currentData() or "Segoe UI", 28)
        font.setBold(True)
        self._preview.setFont(font)
        self._preview.setStyleSheet(
            f"#preview {{ color: {t['running_text']}; background-color: {t['panel_bg']};"
            f" border: 2px solid {t['separator']}; }}")

    # ------------------------------------------------------------------ #
    #  Apply                                                               #
    # ------------------------------------------------------------------ #

    def _apply(self):
        # General
        self.chosen_confirm_delete = self._confirm_delete.currentText() == "Yes"
        self.chosen_confirm_reset = self._confirm_reset.currentText() == "Yes"
        self.chosen_tick_ms = self._tick_ms.value()
        # Analysis
        self.chosen_analysis_api_key = self._api_key.text().strip()
        self.chosen_analysis_model = self._model.text().strip() or DEFAULT_MODEL
        # Appearance
        self.chosen_theme = self._theme.currentText()
        self.chosen_font = self._font.currentData()
        self.settings_changed = True
        self.accept()
