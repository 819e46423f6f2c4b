import sys
import time
from PySide6.QtCore import Qt, QTimer
from PySide6.QtGui import QFont
from PySide6.QtWidgets import (
    QApplication,
    QDialog,
    QFileDialog,
    QLabel,
    QMainWindow,
    QMessageBox,
    QScrollArea,
    QStackedWidget,
    QVBoxLayout,
    QWidget,
)
from rt.common.logger import log
from rt.common.setup import PATHS, ensure_directory
from rt.core import config
from rt.core.analysis import AnalysisClient, build_race_summary, has_analysis_data, resolve_api_key
from rt.core.errors import RaceTimerError
from rt.core.ranking import rank_map
from rt.core.stats import SORT_CHRONOLOGICAL, SORT_GROUPED, runner_stats, split_log
from rt.core.transfer import export_csv, export_filename, import_template, read_lines, write_text
from rt.ui.chart import LapChartView
from rt.ui.dialogs import AnalysisDialog, ConfigDialog, start_analysis
from rt.ui.theme import DEFAULT_THEME, THEMES, build_stylesheet, get_theme
from rt.ui.widgets import (
    BuildContext,
    build_header,
    build_log_controls,
    build_log_table,
    build_runner_row,
    fill_log_table,
)
from rt.util import format_time, parse_target_pace

VIEW_TABLE = "table"
VIEW_CHART = "chart"

# How long status bar notifications stay up (ms)
_STATUS_TIMEOUT = 4000
# Minimum seconds between autosaves while the clock is ticking
_AUTOSAVE_INTERVAL = 1.0


# ---------------------------------------------------------------------------
# Main window
# ---------------------------------------------------------------------------

# Main window of the race timer. Shows the master clock, one row per runner, and the split log as a table or chart.
class MainWindow(QMainWindow):

    def __init__(self):
        super().__init__()
        self.setWindowTitle("Race Timer")

        # -- Load unified state --
        state = config.load_state()
        s = state["settings"]
        self.theme = s["theme"] if s["theme"] in THEMES else DEFAULT_THEME
        self.font_family = s["font"]
        self.confirm_delete = s["confirm_delete"]
        self.confirm_reset = s["confirm_reset"]
        self.analysis_api_key = s["analysis_api_key"]
        self.analysis_model = s["analysis_model"]
        self.tick_ms = max(10, s["tick_ms"])

        # -- Race --
        self.session = config.session_from_state(state, on_complete=self._on_race_complete)
        self.target_pace = state["race"]["target_pace"]

        # -- Split log view state --
        self._filter_runner_id = None
        self._sort_mode = SORT_GROUPED
        self._view_mode = VIEW_TABLE

        self._analysis_job = None  # (QThread, AnalysisWorker) while a request is in flight
        self._last_autosave = 0.0

        # -- Build UI skeleton --
        central = QWidget()
        self.setCentralWidget(central)
        self._main_lay = QVBoxLayout(central)
        self._main_lay.setContentsMargins(10, 10, 10, 10)
        self._main_lay.setSpacing(8)

        ctx = self._context()
        header, self._header = build_header(
            ctx, self.target_pace,
            on_toggle=self._on_toggle,
            on_reset=self._on_reset,
            on_add=self._on_add,
            on_delete_all=self._on_delete_all,
            on_template=self._on_template,
            on_import=self._on_import,
            on_export=self._on_export,
            on_analyze=self._on_analyze,
            on_config=self._on_config,
            on_target_changed=self._on_target_changed,
        )
        self._main_lay.addWidget(header)

        self._rows_widget = QWidget()
        self._rows = QVBoxLayout(self._rows_widget)
        self._rows.setContentsMargins(0, 0, 0, 0)
        self._rows.setSpacing(0)
        self._rows.setAlignment(Qt.AlignTop)
        scroll = QScrollArea()
        scroll.setWidgetResizable(True)
        scroll.setWidget(self._rows_widget)
        scroll.setMinimumHeight(180)
        self._main_lay.addWidget(scroll, 1)

        self._log_bar_holder = QVBoxLayout()
        self._main_lay.addLayout(self._log_bar_holder)

        self._log_stack = QStackedWidget()
        self._log_table = build_log_table(ctx)
        self._chart = LapChartView()
        self._log_stack.addWidget(self._log_table)
        self._log_stack.addWidget(self._chart)
        self._main_lay.addWidget(self._log_stack, 1)

        self.statusBar()
        self.resize(980, 760)

        # -- Tick timer, only runs while the clock does --
        self._timer = QTimer(self)
        self._timer.setInterval(self.tick_ms)
        self._timer.timeout.connect(self._tick)

        self._apply_style()
        self._rebuild()

    # ------------------------------------------------------------------ #
    #  Style                                                               #
    # ------------------------------------------------------------------ #

    def _context(self):
        return BuildContext.compute(get_theme(self.theme), self.font_family)

    def _apply_style(self):
        style = build_stylesheet(self.theme)
        self.setStyleSheet(style)
        app = QApplication.instance()
        if app is not None:
            app.setStyleSheet(style)

    def _notify(self, message):
        self.statusBar().showMessage(message, _STATUS_TIMEOUT)

    # ------------------------------------------------------------------ #
    #  Rebuilding                                                          #
    # ------------------------------------------------------------------ #

    def _rebuild(self):
        """Refresh everything derived from the session: header, runner rows and the split log."""
        self._update_header()
        self._rebuild_rows()
        self._rebuild_log()

    def _update_header(self):
        t = get_theme(self.theme)
        running = self.session.running
        clock = self._header["clock"]
        clock.setText(format_time(self.session.elapsed()))
        clock.setStyleSheet(f"color: {t['running_text'] if running else t['text']};")
        self._header["toggle"].setText("Pause" if running else "Start")

    def _rebuild_rows(self):
        while self._rows.count():
            item = self._rows.takeAt(0)
            w = item.widget()
            if w:
                w.hide()
                w.deleteLater()

        runners = self.session.runners
        if not runners:
            lbl = QLabel("No runners. Add one or import a name list to begin!")
            lbl.setFont(QFont(self.font_family, 12))
            lbl.setAlignment(Qt.AlignCenter)
            self._rows.addWidget(lbl)
            return

        ctx = self._context()
        placements = rank_map(runners)
        stats = runner_stats(runners)
        running = self.session.running
        names_locked = self.session.elapsed() > 0
        for runner in runners:
            rc, _ = build_runner_row(
                ctx, runner, placements.get(runner.id), stats.get(runner.id),
                running, names_locked,
                on_split=self._on_split,
                on_finish=self._on_finish,
                on_remove=self._on_remove,
                on_rename=self._on_rename,
            )
            self._rows.addWidget(rc)

    def _rebuild_log(self):
        runners = self.session.runners
        if self._filter_runner_id is not None and self._filter_runner_id not in self.session.store:
            self._filter_runner_id = None

        while self._log_bar_holder.count():
            item = self._log_bar_holder.takeAt(0)
            w = item.widget()
            if w:
                w.hide()
                w.deleteLater()

        ctx = self._context()
        bar, _ = build_log_controls(
            ctx, runners, self._filter_runner_id, self._sort_mode, self._view_mode,
            on_filter=self._on_filter,
            on_sort_toggle=self._on_sort_toggle,
            on_view_toggle=self._on_view_toggle,
        )
        self._log_bar_holder.addWidget(bar)

        if self._view_mode == VIEW_CHART:
            self._log_stack.setCurrentWidget(self._chart)
            self._chart.refresh(runners, ctx.theme, self.font_family, self._filter_runner_id)
        else:
            self._log_stack.setCurrentWidget(self._log_table)
            rows = split_log(runners, self._filter_runner_id, self._sort_mode)
            fill_log_table(ctx, self._log_table, rows, runner_stats(runners),
                           parse_target_pace(self.target_pace), self._on_delete_split)

    # ------------------------------------------------------------------ #
    #  Clock control                                                       #
    # ------------------------------------------------------------------ #

    def _on_toggle(self):
        running = self.session.toggle()
        if running:
            self._timer.start(self.tick_ms)
            log.info(f"Race clock started at {self.session.elapsed()}ms")
        else:
            self._timer.stop()
            log.info(f"Race clock paused at {self.session.elapsed()}ms")
        self._save_state()
        self._rebuild()

    def _on_reset(self):
        if self.confirm_reset:
            if QMessageBox.question(
                    self, "Confirm Reset",
                    "Reset the clock and clear every runner's splits?"
            ) != QMessageBox.Yes:
                return
        self._timer.stop()
        self.session.reset_all()
        self._save_state()
        self._rebuild()
        self._notify("Race reset")

    def _on_race_complete(self, session):
        self._timer.stop()
        state = self._save_state()
        try:
            path = config.save_completed_race(state)
        except OSError:
            log.exception("Failed to archive the completed race")
            path = None
        self._notify("All runners finished! Clock stopped."
                     + (f" Results archived to {path}" if path else ""))

    # ------------------------------------------------------------------ #
    #  Runner actions                                                      #
    # ------------------------------------------------------------------ #

    # Runs one session mutation. A refused operation shows its message in the status bar and changes nothing.
    def _run_action(self, action, *args):
        try:
            result = action(*args)
        except RaceTimerError as e:
            log.warning(f"{action.__name__} refused: {e}")
            self._notify(str(e))
            self._rebuild()
            return None
        self._save_state()
        self._rebuild()
        return result

    def _on_split(self, runner_id):
        split = self._run_action(self.session.record_split, runner_id)
        if split is not None:
            self._notify(f"Lap {split.index}: {format_time(split.lap)}")

    def _on_finish(self, runner_id):
        # The marker split can legitimately be None, so success is read off the runner instead
        runner = self.session.store.get(runner_id)
        was_finished = runner is not None and runner.finished
        self._run_action(self.session.finish_runner, runner_id)
        if runner is not None and runner.finished and not was_finished and not self.session.store.all_finished:
            self._notify(f"{runner.name} finished in {format_time(runner.final_time)}")

    def _on_delete_split(self, runner_id, split_uid):
        runner = self.session.store.get(runner_id)
        split = runner.find_split(split_uid) if runner is not None else None
        if self.confirm_delete and split is not None:
            if QMessageBox.question(
                    self, "Confirm Delete",
                    f"Delete lap {split.index} ({format_time(split.lap)}) for '{runner.name}'?"
            ) != QMessageBox.Yes:
                return
        if self._run_action(self.session.delete_split, runner_id, split_uid) is not None:
            self._notify("Split deleted")

    def _on_add(self):
        runner = self._run_action(self.session.add_runner)
        if runner is not None:
            self._notify(f"Added {runner.name}")

    def _on_remove(self, runner_id):
        runner = self.session.store.get(runner_id)
        if runner is None:
            return
        if self.confirm_delete:
            if QMessageBox.question(
                    self, "Confirm Delete",
                    f"Remove '{runner.name}' and all of their splits?"
            ) != QMessageBox.Yes:
                return
        self._run_action(self.session.remove_runner, runner_id)

    def _on_delete_all(self):
        if not self.session.runners:
            return
        if self.confirm_delete:
            if QMessageBox.question(
                    self, "Confirm Delete",
                    "Delete every runner from the list?"
            ) != QMessageBox.Yes:
                return
        count = self._run_action(self.session.delete_all_runners)
        if count:
            self._notify(f"Deleted {count} runners")

    def _on_rename(self, runner_id, text):
        runner = self.session.store.get(runner_id)
        if runner is None or text == runner.name:
            return
        self._run_action(self.session.rename_runner, runner_id, text)

    def _on_target_changed(self, text):
        self.target_pace = text
        self._save_state()
        self._rebuild_log()

    # ------------------------------------------------------------------ #
    #  Split log view                                                      #
    # ------------------------------------------------------------------ #

    def _on_filter(self, runner_id):
        self._filter_runner_id = runner_id
        # Deferred, since the combo box that fired this gets replaced by the rebuild
        QTimer.singleShot(0, self._rebuild_log)

    def _on_sort_toggle(self):
        self._sort_mode = SORT_CHRONOLOGICAL if self._sort_mode == SORT_GROUPED else SORT_GROUPED
        self._rebuild_log()

    def _on_view_toggle(self):
        self._view_mode = VIEW_CHART if self._view_mode == VIEW_TABLE else VIEW_TABLE
        self._rebuild_log()

    # ------------------------------------------------------------------ #
    #  Import / export                                                     #
    # ------------------------------------------------------------------ #

    def _on_template(self):
        ensure_directory(PATHS.exports)
        path, _ = QFileDialog.getSaveFileName(
            self, "Save Name Template", str(PATHS.exports / "template_nama_pelari.csv"),
            "CSV files (*.csv)")
        if not path:
            return
        try:
            write_text(path, import_template())
        except OSError as e:
            log.exception(f"Failed to write import template to '{path}'")
            QMessageBox.warning(self, "Save Error", f"Failed to save template:\n{e}")
            return
        self._notify(f"Template saved to {path}")

    def _on_import(self):
        path, _ = QFileDialog.getOpenFileName(
            self, "Import Runner Names", str(PATHS.exports), "Name lists (*.csv *.txt)")
        if not path:
            return
        try:
            lines = read_lines(path)
        except (OSError, UnicodeDecodeError) as e:
            log.exception(f"Failed to read runner names from '{path}'")
            QMessageBox.warning(self, "Import Error", f"Failed to read file:\n{e}")
            return
        added = self._run_action(self.session.import_runners, lines)
        if added:
            self._notify(f"Imported {len(added)} runners")

    def _on_export(self):
        ensure_directory(PATHS.exports)
        path, _ = QFileDialog.getSaveFileName(
            self, "Export Results", str(PATHS.exports / export_filename()), "CSV files (*.csv)")
        if not path:
            return
        try:
            write_text(path, export_csv(self.session.runners))
        except OSError as e:
            log.exception(f"Failed to export results to '{path}'")
            QMessageBox.warning(self, "Export Error", f"Failed to export results:\n{e}")
            return
        log.info(f"Exported results to '{path}'")
        self._notify(f"Results exported to {path}")

    # ------------------------------------------------------------------ #
    #  Analysis                                                            #
    # ------------------------------------------------------------------ #

    def _on_analyze(self):
        if self._analysis_job is not None:
            self._notify("Analysis already in progress")
            return
        runners = self.session.runners
        if not has_analysis_data(runners):
            self._notify("Record at least one split before analyzing")
            return
        client = AnalysisClient(resolve_api_key(self.analysis_api_key), model=self.analysis_model)
        if not client.enabled:
            self._notify("No analysis API key configured (Settings > Analysis)")
            return

        self._header["analyze"].setEnabled(False)
        self._header["analyze"].setText("Analyzing...")
        self._analysis_job = start_analysis(
            client, build_race_summary(runners),
            on_finished=self._on_analysis_finished,
            on_failed=self._on_analysis_failed,
        )

    def _end_analysis(self):
        self._analysis_job = None
        self._header["analyze"].setEnabled(True)
        self._header["analyze"].setText("Analyze")

    def _on_analysis_finished(self, text):
        self._end_analysis()
        AnalysisDialog(self, text, self.font_family).exec()

    def _on_analysis_failed(self, message):
        self._end_analysis()
        self._notify(message)

    # ------------------------------------------------------------------ #
    #  Settings dialog                                                     #
    # ------------------------------------------------------------------ #

    def _settings_dict(self):
        return {
            "theme": self.theme,
            "font": self.font_family,
            "confirm_delete": self.confirm_delete,
            "confirm_reset": self.confirm_reset,
            "analysis_api_key": self.analysis_api_key,
            "analysis_model": self.analysis_model,
            "tick_ms": self.tick_ms,
        }

    def _on_config(self):
        dlg = ConfigDialog(self, self._settings_dict())
        if dlg.exec() == QDialog.Accepted and dlg.settings_changed:
            self.theme = dlg.chosen_theme
            self.font_family = dlg.chosen_font
            self.confirm_delete = dlg.chosen_confirm_delete
            self.confirm_reset = dlg.chosen_confirm_reset
            self.analysis_api_key = dlg.chosen_analysis_api_key
            self.analysis_model = dlg.chosen_analysis_model
            self.tick_ms = dlg.chosen_tick_ms
            self._timer.setInterval(self.tick_ms)

            self._save_state()
            self._apply_style()
            self._rebuild()

    # ------------------------------------------------------------------ #
    #  Tick / autosave                                                     #
    # ------------------------------------------------------------------ #

    def _tick(self):
        self.session.tick()
        if not self.session.running:
            # Stopped by the completion check
            self._timer.stop()
            self._rebuild()
            return
        self._update_header()

        now = time.monotonic()
        if now - self._last_autosave >= _AUTOSAVE_INTERVAL:
            self._save_state()

    # ------------------------------------------------------------------ #
    #  Persistence helpers                                                 #
    # ------------------------------------------------------------------ #

    def _build_state_dict(self):
        return {
            "meta": {
                "schema_version": 1,
                "is_completed_race": False,
            },
            "settings": self._settings_dict(),
            "race": config.race_section(self.session, self.target_pace),
        }

    def _save_state(self):
        state = self._build_state_dict()
        try:
            config.save_state(state)
        except OSError:
            log.exception("Failed to save state")
        self._last_autosave = time.monotonic()
        return state

    # ------------------------------------------------------------------ #
    #  Window close                                                        #
    # ------------------------------------------------------------------ #

    def closeEvent(self, event):
        self._timer.stop()
        if self._analysis_job is not None:
            thread, _ = self._analysis_job
            thread.quit()
            thread.wait()
        try:
            config.save_state(self._build_state_dict())
        except OSError as e:
            QMessageBox.warning(self, "Save Error",
                                f"Failed to save state:\n{e}")
        event.accept()


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def main():
    app = QApplication(sys.argv)
    window = MainWindow()
    window.show()
    sys.exit(app.exec())
