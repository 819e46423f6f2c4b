"""Result dialog for the race analysis, plus the worker that fetches it off the UI thread."""

from PySide6.QtCore import QObject, QThread, Signal
from PySide6.QtGui import QFont
from PySide6.QtWidgets import (
    QDialog,
    QHBoxLayout,
    QPushButton,
    QTextBrowser,
    QVBoxLayout,
)
from rt.common.logger import log
from rt.core.errors import AnalysisError


class AnalysisWorker(QObject):
    """Runs AnalysisClient.analyze() in a QThread and reports back through signals."""
    finished = Signal(str)
    failed = Signal(str)

    def __init__(self, client, summary):
        super().__init__()
        self._client = client
        self._summary = summary

    def run(self):
        try:
            text = self._client.analyze(self._summary)
        except AnalysisError as e:
            self.failed.emit(str(e))
            return
        except Exception as e:
            # Either signal must fire or the window stays stuck on "Analyzing..."
            log.exception("Unexpected error while running race analysis")
            self.failed.emit(f"Analysis failed: {e}")
            return
        self.finished.emit(text)


# Starts the worker on its own thread. The caller keeps the returned (thread, worker) pair alive until one of the
# worker's signals fires.
def start_analysis(client, summary, on_finished, on_failed):
    thread = QThread()
    worker = AnalysisWorker(client, summary)
    worker.moveToThread(thread)
    thread.started.connect(worker.run)
    worker.finished.connect(on_finished)
    worker.failed.connect(on_failed)
    worker.finished.connect(thread.quit)
    worker.failed.connect(thread.quit)
    thread.finished.connect(worker.deleteLater)
    thread.finished.connect(thread.deleteLater)
    log.debug("Starting analysis worker thread")
    thread.start()
    return thread, worker


class AnalysisDialog(QDialog):

    def __init__(self, parent, markdown_text, font_family="Segoe UI"):
        super().__init__(parent)
        self.setWindowTitle("Race Analysis")
        self.resize(560, 520)

        lay = QVBoxLayout(self)
        browser = QTextBrowser()
        browser.setFont(QFont(font_family, 11))
        browser.setOpenExternalLinks(True)
        browser.setMarkdown(markdown_text)
        lay.addWidget(browser, 1)

        btn_row = QHBoxLayout()
        btn_row.addStretch()
        close_btn = QPushButton("Close")
        close_btn.setFont(QFont(font_family, 12))
        close_btn.clicked.connect(self.accept)
        btn_row.addWidget(close_btn)
        lay.addLayout(btn_row)
