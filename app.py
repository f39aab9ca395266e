from __future__ import annotations

import locale
import logging
from typing import List, Optional

from PySide6.QtWidgets import QApplication
from PySide6.QtCore import QObject, Signal, QThread, Qt

from settings import load_settings
from analyzer_api import AnalysisResult, analyze_matches, InputError
from session import AnalysisSession, AnalysisState, Status
from ui_main import MainWindow


logger = logging.getLogger(__name__)


def setup_locale():
    # %x in chart labels follows LC_TIME
    try:
        locale.setlocale(locale.LC_TIME, "")
    except locale.Error:
        logger.warning("Could not apply system locale for dates, using default")


# -----------------------
# Dispatcher: guarantees code runs on UI thread
# -----------------------
class Dispatcher(QObject):
    run = Signal(object)  # callable

    def __init__(self):
        super().__init__()
        self.run.connect(self._exec, Qt.QueuedConnection)

    def _exec(self, fn):
        try:
            fn()
        except Exception:
            # Avoid crashing UI thread silently
            logger.exception("UI-dispatch error")


# -----------------------
# Worker: POST to the analyzer without freezing UI
# -----------------------
class AnalyzeWorker(QObject):
    finished = Signal(int, object)   # ticket, AnalysisResult
    failed = Signal(int, str)        # ticket, message

    def __init__(self, *, ticket: int, analyzer_url: str, name: str, tag: str, timeout: int):
        super().__init__()
        self.ticket = ticket
        self.analyzer_url = analyzer_url
        self.name = name
        self.tag = tag
        self.timeout = timeout

    def run(self):
        try:
            result = analyze_matches(self.analyzer_url, self.name, self.tag, timeout=self.timeout)
            self.finished.emit(self.ticket, result)
        except Exception as e:
            self.failed.emit(self.ticket, str(e))


def main():
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    setup_locale()

    app = QApplication([])
    win = MainWindow()
    win.apply_theme()
    win.show()

    dispatcher = Dispatcher()
    settings = load_settings()
    session = AnalysisSession(AnalysisState(selected_metric=settings.default_metric))
    win.set_selected_metric(settings.default_metric)

    # keep references (prevents GC)
    win._threads: List[object] = []

    def track(*objs: object):
        for o in objs:
            win._threads.append(o)

    def stop_thread(t: QThread):
        if t.isRunning():
            t.quit()
            t.wait(2000)

    app.aboutToQuit.connect(lambda: [stop_thread(o) for o in win._threads if isinstance(o, QThread)])

    def render():
        state = session.state
        win.set_loading(session.is_loading)
        win.set_error(state.error_message if state.status is Status.ERROR else None)
        win.set_chart(session.points(), state.selected_metric, session.has_forecast())

    def on_metric_change(metric: Optional[str]):
        if metric:
            session.select_metric(metric)
            render()

    win.set_metric_callback(on_metric_change)

    def analyze(name: str, tag: str):
        if session.is_loading:
            win.set_status("Analysis already running…")
            return
        try:
            ticket = session.begin(name, tag)
        except InputError as e:
            win.set_error(str(e))
            return

        win.set_status(f"Analyzing {name.strip()}#{tag.strip()}…")
        render()

        worker = AnalyzeWorker(
            ticket=ticket,
            analyzer_url=settings.analyzer_url,
            name=name,
            tag=tag,
            timeout=settings.request_timeout,
        )
        t = QThread()
        worker.moveToThread(t)
        track(t, worker)

        # IMPORTANT: never touch UI in worker thread — dispatch to UI thread
        worker.finished.connect(lambda tk, result: dispatcher.run.emit(lambda: _on_finished(t, tk, result)), Qt.QueuedConnection)
        worker.failed.connect(lambda tk, msg: dispatcher.run.emit(lambda: _on_failed(t, tk, msg)), Qt.QueuedConnection)
        t.started.connect(worker.run)
        t.finished.connect(worker.deleteLater)
        t.start()

    def _on_finished(t: QThread, ticket: int, result: AnalysisResult):
        session.succeed(ticket, result)
        win.set_status(f"{len(session.state.matches)} matches loaded")
        render()
        t.quit()

    def _on_failed(t: QThread, ticket: int, msg: str):
        session.fail(ticket, msg)
        win.set_status("")
        render()
        t.quit()

    win.set_analyze_callback(analyze)
    render()

    app.exec()


if __name__ == "__main__":
    main()
