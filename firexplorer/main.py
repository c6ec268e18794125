"""Application entry point."""

from __future__ import annotations

import asyncio
import logging
import sys

from PySide6.QtCore import QTimer
from PySide6.QtWidgets import QApplication
from qasync import QEventLoop

from firexplorer.config import load_settings
from firexplorer.ui.main_window import MainWindow


def main() -> int:
    settings = load_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )

    app = QApplication(sys.argv)
    closed = asyncio.Event()
    app.aboutToQuit.connect(closed.set)

    # Engine coroutines share the Qt event loop.
    loop = QEventLoop(app)
    asyncio.set_event_loop(loop)

    window = MainWindow(settings)
    window.show()
    if settings.credentials_path is not None:
        QTimer.singleShot(0, lambda: window.load_project(settings.credentials_path))

    with loop:
        loop.run_until_complete(closed.wait())
    return 0


if __name__ == "__main__":
    sys.exit(main())
