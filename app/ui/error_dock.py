import time
from datetime import datetime

from PyQt6.QtWidgets import QDockWidget, QTextEdit

REPEAT_WINDOW_S = 2.0
MAX_BLOCKS = 500


class ErrorDock(QDockWidget):
    def __init__(self) -> None:
        super().__init__('Errors')
        self.setObjectName('ErrorDock')
        self._last_message: str = ""
        self._last_message_at: float = 0.0
        self._repeat_count = 0

        self.text = QTextEdit()
        self.text.setReadOnly(True)
        self.text.document().setMaximumBlockCount(MAX_BLOCKS)
        self.text.setPlaceholderText('Chart and feed errors will appear here.')
        self.setWidget(self.text)

    def append_error(self, message: str) -> None:
        # Timeframe switches retry the same failing request in bursts.
        now = time.monotonic()
        if message == self._last_message and (now - self._last_message_at) < REPEAT_WINDOW_S:
            self._repeat_count += 1
            return
        if self._repeat_count:
            self.text.append(f'  (repeated {self._repeat_count}x)')
        self._repeat_count = 0
        self._last_message = message
        self._last_message_at = now
        stamp = datetime.now().strftime('%H:%M:%S')
        self.text.append(f'[{stamp}] {message}')
