from typing import List

from PyQt6.QtWidgets import QDockWidget, QPlainTextEdit


class DebugDock(QDockWidget):
    def __init__(self) -> None:
        super().__init__('Debug')
        self.setObjectName('DebugDock')
        self._last_lines: List[str] = []

        self.text = QPlainTextEdit()
        self.text.setReadOnly(True)
        self.text.setPlaceholderText('Chart state will appear here.')
        self.setWidget(self.text)

    def set_metrics(self, lines: List[str]) -> None:
        if lines == self._last_lines:
            return
        self._last_lines = list(lines)
        self.text.setPlainText('\n'.join(lines))
