"""
Source picker dialog for choosing a screen or window to share.

Displays the sources of a ``CaptureResult`` as thumbnails and lets the user
pick one.
"""

import logging
from typing import Optional

from PySide6.QtCore import QSize, Qt
from PySide6.QtGui import QIcon, QPixmap
from PySide6.QtWidgets import (
    QDialog,
    QDialogButtonBox,
    QLabel,
    QListView,
    QListWidget,
    QListWidgetItem,
    QVBoxLayout,
    QWidget,
)

from capturepicker.core.models import CaptureResult

logger = logging.getLogger(__name__)


class SourcePickerDialog(QDialog):
    """Dialog for picking one capturable source.

    The OK button is only enabled while a source is selected.
    """

    def __init__(self, result: CaptureResult, parent: Optional[QWidget] = None):
        """Initialize the SourcePickerDialog.

        Args:
            result: Finished listing result to display
            parent: Optional parent widget
        """
        super().__init__(parent)
        logger.debug("Initializing SourcePickerDialog")

        self._result = result

        self.setWindowTitle("Choose What to Share")
        self.setMinimumSize(480, 360)

        self._setup_ui()
        self._populate_sources()

    def _setup_ui(self) -> None:
        layout = QVBoxLayout(self)

        instructions = QLabel("Select a screen or window to share.")
        instructions.setWordWrap(True)
        layout.addWidget(instructions)

        thumbnail_size = self._thumbnail_size()
        self._source_list = QListWidget()
        self._source_list.setViewMode(QListView.ViewMode.IconMode)
        self._source_list.setResizeMode(QListView.ResizeMode.Adjust)
        self._source_list.setMovement(QListView.Movement.Static)
        self._source_list.setIconSize(thumbnail_size)
        self._source_list.setWordWrap(True)
        self._source_list.setSelectionMode(QListWidget.SelectionMode.SingleSelection)
        self._source_list.itemSelectionChanged.connect(self._update_ok_button)
        self._source_list.itemDoubleClicked.connect(lambda _item: self.accept())
        layout.addWidget(self._source_list)

        self._button_box = QDialogButtonBox(
            QDialogButtonBox.StandardButton.Ok | QDialogButtonBox.StandardButton.Cancel
        )
        self._button_box.accepted.connect(self.accept)
        self._button_box.rejected.connect(self.reject)
        layout.addWidget(self._button_box)

        self._update_ok_button()

    def _thumbnail_size(self) -> QSize:
        if self._result.sources:
            return self._result.sources[0].thumbnail.size()
        return QSize(150, 150)

    def _populate_sources(self) -> None:
        self._source_list.clear()

        for record in self._result.sources:
            item = QListWidgetItem(QIcon(QPixmap.fromImage(record.thumbnail)), record.name)
            item.setData(Qt.ItemDataRole.UserRole, record.id)
            item.setToolTip(record.name)
            self._source_list.addItem(item)

        logger.debug(f"Populated {len(self._result.sources)} source(s)")

    def _update_ok_button(self) -> None:
        ok_button = self._button_box.button(QDialogButtonBox.StandardButton.Ok)
        ok_button.setEnabled(bool(self._source_list.selectedItems()))

    def source_count(self) -> int:
        return self._source_list.count()

    def select_source(self, source_id: str) -> bool:
        """Select the item for ``source_id``. Returns False if it is not listed."""
        for row in range(self._source_list.count()):
            item = self._source_list.item(row)
            if item.data(Qt.ItemDataRole.UserRole) == source_id:
                self._source_list.setCurrentItem(item)
                return True
        return False

    def selected_source_id(self) -> Optional[str]:
        """Get the id of the selected source, or None if nothing is selected."""
        selected_items = self._source_list.selectedItems()
        if not selected_items:
            return None
        return selected_items[0].data(Qt.ItemDataRole.UserRole)
