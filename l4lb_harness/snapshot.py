"""Service-table snapshots and byte-for-byte comparison."""

import difflib
import logging
from typing import Dict

from l4lb_harness.client.base import SUTClient
from l4lb_harness.errors import HarnessError, SnapshotMismatchError

logger = logging.getLogger(__name__)


class SnapshotStore:
    """Labelled service-table texts captured during a scenario.

    Snapshots are opaque: they are never parsed, only compared. Reusing a
    label overwrites the earlier capture.
    """

    def __init__(self, client: SUTClient):
        self._client = client
        self._snapshots: Dict[str, str] = {}

    def capture(self, label: str) -> str:
        text = self._client.service_list()
        if label in self._snapshots:
            logger.debug(f"Overwriting snapshot '{label}'")
        self._snapshots[label] = text
        logger.info(f"Captured snapshot '{label}' ({len(text.splitlines())} lines)")
        return text

    def get(self, label: str) -> str:
        try:
            return self._snapshots[label]
        except KeyError:
            raise HarnessError(f"No snapshot captured under '{label}'") from None

    def assert_equal(self, label_a: str, label_b: str) -> None:
        text_a = self.get(label_a)
        text_b = self.get(label_b)
        if text_a == text_b:
            logger.info(f"Snapshots '{label_a}' and '{label_b}' are identical")
            return

        diff = "\n".join(
            difflib.unified_diff(
                text_a.splitlines(),
                text_b.splitlines(),
                fromfile=label_a,
                tofile=label_b,
                lineterm="",
            )
        )
        logger.error(f"Snapshot '{label_a}':\n{text_a}")
        logger.error(f"Snapshot '{label_b}':\n{text_b}")
        raise SnapshotMismatchError(label_a, label_b, text_a, text_b, diff)

    def __contains__(self, label: str) -> bool:
        return label in self._snapshots

    def __len__(self) -> int:
        return len(self._snapshots)
