"""PCAP recorder definitions."""

import logging

from l4lb_harness.client.base import SUTClient
from l4lb_harness.errors import ScenarioAssertionError
from l4lb_harness.models import RecorderDefinition

logger = logging.getLogger(__name__)


class RecorderFilterManager:
    """Defines and removes recorders, checking the listing after each change.

    A definition is submitted as one update regardless of filter count, so
    large lists force the SUT to recompile its capture program.
    """

    def __init__(self, client: SUTClient):
        self._client = client

    def define_recorder(self, recorder: RecorderDefinition) -> None:
        logger.info(
            f"Defining recorder {recorder.id} with {len(recorder.filters)} filter(s), "
            f"caplen {recorder.capture_length}"
        )
        self._client.recorder_update(recorder)

        listed = self._client.recorder_ids()
        if recorder.id not in listed:
            raise ScenarioAssertionError(
                f"Recorder {recorder.id} missing from listing after update: {sorted(listed)}"
            )

    def delete_recorder(self, recorder_id: int) -> None:
        logger.info(f"Deleting recorder {recorder_id}")
        self._client.recorder_delete(recorder_id)

        listed = self._client.recorder_ids()
        if recorder_id in listed:
            raise ScenarioAssertionError(
                f"Recorder {recorder_id} still listed after delete: {sorted(listed)}"
            )
