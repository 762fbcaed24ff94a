"""Structural checks on the consistent-hash (Maglev) table."""

import logging
from typing import Iterable, List

from l4lb_harness.client.base import SUTClient
from l4lb_harness.errors import InvariantViolationError
from l4lb_harness.models import AddressFamily, Endpoint

logger = logging.getLogger(__name__)


class InvariantChecker:
    """For every address family F, table(F) is populated iff a backend of F exists."""

    def __init__(self, client: SUTClient):
        self._client = client

    def assert_maglev_sane(self, service_id: int, backends: Iterable[Endpoint]) -> None:
        families = {backend.family for backend in backends}
        view = self._client.hash_table_list(service_id)

        problems: List[str] = []
        for family in AddressFamily:
            populated = view.populated(family)
            expected = family in families
            if populated and not expected:
                problems.append(f"{family.value} table populated without {family.value} backends")
            elif expected and not populated:
                problems.append(f"{family.value} table empty despite {family.value} backends")

        if problems:
            dump = self._client.hash_table_dump()
            logger.error("Invalid content of Maglev table!")
            logger.error(dump)
            raise InvariantViolationError(
                f"Maglev table of service {service_id}: {'; '.join(problems)}", dump=dump
            )

        logger.info(
            f"Maglev table of service {service_id} consistent with backend families "
            f"{sorted(f.value for f in families)}"
        )
