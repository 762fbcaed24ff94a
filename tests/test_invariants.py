"""
Maglev table invariant tests

For every address family F, the table for F is populated iff at least one
backend of family F is registered.
"""
from unittest.mock import MagicMock

import pytest

from l4lb_harness.errors import InvariantViolationError
from l4lb_harness.invariants import InvariantChecker
from l4lb_harness.models import Endpoint, HashTableView, ServiceDefinition

V4_BACKEND = Endpoint.model_validate("172.12.42.3:80")
V6_BACKEND = Endpoint.model_validate("[2001:db8:1::3]:80")


def client_with_view(v4="", v6=""):
    client = MagicMock()
    client.hash_table_list.return_value = HashTableView(v4=v4, v6=v6)
    client.hash_table_dump.return_value = "Key  Value\n1    v6: [1, 1, 1]"
    return client


@pytest.mark.unit
class TestMaglevInvariant:

    @pytest.mark.parametrize("backends,v4,v6", [
        ([V6_BACKEND], "", "[1,1,1]"),
        ([V4_BACKEND], "[1,1,1]", ""),
        ([V4_BACKEND, V6_BACKEND], "[1,2,1]", "[2,1,2]"),
    ])
    def test_consistent_tables_pass(self, backends, v4, v6):
        client = client_with_view(v4, v6)
        InvariantChecker(client).assert_maglev_sane(1, backends)
        client.hash_table_list.assert_called_once_with(1)
        client.hash_table_dump.assert_not_called()

    def test_v4_table_without_v4_backend(self):
        client = client_with_view(v4="[1,1,1]", v6="[1,1,1]")
        with pytest.raises(InvariantViolationError, match="v4 table populated without v4 backends") as excinfo:
            InvariantChecker(client).assert_maglev_sane(1, [V6_BACKEND])
        assert excinfo.value.dump == client.hash_table_dump.return_value

    def test_empty_v6_table_with_v6_backend(self):
        client = client_with_view()
        with pytest.raises(InvariantViolationError, match="v6 table empty despite v6 backends"):
            InvariantChecker(client).assert_maglev_sane(1, [V6_BACKEND])

    def test_violation_dumps_raw_table_to_log(self, caplog):
        client = client_with_view(v4="[1]")
        with pytest.raises(InvariantViolationError):
            InvariantChecker(client).assert_maglev_sane(1, [V6_BACKEND])
        assert "Invalid content of Maglev table!" in caplog.text
        assert "v6: [1, 1, 1]" in caplog.text

    def test_against_fake_nat46_service(self, sut_client):
        sut_client.install(["--bpf-lb-algorithm=maglev"])
        service = ServiceDefinition(id=1, frontend="10.0.0.4:80", backends=[V6_BACKEND])
        sut_client.service_update(service)

        view = sut_client.hash_table_list(1)
        assert view.v4 == ""
        assert view.v6 != ""
        InvariantChecker(sut_client).assert_maglev_sane(1, service.backends)

        sut_client.corrupt_maglev = True
        with pytest.raises(InvariantViolationError):
            InvariantChecker(sut_client).assert_maglev_sane(1, service.backends)
