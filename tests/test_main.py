"""Tests for the worker entry point."""

import io
from unittest.mock import MagicMock, patch

import pytest

from cloudstack_collector import main as worker
from cloudstack_collector.exceptions import TransportError


@pytest.fixture(autouse=True)
def no_logging_setup():
    with patch.object(worker, "setup_logging"):
        yield


class TestRunCollectionCycle:
    def test_writes_line_protocol(self, client, cfg):
        client.list_domains.return_value = [{"id": "d1", "name": "Dom1", "vmlimit": "10"}]
        out = io.StringIO()

        assert worker.run_collection_cycle(client, cfg, out=out) is True

        lines = out.getvalue().splitlines()
        assert len(lines) == 1
        assert lines[0].startswith("cs_domain,id=d1,name=Dom1 ")
        assert "vmlimit=10i" in lines[0]

    def test_listing_failure_returns_false(self, client, cfg):
        client.list_domains.side_effect = TransportError("listDomains failed", command="listDomains")
        out = io.StringIO()
        assert worker.run_collection_cycle(client, cfg, out=out) is False
        assert out.getvalue() == ""

    def test_domain_filter_from_config(self, client, cfg):
        cfg["DOMAIN_IDS"] = ["d2"]
        client.list_domains.return_value = [{"id": "d1"}, {"id": "d2"}]
        out = io.StringIO()
        worker.run_collection_cycle(client, cfg, out=out)
        assert "id=d1" not in out.getvalue()
        assert "id=d2" in out.getvalue()


class TestMain:
    def test_once_success(self, cfg):
        with patch.object(worker.CloudStackClient, "from_config") as from_config, \
                patch.object(worker, "run_collection_cycle", return_value=True) as cycle:
            assert worker.main(["--once"], cfg=cfg) == 0
        from_config.assert_called_once_with(cfg)
        cycle.assert_called_once()

    def test_once_failure(self, cfg):
        with patch.object(worker.CloudStackClient, "from_config", return_value=MagicMock()), \
                patch.object(worker, "run_collection_cycle", return_value=False):
            assert worker.main(["--once"], cfg=cfg) == 1

    def test_invalid_config_exits_before_collecting(self, cfg):
        cfg["API_KEY"] = ""
        with patch.object(worker, "run_collection_cycle") as cycle:
            assert worker.main(["--once"], cfg=cfg) == 2
        cycle.assert_not_called()

    def test_parse_args(self):
        args = worker.parse_args(["--interval", "300"])
        assert args.interval == 300
        assert args.once is False
