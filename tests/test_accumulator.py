"""Tests for the accumulator and line protocol rendering."""

import logging

from cloudstack_collector.accumulator import Accumulator
from cloudstack_collector.exceptions import ParseError


class TestAccumulator:
    def test_add_fields_copies_inputs(self, acc):
        tags = {"id": "d1"}
        fields = {"vmlimit": 40}
        record = acc.add_fields("cs_domain", fields, tags)
        tags["id"] = "changed"
        fields["vmlimit"] = 0
        assert record.tags == {"id": "d1"}
        assert record.fields == {"vmlimit": 40}

    def test_add_error_keeps_and_logs(self, acc, caplog):
        err = ParseError("error parsing integer from 'x' for 'vmlimit'", "vmlimit", "x")
        with caplog.at_level(logging.WARNING, logger="cloudstack_collector.accumulator"):
            acc.add_error(err)
        assert acc.errors == [err]
        assert "vmlimit" in caplog.text

    def test_add_error_accepts_plain_exceptions(self, acc):
        acc.add_error(RuntimeError("boom"))
        assert len(acc.errors) == 1


class TestLineProtocol:
    def test_sorted_tags_and_typed_fields(self):
        acc = Accumulator()
        acc.timestamp_ns = 1700000000000000000
        acc.add_fields(
            "cs_domain",
            {"cpulimit": -1, "cputotal": 6.0, "vmlimit": 40},
            {"name": "Dom1", "id": "d1"},
        )
        assert acc.to_line_protocol() == (
            "cs_domain,id=d1,name=Dom1 cpulimit=-1i,cputotal=6.0,vmlimit=40i 1700000000000000000"
        )

    def test_tag_escaping(self):
        acc = Accumulator()
        acc.timestamp_ns = 1
        acc.add_fields("cs_domain", {"level": 1}, {"path": "ROOT/a b,c=d"})
        assert acc.to_line_protocol() == "cs_domain,path=ROOT/a\\ b\\,c\\=d level=1i 1"

    def test_string_field_quoted(self):
        acc = Accumulator()
        acc.timestamp_ns = 1
        acc.add_fields("m", {"note": 'say "hi"'})
        assert acc.to_line_protocol() == 'm note="say \\"hi\\"" 1'

    def test_empty_tag_values_and_fieldless_records_skipped(self):
        acc = Accumulator()
        acc.timestamp_ns = 1
        acc.add_fields("cs_domain", {}, {"id": "d1"})
        acc.add_fields("cs_domain", {"level": 0}, {"id": "d2", "networkdomain": ""})
        assert acc.to_line_protocol() == "cs_domain,id=d2 level=0i 1"

    def test_non_finite_floats_left_out(self):
        acc = Accumulator()
        acc.timestamp_ns = 1
        acc.add_fields("cs_domain", {"x": float("nan"), "y": float("inf"), "level": 2}, {"id": "d"})
        acc.add_fields("cs_domain", {"x": float("-inf")}, {"id": "e"})
        assert acc.to_line_protocol() == "cs_domain,id=d level=2i 1"

    def test_one_line_per_record(self, acc):
        acc.add_fields("cs_domain", {"a": 1}, {"id": "d1"})
        acc.add_fields("cs_domain", {"a": 2}, {"id": "d2"})
        assert len(acc.to_line_protocol().splitlines()) == 2
