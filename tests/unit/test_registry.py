"""Tests for the sink registry."""

from __future__ import annotations

import pytest

from haberdasher.exceptions import UnknownSinkError
from haberdasher.routing.registry import SinkRegistry, default_registry
from haberdasher.routing.sinks import BaseSink
from haberdasher.routing.sinks.local_file import LocalFileSink
from haberdasher.routing.sinks.stream import StderrSink, StdoutSink


class TestSinkRegistry:
    def test_register_and_create(self, make_config, recording_sink):
        registry = SinkRegistry()
        registry.register("recording", lambda config: recording_sink)
        assert "recording" in registry
        assert registry.create("recording", make_config()) is recording_sink

    def test_duplicate_name_rejected(self, recording_sink):
        registry = SinkRegistry()
        registry.register("recording", lambda config: recording_sink)
        with pytest.raises(ValueError, match="already registered"):
            registry.register("recording", lambda config: recording_sink)

    def test_unknown_name_raises(self, make_config):
        registry = SinkRegistry()
        registry.register("stderr", lambda config: StderrSink())
        with pytest.raises(UnknownSinkError, match="kafka") as info:
            registry.create("kafka", make_config())
        assert info.value.available == ["stderr"]

    def test_names_sorted(self, recording_sink):
        registry = SinkRegistry()
        registry.register("b", lambda config: recording_sink)
        registry.register("a", lambda config: recording_sink)
        assert registry.names == ["a", "b"]


class TestDefaultRegistry:
    def test_builtin_sinks(self):
        assert default_registry().names == ["local_file", "stderr", "stdout"]

    def test_stderr_is_default_emitter(self, make_config):
        config = make_config(emitter="stderr")
        sink = default_registry().create(config.emitter, config)
        assert isinstance(sink, StderrSink)

    def test_stdout(self, make_config):
        sink = default_registry().create("stdout", make_config())
        assert isinstance(sink, StdoutSink)

    def test_local_file_uses_configured_path(self, make_config, tmp_path):
        config = make_config(local_file_path=tmp_path / "out.log")
        sink = default_registry().create("local_file", config)
        assert isinstance(sink, LocalFileSink)
        assert sink.path == tmp_path / "out.log"

    def test_every_builtin_satisfies_protocol(self, make_config, tmp_path):
        config = make_config(local_file_path=tmp_path / "out.log")
        registry = default_registry()
        for name in registry.names:
            assert isinstance(registry.create(name, config), BaseSink)
