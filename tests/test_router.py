"""Tests for output sink selection."""

import dataclasses
import io
from datetime import datetime, timezone

import pytest

from kbom.errors import SinkError, UnsupportedOutputError
from kbom.options import OutputFormat, OutputTarget
from kbom.router import fingerprint, kbom_filename, open_sink


def with_digest(document, digest):
    cluster = dataclasses.replace(document.cluster, ca_cert_digest=digest)
    return dataclasses.replace(document, cluster=cluster)


class TrackingStream(io.StringIO):
    """StringIO that records flushes and refuses to be closed."""

    def __init__(self):
        super().__init__()
        self.flushes = 0
        self.close_calls = 0

    def flush(self):
        self.flushes += 1

    def close(self):
        self.close_calls += 1


class ClosedPipe(io.StringIO):
    """Stream that behaves like stdout piped into a process that exited."""

    def __init__(self, fail_write=True):
        super().__init__()
        self.fail_write = fail_write

    def write(self, s):
        if self.fail_write:
            raise BrokenPipeError(32, "Broken pipe")
        return super().write(s)

    def flush(self):
        raise BrokenPipeError(32, "Broken pipe")


class TestFilename:
    """Tests for deterministic file naming."""

    def test_uses_ca_digest(self, sample_document):
        assert kbom_filename(sample_document, OutputFormat.JSON) == "kbom-abcdef12-2024-01-02-03-04-05.json"

    def test_yaml_extension(self, sample_document):
        assert kbom_filename(sample_document, OutputFormat.YAML).endswith(".yaml")

    @pytest.mark.parametrize("digest", ["", "abc", "abcdef12"])
    def test_short_digest_falls_back_to_id(self, sample_document, digest):
        document = with_digest(sample_document, digest)
        assert fingerprint(document) == "0f1e2d3c"

    def test_digest_longer_than_eight(self, sample_document):
        assert fingerprint(with_digest(sample_document, "123456789")) == "12345678"

    def test_reproducible(self, sample_document):
        names = {kbom_filename(sample_document, OutputFormat.JSON) for _ in range(3)}
        assert len(names) == 1

    def test_timestamp_has_second_resolution(self, sample_document):
        document = dataclasses.replace(
            sample_document,
            generated_at=datetime(2024, 12, 31, 23, 59, 58, 999999, tzinfo=timezone.utc),
        )
        assert "-2024-12-31-23-59-58." in kbom_filename(document, OutputFormat.JSON)


class TestStdoutSink:
    """Tests for standard output."""

    def test_yields_stream_and_never_closes(self, sample_document):
        stream = TrackingStream()
        with open_sink(OutputTarget.STDOUT, ".", sample_document, OutputFormat.JSON, stdout=stream) as sink:
            assert sink is stream
            sink.write("{}")

        assert stream.getvalue() == "{}"
        assert stream.flushes == 1
        assert stream.close_calls == 0

    def test_flushes_on_error(self, sample_document):
        stream = TrackingStream()
        with pytest.raises(RuntimeError):
            with open_sink(OutputTarget.STDOUT, ".", sample_document, OutputFormat.JSON, stdout=stream):
                raise RuntimeError("encode failed")
        assert stream.flushes == 1
        assert stream.close_calls == 0

    def test_flush_failure_is_sink_error(self, sample_document):
        stream = ClosedPipe(fail_write=False)
        with pytest.raises(SinkError, match="Broken pipe"):
            with open_sink(OutputTarget.STDOUT, ".", sample_document, OutputFormat.JSON, stdout=stream) as sink:
                sink.write("{}")

    def test_flush_failure_does_not_replace_error(self, sample_document):
        stream = ClosedPipe(fail_write=False)
        with pytest.raises(RuntimeError, match="encode failed"):
            with open_sink(OutputTarget.STDOUT, ".", sample_document, OutputFormat.JSON, stdout=stream):
                raise RuntimeError("encode failed")


class TestFileSink:
    """Tests for file output."""

    def test_creates_named_file(self, sample_document, tmp_path):
        with open_sink(OutputTarget.FILE, tmp_path, sample_document, OutputFormat.JSON) as sink:
            sink.write("content")

        path = tmp_path / "kbom-abcdef12-2024-01-02-03-04-05.json"
        assert sink.name == str(path)
        assert sink.closed
        assert path.read_text(encoding="utf-8") == "content"

    def test_closed_when_body_fails(self, sample_document, tmp_path):
        with pytest.raises(RuntimeError):
            with open_sink(OutputTarget.FILE, tmp_path, sample_document, OutputFormat.YAML) as sink:
                sink.write("partial")
                raise RuntimeError("encode failed")

        assert sink.closed
        # partial output stays behind
        assert (tmp_path / "kbom-abcdef12-2024-01-02-03-04-05.yaml").read_text() == "partial"

    def test_existing_file_is_sink_error(self, sample_document, tmp_path):
        (tmp_path / "kbom-abcdef12-2024-01-02-03-04-05.json").write_text("earlier run")

        with pytest.raises(SinkError) as exc_info:
            with open_sink(OutputTarget.FILE, tmp_path, sample_document, OutputFormat.JSON):
                pass

        assert exc_info.value.path.endswith("kbom-abcdef12-2024-01-02-03-04-05.json")
        assert (tmp_path / "kbom-abcdef12-2024-01-02-03-04-05.json").read_text() == "earlier run"

    def test_missing_directory_is_sink_error(self, sample_document, tmp_path):
        with pytest.raises(SinkError, match="failed to create"):
            with open_sink(OutputTarget.FILE, tmp_path / "missing", sample_document, OutputFormat.JSON):
                pass


class TestUnsupportedOutput:
    """Tests for unknown targets."""

    def test_raises_without_creating_file(self, sample_document, tmp_path):
        with pytest.raises(UnsupportedOutputError):
            with open_sink("s3", tmp_path, sample_document, OutputFormat.JSON):
                pass
        assert list(tmp_path.iterdir()) == []
