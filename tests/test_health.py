import pytest

from recognize_stream.config import RecognizeStreamConfig
from recognize_stream.health import has_critical_failures, run_startup_checks

from tests.conftest import generate_silence


@pytest.fixture
def audio_file(tmp_path):
    path = tmp_path / "call.raw"
    path.write_bytes(generate_silence(duration_ms=100))
    return path


@pytest.fixture
def config():
    return RecognizeStreamConfig(username="alice", password="s3cret", _env_file=None)


def _by_name(results):
    return {r.name: r for r in results}


class TestStartupChecks:
    def test_all_pass(self, config, audio_file):
        results = run_startup_checks(config, audio_file)
        assert all(r.passed for r in results)
        assert not has_critical_failures(results)

    def test_missing_credentials_is_critical(self, audio_file):
        config = RecognizeStreamConfig(username="", password="", _env_file=None)
        results = run_startup_checks(config, audio_file)
        check = _by_name(results)["credentials"]
        assert not check.passed
        assert "DEEPGRAM_USERNAME" in check.detail
        assert has_critical_failures(results)

    def test_missing_audio_file(self, config, tmp_path):
        results = run_startup_checks(config, tmp_path / "missing.wav")
        assert not _by_name(results)["audio_file"].passed
        assert has_critical_failures(results)

    def test_empty_audio_file(self, config, tmp_path):
        empty = tmp_path / "empty.wav"
        empty.write_bytes(b"")
        assert not _by_name(run_startup_checks(config, empty))["audio_file"].passed

    def test_non_websocket_url(self, audio_file):
        config = RecognizeStreamConfig(
            username="alice", password="s3cret", url="https://example.test", _env_file=None
        )
        results = run_startup_checks(config, audio_file)
        assert not _by_name(results)["service_url"].passed
        assert has_critical_failures(results)

    def test_bad_chunk_size_is_not_critical(self, audio_file):
        config = RecognizeStreamConfig(username="alice", password="s3cret", chunk_size=0, _env_file=None)
        results = run_startup_checks(config, audio_file)
        assert not _by_name(results)["chunk_size"].passed
        assert not has_critical_failures(results)
