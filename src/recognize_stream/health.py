import logging
import urllib.parse
from dataclasses import dataclass
from pathlib import Path

from recognize_stream.config import RecognizeStreamConfig

logger = logging.getLogger(__name__)


@dataclass
class HealthCheckResult:
    name: str
    passed: bool
    detail: str


def run_startup_checks(config: RecognizeStreamConfig, audio_file: Path) -> list[HealthCheckResult]:
    results = [
        _check_credentials(config),
        _check_service_url(config),
        _check_audio_file(audio_file),
        _check_chunk_size(config),
    ]

    passed = sum(1 for r in results if r.passed)

    logger.info("Health check: %d/%d passed", passed, len(results))
    for result in results:
        level = logging.INFO if result.passed else logging.WARNING
        symbol = "OK" if result.passed else "FAIL"
        logger.log(level, "  [%s] %s: %s", symbol, result.name, result.detail)

    return results


def has_critical_failures(results: list[HealthCheckResult]) -> bool:
    critical_checks = {"credentials", "service_url", "audio_file"}
    return any(not r.passed and r.name in critical_checks for r in results)


def _check_credentials(config: RecognizeStreamConfig) -> HealthCheckResult:
    name = "credentials"
    missing = [
        key for key, value in (("DEEPGRAM_USERNAME", config.username), ("DEEPGRAM_PASSWORD", config.password))
        if not value.strip()
    ]
    if missing:
        return HealthCheckResult(name=name, passed=False, detail=f"Missing {', '.join(missing)}")
    return HealthCheckResult(name=name, passed=True, detail="Username and password set")


def _check_service_url(config: RecognizeStreamConfig) -> HealthCheckResult:
    name = "service_url"
    parsed = urllib.parse.urlparse(config.url)
    if parsed.scheme not in ("ws", "wss") or not parsed.netloc:
        return HealthCheckResult(name=name, passed=False, detail=f"Not a websocket URL: {config.url!r}")
    if parsed.scheme == "ws":
        return HealthCheckResult(name=name, passed=True, detail=f"{config.url} (unencrypted)")
    return HealthCheckResult(name=name, passed=True, detail=config.url)


def _check_audio_file(audio_file: Path) -> HealthCheckResult:
    name = "audio_file"
    if not audio_file.is_file():
        return HealthCheckResult(name=name, passed=False, detail=f"{audio_file} not found")
    size = audio_file.stat().st_size
    if size == 0:
        return HealthCheckResult(name=name, passed=False, detail=f"{audio_file} is empty")
    return HealthCheckResult(name=name, passed=True, detail=f"{audio_file} ({size} bytes)")


def _check_chunk_size(config: RecognizeStreamConfig) -> HealthCheckResult:
    name = "chunk_size"
    if config.chunk_size <= 0:
        return HealthCheckResult(name=name, passed=False, detail=f"Invalid chunk size {config.chunk_size}")
    return HealthCheckResult(name=name, passed=True, detail=f"{config.chunk_size} bytes")
