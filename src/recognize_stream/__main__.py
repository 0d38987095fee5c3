import argparse
import asyncio
import logging
import signal
import sys
from pathlib import Path

from recognize_stream.config import RecognizeStreamConfig
from recognize_stream.domain.events import DataEvent, ErrorEvent, EventKind, ResultsEvent, StreamEvent
from recognize_stream.domain.recognize_stream import RecognizeStream


def main() -> None:
    parser = argparse.ArgumentParser(description="Stream an audio file to the speech recognition service")
    parser.add_argument("audio_file", type=Path, help="Audio file to transcribe")
    parser.add_argument("--seconds", type=float, help="Stop the session after this many seconds")
    parser.add_argument("--linger", type=float, help="Seconds to keep printing results after stopping")
    parser.add_argument("--no-interim", action="store_true", help="Only request finalized results")
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose logging")

    args = parser.parse_args()

    config = RecognizeStreamConfig()
    if args.seconds is not None:
        config.stop_after_seconds = args.seconds
    if args.linger is not None:
        config.linger_seconds = args.linger
    if args.no_interim:
        config.interim_results = False

    from recognize_stream.log_format import configure_logging

    configure_logging(verbose=args.verbose, log_file=config.log_file)

    from recognize_stream.health import run_startup_checks, has_critical_failures

    results = run_startup_checks(config, args.audio_file)
    if has_critical_failures(results):
        logging.error("Critical health check failures, aborting")
        sys.exit(1)

    asyncio.run(_run_session(config, args.audio_file))


def format_event(event: StreamEvent) -> str | None:
    if isinstance(event, ResultsEvent):
        return f"Transcription: {event.transcript}"
    if isinstance(event, DataEvent):
        text = " ".join(result.value for result in event.results)
        return f"Final ({len(event.results)}): {text}"
    return None


async def _print_events(stream: RecognizeStream) -> None:
    async for event in stream.events():
        line = format_event(event)
        if line is not None:
            print(line)
        elif isinstance(event, ErrorEvent):
            logging.warning("Error from recognition stream: %s", event.message)
        elif event.kind is EventKind.CLOSE:
            logging.info("Stream closed (code=%s reason=%r)", event.code, event.reason)


async def _run_session(config: RecognizeStreamConfig, audio_file: Path) -> None:
    from recognize_stream.audio_source import pipe_file
    from recognize_stream.factory import create_stream

    stream = create_stream(config)
    shutdown_event = asyncio.Event()

    def handle_signal() -> None:
        logging.info("Received signal, ending stream early")
        shutdown_event.set()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, handle_signal)

    printer_task = asyncio.create_task(_print_events(stream))
    feeder_task = asyncio.create_task(pipe_file(audio_file, stream, chunk_size=config.chunk_size))

    logging.info("Automatically ending stream in %.0f sec", config.stop_after_seconds)
    try:
        await asyncio.wait_for(shutdown_event.wait(), timeout=config.stop_after_seconds)
    except asyncio.TimeoutError:
        pass

    logging.info("Ending stream!")
    await stream.stop()
    feeder_task.cancel()

    logging.info("Waiting %.0f more secs for final message(s)", config.linger_seconds)
    try:
        await asyncio.wait_for(printer_task, timeout=config.linger_seconds)
    except asyncio.TimeoutError:
        pass
    try:
        await feeder_task
    except asyncio.CancelledError:
        pass
    logging.info("Session over")


if __name__ == "__main__":
    main()
