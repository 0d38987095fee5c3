from recognize_stream.__main__ import format_event
from recognize_stream.domain.events import (
    CloseEvent,
    DataEvent,
    FinalResult,
    ListeningEvent,
    ResultsEvent,
)


class TestFormatEvent:
    def test_interim_results(self):
        assert format_event(ResultsEvent(transcript="hello wor")) == "Transcription: hello wor"

    def test_final_data(self):
        event = DataEvent(results=(
            FinalResult(value="hello", confidence=0.9, channel=0),
            FinalResult(value="world", confidence=0.8, channel=0),
        ))
        assert format_event(event) == "Final (2): hello world"

    def test_lifecycle_events_not_printed(self):
        assert format_event(ListeningEvent()) is None
        assert format_event(CloseEvent(code=1000, reason="")) is None
