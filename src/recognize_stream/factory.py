import logging

from recognize_stream.config import RecognizeStreamConfig
from recognize_stream.domain.recognize_stream import RecognizeStream, StreamOptions
from recognize_stream.handshake import build_listen_url, get_headers
from recognize_stream.ports.connection import ConnectionFactory

logger = logging.getLogger(__name__)


def create_options(config: RecognizeStreamConfig) -> StreamOptions:
    url = build_listen_url(
        config.url,
        interim_results=config.interim_results,
        model=config.model,
        punctuate=config.punctuate,
    )
    logger.debug("Listen URL: %s", url)
    return StreamOptions(
        url=url,
        headers=get_headers(config.username, config.password),
        high_water_mark=config.high_water_mark,
        drain_poll_interval=config.drain_poll_interval,
    )


def create_stream(
    config: RecognizeStreamConfig,
    connection_factory: ConnectionFactory | None = None,
) -> RecognizeStream:
    options = create_options(config)
    if connection_factory is None:
        return RecognizeStream(options)
    return RecognizeStream(options, connection_factory=connection_factory)
