from pydantic_settings import BaseSettings, SettingsConfigDict


class RecognizeStreamConfig(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="DEEPGRAM_", env_file=".env", extra="ignore")

    username: str = ""
    password: str = ""

    url: str = "wss://brain.deepgram.com/v2/listen/stream"
    model: str = "phonecall"
    punctuate: bool = True
    interim_results: bool = True

    high_water_mark: int = 0
    drain_poll_interval: float = 0.01

    chunk_size: int = 8192
    stop_after_seconds: float = 30.0
    linger_seconds: float = 15.0

    log_file: str = ""
