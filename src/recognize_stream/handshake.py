import base64
import urllib.parse

from recognize_stream.domain.errors import ConfigError

DEFAULT_MODEL = "phonecall"


def _query_value(value: object) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def get_headers(username: str, password: str) -> dict[str, str]:
    username = (username or "").strip()
    password = (password or "").strip()
    if not username or not password:
        raise ConfigError("Recognition service username and password are required")

    token = base64.b64encode(f"{username}:{password}".encode()).decode()
    return {"Authorization": f"Basic {token}"}


def get_querystring(model: str = DEFAULT_MODEL, punctuate: bool = True) -> dict[str, str]:
    return {
        "model": model,
        "punctuate": _query_value(punctuate),
    }


def build_listen_url(
    base_url: str,
    interim_results: bool,
    model: str = DEFAULT_MODEL,
    punctuate: bool = True,
    **extra: object,
) -> str:
    params = get_querystring(model=model, punctuate=punctuate)
    params["interim_results"] = _query_value(interim_results)
    params.update({key: _query_value(value) for key, value in extra.items()})
    return f"{base_url}?{urllib.parse.urlencode(params)}"
