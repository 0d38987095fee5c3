from enum import Enum, auto


class SessionState(Enum):
    CREATED = auto()
    INITIALIZING = auto()
    CONNECTING = auto()
    LISTENING = auto()
    CLOSING = auto()
    CLOSED = auto()


VALID_TRANSITIONS: dict[SessionState, set[SessionState]] = {
    SessionState.CREATED: {SessionState.INITIALIZING, SessionState.CLOSED},
    SessionState.INITIALIZING: {SessionState.CONNECTING, SessionState.CLOSING, SessionState.CLOSED},
    SessionState.CONNECTING: {SessionState.LISTENING, SessionState.CLOSING, SessionState.CLOSED},
    SessionState.LISTENING: {SessionState.CONNECTING, SessionState.CLOSING, SessionState.CLOSED},
    SessionState.CLOSING: {SessionState.CLOSED},
    SessionState.CLOSED: set(),
}


class InvalidTransitionError(Exception):
    pass


def can_transition(current: SessionState, target: SessionState) -> bool:
    return target in VALID_TRANSITIONS.get(current, set())


def validate_transition(current: SessionState, target: SessionState) -> None:
    if not can_transition(current, target):
        raise InvalidTransitionError(f"Cannot transition from {current.name} to {target.name}")
