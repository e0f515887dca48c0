class RealtimeError(Exception):
    kind = "error"


class SessionNotFound(RealtimeError):
    kind = "not_found"

    def __init__(self, session_id: str):
        super().__init__("Session not found")
        self.session_id = session_id


class InvalidInput(RealtimeError):
    kind = "invalid_input"


class ClassificationFailure(RealtimeError):
    kind = "classification"
