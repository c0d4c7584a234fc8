"""Error types raised by the board's date and bucketing logic."""


class TaskboardError(ValueError):
    """Base class for data-integrity errors. These are never expected at runtime."""


class MalformedWeekKey(TaskboardError):
    def __init__(self, value: object) -> None:
        super().__init__(f"Malformed week key: {value!r} (expected YYYY-MM-DD)")
        self.value = value


class MalformedDate(TaskboardError):
    def __init__(self, value: object) -> None:
        super().__init__(f"Malformed date: {value!r} (expected YYYY-MM-DD)")
        self.value = value


class UnknownTaskStatus(TaskboardError):
    def __init__(self, value: object) -> None:
        super().__init__(f"Unknown task status: {value!r}")
        self.value = value


class SlackWebhookError(RuntimeError):
    """Raised when the Slack webhook rejects a message."""

    def __init__(self, status_code: int, body: str) -> None:
        super().__init__(f"Slack webhook failed: {status_code} {body}")
        self.status_code = status_code
        self.body = body
