"""Errors raised by the completion client."""


class CompletionClientError(Exception):
    """The completion API call failed or returned something unusable.

    Covers HTTP/API failures, missing credentials and malformed provider
    responses.  Fatal to the current question only.
    """

    def __init__(self, detail: str, *, model: str = "") -> None:
        self.detail = detail
        self.model = model
        prefix = f"Completion failed ({model})" if model else "Completion failed"
        super().__init__(f"{prefix}: {detail}")
