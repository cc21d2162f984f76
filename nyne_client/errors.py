class NyneError(Exception):
    """Base class for every error raised by the Nyne client"""


class NonJsonResponseError(NyneError):
    def __init__(self, status: int, excerpt: str):
        self.status = status
        self.excerpt = excerpt
        super().__init__(f"API returned non-JSON response ({status}): {excerpt}")


class ApiError(NyneError):
    """The API answered with a JSON error body. `body` is already redacted"""

    def __init__(self, status: int, body: str):
        self.status = status
        self.body = body
        super().__init__(f"API Error ({status}): {body}")


class PollTimeoutError(NyneError, TimeoutError):
    def __init__(self, kind: str, request_id: str):
        self.kind = kind
        self.request_id = request_id
        super().__init__(
            f"Timed out waiting for {kind} result (request_id={request_id})"
        )


class MissingCredentialsError(NyneError, ValueError):
    def __init__(self):
        super().__init__(
            "Nyne API key and secret are required. "
            "Set apiKey/apiSecret or NYNE_API_KEY/NYNE_API_SECRET."
        )
