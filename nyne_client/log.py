import json
from typing import Any, Optional

from loguru import logger as default_logger


class NyneLogger:
    """Prefixing wrapper around a loguru logger.

    Debug output, including the request/response traces, is only emitted
    when `debug` is set. Every component gets its own instance handed in
    at construction.
    """

    def __init__(self, logger: Optional[Any] = None, debug: bool = False):
        self.logger = logger or default_logger.bind(component="nyne")
        self.debug_enabled = debug

    def info(self, message: str) -> None:
        self.logger.info(f"nyne: {message}")

    def warning(self, message: str) -> None:
        self.logger.warning(f"nyne: {message}")

    def error(self, message: str) -> None:
        self.logger.error(f"nyne: {message}")

    def debug(self, message: str) -> None:
        if self.debug_enabled:
            self.logger.debug(f"nyne: {message}")

    def debug_request(self, method: str, body: Optional[dict]) -> None:
        if self.debug_enabled:
            self.logger.debug(f"nyne: → {method} {json.dumps(body or {})}")

    def debug_response(self, method: str, summary: dict) -> None:
        if self.debug_enabled:
            self.logger.debug(f"nyne: ← {method} {json.dumps(summary)}")
