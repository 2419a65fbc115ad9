"""
Configuration Validator

Decodes a remote response body into a flat config snapshot.
Anything that is not a JSON object of scalar values is rejected.
"""

import json
from datetime import datetime
from typing import Any

from remoteconf.common.exceptions import InvalidPayloadError
from remoteconf.common.logging_setup import get_service_logger

from .values import ConfigSnapshot, ValueKind

logger = get_service_logger("config.validator")


class ConfigValidator:
    """Validates and decodes remote configuration payloads"""

    def validate(self, config: Any) -> tuple[bool, list[str]]:
        """
        Validate a decoded JSON document.

        Args:
            config: Result of json.loads

        Returns:
            Tuple of (is_valid, list of error messages)
        """
        errors: list[str] = []

        if not isinstance(config, dict):
            errors.append(f"Expected a JSON object, got {type(config).__name__}")
            return False, errors

        for key, value in config.items():
            if not isinstance(key, str):
                errors.append(f"Non-string key: {key!r}")
            elif ValueKind.of(value) is None:
                errors.append(f"Unsupported value for '{key}': {type(value).__name__}")

        is_valid = len(errors) == 0

        if not is_valid:
            logger.warning(
                f"Config validation failed: {len(errors)} errors",
                extra={"errors": errors},
            )
        else:
            logger.debug("Config validation passed")

        return is_valid, errors

    def decode(self, body: bytes | None, fetched_at: datetime | None = None) -> ConfigSnapshot:
        """
        Decode a response body into a snapshot.

        Args:
            body: Raw response bytes
            fetched_at: Timestamp to attach to the snapshot

        Returns:
            Decoded snapshot

        Raises:
            InvalidPayloadError: empty body, bad JSON, or not a flat scalar map
        """
        if not body:
            raise InvalidPayloadError("response body is empty")

        try:
            document = json.loads(body)
        except (UnicodeDecodeError, ValueError) as e:
            raise InvalidPayloadError(f"response body is not valid JSON: {e}") from e

        is_valid, errors = self.validate(document)
        if not is_valid:
            raise InvalidPayloadError("; ".join(errors))

        return ConfigSnapshot.from_dict(document, fetched_at=fetched_at)
