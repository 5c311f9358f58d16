"""Resilient call executor: gateway + extraction + shape validation + retry."""

import json
import logging
import time
from dataclasses import dataclass

from config.defaults import DEFAULTS
from core.errors import MalformedOutputError, ModelCallError, NoPayloadFoundError
from utils.extract import extract_json

logger = logging.getLogger(__name__)

JSON_INSTRUCTION = (
    "\n\nIMPORTANT: Respond ONLY with a valid JSON object. "
    "No text before or after the JSON."
)


@dataclass(frozen=True)
class CallResult:
    payload: object
    attempts: int

    @property
    def retries(self):
        return self.attempts - 1


class ResilientCallExecutor:
    """The single place that owns retry policy for model calls.

    Transport failures marked retryable are retried with exponential backoff
    (base_delay * 2**attempt) up to max_attempts total attempts. Malformed
    output is never retried here: the same prompt would most likely produce
    the same mistake, so the caller decides what to do with it.
    """

    def __init__(self, gateway, max_attempts=None, base_delay=None):
        self.gateway = gateway
        self.max_attempts = max_attempts or DEFAULTS["max_attempts"]
        self.base_delay = DEFAULTS["retry_base_delay"] if base_delay is None else base_delay

    def complete_text(self, instructions, content, unit=""):
        """Raw-text call with the transport retry policy. Returns CallResult."""
        last_error = None
        for attempt in range(self.max_attempts):
            try:
                text = self.gateway.complete(instructions, content)
                if attempt:
                    logger.info("[%s] succeeded after %d retr%s", unit, attempt, "y" if attempt == 1 else "ies")
                return CallResult(payload=text, attempts=attempt + 1)
            except ModelCallError as e:
                last_error = e
                if not e.retryable:
                    logger.error("[%s] non-retryable model error: %s", unit, e)
                    raise ModelCallError(str(e), retryable=False, attempts=attempt + 1, cause=e.cause) from e
                if attempt + 1 >= self.max_attempts:
                    break
                delay = self.base_delay * (2 ** attempt)
                logger.warning(
                    "[%s] model call failed (attempt %d/%d): %s; retrying in %.1fs",
                    unit, attempt + 1, self.max_attempts, e, delay,
                )
                time.sleep(delay)

        logger.error("[%s] model call failed after %d attempts: %s", unit, self.max_attempts, last_error)
        raise ModelCallError(
            f"Model call failed after {self.max_attempts} attempts: {last_error}",
            retryable=True,
            attempts=self.max_attempts,
            cause=last_error,
        ) from last_error

    def call(self, instructions, content, shape, unit=""):
        """Structured call: returns CallResult whose payload matches shape."""
        unit = unit or shape.name
        system = f"{instructions}{JSON_INSTRUCTION}\nRequired fields: {shape.describe()}"
        result = self.complete_text(system, content, unit=unit)
        payload = self.parse(result.payload, shape, unit)
        return CallResult(payload=payload, attempts=result.attempts)

    def execute(self, instructions, content, shape, unit=""):
        """Structured call returning just the validated payload."""
        return self.call(instructions, content, shape, unit=unit).payload

    def parse(self, raw_text, shape, unit):
        try:
            payload = json.loads(extract_json(raw_text))
        except NoPayloadFoundError as e:
            logger.error("[%s] no JSON payload in response: %.200s", unit, raw_text)
            raise MalformedOutputError(str(e), unit=unit, raw_text=raw_text) from e
        except ValueError as e:
            logger.error("[%s] response JSON does not parse: %s", unit, e)
            raise MalformedOutputError(
                f"Failed to parse model response: {e}", unit=unit, raw_text=raw_text,
            ) from e

        problem = shape.validate(payload)
        if problem:
            field, reason = problem
            logger.error("[%s] response does not match %s: %s %s", unit, shape.name, field, reason)
            raise MalformedOutputError(
                f"Response for {unit} does not match {shape.name}: "
                f"{field or 'payload'} {reason}",
                unit=unit, field=field, raw_text=raw_text,
            )
        return payload
