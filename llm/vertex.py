"""Claude client for Google Cloud Vertex AI.

Authentication uses Application Default Credentials (``gcloud auth
application-default login``); requests go through a google-auth
``AuthorizedSession`` which attaches the bearer token.
"""

from __future__ import annotations

import json
import logging
import threading
from dataclasses import asdict, dataclass
from typing import Any, Optional, Sequence

import google.auth
import requests
from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import AuthorizedSession, Request

from config import VertexAIConfig

logger = logging.getLogger("deskpet")

ANTHROPIC_VERSION = "vertex-2023-10-16"
SCOPES = ["https://www.googleapis.com/auth/cloud-platform"]
ENDPOINT_TEMPLATE = (
    "https://{location}-aiplatform.googleapis.com/v1/projects/{project}"
    "/locations/{location}/publishers/anthropic/models/{model}:rawPredict"
)

AUTH_HELP = (
    "Authentication troubleshooting:\n"
    "  1. Run: gcloud auth application-default login\n"
    "  2. Run: gcloud config set project YOUR_PROJECT_ID (or set ANTHROPIC_VERTEX_PROJECT_ID)\n"
    "  3. Ensure the project has the Vertex AI API enabled\n"
    "  4. Ensure your account has the necessary IAM permissions"
)


class LLMError(Exception):
    """Base class for inference failures."""

    stage = "inference"


class AuthenticationError(LLMError):
    """Credentials are missing, stale or lack a project. Never retried."""


class LLMTransportError(LLMError):
    """The HTTP request itself failed."""


class LLMStatusError(LLMError):
    """The endpoint answered with a non-200 status."""

    def __init__(self, status_code: int, body: str) -> None:
        super().__init__(f"API error {status_code}: {body[:500]}")
        self.status_code = status_code
        self.body = body


class LLMResponseError(LLMError):
    """The response body could not be decoded."""


class EmptyResponseError(LLMError):
    """The response carried no text content."""


@dataclass
class Message:
    role: str
    content: str

    def to_dict(self) -> dict[str, str]:
        return asdict(self)


def extract_text(response: dict[str, Any]) -> str:
    """Return the first non-empty text block of a Messages API response."""
    for block in response.get("content") or []:
        if isinstance(block, dict) and block.get("type") == "text" and block.get("text"):
            return block["text"]
    return ""


class VertexClient:
    """One request/response exchange per call against Claude on Vertex AI."""

    def __init__(self, config: VertexAIConfig) -> None:
        self.config = config
        self._lock = threading.Lock()
        self._initialized = False
        self._session: Optional[AuthorizedSession] = None

    def initialize(self) -> None:
        """Authenticate once; later calls are no-ops.

        Raises:
            AuthenticationError: ADC missing/stale or no project configured
        """
        with self._lock:
            if self._initialized:
                return

            logger.info("🔐 Initializing Vertex AI authentication...")
            try:
                credentials, detected_project = google.auth.default(scopes=SCOPES)
                credentials.refresh(Request())
            except GoogleAuthError as exc:
                logger.error(AUTH_HELP)
                raise AuthenticationError(f"Application Default Credentials unavailable: {exc}") from exc

            if not self.config.project_id and detected_project:
                self.config.project_id = detected_project
            if not self.config.project_id:
                logger.error(AUTH_HELP)
                raise AuthenticationError(
                    "no project ID found. Set ANTHROPIC_VERTEX_PROJECT_ID or run: "
                    "gcloud config set project YOUR_PROJECT"
                )

            logger.info("📋 Using project: %s", self.config.project_id)
            logger.info("🌍 Using location: %s", self.config.location)
            logger.info("🤖 Using model: %s", self.config.model)

            self._session = AuthorizedSession(credentials)
            self._initialized = True
            logger.info("✅ Vertex AI client initialized successfully")

    def is_available(self) -> bool:
        return self._initialized

    @property
    def endpoint(self) -> str:
        return ENDPOINT_TEMPLATE.format(
            location=self.config.location,
            project=self.config.project_id,
            model=self.config.model,
        )

    def build_payload(self, messages: Sequence[Message]) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "anthropic_version": ANTHROPIC_VERSION,
            "messages": [m.to_dict() for m in messages],
            "max_tokens": self.config.max_tokens,
            "temperature": self.config.temperature,
        }
        if self.config.system_prompt:
            payload["system"] = self.config.system_prompt
        return payload

    def send_message(self, messages: Sequence[Message], timeout: Optional[float] = None) -> str:
        """Send a conversation turn and return the reply text.

        Args:
            messages: Ordered user/assistant messages
            timeout: Request deadline in seconds (defaults to the configured one)

        Returns:
            Text of the first text content block

        Raises:
            LLMError: One of its subclasses, naming what went wrong
        """
        if not self._initialized:
            self.initialize()

        payload = self.build_payload(messages)
        logger.debug("Making request to Vertex AI (%d messages)", len(payload["messages"]))

        try:
            response = self._session.post(
                self.endpoint,
                json=payload,
                headers={"Content-Type": "application/json"},
                timeout=timeout or self.config.request_timeout,
            )
        except (requests.RequestException, GoogleAuthError) as exc:
            # GoogleAuthError: the token refresh inside the session failed
            raise LLMTransportError(f"HTTP request failed: {exc}") from exc

        logger.debug("Received response: status=%s size=%d", response.status_code, len(response.content))

        if response.status_code != 200:
            raise LLMStatusError(response.status_code, response.text)

        try:
            data = response.json()
        except (ValueError, json.JSONDecodeError) as exc:
            raise LLMResponseError(f"failed to parse response: {exc}") from exc

        text = extract_text(data) if isinstance(data, dict) else ""
        if not text:
            raise EmptyResponseError("no text found in response")
        return text

    def shutdown(self) -> None:
        with self._lock:
            logger.info("Shutting down Claude Vertex AI client")
            if self._session is not None:
                self._session.close()
            self._session = None
            self._initialized = False


__all__ = [
    "VertexClient",
    "Message",
    "extract_text",
    "LLMError",
    "AuthenticationError",
    "LLMTransportError",
    "LLMStatusError",
    "LLMResponseError",
    "EmptyResponseError",
]
