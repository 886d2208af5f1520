"""
Summarisation Gateway

License check first, then the (metered) AI relay, then a usage row.

Order matters:
1. Missing input is rejected before anything else
2. The license is verified before the relay is ever called
3. Usage is recorded only after a summary parsed; a failed usage write is logged, not raised
"""
import json
import logging
import re
from typing import Dict, List, Optional

from pydantic import ValidationError as SchemaValidationError

from app.core.errors import AuthorizationError, MalformedUpstreamResponse, PersistenceError, ValidationError
from app.models.license import mask_license_key
from app.schemas.summary import Summary
from app.services.ai_relay import OpenRouterRelay
from app.services.license_verifier import LicenseVerifier, VerificationStatus
from app.services.record_store import RecordStore

logger = logging.getLogger("uvicorn.error")

DEFAULT_MAX_CHARS = 6000

SYSTEM_PROMPT = """You are a concise summariser. Respond with ONLY a JSON object, no markdown, no extra text:
{
  "headline": "One sharp sentence capturing the core idea (max 15 words)",
  "bullets": [
    "First key point, specific and useful",
    "Second key point, specific and useful",
    "Third key point, specific and useful"
  ],
  "readTime": "X min read"
}"""

# ```json ... ```, ``` ... ```, or a bare fence on either side
_LEADING_FENCE = re.compile(r"^```[A-Za-z0-9_-]*[ \t]*\r?\n?")
_TRAILING_FENCE = re.compile(r"\r?\n?```\s*$")


def strip_code_fences(raw: str) -> str:
    """
    Remove Markdown code-fence decoration around a model answer.

    Accepted inputs:
    - ```json\\n{...}\\n```   (fenced, with language tag)
    - ```\\n{...}\\n```       (fenced, no tag)
    - {...}                   (unfenced, returned trimmed)
    """
    text = (raw or "").strip()
    text = _LEADING_FENCE.sub("", text, count=1)
    text = _TRAILING_FENCE.sub("", text, count=1)
    return text.strip()


def parse_summary(raw: str) -> Summary:
    """
    Parse relay output into a Summary.

    Raises:
        MalformedUpstreamResponse: not JSON, not an object, or wrong shape
    """
    cleaned = strip_code_fences(raw)
    try:
        data = json.loads(cleaned)
    except ValueError as e:
        raise MalformedUpstreamResponse() from e
    if not isinstance(data, dict):
        raise MalformedUpstreamResponse()
    try:
        return Summary.model_validate(data)
    except SchemaValidationError as e:
        raise MalformedUpstreamResponse() from e


def build_messages(title: Optional[str], text: str) -> List[Dict[str, str]]:
    return [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "user", "content": f"Page title: {title or 'Untitled'}\n\nPage content:\n{text}"},
    ]


class SummarisationGateway:
    """Gates the AI relay behind license verification and logs usage."""

    def __init__(
        self,
        verifier: LicenseVerifier,
        relay: OpenRouterRelay,
        store: RecordStore,
        max_chars: int = DEFAULT_MAX_CHARS,
    ):
        self.verifier = verifier
        self.relay = relay
        self.store = store
        self.max_chars = max_chars

    async def summarise(self, license_key: Optional[str], title: Optional[str], text: Optional[str]) -> Summary:
        """
        Summarise page text for a licensed user.

        Args:
            license_key: Key presented by the extension
            title: Page title (optional)
            text: Page text; anything beyond ``max_chars`` is dropped silently

        Returns:
            Summary

        Raises:
            ValidationError: license_key or text missing
            AuthorizationError: key unknown, revoked, or could not be checked
            UpstreamError: relay unreachable / errored / timed out
            MalformedUpstreamResponse: relay output is not a summary object
        """
        license_key = (license_key or "").strip()
        if not license_key or not text:
            raise ValidationError()

        result = await self.verifier.check(license_key)
        if not result.valid:
            if result.status is VerificationStatus.STORE_ERROR:
                logger.warning("[summarise] Rejecting %s: license store unavailable", mask_license_key(license_key))
            raise AuthorizationError()

        trimmed = text[: self.max_chars]
        raw = await self.relay.complete(build_messages(title, trimmed))
        summary = parse_summary(raw)

        await self._record_usage(license_key)
        return summary

    async def _record_usage(self, license_key: str) -> None:
        try:
            await self.store.insert_usage(license_key)
        except PersistenceError as e:
            logger.error("[summarise] Usage write failed for %s: %s", mask_license_key(license_key), e)
