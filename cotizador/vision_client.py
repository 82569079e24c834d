"""
Vision model client — one OpenAI-compatible chat completion per request.

The image travels inline as a base64 data URL. There is no retry: a
failed call is terminal for the request and raises UpstreamError with
the status and response body preserved.
"""

import base64
import json
import logging
import urllib.error
import urllib.request

from .config import Settings
from .errors import UpstreamError
from .prompts import SYSTEM_PROMPT

logger = logging.getLogger(__name__)


class VisionClient:
    """
    Sends a prompt plus an image to a vision-capable chat model.

    Usage:
        client = VisionClient(settings)
        raw_text = client.complete(prompt, image_bytes, "image/jpeg")
    """

    def __init__(self, settings: Settings):
        self.settings = settings

    def complete(self, prompt: str, image_bytes: bytes, mime_type: str = "image/jpeg") -> str:
        """Return the raw assistant text. Raises UpstreamError on any failure."""
        if not self.settings.OPENAI_API_KEY:
            raise UpstreamError("OPENAI_API_KEY not configured")

        payload = json.dumps(self._build_payload(prompt, image_bytes, mime_type)).encode("utf-8")
        url = self.settings.OPENAI_BASE_URL.rstrip("/") + "/chat/completions"

        req = urllib.request.Request(
            url,
            data=payload,
            headers={
                "Content-Type": "application/json",
                "Authorization": "Bearer %s" % self.settings.OPENAI_API_KEY,
            },
            method="POST",
        )

        try:
            with urllib.request.urlopen(req, timeout=self.settings.OPENAI_TIMEOUT_SECONDS) as response:
                result = json.loads(response.read())
        except urllib.error.HTTPError as e:
            error_body = e.read().decode("utf-8", errors="replace")
            logger.error("Vision model responded %s: %s", e.code, error_body)
            raise UpstreamError("Error from OpenAI", details="%s %s" % (e.code, error_body))
        except urllib.error.URLError as e:
            logger.error("Vision model unreachable: %s", e.reason)
            raise UpstreamError("Error from OpenAI", details=str(e.reason))
        except OSError as e:
            # read timeouts surface as plain socket errors
            logger.error("Vision model call failed: %s", e)
            raise UpstreamError("Error from OpenAI", details=str(e))
        except json.JSONDecodeError as e:
            raise UpstreamError("Error from OpenAI", details="Invalid JSON response: %s" % e)

        return _message_content(result)

    def _build_payload(self, prompt: str, image_bytes: bytes, mime_type: str) -> dict:
        image_b64 = base64.b64encode(image_bytes).decode("utf-8")
        return {
            "model": self.settings.OPENAI_MODEL,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": prompt},
                        {
                            "type": "image_url",
                            "image_url": {"url": "data:%s;base64,%s" % (mime_type, image_b64)},
                        },
                    ],
                },
            ],
            "max_tokens": self.settings.OPENAI_MAX_TOKENS,
            "temperature": self.settings.OPENAI_TEMPERATURE,
        }


def _message_content(result: dict) -> str:
    """choices[0].message.content, or "" when the shape is unexpected."""
    try:
        return result["choices"][0]["message"]["content"] or ""
    except (KeyError, IndexError, TypeError):
        logger.warning("Vision model response had no message content")
        return ""
