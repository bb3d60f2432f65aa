"""
LibreTranslate Client
=====================

Text-in/text-out translation over the LibreTranslate HTTP API.

Each text is posted to the configured instances in order; the first instance
returning a non-empty ``translatedText`` wins. When every instance fails the
client raises TranslationAPIError and leaves fallback decisions to the caller
(see recipe_translator.py).

Usage:
    from translation_client import get_translation_client

    client = get_translation_client()
    spanish = client.translate("Preheat the oven")

Architecture:
    LibreTranslateClient
    ├── Connection pooling via requests.Session
    ├── Retry on transient gateway errors (urllib3 Retry)
    └── Instance chain (public mirrors or one self-hosted URL)
"""

from typing import List, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from config import get_translation_config
from errors import TranslationAPIError
from tools.logging_utils import get_logger

logger = get_logger(__name__)


class LibreTranslateClient:
    """
    Client for one or more LibreTranslate instances.

    Safe to share between the worker threads of a translation fan-out; the
    underlying requests.Session pools connections per host.
    """

    # Retry configuration (kept low: the instance chain is the real fallback)
    RETRY_TOTAL = 1
    RETRY_BACKOFF_FACTOR = 0.3
    RETRY_STATUS_FORCELIST = [502, 503, 504]

    # Connection pool configuration
    POOL_CONNECTIONS = 5
    POOL_MAXSIZE = 10

    DEFAULT_TIMEOUT = 5

    def __init__(
        self,
        instances: List[str],
        timeout: float = DEFAULT_TIMEOUT,
        api_key: Optional[str] = None,
        source: str = "en",
        target: str = "es",
    ):
        """
        Args:
            instances: Base URLs tried in order (e.g. "https://libretranslate.com")
            timeout: Per-request timeout in seconds
            api_key: Optional API key sent with every request
            source: Source language code
            target: Target language code
        """
        if not instances:
            raise ValueError("At least one LibreTranslate instance is required")

        self.instances = [url.rstrip('/') for url in instances]
        self.timeout = timeout
        self.api_key = api_key
        self.source = source
        self.target = target

        self.session = requests.Session()
        retry_strategy = Retry(
            total=self.RETRY_TOTAL,
            backoff_factor=self.RETRY_BACKOFF_FACTOR,
            status_forcelist=self.RETRY_STATUS_FORCELIST,
            allowed_methods=["POST"],
        )
        adapter = HTTPAdapter(
            pool_connections=self.POOL_CONNECTIONS,
            pool_maxsize=self.POOL_MAXSIZE,
            max_retries=retry_strategy,
        )
        self.session.mount('http://', adapter)
        self.session.mount('https://', adapter)
        self.session.headers.update({'Content-Type': 'application/json'})

        logger.debug(f"LibreTranslateClient initialized: instances={self.instances}")

    def close(self) -> None:
        """Clean up connections."""
        self.session.close()

    def _translate_on(self, base_url: str, text: str) -> str:
        payload = {
            'q': text,
            'source': self.source,
            'target': self.target,
            'format': 'text',
        }
        if self.api_key:
            payload['api_key'] = self.api_key

        response = self.session.post(f"{base_url}/translate", json=payload, timeout=self.timeout)
        response.raise_for_status()
        translated = response.json().get('translatedText')
        if not isinstance(translated, str) or not translated.strip():
            raise ValueError("empty translatedText")
        return translated

    def translate(self, text: str) -> str:
        """
        Translate one text.

        Args:
            text: Text in the source language. Blank text is returned as-is.

        Returns:
            Translated text

        Raises:
            TranslationAPIError: If every instance failed
        """
        if not text or not text.strip():
            return text

        failures = []
        last_status = None
        for base_url in self.instances:
            try:
                return self._translate_on(base_url, text)
            except requests.exceptions.HTTPError as e:
                last_status = e.response.status_code if e.response is not None else None
                failures.append(f"{base_url}: HTTP {last_status}")
            except requests.exceptions.Timeout:
                failures.append(f"{base_url}: timed out after {self.timeout}s")
            except (requests.exceptions.RequestException, ValueError) as e:
                # ValueError covers non-JSON bodies and empty translations
                failures.append(f"{base_url}: {e}")
            logger.warning(f"Translation failed with {failures[-1]}")

        raise TranslationAPIError(
            "All translation instances failed",
            status_code=last_status,
            details={'instances': len(self.instances), 'errors': "; ".join(failures)},
        )


def get_translation_client() -> LibreTranslateClient:
    """Build a client from the translation config section."""
    config = get_translation_config()
    return LibreTranslateClient(
        instances=config['instances'],
        timeout=config['request_timeout'],
        api_key=config.get('api_key'),
        source=config['source_language'],
        target=config['target_language'],
    )
