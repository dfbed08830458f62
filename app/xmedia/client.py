import logging
from dataclasses import dataclass
from typing import Any
from urllib.parse import quote

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from app.xmedia.errors import ConfigurationIncomplete, DecodeFailure, UpstreamUnavailable

logger = logging.getLogger(__name__)

DEFAULT_TIMELINE_URL = "https://api.twitter.com/2/timeline/media_by_user.json?user_id={subject_id}"
DEFAULT_USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; Win64; x64)"
DEFAULT_TIMEOUT_SECONDS = 20.0


@dataclass(frozen=True)
class FetchQuery:
    subject_id: str
    cookie: str = ""
    bearer_token: str = ""

    @property
    def has_credentials(self) -> bool:
        return bool(self.cookie.strip() or self.bearer_token.strip())

    def validate(self) -> None:
        if not self.subject_id.strip():
            raise ConfigurationIncomplete("subject id is not configured")
        if not self.has_credentials:
            raise ConfigurationIncomplete("neither cookie nor bearer token is configured")


class XMediaClient:
    """Single-GET client for the account media timeline.

    Returns decoded JSON or raises `UpstreamUnavailable` / `DecodeFailure`.
    """

    def __init__(
        self,
        *,
        url_template: str = DEFAULT_TIMELINE_URL,
        user_agent: str = DEFAULT_USER_AGENT,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        session: requests.Session | None = None,
    ) -> None:
        self.url_template = url_template
        self.user_agent = user_agent
        self.timeout_seconds = timeout_seconds
        if session is None:
            session = requests.Session()
            retry = Retry(
                total=2,
                backoff_factor=0.5,
                status_forcelist=(500, 502, 503, 504),
                allowed_methods=frozenset({"GET"}),
                respect_retry_after_header=False,
                raise_on_status=False,
            )
            adapter = HTTPAdapter(max_retries=retry)
            session.mount("https://", adapter)
            session.mount("http://", adapter)
        self._session = session

    def build_url(self, query: FetchQuery) -> str:
        return self.url_template.format(subject_id=quote(query.subject_id.strip(), safe=""))

    def build_headers(self, query: FetchQuery) -> dict[str, str]:
        headers = {
            "User-Agent": self.user_agent,
            "Accept": "application/json, text/javascript, */*; q=0.01",
            "Accept-Language": "en-US,en;q=0.9",
            "Referer": "https://x.com/",
            "Connection": "keep-alive",
        }
        if query.cookie.strip():
            headers["Cookie"] = query.cookie.strip()
        if query.bearer_token.strip():
            headers["Authorization"] = f"Bearer {query.bearer_token.strip()}"
        return headers

    def fetch(self, query: FetchQuery) -> Any:
        url = self.build_url(query)
        try:
            resp = self._session.get(
                url,
                headers=self.build_headers(query),
                timeout=self.timeout_seconds,
            )
        except requests.RequestException as exc:
            logger.info("[XMEDIA] request=timeline status=error")
            raise UpstreamUnavailable(f"Request to timeline failed: {exc}") from exc

        status = int(resp.status_code)
        logger.info("[XMEDIA] request=timeline status=%s", status)
        if status < 200 or status >= 300:
            raise UpstreamUnavailable(f"Timeline request failed ({status})", status_code=status)
        try:
            return resp.json()
        except ValueError as exc:
            raise DecodeFailure(f"Timeline response is not valid JSON: {exc}") from exc

    def __call__(self, query: FetchQuery) -> Any:
        return self.fetch(query)
