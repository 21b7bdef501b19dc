"""Classification of fetched pages into ok / HTTP error / soft-404."""

import re
from dataclasses import dataclass
from urllib.parse import urlparse

from link_preview.services.fetcher import FetchResponse
from link_preview.services.html_parser import RawFields


@dataclass(frozen=True)
class Ok:
    pass


@dataclass(frozen=True)
class HttpError:
    status: int

    @property
    def tag(self) -> str:
        return f"http:HTTP {self.status}"


@dataclass(frozen=True)
class SoftNotFound:
    reason: str

    @property
    def tag(self) -> str:
        return f"http:Soft 404 ({self.reason})"


ValidationOutcome = Ok | HttpError | SoftNotFound


@dataclass(frozen=True)
class SiteRule:
    """Phrases that mean "gone" on one family of hosts."""

    name: str
    hosts: tuple[str, ...]
    title_phrases: tuple[str, ...] = ()
    description_phrases: tuple[str, ...] = ()
    body_phrases: tuple[str, ...] = ()

    def applies_to(self, host: str) -> bool:
        return any(host == h or host.endswith("." + h) for h in self.hosts)


SITE_RULES = (
    SiteRule(
        name="reddit",
        hosts=("reddit.com",),
        title_phrases=(
            "page not found",
            "this community doesn't exist",
            "this community does not exist",
        ),
        description_phrases=("page not found",),
        body_phrases=("sorry, nobody on reddit goes by that name",),
    ),
    SiteRule(
        name="youtube",
        hosts=("youtube.com", "youtu.be"),
        title_phrases=("video unavailable",),
        description_phrases=("video isn't available", "video has been removed"),
        body_phrases=("this video isn't available",),
    ),
)

# Title is exactly the phrase, or starts with it followed by a separator.
# Other 4xx codes only count when followed by an error word.
GENERIC_TITLE_RE = re.compile(
    r"^(?:404 error|page not found|not found|404"
    r"|4\d\d\s*[|:\-]?\s*(?:not found|error|forbidden|gone))"
    r"(?:$|[\s|:\-])"
)


class ResultValidator:
    def __init__(self, rules: tuple[SiteRule, ...] = SITE_RULES):
        self._rules = rules

    def classify(self, response: FetchResponse, fields: RawFields) -> ValidationOutcome:
        if response.status_code >= 400:
            return HttpError(response.status_code)
        if not 200 <= response.status_code < 300:
            return Ok()

        try:
            host = (urlparse(response.url).hostname or "").lower()
        except ValueError:
            host = ""
        title = (fields.title or "").lower()
        description = (fields.description or "").lower()

        for rule in self._rules:
            if not rule.applies_to(host):
                continue
            if _contains_any(title, rule.title_phrases) or _contains_any(
                description, rule.description_phrases
            ):
                return SoftNotFound(f"{rule.name} page unavailable")
            if rule.body_phrases and _contains_any(
                response.text.lower(), rule.body_phrases
            ):
                return SoftNotFound(f"{rule.name} page unavailable")

        if title and GENERIC_TITLE_RE.match(title):
            return SoftNotFound("error page title")
        return Ok()


def _contains_any(text: str, phrases: tuple[str, ...]) -> bool:
    return any(phrase in text for phrase in phrases)
