"""Ordered fallback chain of candidate sources.

Three scrapable sites are tried first, an open web search last.
Each step turns a ResolutionRequest into the URL the probe should load.
Base hosts of the site steps are user-editable; slug rules and the
search query text are fixed.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from urllib.parse import quote

from visionlink.domain.entities.resolution import ResolutionRequest
from visionlink.domain.entities.sources import normalize_base_url
from visionlink.domain.exceptions import InvalidStepIndex, StepUrlInvalid

SEARCH_ENGINE_BASE = "https://yandex.com/search/?text="

UrlBuilder = Callable[[ResolutionRequest], str]


def slugify(title: str) -> str:
    """Lower-case, spaces to hyphens, colons and apostrophes dropped.

    >>> slugify("Attack on Titan: Final Season")
    'attack-on-titan-final-season'
    """
    return title.lower().replace(" ", "-").replace(":", "").replace("'", "")


def url_slug(title: str) -> str:
    """The slug, percent-encoded for use in a path segment or query value.

    >>> url_slug("Who's Next?")
    'whos-next%3F'
    """
    return quote(slugify(title), safe="-")


def search_query(request: ResolutionRequest) -> str:
    return (
        f"{request.title} saison {request.season} "
        f"episode {request.episode} stream vf gratuit"
    )


@dataclass
class SourceSettings:
    """Runtime-editable base hosts for the three scrapable sources."""

    source1_url: str
    source2_url: str
    source3_url: str

    def __post_init__(self) -> None:
        self.update(
            source1_url=self.source1_url,
            source2_url=self.source2_url,
            source3_url=self.source3_url,
        )

    def update(
        self,
        *,
        source1_url: str | None = None,
        source2_url: str | None = None,
        source3_url: str | None = None,
    ) -> None:
        """Replace any subset of base hosts. Values are validated first."""
        new = {
            "source1_url": source1_url,
            "source2_url": source2_url,
            "source3_url": source3_url,
        }
        validated = {k: normalize_base_url(v) for k, v in new.items() if v is not None}
        for key, value in validated.items():
            setattr(self, key, value)

    def snapshot(self) -> tuple[str, str, str]:
        return (self.source1_url, self.source2_url, self.source3_url)


@dataclass(frozen=True)
class ChainStep:
    index: int
    name: str
    url_builder: UrlBuilder = field(repr=False)


class SourceChain:
    """Immutable, ordered sequence of ChainSteps."""

    def __init__(self, steps: Sequence[ChainStep]) -> None:
        if not steps:
            raise StepUrlInvalid("source chain must contain at least one step")
        for expected, step in enumerate(steps):
            if step.index != expected:
                raise StepUrlInvalid(
                    f"step {step.name!r} has index {step.index}, expected {expected}"
                )
        self._steps: tuple[ChainStep, ...] = tuple(steps)

    def __len__(self) -> int:
        return len(self._steps)

    @property
    def final_index(self) -> int:
        return len(self._steps) - 1

    def step(self, index: int) -> ChainStep:
        if not 0 <= index < len(self._steps):
            raise InvalidStepIndex(index, len(self._steps))
        return self._steps[index]

    def build_url(self, request: ResolutionRequest, step_index: int) -> str:
        """Return the URL to probe for *request* at *step_index*.

        Pure and deterministic. Raises ``InvalidStepIndex`` when the
        index is out of range.
        """
        url = self.step(step_index).url_builder(request)
        if not url.startswith(("http://", "https://")):
            raise StepUrlInvalid(f"step {step_index} built a non-http URL: {url!r}")
        return url


def build_default_chain(settings: SourceSettings) -> SourceChain:
    """Site 1 → site 2 → site 3 → web search.

    Base hosts are captured at build time so a running session is not
    affected by later settings edits.
    """
    source1, source2, source3 = settings.snapshot()

    def _catalogue(request: ResolutionRequest) -> str:
        slug = url_slug(request.title)
        return (
            f"{source1}/catalogue/{slug}/saison{request.season}"
            f"/vostfr/episode{request.episode}"
        )

    def _episode_search(request: ResolutionRequest) -> str:
        return f"{source2}/search/{url_slug(request.title)}-episode-{request.episode}"

    def _site_search(request: ResolutionRequest) -> str:
        return f"{source3}/recherche?query={url_slug(request.title)}"

    def _web_search(request: ResolutionRequest) -> str:
        return SEARCH_ENGINE_BASE + quote(search_query(request), safe="")

    return SourceChain(
        [
            ChainStep(0, "source1", _catalogue),
            ChainStep(1, "source2", _episode_search),
            ChainStep(2, "source3", _site_search),
            ChainStep(3, "web_search", _web_search),
        ]
    )
