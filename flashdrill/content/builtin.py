"""
Built-in lesson loading.

Built-in lessons ship as plain lesson-text files listed in a manifest
(files.txt by default). The manifest is fetched first, then every listed file
is fetched concurrently and parsed. Results are merged in manifest order no
matter which fetch finishes first.

Sources:
- HttpLessonSource: files served over HTTP(S), fetched with httpx
- DirectoryLessonSource: files in a local directory
"""
from __future__ import annotations

import asyncio
from collections.abc import Iterable
from pathlib import Path
from typing import Protocol

import httpx
from loguru import logger

from ..errors import FetchError
from .models import Card
from .parser import LessonTextParser, ParseResult


class LessonTextSource(Protocol):
    """Anything that can fetch lesson text by name."""

    async def fetch_text(self, name: str) -> str: ...


class HttpLessonSource:
    """Fetch built-in lesson files from a base URL."""

    def __init__(
        self,
        base_url: str,
        timeout_seconds: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ):
        """
        Initialize the source.

        Args:
            base_url: URL of the directory holding the manifest and lesson files
            timeout_seconds: Request timeout
            client: Preconfigured client (a new one is created if None)
        """
        self.base_url = base_url.rstrip("/")
        self.client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(timeout_seconds),
            follow_redirects=True,
        )

    async def close(self) -> None:
        """Close the HTTP client."""
        await self.client.aclose()

    async def fetch_text(self, name: str) -> str:
        url = f"{self.base_url}/{name.lstrip('/')}"
        try:
            response = await self.client.get(url)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise FetchError(name, f"HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise FetchError(name, str(e)) from e

        logger.debug(f"Fetched {url} ({len(response.text)} chars)")
        return response.text


class DirectoryLessonSource:
    """Read built-in lesson files from a local directory."""

    def __init__(self, base_path: Path | str):
        self.base_path = Path(base_path)

    async def fetch_text(self, name: str) -> str:
        path = self.base_path / name
        try:
            return await asyncio.to_thread(path.read_text, encoding="utf-8")
        except OSError as e:
            raise FetchError(name, str(e)) from e


def parse_manifest(text: str) -> list[str]:
    """Split a manifest into file names, dropping blank lines."""
    return [line.strip() for line in text.splitlines() if line.strip()]


def merge_results(results: Iterable[ParseResult]) -> ParseResult:
    """Concatenate parse results in the given order."""
    merged = ParseResult()
    for result in results:
        merged.lessons.extend(result.lessons)
        merged.cards.extend(result.cards)
    return merged


async def load_builtin_lessons(
    source: LessonTextSource,
    parser: LessonTextParser,
    prior_cards: Iterable[Card] = (),
    manifest: str = "files.txt",
) -> ParseResult:
    """
    Load every built-in lesson file listed in the manifest.

    Args:
        source: Where to fetch the manifest and lesson files from
        parser: Parser for the lesson text
        prior_cards: Known cards whose history is carried forward
        manifest: Manifest file name

    Returns:
        Merged ParseResult with all cards marked built-in

    Raises:
        FetchError: If the manifest or any listed file cannot be fetched
        LessonParseError: If a built-in file is not valid lesson text
    """
    prior = list(prior_cards)
    names = parse_manifest(await source.fetch_text(manifest))
    logger.info(f"Built-in manifest lists {len(names)} files")

    async def load_file(name: str) -> ParseResult:
        text = await source.fetch_text(name)
        return parser.parse(text, prior).mark_builtin()

    # gather() returns results in argument order, i.e. manifest order
    results = await asyncio.gather(*(load_file(name) for name in names))
    merged = merge_results(results)

    logger.info(
        f"Loaded {len(merged.lessons)} built-in lessons, {len(merged.cards)} cards"
    )
    return merged


def make_source(location: str, timeout_seconds: float = 10.0) -> LessonTextSource:
    """Pick an HTTP or directory source for a configured location."""
    if location.startswith(("http://", "https://")):
        return HttpLessonSource(location, timeout_seconds=timeout_seconds)
    return DirectoryLessonSource(location)
