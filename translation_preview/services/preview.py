"""Translation preview surface.

The preview is the consumer side of the orchestrator. It tracks which
document the most recent request was issued for and drops updates and
errors from requests that have since been superseded. Superseded streams
are not cancelled; their late snapshots are simply ignored, so a newer
request's output is never overwritten by an older one.
"""
from __future__ import annotations

import inspect
import logging
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, Optional, Union

from ..errors import TranslationError
from ..models.translation import TranslationOutcome, TranslationUpdate
from .documents import extract_section, read_document, section_document_id
from .orchestrator import TranslationOrchestrator

logger = logging.getLogger(__name__)

Renderer = Callable[[TranslationUpdate], Union[None, Awaitable[None]]]
ErrorReporter = Callable[[TranslationError], Union[None, Awaitable[None]]]


async def _call(callback: Optional[Callable[[Any], Any]], value: Any) -> None:
    if callback is None:
        return
    result = callback(value)
    if inspect.isawaitable(result):
        await result


class TranslationPreview:
    """Single-flight consumer of translation snapshots.

    Attributes:
        latest: Last snapshot delivered for the current request
        current_document: Identity of the document the current request is for
        last_error: Error of the current request, if it failed
    """

    def __init__(
        self,
        orchestrator: TranslationOrchestrator,
        renderer: Optional[Renderer] = None,
        error_reporter: Optional[ErrorReporter] = None,
    ):
        self.orchestrator = orchestrator
        self.renderer = renderer
        self.error_reporter = error_reporter
        self.latest: Optional[TranslationUpdate] = None
        self.current_document: Optional[str] = None
        self.last_error: Optional[TranslationError] = None
        self.dropped_updates = 0
        self._generation = 0
        self._current_text: Optional[str] = None
        self._current_model: Optional[str] = None

    def _is_current(self, generation: int) -> bool:
        return generation == self._generation

    async def show_document(
        self,
        document_id: str,
        text: str,
        force_bypass_cache: bool = False,
        model: Optional[str] = None,
    ) -> Optional[TranslationOutcome]:
        """Translate ``text`` and render its snapshots as the current document.

        Args:
            document_id: Identity of the document (path, or path plus section)
            text: Document text to translate
            force_bypass_cache: Re-translate even if a cached translation exists
            model: Model override

        Returns:
            The outcome, or None if the request failed or was superseded
        """
        self._generation += 1
        generation = self._generation
        self.current_document = document_id
        self._current_text = text
        self._current_model = model
        self.latest = None
        self.last_error = None
        logger.info(f"Loading document for translation: {document_id}")

        async def on_update(update: TranslationUpdate) -> None:
            if not self._is_current(generation):
                self.dropped_updates += 1
                logger.debug(f"Dropping stale update for {document_id}")
                return
            self.latest = update
            await _call(self.renderer, update)

        try:
            outcome = await self.orchestrator.translate(
                text, on_update, model=model, force_bypass_cache=force_bypass_cache
            )
        except TranslationError as e:
            if not self._is_current(generation):
                logger.debug(f"Ignoring error from superseded request for {document_id}: {e}")
                return None
            self.last_error = e
            logger.error(f"Translation failed for {document_id}: {e.user_message}")
            await _call(self.error_reporter, e)
            return None

        if not self._is_current(generation):
            return None
        return outcome

    async def show_path(
        self, path: Union[str, Path], force_bypass_cache: bool = False, model: Optional[str] = None
    ) -> Optional[TranslationOutcome]:
        """Translate a whole Markdown file."""
        text = read_document(path)
        return await self.show_document(str(Path(path)), text, force_bypass_cache, model)

    async def show_section(
        self,
        path: Union[str, Path],
        line: int,
        force_bypass_cache: bool = False,
        model: Optional[str] = None,
    ) -> Optional[TranslationOutcome]:
        """Translate the section of a Markdown file that starts at heading ``line``.

        Raises:
            ValueError: If ``line`` is not a heading line
        """
        section = extract_section(read_document(path), line)
        if section is None:
            raise ValueError(f"Could not extract section for translation: line {line} is not a heading")
        return await self.show_document(
            section_document_id(path, line), section, force_bypass_cache, model
        )

    async def reload(self, force_bypass_cache: bool = False) -> Optional[TranslationOutcome]:
        """Re-request the current document, e.g. after the view was re-created."""
        if self.current_document is None or self._current_text is None:
            logger.debug("No current document to reload")
            return None
        return await self.show_document(
            self.current_document, self._current_text, force_bypass_cache, self._current_model
        )

    async def handle_message(self, message: Dict[str, Any]) -> Optional[TranslationOutcome]:
        """Handle a message from the view.

        Supported commands are ``requestTranslation`` (payload ``path``) and
        ``webviewReady`` (reload the current document).
        """
        command = message.get("command")
        if command == "requestTranslation":
            payload = message.get("payload") or {}
            return await self.show_path(payload["path"])
        if command == "webviewReady":
            return await self.reload()
        logger.warning(f"Unknown message from view: {command!r}")
        return None
