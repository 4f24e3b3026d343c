"""
Password Retry Service

Drives the attempt → prompt → re-attempt loop for encrypted statements and
remembers passwords that worked so reloading a source does not prompt again.
"""

import asyncio
import logging
import threading
from enum import Enum
from pathlib import Path
from typing import Awaitable, Callable, Dict, Iterable, List, Optional, Union

from ledgerimport.core.config import DEFAULT_IMPORT_CONFIG, ImportConfig
from ledgerimport.core.exceptions import PasswordPromptCancelledError
from ledgerimport.parsers.importer import SourceDocument, StatementImporter
from ledgerimport.parsers.models import OutcomeStatus, ParseOutcome, TransactionRecord

logger = logging.getLogger(__name__)

# async (display_name, is_retry) -> password, None/"" cancels
PasswordProvider = Callable[[str, bool], Awaitable[Optional[str]]]
Loader = Callable[[SourceDocument, Optional[str]], ParseOutcome]
Source = Union[str, Path, bytes, SourceDocument]


class RetryState(Enum):
    INITIAL = "initial"
    ATTEMPTING = "attempting"
    NEEDS_PASSWORD = "needs_password"
    PROMPTING = "prompting"
    SUCCESS = "success"
    FAILED = "failed"


class PasswordCache:
    """Passwords that opened a source, keyed by source identity."""

    def __init__(self):
        self._lock = threading.Lock()
        self._passwords: Dict[str, str] = {}

    def get(self, source_key: str) -> Optional[str]:
        with self._lock:
            return self._passwords.get(source_key)

    def remember(self, source_key: str, password: str):
        if not password:
            return
        with self._lock:
            self._passwords[source_key] = password

    def forget(self, source_key: str):
        """Drop the entry for a source, e.g. when it is removed from the ledger."""
        with self._lock:
            self._passwords.pop(source_key, None)

    def clear(self):
        with self._lock:
            self._passwords.clear()

    def __contains__(self, source_key: str) -> bool:
        with self._lock:
            return source_key in self._passwords

    def __len__(self) -> int:
        with self._lock:
            return len(self._passwords)


class PasswordRetryOrchestrator:
    """
    Loads a source, asking for a password until it opens or the user gives up.

    The loader is synchronous and runs in a worker thread; it reads the
    source from the start on every attempt. There is no retry limit.

    Usage:
        orchestrator = PasswordRetryOrchestrator(prompt, cache)
        records = await orchestrator.load(source, importer.try_load)
    """

    def __init__(
        self,
        password_provider: Optional[PasswordProvider] = None,
        cache: Optional[PasswordCache] = None,
    ):
        """
        Initialize orchestrator.

        Args:
            password_provider: Async callback asked for a password; without
                one, password failures are raised as they are
            cache: Password cache shared between loads
        """
        self.password_provider = password_provider
        self.cache = cache if cache is not None else PasswordCache()
        self.state = RetryState.INITIAL
        self.history: List[RetryState] = []

    def _transition(self, state: RetryState):
        self.state = state
        self.history.append(state)

    async def load(
        self,
        source: SourceDocument,
        loader: Loader,
        initial_password: Optional[str] = None,
    ) -> List[TransactionRecord]:
        """
        Load a source, prompting for passwords as needed.

        Args:
            source: Statement to load
            loader: Single-attempt parse returning a ParseOutcome
            initial_password: Password for the first attempt (defaults to
                the cached one)

        Returns:
            Records ordered by transaction time

        Raises:
            DocumentPasswordError: Password failure without a provider
            PasswordPromptCancelledError: Provider returned no password
            LedgerImportError: Any fatal parse error
        """
        self.history = []
        self._transition(RetryState.INITIAL)

        password = initial_password
        if password is None:
            password = self.cache.get(source.source_key)

        prompt_attempted = False
        while True:
            self._transition(RetryState.ATTEMPTING)
            outcome = await asyncio.to_thread(loader, source, password)

            if outcome.status is OutcomeStatus.OK:
                self._transition(RetryState.SUCCESS)
                if password:
                    self.cache.remember(source.source_key, password)
                else:
                    self.cache.forget(source.source_key)
                return outcome.records

            error = outcome.error
            if outcome.status is OutcomeStatus.FATAL:
                self._transition(RetryState.FAILED)
                error.prompt_attempted = prompt_attempted
                raise error

            self._transition(RetryState.NEEDS_PASSWORD)
            error.prompt_attempted = prompt_attempted
            if outcome.is_retry:
                self.cache.forget(source.source_key)

            if self.password_provider is None:
                self._transition(RetryState.FAILED)
                raise error

            self._transition(RetryState.PROMPTING)
            prompt_attempted = True
            logger.debug(f"Asking for password: {source.display_name} (retry={outcome.is_retry})")
            password = await self.password_provider(source.display_name, outcome.is_retry)

            if not password:
                self._transition(RetryState.FAILED)
                logger.info(f"Password prompt cancelled for {source.display_name}")
                raise PasswordPromptCancelledError(source.display_name, error.document_kind) from error


default_cache = PasswordCache()


def as_source(source: Source, filename_hint: Optional[str] = None) -> SourceDocument:
    """Wrap a path or byte buffer into a SourceDocument."""
    if isinstance(source, SourceDocument):
        return source
    if isinstance(source, (bytes, bytearray, memoryview)):
        return SourceDocument.from_bytes(bytes(source), filename_hint)
    return SourceDocument.from_path(source)


async def import_statement(
    source: Source,
    password_provider: Optional[PasswordProvider] = None,
    password: Optional[str] = None,
    filename_hint: Optional[str] = None,
    importer: Optional[StatementImporter] = None,
    cache: Optional[PasswordCache] = None,
    config: ImportConfig = DEFAULT_IMPORT_CONFIG,
) -> List[TransactionRecord]:
    """
    Import one statement, prompting for a password when needed.

    Args:
        source: File path, byte buffer or SourceDocument
        password_provider: Async password callback - optional
        password: Password for the first attempt - optional
        filename_hint: Extension hint for byte buffers
        importer: Importer to use (built from config when omitted)
        cache: Password cache (module-wide cache when omitted)
        config: Import configuration

    Returns:
        Records ordered by transaction time
    """
    importer = importer or StatementImporter(config)
    orchestrator = PasswordRetryOrchestrator(
        password_provider, cache if cache is not None else default_cache
    )
    document = as_source(source, filename_hint)
    return await orchestrator.load(document, importer.try_load, initial_password=password)


async def import_many(
    sources: Iterable[Source],
    password_provider: Optional[PasswordProvider] = None,
    importer: Optional[StatementImporter] = None,
    cache: Optional[PasswordCache] = None,
    config: ImportConfig = DEFAULT_IMPORT_CONFIG,
    return_exceptions: bool = False,
) -> list:
    """
    Import several statements concurrently, one task per source.

    Results come back in input order. With return_exceptions=True a failed
    source yields its exception instead of aborting the batch.
    """
    importer = importer or StatementImporter(config)
    cache = cache if cache is not None else default_cache
    tasks = [
        import_statement(source, password_provider, importer=importer, cache=cache)
        for source in sources
    ]
    return await asyncio.gather(*tasks, return_exceptions=return_exceptions)
