"""Sandboxed execution of located deciphering code."""

import hashlib
import logging
import threading
from typing import Any, Dict, Optional, Union

from yt_dlp.jsinterp import JSInterpreter

from .errors import DecipherExecutionFailure, LocatorNotFound
from .locator import ScriptFunctionLocator
from .models import DecipherOperations, DecipherState

logger = logging.getLogger(__name__)


class ScriptEngine:
    """Narrow interface to a script execution context."""

    def load(self, source: str) -> Any:
        """Load ``source`` into a fresh context and return a handle to it."""
        raise NotImplementedError

    def resolve(self, handle: Any, function_name: str) -> Any:
        """Fail unless ``function_name`` can be called in the context."""
        return None

    def invoke(self, handle: Any, function_name: str, argument: str) -> Any:
        """Call a global function of a loaded context with one argument."""
        raise NotImplementedError


class JSInterpreterEngine(ScriptEngine):
    """Script engine backed by yt-dlp's pure-Python JavaScript interpreter.

    Nothing runs outside the interpreter: the snippet can only reach the
    objects and functions defined in its own source.
    """

    def load(self, source: str) -> JSInterpreter:
        return JSInterpreter(source)

    def resolve(self, handle: JSInterpreter, function_name: str):
        return handle.extract_function(function_name)

    def invoke(self, handle: JSInterpreter, function_name: str, argument: str) -> Any:
        return handle.call_function(function_name, argument)


class SandboxedDecipherer:
    """
    Owns one script context loaded with a player script's deciphering code.

    Not reentrant: a lock serialises ``decipher`` calls on the same instance.
    """

    def __init__(self, engine: Optional[ScriptEngine] = None):
        self.engine = engine or JSInterpreterEngine()
        self.state = DecipherState.UNINITIALIZED
        self.operations: Optional[DecipherOperations] = None
        self.error: Optional[str] = None
        self._handle = None
        self._lock = threading.Lock()

    @property
    def ready(self) -> bool:
        return self.state is DecipherState.READY

    def _fail(self, reason: str) -> bool:
        self.state = DecipherState.FAILED
        self.error = reason
        self._handle = None
        logger.warning(f"Decipherer initialization failed: {reason}")
        return False

    def initialize(self, operations: Optional[DecipherOperations]) -> bool:
        """Load the helper object, then the main function, into a new context."""
        with self._lock:
            self.operations = operations
            if operations is None or not operations.function_name or not operations.function_code:
                return self._fail("no deciphering function to load")

            parts = []
            if operations.helper_code:
                parts.append(operations.helper_code)
            parts.append(operations.function_code)
            source = "\n".join(parts)

            try:
                handle = self.engine.load(source)
                self.engine.resolve(handle, operations.function_name)
            except Exception as e:
                return self._fail(f"script engine rejected the source: {e}")

            self._handle = handle
            self.state = DecipherState.READY
            self.error = None
            logger.debug(f"Decipherer ready with function {operations.function_name}")
            return True

    def decipher_or_raise(self, encrypted_signature: str) -> str:
        """
        Run the deciphering function on ``encrypted_signature``.

        Raises:
            DecipherExecutionFailure: not ready, the call failed, or it did not
                return a string.
        """
        with self._lock:
            if self.state is not DecipherState.READY:
                raise DecipherExecutionFailure(
                    f"Decipherer is {self.state.value}" + (f": {self.error}" if self.error else "")
                )
            name = self.operations.function_name
            try:
                result = self.engine.invoke(self._handle, name, encrypted_signature)
            except Exception as e:
                raise DecipherExecutionFailure(f"{name} raised: {e}") from e

        if not isinstance(result, str):
            raise DecipherExecutionFailure(f"{name} returned {type(result).__name__}, not a string")
        return result

    def decipher(self, encrypted_signature: str) -> Optional[str]:
        """Deciphered signature, or None when deciphering fails."""
        try:
            return self.decipher_or_raise(encrypted_signature)
        except DecipherExecutionFailure as e:
            logger.warning(f"Decipher failed: {e}")
            return None


def script_identity(script: str, script_url: Optional[str] = None) -> str:
    """Cache key for a player script: its URL when known, else a content hash."""
    if script_url:
        return script_url
    return "sha1:" + hashlib.sha1(script.encode("utf-8")).hexdigest()


class DecipherCache:
    """
    Decipherers keyed by player script identity.

    Owned by the caller (a client or session), never global. Locating and
    initializing happen once per script version under a lock.
    """

    def __init__(self, locator: Optional[ScriptFunctionLocator] = None, engine_factory=None):
        self.locator = locator or ScriptFunctionLocator()
        self.engine_factory = engine_factory or JSInterpreterEngine
        self._entries: Dict[str, Union[SandboxedDecipherer, LocatorNotFound]] = {}
        self._lock = threading.Lock()

    def __len__(self):
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def lookup(self, key: str) -> Optional[SandboxedDecipherer]:
        """
        The cached decipherer for ``key``, or None when nothing is cached yet.

        Raises:
            LocatorNotFound: ``key`` is cached as a script without a
                deciphering function.
        """
        with self._lock:
            entry = self._entries.get(key)
        if isinstance(entry, LocatorNotFound):
            raise LocatorNotFound(str(entry))
        return entry

    def get(self, script: str, script_url: Optional[str] = None) -> SandboxedDecipherer:
        """
        Return the decipherer for ``script``, building it on first use.

        Raises:
            LocatorNotFound: the script version has no recognisable deciphering
                function (cached, so later calls fail fast).
        """
        key = script_identity(script, script_url)
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                entry = self._build(script, key)
                self._entries[key] = entry
        if isinstance(entry, LocatorNotFound):
            raise LocatorNotFound(str(entry))
        return entry

    def _build(self, script: str, key: str) -> Union[SandboxedDecipherer, LocatorNotFound]:
        logger.info(f"Preparing decipherer for player script {key}")
        try:
            operations = self.locator.locate(script)
        except LocatorNotFound as e:
            logger.warning(f"Player script {key}: {e}")
            return e
        decipherer = SandboxedDecipherer(self.engine_factory())
        decipherer.initialize(operations)
        return decipherer

    def clear(self):
        with self._lock:
            self._entries.clear()
