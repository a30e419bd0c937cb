"""Error taxonomy for stream extraction and signature deciphering."""


class StreamFetchError(Exception):
    """Base class for all StreamFetch errors."""
    pass


class ExtractionNotFound(StreamFetchError):
    """The embedded data blob could not be located in a document."""
    pass


class ParseError(StreamFetchError):
    """The player response JSON is malformed at its root."""
    pass


class LocatorNotFound(StreamFetchError):
    """The deciphering function could not be found in a player script."""
    pass


class DecipherExecutionFailure(StreamFetchError):
    """The script engine could not produce a deciphered signature."""
    pass


class CipherParseError(StreamFetchError):
    """A signature cipher string lacks its required keys."""
    pass


class SelectionError(StreamFetchError):
    """A format selection names streams that do not exist."""
    pass


class FetchError(StreamFetchError):
    """A document or script could not be retrieved over HTTP."""
    pass
