"""Resolution of ciphered stream URLs across a whole VideoDetails."""

import logging
from dataclasses import replace
from typing import List, Optional, Sequence, Tuple

from .cipher import parse_signature_cipher
from .decipherer import SandboxedDecipherer
from .errors import CipherParseError, DecipherExecutionFailure
from .models import MediaStream, ResolvedVideo, StreamFailure, VideoDetails

logger = logging.getLogger(__name__)


def resolve_stream(stream: MediaStream, decipherer: SandboxedDecipherer) -> MediaStream:
    """
    Return ``stream`` with its deciphered URL.

    Raises:
        CipherParseError: the cipher lacks ``url`` or ``s``.
        DecipherExecutionFailure: the signature could not be deciphered.
    """
    if not stream.needs_decipher:
        return stream
    cipher = parse_signature_cipher(stream.signature_cipher)
    signature = decipherer.decipher_or_raise(cipher.s)
    return replace(stream, url=cipher.signed_url(signature), signature_cipher=None)


def _resolve_list(streams: Sequence[MediaStream], decipherer: Optional[SandboxedDecipherer],
                  failures: List[StreamFailure], unavailable_reason: str) -> List[MediaStream]:
    resolved = []
    for stream in streams:
        if not stream.needs_decipher:
            resolved.append(stream)
            continue
        if decipherer is None:
            failures.append(StreamFailure(stream.itag, unavailable_reason))
            continue
        try:
            resolved.append(resolve_stream(stream, decipherer))
        except (CipherParseError, DecipherExecutionFailure) as e:
            logger.warning(f"Stream itag {stream.itag} left unresolved: {e}")
            failures.append(StreamFailure(stream.itag, str(e)))
    return resolved


def resolve_streams(details: VideoDetails, decipherer: Optional[SandboxedDecipherer],
                    unavailable_reason: str = "no decipherer available",
                    failures: Tuple[StreamFailure, ...] = ()) -> ResolvedVideo:
    """
    Decipher every ciphered stream of ``details``.

    A failing stream is recorded and left out; the others are still resolved.
    ``failures`` carries problems found earlier (e.g. while parsing).
    """
    collected = list(failures)
    formats = _resolve_list(details.formats, decipherer, collected, unavailable_reason)
    adaptive = _resolve_list(details.adaptive_formats, decipherer, collected, unavailable_reason)
    if collected:
        logger.info(f"{len(collected)} stream(s) of {details.id or 'video'} were not usable")
    return ResolvedVideo(details=details.with_streams(formats, adaptive), failures=tuple(collected))
