"""Parsing of ``signatureCipher`` query strings."""

from dataclasses import dataclass
from typing import Dict
from urllib.parse import unquote_plus, urlencode

from .errors import CipherParseError


DEFAULT_SIGNATURE_PARAM = "signature"


def url_decode(text: str) -> str:
    """Decode ``%XX`` escapes and ``+``; malformed escapes are kept as-is.

    Escaped bytes are read as UTF-8 and invalid sequences become U+FFFD.
    Decoded URLs are sent through requests, which re-encodes them as UTF-8,
    so a lone surrogate from a lossless decoding could not be sent at all.
    """
    return unquote_plus(text, encoding="utf-8", errors="replace")


def parse_query(text: str) -> Dict[str, str]:
    """Split ``text`` on ``&`` into decoded key/value pairs.

    Only the first ``=`` of a pair separates key from value. Pairs with an
    empty key are dropped and a repeated key keeps its last value.
    """
    params = {}
    for pair in text.split("&"):
        key, _, value = pair.partition("=")
        if not key:
            continue
        params[url_decode(key)] = url_decode(value)
    return params


@dataclass(frozen=True)
class SignatureCipher:
    """Base URL, encrypted signature and the parameter it belongs in."""
    url: str
    s: str
    sp: str = DEFAULT_SIGNATURE_PARAM

    def signed_url(self, signature: str) -> str:
        """Attach a deciphered signature to the base URL."""
        separator = "&" if "?" in self.url else "?"
        return f"{self.url}{separator}{urlencode({self.sp: signature})}"


def parse_signature_cipher(text: str) -> SignatureCipher:
    """
    Parse a cipher such as ``s=...&sp=sig&url=https%3A%2F%2F...``.

    Raises:
        CipherParseError: when ``url`` or ``s`` is missing.
    """
    params = parse_query(text or "")
    missing = [key for key in ("url", "s") if key not in params]
    if missing:
        raise CipherParseError(
            f"Signature cipher is missing {', '.join(missing)} (found keys: {sorted(params)})"
        )
    return SignatureCipher(
        url=params["url"],
        s=params["s"],
        sp=params.get("sp") or DEFAULT_SIGNATURE_PARAM,
    )
