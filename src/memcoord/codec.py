"""
Payload codec: size-gated gzip compression with a text-safe encoding.

Compressed payloads are gzip bytes encoded as base64 so they fit in a JSON
string field of the entry record.
"""

from __future__ import annotations

import base64
import binascii
import gzip
import zlib

from memcoord.exceptions import CodecError


class PayloadCodec:
    """Reversible transformation of a text payload to its stored form.

    Stateless apart from its two settings; safe to share.
    """

    def __init__(self, enabled: bool = True, threshold_bytes: int = 1024) -> None:
        """Initialize the codec.

        Args:
            enabled: Global compression switch.
            threshold_bytes: Minimum UTF-8 byte length that gets compressed.
        """
        self.enabled = enabled
        self.threshold_bytes = threshold_bytes

    def compress(self, payload: str) -> tuple[str, bool]:
        """Compress a payload if it is large enough.

        Args:
            payload: Serialized text. Must be valid UTF-8 text.

        Returns:
            Tuple of (stored payload, whether compression was applied).

        Raises:
            CodecError: If the payload holds lone surrogates and so has no
                UTF-8 encoding.
        """
        try:
            raw = payload.encode("utf-8")
        except UnicodeEncodeError as e:
            raise CodecError(
                "Payload is not valid UTF-8 text",
                context={"compressed": False, "error": str(e)},
            ) from e

        if not self.enabled or len(raw) < self.threshold_bytes:
            return payload, False

        return base64.b64encode(gzip.compress(raw)).decode("ascii"), True

    def decompress(self, stored: str, compressed: bool) -> str:
        """Reverse compress().

        Args:
            stored: Stored payload.
            compressed: Whether the payload was compressed.

        Returns:
            The original text.

        Raises:
            CodecError: If the payload cannot be decoded.
        """
        if not compressed:
            return stored

        try:
            packed = base64.b64decode(stored.encode("ascii"), validate=True)
            return gzip.decompress(packed).decode("utf-8")
        except (binascii.Error, OSError, EOFError, zlib.error, UnicodeError) as e:
            raise CodecError(
                "Failed to decode compressed payload",
                context={"compressed": compressed, "error": str(e)},
            ) from e
