"""Plain-text P3 (ASCII PPM) codec."""

from __future__ import annotations
from typing import List, Tuple, Union

import numpy as np

from .errors import InvalidFormat
from .models import CHANNELS, MAX_CHANNEL, ImageBuffer

MAGIC = "P3"


def _tokens(text: str) -> List[str]:
    """Whitespace-separated tokens with `#` comments (to end of line) removed."""
    return [tok for raw in text.splitlines() for tok in raw.split("#", 1)[0].split()]


def _parse_int(token: str, what: str) -> int:
    try:
        return int(token)
    except ValueError:
        raise InvalidFormat(f"{what} is not an integer: {token!r}") from None


def read_ppm(data: Union[str, bytes]) -> Tuple[ImageBuffer, int]:
    """
    Parse P3 text into an ImageBuffer and the declared max value.

    The header is ``P3``, width, height and the maximum channel value, in
    that order; ``#`` comments and blank lines may appear anywhere. Exactly
    3*width*height integers in [0, maxval] must follow. Values are rescaled
    to 0..255 when maxval differs from 255.
    """
    if isinstance(data, bytes):
        try:
            data = data.decode("ascii")
        except UnicodeDecodeError as e:
            raise InvalidFormat("P3 data must be ASCII text") from e

    tokens = _tokens(data)
    if not tokens or tokens[0] != MAGIC:
        raise InvalidFormat(f"missing {MAGIC} header")
    if len(tokens) < 4:
        raise InvalidFormat("header must contain width, height and max value")

    width = _parse_int(tokens[1], "width")
    height = _parse_int(tokens[2], "height")
    max_value = _parse_int(tokens[3], "max value")
    if width <= 0 or height <= 0:
        raise InvalidFormat(f"width and height must be positive, got {width}x{height}")
    if not 0 < max_value < 65536:
        raise InvalidFormat(f"max value out of range: {max_value}")

    body = tokens[4:]
    expected = CHANNELS * width * height
    if len(body) != expected:
        raise InvalidFormat(f"expected {expected} channel values for {width}x{height}, got {len(body)}")
    try:
        ints = [int(t) for t in body]
    except ValueError:
        raise InvalidFormat("pixel data contains a non-integer value") from None
    # range check on Python ints, before anything can overflow int64
    if min(ints) < 0 or max(ints) > max_value:
        raise InvalidFormat(f"channel values must lie in [0, {max_value}]")

    values = np.array(ints, dtype=np.int64)
    if max_value != MAX_CHANNEL:
        values = np.rint(values * (MAX_CHANNEL / max_value)).astype(np.int64)
    return ImageBuffer.from_flat(values, width, height), max_value


def decode_ppm(data: Union[str, bytes]) -> ImageBuffer:
    """Parse P3 text into an ImageBuffer (values on the 0..255 scale)."""
    return read_ppm(data)[0]


def encode_ppm(buffer: ImageBuffer, max_value: int = MAX_CHANNEL) -> str:
    """Serialize to P3 text, one pixel (three values) per line."""
    if not 0 < max_value < 65536:
        raise ValueError(f"max value out of range: {max_value}")
    px = buffer.pixels.reshape(-1, CHANNELS).astype(np.int64)
    if max_value != MAX_CHANNEL:
        px = np.rint(px * (max_value / MAX_CHANNEL)).astype(np.int64)
    rows = "\n".join(f"{r} {g} {b}" for r, g, b in px.tolist())
    return f"{MAGIC}\n{buffer.width} {buffer.height}\n{max_value}\n{rows}\n"
