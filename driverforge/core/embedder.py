"""Render the driver payload into a C++ source file.

The generated file is the only contract with the native build:

    namespace node {
      char gRecordReplayDriver[] = "\\177\\105\\114\\106...";
      int gRecordReplayDriverSize = 123456;
      char gBuildId[] = "linux-node-20240115-0123456789ab-fedcba987654";
    }

Every payload byte is written as a three-digit octal escape, so the literal
is plain ASCII whatever the payload holds and no escape can absorb a
following digit.  All escaping rules live in this module.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from string import Template

from driverforge.models.build import EmbeddedSource

logger = logging.getLogger(__name__)

_OCTAL_LITERAL_RE = re.compile(r"(?:\\[0-3][0-7]{2})*")
_OCTAL_ESCAPE_RE = re.compile(r"\\([0-7]{3})")
_BUILD_ID_CHARS_RE = re.compile(r"[A-Za-z0-9._-]+")

# Byte -> escape lookup; rendering a large driver is a single join.
_OCTAL_ESCAPES: tuple[str, ...] = tuple(f"\\{b:03o}" for b in range(256))

_SOURCE_TEMPLATE = Template(
    "\n"
    "namespace ${namespace} {\n"
    '  char ${payload_symbol}[] = "${payload_literal}";\n'
    "  int ${size_symbol} = ${payload_size};\n"
    '  char ${build_id_symbol}[] = "${build_id}";\n'
    "}\n"
)


def encode_octal_literal(payload: bytes) -> str:
    """Encode every byte of *payload* as ``\\ooo``."""
    return "".join(_OCTAL_ESCAPES[b] for b in payload)


def decode_octal_literal(text: str) -> bytes:
    """Inverse of :func:`encode_octal_literal`.

    Raises ``ValueError`` if *text* is anything other than a run of
    three-digit octal escapes in byte range.
    """
    if _OCTAL_LITERAL_RE.fullmatch(text) is None:
        raise ValueError("Literal is not a sequence of three-digit octal escapes")
    return bytes(int(digits, 8) for digits in _OCTAL_ESCAPE_RE.findall(text))


def build_embedded_source(payload: bytes, build_id: str) -> EmbeddedSource:
    """Validate inputs and return the intermediate representation."""
    build_id = str(build_id)
    if _BUILD_ID_CHARS_RE.fullmatch(build_id) is None:
        raise ValueError(f"Build id cannot be embedded as a C string: {build_id!r}")
    return EmbeddedSource(payload=bytes(payload), build_id=build_id)


def render(source: EmbeddedSource) -> str:
    """Render an :class:`EmbeddedSource` through the source template."""
    return _SOURCE_TEMPLATE.substitute(
        namespace=source.namespace,
        payload_symbol=source.payload_symbol,
        payload_literal=encode_octal_literal(source.payload),
        size_symbol=source.size_symbol,
        payload_size=source.payload_size,
        build_id_symbol=source.build_id_symbol,
        build_id=source.build_id,
    )


def render_embedded_source(payload: bytes, build_id: str) -> str:
    """Render *payload* and *build_id* as the generated source text."""
    return render(build_embedded_source(payload, build_id))


def parse_embedded_source(text: str) -> EmbeddedSource:
    """Read a generated source file back into an :class:`EmbeddedSource`.

    Raises ``ValueError`` if a declaration is missing or the declared size
    does not match the decoded payload.
    """
    literal = _find(r'char gRecordReplayDriver\[\] = "([^"]*)";', text, "driver payload")
    size = int(_find(r"int gRecordReplayDriverSize = (\d+);", text, "driver size"))
    build_id = _find(r'char gBuildId\[\] = "([^"]*)";', text, "build id")

    payload = decode_octal_literal(literal)
    if size != len(payload):
        raise ValueError(
            f"Declared driver size {size} does not match embedded payload ({len(payload)} bytes)"
        )
    return EmbeddedSource(payload=payload, build_id=build_id)


def write_embedded_source(path: Path, text: str) -> Path:
    """Overwrite *path* with *text* (ASCII, ``\\n`` line endings)."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(text.encode("ascii"))
    logger.info("Wrote %s (%d bytes)", path, len(text))
    return path


def _find(pattern: str, text: str, what: str) -> str:
    match = re.search(pattern, text)
    if match is None:
        raise ValueError(f"Generated source has no {what} declaration")
    return match.group(1)
