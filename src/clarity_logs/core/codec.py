"""At-rest codecs for rotated files (gzip compression, AES-GCM encryption).

Codecs operate on a whole rotated file's bytes. On write the chain is
compression then encryption; on read the suffixes are peeled in reverse.
"""

from __future__ import annotations

import gzip
import hashlib
import os
import struct
import zlib
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

GZIP_SUFFIX = ".gz"
ENCRYPTED_SUFFIX = ".enc"

_MAGIC = b"CLR1"
_KEY_ID_LEN = 8
_NONCE_LEN = 12
_HEADER = struct.Struct(f"!4s{_KEY_ID_LEN}s{_NONCE_LEN}s")


class CodecError(Exception):
    """Raised when a codec cannot encode or decode a payload."""


class Codec(Protocol):
    """Codec interface: reversible byte transform identified by a file suffix."""

    suffix: str

    def encode(self, data: bytes) -> bytes:
        ...

    def decode(self, data: bytes) -> bytes:
        ...


@dataclass(frozen=True, slots=True)
class GzipCodec:
    """Gzip compression. ``mtime=0`` keeps output deterministic."""

    compresslevel: int = 6
    suffix: str = GZIP_SUFFIX

    def encode(self, data: bytes) -> bytes:
        try:
            return gzip.compress(data, compresslevel=self.compresslevel, mtime=0)
        except (zlib.error, ValueError) as exc:
            raise CodecError(f"gzip compression failed: {exc}") from exc

    def decode(self, data: bytes) -> bytes:
        try:
            return gzip.decompress(data)
        except (OSError, EOFError, zlib.error) as exc:
            raise CodecError(f"gzip decompression failed: {exc}") from exc


@dataclass(slots=True)
class KeyRing:
    """AES-256 keys by id. The current key encrypts; every retained key decrypts.

    Keys are rotated by prepending a fresh key to the configured list and
    keeping the older ones for as long as their files must stay readable.
    """

    keys: dict[bytes, bytes] = field(default_factory=dict)
    current_id: bytes | None = None

    @staticmethod
    def generate_key() -> bytes:
        return AESGCM.generate_key(bit_length=256)

    @classmethod
    def from_keys(cls, keys: Iterable[bytes]) -> KeyRing:
        """Build a ring from raw keys; the first key becomes current."""
        ring = cls()
        for key in reversed(list(keys)):
            ring.add(key)
        if ring.current_id is None:
            raise ValueError("KeyRing requires at least one key")
        return ring

    def add(self, key: bytes) -> bytes:
        if len(key) != 32:
            raise ValueError("AES-256 keys must be 32 bytes")
        # Derived from the key so ids are stable across processes.
        key_id = hashlib.sha256(key).digest()[:_KEY_ID_LEN]
        self.keys[key_id] = key
        self.current_id = key_id
        return key_id

    def current(self) -> tuple[bytes, bytes]:
        if self.current_id is None:
            raise CodecError("No encryption key configured")
        return self.current_id, self.keys[self.current_id]

    def get(self, key_id: bytes) -> bytes | None:
        return self.keys.get(key_id)


@dataclass(frozen=True, slots=True)
class AesGcmCodec:
    """AES-256-GCM with a key-id header so older files stay readable."""

    key_ring: KeyRing
    suffix: str = ENCRYPTED_SUFFIX

    def encode(self, data: bytes) -> bytes:
        key_id, key = self.key_ring.current()
        nonce = os.urandom(_NONCE_LEN)
        ciphertext = AESGCM(key).encrypt(nonce, data, key_id)
        return _HEADER.pack(_MAGIC, key_id, nonce) + ciphertext

    def decode(self, data: bytes) -> bytes:
        if len(data) < _HEADER.size:
            raise CodecError("encrypted payload too short")
        magic, key_id, nonce = _HEADER.unpack_from(data)
        if magic != _MAGIC:
            raise CodecError("not an encrypted log file")
        key = self.key_ring.get(key_id)
        if key is None:
            raise CodecError(f"unknown encryption key {key_id.hex()}")
        try:
            return AESGCM(key).decrypt(nonce, data[_HEADER.size :], key_id)
        except InvalidTag as exc:
            raise CodecError("encrypted payload failed authentication") from exc


def decode_chain(path: str | Path, codecs: Mapping[str, Codec]) -> list[Codec]:
    """Return the codecs needed to decode ``path``, outermost first.

    Raises CodecError when a suffix has no configured codec (e.g. an
    encrypted file without a key ring).
    """
    chain: list[Codec] = []
    name = Path(path).name
    for suffix in (ENCRYPTED_SUFFIX, GZIP_SUFFIX):
        if name.endswith(suffix):
            codec = codecs.get(suffix)
            if codec is None:
                raise CodecError(f"no codec configured for '{suffix}' ({name})")
            chain.append(codec)
            name = name[: -len(suffix)]
    return chain


def decode_bytes(data: bytes, chain: Iterable[Codec]) -> bytes:
    for codec in chain:
        data = codec.decode(data)
    return data
