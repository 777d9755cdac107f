"""
Posting store: n-gram token → sorted set of document ids.

Binary format (zstd compressed as a whole):
- header: [magic=NGPS][ver:uint32][N_tokens:uint64]
- N entries sorted by token:
  [token_len:varint][token utf-8][bitmap_len:varint][Roaring bitmap bytes]

Entries are written in token order and Roaring serialization is canonical,
so building twice from the same collection gives byte-identical artifacts.
"""

import logging
import struct
from bisect import bisect_left
from typing import Iterable, Iterator, Optional

import zstandard as zstd
from pyroaring import BitMap

from ngram_search.errors import CorpusIntegrityError
from ngram_search.ingestion.ids import DocumentId

logger = logging.getLogger(__name__)


def encode_varint(n: int) -> bytes:
    """Encode integer as varint (variable-length integer)."""
    result = bytearray()
    while n > 0x7F:
        result.append((n & 0x7F) | 0x80)
        n >>= 7
    result.append(n & 0x7F)
    return bytes(result)


def decode_varint(data: bytes, offset: int) -> tuple[int, int]:
    """
    Decode varint from bytes.

    Returns:
        (value, new_offset)
    """
    result = 0
    shift = 0
    while True:
        if offset >= len(data):
            raise CorpusIntegrityError("Truncated varint in postings data")
        byte = data[offset]
        result |= (byte & 0x7F) << shift
        offset += 1
        if (byte & 0x80) == 0:
            break
        shift += 7
    return result, offset


class Lane:
    """
    Private read cursor over a posting list.

    Popping only moves the cursor; the underlying ids are shared and never
    modified, so copies are cheap and independent.
    """

    __slots__ = ("_ids", "_pos")

    def __init__(self, ids: tuple[int, ...], pos: int = 0):
        self._ids = ids
        self._pos = pos

    def pop_min(self) -> Optional[int]:
        """Return and consume the smallest remaining id, or None when exhausted."""
        if self._pos >= len(self._ids):
            return None
        value = self._ids[self._pos]
        self._pos += 1
        return value

    def peek(self) -> Optional[int]:
        """Smallest remaining id without consuming it."""
        if self._pos >= len(self._ids):
            return None
        return self._ids[self._pos]

    def remaining(self) -> int:
        return len(self._ids) - self._pos

    def copy(self) -> "Lane":
        return Lane(self._ids, self._pos)

    def __iter__(self) -> Iterator[int]:
        return iter(self._ids[self._pos :])

    def __repr__(self) -> str:
        return f"Lane(pos={self._pos}, remaining={self.remaining()})"


class PostingList:
    """
    Immutable ascending, duplicate-free sequence of document ids.
    """

    __slots__ = ("_ids",)

    def __init__(self, ids: Iterable[int]):
        """
        Initialize posting list.

        Args:
            ids: Document ids in any order; duplicates are dropped
        """
        self._ids: tuple[int, ...] = tuple(BitMap(ids))

    @classmethod
    def from_bitmap(cls, bitmap: BitMap) -> "PostingList":
        """Snapshot a bitmap (already sorted and unique)."""
        posting_list = cls.__new__(cls)
        posting_list._ids = tuple(bitmap)
        return posting_list

    def lane(self) -> Lane:
        """Fresh cursor positioned before the smallest id."""
        return Lane(self._ids)

    def to_list(self) -> list[int]:
        return list(self._ids)

    def __iter__(self) -> Iterator[int]:
        return iter(self._ids)

    def __len__(self) -> int:
        return len(self._ids)

    def __contains__(self, doc_id: object) -> bool:
        if not isinstance(doc_id, int):
            return False
        i = bisect_left(self._ids, doc_id)
        return i < len(self._ids) and self._ids[i] == doc_id

    def __eq__(self, other: object) -> bool:
        if isinstance(other, PostingList):
            return self._ids == other._ids
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._ids)

    def __repr__(self) -> str:
        return f"PostingList({list(self._ids)})"


class PostingStore:
    """
    Build and query the token → posting list mapping.

    The store is mutable while an index is being built and frozen afterwards;
    lookups hand out immutable PostingList snapshots, so queries can never
    alter it.
    """

    # File format version
    VERSION = 1
    MAGIC = b"NGPS"

    def __init__(self):
        """Initialize an empty, writable store."""
        self._postings: dict[str, BitMap] = {}
        self._snapshots: dict[str, PostingList] = {}
        self._frozen = False

    @property
    def frozen(self) -> bool:
        return self._frozen

    def freeze(self) -> "PostingStore":
        """Make the store read-only. Returns self for chaining."""
        self._frozen = True
        return self

    def add(self, token: str, doc_id: int) -> None:
        """
        Insert a document id into the posting list of a token.

        Idempotent: adding the same (token, id) pair twice has no effect.

        Args:
            token: Index key
            doc_id: Document identifier (validated against the id range)

        Raises:
            RuntimeError: If the store is frozen
            DocumentIdRangeError: If the id is out of range
        """
        if self._frozen:
            raise RuntimeError("Posting store is frozen; rebuild to change it")

        doc_id = DocumentId(doc_id)

        bitmap = self._postings.get(token)
        if bitmap is None:
            bitmap = BitMap()
            self._postings[token] = bitmap
        bitmap.add(doc_id)
        self._snapshots.pop(token, None)

    def lookup(self, token: str) -> Optional[PostingList]:
        """
        Look up the posting list of a token.

        Args:
            token: Index key

        Returns:
            PostingList, or None if the token was never indexed
        """
        snapshot = self._snapshots.get(token)
        if snapshot is not None:
            return snapshot

        bitmap = self._postings.get(token)
        if bitmap is None:
            return None

        snapshot = PostingList.from_bitmap(bitmap)
        self._snapshots[token] = snapshot
        return snapshot

    def tokens(self) -> list[str]:
        """All indexed tokens, sorted."""
        return sorted(self._postings)

    def document_ids(self) -> BitMap:
        """Union of all posting lists."""
        return BitMap.union(*self._postings.values()) if self._postings else BitMap()

    def stats(self) -> dict[str, int]:
        """Token and posting counts."""
        sizes = [len(bm) for bm in self._postings.values()]
        return {
            "num_tokens": len(sizes),
            "num_postings": sum(sizes),
            "max_posting_list": max(sizes, default=0),
            "num_posted_documents": len(self.document_ids()),
        }

    def items(self) -> Iterator[tuple[str, PostingList]]:
        """(token, posting list) pairs in token order."""
        for token in self.tokens():
            yield token, self.lookup(token)

    def __contains__(self, token: object) -> bool:
        return token in self._postings

    def __len__(self) -> int:
        return len(self._postings)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PostingStore):
            return NotImplemented
        return self._postings == other._postings

    def to_bytes(self, compression_level: int = 6) -> bytes:
        """
        Serialize the store.

        Args:
            compression_level: Zstd compression level

        Returns:
            Compressed binary artifact
        """
        data = bytearray()
        data.extend(self.MAGIC)  # Magic
        data.extend(struct.pack("<I", self.VERSION))  # Version
        data.extend(struct.pack("<Q", len(self._postings)))  # N tokens

        for token in self.tokens():
            token_bytes = token.encode("utf-8")
            bitmap_bytes = self._postings[token].serialize()

            data.extend(encode_varint(len(token_bytes)))
            data.extend(token_bytes)
            data.extend(encode_varint(len(bitmap_bytes)))
            data.extend(bitmap_bytes)

        compressor = zstd.ZstdCompressor(level=compression_level)
        compressed = compressor.compress(bytes(data))

        logger.debug(
            f"Serialized postings: {len(self._postings)} tokens, "
            f"{len(data):,} bytes raw, {len(compressed):,} bytes compressed"
        )
        return compressed

    @classmethod
    def from_bytes(cls, payload: bytes) -> "PostingStore":
        """
        Deserialize a store written by to_bytes. The result is frozen.

        Raises:
            CorpusIntegrityError: If the payload is corrupt or of another version
        """
        try:
            data = zstd.ZstdDecompressor().decompress(payload)
        except zstd.ZstdError as e:
            raise CorpusIntegrityError(f"Invalid postings artifact: {e}") from e

        if len(data) < 16:
            raise CorpusIntegrityError("Invalid postings artifact: truncated header")

        offset = 0

        magic = data[offset : offset + 4]
        offset += 4
        if magic != cls.MAGIC:
            raise CorpusIntegrityError(f"Invalid postings artifact: bad magic {magic!r}")

        version = struct.unpack("<I", data[offset : offset + 4])[0]
        offset += 4
        if version != cls.VERSION:
            raise CorpusIntegrityError(f"Unsupported postings version: {version}")

        n_tokens = struct.unpack("<Q", data[offset : offset + 8])[0]
        offset += 8

        store = cls()
        for _ in range(n_tokens):
            token_len, offset = decode_varint(data, offset)
            token = data[offset : offset + token_len].decode("utf-8")
            offset += token_len

            bitmap_len, offset = decode_varint(data, offset)
            bitmap_bytes = data[offset : offset + bitmap_len]
            offset += bitmap_len
            if len(bitmap_bytes) != bitmap_len:
                raise CorpusIntegrityError(
                    f"Invalid postings artifact: truncated entry for {token!r}"
                )

            try:
                store._postings[token] = BitMap.deserialize(bitmap_bytes)
            except ValueError as e:
                raise CorpusIntegrityError(
                    f"Invalid postings artifact: bad bitmap for {token!r}: {e}"
                ) from e

        if offset != len(data):
            raise CorpusIntegrityError(
                f"Invalid postings artifact: {len(data) - offset} trailing bytes"
            )

        logger.debug(f"Deserialized postings: {len(store)} tokens")
        return store.freeze()
