"""
Artifact naming for corpus versions.

Layout:
    documents/documents.parquet            tokenized collection (tokenize step)
    corpus/manifest.json                   current version + version list
    corpus/{version}/documents.parquet     collection snapshot of the version
    corpus/{version}/postings.bin.zst      posting store of the version
"""

import re

_VERSION_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._:-]*$")


class CorpusLayout:
    """
    Names of the artifacts making up a corpus.

    Example:
        >>> layout = CorpusLayout()
        >>> layout.postings("2025-01-01T00:00:00Z")
        'corpus/2025-01-01T00:00:00Z/postings.bin.zst'
    """

    STAGED_DOCUMENTS = "documents/documents.parquet"

    def __init__(self, root: str = "corpus"):
        self.root = root.strip("/")

    @staticmethod
    def validate_version(version: str) -> str:
        """Reject version identifiers that are not safe path segments."""
        if not version or not _VERSION_RE.match(version):
            raise ValueError(f"Invalid corpus version identifier: {version!r}")
        return version

    def version_dir(self, version: str) -> str:
        return f"{self.root}/{self.validate_version(version)}"

    def documents(self, version: str) -> str:
        return f"{self.version_dir(version)}/documents.parquet"

    def postings(self, version: str) -> str:
        return f"{self.version_dir(version)}/postings.bin.zst"

    @property
    def manifest(self) -> str:
        return f"{self.root}/manifest.json"
