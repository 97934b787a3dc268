"""
Content Hashing for Change Detection

SHA-256 digests used as upsert keys:
- Raw page body -> document content hash
- Document hash + sequence index -> per-unit hash
"""
import hashlib


def compute_content_hash(html: str) -> str:
    """
    Compute SHA-256 of the raw HTML body.

    No whitespace normalization: any byte change in the fetched page
    yields a new hash.

    Args:
        html: Raw HTML string

    Returns:
        64-character hex SHA256 hash
    """
    return hashlib.sha256(html.encode("utf-8")).hexdigest()


def compute_unit_hash(content_hash: str, sequence_index: int) -> str:
    """
    Per-unit source hash.

    Two units from one fetch share the document hash, so the sequence
    index keeps them separately addressable.
    """
    return f"{content_hash}-{sequence_index}"
