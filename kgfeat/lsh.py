"""Random-hyperplane locality-sensitive hashing over relation embeddings.

Each hash function is a stack of ``hash_size`` unit hyperplanes; a vector's
code under that function has one bit per hyperplane, set when the vector lies
on the hyperplane's positive side. Vectors sharing a code under any of the
``num_hashes`` functions become candidates for an exact cosine comparison.

Hyperplanes are not drawn isotropically. Component ``i`` of every hyperplane
is drawn from a normal distribution with the corpus's mean and standard
deviation along dimension ``i``, which concentrates the cuts along the
directions this particular embedding space actually spreads in.
"""

import logging
from pathlib import Path

import numpy as np

from kgfeat.embeddings import EmbeddingCorpus

logger = logging.getLogger(__name__)

# Codes are packed into int64
MAX_HASH_SIZE = 62


def _normalize_rows(matrix):
    norms = np.linalg.norm(matrix, axis=-1, keepdims=True)
    return np.divide(matrix, norms, out=np.zeros_like(matrix), where=norms > 0)


def hash_vector(vector, hash_functions):
    """Hash one vector under each hash function.

    For every hyperplane of a function, in order, the running code is shifted
    left one bit and incremented when the vector's dot product with the
    hyperplane is positive.

    Args:
        vector: 1-D vector
        hash_functions: Sequence of hash functions, each a sequence of
            hyperplanes (a HashFamily's ``hyperplanes`` array works)

    Returns:
        Tuple with one integer code per hash function
    """
    codes = []
    for function in hash_functions:
        code = 0
        for hyperplane in function:
            code <<= 1
            if np.dot(vector, hyperplane) > 0:
                code += 1
        codes.append(code)
    return tuple(codes)


class HashFamily:
    """A fixed set of hash functions, shared read-only by all hashing calls."""

    def __init__(self, hyperplanes):
        """
        Args:
            hyperplanes: Array of shape (num_hashes, hash_size, dimension)
        """
        hyperplanes = np.asarray(hyperplanes, dtype=np.float64)
        if hyperplanes.ndim != 3:
            raise ValueError(
                f"hyperplanes must have shape (num_hashes, hash_size, dimension), "
                f"got {hyperplanes.shape}"
            )
        if hyperplanes.shape[1] > MAX_HASH_SIZE:
            raise ValueError(f"hash_size must be at most {MAX_HASH_SIZE}")
        # Read-only view; the caller's array is left writable
        self.hyperplanes = hyperplanes.view()
        self.hyperplanes.setflags(write=False)
        self._weights = np.left_shift(
            np.int64(1), np.arange(self.hash_size - 1, -1, -1, dtype=np.int64)
        )

    @property
    def num_hashes(self):
        return self.hyperplanes.shape[0]

    @property
    def hash_size(self):
        return self.hyperplanes.shape[1]

    @property
    def dimension(self):
        return self.hyperplanes.shape[2]

    @classmethod
    def build(cls, num_hashes, hash_size, corpus, rng=None):
        """Draw hash functions shaped to the corpus's per-dimension spread.

        Args:
            num_hashes: Number of independent hash functions
            hash_size: Hyperplanes (code bits) per function
            corpus: EmbeddingCorpus, or a 2-D array of vectors
            rng: numpy Generator, an int seed, or None for fresh entropy

        Returns:
            HashFamily
        """
        if num_hashes < 1 or hash_size < 1:
            raise ValueError("num_hashes and hash_size must be positive")
        if hash_size > MAX_HASH_SIZE:
            raise ValueError(f"hash_size must be at most {MAX_HASH_SIZE}")
        vectors = corpus.vectors if isinstance(corpus, EmbeddingCorpus) else np.asarray(corpus)
        if len(vectors) == 0:
            raise ValueError("Cannot build hash functions from an empty corpus")

        rng = np.random.default_rng(rng)
        mean = vectors.mean(axis=0)
        std = vectors.std(axis=0)
        dimension = vectors.shape[1]

        draws = rng.standard_normal((num_hashes, hash_size, dimension)) * std + mean
        return cls(_normalize_rows(draws))

    def hash(self, vector):
        """Codes for a single vector; same result as ``hash_vector``."""
        return hash_vector(vector, self.hyperplanes)

    def hash_corpus(self, vectors):
        """Codes for every row of ``vectors`` as an (n, num_hashes) int64 array."""
        vectors = np.asarray(vectors, dtype=np.float64)
        if len(vectors) == 0:
            return np.empty((0, self.num_hashes), dtype=np.int64)
        flat = self.hyperplanes.reshape(-1, self.dimension)
        bits = (vectors @ flat.T > 0).reshape(len(vectors), self.num_hashes, self.hash_size)
        return (bits.astype(np.int64) * self._weights).sum(axis=2)

    def save(self, path):
        """Save hyperplanes as a .npy file."""
        np.save(Path(path), self.hyperplanes)

    @classmethod
    def load(cls, path, mmap_mode=None):
        return cls(np.load(Path(path), mmap_mode=mmap_mode))


class BucketIndex:
    """Per hash function, the corpus rows grouped by code.

    Rows are indices into the corpus the codes were computed from, so a
    bucket entry gives both the relation id and its vector. Built once and
    read-only afterwards.
    """

    __slots__ = ("_buckets",)

    def __init__(self, buckets):
        self._buckets = buckets

    @classmethod
    def build(cls, codes):
        """Group rows by code, independently for each hash function.

        Args:
            codes: (n, num_hashes) array from ``HashFamily.hash_corpus``
        """
        codes = np.asarray(codes)
        buckets = []
        for k in range(codes.shape[1]):
            groups = {}
            for row, code in enumerate(codes[:, k].tolist()):
                groups.setdefault(code, []).append(row)
            buckets.append({code: tuple(rows) for code, rows in groups.items()})
        return cls(buckets)

    @property
    def num_hashes(self):
        return len(self._buckets)

    def candidates(self, hash_index, code):
        """Rows sharing ``code`` under hash function ``hash_index``.

        A code no row hashed to returns an empty tuple.
        """
        return self._buckets[hash_index].get(code, ())

    def stats(self):
        """Bucket count and size summary per hash function."""
        result = []
        for buckets in self._buckets:
            sizes = [len(rows) for rows in buckets.values()]
            result.append({
                "num_buckets": len(sizes),
                "max_bucket_size": max(sizes) if sizes else 0,
                "mean_bucket_size": float(np.mean(sizes)) if sizes else 0.0,
            })
        return result


def compute_similarities(threshold, upper_threshold, row, corpus: EmbeddingCorpus, codes, index: BucketIndex):
    """Score one corpus row against every vector it collides with.

    Candidates are the union over all hash functions of the rows sharing the
    query row's code, minus the query itself, deduplicated by relation id.
    Vectors are unit length, so the dot product is the cosine similarity.

    Args:
        threshold: Exclusive lower bound on similarity
        upper_threshold: Exclusive upper bound; filters near-duplicates
        row: Row of the query vector in ``corpus``
        corpus: EmbeddingCorpus the codes and index were built from
        codes: (n, num_hashes) code array
        index: BucketIndex built from ``codes``

    Returns:
        List of (query_relation_id, other_relation_id, similarity) tuples
    """
    query_id = int(corpus.relation_ids[row])
    close = {}
    for hash_index, code in enumerate(codes[row].tolist()):
        for other in index.candidates(hash_index, code):
            other_id = int(corpus.relation_ids[other])
            if other_id != query_id:
                close[other_id] = other
    if not close:
        return []

    other_rows = np.fromiter(close.values(), dtype=np.int64, count=len(close))
    scores = corpus.vectors[other_rows] @ corpus.vectors[row]

    similarities = []
    for other_id, score in zip(close.keys(), scores.tolist()):
        if threshold < score < upper_threshold:
            similarities.append((query_id, other_id, score))
    return similarities
