"""Build a relation similarity matrix from embeddings with LSH.

A run reads ``<embeddings_dir>/embeddings.tsv`` and writes into
``<embeddings_dir>/<name>/``:

- ``in_progress``: created before any work and removed on success. If it is
  still there when a run starts, a previous run was interrupted.
- ``params.json``: the run parameters, pretty-printed, for reproducibility.
- ``hash_functions.npy``: the hyperplanes used for hashing.
- ``matrix.tsv``: one ``relation_a \\t relation_b \\t score`` line per pair.

Pairs are reported from each scanning vector's side, so a symmetric pair can
appear twice, once as (A, B) and once as (B, A).
"""

import json
import logging
import os
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import numpy as np

from kgfeat.embeddings import EmbeddingCorpus
from kgfeat.lsh import BucketIndex, HashFamily, compute_similarities

logger = logging.getLogger(__name__)

# Scores at or above this are near-exact duplicates and carry no information
DEFAULT_UPPER_THRESHOLD = 0.99999

TO_IGNORE_KEY = "to ignore"


class SimilarityConfigError(ValueError):
    """Raised for missing or ill-typed similarity run parameters."""


def default_num_workers():
    """Worker count from KGFEAT_NUM_WORKERS, or the CPU count when unset."""
    value = os.environ.get("KGFEAT_NUM_WORKERS")
    if value is None:
        return os.cpu_count() or 1
    try:
        num_workers = int(value)
    except ValueError:
        raise SimilarityConfigError(f"KGFEAT_NUM_WORKERS must be an integer, got {value!r}") from None
    if num_workers < 1:
        raise SimilarityConfigError(f"KGFEAT_NUM_WORKERS must be positive, got {num_workers}")
    return num_workers


def _is_number(value):
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_int(value):
    return isinstance(value, int) and not isinstance(value, bool)


@dataclass(frozen=True)
class SimilarityParams:
    """Validated parameters for one similarity matrix run."""

    threshold: float
    num_hashes: int
    hash_size: int
    to_ignore: Optional[str] = None
    seed: Optional[int] = None

    @classmethod
    def from_dict(cls, params: dict) -> "SimilarityParams":
        """Validate a JSON-like params dict.

        Raises:
            SimilarityConfigError: a required key is missing, a value has the
                wrong type, or a size is not positive
        """
        for key in ("threshold", "num_hashes", "hash_size"):
            if key not in params:
                raise SimilarityConfigError(f"Missing required parameter {key!r}")

        threshold = params["threshold"]
        if not _is_number(threshold):
            raise SimilarityConfigError(f"'threshold' must be a number, got {threshold!r}")
        for key in ("num_hashes", "hash_size"):
            value = params[key]
            if not _is_int(value) or value < 1:
                raise SimilarityConfigError(f"{key!r} must be a positive integer, got {value!r}")

        to_ignore = params.get(TO_IGNORE_KEY)
        if TO_IGNORE_KEY in params and not isinstance(to_ignore, str):
            raise SimilarityConfigError(f'"{TO_IGNORE_KEY}" must be a string')

        seed = params.get("seed")
        if seed is not None and not _is_int(seed):
            raise SimilarityConfigError(f"'seed' must be an integer, got {seed!r}")

        return cls(
            threshold=float(threshold),
            num_hashes=params["num_hashes"],
            hash_size=params["hash_size"],
            to_ignore=to_ignore,
            seed=seed,
        )

    def ignored_relations(self) -> set:
        """Relation names listed in the ``"to ignore"`` file, if one was given."""
        if self.to_ignore is None:
            return set()
        with open(self.to_ignore, "r", encoding="utf-8") as f:
            return {line.strip() for line in f if line.strip()}


class SimilarityMatrixCreator:
    """Runs the load -> hash -> bucket -> scan -> write pipeline for one run name."""

    def __init__(
        self,
        embeddings_dir,
        name,
        upper_threshold=DEFAULT_UPPER_THRESHOLD,
        num_workers=None,
    ):
        self.embeddings_dir = Path(embeddings_dir)
        self.name = name
        self.upper_threshold = upper_threshold
        if num_workers is None:
            num_workers = default_num_workers()
        elif not _is_int(num_workers) or num_workers < 1:
            raise SimilarityConfigError(f"num_workers must be a positive integer, got {num_workers!r}")
        self.num_workers = num_workers

        self.embeddings_file = self.embeddings_dir / "embeddings.tsv"
        self.matrix_dir = self.embeddings_dir / name
        self.out_file = self.matrix_dir / "matrix.tsv"
        self.param_file = self.matrix_dir / "params.json"
        self.in_progress_file = self.matrix_dir / "in_progress"
        self.hash_file = self.matrix_dir / "hash_functions.npy"

    def has_interrupted_run(self) -> bool:
        """Whether a previous run for this name started but never finished."""
        return self.in_progress_file.exists()

    def create_similarity_matrix(self, params: dict):
        """Compute and write the similarity matrix.

        Args:
            params: Run parameters; see SimilarityParams

        Returns:
            List of (relation_id_a, relation_id_b, score) triples, with ids
            from the loaded corpus's dictionary
        """
        start = time.time()
        config = SimilarityParams.from_dict(params)
        to_ignore = config.ignored_relations()

        if self.has_interrupted_run():
            logger.warning(f"Found in_progress marker in {self.matrix_dir}; previous run was interrupted")
        self.matrix_dir.mkdir(parents=True, exist_ok=True)
        self.in_progress_file.touch()
        with open(self.param_file, "w", encoding="utf-8") as f:
            f.write(json.dumps(params, indent=2))

        logger.info("Reading vectors")
        corpus = EmbeddingCorpus.load(self.embeddings_file, to_ignore)

        if len(corpus) == 0:
            logger.warning("No vectors left after filtering; writing empty matrix")
            similarities = []
        else:
            logger.info("Creating hash functions")
            hash_family = HashFamily.build(
                config.num_hashes, config.hash_size, corpus, rng=config.seed
            )
            hash_family.save(self.hash_file)

            logger.info("Hashing vectors")
            codes = hash_family.hash_corpus(corpus.vectors)
            index = BucketIndex.build(codes)
            largest = max(s["max_bucket_size"] for s in index.stats())
            logger.info(f"Built {index.num_hashes} bucket maps; largest bucket has {largest:,} vectors")

            logger.info("Computing similarities")
            similarities = self._scan(config.threshold, corpus, codes, index)

        logger.info(f"Done computing similarities; writing {len(similarities):,} pairs to {self.out_file}")
        with open(self.out_file, "w", encoding="utf-8") as out:
            for relation_a, relation_b, score in similarities:
                out.write(f"{corpus.name(relation_a)}\t{corpus.name(relation_b)}\t{score}\n")

        self.in_progress_file.unlink()
        logger.info(f"Finished similarity matrix {self.name!r} in {time.time() - start:.2f}s")
        return similarities

    def _scan(self, threshold, corpus, codes, index):
        """Score every corpus row, split across a pool of worker threads."""
        chunks = [
            rows for rows in np.array_split(np.arange(len(corpus)), self.num_workers) if len(rows)
        ]
        with ThreadPoolExecutor(max_workers=len(chunks)) as executor:
            futures = [
                executor.submit(self._scan_rows, rows, threshold, corpus, codes, index)
                for rows in chunks
            ]
            results = [future.result() for future in futures]
        return [triple for chunk in results for triple in chunk]

    def _scan_rows(self, rows, threshold, corpus, codes, index):
        similarities = []
        for row in rows.tolist():
            similarities.extend(
                compute_similarities(threshold, self.upper_threshold, row, corpus, codes, index)
            )
        return similarities
