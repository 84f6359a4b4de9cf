"""Relation embedding corpus: load, filter and normalize vectors."""

import logging
from pathlib import Path

import numpy as np

from kgfeat.dictionary import Dictionary

logger = logging.getLogger(__name__)


class EmbeddingCorpus:
    """Unit-length relation vectors with dense relation ids.

    Row ``i`` of ``vectors`` belongs to relation id ``relation_ids[i]``, and
    ``dictionary`` maps that id back to the relation name. Ids are assigned in
    the order relations appear in the input.
    """

    def __init__(self, dictionary: Dictionary, relation_ids, vectors):
        self.dictionary = dictionary
        self.relation_ids = np.asarray(relation_ids, dtype=np.int64)
        self.vectors = np.asarray(vectors, dtype=np.float64)
        if self.vectors.ndim != 2 or len(self.vectors) != len(self.relation_ids):
            raise ValueError("vectors must be a 2-D array with one row per relation id")

    def __len__(self):
        return len(self.relation_ids)

    @property
    def dimension(self):
        return self.vectors.shape[1]

    def name(self, relation_id: int) -> str:
        return self.dictionary.get_string(relation_id)

    @classmethod
    def load(cls, path, to_ignore=()):
        """Load a tab-separated embeddings file.

        Each line is ``relation \\t v0 \\t v1 ... \\t vD-1``. Relations in
        ``to_ignore`` are skipped before their values are read. Vectors of
        zero magnitude, or with NaN / inf components, have no direction to
        compare and are dropped. The rest are scaled to unit length.

        Raises:
            ValueError: a kept row has no vector fields, a non-numeric value,
                or a different dimension than the first kept row
        """
        path = Path(path)
        to_ignore = set(to_ignore)
        dictionary = Dictionary()
        relation_ids = []
        rows = []
        dimension = None
        dropped = 0

        with open(path, "r", encoding="utf-8") as f:
            for line_num, line in enumerate(f, start=1):
                line = line.rstrip("\n")
                if not line:
                    continue
                fields = line.split("\t")
                relation = fields[0]
                # Ignored rows are never parsed, so they may be headers or stale rows
                if relation in to_ignore:
                    continue
                if len(fields) < 2:
                    raise ValueError(f"{path}:{line_num}: expected a relation name and vector values")
                try:
                    vector = np.array([float(x) for x in fields[1:]], dtype=np.float64)
                except ValueError as e:
                    raise ValueError(f"{path}:{line_num}: {e}") from e
                if dimension is None:
                    dimension = len(vector)
                elif len(vector) != dimension:
                    raise ValueError(
                        f"{path}:{line_num}: expected {dimension} values, got {len(vector)}"
                    )

                if relation in dictionary:
                    logger.warning(f"{path}:{line_num}: duplicate relation {relation!r}, keeping first")
                    continue
                norm = np.linalg.norm(vector)
                # NaN or inf components leave no usable direction either
                if not (np.isfinite(norm) and norm > 0):
                    dropped += 1
                    logger.debug(f"Dropping degenerate vector for relation {relation!r}")
                    continue

                relation_ids.append(dictionary.get_index(relation))
                rows.append(vector / norm)

        if dropped:
            logger.info(f"Dropped {dropped:,} zero-magnitude or non-finite vectors")
        logger.info(f"Loaded {len(rows):,} relation vectors from {path}")

        vectors = np.vstack(rows) if rows else np.empty((0, dimension or 0), dtype=np.float64)
        return cls(dictionary, relation_ids, vectors)
