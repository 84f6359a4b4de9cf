"""Unit tests for kgfeat.embeddings module."""

import os

import numpy as np
import pytest

from kgfeat.embeddings import EmbeddingCorpus

FIXTURES_DIR = os.path.join(os.path.dirname(__file__), "fixtures")
EMBEDDINGS_FILE = os.path.join(FIXTURES_DIR, "embeddings.tsv")


class TestLoad:
    """Tests for EmbeddingCorpus.load."""

    def test_loads_fixture(self):
        """Should load every relation with ids in file order."""
        corpus = EmbeddingCorpus.load(EMBEDDINGS_FILE)
        assert len(corpus) == 3
        assert corpus.dimension == 2
        assert [corpus.name(i) for i in corpus.relation_ids] == ["r1", "r2", "r3"]

    def test_vectors_are_unit_length(self):
        """Should scale every vector to unit length."""
        corpus = EmbeddingCorpus.load(EMBEDDINGS_FILE)
        np.testing.assert_allclose(np.linalg.norm(corpus.vectors, axis=1), 1.0)
        np.testing.assert_allclose(corpus.vectors[1], np.array([0.99, 0.14]) / np.hypot(0.99, 0.14))

    def test_ignored_relations_skipped(self):
        """Ignored relations get no id, so later relations keep dense ids."""
        corpus = EmbeddingCorpus.load(EMBEDDINGS_FILE, to_ignore={"r2"})
        assert [corpus.name(i) for i in corpus.relation_ids] == ["r1", "r3"]
        assert list(corpus.relation_ids) == [0, 1]

    def test_ignored_row_is_not_parsed(self, tmp_path):
        """An ignored header row with non-numeric values is skipped, not rejected."""
        path = tmp_path / "e.tsv"
        path.write_text("header\tdim0\tdim1\nr1\t1\t0\nr2\t0.99\t0.14\n")
        corpus = EmbeddingCorpus.load(path, to_ignore={"header"})
        assert [corpus.name(i) for i in corpus.relation_ids] == ["r1", "r2"]

    def test_ignored_row_does_not_set_dimension(self, tmp_path):
        """An ignored row of another dimension neither fails nor fixes the dimension."""
        path = tmp_path / "e.tsv"
        path.write_text("old\t1\t0\t0\nr1\t1\t0\nr2\t0.99\t0.14\n")
        corpus = EmbeddingCorpus.load(path, to_ignore={"old"})
        assert len(corpus) == 2
        assert corpus.dimension == 2

    def test_zero_vector_dropped(self, tmp_path, write_embeddings):
        """Zero-magnitude vectors have no direction and are dropped."""
        path = write_embeddings(tmp_path / "e.tsv", [("a", [0, 0]), ("b", [3, 4])])
        corpus = EmbeddingCorpus.load(path)
        assert len(corpus) == 1
        assert corpus.name(int(corpus.relation_ids[0])) == "b"
        np.testing.assert_allclose(corpus.vectors[0], [0.6, 0.8])

    @pytest.mark.parametrize("bad", [["nan", 0], ["inf", 1], [1, "-inf"]])
    def test_non_finite_vector_dropped(self, tmp_path, write_embeddings, bad):
        """Vectors with NaN or inf components are dropped like zero vectors."""
        path = write_embeddings(tmp_path / "e.tsv", [("a", [1, 0]), ("bad", bad), ("b", [0, 1])])
        corpus = EmbeddingCorpus.load(path)
        assert [corpus.name(i) for i in corpus.relation_ids] == ["a", "b"]
        assert np.isfinite(corpus.vectors).all()

    def test_duplicate_relation_keeps_first(self, tmp_path, write_embeddings):
        """A repeated relation name keeps its first vector."""
        path = write_embeddings(tmp_path / "e.tsv", [("a", [1, 0]), ("a", [0, 1])])
        corpus = EmbeddingCorpus.load(path)
        assert len(corpus) == 1
        np.testing.assert_allclose(corpus.vectors[0], [1.0, 0.0])

    def test_empty_file(self, tmp_path):
        """An empty file loads as an empty corpus."""
        path = tmp_path / "e.tsv"
        path.write_text("")
        corpus = EmbeddingCorpus.load(path)
        assert len(corpus) == 0

    @pytest.mark.parametrize(
        "content",
        [
            "a\n",  # no vector
            "a\t1\tx\n",  # non-numeric
            "a\t1\t0\nb\t1\t0\t0\n",  # dimension mismatch
        ],
    )
    def test_malformed_rows_raise(self, tmp_path, content):
        """Malformed rows that are not ignored are fatal."""
        path = tmp_path / "e.tsv"
        path.write_text(content)
        with pytest.raises(ValueError):
            EmbeddingCorpus.load(path)

    def test_missing_file_raises(self, tmp_path):
        """A missing embeddings file propagates the I/O error."""
        with pytest.raises(FileNotFoundError):
            EmbeddingCorpus.load(tmp_path / "missing.tsv")
