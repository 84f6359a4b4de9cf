"""Pytest fixtures shared across all test modules."""

import os
import shutil

import pytest

from kgfeat.graph import Graph

FIXTURES_DIR = os.path.join(os.path.dirname(__file__), "fixtures")
EMBEDDINGS_FILE = os.path.join(FIXTURES_DIR, "embeddings.tsv")

# Edge type ids follow first appearance:
#   works_at=0, located_in=1, lives_in=2, knows=3
# Node ids likewise:
#   alice=0, acme=1, bob=2, pittsburgh=3, carol=4, initech=5, austin=6
TRIPLES = [
    ("alice", "works_at", "acme"),
    ("bob", "works_at", "acme"),
    ("acme", "located_in", "pittsburgh"),
    ("bob", "lives_in", "pittsburgh"),
    ("carol", "works_at", "initech"),
    ("initech", "located_in", "austin"),
    ("alice", "knows", "bob"),
]


@pytest.fixture(scope="session")
def graph():
    """Small company graph shared by matcher and search tests."""
    return Graph.from_triples(TRIPLES)


@pytest.fixture
def embeddings_dir(tmp_path):
    """Embeddings directory holding a copy of the fixture embeddings file.

    r1=[1, 0], r2=[0.99, 0.14], r3=[-1, 0] before normalization.
    """
    shutil.copy(EMBEDDINGS_FILE, tmp_path / "embeddings.tsv")
    return tmp_path


@pytest.fixture
def write_embeddings():
    """Return a helper writing ``(name, values)`` rows as an embeddings file."""

    def _write(path, rows):
        with open(path, "w", encoding="utf-8") as f:
            for name, values in rows:
                f.write("\t".join([name] + [str(v) for v in values]) + "\n")
        return path

    return _write
