"""
kgfeat - Path-feature matching and relation similarity for knowledge graph completion
"""

__version__ = "0.1.0"

from kgfeat.dictionary import Dictionary
from kgfeat.embeddings import EmbeddingCorpus
from kgfeat.graph import Graph
from kgfeat.lsh import BucketIndex, HashFamily, compute_similarities, hash_vector
from kgfeat.matchers import (
    UNKNOWN,
    EmptyFeatureMatcher,
    Enumerated,
    FeatureMatcher,
    PathFeatureMatcher,
    create_matcher,
)
from kgfeat.path_types import PathDescriptor, PathParseError, PathTypeFactory
from kgfeat.search import find_matching_nodes
from kgfeat.similarity import (
    SimilarityConfigError,
    SimilarityMatrixCreator,
    SimilarityParams,
)

__all__ = [
    # Core classes
    "Dictionary",
    "Graph",
    "PathDescriptor",
    "PathTypeFactory",
    "PathParseError",
    # Matching
    "FeatureMatcher",
    "EmptyFeatureMatcher",
    "PathFeatureMatcher",
    "Enumerated",
    "UNKNOWN",
    "create_matcher",
    "find_matching_nodes",
    # Similarity
    "EmbeddingCorpus",
    "HashFamily",
    "BucketIndex",
    "hash_vector",
    "compute_similarities",
    "SimilarityParams",
    "SimilarityConfigError",
    "SimilarityMatrixCreator",
]
