"""
Unit tests for proximity matrix construction, selection and update.
"""

import numpy as np
import pytest
from sklearn.metrics.pairwise import cosine_similarity, pairwise_distances

from dendro.core.cluster import Cluster
from dendro.core.metrics import CosineSimilarity, EuclideanDistance, ManhattanDistance
from dendro.core.proximity import (
    build_proximity_matrix,
    find_closest_pair,
    update_proximity_matrix,
)
from dendro.utils.error_handling import InvalidInputError


@pytest.mark.unit
class TestBuildProximityMatrix:
    """Test suite for the initial matrix builder."""

    def test_matches_sklearn_euclidean(self, sample_vectors):
        """Test matches sklearn euclidean."""
        matrix = build_proximity_matrix(sample_vectors, EuclideanDistance())
        expected = pairwise_distances(sample_vectors, metric="euclidean")

        np.testing.assert_allclose(matrix, expected, rtol=1e-6, atol=1e-6)

    def test_matches_sklearn_manhattan(self, sample_vectors):
        """Test matches sklearn manhattan."""
        matrix = build_proximity_matrix(sample_vectors, ManhattanDistance())
        expected = pairwise_distances(sample_vectors, metric="manhattan")

        np.testing.assert_allclose(matrix, expected, rtol=1e-9, atol=1e-9)

    def test_similarity_mode_is_negated(self, sample_vectors):
        """Test similarity mode is negated."""
        matrix = build_proximity_matrix(sample_vectors, CosineSimilarity())
        expected = -cosine_similarity(sample_vectors)

        off_diagonal = ~np.eye(len(sample_vectors), dtype=bool)
        np.testing.assert_allclose(matrix[off_diagonal], expected[off_diagonal], atol=1e-9)

    def test_symmetric_with_zero_diagonal(self, sample_vectors):
        """Test symmetric with zero diagonal."""
        matrix = build_proximity_matrix(sample_vectors, EuclideanDistance())

        assert matrix.shape == (25, 25)
        np.testing.assert_array_equal(matrix, matrix.T)
        np.testing.assert_array_equal(np.diag(matrix), np.zeros(25))

    def test_accepts_nested_lists(self):
        """Test accepts nested lists."""
        matrix = build_proximity_matrix([[0, 0], [3, 4]], EuclideanDistance())
        assert matrix[0, 1] == pytest.approx(5.0)

    def test_empty_data_rejected(self):
        """Test empty data rejected."""
        with pytest.raises(InvalidInputError):
            build_proximity_matrix([], EuclideanDistance())

    def test_ragged_rows_rejected(self):
        """Test ragged rows rejected."""
        with pytest.raises(InvalidInputError):
            build_proximity_matrix([[0.0, 1.0], [2.0]], EuclideanDistance())

    @pytest.mark.parametrize("data", [
        [1.0, 2.0, 3.0],
        [[1.0, 2.0], 3.0],
        [[[1.0]], [[2.0]]],
        [["a", "b"], ["c", "d"]],
    ])
    def test_non_matrix_lists_rejected(self, data):
        """Test flat, mixed, 3-D and non-numeric lists are rejected."""
        with pytest.raises(InvalidInputError):
            build_proximity_matrix(data, EuclideanDistance())


@pytest.mark.unit
class TestFindClosestPair:
    """Test suite for the closest-pair selector."""

    def test_returns_upper_triangle_minimum(self):
        """Test returns upper triangle minimum."""
        matrix = np.array([
            [0.0, 4.0, 3.0],
            [4.0, 0.0, 0.5],
            [3.0, 0.5, 0.0],
        ])
        assert find_closest_pair(matrix) == (1, 2)

    def test_diagonal_is_ignored(self):
        """Test diagonal is ignored."""
        matrix = np.array([
            [-100.0, 2.0],
            [2.0, -100.0],
        ])
        assert find_closest_pair(matrix) == (0, 1)

    def test_ties_resolve_to_first_in_row_major_order(self):
        """Test ties resolve to first in row major order."""
        matrix = np.array([
            [0.0, 2.0, 1.0, 1.0],
            [2.0, 0.0, 1.0, 3.0],
            [1.0, 1.0, 0.0, 5.0],
            [1.0, 3.0, 5.0, 0.0],
        ])
        assert find_closest_pair(matrix) == (0, 2)

    def test_only_upper_triangle_is_read(self):
        """Test only upper triangle is read."""
        matrix = np.array([
            [0.0, 2.0, 3.0],
            [-9.0, 0.0, 4.0],
            [-9.0, -9.0, 0.0],
        ])
        assert find_closest_pair(matrix) == (0, 1)

    def test_nan_entries_are_skipped(self):
        """Test nan entries are skipped."""
        matrix = np.array([
            [0.0, np.nan, 2.0],
            [np.nan, 0.0, 1.0],
            [2.0, 1.0, 0.0],
        ])
        assert find_closest_pair(matrix) == (1, 2)

    def test_matrix_is_not_modified(self):
        """Test matrix is not modified."""
        matrix = np.array([[0.0, 1.0], [1.0, 0.0]])
        before = matrix.copy()

        find_closest_pair(matrix)

        np.testing.assert_array_equal(matrix, before)

    def test_requires_two_clusters(self):
        """Test requires two clusters."""
        with pytest.raises(ValueError):
            find_closest_pair(np.zeros((1, 1)))


@pytest.mark.unit
class TestUpdateProximityMatrix:
    """Test suite for the matrix updater."""

    def test_appends_centroid_distances(self, four_points):
        """Test appends centroid distances."""
        metric = EuclideanDistance()
        matrix = build_proximity_matrix(four_points, metric)
        survivors = [Cluster(5, [four_points[2]]), Cluster(4, [four_points[3]])]
        merged_centroid = np.array([0.0, 0.5])

        updated = update_proximity_matrix(matrix, 0, 1, survivors, merged_centroid, metric)

        assert updated.shape == (3, 3)
        np.testing.assert_allclose(updated[:2, :2], [[0.0, 1.0], [1.0, 0.0]])
        assert updated[0, 2] == pytest.approx(np.sqrt(100 + 9.5 ** 2))
        assert updated[1, 2] == pytest.approx(np.sqrt(100 + 10.5 ** 2))
        np.testing.assert_array_equal(updated, updated.T)

    def test_compacts_non_adjacent_positions(self):
        """Test compacts non adjacent positions."""
        metric = EuclideanDistance()
        matrix = np.array([
            [0.0, 1.0, 2.0, 3.0],
            [1.0, 0.0, 4.0, 5.0],
            [2.0, 4.0, 0.0, 6.0],
            [3.0, 5.0, 6.0, 0.0],
        ])
        survivors = [Cluster(7, [np.array([0.0])]), Cluster(5, [np.array([3.0])])]

        updated = update_proximity_matrix(matrix, 1, 3, survivors, np.array([1.0]), metric)

        np.testing.assert_array_equal(updated[:2, :2], [[0.0, 2.0], [2.0, 0.0]])
        np.testing.assert_allclose(updated[:2, 2], [1.0, 2.0])

    def test_old_matrix_untouched_and_not_aliased(self, four_points):
        """Test old matrix untouched and not aliased."""
        metric = EuclideanDistance()
        matrix = build_proximity_matrix(four_points, metric)
        before = matrix.copy()
        survivors = [Cluster(5, [four_points[2]]), Cluster(4, [four_points[3]])]

        updated = update_proximity_matrix(matrix, 0, 1, survivors, np.array([0.0, 0.5]), metric)
        updated[0, 1] = 99.0

        np.testing.assert_array_equal(matrix, before)
        assert not np.shares_memory(matrix, updated)

    def test_final_pair_yields_single_cell(self):
        """Test final pair yields single cell."""
        matrix = np.array([[0.0, 1.0], [1.0, 0.0]])

        updated = update_proximity_matrix(matrix, 0, 1, [], np.array([0.5]), EuclideanDistance())

        assert updated.shape == (1, 1)

    def test_survivor_count_must_match(self):
        """Test survivor count must match."""
        matrix = np.zeros((3, 3))
        with pytest.raises(ValueError):
            update_proximity_matrix(matrix, 0, 1, [], np.array([0.0]), EuclideanDistance())
