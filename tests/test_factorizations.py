# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

import logging

import numpy as np
import pytest

from qrfactor.gram_schmidt import bgs, cgs, cgsp, igs, mgs, rgs
from qrfactor.orthogonal import givens, givens_rotation, householder
from qrfactor.qr import METHODS, PIVOTING
from qrfactor.utils import random_well_conditioned

ALL_METHODS = sorted(METHODS)
UNPIVOTED = sorted(set(METHODS) - PIVOTING)
logger = logging.getLogger(__name__)


def _check_factors(A, Q, R, perm, atol=1e-8):
    m, n = A.shape
    k = min(m, n)
    assert Q.shape == (m, k)
    assert R.shape == (k, n)
    assert sorted(perm) == list(range(n))
    assert np.all(np.isfinite(Q)) and np.all(np.isfinite(R))
    # structurally upper triangular, not just numerically
    assert np.all(np.tril(R, -1) == 0.0)
    np.testing.assert_allclose(Q @ R, A[:, perm], atol=atol)


@pytest.mark.parametrize("method", ALL_METHODS)
@pytest.mark.parametrize("m,n", [(6, 6), (10, 4), (4, 2), (3, 7)])
def test_orthonormal_and_reconstructs(method, m, n):
    A = random_well_conditioned(m, n, cond=50.0, seed=7 * m + n)
    Q, R, perm = METHODS[method](A)
    _check_factors(A, Q, R, perm)

    k = min(m, n)
    assert np.allclose(Q.T @ Q, np.eye(k), atol=1e-8)
    assert np.all(np.diag(R) > 0)


# rank-deficient inputs: (A, index of the dependent column)
RANK_DEFICIENT = {
    "interior_duplicate": (
        np.array([[1.0, 1.0, 0.0], [2.0, 2.0, 1.0], [3.0, 3.0, 5.0]]),
        1,
    ),
    "interior_proportional": (
        np.array([[1.0, -2.0, 0.0], [2.0, -4.0, 1.0], [3.0, -6.0, 5.0]]),
        1,
    ),
    "last_proportional": (
        np.array([[1.0, 2.0, -3.0], [2.0, 1.0, -6.0], [3.0, 0.0, -9.0]]),
        2,
    ),
    "interior_zero_column": (
        np.array([[1.0, 0.0, 2.0], [3.0, 0.0, 1.0], [1.0, 0.0, 1.0]]),
        1,
    ),
    "tall_interior_proportional": (
        np.array([[1.0, 2.5, 0.0], [2.0, 5.0, 1.0], [0.0, 0.0, 2.0], [1.0, 2.5, 1.0]]),
        1,
    ),
}


@pytest.mark.parametrize("method", ALL_METHODS)
@pytest.mark.parametrize(
    "A",
    [
        np.array([[1.0, 2.0, 1.0], [4.0, 5.0, 4.0], [7.0, 8.5, 7.0]]),
        # shortest column in the middle
        np.array([[1.0, 0.1, 1.0], [4.0, 0.2, 4.0], [7.0, 0.3, 7.0]]),
    ],
)
def test_duplicate_column_degrades_to_zero(method, A):
    Q, R, perm = METHODS[method](A)
    logger.debug(f"\n{method}\nQ:\n{Q}\nR:\n{R}\nperm: {perm}")

    _check_factors(A, Q, R, perm)
    # third column duplicates the first; pivoting variants push whichever
    # copy comes second to the end
    assert perm[2] in (0, 2)
    assert np.all(Q[:, 2] == 0.0)
    assert R[2, 2] == 0.0
    np.testing.assert_allclose(Q[:, :2].T @ Q[:, :2], np.eye(2), atol=1e-10)


@pytest.mark.parametrize("method", ALL_METHODS)
@pytest.mark.parametrize("case", sorted(RANK_DEFICIENT))
def test_dependent_column_anywhere(method, case):
    A, dependent = RANK_DEFICIENT[case]
    Q, R, perm = METHODS[method](A)
    logger.debug(f"\n{method} / {case}\nQ:\n{Q}\nR:\n{R}\nperm: {perm}")

    _check_factors(A, Q, R, perm)
    k = min(A.shape)
    # unpivoted variants leave the gap in place, pivoted ones move it last
    zero = k - 1 if method in PIVOTING else dependent
    assert np.all(Q[:, zero] == 0.0)
    assert R[zero, zero] == 0.0

    others = [j for j in range(k) if j != zero]
    assert np.all(np.diag(R)[others] > 0)
    np.testing.assert_allclose(Q[:, others].T @ Q[:, others], np.eye(k - 1), atol=1e-10)


@pytest.mark.parametrize("method", ALL_METHODS)
@pytest.mark.parametrize("shape", [(3, 3), (5, 2), (2, 5)])
def test_zero_matrix(method, shape):
    A = np.zeros(shape)
    Q, R, perm = METHODS[method](A)
    assert np.all(Q == 0.0)
    assert np.all(R == 0.0)


@pytest.mark.parametrize("method", UNPIVOTED)
def test_unpivoted_variants_agree(method):
    """QR with diag(R) > 0 is unique for full column rank."""
    A = random_well_conditioned(9, 5, cond=20.0, seed=3)
    Q0, R0, _ = cgs(A)
    Q, R, _ = METHODS[method](A)
    np.testing.assert_allclose(Q, Q0, atol=1e-9)
    np.testing.assert_allclose(R, R0, atol=1e-9)


def test_degenerate_column_is_logged(caplog):
    A = np.array([[1.0, 2.0], [2.0, 4.0]])
    with caplog.at_level(logging.DEBUG, logger="qrfactor"):
        mgs(A)
    assert "numerically dependent" in caplog.text


def test_reorthogonalization_recovers_orthogonality():
    A = random_well_conditioned(40, 12, cond=1e8, seed=11)
    errs = {}
    for name, f in [("cgs", cgs), ("mgs", mgs), ("igs", igs), ("householder", householder)]:
        Q, _, _ = f(A)
        errs[name] = np.linalg.norm(Q.T @ Q - np.eye(12), np.inf)
    logger.debug(f"loss of orthogonality: {errs}")

    assert errs["igs"] < 1e-10
    assert errs["householder"] < 1e-10
    assert errs["cgs"] > 1e3 * errs["igs"]
    assert errs["mgs"] < errs["cgs"]


@pytest.mark.parametrize("block_size", [1, 2, 3, 5, 20])
def test_bgs_block_size_does_not_change_result(block_size):
    A = random_well_conditioned(12, 7, cond=30.0, seed=block_size)
    Q0, R0, _ = mgs(A)
    Q, R, _ = bgs(A, block_size=block_size)
    np.testing.assert_allclose(Q, Q0, atol=1e-10)
    np.testing.assert_allclose(R, R0, atol=1e-10)


def test_bgs_rejects_bad_block_size():
    with pytest.raises(ValueError):
        bgs(np.eye(3), block_size=0)


def test_rgs_pivots_on_largest_residual():
    A = np.array(
        [
            [1.0, 0.0, 3.0, 0.0],
            [0.0, 2.0, 0.0, 0.0],
            [0.0, 0.0, 0.0, 0.5],
        ]
    )
    _, _, perm = rgs(A)
    assert list(perm) == [2, 1, 0, 3]


def test_cgsp_reveals_rank():
    rng = np.random.default_rng(5)
    A = rng.standard_normal((8, 2)) @ rng.standard_normal((2, 6))  # rank 2
    Q, R, perm = cgsp(A)
    d = np.diag(R)

    assert np.all(d[:2] > 0)
    assert np.all(d[2:] == 0.0)
    assert np.all(np.diff(d) <= 1e-12)
    np.testing.assert_allclose(Q @ R, A[:, perm], atol=1e-8)


def test_cgsp_first_pivot_is_largest_column():
    A = np.array([[1.0, 0.0, 5.0], [0.0, 2.0, 0.0]])
    _, R, perm = cgsp(A)
    assert perm[0] == 2
    assert R[0, 0] == pytest.approx(5.0)


def test_givens_rotation():
    c, s = givens_rotation(3.0, 4.0)
    G = np.array([[c, s], [-s, c]])
    np.testing.assert_allclose(G @ [3.0, 4.0], [5.0, 0.0], atol=1e-15)
    assert givens_rotation(2.0, 0.0) == (1.0, 0.0)


def test_givens_leaves_triangular_input_alone():
    rng = np.random.default_rng(2)
    A = np.triu(rng.uniform(1.0, 2.0, size=(5, 5)))
    Q, R, _ = givens(A)
    assert np.array_equal(Q, np.eye(5))
    assert np.array_equal(R, A)


def test_givens_hessenberg():
    rng = np.random.default_rng(4)
    A = np.triu(rng.standard_normal((6, 6)), -1)  # upper Hessenberg
    Q, R, perm = givens(A)
    _check_factors(A, Q, R, perm)
    assert np.allclose(Q.T @ Q, np.eye(6), atol=1e-12)
