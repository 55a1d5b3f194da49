# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

import logging
from typing import Optional, Tuple

import numpy as np

RANK_TOL: float = 1e-10  # absolute residual norm below which a column is dependent
PINV_REG: float = 1e-8  # diagonal shift applied to R before inversion
DEFAULT_BLOCK_SIZE: int = 4

logger = logging.getLogger(__name__)


def is_negligible(norm: float, tol: float = RANK_TOL) -> bool:
    """True when a residual norm is numerically zero (also for NaN)."""
    return not abs(norm) > tol


def safe_normalize(v: np.ndarray, tol: float = RANK_TOL) -> Tuple[float, np.ndarray]:
    """
    Normalize a residual column, degrading to zero when it is negligible.

    Returns
    -------
    norm : float
        ||v||_2, or 0.0 when the column is linearly dependent.
    q : (m,) ndarray
        v / ||v||_2, or the zero vector.
    """
    norm = float(np.linalg.norm(v))
    if is_negligible(norm, tol):
        return 0.0, np.zeros_like(v)
    return norm, v / norm


def finalize(
    Q: np.ndarray, R: np.ndarray, tol: float = RANK_TOL
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Bring an orthogonal-transform factorization into the shared (Q, R) form.

    Every diagonal entry of R is the residual norm of its column, so the
    rank test is the same one Gram-Schmidt applies: a negligible diagonal
    zeroes the Q column and the R row from the diagonal on. Otherwise the
    sign is flipped so that diag(R) >= 0.
    """
    k = min(Q.shape[1], R.shape[0])
    for j in range(k):
        d = R[j, j]
        if is_negligible(d, tol):
            logger.debug(f"column {j} is numerically dependent ({abs(d):.3e}); zeroing")
            Q[:, j] = 0.0
            R[j, j:] = 0.0
        elif d < 0:
            Q[:, j] = -Q[:, j]
            R[j, :] = -R[j, :]
    return Q, np.triu(R)


def random_nonsingular_upper(n, low=-100, high=100, seed=None) -> np.ndarray:
    """
    Build a matrix U that is upper-triangular with random entries
    everywhere and put only non-zero values on its diagonal

    Returns
    -------
    Matrix with float64 dtype
    """
    rng = np.random.default_rng(seed)
    U = rng.uniform(low, high, size=(n, n))
    # enforce upper-triangular
    U = np.triu(U)
    # replace any accidental zeros on the diagonal
    diag = rng.uniform(low if low != 0 else 1, high, size=n)
    U[np.diag_indices(n)] = diag
    return np.asarray(U)


def random_well_conditioned(
    m: int, n: int, cond: float = 10.0, seed: Optional[int] = None
) -> np.ndarray:
    """
    Random m-by-n matrix with prescribed 2-norm condition number.

    Built as U diag(s) V^T with random orthonormal U, V and singular
    values spaced geometrically from 1 down to 1 / cond.
    """
    rng = np.random.default_rng(seed)
    k = min(m, n)
    U, _ = np.linalg.qr(rng.standard_normal((m, k)))
    V, _ = np.linalg.qr(rng.standard_normal((n, k)))
    s = np.geomspace(1.0, 1.0 / cond, num=k)
    return np.asarray((U * s) @ V.T)
