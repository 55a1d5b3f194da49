# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

"""
QR factorizations by orthogonal transformations (Householder, Givens).

Both return (Q, R, perm) in the same shape and sign convention as the
Gram-Schmidt routines: Q is (m, k), R is (k, n), diag(R) >= 0 and
dependent columns are zeroed by `finalize`.

Transformations are applied to a working copy of A with a row cursor r
that only advances on independent columns. A dependent column j consumes
no row, so the direction it would have taken is still available to the
columns after it; slot j of Q and R is simply left empty.
"""

import logging
from typing import List, Tuple

import numpy as np

from .utils import RANK_TOL, finalize, is_negligible

logger = logging.getLogger(__name__)


def _gather(
    Q_full: np.ndarray, W: np.ndarray, slots: List[Tuple[int, int]], k: int, tol: float
) -> Tuple[np.ndarray, np.ndarray]:
    """Move working row r (and Q column r) into slot j for each (j, r)."""
    m, n = W.shape
    Q = np.zeros((m, k))
    R = np.zeros((k, n))
    for j, r in slots:
        Q[:, j] = Q_full[:, r]
        R[j, :] = W[r, :]
    return finalize(Q, R, tol)


def householder(A: np.ndarray, tol: float = RANK_TOL) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Compute the QR decomposition of an m-by-n matrix A using
    Householder transformations.

    A = QR
    H = I - tau * w * transpose(w)
    tau = 2 / (transpose(w) * w)

    Parameters
    ----------
    A : (m, n) ndarray
    tol : float
        A column whose remaining sub-column has norm at most `tol` is
        dependent and gets no reflector.

    Returns
    -------
    Q : (m, k) ndarray | orthonormal columns, k = min(m, n)
    R : (k, n) ndarray | upper-triangular
    perm : (n,) ndarray | identity
    """
    A = np.asarray(A, dtype=float)
    m, n = A.shape
    k = min(m, n)
    Q = np.eye(m)
    W = A.copy()
    slots = []
    r = 0

    for j in range(k):
        # ---- build the reflector for column j on rows r: ---------------------
        x = W[r:, j]
        norm_x = np.linalg.norm(x)
        if is_negligible(norm_x, tol):  # dependent, keeps row r free
            continue
        # w = x + sign(x0) ‖x‖ e₁
        w = x.copy()
        w[0] += np.copysign(norm_x, x[0])
        w /= np.linalg.norm(w)  # ‖w‖ = 1
        w = w.reshape(-1, 1)  # column
        tau = 2  # because w is unit-norm

        # ---- apply H = I – τ w wᵀ  to W (from the left) ----------------------
        W[r:, j:] -= tau * w @ (w.T @ W[r:, j:])
        # ---- accumulate Q = Q Hᵀ (Hᵀ = H)  -----------------------------------
        Q[:, r:] -= Q[:, r:] @ w @ (tau * w).T

        slots.append((j, r))
        r += 1

    Q, R = _gather(Q, W, slots, k, tol)
    return Q, R, np.arange(n)


def givens_rotation(a: float, b: float) -> Tuple[float, float]:
    """
    Return (c, s) such that

        [ c  s ] [a]   [r]
        [-s  c ] [b] = [0],   r = hypot(a, b) >= 0.
    """
    if b == 0:
        return 1.0, 0.0
    r = np.hypot(a, b)
    return a / r, b / r


def givens(A: np.ndarray, tol: float = RANK_TOL) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    QR decomposition by Givens rotations.

    Sub-diagonal entries are annihilated bottom-up within each column,
    each rotation mixing two adjacent rows only. Entries that are already
    exactly zero are skipped, so structured (banded, Hessenberg) input
    costs one rotation per non-zero.
    """
    A = np.asarray(A, dtype=float)
    m, n = A.shape
    k = min(m, n)
    Q = np.eye(m)
    W = A.copy()
    slots = []
    r = 0
    rotations = 0

    for j in range(k):
        if is_negligible(np.linalg.norm(W[r:, j]), tol):
            continue
        for i in range(m - 1, r, -1):
            if W[i, j] == 0:
                continue
            c, s = givens_rotation(W[i - 1, j], W[i, j])
            G = np.array([[c, s], [-s, c]])
            rows = [i - 1, i]
            W[rows, j:] = G @ W[rows, j:]
            W[i, j] = 0.0
            Q[:, rows] = Q[:, rows] @ G.T
            rotations += 1

        slots.append((j, r))
        r += 1

    logger.debug(f"givens: {rotations} rotations for a {m}x{n} matrix")
    Q, R = _gather(Q, W, slots, k, tol)
    return Q, R, np.arange(n)
