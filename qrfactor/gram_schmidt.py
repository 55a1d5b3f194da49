# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

"""
Gram-Schmidt family of QR factorizations.

Every routine takes an (m, n) matrix A and returns (Q, R, perm) with
k = min(m, n):

    Q    : (m, k) ndarray, orthonormal (or zero) columns
    R    : (k, n) ndarray, upper-triangular
    perm : (n,) int ndarray, so that A[:, perm] ~= Q @ R

A column whose residual norm drops to RANK_TOL or below is linearly
dependent on the ones before it. It leaves a zero column in Q and a zero
row in R (from the diagonal on) instead of being divided by ~0.
"""

import logging
from typing import Tuple

import numpy as np

from .utils import DEFAULT_BLOCK_SIZE, RANK_TOL, safe_normalize

logger = logging.getLogger(__name__)

Factors = Tuple[np.ndarray, np.ndarray, np.ndarray]


def _allocate(A: np.ndarray):
    A = np.asarray(A, dtype=float)
    m, n = A.shape
    k = min(m, n)
    return A, np.zeros((m, k)), np.zeros((k, n))


def _set_column(Q: np.ndarray, R: np.ndarray, j: int, u: np.ndarray, tol: float):
    """Store the normalized residual u as Q[:, j] and its norm as R[j, j]."""
    R[j, j], Q[:, j] = safe_normalize(u, tol)
    if R[j, j] == 0.0:
        logger.debug(f"column {j} is numerically dependent; zeroing")


def cgs(A: np.ndarray, tol: float = RANK_TOL) -> Factors:
    """
    Classical Gram-Schmidt.

    R[j, i] is the projection of the *original* column a_i on q_j, so all
    projections of one column are independent of each other. Rounding
    errors are not fed back, which costs orthogonality on ill-conditioned
    input.
    """
    A, Q, R = _allocate(A)
    m, n = A.shape
    k = Q.shape[1]

    for i in range(n):
        v = A[:, i]
        u = v.copy()
        for j in range(min(i, k)):
            R[j, i] = Q[:, j] @ v
            u -= R[j, i] * Q[:, j]
        if i < k:
            _set_column(Q, R, i, u, tol)

    return Q, R, np.arange(n)


def mgs(A: np.ndarray, tol: float = RANK_TOL) -> Factors:
    """
    Modified Gram-Schmidt (right-looking).

    As soon as q_j is known its component is removed from every later
    working column, so each projection is taken against an already
    purified residual.
    """
    A, Q, R = _allocate(A)
    m, n = A.shape
    k = Q.shape[1]
    V = A.copy()  # working columns

    for j in range(k):
        _set_column(Q, R, j, V[:, j], tol)
        if R[j, j] == 0.0:
            # R[j, j + 1:] stays zero
            continue
        q = Q[:, j]
        R[j, j + 1 :] = q @ V[:, j + 1 :]
        V[:, j + 1 :] -= np.outer(q, R[j, j + 1 :])

    return Q, R, np.arange(n)


def igs(A: np.ndarray, tol: float = RANK_TOL) -> Factors:
    """
    Iterated (classical) Gram-Schmidt with one re-orthogonalization pass.

    "Twice is enough": the second projection removes what rounding left
    of the first, and its coefficients are accumulated into R.
    """
    A, Q, R = _allocate(A)
    m, n = A.shape
    k = Q.shape[1]

    for i in range(n):
        u = A[:, i].copy()
        p = min(i, k)
        for _ in range(2):
            c = Q[:, :p].T @ u
            u -= Q[:, :p] @ c
            R[:p, i] += c
        if i < k:
            _set_column(Q, R, i, u, tol)

    return Q, R, np.arange(n)


def bgs(A: np.ndarray, tol: float = RANK_TOL, block_size: int = DEFAULT_BLOCK_SIZE) -> Factors:
    """
    Block Gram-Schmidt.

    Columns are processed `block_size` at a time. A block is first
    projected against all completed blocks with two matrix products
    (BLAS-3), then orthogonalized internally with modified Gram-Schmidt.
    Columns past min(m, n) only receive their projections.
    """
    if block_size < 1:
        raise ValueError(f"block_size must be >= 1, got {block_size}")

    A, Q, R = _allocate(A)
    m, n = A.shape
    k = Q.shape[1]

    for s in range(0, k, block_size):
        e = min(s + block_size, k)
        W = A[:, s:e].copy()

        # inter-block: against every finished block at once
        R[:s, s:e] = Q[:, :s].T @ W
        W -= Q[:, :s] @ R[:s, s:e]

        # intra-block
        for j in range(e - s):
            col = s + j
            _set_column(Q, R, col, W[:, j], tol)
            q = Q[:, col]
            R[col, col + 1 : e] = q @ W[:, j + 1 :]
            W[:, j + 1 :] -= np.outer(q, R[col, col + 1 : e])

    if k < n:
        R[:, k:] = Q.T @ A[:, k:]

    return Q, R, np.arange(n)


def rgs(A: np.ndarray, tol: float = RANK_TOL) -> Factors:
    """
    Reordered (modified) Gram-Schmidt.

    Right-looking like `mgs`, but before each step the working column
    with the largest purified residual norm is swapped into position j
    (ties keep the leftmost). Dependent columns have ~zero residuals, so
    they sort to the end and their zero diagonals collect there.

    Unlike `cgsp`, the norms are read off the working columns themselves,
    which are already orthogonalized against every finished q, so no
    downdating error builds up.
    """
    A, Q, R = _allocate(A)
    m, n = A.shape
    k = Q.shape[1]
    V = A.copy()  # working columns, in perm order
    perm = np.arange(n)

    for j in range(k):
        p = j + int(np.argmax(np.einsum("ij,ij->j", V[:, j:], V[:, j:])))
        if p != j:
            perm[[j, p]] = perm[[p, j]]
            V[:, [j, p]] = V[:, [p, j]]
            R[:j, [j, p]] = R[:j, [p, j]]

        _set_column(Q, R, j, V[:, j], tol)
        if R[j, j] == 0.0:
            # every remaining residual is at most this one
            continue
        q = Q[:, j]
        R[j, j + 1 :] = q @ V[:, j + 1 :]
        V[:, j + 1 :] -= np.outer(q, R[j, j + 1 :])

    return Q, R, perm


def cgsp(A: np.ndarray, tol: float = RANK_TOL) -> Factors:
    """
    Classical Gram-Schmidt with column pivoting (rank revealing).

    At step j the remaining column with the largest residual norm is
    swapped into position j and orthogonalized classically. Residual
    norms are downdated with ||r||^2 -= (q_j . a)^2 rather than
    recomputed. Once the chosen pivot is negligible every remaining
    column is too, so the zero diagonal entries of R collect at the end.
    """
    A, Q, R = _allocate(A)
    m, n = A.shape
    k = Q.shape[1]
    perm = np.arange(n)
    resid = np.einsum("ij,ij->j", A, A)  # squared column norms

    for j in range(k):
        p = j + int(np.argmax(resid[perm[j:]]))
        perm[[j, p]] = perm[[p, j]]

        v = A[:, perm[j]]
        R[:j, j] = Q[:, :j].T @ v
        u = v - Q[:, :j] @ R[:j, j]
        _set_column(Q, R, j, u, tol)

        rest = perm[j + 1 :]
        resid[rest] -= (Q[:, j] @ A[:, rest]) ** 2
        np.maximum(resid, 0.0, out=resid)

    if k < n:
        R[:, k:] = Q.T @ A[:, perm[k:]]

    return Q, R, perm
