# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

import logging
from typing import Callable, Dict, Optional, Tuple

import numpy as np

from .gram_schmidt import bgs, cgs, cgsp, igs, mgs, rgs
from .orthogonal import givens, householder
from .triangular import back_substitute
from .utils import DEFAULT_BLOCK_SIZE, PINV_REG, RANK_TOL

logger = logging.getLogger(__name__)

METHODS: Dict[str, Callable] = {
    "cgs": cgs,
    "mgs": mgs,
    "igs": igs,
    "bgs": bgs,
    "rgs": rgs,
    "cgsp": cgsp,
    "householder": householder,
    "givens": givens,
}
# variants that reorder columns, A[:, P] = QR
PIVOTING = frozenset({"rgs", "cgsp"})
# keyword options each variant accepts besides tol
OPTIONS: Dict[str, frozenset] = {"bgs": frozenset({"block_size"})}


class QR:
    """
    QR factorization handle: A (m x n) = Q (m x k) R (k x n), k = min(m, n).

    The handle owns private copies of A, Q and R. Q and R stay empty until
    one of the ``qr_*`` methods (or ``factorize``) is called; ``solve`` and
    ``pseudo_inverse`` need them populated.

    Example
    -------
    >>> f = QR(np.array([[3.0, 1.0], [4.0, 2.0]])).qr_householder()
    >>> x = f.solve(np.array([1.0, 2.0]))
    """

    def __init__(self, A, tol: float = RANK_TOL):
        A = np.array(A, dtype=float)  # always a private copy
        if A.ndim != 2:
            raise ValueError(f"A must be a 2-D matrix, got {A.ndim} dimension(s)")
        if A.shape[0] < 1 or A.shape[1] < 1:
            raise ValueError(f"Matrix should be: rows > 0 && cols > 0, got {A.shape}")

        self._A = A
        self._Q = np.empty((0, 0))
        self._R = np.empty((0, 0))
        self._perm = np.empty(0, dtype=np.intp)
        self.tol = tol
        self.method: Optional[str] = None

    # ------------------------------------------------------------------
    # value semantics
    # ------------------------------------------------------------------
    def copy(self) -> "QR":
        """Deep copy; the new handle shares no arrays with this one."""
        other = QR.__new__(QR)
        other._A = self._A.copy()
        other._Q = self._Q.copy()
        other._R = self._R.copy()
        other._perm = self._perm.copy()
        other.tol = self.tol
        other.method = self.method
        return other

    __copy__ = copy

    def __deepcopy__(self, memo) -> "QR":
        return self.copy()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, QR):
            return NotImplemented
        return (
            np.array_equal(self._A, other._A)
            and np.array_equal(self._Q, other._Q)
            and np.array_equal(self._R, other._R)
        )

    __hash__ = None  # mutable

    def __repr__(self) -> str:
        m, n = self._A.shape
        return f"{self.__class__.__name__}(shape=({m}, {n}), method={self.method!r})"

    # ------------------------------------------------------------------
    # accessors, all return copies
    # ------------------------------------------------------------------
    @property
    def A(self) -> np.ndarray:
        return self._A.copy()

    @property
    def Q(self) -> np.ndarray:
        return self._Q.copy()

    @property
    def R(self) -> np.ndarray:
        return self._R.copy()

    @property
    def P(self) -> np.ndarray:
        """Column permutation: A[:, P] ~= Q @ R."""
        return self._perm.copy()

    @property
    def shape(self) -> Tuple[int, int]:
        return self._A.shape

    def permutation_matrix(self) -> np.ndarray:
        """Return the n x n matrix Pi with A @ Pi ~= Q @ R."""
        self._require_factorized("permutation_matrix")
        return np.eye(self._A.shape[1])[:, self._perm]

    def rank(self) -> int:
        """Numerical rank: number of non-zero diagonal entries of R."""
        self._require_factorized("rank")
        return int(np.count_nonzero(np.diag(self._R)))

    # ------------------------------------------------------------------
    # factorizations
    # ------------------------------------------------------------------
    def factorize(self, method: str = "cgs", **kwargs) -> "QR":
        """
        Populate Q and R with the named variant (see ``METHODS``).

        Extra keyword options are passed to the variant; only ``bgs`` takes
        any (``block_size``). Anything else raises ``ValueError``.
        """
        try:
            algorithm = METHODS[method]
        except KeyError:
            raise ValueError(
                f"unknown QR method {method!r}, expected one of {sorted(METHODS)}"
            ) from None
        unexpected = set(kwargs) - OPTIONS.get(method, frozenset())
        if unexpected:
            raise ValueError(f"QR method {method!r} does not accept option(s) {sorted(unexpected)}")

        self._Q, self._R, self._perm = algorithm(self._A, self.tol, **kwargs)
        self.method = method
        logger.debug(f"{method}: factorized {self._A.shape[0]}x{self._A.shape[1]}, rank {self.rank()}")
        return self

    def qr(self) -> "QR":
        """Default factorization, Classical Gram-Schmidt."""
        return self.qr_cgs()

    def qr_cgs(self) -> "QR":
        return self.factorize("cgs")

    def qr_mgs(self) -> "QR":
        return self.factorize("mgs")

    def qr_igs(self) -> "QR":
        return self.factorize("igs")

    def qr_bgs(self, block_size: int = DEFAULT_BLOCK_SIZE) -> "QR":
        return self.factorize("bgs", block_size=block_size)

    def qr_rgs(self) -> "QR":
        return self.factorize("rgs")

    def qr_cgsp(self) -> "QR":
        return self.factorize("cgsp")

    def qr_householder(self) -> "QR":
        return self.factorize("householder")

    def qr_givens(self) -> "QR":
        return self.factorize("givens")

    # ------------------------------------------------------------------
    # derived results
    # ------------------------------------------------------------------
    def _require_factorized(self, what: str):
        if self.method is None:
            raise ValueError(f"{what}() needs Q and R, call qr() or a qr_* method first")

    def solve(self, b: np.ndarray) -> np.ndarray:
        """
        Least-squares solution of min ||Ax - b||_2.

        Solves R y = Q^T b by back-substitution. An unknown whose pivot in
        R is zero (dependent column), and every unknown past k for a wide
        A, is free and set to zero. The permutation of a pivoted variant
        is undone before returning.

        Parameters
        ----------
        b : (m,) or (m, r) ndarray

        Returns
        -------
        x : (n,) or (n, r) ndarray
        """
        self._require_factorized("solve")
        b = np.asarray(b, dtype=float)
        m = self._A.shape[0]
        if b.ndim not in (1, 2) or b.shape[0] != m:
            raise ValueError(f"dimension mismatch: b has shape {b.shape}, A has {m} rows")

        y = back_substitute(self._R, self._Q.T @ b, self.tol)
        x = np.empty_like(y)
        x[self._perm] = y
        return x

    def pseudo_inverse(self, reg: float = PINV_REG) -> np.ndarray:
        """
        Approximate Moore-Penrose pseudo-inverse, A+ = (R + reg I)^-1 Q^T.

        The diagonal shift keeps the inversion finite when R is singular.
        It is a bias, not the exact pseudo-inverse: for well-conditioned A
        the relative error is about reg / sigma_min(A). For a wide A only
        the leading k x k block of R is inverted and the trailing n - k
        rows of the result are zero, matching ``solve``.

        Returns
        -------
        A_pinv : (n, m) ndarray
        """
        self._require_factorized("pseudo_inverse")
        m, n = self._A.shape
        k = self._R.shape[0]

        R11 = self._R[:, :k]
        if np.any(np.diag(R11) == 0.0):
            logger.warning("pseudo_inverse(): R is singular, result is dominated by the regularization")
        logger.debug(f"pseudo_inverse(): regularizing R with {reg:g} * I")

        R_inv = np.linalg.inv(R11 + reg * np.eye(k))
        X = np.zeros((n, m))
        X[:k] = R_inv @ self._Q.T

        A_pinv = np.empty_like(X)
        A_pinv[self._perm] = X
        return A_pinv


def qr(A: np.ndarray, method: str = "cgs", tol: float = RANK_TOL) -> Tuple[np.ndarray, np.ndarray]:
    """
    Thin QR decomposition, A = QR.

    Parameters:
    A : ndarray
        (m, n) input matrix.
    method : str
        Any key of ``METHODS`` that does not pivot.
    Returns:
    Q : ndarray
        (m, k) matrix with orthonormal (or zero) columns
    R : ndarray
        (k, n) upper-triangular matrix
    """
    if method in PIVOTING:
        raise ValueError(f"{method!r} permutes columns, use QR(A).factorize({method!r}).P")
    f = QR(A, tol).factorize(method)
    return f.Q, f.R


def least_squares_qr(A: np.ndarray, b: np.ndarray, method: str = "cgs") -> np.ndarray:
    """
    Solve min ‖Ax – b‖₂ using a thin QR factorisation (A = QR).

    Returns:
    x : (n,) or (n, r) ndarray
        The least squares solution to Ax = b
    """
    return QR(A).factorize(method).solve(b)


def pinv_qr(A: np.ndarray, method: str = "householder", reg: float = PINV_REG) -> np.ndarray:
    """Regularized pseudo-inverse of A through a QR factorization."""
    return QR(A).factorize(method).pseudo_inverse(reg)


def random_nonsingular_qr(n, seed=None) -> np.ndarray:
    """
    QR trick (random orthogonal × random non-zero scale)

    QR Decomposition:
        A matrix A can be decomposed into the product of an
        orthogonal matrix Q and an upper triangular matrix
        R (A = QR)

    Returns
    -------
    Matrix with float64 dtype
    """
    rng = np.random.default_rng(seed)
    A = rng.standard_normal((n, n))
    Q, _R = qr(A, method="mgs")  # Q is orthogonal, det ≠ 0
    scales = rng.uniform(0.5, 10.0, size=n)  # strictly non-zero
    return np.asarray(Q * scales)  # broadcast scales into columns
