"""Small dense linear-algebra helpers for the 4PL normal equations."""

from __future__ import annotations

from typing import Optional

import numpy as np

SINGULAR_TOLERANCE = 1e-12


def transpose(matrix: np.ndarray) -> np.ndarray:
    """Return a transposed copy of a 2-D matrix.

    Args:
        matrix (numpy.ndarray): Matrix of shape ``(m, n)``.

    Returns:
        numpy.ndarray: New ``(n, m)`` array; the input is not modified.
    """
    return np.asarray(matrix, dtype=float).T.copy()


def matrix_multiply(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """Multiply two 2-D matrices.

    Args:
        a (numpy.ndarray): Left matrix ``(m, k)``.
        b (numpy.ndarray): Right matrix ``(k, n)``.

    Returns:
        numpy.ndarray: Product of shape ``(m, n)``.

    Raises:
        ValueError: If the inner dimensions differ or an input is not 2-D.
    """
    a_arr = np.asarray(a, dtype=float)
    b_arr = np.asarray(b, dtype=float)
    if a_arr.ndim != 2 or b_arr.ndim != 2 or a_arr.shape[1] != b_arr.shape[0]:
        raise ValueError(
            f"Cannot multiply matrices of shapes {a_arr.shape} and {b_arr.shape}."
        )
    return a_arr @ b_arr


def matrix_vector_multiply(matrix: np.ndarray, vector: np.ndarray) -> np.ndarray:
    m_arr = np.asarray(matrix, dtype=float)
    v_arr = np.asarray(vector, dtype=float)
    if m_arr.ndim != 2 or v_arr.ndim != 1 or m_arr.shape[1] != v_arr.shape[0]:
        raise ValueError(
            f"Cannot multiply matrix of shape {m_arr.shape} "
            f"with vector of shape {v_arr.shape}."
        )
    return m_arr @ v_arr


def solve_linear_system(
    a: np.ndarray, b: np.ndarray, tol: float = SINGULAR_TOLERANCE
) -> Optional[np.ndarray]:
    """Solve ``a @ x = b`` by Gaussian elimination with partial pivoting.

    Args:
        a (numpy.ndarray): Square coefficient matrix (n x n).
        b (numpy.ndarray): Right-hand side of length n.
        tol (float, optional): Pivot magnitude below which the system is
            treated as singular. Defaults to ``1e-12``.

    Returns:
        numpy.ndarray | None: Solution vector, or ``None`` when a pivot falls
        below ``tol``.

    Note:
        The inputs are copied into an augmented matrix and never modified.
    """
    a_arr = np.asarray(a, dtype=float)
    b_arr = np.asarray(b, dtype=float)
    n = int(b_arr.shape[0])
    if a_arr.shape != (n, n):
        raise ValueError(
            f"Coefficient matrix must be {n}x{n}, got shape {a_arr.shape}."
        )

    aug = np.hstack([a_arr, b_arr.reshape(n, 1)])

    for col in range(n):
        pivot = col + int(np.argmax(np.abs(aug[col:, col])))
        if pivot != col:
            aug[[col, pivot]] = aug[[pivot, col]]

        if abs(aug[col, col]) < tol:
            return None

        for row in range(col + 1, n):
            factor = aug[row, col] / aug[col, col]
            aug[row, col:] -= factor * aug[col, col:]

    x = np.zeros(n, dtype=float)
    for row in range(n - 1, -1, -1):
        x[row] = (aug[row, n] - np.dot(aug[row, row + 1 : n], x[row + 1 :])) / aug[
            row, row
        ]
    return x
