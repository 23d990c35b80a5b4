from typing import List

import torch


def subspace_distance(Q1: torch.Tensor, Q2: torch.Tensor) -> float:
    """
    Sine of the largest principal angle between the column spaces of two
    matrices with orthonormal columns (0 = same subspace, 1 = orthogonal
    direction present).
    """
    cosines = torch.linalg.svdvals(torch.mm(Q1.t(), Q2))
    smallest = float(torch.clamp(torch.min(cosines), max=1.0))
    return float(max(0.0, 1.0 - smallest ** 2) ** 0.5)


def max_subspace_distance(
    old: List[torch.Tensor], new: List[torch.Tensor]
) -> float:
    """Largest subspace_distance across modes."""
    return max(subspace_distance(Q_old, Q_new) for Q_old, Q_new in zip(old, new))


def orthonormality_error(Q: torch.Tensor) -> float:
    """Max absolute deviation of Q^T Q from the identity."""
    gram = torch.mm(Q.t(), Q)
    eye = torch.eye(gram.shape[0], dtype=gram.dtype, device=gram.device)
    return float(torch.max(torch.abs(gram - eye)))


def orthonormal_basis(A: torch.Tensor) -> torch.Tensor:
    """Orthonormal basis of the column space of a full column rank matrix (reduced QR)."""
    Q, _ = torch.linalg.qr(A)
    return Q
