"""Aggregation of base learner predictions.

Regression predictions are averaged. Classification predictions are
combined by plurality vote ('hard') or by averaging class-probability
vectors ('soft'). Class labels are kept in ``np.unique`` order and ties
always resolve to the lowest label, so results never depend on the order
of ensemble members.
"""

from typing import List, Sequence
import numpy as np


def mean_prediction(predictions: np.ndarray) -> np.ndarray:
    """Average a (n_members, n_rows) prediction matrix over members.

    Raises:
        ValueError: If there are no member predictions
    """
    predictions = np.asarray(predictions, dtype=float)
    if predictions.ndim != 2 or predictions.shape[0] == 0:
        raise ValueError("Need a non-empty (n_members, n_rows) prediction matrix")
    return predictions.mean(axis=0)


def class_positions(labels: np.ndarray, classes: np.ndarray) -> np.ndarray:
    """Map labels to their column positions in a sorted class array.

    Raises:
        ValueError: If a label is not one of the classes
    """
    classes = np.asarray(classes)
    labels = np.asarray(labels)
    if classes.dtype == object:
        labels = labels.astype(object)
    positions = np.searchsorted(classes, labels)
    positions = np.clip(positions, 0, len(classes) - 1)
    if not np.all(classes[positions] == labels):
        unknown = sorted(set(labels[classes[positions] != labels].tolist()))
        raise ValueError(f"Unknown class labels: {unknown}")
    return positions


def vote_counts(predictions: np.ndarray, classes: np.ndarray) -> np.ndarray:
    """Count votes per class for every row.

    Args:
        predictions: (n_members, n_rows) matrix of predicted labels
        classes: Sorted array of class labels

    Returns:
        (n_rows, n_classes) vote count matrix
    """
    predictions = np.asarray(predictions)
    n_rows = predictions.shape[1]
    counts = np.zeros((n_rows, len(classes)))
    rows = np.arange(n_rows)
    for member_preds in predictions:
        np.add.at(counts, (rows, class_positions(member_preds, classes)), 1.0)
    return counts


def resolve_scores(scores: np.ndarray, classes: np.ndarray) -> np.ndarray:
    """Pick the highest-scoring class per row, lowest label on ties."""
    # argmax returns the first maximum and classes are sorted ascending
    return np.asarray(classes)[np.argmax(scores, axis=1)]


def plurality_vote(predictions: np.ndarray, classes: np.ndarray) -> np.ndarray:
    """Plurality vote over a (n_members, n_rows) label matrix.

    Example:
        >>> preds = np.array([[0, 1], [1, 1], [1, 0]])
        >>> plurality_vote(preds, np.array([0, 1]))
        array([1, 1])
    """
    predictions = np.asarray(predictions)
    if predictions.ndim != 2 or predictions.shape[0] == 0:
        raise ValueError("Need a non-empty (n_members, n_rows) prediction matrix")
    return resolve_scores(vote_counts(predictions, classes), classes)


def align_probabilities(
    proba: np.ndarray,
    member_classes: Sequence,
    classes: np.ndarray
) -> np.ndarray:
    """Expand a member's probability matrix to the ensemble's class columns.

    A member fit on a bootstrap sample may have seen only some classes; the
    classes it never saw get probability zero.
    """
    proba = np.asarray(proba, dtype=float)
    aligned = np.zeros((proba.shape[0], len(classes)))
    aligned[:, class_positions(np.asarray(member_classes), classes)] = proba
    return aligned


def mean_probability(
    probas: List[np.ndarray],
    member_classes: List[Sequence],
    classes: np.ndarray
) -> np.ndarray:
    """Average class-probability matrices of several members.

    Returns:
        (n_rows, n_classes) mean probability matrix
    """
    if len(probas) == 0:
        raise ValueError("Need at least one probability matrix")
    aligned = [
        align_probabilities(proba, member_cls, classes)
        for proba, member_cls in zip(probas, member_classes)
    ]
    return np.mean(aligned, axis=0)
