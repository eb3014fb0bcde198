"""Deterministic assignment of uploaded photos to story pages.

Given how many photos were uploaded and how many pages need an illustration,
:func:`select_photo_indices` returns which photo index feeds each page:

- same count: identity ``[0, 1, ..., needed - 1]``
- more photos than pages: ``needed`` evenly spaced picks, always starting at
  the first photo and ending at the last one, each position rounded to the
  nearest index with halves rounding up
- fewer photos than pages: photos repeat round-robin (``i mod total``)

No randomness is involved; equal inputs always produce equal output.
"""

from __future__ import annotations


def select_photo_indices(total_photos: int, needed: int) -> list[int]:
    """Map ``total_photos`` uploaded photos onto ``needed`` page slots.

    Args:
        total_photos: Number of photos available (``>= 0``).
        needed: Number of pages to fill (``>= 1``).

    Returns:
        A list of ``needed`` indices into ``range(total_photos)``, or an empty
        list when no photos are available.

    Raises:
        ValueError: If ``total_photos`` is negative or ``needed`` is below 1.

    Examples:
        >>> select_photo_indices(12, 6)
        [0, 2, 4, 7, 9, 11]
        >>> select_photo_indices(4, 6)
        [0, 1, 2, 3, 0, 1]
    """
    if total_photos < 0:
        raise ValueError(f"total_photos must be >= 0, got {total_photos}")
    if needed < 1:
        raise ValueError(f"needed must be >= 1, got {needed}")

    if total_photos == 0:
        return []
    if total_photos == needed:
        return list(range(needed))
    if total_photos < needed:
        return [i % total_photos for i in range(needed)]

    # A single slot cannot span first..last; it takes the first photo.
    if needed == 1:
        return [0]

    # round(i * (total - 1) / (needed - 1)) with halves rounded up, computed
    # in integers so large counts never pick up float error.
    span = total_photos - 1
    steps = needed - 1
    return [(2 * i * span + steps) // (2 * steps) for i in range(needed)]
