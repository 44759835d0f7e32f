from __future__ import annotations

from .models import Column


def smooth_peaks(columns: list[Column]) -> list[Column]:
    """Shave lone spikes down to the taller neighbor, in place.

    A column is a lone spike when its total amplitude is strictly greater
    than both neighbors.  Its band amplitudes, total and scalar amplitude
    are all scaled by ``max(left, right) / total`` so the band mix is
    kept.  The first and last columns are never touched.  Returns
    *columns* for chaining.
    """
    for i in range(1, len(columns) - 1):
        prev = columns[i - 1]
        curr = columns[i]
        nxt = columns[i + 1]
        if (curr.total_amplitude > prev.total_amplitude
                and curr.total_amplitude > nxt.total_amplitude):
            max_neighbor = max(prev.total_amplitude, nxt.total_amplitude)
            ratio = max_neighbor / curr.total_amplitude
            curr.low_amplitude *= ratio
            curr.mid_amplitude *= ratio
            curr.high_amplitude *= ratio
            curr.total_amplitude = max_neighbor
            curr.amplitude *= ratio
    return columns
