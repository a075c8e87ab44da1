"""Console rendering for downstream-check."""
