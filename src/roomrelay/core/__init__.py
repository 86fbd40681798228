"""Room relay engine: lifecycle, sweeping, presence and board state."""
