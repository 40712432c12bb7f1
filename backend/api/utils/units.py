"""Human-readable distance formatting."""


def format_distance(metres: float) -> str:
    """Format a distance in metres as kilometres, e.g. 12346 -> "12.35 km"."""
    return f"{metres / 1000:.2f} km"
