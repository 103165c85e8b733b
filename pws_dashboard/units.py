# ABOUTME: Pure metric-to-imperial conversions for weather measurements.
# ABOUTME: Every function passes None through unchanged and never rounds.


def celsius_to_fahrenheit(c: float | None) -> float | None:
    return None if c is None else c * 9 / 5 + 32


def ms_to_mph(ms: float | None) -> float | None:
    return None if ms is None else ms * 2.236936


def ms_to_kph(ms: float | None) -> float | None:
    return None if ms is None else ms * 3.6


def kph_to_ms(kph: float | None) -> float | None:
    """Convert the vendor's km/h wind readings to the internal m/s convention."""
    return None if kph is None else kph / 3.6


def hpa_to_inhg(hpa: float | None) -> float | None:
    return None if hpa is None else hpa * 0.0295299830714


def mm_to_inch(mm: float | None) -> float | None:
    return None if mm is None else mm / 25.4
