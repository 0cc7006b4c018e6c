from dataclasses import dataclass

@dataclass(frozen=True)
class AppConfig:
    debug: bool = True
    log_level: str = "DEBUG"  # change to "INFO" later
    window_geometry: str = "1400x860"

    # canvas view
    zoom_min: float = 0.2
    zoom_max: float = 3.0
    zoom_step: float = 0.1
    wheel_zoom_sensitivity: float = 0.001
    zoom_anchor: str = "origin"  # "origin" | "cursor"

    # None = fresh random palette picks each run
    palette_seed: int | None = None
