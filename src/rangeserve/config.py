"""Serving settings, passed explicitly into the app and responder."""

from dataclasses import dataclass, replace

CHUNK_SIZE = 64 * 1024                 # bytes per read while streaming
MEDIA_MAX_AGE = 30 * 24 * 3600         # video/*, audio/*
IMAGE_MAX_AGE = 7 * 24 * 3600          # image/*
DEFAULT_MAX_AGE = 24 * 3600            # everything else


@dataclass(frozen=True, slots=True)
class ServeConfig:
    chunk_size: int = CHUNK_SIZE
    media_max_age: int = MEDIA_MAX_AGE
    image_max_age: int = IMAGE_MAX_AGE
    default_max_age: int = DEFAULT_MAX_AGE

    def __post_init__(self):
        if self.chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        for name in ("media_max_age", "image_max_age", "default_max_age"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} cannot be negative")

    def with_overrides(self, **changes) -> "ServeConfig":
        """Copy with the given fields replaced; None values are skipped."""
        return replace(self, **{k: v for k, v in changes.items() if v is not None})


DEFAULT_CONFIG = ServeConfig()
