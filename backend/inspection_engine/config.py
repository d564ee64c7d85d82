from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict

from .domain.sampling import DEFAULT_SAMPLE_SIZE_TABLE


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_prefix="INSPECTION_", extra="ignore")

    # ---- App ----
    app_env: str = "local"  # local|dev|prod
    database_url: str = "sqlite:///./inspections.db"

    # ---- CORS (used by main.py) ----
    cors_allow_origins: list[str] | str = ["*"]

    # ---- Catalog ----
    # JSON file; None means the sample catalog bundled under data/
    catalog_path: str | None = None

    # ---- Sampling ----
    # (upper bound inclusive, sample size); beyond the last bound the last size applies
    sample_size_table: list[tuple[int, int]] = list(DEFAULT_SAMPLE_SIZE_TABLE)

    # ---- Pass/fail policy (None disables a trigger) ----
    min_passing_score: float | None = 60.0
    max_interior_deduction: float | None = 30.0
    max_common_deduction: float | None = 40.0
    score_decimals: int = 2

    def model_post_init(self, __context) -> None:
        for name in ("min_passing_score", "max_interior_deduction", "max_common_deduction"):
            v = getattr(self, name)
            if v is not None and v < 0:
                raise ValueError(f"{name} must be >= 0, got {v}")

        if not 0 <= int(self.score_decimals) <= 6:
            raise ValueError(f"score_decimals must be within 0..6, got {self.score_decimals}")

        env = (self.app_env or "local").strip().lower()
        is_prod = env in ("prod", "production")

        if is_prod:
            origins = self.cors_allow_origins
            if origins == "*" or origins == ["*"] or (isinstance(origins, str) and "*" in origins):
                raise ValueError("SECURITY: cors_allow_origins wildcard is not allowed in prod")


settings = Settings()
