"""
Centralized configuration. Load once, use everywhere.
"""
import os
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()


class Config:
    GEMINI_API_KEY = os.getenv("GEMINI_API_KEY") or os.getenv("API_KEY")

    # ─────────────────────────────────────────────────────────────
    # Models
    # ─────────────────────────────────────────────────────────────
    ANALYSIS_MODEL = os.getenv("ANALYSIS_MODEL", "gemini-3-pro-preview")
    VISION_MODEL = os.getenv("VISION_MODEL", "gemini-2.5-flash")
    IMAGE_MODEL = os.getenv("IMAGE_MODEL", "gemini-3-pro-image-preview")

    # Generated views are square so hotspot coordinates map 1:1 onto the canvas
    IMAGE_ASPECT_RATIO = "1:1"
    IMAGE_SIZE = os.getenv("IMAGE_SIZE", "1K").upper()

    # Supabase URL
    SUPABASE_URL = os.getenv("SUPABASE_URL")

    # ─────────────────────────────────────────────────────────────
    # Supabase API Keys - New format (sb_publishable_... / sb_secret_...)
    # ─────────────────────────────────────────────────────────────
    SUPABASE_PUBLISHABLE_KEY = os.getenv("SUPABASE_PUBLISHABLE_KEY")
    SUPABASE_SECRET_KEY = os.getenv("SUPABASE_SECRET_KEY")

    # ─────────────────────────────────────────────────────────────
    # Legacy Supabase Keys (deprecated, for backwards compatibility)
    # ─────────────────────────────────────────────────────────────
    SUPABASE_ANON_KEY = os.getenv("SUPABASE_ANON_KEY")
    SUPABASE_SERVICE_ROLE_KEY = os.getenv("SUPABASE_SERVICE_ROLE_KEY")

    EXPLORATIONS_TABLE = os.getenv("EXPLORATIONS_TABLE", "explorations")

    # ─────────────────────────────────────────────────────────────
    # Exploration defaults
    # ─────────────────────────────────────────────────────────────
    DEFAULT_GENERATION_MODE = os.getenv("DEFAULT_GENERATION_MODE", "full").lower()

    PROJECT_ROOT = Path(__file__).parent.parent.parent
    EXPORT_DIR = Path(os.getenv("EXPORT_DIR", str(PROJECT_ROOT / "exports")))

    # Debug mode - set DEBUG=1 in env to enable verbose logging
    DEBUG = os.getenv("DEBUG", "").lower() in ("1", "true", "yes")

    @classmethod
    def has_supabase(cls) -> bool:
        """True when a Supabase project is configured for persistence."""
        if not cls.SUPABASE_URL:
            return False
        return any([
            cls.SUPABASE_SECRET_KEY,
            cls.SUPABASE_SERVICE_ROLE_KEY,
            cls.SUPABASE_PUBLISHABLE_KEY,
            cls.SUPABASE_ANON_KEY,
            os.getenv("SUPABASE_KEY"),
        ])

    @classmethod
    def get_supabase_key(cls, elevated: bool = True) -> str:
        """
        Get the appropriate Supabase API key.

        Args:
            elevated: If True, use secret/service_role key (bypasses RLS).
                     If False, use publishable/anon key (respects RLS).

        Returns:
            API key string (prefers new format, falls back to legacy)

        Priority:
            1. New format (sb_publishable_... or sb_secret_...)
            2. Legacy format (anon or service_role JWT)
            3. Old single SUPABASE_KEY (deprecated)
        """
        if elevated:
            if cls.SUPABASE_SECRET_KEY:
                return cls.SUPABASE_SECRET_KEY
            if cls.SUPABASE_SERVICE_ROLE_KEY:
                return cls.SUPABASE_SERVICE_ROLE_KEY
        else:
            if cls.SUPABASE_PUBLISHABLE_KEY:
                return cls.SUPABASE_PUBLISHABLE_KEY
            if cls.SUPABASE_ANON_KEY:
                return cls.SUPABASE_ANON_KEY

        legacy_key = os.getenv("SUPABASE_KEY")
        if legacy_key:
            import warnings
            warnings.warn(
                "SUPABASE_KEY is deprecated. Use SUPABASE_PUBLISHABLE_KEY and "
                "SUPABASE_SECRET_KEY instead. See .env.example for details.",
                DeprecationWarning
            )
            return legacy_key

        raise ValueError(
            "No Supabase API key found. Set SUPABASE_SECRET_KEY (or SUPABASE_PUBLISHABLE_KEY) "
            "in your .env file. See .env.example for the new key format."
        )


def debug(message: str) -> None:
    """Print only when DEBUG is enabled."""
    if Config.DEBUG:
        print(message, flush=True)
