"""
Application configuration settings loaded from environment variables.
Uses pydantic_settings for validation and type conversion.
"""
from pydantic_settings import BaseSettings
from typing import List, Optional

class Settings(BaseSettings):
    """
    Application settings class with environment variable validation.
    
    Attributes:
        database_url: SQLAlchemy connection string
        secret_key: Secret key for JWT token encoding
        algorithm: Algorithm used for JWT encoding (typically HS256)
        access_token_expire_minutes: Access token expiration time in minutes
        
        # Files
        public_dir: Static-serving root for attachments and shared images
        max_upload_size: Maximum size of one attachment in bytes
        max_attachments: Maximum number of attachments per request
        storage_backend: "local" or "cloudinary"
        
        # Shared images
        share_ttl_days: Days a shared image stays available
        cleanup_interval_hours: Hours between expiry sweeps
        cleanup_enabled: Whether the app lifespan runs the sweep scheduler
        
        # Bootstrap settings (optional)
        seed_reference_data: Seed the drug/regimen catalog when it is empty
        bootstrap_admin_username: Optional admin username for first admin creation
        bootstrap_admin_password: Optional admin password for first admin creation
    """
    # Database settings
    database_url: str = "sqlite:///./chemo_orders.db"
    
    # JWT settings
    secret_key: str
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24 * 15
    
    # File settings
    public_dir: str = "public"
    max_upload_size: int = 10_000_000
    max_attachments: int = 10
    storage_backend: str = "local"
    
    # Shared image settings
    share_ttl_days: int = 15
    cleanup_interval_hours: int = 24
    cleanup_enabled: bool = True
    
    # CORS settings
    cors_origins: List[str] = ["*"]
    
    # Bootstrap settings (optional - only used on an empty database)
    seed_reference_data: bool = True
    bootstrap_admin_username: Optional[str] = None
    bootstrap_admin_password: Optional[str] = None
    bootstrap_admin_full_name: str = "System Administrator"

    # Cloudinary settings (only needed when storage_backend is "cloudinary")
    cloudinary_cloud_name: Optional[str] = None
    cloudinary_api_key: Optional[str] = None
    cloudinary_api_secret: Optional[str] = None

    class Config:
        """Configuration for environment variables loading"""
        env_file = ".env"
        case_sensitive = False

# Create settings instance
settings = Settings()
