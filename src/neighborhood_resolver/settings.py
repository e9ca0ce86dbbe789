from pathlib import Path
from pydantic_settings import BaseSettings
from dotenv import load_dotenv

load_dotenv()

class Settings(BaseSettings):
    ddb_path: Path = Path('data/neighborhoods.duckdb')
    neighborhoods_table: str = 'neighborhood_geocoding.neighborhoods'

    # Pairwise distance fan-out used while breaking frequency ties
    distance_workers: int = 1
    distance_timeout_s: float | None = 30.0

    nominatim_url: str = 'https://nominatim.openstreetmap.org'
    geocoder_user_agent: str = 'neighborhood-resolver'
    geocoder_timeout_s: float = 10.0
    geocoder_requests_per_second: float = 1.0
    geocoder_max_retries: int = 3

    class Config:
        env_prefix = ""
        env_file   = ".env"

settings = Settings()
