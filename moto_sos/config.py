from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Database
    DATABASE_URL: str = "sqlite:///./moto_sos.db"
    DATABASE_ECHO: bool = False

    # Emergency sessions
    SESSION_HISTORY_LIMIT: int = 10
    COUNTDOWN_TICKS: int = 3
    COUNTDOWN_TICK_SECONDS: float = 1.0

    # Location
    LOCATION_PROVIDER: str = "static"  # static, http
    DEFAULT_LATITUDE: float = 19.4326
    DEFAULT_LONGITUDE: float = -99.1332
    DEFAULT_ACCURACY: float = 25.0
    LOCATION_API_URL: str = "http://ip-api.com/json"
    LOCATION_TIMEOUT_SECONDS: float = 10.0
    LOCATION_WATCH_INTERVAL_SECONDS: float = 5.0

    # Reverse geocoding
    GEOCODER: str = "coordinates"  # coordinates, nominatim
    NOMINATIM_URL: str = "https://nominatim.openstreetmap.org/reverse"

    # Notifications
    NOTIFICATION_CHANNEL: str = "log"  # log, sms, whatsapp
    SMS_API_KEY: str = "your-sms-api-key"
    SMS_API_URL: str = "https://api.smsservice.com/send"
    SMS_SENDER_ID: str = "MOTO-SOS"
    DEFAULT_COUNTRY_CODE: str = "+52"
    WHATSAPP_API_KEY: str = ""
    WHATSAPP_API_URL: str = ""
    WHATSAPP_PHONE_ID: str = ""

    MAPS_URL_TEMPLATE: str = "https://maps.google.com/?q={lat},{lng}"

settings = Settings()
