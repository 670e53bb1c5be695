from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field

class Settings(BaseSettings):
	# Server-side key used by the teacher-helper function when a caller sends none
	openai_create_key: str | None = Field(default=None, validation_alias="OPENAI_CREATE")
	openai_base_url: str = Field(default="https://api.openai.com/v1", validation_alias="OPENAI_BASE_URL")
	openai_chat_model: str = Field(default="gpt-4o-mini", validation_alias="OPENAI_CHAT_MODEL")
	openai_transcribe_model: str = Field(default="gpt-4o-mini-transcribe", validation_alias="OPENAI_TRANSCRIBE_MODEL")
	openai_temperature: float = Field(default=0.2, validation_alias="OPENAI_TEMPERATURE")
	http_timeout: float = Field(default=30, validation_alias="HTTP_TIMEOUT")

	# Proxy functions (teacher-helper, create-feedback)
	functions_base_url: str = Field(default="http://localhost:8000/functions/v1", validation_alias="FUNCTIONS_BASE_URL")
	functions_anon_key: str | None = Field(default=None, validation_alias="FUNCTIONS_ANON_KEY")
	invoke_attempts: int = Field(default=2, validation_alias="INVOKE_ATTEMPTS")
	# Seconds; attempt N waits N * delay before the next try
	invoke_retry_delay: float = Field(default=0.4, validation_alias="INVOKE_RETRY_DELAY")

	# Secret names looked up in app_secrets, primary first
	secret_primary_name: str = Field(default="OPENAI_CREATE", validation_alias="SECRET_PRIMARY_NAME")
	secret_legacy_name: str = Field(default="OPENAI_FEEDBACK", validation_alias="SECRET_LEGACY_NAME")

	# Tokens are issued by the external auth provider; we only verify them
	jwt_secret_key: str = Field(default="change-me", validation_alias="JWT_SECRET_KEY")
	jwt_algorithm: str = Field(default="HS256", validation_alias="JWT_ALGORITHM")
	jwt_audience: str | None = Field(default=None, validation_alias="JWT_AUDIENCE")

	# Database
	database_url: str | None = Field(default=None, validation_alias="DATABASE_URL")

	log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")

	# pydantic-settings v2 style config
	model_config = SettingsConfigDict(env_file=".env", extra="ignore")

settings = Settings()
