# config.py
import os
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


def _env_list(name: str, default: str) -> list:
    return [item.strip() for item in os.getenv(name, default).split(",") if item.strip()]


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


# ------------------ Server ------------------
APP_NAME = "Qairoz"
APP_VERSION = os.getenv("APP_VERSION", "1.0.0")
PORT = int(os.getenv("PORT", 3001))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
CORS_ORIGINS = _env_list(
    "CORS_ORIGINS",
    "http://localhost:5173,http://localhost:3000,https://qairoz.org",
)

# ------------------ Database ------------------
# Default is an in-process SQLite database: data lives as long as the server does.
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite://")
DATABASE_ECHO = _env_bool("DATABASE_ECHO")

# ------------------ OTP ------------------
OTP_LENGTH = int(os.getenv("OTP_LENGTH", 6))
OTP_EXPIRE_MINUTES = int(os.getenv("OTP_EXPIRE_MINUTES", 5))
OTP_MAX_ATTEMPTS = int(os.getenv("OTP_MAX_ATTEMPTS", 3))
OTP_HASH_SECRET = os.getenv("OTP_HASH_SECRET", os.getenv("APP_SECRET", "change-this-secret"))

# ------------------ Email ------------------
# Providers are tried in this order; unconfigured ones are skipped.
EMAIL_PROVIDERS = _env_list("EMAIL_PROVIDERS", "emailjs,resend,gmail,sendgrid")
EMAIL_FROM_NAME = os.getenv("EMAIL_FROM_NAME", "Qairoz Platform")
EMAIL_TIMEOUT_SECONDS = int(os.getenv("EMAIL_TIMEOUT_SECONDS", 15))

EMAILJS_API_URL = os.getenv("EMAILJS_API_URL", "https://api.emailjs.com/api/v1.0/email/send")
EMAILJS_SERVICE_ID = os.getenv("EMAILJS_SERVICE_ID")
EMAILJS_TEMPLATE_ID = os.getenv("EMAILJS_TEMPLATE_ID")
EMAILJS_PUBLIC_KEY = os.getenv("EMAILJS_PUBLIC_KEY")
EMAILJS_PRIVATE_KEY = os.getenv("EMAILJS_PRIVATE_KEY")  # optional access token

RESEND_API_URL = os.getenv("RESEND_API_URL", "https://api.resend.com/emails")
RESEND_API_KEY = os.getenv("RESEND_API_KEY")
RESEND_FROM_EMAIL = os.getenv("RESEND_FROM_EMAIL")  # e.g. "Qairoz <noreply@qairoz.org>"

GMAIL_USER = os.getenv("GMAIL_USER")
GMAIL_APP_PASSWORD = os.getenv("GMAIL_APP_PASSWORD")
GMAIL_SMTP_HOST = os.getenv("GMAIL_SMTP_HOST", "smtp.gmail.com")
GMAIL_SMTP_PORT = int(os.getenv("GMAIL_SMTP_PORT", 587))

SENDGRID_API_KEY = os.getenv("SENDGRID_API_KEY")
SENDGRID_FROM_EMAIL = os.getenv("SENDGRID_FROM_EMAIL")
SENDGRID_SANDBOX = _env_bool("SENDGRID_SANDBOX")

# ------------------ AWS S3 ------------------
# Leave the keys unset to use the default boto3 credential chain (IAM role etc).
AWS_ACCESS_KEY_ID = os.getenv("AWS_ACCESS_KEY_ID")
AWS_SECRET_ACCESS_KEY = os.getenv("AWS_SECRET_ACCESS_KEY")
AWS_REGION = os.getenv("AWS_REGION", "eu-north-1")
S3_BUCKET_NAME = os.getenv("S3_BUCKET_NAME", "qairoz-data-storage")
S3_BACKUP_PREFIX = os.getenv("S3_BACKUP_PREFIX", "backups/")
S3_ENDPOINT_URL = os.getenv("S3_ENDPOINT_URL")  # MinIO / localstack
S3_PRESIGNED_URL_EXPIRY = int(os.getenv("S3_PRESIGNED_URL_EXPIRY", 3600))
