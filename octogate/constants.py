"""Application constants - centralized configuration values."""

# =============================================================================
# Session & Security
# =============================================================================
SESSION_TIMEOUT_DAYS = 7
SESSION_COOKIE_NAME = "octogate_session"
SESSION_ACCOUNT_KEY = "account_id"

# =============================================================================
# OAuth
# =============================================================================
PROVIDER_GITHUB = "github"
GITHUB_SCOPE = "read:user"
GITHUB_AUTHORIZE_URL = "https://github.com/login/oauth/authorize"
GITHUB_TOKEN_URL = "https://github.com/login/oauth/access_token"
GITHUB_API_BASE_URL = "https://api.github.com/"
HTTPX_TIMEOUT = 10.0

# =============================================================================
# Routes
# =============================================================================
HOME_PATH = "/"
LOGIN_PATH = "/login"
FAILURE_PATH = "/auth/failure"
FAILURE_MESSAGE_MAX_LENGTH = 200

# =============================================================================
# Account column limits
# =============================================================================
PROVIDER_MAX_LENGTH = 32
PROFILE_FIELD_MAX_LENGTH = 255
