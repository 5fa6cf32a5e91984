"""Project-wide constants."""

PROJECT_NAME = "CodeXAlpha"
API_V1_STR = "/api/v1"

DEFAULT_PERSONA_TITLE = "My Coach Persona"
TRANSCRIPT_PERSONA_TITLE = "Your Persona (from Transcript)"
DEFAULT_AI_MODEL = "gpt-4o-mini"
DEFAULT_OPENAI_BASE_URL = "https://api.openai.com/v1"

MAX_ANSWER_LENGTH = 50000
MAX_TITLE_LENGTH = 200

LIGHTATHON_TOTAL_DAYS = 21
LIGHTATHON_CODEX_MARKER = "21 Days Lightathon"
