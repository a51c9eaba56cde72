import os
from pathlib import Path
from dotenv import load_dotenv

ROOT_DIR = Path(__file__).parent
load_dotenv(ROOT_DIR / '.env')

# CORS
CORS_ORIGINS = os.environ.get('CORS_ORIGINS', 'http://localhost:3000').split(',')

# Storage: "memory" (default) or "mongo"
STORAGE_BACKEND = os.environ.get('STORAGE_BACKEND', 'memory').lower()

# MongoDB
MONGO_URL = os.environ.get('MONGO_URL', 'mongodb://localhost:27017')
DB_NAME = os.environ.get('DB_NAME', 'usecase_docgen')

# Assets: company logo and uploaded wireframe images
ASSETS_DIR = Path(os.environ.get('ASSETS_DIR', str(ROOT_DIR.parent / 'attached_assets')))

# Probed in order by the header logo resolver
LOGO_CANDIDATES = [
    name.strip()
    for name in os.environ.get(
        'LOGO_CANDIDATES',
        'image_1754501839527.png,Logo.png,company-logo.png,ingematica-logo-full.png',
    ).split(',')
    if name.strip()
]

# Bytez API
BYTEZ_API_KEY = os.environ.get('BYTEZ_API_KEY', '')
BYTEZ_API_URL = "https://api.bytez.com/models/v2"

# Local Ollama fallback
OLLAMA_URL = os.environ.get('OLLAMA_URL', 'http://localhost:11434')

# AI Models via Bytez, keyed by the ai_model value sent from the form
AI_MODELS = {
    "demo": {
        "id": None,
        "name": "Demo (sin IA)",
        "description": "Deterministic local responses, no provider call",
    },
    "qwen-7b": {
        "id": "Qwen/Qwen2.5-7B-Instruct",
        "name": "Qwen 2.5 7B Instruct",
        "description": "General-purpose instruction model for field improvement",
    },
    "llama-3.1-8b": {
        "id": "meta-llama/Meta-Llama-3.1-8B-Instruct",
        "name": "Llama 3.1 8B Instruct",
        "description": "Meta Llama 3.1 for Spanish technical writing",
    },
    "mistral-7b": {
        "id": "mistralai/Mistral-7B-Instruct-v0.3",
        "name": "Mistral 7B Instruct",
        "description": "Compact instruction model",
    },
}
DEFAULT_AI_MODEL = "qwen-7b"

# Rate limiting
RATE_LIMIT_PER_MIN = int(os.environ.get('RATE_LIMIT_PER_MIN', '120'))

# Upper bound for any single free-text field and for HTML sent to the renderer
MAX_CONTENT_CHARS = int(os.environ.get('MAX_CONTENT_CHARS', '1000000'))

# Headless browser viewports for wireframe screenshots (width, height)
SCREENSHOT_VIEWPORTS = {
    "default": (1024, 768),
    "search": (1200, 800),
    "form": (900, 1000),
}
