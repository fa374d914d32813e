# centralized configuration loader
# runs load_dotenv() to read .env
# call sites read config.X at call time, so a provider can be resolved lazily from whatever is set

import os
from dotenv import load_dotenv

load_dotenv()

# Provider
PROVIDER = os.getenv("PROVIDER", "openai")
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY", "")
OPENAI_BASE_URL = os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1")
OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
OLLAMA_HOST = os.getenv("OLLAMA_HOST", "http://127.0.0.1:11434")
OLLAMA_MODEL = os.getenv("OLLAMA_MODEL", "qwen2.5:3b-instruct")

# Generation caps
TEMPERATURE = float(os.getenv("TEMPERATURE", "0.7"))
MAX_TOKENS = int(os.getenv("MAX_TOKENS", "2000"))

# seconds; 0 disables the per-call deadline
REQUEST_TIMEOUT = float(os.getenv("REQUEST_TIMEOUT", "0"))

# HTTP surface
ENABLE_STREAMING = os.getenv("ENABLE_STREAMING", "true").lower() in {"1", "true", "yes", "y"}
