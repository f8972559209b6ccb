import os

# Model/runtime knobs
PROVIDER = os.getenv("LCLI_PROVIDER", "ollama").strip().lower()
MODEL_NAME = os.getenv("LCLI_MODEL", "").strip()
BASE_URL = os.getenv("LCLI_BASE_URL", "").strip()
API_KEY = os.getenv("LCLI_API_KEY", "").strip()
TEMPERATURE = float(os.getenv("LCLI_TEMP", "0.7"))
MAX_NEW = int(os.getenv("LCLI_MAX_NEW", "4096"))
# Wall-clock cap for one model request (seconds)
GEN_TIMEOUT = int(os.getenv("LCLI_GEN_TIMEOUT", "300"))
# In-process llama.cpp model (only used with LCLI_PROVIDER=llama_cpp)
GGUF_PATH = os.getenv("LCLI_GGUF", "").strip() or None
GGUF_CTX = int(os.getenv("LCLI_CTX_TOK", "8192"))

DEFAULT_MODELS = {
    "ollama": "llama3.2",
    "lmstudio": "local-model",
    "server": "local-model",
    "openai": "gpt-4o-mini",
    "openrouter": "meta-llama/llama-3.2-3b-instruct:free",
    "groq": "llama-3.1-8b-instant",
    "llama_cpp": "local-gguf",
}
DEFAULT_BASE_URLS = {
    "ollama": "http://localhost:11434",
    "lmstudio": "http://localhost:1234/v1",
    "server": "http://127.0.0.1:8012/v1",
    "openai": "https://api.openai.com/v1",
    "openrouter": "https://openrouter.ai/api/v1",
    "groq": "https://api.groq.com/openai/v1",
}

DEBUG = os.getenv("LCLI_DEBUG", "").lower() in ("1", "true", "yes")
DEBUG_LOG_PATH = os.path.expanduser(os.getenv("LCLI_DEBUG_LOG", "~/.localcli/debug.log"))
DEBUG_DUMP_VERBOSE = os.getenv("LCLI_DEBUG_DUMP_VERBOSE", "false").lower() in ("1", "true", "yes")
DEBUG_DUMP_MAX_LINES = int(os.getenv("LCLI_DEBUG_DUMP_MAX_LINES", "20"))
DEBUG_DUMP_MAX_CHARS = int(os.getenv("LCLI_DEBUG_DUMP_MAX_CHARS", "2000"))
# Echo tool calls to stderr (set LCLI_DEBUG_TOOLS=1 to enable)
DEBUG_TOOLS = os.getenv("LCLI_DEBUG_TOOLS", "0").lower() not in ("0", "false", "no")

# Agent/runtime knobs
AUTO_APPROVE = os.getenv("LCLI_AUTO_APPROVE", "false").lower() in ("1", "true", "yes")
ENABLE_TOOLS = os.getenv("LCLI_ENABLE_TOOLS", "true").lower() in ("1", "true", "yes")
COMMAND_TIMEOUT_MS = int(os.getenv("LCLI_COMMAND_TIMEOUT_MS", "30000"))
# Translate Unix/Windows command forms toward the host shell before the first attempt
PRETRANSLATE_COMMANDS = os.getenv("LCLI_PRETRANSLATE", "true").lower() in ("1", "true", "yes")
IGNORE_DIRS = {".git", "node_modules", "__pycache__", "dist", "build", ".venv"}
MAX_LIST_ENTRIES = int(os.getenv("LCLI_MAX_LIST_ENTRIES", "200"))
MAX_SEARCH_RESULTS = int(os.getenv("LCLI_MAX_SEARCH_RESULTS", "200"))
GREP_MAX_FILES = int(os.getenv("LCLI_GREP_MAX_FILES", "50"))
GREP_MAX_MATCHES = int(os.getenv("LCLI_GREP_MAX_MATCHES", "50"))
CODEBASE_SEARCH_MAX_FILES = int(os.getenv("LCLI_CODEBASE_SEARCH_MAX_FILES", "100"))
TREE_MAX_DEPTH = int(os.getenv("LCLI_TREE_MAX_DEPTH", "3"))
TREE_MAX_ENTRIES = int(os.getenv("LCLI_TREE_MAX_ENTRIES", "30"))
FETCH_MAX_CHARS = int(os.getenv("LCLI_FETCH_MAX_CHARS", "10000"))
FETCH_TIMEOUT = int(os.getenv("LCLI_FETCH_TIMEOUT", "30"))
# Cap on tool output re-injected into the conversation
TOOL_RESULT_MAX_CHARS = int(os.getenv("LCLI_TOOL_RESULT_MAX_CHARS", "3000"))
# Project-local directory for todo_write sidecars
SIDECAR_DIR = os.getenv("LCLI_SIDECAR_DIR", ".localcli")

# Context gathering for the system prompt
MAX_CONTEXT_FILES = int(os.getenv("LCLI_MAX_CONTEXT_FILES", "3"))
MAX_CONTEXT_FILE_CHARS = int(os.getenv("LCLI_MAX_CONTEXT_FILE_CHARS", "2000"))
MAX_CONTEXT_FILE_BYTES = int(os.getenv("LCLI_MAX_CONTEXT_FILE_BYTES", "50000"))
