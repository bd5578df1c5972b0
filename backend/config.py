"""Configuration management for the Touchline Football Analyst."""
import os
import logging
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# API Keys
GROQ_API_KEY = os.getenv("GROQ_API_KEY")
HUGGINGFACE_API_KEY = os.getenv("HUGGINGFACE_API_KEY")
SUPABASE_URL = os.getenv("SUPABASE_URL")
SUPABASE_KEY = os.getenv("SUPABASE_KEY")
FOOTBALL_DATA_API_KEY = os.getenv("FOOTBALL_DATA_API_KEY")

# Server Configuration
PORT = int(os.getenv("PORT", "8000"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FORMAT = os.getenv("LOG_FORMAT", "text")  # "text" or "json"

# CORS Configuration
CORS_ORIGINS = os.getenv(
    "CORS_ORIGINS",
    "http://localhost:3000,http://localhost:3001"
).split(",")

# Model Configuration
EMBEDDING_MODEL = "sentence-transformers/all-mpnet-base-v2"
VALIDATION_MODEL = os.getenv("VALIDATION_MODEL", "llama-3.1-8b-instant")
ENHANCEMENT_MODEL = os.getenv("ENHANCEMENT_MODEL", "llama-3.3-70b-versatile")
REALTIME_MODEL = os.getenv("REALTIME_MODEL", "llama-3.1-8b-instant")
ANALYSIS_MODEL = os.getenv("ANALYSIS_MODEL", "llama-3.3-70b-versatile")
MAX_TOKENS = 500

# Live data (football-data.org v4)
FOOTBALL_DATA_URL = os.getenv("FOOTBALL_DATA_URL", "https://api.football-data.org/v4")
DEFAULT_COMPETITION = os.getenv("DEFAULT_COMPETITION", "PL")

# Retrieval Configuration
MAX_CONTEXT_DOCUMENTS = 5
RELEVANCE_THRESHOLD = 0.3
DYNAMIC_K_CUTOFF = 0.8  # Only include documents within 80% of top score

# Conversation memory
DEFAULT_CONVERSATION_ID = "default"
MEMORY_BACKEND = os.getenv("MEMORY_BACKEND", "memory")  # "memory" or "supabase"
MEMORY_CONTEXT_TURNS = 3

# Logging Configuration
logging.basicConfig(
    level=getattr(logging, LOG_LEVEL),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
