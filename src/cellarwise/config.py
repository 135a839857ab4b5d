"""
Cellarwise Configuration
Centralized settings for the application
"""

import os

from dotenv import load_dotenv

load_dotenv()

# OpenAI Model Configuration
OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
OPENAI_TEMPERATURE = float(os.getenv("OPENAI_TEMPERATURE", "0.2"))
OPENAI_MAX_TOKENS = int(os.getenv("OPENAI_MAX_TOKENS", "1200"))

# Drinking window alert look-ahead (days)
ENTERING_PEAK_DAYS = int(os.getenv("ENTERING_PEAK_DAYS", "7"))
LEAVING_PEAK_DAYS = int(os.getenv("LEAVING_PEAK_DAYS", "30"))

# Bulk sweeps process the collection in bounded batches
STATUS_REFRESH_BATCH_SIZE = int(os.getenv("STATUS_REFRESH_BATCH_SIZE", "100"))

# Recommendation limits
TONIGHT_TOP_N = int(os.getenv("TONIGHT_TOP_N", "3"))
CONSUMPTION_HISTORY_LIMIT = int(os.getenv("CONSUMPTION_HISTORY_LIMIT", "50"))
