# vardump/config.py
from __future__ import annotations

import os

from dotenv import load_dotenv

load_dotenv()

# Describer / renderer defaults: can be overridden by environment variables
DEFAULT_MAX_DEPTH = int(os.getenv("VARDUMP_MAX_DEPTH", "7"))
DEFAULT_MAX_LENGTH = int(os.getenv("VARDUMP_MAX_LENGTH", "150"))
DEFAULT_MAX_ITEMS = int(os.getenv("VARDUMP_MAX_ITEMS", "100"))
DEFAULT_COLLAPSE_TOP = int(os.getenv("VARDUMP_COLLAPSE_TOP", "14"))
DEFAULT_COLLAPSE_SUB = int(os.getenv("VARDUMP_COLLAPSE_SUB", "7"))
DEFAULT_THEME = os.getenv("VARDUMP_THEME", "light")

# Deferred content retention
RETENTION_MAX_ENTRIES = 10
RETENTION_MAX_AGE_SECONDS = 60

# Session namespace and correlation header
SESSION_NAMESPACE = "_vardump"
AJAX_HEADER = "X-Vardump-Ajax"
JS_NAMESPACE = "Vardump"
