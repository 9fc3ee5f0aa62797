# =======================================================================================
# valtrack/api/__init__.py - HTTP API Package
# =======================================================================================
