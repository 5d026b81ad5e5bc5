"""Semantic property search backend: query understanding, ranking and the HTTP API."""
