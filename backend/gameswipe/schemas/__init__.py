"""
GameSwipe Backend: Pydantic API Schemas
=======================================

Request bodies are validated against these models before any service call;
responses are serialized through them. Field names are snake_case in Python
and camelCase on the wire.
"""
