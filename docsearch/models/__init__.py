"""
Transport contracts.

Request/response schemas exchanged with the HTTP layer. Field names are
snake_case in Python and camelCase on the wire.
"""
