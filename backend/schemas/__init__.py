"""
Pydantic request/response schemas
"""
