"""
Models package - domain entities and request/response DTOs.
"""
