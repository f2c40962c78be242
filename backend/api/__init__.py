"""
Guacamole IP admin REST API
"""
