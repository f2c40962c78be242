"""
Domain services: allocator, IP rows, groups
"""
