"""
Monitoring integrations.
"""
