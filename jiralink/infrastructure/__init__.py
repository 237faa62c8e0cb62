"""
Outbound HTTP infrastructure.
"""
