"""
Atlassian Connect lifecycle and descriptor.
"""
