"""
Chat slash commands.
"""
