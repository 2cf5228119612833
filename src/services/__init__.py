"""
Service orchestration for the local server
"""
