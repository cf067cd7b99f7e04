"""
Matchmaking Service - swipes, mutual connections, persona ranking and connected-users feed
"""
__version__ = "1.0.0"
