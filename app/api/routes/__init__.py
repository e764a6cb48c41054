"""
API routes.

This module organizes routes into:
- games: supported leagues and scoreboard games
- picks: per-game analysis
- parlays: parlay recommendations and custom parlays
- strategy: daily bankroll strategy
- admin: cache and circuit breaker controls
"""
