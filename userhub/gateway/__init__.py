"""userhub - HTTP gateway middleware."""
