"""Discord music quiz bot backed by each player's Spotify top artists."""
