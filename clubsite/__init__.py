"""
Content API for the club website.

Serves projects, highlights, power stones, bulletins and the mini-game
leaderboard from MongoDB when it is configured, or from JSON files on disk
otherwise, plus admin image uploads and a restricted PDF proxy.
"""
