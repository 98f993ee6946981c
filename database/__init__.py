"""Local SQLite persistence for rosters, working state and saved schedules."""
