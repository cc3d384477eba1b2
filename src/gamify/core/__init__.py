"""Core business logic.

Modules:
- xp_rules: XP table, level arithmetic (pure)
- cooldown: per action/material/student award cooldown
- xp_award: transactional XP award
- mastery: topic status classification
- topic_progress: per-topic progress rows
- revisions: spaced-repetition schedule (dojo)
- test_attempts: test score log
- leaderboard: XP ranking
- stats: student summary
"""

__all__ = [
    "xp_rules",
    "cooldown",
    "xp_award",
    "mastery",
    "topic_progress",
    "revisions",
    "test_attempts",
    "leaderboard",
    "stats",
]
